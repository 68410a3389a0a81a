"""
Assistant router: chat turns and order predictions.

This router:
1. Receives operator queries and order specifications
2. Hands them to the AssistantExecutor
3. Maps validation errors to 422; everything else is already degraded
   to a successful answer by the engine
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from assistant.errors import InputValidationError
from assistant.executor import AssistantExecutor
from assistant_api.config.settings import settings
from assistant_api.models.schemas import (
    ChatRequest,
    ChatResponse,
    IntentSummary,
    MaterialPredictionResponse,
    OrderSpecRequest,
    ProductionTimeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["assistant"])

# Initialize assistant executor (singleton)
_assistant_executor = None


def get_assistant_executor() -> AssistantExecutor:
    """Get or create AssistantExecutor instance."""
    global _assistant_executor
    if _assistant_executor is None:
        logger.info("Initializing AssistantExecutor...")
        _assistant_executor = AssistantExecutor(
            config=settings.orchestrator_config(),
            history_sample_size=settings.history_sample_size,
        )
    return _assistant_executor


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    executor: AssistantExecutor = Depends(get_assistant_executor),
) -> ChatResponse:
    """
    Answer one operator question.

    Args:
        request: Chat request with the operator query

    Returns:
        ChatResponse with the answer text, answering tier and extracted intent
    """
    logger.info(f"Chat request: {request.query}")
    answer, intent = await executor.answer_query_with_intent(request.query)
    logger.info(f"Answered by {answer.tier.value}, intent: {intent.topic.value}")

    return ChatResponse(
        response=answer.text,
        tier=answer.tier.value,
        intent=IntentSummary(**executor.classifier.describe(intent)),
    )


@router.post("/predictions/materials", response_model=MaterialPredictionResponse)
async def predict_materials(
    request: OrderSpecRequest,
    executor: AssistantExecutor = Depends(get_assistant_executor),
) -> MaterialPredictionResponse:
    """Predict the material list for an order specification."""
    try:
        prediction = await executor.predict_materials(request.to_order_spec())
    except InputValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return MaterialPredictionResponse(
        materials=prediction.materials,
        source=prediction.source,
        match_confidence=prediction.match_confidence,
        candidate_id=prediction.candidate_id,
    )


@router.post("/predictions/production-time", response_model=ProductionTimeResponse)
async def predict_production_time(
    request: OrderSpecRequest,
    executor: AssistantExecutor = Depends(get_assistant_executor),
) -> ProductionTimeResponse:
    """Estimate production days for an order specification."""
    try:
        estimate = await executor.predict_production_time(request.to_order_spec())
    except InputValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    return ProductionTimeResponse(
        estimated_days=estimate.estimated_days,
        confidence=estimate.confidence,
        source=estimate.source,
        breakdown=estimate.breakdown.as_dict(),
        sample_size=estimate.sample_size,
    )


@router.get("/health")
async def health_check(executor: AssistantExecutor = Depends(get_assistant_executor)) -> dict:
    """
    Health check for the answer chain.

    Returns:
        Status and the tiers currently in the fallback chain
    """
    tiers = [tier.value for tier in executor.orchestrator.enabled_tiers()]
    return {
        "status": "healthy" if len(tiers) > 2 else "degraded",
        "tiers": tiers,
    }
