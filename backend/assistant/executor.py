"""
Assistant executor for the production tracking chat.

Orchestrates the complete flow:
IntentClassifier → ContextAssembler → FallbackOrchestrator → Answer

and exposes the two prediction operations on the same data provider and
fallback chain.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from .context_assembler import ContextAssembler
from .data_provider import DataProvider, SeededDataProvider
from .intent_classifier import IntentClassifier, IntentResult, Query
from .material_predictor import MaterialPrediction, MaterialPredictor
from .order_spec import OrderSpec
from .orchestrator import Answer, FallbackOrchestrator, OrchestratorConfig
from .production_estimator import ProductionEstimate, ProductionTimeEstimator

logger = logging.getLogger(__name__)


class AssistantExecutor:
    """Answers chat queries and runs predictions for the production assistant."""

    def __init__(
        self,
        data_provider: Optional[DataProvider] = None,
        config: Optional[OrchestratorConfig] = None,
        orchestrator: Optional[FallbackOrchestrator] = None,
        history_sample_size: int = 20,
    ):
        """
        Initialize assistant executor.

        Args:
            data_provider: Store access (defaults to the seeded demo provider)
            config: Tier configuration, used when no orchestrator is passed
            orchestrator: Pre-built fallback chain (tests inject fake providers here)
            history_sample_size: Records averaged by the production estimator
        """
        self.data_provider = data_provider or SeededDataProvider()
        self.orchestrator = orchestrator or FallbackOrchestrator(config=config)
        self.classifier = IntentClassifier()
        self.assembler = ContextAssembler(self.data_provider)
        self.material_predictor = MaterialPredictor(self.data_provider, self.orchestrator)
        self.production_estimator = ProductionTimeEstimator(
            self.data_provider, self.orchestrator, history_sample_size=history_sample_size
        )

        logger.info(f"AssistantExecutor initialized with {type(self.data_provider).__name__}")

    async def _record(self, query: Query) -> None:
        try:
            await self.data_provider.record_query(query)
        except Exception as e:
            logger.warning(f"Could not record query: {e}")

    async def answer_query(self, text: str) -> Answer:
        """
        Answer one chat turn.

        Never raises: data failures degrade the context, provider failures
        fall through the tier chain.

        Args:
            text: Raw user text

        Returns:
            Answer with text and the tier that produced it
        """
        answer, _ = await self.answer_query_with_intent(text)
        return answer

    async def answer_query_with_intent(self, text: str) -> Tuple[Answer, IntentResult]:
        """Same as answer_query, also returning the extracted intent."""
        text = text if isinstance(text, str) else ""
        logger.info(f"Processing user query: {text}")

        intent = self.classifier.extract(text)
        await self._record(Query(raw_text=text, timestamp=datetime.now()))

        context = await self.assembler.assemble(intent)
        logger.debug(f"Assembled context categories: {[c.value for c in context.sections]}")

        answer = await self.orchestrator.answer(text, context.render())
        return answer, intent

    async def predict_materials(self, spec: OrderSpec) -> MaterialPrediction:
        """
        Predict the material list for an order.

        Raises:
            InputValidationError: cell_type is blank
        """
        return await self.material_predictor.predict(spec)

    async def predict_production_time(self, spec: OrderSpec) -> ProductionEstimate:
        """
        Estimate production days for an order.

        Raises:
            InputValidationError: cell_type is blank or quantity is not positive
        """
        return await self.production_estimator.estimate(spec)
