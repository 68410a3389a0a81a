import pytest

from assistant.data_provider import SeededDataProvider
from assistant.errors import InputValidationError
from assistant.executor import AssistantExecutor
from assistant.intent_classifier import Topic
from assistant.order_spec import OrderSpec
from assistant.orchestrator import AnswerTier

from conftest import NOW, FakeProvider, build_orchestrator


class NoQueryLogProvider(SeededDataProvider):
    async def record_query(self, query):
        raise IOError("query log full")

    async def get_active_orders(self):
        raise ConnectionError("ERP down")


async def test_answer_query_passes_rendered_context(provider):
    primary = FakeProvider("primary", replies=["24-03-B002 is waiting; delivery is overdue."])
    executor = AssistantExecutor(data_provider=provider, orchestrator=build_orchestrator(primary))

    answer, intent = await executor.answer_query_with_intent("24-03-B002 siparişinin durumu nedir?")

    assert answer.tier == AnswerTier.PRIMARY_REMOTE
    assert intent.topic == Topic.ORDER
    assert intent.order_number == "24-03-B002"
    context_message = primary.requests[0].context_message
    assert "## Orders" in context_message
    assert "24-03-B002 | customer: BAŞKENT EDAŞ" in context_message
    assert provider.recent_queries[0].raw_text == "24-03-B002 siparişinin durumu nedir?"


async def test_answer_query_offline_uses_local_tier(provider, offline_orchestrator):
    executor = AssistantExecutor(data_provider=provider, orchestrator=offline_orchestrator)
    answer = await executor.answer_query("Merhaba")
    assert answer.tier == AnswerTier.LOCAL_HEURISTIC
    assert answer.text


async def test_answer_query_never_raises_on_store_failures(offline_orchestrator):
    executor = AssistantExecutor(data_provider=NoQueryLogProvider(now=NOW), orchestrator=offline_orchestrator)
    answer = await executor.answer_query("Aktif siparişler neler?")
    assert answer.text


@pytest.mark.parametrize("text", ["", None])
async def test_answer_query_with_empty_text(provider, offline_orchestrator, text):
    executor = AssistantExecutor(data_provider=provider, orchestrator=offline_orchestrator)
    answer = await executor.answer_query(text)
    assert answer.tier in (AnswerTier.LOCAL_HEURISTIC, AnswerTier.STATIC_FALLBACK)
    assert answer.text


async def test_predictions_share_provider_and_chain(provider, offline_orchestrator):
    executor = AssistantExecutor(data_provider=provider, orchestrator=offline_orchestrator)

    materials = await executor.predict_materials(OrderSpec(cell_type="RM 36 CB"))
    assert materials.source == "database"

    estimate = await executor.predict_production_time(OrderSpec(cell_type="RM 36 CB", quantity=3))
    assert estimate.estimated_days == 34


async def test_prediction_validation_reaches_caller(provider, offline_orchestrator):
    executor = AssistantExecutor(data_provider=provider, orchestrator=offline_orchestrator)
    with pytest.raises(InputValidationError):
        await executor.predict_production_time(OrderSpec(cell_type="RM 36 CB", quantity=0))


def test_defaults_build_seeded_provider_and_local_chain():
    executor = AssistantExecutor()
    assert isinstance(executor.data_provider, SeededDataProvider)
    assert executor.orchestrator.enabled_tiers() == [AnswerTier.LOCAL_HEURISTIC, AnswerTier.STATIC_FALLBACK]
