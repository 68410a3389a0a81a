import time

import pytest

from assistant.context_assembler import (
    ContextAssembler,
    ContextCategory,
    EvidenceContext,
    filter_jobs_by_timeframe,
)
from assistant.data_provider import SeededDataProvider
from assistant.intent_classifier import IntentResult, Timeframe, Topic, extract

from conftest import NOW


class BrokenMaterialsProvider(SeededDataProvider):
    async def get_critical_materials(self):
        raise ConnectionError("stock service down")


class BrokenDetailProvider(SeededDataProvider):
    async def get_order_by_number(self, order_no):
        raise TimeoutError("ERP timeout")


def test_select_categories_for_order_delay_question(provider):
    assembler = ContextAssembler(provider)
    intent = IntentResult(topic=Topic.ORDER, is_delay_query=True)
    assert assembler.select_categories(intent) == [ContextCategory.ORDERS, ContextCategory.DELAYED_ORDERS]


def test_select_categories_for_technical_material_question(provider):
    assembler = ContextAssembler(provider)
    intent = IntentResult(topic=Topic.MATERIAL, is_technical_query=True)
    assert assembler.select_categories(intent) == [ContextCategory.MATERIALS, ContextCategory.TECHNICAL]


async def test_categories_are_fetched_concurrently():
    provider = SeededDataProvider(now=NOW, latency=0.2)
    intent = IntentResult(
        topic=Topic.ORDER, order_number="24-03-B002", is_delay_query=True, is_technical_query=True,
    )

    started = time.perf_counter()
    context = await ContextAssembler(provider).assemble(intent)
    elapsed = time.perf_counter() - started

    # four provider calls at 0.2s each
    assert elapsed < 0.5
    for category in (ContextCategory.ORDERS, ContextCategory.TECHNICAL, ContextCategory.DELAYED_ORDERS):
        assert context.get(category)


async def test_general_question_has_empty_context(provider):
    context = await ContextAssembler(provider).assemble(IntentResult())
    assert context.is_empty()
    assert context.render() == ""


async def test_named_order_is_not_duplicated(provider):
    context = await ContextAssembler(provider).assemble(extract("24-03-b002 durumu"))
    orders = context.get(ContextCategory.ORDERS)
    assert [o.order_no for o in orders].count("24-03-B002") == 1
    assert len(orders) == len(provider.orders)


async def test_named_inactive_order_is_merged_first(provider):
    delivered = provider.orders[2].model_copy(update={"status": "delivered"})
    provider.orders[2] = delivered
    context = await ContextAssembler(provider).assemble(extract("24-03-C003 nerede?"))
    orders = context.get(ContextCategory.ORDERS)
    assert orders[0].order_no == "24-03-C003"
    assert len(orders) == len(provider.orders)


async def test_failed_order_detail_keeps_active_orders():
    provider = BrokenDetailProvider(now=NOW)
    context = await ContextAssembler(provider).assemble(extract("24-03-A001 status"))
    assert len(context.get(ContextCategory.ORDERS)) == len(provider.orders)


async def test_failed_category_degrades_to_empty():
    provider = BrokenMaterialsProvider(now=NOW)
    intent = IntentResult(topic=Topic.MATERIAL, is_technical_query=True)
    context = await ContextAssembler(provider).assemble(intent)

    assert context.get(ContextCategory.MATERIALS) == []
    assert len(context.get(ContextCategory.TECHNICAL)) == 3
    rendered = context.render()
    assert "## Critical materials\n- no records available" in rendered
    assert "RM 36 CB technical drawing" in rendered


async def test_delayed_orders_section(provider):
    context = await ContextAssembler(provider).assemble(extract("Geciken siparişler hangileri?"))
    delayed = context.get(ContextCategory.DELAYED_ORDERS)
    assert [o.order_no for o in delayed] == ["24-03-B002"]
    assert "## Delayed orders" in context.render()


async def test_production_render_has_counts(provider):
    context = await ContextAssembler(provider).assemble(IntentResult(topic=Topic.PRODUCTION))
    rendered = context.render()
    assert rendered.startswith("## Production\n- active: 2 | delayed: 1 | waiting: 1")


def test_context_is_read_only():
    context = EvidenceContext(sections={ContextCategory.ORDERS: []})
    with pytest.raises(TypeError):
        context.sections[ContextCategory.MATERIALS] = []


def test_filter_jobs_by_week(provider):
    jobs = filter_jobs_by_timeframe(provider.production, Timeframe.WEEK, now=NOW)
    assert [job.id for job in jobs] == ["production-1", "production-3"]


def test_filter_jobs_by_day(provider):
    jobs = filter_jobs_by_timeframe(provider.production, Timeframe.DAY, now=NOW)
    assert [job.id for job in jobs] == ["production-1"]


def test_filter_jobs_without_timeframe(provider):
    assert len(filter_jobs_by_timeframe(provider.production, None, now=NOW)) == 3
    assert len(filter_jobs_by_timeframe(provider.production, Timeframe.YEAR, now=NOW)) == 3
