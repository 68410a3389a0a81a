"""
Evidence context assembly for a single chat turn.

Workflow:
1. Pick the data categories the intent needs
2. Fetch them concurrently, each behind its own error boundary
3. Render the snapshot as plain text for the remote providers
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Awaitable, Dict, List, Mapping, Optional

from .data_provider import DataProvider
from .intent_classifier import IntentResult, Timeframe, Topic
from .records import CriticalMaterial, Order, ProductionJob, ProductionSummary, TechnicalDocument

logger = logging.getLogger(__name__)


class ContextCategory(str, Enum):
    ORDERS = "orders"
    MATERIALS = "materials"
    PRODUCTION = "production"
    TECHNICAL = "technical"
    DELAYED_ORDERS = "delayed_orders"


# Render order
CATEGORY_ORDER = [
    ContextCategory.ORDERS,
    ContextCategory.MATERIALS,
    ContextCategory.PRODUCTION,
    ContextCategory.TECHNICAL,
    ContextCategory.DELAYED_ORDERS,
]

CATEGORY_TITLES = {
    ContextCategory.ORDERS: "Orders",
    ContextCategory.MATERIALS: "Critical materials",
    ContextCategory.PRODUCTION: "Production",
    ContextCategory.TECHNICAL: "Technical documents",
    ContextCategory.DELAYED_ORDERS: "Delayed orders",
}


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else "n/a"


def _fmt_qty(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class EvidenceContext:
    """Read-only snapshot of the domain data relevant to one query."""
    sections: Mapping[ContextCategory, Any] = field(default_factory=lambda: MappingProxyType({}))
    timeframe: Optional[Timeframe] = None

    def __post_init__(self):
        object.__setattr__(self, "sections", MappingProxyType(dict(self.sections)))

    def get(self, category: ContextCategory, default=None):
        return self.sections.get(category, default)

    def is_empty(self) -> bool:
        return not self.sections

    def render(self) -> str:
        """Render the context as a flat text block, one section per category."""
        blocks = []
        for category in CATEGORY_ORDER:
            if category not in self.sections:
                continue
            lines = self._render_section(category, self.sections[category])
            body = "\n".join(lines) if lines else "- no records available"
            blocks.append(f"## {CATEGORY_TITLES[category]}\n{body}")
        return "\n\n".join(blocks)

    def _render_section(self, category: ContextCategory, value: Any) -> List[str]:
        if category in (ContextCategory.ORDERS, ContextCategory.DELAYED_ORDERS):
            return [self._render_order(order) for order in value]
        if category == ContextCategory.MATERIALS:
            return [self._render_material(material) for material in value]
        if category == ContextCategory.PRODUCTION:
            return self._render_production(value)
        if category == ContextCategory.TECHNICAL:
            return [self._render_document(doc) for doc in value]
        return [str(item) for item in value]

    @staticmethod
    def _render_order(order: Order) -> str:
        line = (
            f"- {order.order_no} | customer: {order.customer} | cell type: {order.cell_type} "
            f"x{order.cell_count} | status: {order.status} | progress: {order.progress}% "
            f"| delivery: {_fmt_date(order.delivery_date)}"
        )
        if order.missing_materials:
            line += f" | missing materials: {order.missing_materials}"
        if order.warning_message:
            line += f" | warning: {order.warning_message}"
        return line

    @staticmethod
    def _render_material(material: CriticalMaterial) -> str:
        line = (
            f"- {material.code} ({material.name}) | stock: {_fmt_qty(material.stock)} "
            f"/ min {_fmt_qty(material.min_stock)}"
        )
        if material.order_no:
            line += f" | needed by order {material.order_no} on {_fmt_date(material.order_need_date)}"
        if material.expected_supply_date:
            line += f" | expected supply: {_fmt_date(material.expected_supply_date)}"
        return line

    def _render_production(self, summary: Optional[ProductionSummary]) -> List[str]:
        if summary is None:
            return []
        jobs = filter_jobs_by_timeframe(summary.jobs, self.timeframe)
        lines = [
            f"- active: {summary.active_count} | delayed: {summary.delayed_count} "
            f"| waiting: {summary.waiting_count}"
        ]
        for job in jobs:
            line = (
                f"- {job.order_no} | status: {job.status} | progress: {job.progress}% "
                f"| {_fmt_date(job.start_date)} -> {_fmt_date(job.end_date)}"
            )
            if job.is_delayed:
                line += f" | delayed: {job.delay_reason or 'yes'}"
            lines.append(line)
        return lines

    @staticmethod
    def _render_document(doc: TechnicalDocument) -> str:
        line = f"- {doc.name} ({_fmt_date(doc.issued_at)})"
        if doc.summary:
            line += f": {doc.summary}"
        return line


def filter_jobs_by_timeframe(
    jobs: List[ProductionJob],
    timeframe: Optional[Timeframe],
    now: Optional[datetime] = None,
) -> List[ProductionJob]:
    """
    Keep jobs that touch the requested window.

    Only day, week and month narrow the list; any other (or no) timeframe
    returns the jobs unchanged.
    """
    if timeframe not in (Timeframe.DAY, Timeframe.WEEK, Timeframe.MONTH):
        return list(jobs)

    now = now or datetime.now()
    if timeframe == Timeframe.DAY:
        today = now.date()
        return [
            job for job in jobs
            if (job.start_date and job.start_date.date() == today)
            or (job.end_date and job.end_date.date() == today)
            or (job.start_date and job.end_date and job.start_date <= now <= job.end_date)
        ]

    window_end = now + timedelta(days=7 if timeframe == Timeframe.WEEK else 30)
    return [
        job for job in jobs
        if (job.start_date and now <= job.start_date <= window_end)
        or (job.end_date and now <= job.end_date <= window_end)
        or (job.start_date and job.end_date and job.start_date <= now and job.end_date >= window_end)
    ]


class ContextAssembler:
    """Collects the evidence context for a classified query."""

    def __init__(self, data_provider: DataProvider):
        """
        Initialize the assembler.

        Args:
            data_provider: Source of orders, materials, production and documents
        """
        self.data_provider = data_provider

    def select_categories(self, intent: IntentResult) -> List[ContextCategory]:
        """Decide which categories to load, from the intent alone."""
        categories = []
        if intent.topic == Topic.ORDER or intent.order_number:
            categories.append(ContextCategory.ORDERS)
        if intent.topic == Topic.MATERIAL:
            categories.append(ContextCategory.MATERIALS)
        if intent.topic == Topic.PRODUCTION:
            categories.append(ContextCategory.PRODUCTION)
        if intent.is_technical_query:
            categories.append(ContextCategory.TECHNICAL)
        if intent.is_delay_query and intent.topic == Topic.ORDER:
            categories.append(ContextCategory.DELAYED_ORDERS)
        return categories

    async def assemble(self, intent: IntentResult) -> EvidenceContext:
        """
        Fetch all selected categories concurrently and join them.

        A failing category degrades to an empty snapshot; it never cancels
        the other fetches or fails the turn.
        """
        categories = self.select_categories(intent)
        if not categories:
            return EvidenceContext(timeframe=intent.timeframe)

        fetchers: Dict[ContextCategory, Awaitable[Any]] = {
            category: self._fetch(category, intent) for category in categories
        }
        results = await asyncio.gather(
            *(self._guarded(category, coro) for category, coro in fetchers.items())
        )
        sections = dict(zip(fetchers.keys(), results))
        logger.info(
            f"Assembled context: {', '.join(c.value for c in categories)} "
            f"(order={intent.order_number or '-'})"
        )
        return EvidenceContext(sections=sections, timeframe=intent.timeframe)

    async def _guarded(self, category: ContextCategory, coro: Awaitable[Any]) -> Any:
        try:
            return await coro
        except Exception as e:
            logger.warning(f"Context fetch for '{category.value}' failed, using empty data: {e}")
            return None if category == ContextCategory.PRODUCTION else []

    def _fetch(self, category: ContextCategory, intent: IntentResult) -> Awaitable[Any]:
        if category == ContextCategory.ORDERS:
            return self._fetch_orders(intent.order_number)
        if category == ContextCategory.MATERIALS:
            return self.data_provider.get_critical_materials()
        if category == ContextCategory.PRODUCTION:
            return self.data_provider.get_production_status()
        if category == ContextCategory.TECHNICAL:
            return self.data_provider.get_technical_documents()
        return self.data_provider.get_delayed_orders()

    async def _fetch_orders(self, order_number: Optional[str]) -> List[Order]:
        """Active orders, plus the detail of a named order merged in (deduplicated)."""
        if not order_number:
            return list(await self.data_provider.get_active_orders())

        active, detail = await asyncio.gather(
            self._guarded_call("active orders", self.data_provider.get_active_orders(), []),
            self._guarded_call(
                f"order {order_number}", self.data_provider.get_order_by_number(order_number), None
            ),
        )
        orders = list(active)
        if detail is not None:
            known = {order.order_no.upper() for order in orders}
            if detail.order_no.upper() not in known:
                orders.insert(0, detail)
        return orders

    @staticmethod
    async def _guarded_call(label: str, coro: Awaitable[Any], default: Any) -> Any:
        try:
            return await coro
        except Exception as e:
            logger.warning(f"Fetching {label} failed: {e}")
            return default
