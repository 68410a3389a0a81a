"""
Data provider interface and the seeded fixture provider.

DataProvider is the boundary to the ERP / document store. The assistant
never talks to the store directly; it only calls these coroutines.

SeededDataProvider holds one consistent set of demo records and is used
wherever a real ERP-backed provider is not configured (local runs, tests).
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional

from .intent_classifier import Query
from .records import (
    CriticalMaterial,
    MaterialLine,
    MaterialListCandidate,
    MaterialPredictionRecord,
    Order,
    ProductionJob,
    ProductionRecord,
    ProductionSummary,
    TechnicalDocument,
)

logger = logging.getLogger(__name__)


class DataProvider(ABC):
    """
    Abstract access to orders, stock, production and catalog data.

    Implementations may suspend on I/O and may raise; callers own the
    error boundary.
    """

    @abstractmethod
    async def get_active_orders(self) -> List[Order]:
        pass

    @abstractmethod
    async def get_order_by_number(self, order_no: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_critical_materials(self) -> List[CriticalMaterial]:
        pass

    @abstractmethod
    async def get_production_status(self) -> ProductionSummary:
        pass

    @abstractmethod
    async def get_delayed_orders(self) -> List[Order]:
        pass

    @abstractmethod
    async def get_technical_documents(self) -> List[TechnicalDocument]:
        pass

    @abstractmethod
    async def get_historical_production(self, cell_type: str, limit: int = 20) -> List[ProductionRecord]:
        """
        Return production records for a cell type, most recent first.

        Args:
            cell_type: Cell type to filter on (case-insensitive)
            limit: Maximum number of records to return
        """
        pass

    @abstractmethod
    async def get_material_catalog(self) -> List[MaterialListCandidate]:
        pass

    @abstractmethod
    async def append_material_prediction(self, record: MaterialPredictionRecord) -> None:
        """Append a predicted material list to the catalog (training data)."""
        pass

    @abstractmethod
    async def record_query(self, query: Query) -> None:
        """Append a query to the recent-queries log."""
        pass


def _lines(*rows) -> List[MaterialLine]:
    return [MaterialLine(code=code, name=name, quantity=qty, unit=unit) for code, name, qty, unit in rows]


class SeededDataProvider(DataProvider):
    """
    In-memory provider seeded with demo data.

    Dates are relative to ``now`` so delayed / upcoming records stay
    meaningful whenever the provider is built. The catalog and query log are
    append-only lists; appends are atomic within the event loop.
    """

    def __init__(
        self,
        now: Optional[datetime] = None,
        orders: Optional[List[Order]] = None,
        materials: Optional[List[CriticalMaterial]] = None,
        production: Optional[List[ProductionJob]] = None,
        documents: Optional[List[TechnicalDocument]] = None,
        history: Optional[List[ProductionRecord]] = None,
        catalog: Optional[List[MaterialListCandidate]] = None,
        latency: float = 0.0,
    ):
        """
        Initialize the provider.

        Args:
            now: Reference time for relative dates (defaults to datetime.now())
            orders, materials, production, documents, history, catalog:
                Override any of the seeded collections
            latency: Artificial delay per call, in seconds
        """
        self.now = now or datetime.now()
        self.latency = latency
        self.orders = orders if orders is not None else self._seed_orders()
        self.materials = materials if materials is not None else self._seed_materials()
        self.production = production if production is not None else self._seed_production()
        self.documents = documents if documents is not None else self._seed_documents()
        self.history = history if history is not None else self._seed_history()
        self.catalog = catalog if catalog is not None else self._seed_catalog()
        self.predictions: List[MaterialPredictionRecord] = []
        self.recent_queries: List[Query] = []

    async def _pause(self) -> None:
        await asyncio.sleep(self.latency)

    async def get_active_orders(self) -> List[Order]:
        await self._pause()
        return [order for order in self.orders if order.status not in ("delivered", "cancelled")]

    async def get_order_by_number(self, order_no: str) -> Optional[Order]:
        await self._pause()
        wanted = order_no.strip().upper()
        for order in self.orders:
            if order.order_no.upper() == wanted:
                return order
        return None

    async def get_critical_materials(self) -> List[CriticalMaterial]:
        await self._pause()
        return [m for m in self.materials if m.is_short or m.order_no]

    async def get_production_status(self) -> ProductionSummary:
        await self._pause()
        return ProductionSummary(jobs=list(self.production))

    async def get_delayed_orders(self) -> List[Order]:
        await self._pause()
        return [
            order for order in self.orders
            if order.delivery_date and order.delivery_date < self.now
            and order.status not in ("ready", "delivered", "cancelled")
        ]

    async def get_technical_documents(self) -> List[TechnicalDocument]:
        await self._pause()
        return list(self.documents)

    async def get_historical_production(self, cell_type: str, limit: int = 20) -> List[ProductionRecord]:
        await self._pause()
        wanted = " ".join(cell_type.lower().split())
        matching = [r for r in self.history if " ".join(r.cell_type.lower().split()) == wanted]
        matching.sort(key=lambda r: r.started_at or datetime.min, reverse=True)
        return matching[:limit]

    async def get_material_catalog(self) -> List[MaterialListCandidate]:
        await self._pause()
        return list(self.catalog)

    async def append_material_prediction(self, record: MaterialPredictionRecord) -> None:
        await self._pause()
        self.predictions.append(record)
        self.catalog.append(
            MaterialListCandidate(
                id=f"prediction-{len(self.predictions)}",
                cell_type=record.cell_type,
                voltage=record.voltage,
                current=record.current,
                relay_type=record.relay_type,
                materials=record.materials,
                source=record.source,
            )
        )
        logger.info(f"Stored predicted material list for {record.cell_type}")

    async def record_query(self, query: Query) -> None:
        self.recent_queries.append(query)

    # Seed data

    def _days(self, offset: int) -> datetime:
        return self.now + timedelta(days=offset)

    def _seed_orders(self) -> List[Order]:
        return [
            Order(
                id="order-1", order_no="24-03-A001", customer="AYEDAŞ", cell_type="RM 36 LB",
                cell_count=3, voltage="36kV", current="1250A", relay_type="Siemens 7SR1003",
                status="production", progress=65,
                order_date=self._days(-30), delivery_date=self._days(15),
                warning_message="Earthing switch assembly test required",
            ),
            Order(
                id="order-2", order_no="24-03-B002", customer="BAŞKENT EDAŞ", cell_type="RM 36 FL",
                cell_count=5, voltage="36kV", current="630A", relay_type="ABB REF615",
                status="waiting", progress=40, missing_materials=2,
                order_date=self._days(-30), delivery_date=self._days(-15),
                warning_message="Delivery overdue",
            ),
            Order(
                id="order-3", order_no="24-03-C003", customer="ENERJİSA", cell_type="RM 36 CB",
                cell_count=4, voltage="36kV", current="1250A", relay_type="Siemens 7SR1003",
                status="ready", progress=100,
                order_date=self._days(-30), delivery_date=self._days(30),
            ),
            Order(
                id="order-4", order_no="24-04-D004", customer="TOROSLAR EDAŞ", cell_type="RM 36 LB",
                cell_count=8, voltage="36kV", current="1250A", relay_type="Siemens 7SR1003",
                status="planning", progress=10,
                order_date=self._days(-15), delivery_date=self._days(30),
            ),
            Order(
                id="order-5", order_no="24-04-E005", customer="AYEDAŞ", cell_type="RM 36 CB",
                cell_count=6, voltage="36kV", current="2000A", relay_type="ABB REF615",
                status="planning", progress=5,
                order_date=self._days(-15), delivery_date=self._days(30),
            ),
        ]

    def _seed_materials(self) -> List[CriticalMaterial]:
        return [
            CriticalMaterial(
                id="material-1", code="Siemens 7SR1003-1JA20-2DA0+ZY20", name="Protection relay",
                stock=2, min_stock=8, supplier="Siemens",
            ),
            CriticalMaterial(
                id="material-2", code="KAP-80/190-95", name="Current transformer",
                stock=3, min_stock=5, supplier="Esitaş",
            ),
            CriticalMaterial(
                id="material-3", code="M480TB/G-027-95.300UN5", name="Cable termination",
                stock=0, min_stock=5, supplier="Euromold", order_no="24-03-B002",
                expected_supply_date=self._days(7), order_need_date=self._days(-2),
            ),
            CriticalMaterial(
                id="material-4", code="OVI+S (10nf)", name="Voltage indicator",
                stock=0, min_stock=3, supplier="Elektra", order_no="24-03-B002",
                expected_supply_date=self._days(2), order_need_date=self._days(7),
            ),
            CriticalMaterial(
                id="material-5", code="M: 24 VDC B: 24 VDC", name="Disconnector motor",
                stock=10, min_stock=4, supplier="Siemens",
            ),
        ]

    def _seed_production(self) -> List[ProductionJob]:
        return [
            ProductionJob(
                id="production-1", order_no="24-03-A001", status="active", progress=60,
                start_date=self._days(-7), end_date=self._days(7),
            ),
            ProductionJob(
                id="production-2", order_no="24-03-B002", status="active", progress=45,
                start_date=self._days(-14), end_date=self._days(-7),
                is_delayed=True, delay_reason="Material supply delay",
            ),
            ProductionJob(
                id="production-3", order_no="24-03-C003", status="waiting", progress=0,
                start_date=self._days(7), end_date=self._days(21),
            ),
        ]

    def _seed_documents(self) -> List[TechnicalDocument]:
        return [
            TechnicalDocument(
                id="doc-1", name="RM 36 CB technical drawing", cell_type="RM 36 CB",
                issued_at=datetime(2024, 10, 15), summary="Technical drawing details for the RM 36 CB cell",
            ),
            TechnicalDocument(
                id="doc-2", name="RM 36 LB assembly instruction", cell_type="RM 36 LB",
                issued_at=datetime(2024, 10, 10), summary="Assembly steps for the RM 36 LB cell",
            ),
            TechnicalDocument(
                id="doc-3", name="Current transformer selection guide",
                issued_at=datetime(2024, 10, 1), summary="How to select current transformers",
            ),
        ]

    def _seed_history(self) -> List[ProductionRecord]:
        records = []
        for i, (cell_type, days) in enumerate([
            ("RM 36 LB", 11), ("RM 36 LB", 13), ("RM 36 LB", 12),
            ("RM 36 FL", 9), ("RM 36 FL", 11),
        ]):
            start = self._days(-90 + i * 10)
            records.append(
                ProductionRecord(
                    id=f"history-{i + 1}", cell_type=cell_type, quantity=1,
                    started_at=start, finished_at=start + timedelta(days=days),
                )
            )
        return records

    def _seed_catalog(self) -> List[MaterialListCandidate]:
        return [
            MaterialListCandidate(
                id="catalog-1", cell_type="RM 36 CB", voltage="36kV", current="1250A",
                relay_type="Siemens 7SR1003",
                materials=_lines(
                    ("137998%", "Siemens 7SR1003-1JA20-2DA0+ZY20 24VDC protection relay", 1, "pcs"),
                    ("144866%", "KAP-80/190-95 current transformer", 3, "pcs"),
                    ("120170%", "M480TB/G-027-95.300UN5 cable termination", 3, "pcs"),
                    ("109367%", "582mm busbar", 3, "pcs"),
                ),
            ),
            MaterialListCandidate(
                id="catalog-2", cell_type="RM 36 LB", voltage="36kV", current="630A",
                materials=_lines(
                    ("M002", "Load break switch", 1, "pcs"),
                    ("120170%", "M480TB/G-027-95.300UN5 cable termination", 3, "pcs"),
                    ("109367%", "582mm busbar", 3, "pcs"),
                ),
            ),
        ]
