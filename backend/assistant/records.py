"""
Pydantic models for records read from (and written to) the data store.

These mirror what the ERP / document store hands back. The assistant only
reads them, except for MaterialPredictionRecord which is appended as
training data.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MaterialLine(BaseModel):
    """One line of a material list."""
    code: str = Field(..., description="Material / stock code")
    name: str = Field(..., description="Human readable material name")
    quantity: float = Field(..., ge=0, description="Required quantity per cell")
    unit: Optional[str] = Field(default=None, description="Unit of measure (pcs, set, m)")


class Order(BaseModel):
    """Customer order for switchgear cells."""
    id: str
    order_no: str = Field(..., description="Order number, e.g. 24-03-A001")
    customer: str
    cell_type: str
    cell_count: int = 1
    voltage: Optional[str] = None
    current: Optional[str] = None
    relay_type: Optional[str] = None
    status: str = "planning"
    progress: int = 0
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    missing_materials: int = 0
    warning_message: Optional[str] = None


class CriticalMaterial(BaseModel):
    """Stock item that is short or needed by an order."""
    id: str
    code: str
    name: str
    stock: float = 0
    min_stock: float = 0
    supplier: Optional[str] = None
    order_no: Optional[str] = None
    expected_supply_date: Optional[datetime] = None
    order_need_date: Optional[datetime] = None

    @property
    def is_short(self) -> bool:
        return self.stock < self.min_stock


class ProductionJob(BaseModel):
    """Production run for one order."""
    id: str
    order_no: str
    status: str = "waiting"
    progress: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_delayed: bool = False
    delay_reason: Optional[str] = None


class ProductionSummary(BaseModel):
    """Snapshot of the shop floor."""
    jobs: List[ProductionJob] = Field(default_factory=list)

    @property
    def active_count(self) -> int:
        return sum(1 for job in self.jobs if job.status == "active")

    @property
    def delayed_count(self) -> int:
        return sum(1 for job in self.jobs if job.is_delayed)

    @property
    def waiting_count(self) -> int:
        return sum(1 for job in self.jobs if job.status == "waiting")


class ProductionRecord(BaseModel):
    """Completed (or running) production of a cell type, used for time estimates."""
    id: str
    cell_type: str
    quantity: int = 1
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class TechnicalDocument(BaseModel):
    """Drawing, assembly instruction or selection guide."""
    id: str
    name: str
    cell_type: Optional[str] = None
    issued_at: Optional[datetime] = None
    summary: Optional[str] = None


class MaterialListCandidate(BaseModel):
    """Known material list for a cell configuration, read from the catalog."""
    id: str
    cell_type: str
    voltage: Optional[str] = None
    current: Optional[str] = None
    relay_type: Optional[str] = None
    materials: List[MaterialLine] = Field(default_factory=list)
    source: str = Field(default="catalog", description="Who produced the list (catalog, remote_model)")

    model_config = {"frozen": True}


class MaterialPredictionRecord(BaseModel):
    """Remote-model material prediction persisted back into the catalog."""
    cell_type: str
    voltage: Optional[str] = None
    current: Optional[str] = None
    relay_type: Optional[str] = None
    materials: List[MaterialLine]
    source: str = "remote_model"
    tier: str
    created_at: datetime = Field(default_factory=datetime.now)
