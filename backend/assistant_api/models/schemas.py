"""
Pydantic models for request/response schemas.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from assistant.order_spec import OrderSpec
from assistant.records import MaterialLine


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""
    query: str = Field(..., description="Operator's question", min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "query": "24-03-B002 siparişinin durumu nedir?"
            }
        }


class IntentSummary(BaseModel):
    """Extracted intent, echoed back for the UI."""
    topic: str
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    timeframe: Optional[str] = None
    is_delay_query: bool = False
    is_status_query: bool = False
    is_technical_query: bool = False


class ChatResponse(BaseModel):
    """Response model for chat endpoint."""
    response: str = Field(..., description="Answer text")
    tier: str = Field(..., description="Tier that produced the answer")
    intent: IntentSummary


class OrderSpecRequest(BaseModel):
    """Order specification shared by the prediction endpoints."""
    cell_type: str = Field(..., description="Cell type, e.g. RM 36 CB")
    quantity: int = Field(default=1, description="Number of cells")
    voltage: Optional[str] = Field(default=None, description="Rated voltage, e.g. 36kV")
    current: Optional[str] = Field(default=None, description="Rated current, e.g. 1250A")
    relay_type: Optional[str] = Field(default=None, description="Protection relay model")
    customer: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "cell_type": "RM 36 CB",
                "quantity": 3,
                "voltage": "36kV",
                "current": "1250A",
                "relay_type": "Siemens 7SR1003",
            }
        }

    def to_order_spec(self) -> OrderSpec:
        return OrderSpec(
            cell_type=self.cell_type,
            quantity=self.quantity,
            voltage=self.voltage,
            current=self.current,
            relay_type=self.relay_type,
            customer=self.customer,
        )


class MaterialPredictionResponse(BaseModel):
    """Predicted material list."""
    materials: List[MaterialLine]
    source: str = Field(..., description="database, remote_model or local_fallback")
    match_confidence: Optional[float] = None
    candidate_id: Optional[str] = None


class ProductionTimeResponse(BaseModel):
    """Production lead-time estimate."""
    estimated_days: int
    confidence: float
    source: str = Field(..., description="historical-data, remote-model or default-table")
    breakdown: Dict[str, int]
    sample_size: int = 0
