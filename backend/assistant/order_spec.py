"""Order specification shared by the material and production-time predictors."""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InputValidationError


def normalize_cell_type(cell_type: Optional[str]) -> str:
    """Lower-case and collapse whitespace: ' RM  36 cb ' -> 'rm 36 cb'."""
    return " ".join((cell_type or "").lower().split())


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (33.5 -> 34), unlike round()."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class OrderSpec:
    """What the caller wants to build."""
    cell_type: str
    quantity: int = 1
    voltage: Optional[str] = None
    current: Optional[str] = None
    relay_type: Optional[str] = None
    customer: Optional[str] = None

    def require_cell_type(self) -> None:
        if not isinstance(self.cell_type, str) or not self.cell_type.strip():
            raise InputValidationError("cell_type is required")

    def require_positive_quantity(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, (int, float)) or self.quantity <= 0:
            raise InputValidationError(f"quantity must be a positive number, got {self.quantity!r}")

    def to_prompt_dict(self) -> Dict[str, Any]:
        return {
            "cellType": self.cell_type,
            "quantity": self.quantity,
            "voltage": self.voltage,
            "current": self.current,
            "relayType": self.relay_type,
        }
