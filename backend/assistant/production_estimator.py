"""
Production lead-time estimation.

Resolution order:
1. Mean duration of recent production runs of the same cell type
2. Remote model estimate (strict JSON)
3. Per-cell-type default table

Quantities above one get a flat 0.8 scale factor (parallel work on a batch).
"""

import logging
import math
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Optional

from .data_provider import DataProvider
from .errors import HistoryReadError, JSONExtractionError
from .json_extract import extract_json
from .order_spec import OrderSpec, normalize_cell_type, round_half_up
from .orchestrator import FallbackOrchestrator
from .prompts import get_production_time_prompt
from .records import ProductionRecord

logger = logging.getLogger(__name__)

SOURCE_HISTORICAL = "historical-data"
SOURCE_REMOTE = "remote-model"
SOURCE_DEFAULT = "default-table"

HISTORY_CONFIDENCE = 0.85
REMOTE_DEFAULT_CONFIDENCE = 0.75
DEFAULT_CONFIDENCE = 0.7
BATCH_SCALE_FACTOR = 0.8

DEFAULT_PRODUCTION_DAYS = {
    "rm 36 cb": 14,
    "rm 36 lb": 12,
    "rm 36 fl": 10,
    "rm 36 bc": 16,
    "rm 36 d": 8,
    "rm 36 udc": 15,
}
FALLBACK_PRODUCTION_DAYS = 14

# Stage share of the total, in percent
BREAKDOWN_PERCENT = {
    "planning": 10,
    "material_preparation": 20,
    "production": 50,
    "testing": 15,
    "delivery": 5,
}

# Stage days for a FALLBACK_PRODUCTION_DAYS job
DEFAULT_BREAKDOWN_DAYS = {
    "planning": 1,
    "material_preparation": 3,
    "production": 7,
    "testing": 2,
    "delivery": 1,
}

# camelCase keys used in remote answers
REMOTE_BREAKDOWN_KEYS = {
    "planning": "planning",
    "materialPreparation": "material_preparation",
    "production": "production",
    "testing": "testing",
    "delivery": "delivery",
}


@dataclass(frozen=True)
class StageBreakdown:
    """Days per production stage."""
    planning: int = 0
    material_preparation: int = 0
    production: int = 0
    testing: int = 0
    delivery: int = 0

    @classmethod
    def proportional(cls, total_days: int) -> "StageBreakdown":
        return cls(**{stage: round_half_up(total_days * pct / 100) for stage, pct in BREAKDOWN_PERCENT.items()})

    @classmethod
    def scaled_default(cls, total_days: int) -> "StageBreakdown":
        return cls(**{
            stage: round_half_up(days * total_days / FALLBACK_PRODUCTION_DAYS)
            for stage, days in DEFAULT_BREAKDOWN_DAYS.items()
        })

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ProductionEstimate:
    """Estimated lead time in whole days."""
    estimated_days: int
    confidence: float
    source: str
    breakdown: StageBreakdown
    sample_size: int = 0
    answer_tier: Optional[str] = None


def scale_for_quantity(base_days: float, quantity: int) -> int:
    factor = BATCH_SCALE_FACTOR if quantity > 1 else 1.0
    return round_half_up(base_days * quantity * factor)


def default_days_for(cell_type: str) -> int:
    return DEFAULT_PRODUCTION_DAYS.get(normalize_cell_type(cell_type), FALLBACK_PRODUCTION_DAYS)


def elapsed_days(records: List[ProductionRecord]) -> List[int]:
    """Whole days per finished record; missing timestamps and non-positive spans are dropped."""
    samples = []
    for record in records:
        if record.started_at is None or record.finished_at is None:
            continue
        days = (record.finished_at - record.started_at).days
        if days > 0:
            samples.append(days)
    return samples


def _is_number(value: Any) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float)) and math.isfinite(value)


def _non_negative_int(value: Any) -> Optional[int]:
    if not _is_number(value) or value < 0:
        return None
    return round_half_up(value)


def parse_remote_estimate(payload: Any) -> ProductionEstimate:
    """
    Validate a parsed remote answer.

    Raises:
        JSONExtractionError: Not an object, or estimatedDays is not a positive finite number
    """
    if not isinstance(payload, dict):
        raise JSONExtractionError("Expected a JSON object with estimatedDays")

    days = payload.get("estimatedDays")
    if not _is_number(days) or days <= 0:
        raise JSONExtractionError(f"estimatedDays must be a positive finite number, got {days!r}")
    estimated = max(1, round_half_up(days))

    confidence = payload.get("confidence")
    if not _is_number(confidence):
        confidence = REMOTE_DEFAULT_CONFIDENCE
    confidence = min(1.0, max(0.0, float(confidence)))

    breakdown = StageBreakdown.proportional(estimated)
    raw = payload.get("breakdown")
    if isinstance(raw, dict):
        stages = {}
        for key, stage in REMOTE_BREAKDOWN_KEYS.items():
            value = _non_negative_int(raw.get(key, raw.get(stage)))
            if value is None:
                break
            stages[stage] = value
        else:
            breakdown = StageBreakdown(**stages)

    return ProductionEstimate(
        estimated_days=estimated,
        confidence=confidence,
        source=SOURCE_REMOTE,
        breakdown=breakdown,
    )


class ProductionTimeEstimator:
    """Estimates production lead time for an order specification."""

    def __init__(
        self,
        data_provider: DataProvider,
        orchestrator: FallbackOrchestrator,
        history_sample_size: int = 20,
    ):
        """
        Initialize estimator.

        Args:
            data_provider: Source of historical production records
            orchestrator: Fallback chain used when there is no history
            history_sample_size: How many recent records to average over
        """
        self.data_provider = data_provider
        self.orchestrator = orchestrator
        self.history_sample_size = history_sample_size

    async def _load_samples(self, cell_type: str) -> List[int]:
        try:
            records = await self.data_provider.get_historical_production(cell_type, self.history_sample_size)
        except Exception as e:
            error = HistoryReadError(str(e))
            logger.warning(f"Production history unavailable for {cell_type}: {error}")
            return []
        return elapsed_days(list(records))

    async def estimate(self, spec: OrderSpec) -> ProductionEstimate:
        """
        Estimate production days for an order.

        Raises:
            InputValidationError: cell_type is blank or quantity is not positive
        """
        spec.require_cell_type()
        spec.require_positive_quantity()

        samples = await self._load_samples(spec.cell_type)
        if samples:
            base = sum(samples) / len(samples)
            estimated = scale_for_quantity(base, spec.quantity)
            logger.info(
                f"Estimated {estimated} days for {spec.quantity} x {spec.cell_type} from {len(samples)} record(s)"
            )
            return ProductionEstimate(
                estimated_days=estimated,
                confidence=HISTORY_CONFIDENCE,
                source=SOURCE_HISTORICAL,
                breakdown=StageBreakdown.proportional(estimated),
                sample_size=len(samples),
            )

        remote = await self._estimate_remote(spec)
        if remote is not None:
            return remote

        estimated = scale_for_quantity(default_days_for(spec.cell_type), spec.quantity)
        logger.info(f"Using default production table for {spec.cell_type}: {estimated} days")
        return ProductionEstimate(
            estimated_days=estimated,
            confidence=DEFAULT_CONFIDENCE,
            source=SOURCE_DEFAULT,
            breakdown=StageBreakdown.scaled_default(estimated),
        )

    async def _estimate_remote(self, spec: OrderSpec) -> Optional[ProductionEstimate]:
        answer = await self.orchestrator.answer(get_production_time_prompt(spec.to_prompt_dict()))
        if not answer.is_remote:
            logger.info("No remote provider produced a production estimate")
            return None

        try:
            estimate = parse_remote_estimate(extract_json(answer.text))
        except JSONExtractionError as e:
            logger.warning(f"Remote production estimate unusable ({answer.tier.value}): {e}")
            return None

        return replace(estimate, answer_tier=answer.tier.value)
