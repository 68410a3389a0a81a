"""
Material list prediction for a new order.

Resolution order:
1. Best-scoring material list from the catalog (needs at least a cell type match)
2. Remote model, asked for a strict JSON bill of materials
3. Built-in per-cell-type material lists

A list obtained from the remote model is written back to the catalog in the
background so the next identical order is served from the catalog.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, List, Optional, Set

from pydantic import ValidationError

from .data_provider import DataProvider
from .errors import CatalogReadError, JSONExtractionError
from .json_extract import extract_json
from .order_spec import OrderSpec, normalize_cell_type
from .orchestrator import FallbackOrchestrator
from .prompts import get_material_prediction_prompt
from .records import MaterialLine, MaterialListCandidate, MaterialPredictionRecord

logger = logging.getLogger(__name__)

# Scoring weights
EXACT_CELL_TYPE_SCORE = 5
PARTIAL_CELL_TYPE_SCORE = 3
VOLTAGE_SCORE = 2
CURRENT_SCORE = 2
RELAY_TYPE_SCORE = 1
MAX_SCORE = EXACT_CELL_TYPE_SCORE + VOLTAGE_SCORE + CURRENT_SCORE + RELAY_TYPE_SCORE
ACCEPT_SCORE = EXACT_CELL_TYPE_SCORE

SOURCE_DATABASE = "database"
SOURCE_REMOTE_MODEL = "remote_model"
SOURCE_LOCAL_FALLBACK = "local_fallback"

DEFAULT_CELL_TYPE = "rm 36 cb"


def _lines(*rows) -> List[MaterialLine]:
    return [MaterialLine(code=code, name=name, quantity=qty, unit=unit) for code, name, qty, unit in rows]


# Fallback lists when neither the catalog nor a remote model can help
LOCAL_MATERIAL_LISTS = {
    "rm 36 cb": _lines(
        ("M001", "Cell body (RM 36 CB)", 1, "pcs"),
        ("M002", "Circuit breaker", 1, "pcs"),
        ("M003", "Control relay", 1, "pcs"),
        ("M004", "Busbar set", 1, "set"),
        ("M005", "Wiring harness", 1, "set"),
        ("M006", "Connection parts", 1, "set"),
        ("M007", "Insulation material", 2, "m"),
        ("M008", "Protection plate", 1, "pcs"),
    ),
    "rm 36 lb": _lines(
        ("M001", "Cell body (RM 36 LB)", 1, "pcs"),
        ("M002", "Load break switch", 1, "pcs"),
        ("M003", "Busbar set", 1, "set"),
        ("M004", "Wiring harness", 1, "set"),
        ("M005", "Connection parts", 1, "set"),
        ("M006", "Insulation material", 1.5, "m"),
        ("M007", "Protection plate", 1, "pcs"),
    ),
    "rm 36 fl": _lines(
        ("M001", "Cell body (RM 36 FL)", 1, "pcs"),
        ("M002", "Fuse set", 1, "set"),
        ("M003", "Load break switch", 1, "pcs"),
        ("M004", "Busbar set", 1, "set"),
        ("M005", "Wiring harness", 1, "set"),
        ("M006", "Connection parts", 1, "set"),
        ("M007", "Insulation material", 2, "m"),
        ("M008", "Protection plate", 1, "pcs"),
    ),
    "rm 36 mb": _lines(
        ("M001", "Cell body (RM 36 MB)", 1, "pcs"),
        ("M002", "Measuring instrument set", 1, "set"),
        ("M003", "Busbar set", 1, "set"),
        ("M004", "Measuring transformers", 3, "pcs"),
        ("M005", "Wiring harness", 1, "set"),
        ("M006", "Connection parts", 1, "set"),
        ("M007", "Insulation material", 1, "m"),
        ("M008", "Protection plate", 1, "pcs"),
    ),
}


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: MaterialListCandidate
    score: int


@dataclass(frozen=True)
class MaterialPrediction:
    """Predicted material list and where it came from."""
    materials: List[MaterialLine]
    source: str
    match_confidence: Optional[float] = None
    candidate_id: Optional[str] = None
    answer_tier: Optional[str] = None


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def score_candidate(spec: OrderSpec, candidate: MaterialListCandidate) -> int:
    """
    Score how well a catalog list fits the order.

    +5 exact cell type, otherwise +3 if one cell type contains the other;
    +2 voltage, +2 current, +1 relay type. Result is within [0, 10].
    """
    score = 0
    wanted = normalize_cell_type(spec.cell_type)
    offered = normalize_cell_type(candidate.cell_type)

    if wanted and offered:
        if wanted == offered:
            score += EXACT_CELL_TYPE_SCORE
        elif wanted in offered or offered in wanted:
            score += PARTIAL_CELL_TYPE_SCORE

    if _same(spec.voltage, candidate.voltage):
        score += VOLTAGE_SCORE
    if _same(spec.current, candidate.current):
        score += CURRENT_SCORE
    if _same(spec.relay_type, candidate.relay_type):
        score += RELAY_TYPE_SCORE
    return score


def best_match(spec: OrderSpec, catalog: List[MaterialListCandidate]) -> Optional[ScoredCandidate]:
    """Highest-scoring candidate; ties keep the earliest in catalog order."""
    best: Optional[ScoredCandidate] = None
    for candidate in catalog:
        score = score_candidate(spec, candidate)
        if best is None or score > best.score:
            best = ScoredCandidate(candidate=candidate, score=score)
    return best


def local_material_list(cell_type: str) -> List[MaterialLine]:
    """Built-in list: exact type, else substring match, else the default type."""
    wanted = normalize_cell_type(cell_type)
    if wanted in LOCAL_MATERIAL_LISTS:
        return list(LOCAL_MATERIAL_LISTS[wanted])
    if wanted:
        for known, materials in LOCAL_MATERIAL_LISTS.items():
            if wanted in known or known in wanted:
                return list(materials)
    return list(LOCAL_MATERIAL_LISTS[DEFAULT_CELL_TYPE])


def parse_material_lines(payload: Any) -> List[MaterialLine]:
    """
    Validate a parsed JSON payload as a material list.

    Accepts a bare array or an object with a ``materials`` array.

    Raises:
        JSONExtractionError: Payload is not a non-empty list of {code, name, quantity}
    """
    if isinstance(payload, dict):
        payload = payload.get("materials")
    if not isinstance(payload, list) or not payload:
        raise JSONExtractionError("Expected a non-empty JSON array of materials")

    lines = []
    for item in payload:
        if not isinstance(item, dict):
            raise JSONExtractionError(f"Material entry is not an object: {item!r}")
        try:
            quantity = float(item["quantity"])
            if not math.isfinite(quantity):
                raise ValueError(f"quantity must be finite, got {quantity}")
            lines.append(MaterialLine(
                code=str(item["code"]),
                name=str(item["name"]),
                quantity=quantity,
                unit=item.get("unit"),
            ))
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise JSONExtractionError(f"Invalid material entry {item!r}: {e}")
    return lines


class MaterialPredictor:
    """Predicts the material list for an order specification."""

    def __init__(self, data_provider: DataProvider, orchestrator: FallbackOrchestrator):
        """
        Initialize predictor.

        Args:
            data_provider: Catalog source and sink for learned lists
            orchestrator: Fallback chain used when the catalog has no match
        """
        self.data_provider = data_provider
        self.orchestrator = orchestrator
        self._background: Set[asyncio.Task] = set()

    async def _load_catalog(self) -> List[MaterialListCandidate]:
        try:
            return list(await self.data_provider.get_material_catalog())
        except Exception as e:
            error = CatalogReadError(str(e))
            logger.warning(f"Material catalog unavailable, skipping catalog match: {error}")
            return []

    async def predict(self, spec: OrderSpec) -> MaterialPrediction:
        """
        Predict materials for an order.

        Raises:
            InputValidationError: cell_type is missing or blank
        """
        spec.require_cell_type()

        catalog = await self._load_catalog()
        match = best_match(spec, catalog)
        if match is not None and match.score >= ACCEPT_SCORE:
            logger.info(
                f"Catalog match {match.candidate.id} for {spec.cell_type} (score {match.score}/{MAX_SCORE})"
            )
            return MaterialPrediction(
                materials=list(match.candidate.materials),
                source=SOURCE_DATABASE,
                match_confidence=match.score / MAX_SCORE,
                candidate_id=match.candidate.id,
            )

        remote = await self._predict_remote(spec)
        if remote is not None:
            return remote

        logger.info(f"Using built-in material list for {spec.cell_type}")
        return MaterialPrediction(materials=local_material_list(spec.cell_type), source=SOURCE_LOCAL_FALLBACK)

    async def _predict_remote(self, spec: OrderSpec) -> Optional[MaterialPrediction]:
        prompt = get_material_prediction_prompt(spec.to_prompt_dict())
        answer = await self.orchestrator.answer(prompt)
        if not answer.is_remote:
            logger.info("No remote provider produced a material list")
            return None

        try:
            materials = parse_material_lines(extract_json(answer.text))
        except JSONExtractionError as e:
            logger.warning(f"Remote material list unusable ({answer.tier.value}): {e}")
            return None

        self._persist_in_background(
            MaterialPredictionRecord(
                cell_type=spec.cell_type,
                voltage=spec.voltage,
                current=spec.current,
                relay_type=spec.relay_type,
                materials=materials,
                tier=answer.tier.value,
            )
        )
        return MaterialPrediction(
            materials=materials,
            source=SOURCE_REMOTE_MODEL,
            answer_tier=answer.tier.value,
        )

    def _persist_in_background(self, record: MaterialPredictionRecord) -> None:
        """Fire-and-forget write of a learned list; failures are only logged."""
        task = asyncio.create_task(self._persist(record))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _persist(self, record: MaterialPredictionRecord) -> None:
        try:
            await self.data_provider.append_material_prediction(record)
        except Exception as e:
            logger.warning(f"Could not store predicted material list for {record.cell_type}: {e}")

    async def drain(self) -> None:
        """Wait for pending catalog writes (shutdown, tests)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
