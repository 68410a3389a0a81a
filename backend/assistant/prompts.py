"""
Centralized prompts and canned texts for the production assistant.

Kept in one place so the remote tiers, the predictors and the local
fallbacks stay consistent.
"""
import json
from typing import Any, Dict

# ============================================================================
# SYSTEM PROMPT
# ============================================================================
# Sent as the first system message on every remote call.

SYSTEM_PROMPT = """You are the production tracking and planning assistant of a medium-voltage switchgear cell manufacturer.

CORE CAPABILITIES:
- Order status, delivery dates and delays
- Material stock, shortages and supply dates
- Production planning, progress and bottlenecks
- Technical documentation for RM 36 cell types (CB, LB, FL, MB, BC, D, UDC)

RESPONSE GUIDELINES:
1. Base your answer on the system data provided; do not invent orders or stock levels
2. Be concise and technical; use short lists for multiple items
3. If the question is ambiguous, ask for the order number or cell type
4. Answer in the language of the question"""


# ============================================================================
# CANNED RESPONSES
# ============================================================================

STATIC_FALLBACK_RESPONSE = (
    "I have limited information on this — try asking about orders, stock, "
    "or production scheduling"
)

CONTEXT_HEADER = "Current system data:"


def build_context_message(context: str) -> str:
    """Wrap rendered evidence for the context system message."""
    return f"{CONTEXT_HEADER}\n{context}" if context else ""


# ============================================================================
# PREDICTION PROMPTS
# ============================================================================

def _spec_block(order_spec: Dict[str, Any]) -> str:
    filled = {key: value for key, value in order_spec.items() if value not in (None, "")}
    return json.dumps(filled, ensure_ascii=False, indent=2)


def get_material_prediction_prompt(order_spec: Dict[str, Any]) -> str:
    """Prompt asking for a strict JSON bill of materials."""
    return f"""Predict the bill of materials for one switchgear cell with this specification:
{_spec_block(order_spec)}

Respond with ONLY a JSON array, no prose and no markdown. Each element must be an object:
{{"code": "<material code>", "name": "<material name>", "quantity": <number per cell>}}"""


def get_production_time_prompt(order_spec: Dict[str, Any]) -> str:
    """Prompt asking for a strict JSON production time estimate."""
    return f"""Estimate the production lead time for this order:
{_spec_block(order_spec)}

Respond with ONLY a JSON object, no prose and no markdown:
{{"estimatedDays": <total days>, "confidence": <0-1>,
  "breakdown": {{"planning": <days>, "materialPreparation": <days>, "production": <days>, "testing": <days>, "delivery": <days>}}}}"""
