"""
Local heuristic answerer: a fixed keyword table mapped to canned answers.

Used as the third tier when neither remote provider answered. It never
touches the network and always returns text.
"""
import logging
import re
from typing import Callable, List, Tuple

from .intent_classifier import normalize_text

logger = logging.getLogger(__name__)

Rule = Tuple[str, Callable[[str], bool], str]


def _any(*keywords: str) -> Callable[[str], bool]:
    return lambda text: any(kw in text for kw in keywords)


def _words(*words: str) -> Callable[[str], bool]:
    """Whole-word match, for short English keywords that hide inside other words."""
    pattern = re.compile(r"\b(?:" + "|".join(map(re.escape, words)) + r")\b")
    return lambda text: pattern.search(text) is not None


def _all(*groups: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: all(group(text) for group in groups)


def _one_of(*groups: Callable[[str], bool]) -> Callable[[str], bool]:
    return lambda text: any(group(text) for group in groups)


_ORDER = _one_of(_any("sipariş", "siparis"), _words("order", "orders"))

RESPONSE_RULES: List[Rule] = [
    (
        "greeting",
        _any("merhaba", "selam", "hello", "good morning", "günaydın"),
        "Hello! How can I help you today?",
    ),
    (
        "thanks",
        _any("teşekkür", "tesekkur", "sağol", "thank"),
        "You're welcome! Ask me anytime if you need anything else.",
    ),
    (
        "order-status",
        _all(_ORDER, _any("durum", "status", "progress")),
        "You can follow your orders on the Orders page. If you give me an order number "
        "(for example 24-03-A001) I can tell you more about that order.",
    ),
    (
        "order-create",
        _all(_ORDER, _one_of(_any("oluştur", "yeni"), _words("create", "new"))),
        "To create a new order, open the Orders page and use the \"New Order\" button.",
    ),
    (
        "material-stock",
        _any("stok", "malzeme", "stock", "material"),
        "Stock levels and material requirements are listed on the Stock Management page.",
    ),
    (
        "production-plan",
        _one_of(_any("üretim", "uretim", "planla", "planı", "production"), _words("plan", "plans")),
        "Production plans and progress can be followed on the Production page.",
    ),
    (
        "help",
        _one_of(_any("yardım", "yardim", "nasıl", "help"), _words("how")),
        "I can answer questions about orders, stock levels, production planning "
        "and purchase requests. What would you like to know?",
    ),
]

DEFAULT_RULE = "default"
DEFAULT_RESPONSE = (
    "Sorry, I have limited information on that. I can help with orders, "
    "stock status or production planning."
)


class LocalResponder:
    """Keyword-table answerer used when the remote providers are unavailable."""

    def __init__(self, rules: List[Rule] = None, default_response: str = DEFAULT_RESPONSE):
        self.rules = rules if rules is not None else RESPONSE_RULES
        self.default_response = default_response

    def match(self, prompt: str) -> Tuple[str, str]:
        """Return (rule name, response) for the first matching rule."""
        text = normalize_text(prompt or "")
        for name, predicate, response in self.rules:
            if predicate(text):
                return name, response
        return DEFAULT_RULE, self.default_response

    def respond(self, prompt: str) -> str:
        name, response = self.match(prompt)
        logger.debug(f"Local responder matched rule '{name}'")
        return response
