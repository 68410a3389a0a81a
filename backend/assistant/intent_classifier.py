"""
Intent classification and entity extraction for operator questions.

This module handles:
- Topic detection (order, material, production, report, optimization)
- Entity extraction (order number, customer, timeframe)
- Delay / status / technical flags

Everything here is pure: no I/O, no state, never raises.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    """Coarse category of a question."""
    ORDER = "order"
    MATERIAL = "material"
    PRODUCTION = "production"
    REPORT = "report"
    OPTIMIZATION = "optimization"
    GENERAL = "general"


class Timeframe(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    HALF_YEAR = "half-year"
    YEAR = "year"


@dataclass(frozen=True)
class Query:
    """A single user turn."""
    raw_text: str
    timestamp: datetime


@dataclass(frozen=True)
class IntentResult:
    """Classified intent plus extracted entities for one query."""
    topic: Topic = Topic.GENERAL
    order_number: Optional[str] = None
    customer_name: Optional[str] = None
    timeframe: Optional[Timeframe] = None
    is_delay_query: bool = False
    is_status_query: bool = False
    is_technical_query: bool = False
    has_date_info: bool = False


# Two digits, two digits, letter + 2-4 alphanumerics, optional numeric suffix.
# Separators are optional; the match may not sit inside a longer alphanumeric run.
ORDER_NUMBER_PATTERN = re.compile(
    r"(?<![0-9A-Za-z])"
    r"\d{2}[-/._]?\d{2}[-/._]?[A-Za-z][A-Za-z0-9]{2,4}(?:[-/._]?\d{1,4})?"
    r"(?![0-9A-Za-z])"
)

DATE_PATTERNS = [
    re.compile(r"\b(bugün|yarın|dün|today|tomorrow|yesterday)"),
    re.compile(r"\b(bu|geçen|gelecek) (hafta|ay|yıl)"),
    re.compile(r"\b(this|last|next) (week|month|year)\b"),
    re.compile(r"\b\d{1,2}[/.\-]\d{1,2}[/.\-]\d{2,4}\b"),
]


def normalize_text(text: str) -> str:
    """Lower-case text, dropping the combining dot left by lowering Turkish 'İ'."""
    return text.lower().replace("\u0307", "")


class IntentClassifier:
    """Classify operator intent and pull entities out of the query."""

    # Keywords for each topic, checked in this order
    TOPIC_KEYWORDS: List[Tuple[Topic, List[str]]] = [
        (Topic.ORDER, [
            "sipariş", "siparis", "müşteri", "musteri", "sipariş no",
            "sipariş numarası", "order", "customer",
        ]),
        (Topic.MATERIAL, [
            "malzeme", "stok", "tedarik", "eksik", "temin",
            "material", "stock", "inventory", "supply", "shortage",
        ]),
        (Topic.PRODUCTION, [
            "üretim", "uretim", "planlama", "plan", "imalat", "montaj",
            "production", "manufactur", "assembly", "schedule",
        ]),
        (Topic.REPORT, [
            "rapor", "analiz", "aylık", "haftalık", "günlük", "istatistik",
            "report", "analysis", "statistic", "summary",
        ]),
        (Topic.OPTIMIZATION, [
            "optimizasyon", "öneri", "tavsiye", "iyileştir",
            "optimi", "suggest", "recommend", "improve",
        ]),
    ]

    STATUS_KEYWORDS = [
        "durum", "ne durumda", "aşama", "safha", "hangi aşamada",
        "status", "progress", "stage", "where is",
    ]

    DELAY_KEYWORDS = [
        "gecik", "geç kal", "bekleyen", "ertelen",
        "delay", "running late", "overdue", "behind schedule", "pending",
    ]

    TECHNICAL_KEYWORDS = [
        "teknik", "doküman", "dokuman", "çizim", "şartname", "talimat",
        "kılavuz", "akım trafo", "technical", "drawing", "datasheet",
        "manual", "specification", "document",
    ]

    # Checked in order: quarter / half-year before month so "3 aylık" is a quarter
    TIMEFRAME_PHRASES: List[Tuple[Timeframe, List[str]]] = [
        (Timeframe.QUARTER, ["3 aylık", "üç aylık", "çeyrek", "quarter"]),
        (Timeframe.HALF_YEAR, ["6 aylık", "altı aylık", "yarıyıl", "half-year", "half year", "semi-annual"]),
        (Timeframe.MONTH, ["bu ay", "aylık", "this month", "monthly"]),
        (Timeframe.WEEK, ["bu hafta", "haftalık", "this week", "weekly"]),
        (Timeframe.YEAR, ["bu yıl", "yıllık", "this year", "yearly", "annual"]),
        (Timeframe.DAY, ["bugün", "günlük", "today", "daily"]),
    ]

    KNOWN_CUSTOMERS = [
        "AYEDAŞ",
        "ENERJİSA",
        "BAŞKENT EDAŞ",
        "TOROSLAR EDAŞ",
        "TEİAŞ",
        "BEDAŞ",
        "OSMANİYE ELEKTRİK",
    ]

    def __init__(self):
        # Longest names first so "BAŞKENT EDAŞ" wins over a shorter overlapping name
        self._customers: List[Tuple[str, str]] = sorted(
            ((normalize_text(name), name) for name in self.KNOWN_CUSTOMERS),
            key=lambda pair: len(pair[0]),
            reverse=True,
        )

    def classify(self, query: str) -> Topic:
        """Return the first topic (in priority order) whose keywords appear."""
        query_lower = normalize_text(query)
        for topic, keywords in self.TOPIC_KEYWORDS:
            if any(kw in query_lower for kw in keywords):
                return topic
        return Topic.GENERAL

    def extract_order_number(self, query: str) -> Optional[str]:
        match = ORDER_NUMBER_PATTERN.search(query)
        return match.group(0) if match else None

    def extract_customer(self, query: str) -> Optional[str]:
        query_lower = normalize_text(query)
        for normalized, canonical in self._customers:
            if normalized in query_lower:
                return canonical
        return None

    def extract_timeframe(self, query: str) -> Optional[Timeframe]:
        query_lower = normalize_text(query)
        for timeframe, phrases in self.TIMEFRAME_PHRASES:
            if any(phrase in query_lower for phrase in phrases):
                return timeframe
        return None

    def has_date_info(self, query: str) -> bool:
        query_lower = normalize_text(query)
        return any(pattern.search(query_lower) for pattern in DATE_PATTERNS)

    @staticmethod
    def _contains_any(query: str, keywords: List[str]) -> bool:
        query_lower = normalize_text(query)
        return any(kw in query_lower for kw in keywords)

    def extract(self, query: str) -> IntentResult:
        """
        Classify a query and extract all entities.

        Args:
            query: Raw operator text

        Returns:
            IntentResult; an empty or non-string query yields the general topic
        """
        if not isinstance(query, str) or not query.strip():
            return IntentResult()

        topic = self.classify(query)
        order_number = self.extract_order_number(query)

        # An order number always makes this an order question
        if order_number:
            topic = Topic.ORDER

        result = IntentResult(
            topic=topic,
            order_number=order_number,
            customer_name=self.extract_customer(query),
            timeframe=self.extract_timeframe(query),
            is_delay_query=self._contains_any(query, self.DELAY_KEYWORDS),
            is_status_query=self._contains_any(query, self.STATUS_KEYWORDS),
            is_technical_query=self._contains_any(query, self.TECHNICAL_KEYWORDS),
            has_date_info=self.has_date_info(query),
        )
        logger.debug(f"Extracted intent: {result}")
        return result

    def describe(self, result: IntentResult) -> Dict[str, object]:
        """Flatten an IntentResult for API responses and logs."""
        return {
            "topic": result.topic.value,
            "order_number": result.order_number,
            "customer_name": result.customer_name,
            "timeframe": result.timeframe.value if result.timeframe else None,
            "is_delay_query": result.is_delay_query,
            "is_status_query": result.is_status_query,
            "is_technical_query": result.is_technical_query,
        }


_default_classifier = IntentClassifier()


def extract(text: str) -> IntentResult:
    """Module-level shortcut around a shared (stateless) IntentClassifier."""
    return _default_classifier.extract(text)
