"""
Production assistant engine for switchgear cell manufacturing.

This module provides:
- Intent classification and entity extraction
- Evidence context assembly from the data provider
- Remote / local answer fallback chain
- Material list and production time prediction
"""

from .data_provider import DataProvider, SeededDataProvider
from .errors import InputValidationError
from .executor import AssistantExecutor
from .intent_classifier import IntentClassifier, IntentResult, Topic
from .order_spec import OrderSpec
from .orchestrator import Answer, AnswerTier, FallbackOrchestrator, OrchestratorConfig, ProviderSettings

__all__ = [
    "AssistantExecutor",
    "DataProvider",
    "SeededDataProvider",
    "InputValidationError",
    "IntentClassifier",
    "IntentResult",
    "Topic",
    "OrderSpec",
    "Answer",
    "AnswerTier",
    "FallbackOrchestrator",
    "OrchestratorConfig",
    "ProviderSettings",
]
