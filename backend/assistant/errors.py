"""
Exception types for the production assistant.

Only InputValidationError is meant to reach callers. Every other error is
absorbed by the component that hit it and turned into a degraded result.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Failure categories recorded on answer attempts and in logs."""
    NETWORK = "network"
    AUTH = "auth"
    MALFORMED_RESPONSE = "malformed_response"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    JSON_EXTRACTION = "json_extraction"
    UNEXPECTED = "unexpected"


class AssistantError(Exception):
    """Base class for all assistant errors."""


class InputValidationError(AssistantError, ValueError):
    """Order specification is missing or invalid (missing cell type, bad quantity)."""


class ProviderError(AssistantError):
    """A remote AI provider failed to produce a usable answer."""

    kind = ErrorKind.UNEXPECTED

    def __init__(self, message: str = "", provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider

    @classmethod
    def for_kind(cls, kind, message: str = "", provider: Optional[str] = None) -> "ProviderError":
        """Build the provider error subclass matching an ErrorKind."""
        for error_cls in (
            ProviderNetworkError,
            ProviderAuthError,
            ProviderMalformedResponseError,
            ProviderRateLimitError,
            ProviderTimeoutError,
        ):
            if error_cls.kind == kind:
                return error_cls(message, provider=provider)
        return cls(message, provider=provider)


class ProviderNetworkError(ProviderError):
    kind = ErrorKind.NETWORK


class ProviderAuthError(ProviderError):
    kind = ErrorKind.AUTH


class ProviderMalformedResponseError(ProviderError):
    kind = ErrorKind.MALFORMED_RESPONSE


class ProviderRateLimitError(ProviderError):
    kind = ErrorKind.RATE_LIMIT


class ProviderTimeoutError(ProviderError):
    kind = ErrorKind.TIMEOUT


class CatalogReadError(AssistantError):
    """The material catalog could not be loaded from the store."""


class HistoryReadError(AssistantError):
    """Historical production records could not be loaded from the store."""


class JSONExtractionError(AssistantError):
    """A provider answered with text that holds no parseable JSON payload."""

    kind = ErrorKind.JSON_EXTRACTION
