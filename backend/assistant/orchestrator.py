"""
Provider fallback orchestrator.

This module handles:
- The ordered answer tiers (primary remote, secondary remote, local heuristic, static)
- Skipping tiers that are disabled or have no credentials
- Per-attempt timeouts and error boundaries
- Recording which tier answered

The chain is an explicit list of (tier, attempt) pairs consumed by a single
loop. It stops at the first success; the static tier cannot fail.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from .deepseek_client import DeepseekClient
from .errors import ErrorKind, ProviderError, ProviderMalformedResponseError, ProviderTimeoutError
from .llm import ChatProvider, CompletionRequest
from .local_responder import LocalResponder
from .openai_client import OpenAIChatClient
from .prompts import STATIC_FALLBACK_RESPONSE, SYSTEM_PROMPT, build_context_message

logger = logging.getLogger(__name__)


class AnswerTier(str, Enum):
    """Answer sources, in the order they are tried."""
    PRIMARY_REMOTE = "primary-remote"
    SECONDARY_REMOTE = "secondary-remote"
    LOCAL_HEURISTIC = "local-heuristic"
    STATIC_FALLBACK = "static-fallback"


REMOTE_TIERS = frozenset({AnswerTier.PRIMARY_REMOTE, AnswerTier.SECONDARY_REMOTE})

GENERIC_FAILURE_MESSAGE = "provider unavailable"


@dataclass(frozen=True)
class AnswerAttempt:
    """Outcome of trying one tier."""
    tier: AnswerTier
    succeeded: bool
    text: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


@dataclass(frozen=True)
class Answer:
    """Final answer plus the attempts that led to it."""
    text: str
    tier: AnswerTier
    attempts: List[AnswerAttempt] = field(default_factory=list)

    @property
    def is_remote(self) -> bool:
        return self.tier in REMOTE_TIERS


@dataclass(frozen=True)
class ProviderSettings:
    """Credentials and endpoint for one remote tier."""
    api_key: Optional[str] = None
    model: str = ""
    base_url: Optional[str] = None
    enabled: bool = True

    @property
    def usable(self) -> bool:
        return self.enabled and bool(self.api_key)


@dataclass(frozen=True)
class OrchestratorConfig:
    """Which tiers are enabled, with what credentials, and how remote calls behave."""
    primary: ProviderSettings = field(default_factory=ProviderSettings)
    secondary: ProviderSettings = field(default_factory=ProviderSettings)
    timeout_seconds: float = 30.0
    max_tokens: int = 1000
    temperature: float = 0.7
    system_message: str = SYSTEM_PROMPT


AttemptFn = Callable[[str, str], Awaitable[str]]


class FallbackOrchestrator:
    """Answers a prompt through the ordered tier chain."""

    def __init__(
        self,
        config: Optional[OrchestratorConfig] = None,
        primary: Optional[ChatProvider] = None,
        secondary: Optional[ChatProvider] = None,
        local_responder: Optional[LocalResponder] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Tier configuration (defaults to everything remote disabled)
            primary: Primary provider; built from config.primary when omitted
            secondary: Secondary provider; built from config.secondary when omitted
            local_responder: Keyword-table answerer for the local tier
        """
        self.config = config or OrchestratorConfig()

        if primary is None and self.config.primary.usable:
            primary = DeepseekClient(
                api_key=self.config.primary.api_key,
                model=self.config.primary.model or "deepseek-chat",
                base_url=self.config.primary.base_url or "https://api.deepseek.com/v1",
                timeout=self.config.timeout_seconds,
            )
        if secondary is None and self.config.secondary.usable:
            secondary = OpenAIChatClient(
                api_key=self.config.secondary.api_key,
                model=self.config.secondary.model or "gpt-4o-mini",
                base_url=self.config.secondary.base_url,
                timeout=self.config.timeout_seconds,
            )

        self.primary = primary
        self.secondary = secondary
        self.local_responder = local_responder or LocalResponder()

        logger.info(
            f"Orchestrator initialized with tiers: {', '.join(t.value for t in self.enabled_tiers())}"
        )

    def _remote_enabled(self, settings: ProviderSettings, provider: Optional[ChatProvider]) -> bool:
        return settings.enabled and provider is not None and provider.is_configured

    def enabled_tiers(self) -> List[AnswerTier]:
        return [tier for tier, _ in self._tiers()]

    def _tiers(self) -> List[Tuple[AnswerTier, AttemptFn]]:
        """Build the ordered tier list; unconfigured remote tiers are left out."""
        tiers: List[Tuple[AnswerTier, AttemptFn]] = []
        if self._remote_enabled(self.config.primary, self.primary):
            tiers.append((AnswerTier.PRIMARY_REMOTE, self._remote_attempt(self.primary, self.config.primary)))
        else:
            logger.debug("Skipping primary-remote tier (disabled or no credentials)")
        if self._remote_enabled(self.config.secondary, self.secondary):
            tiers.append((AnswerTier.SECONDARY_REMOTE, self._remote_attempt(self.secondary, self.config.secondary)))
        else:
            logger.debug("Skipping secondary-remote tier (disabled or no credentials)")
        tiers.append((AnswerTier.LOCAL_HEURISTIC, self._local_attempt))
        tiers.append((AnswerTier.STATIC_FALLBACK, self._static_attempt))
        return tiers

    def _build_request(self, settings: ProviderSettings, prompt: str, context: str) -> CompletionRequest:
        return CompletionRequest(
            system_message=self.config.system_message,
            context_message=build_context_message(context) or None,
            user_message=prompt,
            model_id=settings.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
        )

    def _remote_attempt(self, provider: ChatProvider, settings: ProviderSettings) -> AttemptFn:
        async def attempt(prompt: str, context: str) -> str:
            request = self._build_request(settings, prompt, context)
            try:
                reply = await asyncio.wait_for(provider.complete(request), timeout=self.config.timeout_seconds)
            except asyncio.TimeoutError:
                raise ProviderTimeoutError(
                    f"No answer within {self.config.timeout_seconds}s", provider=provider.name
                )
            if not reply.ok:
                raise ProviderError.for_kind(reply.error_kind, GENERIC_FAILURE_MESSAGE, provider=provider.name)
            if not reply.text or not reply.text.strip():
                raise ProviderMalformedResponseError("Empty answer", provider=provider.name)
            return reply.text.strip()
        return attempt

    async def _local_attempt(self, prompt: str, context: str) -> str:
        return self.local_responder.respond(prompt)

    async def _static_attempt(self, prompt: str, context: str) -> str:
        return STATIC_FALLBACK_RESPONSE

    async def answer(self, prompt: str, context: str = "") -> Answer:
        """
        Answer a prompt, trying each tier in order.

        Args:
            prompt: User question or prediction prompt
            context: Rendered evidence context (plain text), may be empty

        Returns:
            Answer with the text, the tier that produced it and every attempt made
        """
        attempts: List[AnswerAttempt] = []

        for tier, attempt in self._tiers():
            try:
                text = await attempt(prompt, context)
            except ProviderError as e:
                logger.warning(f"Tier {tier.value} failed ({e.kind.value}): {e}")
                attempts.append(AnswerAttempt(tier=tier, succeeded=False, error_kind=e.kind))
                continue
            except Exception as e:
                logger.error(f"Tier {tier.value} raised unexpectedly: {e}", exc_info=True)
                attempts.append(AnswerAttempt(tier=tier, succeeded=False, error_kind=ErrorKind.UNEXPECTED))
                continue

            if not text:
                logger.warning(f"Tier {tier.value} returned no text")
                attempts.append(
                    AnswerAttempt(tier=tier, succeeded=False, error_kind=ErrorKind.MALFORMED_RESPONSE)
                )
                continue

            attempts.append(AnswerAttempt(tier=tier, succeeded=True, text=text))
            logger.info(f"Answered by tier {tier.value} after {len(attempts)} attempt(s)")
            return Answer(text=text, tier=tier, attempts=attempts)

        # Unreachable while the static tier returns a constant
        return Answer(text=STATIC_FALLBACK_RESPONSE, tier=AnswerTier.STATIC_FALLBACK, attempts=attempts)
