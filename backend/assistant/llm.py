"""
Provider-agnostic chat completion interface.

Both remote providers (DeepSeek as primary, OpenAI as secondary) implement
ChatProvider and hand the orchestrator the same normalized ProviderReply,
whatever their wire format looks like.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import ErrorKind, ProviderError


@dataclass(frozen=True)
class CompletionRequest:
    """Provider-neutral chat completion request."""
    system_message: str
    user_message: str
    model_id: str
    context_message: Optional[str] = None
    max_tokens: int = 1000
    temperature: float = 0.7

    def to_messages(self) -> List[Dict[str, str]]:
        """Build the OpenAI-style message list (system, context, user)."""
        messages = [{"role": "system", "content": self.system_message}]
        if self.context_message:
            messages.append({"role": "system", "content": self.context_message})
        messages.append({"role": "user", "content": self.user_message})
        return messages


@dataclass(frozen=True)
class ProviderReply:
    """Normalized provider outcome: either text, or an error kind."""
    ok: bool
    text: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def success(cls, text: str) -> "ProviderReply":
        return cls(ok=True, text=text)

    @classmethod
    def failure(cls, kind: ErrorKind) -> "ProviderReply":
        return cls(ok=False, error_kind=kind)

    @classmethod
    def from_error(cls, error: ProviderError) -> "ProviderReply":
        return cls(ok=False, error_kind=error.kind)


class ChatProvider(ABC):
    """
    Abstract base class for remote chat completion providers.

    Implementations should handle:
    - API authentication
    - Mapping the request to the provider payload
    - Extracting the generated text from the provider response
    - Translating every failure into a ProviderReply error kind
    """

    name: str = "provider"

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the provider has the credentials it needs."""
        pass

    @abstractmethod
    async def complete(self, request: CompletionRequest) -> ProviderReply:
        """
        Run one chat completion.

        Must not raise for provider-side failures; those come back as
        ``ProviderReply(ok=False, error_kind=...)``.
        """
        pass
