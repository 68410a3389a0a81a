"""
OpenAI chat completion client (secondary remote tier).

Uses the official async SDK, so a caller-side timeout cancels the request
instead of leaving it in flight.
"""
import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from .errors import ErrorKind
from .llm import ChatProvider, CompletionRequest, ProviderReply

logger = logging.getLogger(__name__)


class OpenAIChatClient(ChatProvider):
    """Secondary provider backed by the OpenAI chat completions API."""

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[Any] = None,
    ):
        """
        Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key; without one the client reports itself unconfigured
            model: Default model identifier
            base_url: Override for OpenAI-compatible gateways
            timeout: Per-request timeout in seconds
            client: Pre-built AsyncOpenAI-like client (tests)
        """
        self.api_key = api_key
        self.model = model

        if client is not None:
            self.client = client
        elif api_key:
            # Retries are the orchestrator's job (next tier), not the SDK's
            self.client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0,
            )
        else:
            self.client = None
            logger.warning("No OpenAI API key provided; secondary tier disabled.")

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def complete(self, request: CompletionRequest) -> ProviderReply:
        """Generate a response using the OpenAI chat completions endpoint."""
        if not self.client:
            return ProviderReply.failure(ErrorKind.AUTH)

        try:
            response = await self.client.chat.completions.create(
                model=request.model_id or self.model,
                messages=request.to_messages(),
                temperature=request.temperature,
                max_tokens=request.max_tokens,
            )
        except openai.APITimeoutError:
            logger.warning("OpenAI call timed out")
            return ProviderReply.failure(ErrorKind.TIMEOUT)
        except openai.APIConnectionError as e:
            logger.warning(f"OpenAI connection error: {e}")
            return ProviderReply.failure(ErrorKind.NETWORK)
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            logger.warning(f"OpenAI authentication failed: {e}")
            return ProviderReply.failure(ErrorKind.AUTH)
        except openai.RateLimitError as e:
            logger.warning(f"OpenAI rate limited: {e}")
            return ProviderReply.failure(ErrorKind.RATE_LIMIT)
        except openai.APIStatusError as e:
            logger.warning(f"OpenAI returned status {e.status_code}")
            kind = ErrorKind.NETWORK if e.status_code >= 500 else ErrorKind.MALFORMED_RESPONSE
            return ProviderReply.failure(kind)
        except openai.APIError as e:
            logger.warning(f"OpenAI API error: {e}")
            return ProviderReply.failure(ErrorKind.MALFORMED_RESPONSE)

        text = self._extract_text(response)
        if text is None:
            logger.warning("OpenAI response had no message content")
            return ProviderReply.failure(ErrorKind.MALFORMED_RESPONSE)
        return ProviderReply.success(text)

    @staticmethod
    def _extract_text(response: Any) -> Optional[str]:
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            return None
        if not isinstance(content, str) or not content.strip():
            return None
        return content.strip()
