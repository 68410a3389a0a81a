"""
Deepseek LLM client wrapper (primary remote tier).

Talks to the Deepseek chat completion API (OpenAI-compatible JSON) with
plain HTTPS requests and a bounded retry/backoff loop, and normalizes the
outcome into a ProviderReply.
"""

import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional

import requests

from .errors import (
    ProviderAuthError,
    ProviderError,
    ProviderMalformedResponseError,
    ProviderNetworkError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from .llm import ChatProvider, CompletionRequest, ProviderReply

logger = logging.getLogger(__name__)

# Retry configuration
MAX_RETRIES = 2
INITIAL_BACKOFF = 1  # seconds
MAX_BACKOFF = 8  # seconds
BACKOFF_MULTIPLIER = 2


class DeepseekClient(ChatProvider):
    """Client for Deepseek LLM API (OpenAI-compatible)."""

    name = "deepseek"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "deepseek-chat",
        base_url: str = "https://api.deepseek.com/v1",
        timeout: float = 30.0,
        max_retries: int = MAX_RETRIES,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Deepseek client.

        Args:
            api_key: Deepseek API key; without one the client reports itself unconfigured
            model: Default model to use (default: deepseek-chat)
            base_url: API base URL
            timeout: Per-request HTTP timeout in seconds
            max_retries: Attempts for rate-limited / 5xx / network failures
            session: Optional requests session (connection pooling, tests)
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.session = session or requests.Session()

        if not self.api_key:
            logger.warning("No Deepseek API key provided; primary tier disabled.")

        logger.info(f"DeepseekClient initialized with model: {model}")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _build_payload(self, messages: List[Dict[str, str]], request: CompletionRequest) -> Dict[str, Any]:
        return {
            "model": request.model_id or self.model,
            "messages": messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": False,
        }

    def _call_api_with_retry(self, payload: Dict[str, Any], cancelled: threading.Event) -> Dict[str, Any]:
        """
        Call Deepseek API with exponential backoff retry.

        Stops before the next attempt once `cancelled` is set.

        Returns:
            API response data dict

        Raises:
            ProviderError: A subclass matching the final failure
        """
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        backoff = INITIAL_BACKOFF
        last_error: ProviderError = ProviderNetworkError("no attempt made", provider=self.name)

        for attempt in range(self.max_retries):
            if cancelled.is_set():
                raise ProviderTimeoutError("Caller gave up, not retrying", provider=self.name)

            try:
                response = self.session.post(
                    f"{self.base_url}/chat/completions",
                    headers=headers,
                    json=payload,
                    timeout=self.timeout
                )
            except requests.exceptions.Timeout:
                last_error = ProviderTimeoutError("Request timeout", provider=self.name)
            except requests.exceptions.RequestException as e:
                last_error = ProviderNetworkError(f"Connection error: {e}", provider=self.name)
            else:
                if response.status_code == 401 or response.status_code == 403:
                    # Unauthorized - don't retry
                    raise ProviderAuthError(
                        f"Authentication failed ({response.status_code})", provider=self.name
                    )
                if response.status_code == 429:
                    last_error = ProviderRateLimitError("Rate limited (429)", provider=self.name)
                elif response.status_code >= 500:
                    last_error = ProviderNetworkError(
                        f"Server error ({response.status_code})", provider=self.name
                    )
                elif response.status_code >= 400:
                    raise ProviderMalformedResponseError(
                        f"Request rejected ({response.status_code})", provider=self.name
                    )
                else:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise ProviderMalformedResponseError(
                            f"Response is not JSON: {e}", provider=self.name
                        )

            if attempt < self.max_retries - 1:
                logger.warning(
                    f"{last_error}. Attempt {attempt + 1}/{self.max_retries}. Backing off {backoff}s..."
                )
                cancelled.wait(backoff)
                backoff = min(backoff * BACKOFF_MULTIPLIER, MAX_BACKOFF)

        raise last_error

    def _extract_text(self, data: Dict[str, Any]) -> str:
        """Pull choices[0].message.content out of a completion body."""
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise ProviderMalformedResponseError(
                "Unexpected API response format (missing choices[0].message.content)",
                provider=self.name,
            )
        if not isinstance(content, str) or not content.strip():
            raise ProviderMalformedResponseError("Empty completion text", provider=self.name)
        return content.strip()

    def generate(self, request: CompletionRequest, cancelled: Optional[threading.Event] = None) -> str:
        """
        Generate a response synchronously.

        Raises:
            ProviderError: When the provider is unconfigured or the call fails
        """
        if not self.is_configured:
            raise ProviderAuthError("Deepseek API key missing", provider=self.name)

        payload = self._build_payload(request.to_messages(), request)
        data = self._call_api_with_retry(payload, cancelled or threading.Event())
        return self._extract_text(data)

    async def complete(self, request: CompletionRequest) -> ProviderReply:
        """
        Run a completion off the event loop.

        requests is blocking, so the call runs in a worker thread. If the
        caller cancels (timeout), the in-flight request finishes but no
        further attempt is made.
        """
        cancelled = threading.Event()
        try:
            text = await asyncio.to_thread(self.generate, request, cancelled)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        except ProviderError as e:
            logger.warning(f"Deepseek call failed ({e.kind.value}): {e}")
            return ProviderReply.from_error(e)
        return ProviderReply.success(text)
