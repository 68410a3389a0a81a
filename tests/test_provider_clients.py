import asyncio
import time
from types import SimpleNamespace

import httpx
import openai
import pytest
import requests

from assistant.deepseek_client import DeepseekClient
from assistant.errors import ErrorKind, ProviderAuthError
from assistant.llm import CompletionRequest
from assistant.openai_client import OpenAIChatClient
from assistant.orchestrator import AnswerTier

from conftest import build_orchestrator

REQUEST = CompletionRequest(
    system_message="system",
    context_message="## Orders\n- 24-03-A001",
    user_message="status of 24-03-A001?",
    model_id="",
)


class FakeResponse:
    def __init__(self, status_code, body=None, json_error=False):
        self.status_code = status_code
        self.body = body
        self.json_error = json_error

    def json(self):
        if self.json_error:
            raise ValueError("not json")
        return self.body


class FakeSession:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def completion(text):
    return {"choices": [{"message": {"role": "assistant", "content": text}}]}


def deepseek(session, max_retries=1):
    return DeepseekClient(api_key="sk-test", session=session, max_retries=max_retries)


async def test_deepseek_success_sends_openai_style_payload():
    session = FakeSession(FakeResponse(200, completion("  In production, 65% done.  ")))
    reply = await deepseek(session).complete(REQUEST)

    assert reply.ok
    assert reply.text == "In production, 65% done."
    call = session.calls[0]
    assert call["url"] == "https://api.deepseek.com/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["json"]["model"] == "deepseek-chat"
    assert [m["role"] for m in call["json"]["messages"]] == ["system", "system", "user"]


@pytest.mark.parametrize("outcome, kind", [
    (FakeResponse(401), ErrorKind.AUTH),
    (FakeResponse(403), ErrorKind.AUTH),
    (FakeResponse(429), ErrorKind.RATE_LIMIT),
    (FakeResponse(503), ErrorKind.NETWORK),
    (FakeResponse(400), ErrorKind.MALFORMED_RESPONSE),
    (FakeResponse(200, json_error=True), ErrorKind.MALFORMED_RESPONSE),
    (FakeResponse(200, {"choices": []}), ErrorKind.MALFORMED_RESPONSE),
    (FakeResponse(200, completion("")), ErrorKind.MALFORMED_RESPONSE),
    (requests.exceptions.Timeout(), ErrorKind.TIMEOUT),
    (requests.exceptions.ConnectionError("refused"), ErrorKind.NETWORK),
])
async def test_deepseek_failures_map_to_error_kinds(outcome, kind):
    reply = await deepseek(FakeSession(outcome)).complete(REQUEST)
    assert not reply.ok
    assert reply.error_kind == kind


def test_deepseek_retries_server_errors(monkeypatch):
    monkeypatch.setattr("assistant.deepseek_client.INITIAL_BACKOFF", 0)
    session = FakeSession(FakeResponse(502), FakeResponse(200, completion("recovered")))
    assert deepseek(session, max_retries=2).generate(REQUEST) == "recovered"
    assert len(session.calls) == 2


def test_deepseek_does_not_retry_auth_failures(monkeypatch):
    monkeypatch.setattr("assistant.deepseek_client.INITIAL_BACKOFF", 0)
    session = FakeSession(FakeResponse(401), FakeResponse(200, completion("unused")))
    with pytest.raises(ProviderAuthError):
        deepseek(session, max_retries=3).generate(REQUEST)
    assert len(session.calls) == 1


class SlowTimeoutSession(FakeSession):
    def post(self, url, headers=None, json=None, timeout=None):
        self.calls.append({"url": url})
        time.sleep(0.3)
        raise requests.exceptions.Timeout()


async def test_deepseek_stops_retrying_after_caller_times_out(monkeypatch):
    monkeypatch.setattr("assistant.deepseek_client.INITIAL_BACKOFF", 0)
    session = SlowTimeoutSession()
    client = DeepseekClient(api_key="sk-test", session=session, timeout=0.3, max_retries=3)

    answer = await build_orchestrator(client, timeout_seconds=0.1).answer("merhaba")
    assert answer.tier == AnswerTier.LOCAL_HEURISTIC

    await asyncio.sleep(0.8)
    assert len(session.calls) == 1


def test_deepseek_without_key_is_unconfigured():
    client = DeepseekClient(api_key=None, session=FakeSession())
    assert not client.is_configured
    with pytest.raises(ProviderAuthError):
        client.generate(REQUEST)


class FakeCompletions:
    def __init__(self, outcome):
        self.outcome = outcome
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def fake_openai(outcome):
    completions = FakeCompletions(outcome)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def sdk_response(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


_HTTP_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(cls, code):
    return cls("error", response=httpx.Response(code, request=_HTTP_REQUEST), body=None)


async def test_openai_success():
    client, completions = fake_openai(sdk_response("Stock for KAP-80/190-95 is 3."))
    reply = await OpenAIChatClient(client=client).complete(REQUEST)
    assert reply.ok
    assert reply.text == "Stock for KAP-80/190-95 is 3."
    assert completions.kwargs["model"] == "gpt-4o-mini"
    assert completions.kwargs["messages"][-1] == {"role": "user", "content": "status of 24-03-A001?"}


@pytest.mark.parametrize("error, kind", [
    (openai.APITimeoutError(request=_HTTP_REQUEST), ErrorKind.TIMEOUT),
    (openai.APIConnectionError(request=_HTTP_REQUEST), ErrorKind.NETWORK),
    (_status_error(openai.AuthenticationError, 401), ErrorKind.AUTH),
    (_status_error(openai.RateLimitError, 429), ErrorKind.RATE_LIMIT),
    (_status_error(openai.InternalServerError, 500), ErrorKind.NETWORK),
    (_status_error(openai.BadRequestError, 400), ErrorKind.MALFORMED_RESPONSE),
])
async def test_openai_errors_map_to_error_kinds(error, kind):
    client, _ = fake_openai(error)
    reply = await OpenAIChatClient(client=client).complete(REQUEST)
    assert not reply.ok
    assert reply.error_kind == kind


async def test_openai_empty_content_is_malformed():
    client, _ = fake_openai(sdk_response(None))
    reply = await OpenAIChatClient(client=client).complete(REQUEST)
    assert reply.error_kind == ErrorKind.MALFORMED_RESPONSE


async def test_openai_without_key_is_unconfigured():
    client = OpenAIChatClient(api_key=None)
    assert not client.is_configured
    reply = await client.complete(REQUEST)
    assert reply.error_kind == ErrorKind.AUTH
