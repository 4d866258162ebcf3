import json

import httpx
import pytest

from neuralnote.config import Settings
from neuralnote.errors import EnrichmentUnavailable
from neuralnote.gpt_service import (
    CLASSIFY_EMOTION,
    GENERATE_AFFIRMATION,
    SUMMARIZE,
    DisabledEnrichment,
    EnrichmentClient,
    build_enrichment,
)

SETTINGS = Settings(ai_provider="openrouter", api_key="sk-test-123", model="test-model",
                    api_url="https://llm.example/v1/chat/completions", timeout_seconds=2)


def _client(handler):
    return EnrichmentClient(SETTINGS, http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def _reply(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_successful_call_returns_stripped_content():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("  calm \n"))

    result = _client(handler).attempt(CLASSIFY_EMOTION, "A quiet walk by the lake.")

    assert result.ok
    assert result.value == "calm"
    assert seen["auth"] == "Bearer sk-test-123"
    assert seen["body"]["model"] == "test-model"
    assert "A quiet walk by the lake." in seen["body"]["messages"][1]["content"]


def test_affirmation_prompt_carries_description():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_reply("You are doing enough."))

    _client(handler).attempt(GENERATE_AFFIRMATION, "feeling tired and drained")
    assert "feeling tired and drained" in seen["body"]["messages"][1]["content"]
    assert "20 words" in seen["body"]["messages"][1]["content"]


@pytest.mark.parametrize(
    "handler, reason",
    [
        (lambda request: httpx.Response(500, text="boom"), "HTTP 500"),
        (lambda request: httpx.Response(200, json={"unexpected": True}), "malformed response"),
        (lambda request: httpx.Response(200, text="not json"), "malformed response"),
        (lambda request: httpx.Response(200, json=_reply("   ")), "empty response"),
    ],
)
def test_failures_become_error_results(handler, reason):
    result = _client(handler).attempt(SUMMARIZE, "Some journal text that is long enough.")

    assert not result.ok
    assert isinstance(result.error, EnrichmentUnavailable)
    assert result.error.task == SUMMARIZE
    assert result.error.reason.startswith(reason)


def test_timeout_becomes_error_result():
    def handler(request):
        raise httpx.ReadTimeout("read timed out", request=request)

    result = _client(handler).attempt(SUMMARIZE, "text")
    assert not result.ok
    assert result.error.reason == "timed out"


def test_connection_error_becomes_error_result():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    result = _client(handler).attempt(CLASSIFY_EMOTION, "text")
    assert not result.ok
    assert "transport error" in result.error.reason


def test_unknown_task_is_a_programming_error():
    with pytest.raises(ValueError):
        _client(lambda request: httpx.Response(200)).attempt("translate", "text")


def test_disabled_enrichment_never_succeeds():
    result = DisabledEnrichment().attempt(SUMMARIZE, "text")
    assert not result.ok
    assert result.error.reason == "enrichment disabled"


def test_build_enrichment_follows_settings():
    assert isinstance(build_enrichment(SETTINGS), EnrichmentClient)
    assert isinstance(build_enrichment(Settings()), DisabledEnrichment)
    assert isinstance(build_enrichment(Settings(ai_provider="openrouter")), DisabledEnrichment)
