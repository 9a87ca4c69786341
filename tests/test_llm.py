import httpx
import pytest

from scholarscout.errors import (
    AnalysisRateLimitError,
    AnalysisTransportError,
    ConfigurationError,
    MalformedResponseError,
)
from scholarscout.llm import GeminiBackend, NullBackend, _coerce_json, create_backend


def _create(name, gemini_key=None, openai_key=None):
    return create_backend(
        name,
        gemini_api_key=gemini_key,
        gemini_model="gemini-2.5-flash",
        openai_api_key=openai_key,
        openai_model="gpt-5-mini",
    )


def _gemini(handler) -> GeminiBackend:
    backend = GeminiBackend(api_key="test-key")
    backend.client = httpx.Client(transport=httpx.MockTransport(handler))
    return backend


def test_create_backend_gemini_without_key_falls_back_to_null():
    backend = _create("gemini")
    assert isinstance(backend, NullBackend)
    with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
        backend.ask_text({"task": "x"})


def test_create_backend_openai_without_key_falls_back_to_null():
    assert isinstance(_create("openai"), NullBackend)


def test_create_backend_unknown_returns_null():
    backend = _create("none", gemini_key="x", openai_key="x")
    assert isinstance(backend, NullBackend)


def test_create_backend_gemini_with_key():
    assert isinstance(_create("Gemini", gemini_key="k"), GeminiBackend)


def test_coerce_json_parses_fenced_output():
    text = "```json\n{\"summary\":\"s\", \"searchQueries\": []}\n```"
    out = _coerce_json(text)
    assert out["summary"] == "s"


def test_gemini_uses_header_for_api_key_and_requests_json():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["query"] = request.url.query
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = request.read()
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": '{"ok": true}'}]}}]},
            request=request,
        )

    out = _gemini(handler).ask_json({"task": "test"}, {"type": "OBJECT"})
    assert out == {"ok": True}
    assert seen["query"] == b""
    assert seen["key"] == "test-key"
    assert b"application/json" in seen["body"]


def test_gemini_429_is_rate_limit_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "Resource has been exhausted"}}, request=request)

    with pytest.raises(AnalysisRateLimitError, match="HTTP 429"):
        _gemini(handler).ask_text({"task": "test"})


def test_gemini_403_is_configuration_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": {"message": "API key not valid"}}, request=request)

    with pytest.raises(ConfigurationError, match="API key not valid"):
        _gemini(handler).ask_text({"task": "test"})


def test_gemini_network_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AnalysisTransportError, match="connection refused"):
        _gemini(handler).ask_text({"task": "test"})


def test_gemini_without_candidates_is_malformed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": []}, request=request)

    with pytest.raises(MalformedResponseError):
        _gemini(handler).ask_text({"task": "test"})


def test_ask_json_on_prose_is_malformed():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": "I cannot help with that."}]}}]},
            request=request,
        )

    with pytest.raises(MalformedResponseError):
        _gemini(handler).ask_json({"task": "test"})
