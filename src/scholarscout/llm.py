from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

import httpx

from scholarscout.errors import (
    AnalysisRateLimitError,
    AnalysisTransportError,
    ConfigurationError,
    MalformedResponseError,
)

SYSTEM_PROMPT = (
    "You are an expert academic research assistant. You read drafts of research papers "
    "and propose literature searches that help the author find work to cite."
)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class LLMBackend(ABC):
    name: str

    @abstractmethod
    def ask_text(self, payload: dict[str, Any], schema: dict[str, Any] | None = None) -> str:
        raise NotImplementedError

    def ask_json(self, payload: dict[str, Any], schema: dict[str, Any] | None = None) -> dict[str, Any]:
        text = self.ask_text(payload, schema)
        try:
            return _coerce_json(text)
        except ValueError as exc:
            raise MalformedResponseError(f"{self.name} output is not a JSON object: {exc}") from exc


class GeminiBackend(LLMBackend):
    name = "gemini"

    def __init__(self, api_key: str, model: str = "gemini-2.5-flash", timeout: float = 60.0) -> None:
        self.api_key = api_key
        self.model = model
        self.client = httpx.Client(timeout=timeout)

    def ask_text(self, payload: dict[str, Any], schema: dict[str, Any] | None = None) -> str:
        generation_config: dict[str, Any] = {"temperature": 0.2}
        if schema is not None:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = schema
        body = {
            "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": json.dumps(payload, ensure_ascii=False)}],
                }
            ],
            "generationConfig": generation_config,
        }
        try:
            resp = self.client.post(
                GEMINI_URL.format(model=self.model),
                headers={"x-goog-api-key": self.api_key},
                json=body,
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise _gemini_status_error(exc) from exc
        except httpx.HTTPError as exc:
            raise AnalysisTransportError(f"Gemini request failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedResponseError("Gemini returned a non-JSON body.") from exc
        if not isinstance(data, dict):
            raise MalformedResponseError("Gemini response is not a JSON object.")
        candidates = data.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            raise MalformedResponseError("Gemini returned no candidates.")
        content = candidates[0].get("content") or {}
        parts = content.get("parts") or []
        text = "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict)).strip()
        if not text:
            raise MalformedResponseError("Gemini returned empty output.")
        return text


class OpenAIBackend(LLMBackend):
    name = "openai"

    def __init__(self, api_key: str, model: str) -> None:
        try:
            import openai
        except ImportError as exc:
            raise ConfigurationError(
                "openai package is required for the openai backend (pip install scholarscout[openai])."
            ) from exc
        self._openai = openai
        self.client = openai.OpenAI(api_key=api_key)
        self.model = model

    def ask_text(self, payload: dict[str, Any], schema: dict[str, Any] | None = None) -> str:
        instructions = SYSTEM_PROMPT
        if schema is not None:
            instructions += "\n\nReturn valid JSON only, matching this schema: " + json.dumps(schema)
        openai = self._openai
        try:
            response = self.client.responses.create(
                model=self.model,
                input=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": json.dumps(payload, ensure_ascii=False)},
                ],
            )
        except openai.AuthenticationError as exc:
            raise ConfigurationError(f"OpenAI rejected the API key: {exc}") from exc
        except openai.RateLimitError as exc:
            raise AnalysisRateLimitError(f"OpenAI rate limit exceeded (HTTP 429): {exc}") from exc
        except openai.APIError as exc:
            raise AnalysisTransportError(f"OpenAI request failed: {exc}") from exc
        text = (response.output_text or "").strip()
        if not text:
            raise MalformedResponseError("OpenAI returned empty output.")
        return text


class NullBackend(LLMBackend):
    name = "none"

    def __init__(self, reason: str = "No LLM backend configured.") -> None:
        self.reason = reason

    def ask_text(self, payload: dict[str, Any], schema: dict[str, Any] | None = None) -> str:
        raise ConfigurationError(self.reason)


def create_backend(
    backend_name: str,
    *,
    gemini_api_key: str | None,
    gemini_model: str,
    openai_api_key: str | None,
    openai_model: str,
) -> LLMBackend:
    normalized = backend_name.strip().lower()
    if normalized == "gemini":
        if not gemini_api_key:
            return NullBackend("Gemini API key is missing. Set GEMINI_API_KEY in the environment.")
        return GeminiBackend(api_key=gemini_api_key, model=gemini_model)
    if normalized == "openai":
        if not openai_api_key:
            return NullBackend("OpenAI API key is missing. Set OPENAI_API_KEY in the environment.")
        return OpenAIBackend(api_key=openai_api_key, model=openai_model)
    return NullBackend(f"Unknown LLM backend: {backend_name!r}.")


def _coerce_json(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        trimmed = text.strip().strip("`")
        start = trimmed.find("{")
        end = trimmed.rfind("}")
        if start == -1 or end == -1 or end <= start:
            raise
        data = json.loads(trimmed[start : end + 1])

    if not isinstance(data, dict):
        raise ValueError("Model did not return a JSON object.")
    return data


def _gemini_status_error(exc: httpx.HTTPStatusError) -> Exception:
    status_code = exc.response.status_code
    message = f"Gemini API request failed with HTTP {status_code}."
    try:
        payload = exc.response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error_message = (payload.get("error") or {}).get("message")
        if isinstance(error_message, str) and error_message.strip():
            message += f" Details: {error_message.strip()}"
    if status_code in (401, 403) or (status_code == 400 and "API key" in message):
        return ConfigurationError(message)
    if status_code == 429:
        return AnalysisRateLimitError(message)
    return AnalysisTransportError(message)
