from __future__ import annotations

import json
from typing import Any

import httpx
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from scholarscout.config import SEARCH_PAGE_SIZE
from scholarscout.errors import MalformedResponseError, SearchRateLimitError, SearchTransportError
from scholarscout.models import Paper
from scholarscout.net import cached_get_json
from scholarscout.sources.base import PaperSource

SEARCH_URL = "https://api.semanticscholar.org/graph/v1/paper/search"
SEARCH_FIELDS = "paperId,title,year,abstract,citationCount,authors,url,openAccessPdf,publicationVenue"


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, SearchTransportError) and not isinstance(exc, SearchRateLimitError)


class SemanticScholarSource(PaperSource):
    name = "semantic_scholar"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        timeout: float = 25.0,
        limit: int = SEARCH_PAGE_SIZE,
        attempts: int = 1,
        cache_ttl_seconds: int = 2 * 60 * 60,
        min_interval_sec: float = 0.35,
        client: httpx.Client | None = None,
    ) -> None:
        self.api_key = api_key
        self.limit = limit
        self.attempts = max(attempts, 1)
        self.cache_ttl_seconds = cache_ttl_seconds
        self.min_interval_sec = min_interval_sec
        self.client = client or httpx.Client(timeout=timeout)

    def _get(self, params: dict[str, str], api_key: str | None) -> Any:
        headers = {}
        if api_key:
            headers["x-api-key"] = api_key
        try:
            return cached_get_json(
                self.client,
                SEARCH_URL,
                params=params,
                headers=headers,
                ttl_seconds=self.cache_ttl_seconds,
                min_interval_sec=self.min_interval_sec,
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 429:
                raise SearchRateLimitError(
                    "Semantic Scholar rate limit exceeded. Wait a moment or add an API key."
                ) from exc
            raise SearchTransportError(
                f"Semantic Scholar API error: {status} {exc.response.reason_phrase}".strip()
            ) from exc
        except httpx.HTTPError as exc:
            raise SearchTransportError(f"Semantic Scholar request failed: {exc}") from exc
        except (json.JSONDecodeError, ValueError) as exc:
            raise MalformedResponseError("Semantic Scholar returned a non-JSON body.") from exc

    def search(self, query: str, *, api_key: str | None = None) -> list[Paper]:
        params = {
            "query": query,
            "fields": SEARCH_FIELDS,
            "limit": str(self.limit),
        }
        key = api_key or self.api_key
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        payload = retrying(self._get, params, key)
        if not isinstance(payload, dict):
            raise MalformedResponseError("Semantic Scholar response is not a JSON object.")
        data = payload.get("data")
        if data is None:
            return []
        if not isinstance(data, list):
            raise MalformedResponseError("Semantic Scholar response 'data' is not a list.")
        return [Paper.from_api(item) for item in data if isinstance(item, dict)]
