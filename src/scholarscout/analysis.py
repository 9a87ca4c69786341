from __future__ import annotations

from typing import Any

from scholarscout.config import MAX_INPUT_CHARS
from scholarscout.errors import MalformedResponseError
from scholarscout.llm import LLMBackend
from scholarscout.models import AnalysisResult, SearchQuery

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "summary": {
            "type": "STRING",
            "description": "A concise summary of the research paper draft.",
        },
        "searchQueries": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "query": {"type": "STRING", "description": "The search string to use."},
                    "rationale": {"type": "STRING", "description": "Why this query is useful."},
                },
                "required": ["query", "rationale"],
            },
        },
    },
    "required": ["summary", "searchQueries"],
}


class TextAnalyzer:
    """Turns draft text into a summary plus literature-search queries.

    The draft is cut to ``max_chars`` before it is sent; the cut is silent.
    Exactly one backend call is made per ``analyze``.
    """

    def __init__(self, backend: LLMBackend, *, max_chars: int = MAX_INPUT_CHARS) -> None:
        self.backend = backend
        self.max_chars = max_chars

    def build_payload(self, text: str) -> dict[str, Any]:
        return {
            "task": "Analyze a draft or segment of a research paper.",
            "steps": [
                "Summarize the core research topic in 1-2 sentences.",
                "Generate 4-6 distinct, high-quality Semantic Scholar search queries "
                "for finding relevant papers to cite.",
                "For each query give a brief rationale, e.g. 'To find foundational work on X'.",
            ],
            "input_text": text[: self.max_chars],
            "output_json_schema": {
                "summary": "...",
                "searchQueries": [{"query": "...", "rationale": "..."}],
            },
        }

    def analyze(self, text: str) -> AnalysisResult:
        response = self.backend.ask_json(self.build_payload(text), RESPONSE_SCHEMA)
        return parse_analysis(response)


def parse_analysis(response: dict[str, Any]) -> AnalysisResult:
    summary = response.get("summary")
    raw_queries = response.get("searchQueries")
    if not isinstance(summary, str):
        raise MalformedResponseError("Analysis response is missing a string 'summary'.")
    if not isinstance(raw_queries, list):
        raise MalformedResponseError("Analysis response is missing a 'searchQueries' list.")
    queries: list[SearchQuery] = []
    for item in raw_queries:
        if not isinstance(item, dict) or not isinstance(item.get("query"), str):
            raise MalformedResponseError("Each search query needs a string 'query' field.")
        rationale = item.get("rationale")
        if rationale is not None and not isinstance(rationale, str):
            raise MalformedResponseError("A search query 'rationale' must be a string.")
        queries.append(SearchQuery(query=item["query"], rationale=rationale or ""))
    return AnalysisResult(summary=summary.strip(), search_queries=queries)
