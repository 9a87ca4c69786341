from __future__ import annotations

import logging

from scholarscout.analysis import TextAnalyzer
from scholarscout.dispatcher import SearchDispatcher
from scholarscout.errors import (
    AnalysisRateLimitError,
    AnalysisTransportError,
    ConfigurationError,
    MalformedResponseError,
)
from scholarscout.models import Event
from scholarscout.state import AppState

logger = logging.getLogger(__name__)


def describe_analysis_error(exc: Exception) -> str:
    detail = str(exc).strip()
    if isinstance(exc, ConfigurationError):
        return f"Configuration problem: {detail or 'the analysis API key is missing or invalid.'}"
    if isinstance(exc, AnalysisRateLimitError):
        return "Rate limit exceeded. Please wait a moment or supply an API key, then try again."
    if isinstance(exc, AnalysisTransportError):
        return (
            "Connection failed. Check your network connectivity and any proxy restrictions "
            f"that may block the analysis service. ({detail})"
        )
    if isinstance(exc, MalformedResponseError):
        return f"The analysis service returned an unexpected response. {detail}".strip()
    return detail or "An error occurred during analysis."


class AnalysisOrchestrator:
    name = "analysis-orchestrator"

    def __init__(
        self,
        state: AppState,
        analyzer: TextAnalyzer,
        dispatcher: SearchDispatcher,
        *,
        search_api_key: str | None = None,
    ) -> None:
        self.state = state
        self.analyzer = analyzer
        self.dispatcher = dispatcher
        self.search_api_key = search_api_key

    def run_analysis(self, text: str, *, wait: bool = False) -> None:
        if not text or not text.strip():
            raise ValueError("Analysis input must contain non-whitespace text.")
        if self.dispatcher.closed:
            raise RuntimeError("Session is closed; start a new one to run another analysis.")
        generation = self.state.begin_run()
        try:
            result = self.analyzer.analyze(text)
        except Exception as exc:
            message = describe_analysis_error(exc)
            logger.error("Analysis failed: %s", exc)
            if self.state.fail_analysis(generation, message):
                self.state.log(
                    Event(
                        source=self.name,
                        status="failed",
                        message=message,
                        details={"error_type": type(exc).__name__, "reason": str(exc)},
                    )
                )
            return

        if not self.state.apply_analysis(generation, result):
            return
        self.state.log(
            Event(
                source=self.name,
                status="ok",
                message="Analysis produced summary and queries.",
                details={"queries": len(result.search_queries)},
            )
        )
        self.dispatcher.dispatch_all(
            result.search_queries, self.search_api_key, generation=generation
        )
        if wait:
            self.wait_until_settled()

    def wait_until_settled(self, timeout: float | None = None) -> bool:
        return self.dispatcher.wait(timeout)
