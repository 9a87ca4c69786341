from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from scholarscout.models import AnalysisResult, Event, Paper, QueryState, SearchQuery


@dataclass(slots=True)
class StateSnapshot:
    is_analyzing: bool
    error: str | None
    summary: str | None
    search_queries: list[SearchQuery]
    query_states: dict[str, QueryState]
    events: list[Event]

    @property
    def is_settled(self) -> bool:
        return not self.is_analyzing and not any(s.is_loading for s in self.query_states.values())

    def as_dict(self) -> dict[str, Any]:
        return {
            "is_analyzing": self.is_analyzing,
            "error": self.error,
            "summary": self.summary,
            "search_queries": [q.as_dict() for q in self.search_queries],
            "query_states": {k: v.as_dict() for k, v in self.query_states.items()},
            "events": [e.as_dict() for e in self.events],
        }


@dataclass(slots=True)
class AppState:
    """Shared state read by the presentation layer.

    Every mutation goes through a method holding ``_lock``. Writes tagged with
    a ``generation`` older than the current run are dropped, so late results
    from a superseded run never land in the new one.
    """

    is_analyzing: bool = False
    error: str | None = None
    summary: str | None = None
    search_queries: list[SearchQuery] = field(default_factory=list)
    query_states: dict[str, QueryState] = field(default_factory=dict)
    events: list[Event] = field(default_factory=list)
    generation: int = 0
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def begin_run(self) -> int:
        with self._lock:
            self.generation += 1
            self.is_analyzing = True
            self.error = None
            self.summary = None
            self.search_queries = []
            self.query_states = {}
            return self.generation

    def apply_analysis(self, generation: int, result: AnalysisResult) -> bool:
        with self._lock:
            if generation != self.generation:
                return False
            self.summary = result.summary
            self.search_queries = list(result.search_queries)
            self.is_analyzing = False
            for q in result.search_queries:
                self.query_states[q.query] = QueryState(is_loading=True)
            return True

    def fail_analysis(self, generation: int, message: str) -> bool:
        with self._lock:
            if generation != self.generation:
                return False
            self.is_analyzing = False
            self.error = message
            return True

    def mark_loading(self, generation: int, query: str) -> bool:
        with self._lock:
            if generation != self.generation:
                return False
            entry = self.query_states.setdefault(query, QueryState())
            entry.is_loading = True
            entry.failed = False
            entry.error = None
            return True

    def store_results(self, generation: int, query: str, results: list[Paper]) -> bool:
        with self._lock:
            if generation != self.generation:
                return False
            entry = self.query_states.setdefault(query, QueryState())
            entry.results = list(results)
            entry.failed = False
            entry.error = None
            return True

    def store_failure(self, generation: int, query: str, message: str) -> bool:
        with self._lock:
            if generation != self.generation:
                return False
            entry = self.query_states.setdefault(query, QueryState())
            entry.results = []
            entry.failed = True
            entry.error = message
            return True

    def finish_query(self, generation: int, query: str) -> bool:
        with self._lock:
            if generation != self.generation:
                return False
            entry = self.query_states.setdefault(query, QueryState())
            entry.is_loading = False
            return True

    def log(self, event: Event) -> None:
        with self._lock:
            self.events.append(event)

    def snapshot(self) -> StateSnapshot:
        with self._lock:
            return StateSnapshot(
                is_analyzing=self.is_analyzing,
                error=self.error,
                summary=self.summary,
                search_queries=list(self.search_queries),
                query_states={
                    key: QueryState(
                        results=list(s.results),
                        is_loading=s.is_loading,
                        failed=s.failed,
                        error=s.error,
                    )
                    for key, s in self.query_states.items()
                },
                events=list(self.events),
            )
