from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Iterable

from scholarscout.config import DEFAULT_MAX_WORKERS
from scholarscout.models import Event, SearchQuery
from scholarscout.sources.base import PaperSource
from scholarscout.state import AppState

logger = logging.getLogger(__name__)


class SearchDispatcher:
    """Fans a batch of queries out to the search source.

    Each query settles on its own: results or a failure are written to its
    entry in ``AppState`` and its loading flag is always cleared. A failing
    query never touches the process-wide error.
    """

    name = "search-dispatcher"

    def __init__(
        self,
        state: AppState,
        source: PaperSource,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self.state = state
        self.source = source
        self.executor = ThreadPoolExecutor(max_workers=max(max_workers, 1), thread_name_prefix="search")
        self._pending: set[Future[None]] = set()
        self._pending_lock = threading.Lock()
        self.closed = False

    def dispatch_all(
        self,
        queries: Iterable[SearchQuery],
        api_key: str | None = None,
        *,
        generation: int | None = None,
    ) -> list[Future[None]]:
        if self.closed:
            raise RuntimeError("Search dispatcher is shut down.")
        gen = self.state.generation if generation is None else generation
        futures: list[Future[None]] = []
        for query in queries:
            self.state.mark_loading(gen, query.query)
            future = self.executor.submit(self._run_one, gen, query, api_key)
            with self._pending_lock:
                self._pending.add(future)
            future.add_done_callback(self._forget)
            futures.append(future)
        return futures

    def _forget(self, future: Future[None]) -> None:
        with self._pending_lock:
            self._pending.discard(future)

    def _run_one(self, generation: int, query: SearchQuery, api_key: str | None) -> None:
        try:
            papers = self.source.search(query.query, api_key=api_key)
            if self.state.store_results(generation, query.query, papers):
                self.state.log(
                    Event(
                        source=self.name,
                        status="ok",
                        message="Search completed.",
                        details={"query": query.query, "results": len(papers)},
                    )
                )
        except Exception as exc:
            logger.warning("Failed to fetch for %r: %s", query.query, exc)
            if self.state.store_failure(generation, query.query, str(exc)):
                self.state.log(
                    Event(
                        source=self.name,
                        status="failed",
                        message="Search failed; query resolved to no results.",
                        details={"query": query.query, "error_type": type(exc).__name__, "reason": str(exc)},
                    )
                )
        finally:
            self.state.finish_query(generation, query.query)

    def wait(self, timeout: float | None = None) -> bool:
        with self._pending_lock:
            pending = list(self._pending)
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self) -> None:
        self.closed = True
        self.executor.shutdown(wait=True)
