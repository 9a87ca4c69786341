from __future__ import annotations

from dataclasses import dataclass, field

from scholarscout.analysis import TextAnalyzer
from scholarscout.config import DEFAULT_MAX_WORKERS, MAX_INPUT_CHARS, SEARCH_PAGE_SIZE
from scholarscout.dispatcher import SearchDispatcher
from scholarscout.library import Library
from scholarscout.llm import LLMBackend, create_backend
from scholarscout.orchestrator import AnalysisOrchestrator
from scholarscout.sources import PaperSource, SemanticScholarSource
from scholarscout.state import AppState


@dataclass(slots=True)
class RunConfig:
    llm_backend: str = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-2.5-flash"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5-mini"
    semantic_scholar_api_key: str | None = None
    max_workers: int = DEFAULT_MAX_WORKERS
    max_input_chars: int = MAX_INPUT_CHARS
    search_limit: int = SEARCH_PAGE_SIZE
    search_attempts: int = 1


@dataclass(slots=True)
class Session:
    """Everything one user session owns: live search state plus the library."""

    state: AppState
    library: Library
    orchestrator: AnalysisOrchestrator
    dispatcher: SearchDispatcher
    config: RunConfig = field(default_factory=RunConfig)

    def run_analysis(self, text: str, *, wait: bool = False) -> None:
        self.orchestrator.run_analysis(text, wait=wait)

    def close(self) -> None:
        self.dispatcher.shutdown()


def build_session(
    config: RunConfig,
    *,
    backend: LLMBackend | None = None,
    source: PaperSource | None = None,
) -> Session:
    backend = backend or create_backend(
        config.llm_backend,
        gemini_api_key=config.gemini_api_key,
        gemini_model=config.gemini_model,
        openai_api_key=config.openai_api_key,
        openai_model=config.openai_model,
    )
    source = source or SemanticScholarSource(
        api_key=config.semantic_scholar_api_key,
        limit=config.search_limit,
        attempts=config.search_attempts,
    )
    state = AppState()
    dispatcher = SearchDispatcher(state, source, max_workers=config.max_workers)
    orchestrator = AnalysisOrchestrator(
        state,
        TextAnalyzer(backend, max_chars=config.max_input_chars),
        dispatcher,
        search_api_key=config.semantic_scholar_api_key,
    )
    return Session(
        state=state,
        library=Library(),
        orchestrator=orchestrator,
        dispatcher=dispatcher,
        config=config,
    )
