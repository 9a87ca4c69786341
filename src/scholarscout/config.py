from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

MAX_INPUT_CHARS = 30_000
SEARCH_PAGE_SIZE = 10
DEFAULT_MAX_WORKERS = 6


@dataclass(slots=True)
class EnvConfig:
    llm_backend: str
    gemini_api_key: str | None
    gemini_model: str
    openai_api_key: str | None
    openai_model: str
    semantic_scholar_api_key: str | None
    max_workers: int
    max_input_chars: int
    search_attempts: int


def load_env() -> EnvConfig:
    load_dotenv()
    return EnvConfig(
        llm_backend=os.getenv("LLM_BACKEND", "gemini"),
        gemini_api_key=os.getenv("GEMINI_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-5-mini"),
        semantic_scholar_api_key=os.getenv("SEMANTIC_SCHOLAR_API_KEY") or None,
        max_workers=_env_int("SCHOLARSCOUT_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        max_input_chars=_env_int("SCHOLARSCOUT_MAX_INPUT_CHARS", MAX_INPUT_CHARS),
        search_attempts=_env_int("SCHOLARSCOUT_SEARCH_ATTEMPTS", 1),
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(int(raw), 1)
    except ValueError:
        return default
