from pathlib import Path

import pytest

from scholarscout.config import MAX_INPUT_CHARS, load_env
from scholarscout.utils import read_draft, was_truncated


def test_read_draft_accepts_known_suffixes(tmp_path: Path):
    for suffix in (".txt", ".md", ".tex", ".LATEX"):
        path = tmp_path / f"draft{suffix}"
        path.write_text("hello", encoding="utf-8")
        assert read_draft(path) == "hello"


def test_read_draft_rejects_other_suffixes(tmp_path: Path):
    path = tmp_path / "draft.pdf"
    path.write_bytes(b"%PDF")
    with pytest.raises(ValueError, match="Unsupported draft file type"):
        read_draft(path)


def test_was_truncated_boundary():
    assert not was_truncated("x" * MAX_INPUT_CHARS)
    assert was_truncated("x" * (MAX_INPUT_CHARS + 1))


def test_load_env_defaults_and_overrides(monkeypatch):
    for name in ("LLM_BACKEND", "GEMINI_MODEL", "SEMANTIC_SCHOLAR_API_KEY", "SCHOLARSCOUT_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SCHOLARSCOUT_MAX_INPUT_CHARS", "1000")
    monkeypatch.setenv("SCHOLARSCOUT_SEARCH_ATTEMPTS", "not-a-number")
    env = load_env()
    assert env.llm_backend == "gemini"
    assert env.gemini_model == "gemini-2.5-flash"
    assert env.semantic_scholar_api_key is None
    assert env.max_workers == 6
    assert env.max_input_chars == 1000
    assert env.search_attempts == 1
