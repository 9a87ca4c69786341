from __future__ import annotations

from pathlib import Path

from scholarscout.config import MAX_INPUT_CHARS

DRAFT_SUFFIXES = {".txt", ".md", ".tex", ".latex"}


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_draft(path: Path) -> str:
    if path.suffix.lower() not in DRAFT_SUFFIXES:
        allowed = ", ".join(sorted(DRAFT_SUFFIXES))
        raise ValueError(f"Unsupported draft file type {path.suffix!r}; expected one of {allowed}.")
    return path.read_text(encoding="utf-8", errors="replace")


def was_truncated(text: str, max_chars: int = MAX_INPUT_CHARS) -> bool:
    return len(text) > max_chars
