from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Callable

from scholarscout.errors import MalformedResponseError
from scholarscout.exporters import EXPORT_FILENAMES, normalize_format, render, render_citation_list
from scholarscout.models import Paper, SavedPaper
from scholarscout.utils import ensure_dir


class Library:
    """Saved papers keyed by ``paper_id`` in insertion order.

    Saving copies the paper, so later edits to a search result do not leak
    into the library. A second save of the same id is a no-op.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._entries: dict[str, SavedPaper] = {}
        self._clock = clock
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, paper_id: object) -> bool:
        return isinstance(paper_id, str) and self.is_saved(paper_id)

    def save(self, paper: Paper) -> bool:
        with self._lock:
            if paper.paper_id in self._entries:
                return False
            self._entries[paper.paper_id] = SavedPaper.from_paper(paper, saved_at=self._clock())
            return True

    def remove(self, paper_id: str) -> bool:
        with self._lock:
            return self._entries.pop(paper_id, None) is not None

    def is_saved(self, paper_id: str) -> bool:
        with self._lock:
            return paper_id in self._entries

    def get(self, paper_id: str) -> SavedPaper | None:
        with self._lock:
            return self._entries.get(paper_id)

    def papers(self) -> list[SavedPaper]:
        with self._lock:
            return list(self._entries.values())

    def annotate(self, paper_id: str, notes: str | None) -> None:
        with self._lock:
            entry = self._entries.get(paper_id)
            if entry is None:
                raise KeyError(paper_id)
            entry.notes = notes.strip() if notes and notes.strip() else None

    def export_as(self, fmt: str) -> str:
        return render(self.papers(), fmt)

    def citation_text(self) -> str:
        return render_citation_list(self.papers())

    def export_to(self, directory: Path, fmt: str) -> Path:
        key = normalize_format(fmt)
        ensure_dir(directory)
        path = directory / EXPORT_FILENAMES[key]
        path.write_text(self.export_as(key), encoding="utf-8")
        return path

    def load_json(self, text: str) -> int:
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError("Library JSON must be a list of saved papers.")
        parsed: list[SavedPaper] = []
        for item in data:
            if not isinstance(item, dict) or not item.get("paperId"):
                raise ValueError("Every saved paper needs a 'paperId'.")
            try:
                parsed.append(SavedPaper.from_dict(item))
            except MalformedResponseError as exc:
                raise ValueError(f"Invalid saved paper {item.get('paperId')!r}: {exc}") from exc
        added = 0
        with self._lock:
            for saved in parsed:
                if saved.paper_id in self._entries:
                    continue
                self._entries[saved.paper_id] = saved
                added += 1
        return added
