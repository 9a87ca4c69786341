from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from scholarscout.errors import MalformedResponseError


def _text(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedResponseError(f"Paper field {name!r} is not a string: {value!r}")
    return value


def _number(value: Any, name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponseError(f"Paper field {name!r} is not a number: {value!r}")
    return int(value)


@dataclass(slots=True, frozen=True)
class Author:
    author_id: str
    name: str

    def as_dict(self) -> dict[str, Any]:
        return {"authorId": self.author_id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Author:
        return cls(author_id=_text(data.get("authorId"), "authorId"), name=_text(data.get("name"), "name"))


@dataclass(slots=True, eq=False)
class Paper:
    paper_id: str
    title: str
    abstract: str | None = None
    year: int | None = None
    citation_count: int = 0
    url: str = ""
    authors: list[Author] = field(default_factory=list)
    open_access_pdf: dict[str, str] | None = None
    publication_venue: dict[str, str] | None = None

    # paper_id is the identity key; other fields may differ between copies.
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Paper):
            return NotImplemented
        return self.paper_id == other.paper_id

    def __hash__(self) -> int:
        return hash(self.paper_id)

    @property
    def author_names(self) -> list[str]:
        return [a.name for a in self.authors]

    @property
    def venue_name(self) -> str:
        return (self.publication_venue or {}).get("name") or ""

    @classmethod
    def from_api(cls, item: dict[str, Any]) -> Paper:
        """Build a paper from one search hit, raising ``MalformedResponseError`` on wrongly typed fields."""
        raw_authors = item.get("authors") or []
        if not isinstance(raw_authors, list):
            raise MalformedResponseError(f"Paper field 'authors' is not a list: {raw_authors!r}")
        authors = [Author.from_dict(a) for a in raw_authors if isinstance(a, dict)]
        pdf = item.get("openAccessPdf")
        venue = item.get("publicationVenue")
        abstract = item.get("abstract")
        return cls(
            paper_id=_text(item.get("paperId"), "paperId"),
            title=_text(item.get("title"), "title"),
            abstract=None if abstract is None else _text(abstract, "abstract"),
            year=_number(item.get("year"), "year"),
            citation_count=max(_number(item.get("citationCount"), "citationCount") or 0, 0),
            url=_text(item.get("url"), "url"),
            authors=authors,
            open_access_pdf=(
                {"url": str(pdf.get("url") or ""), "status": str(pdf.get("status") or "")}
                if isinstance(pdf, dict)
                else None
            ),
            publication_venue=(
                {"name": str(venue.get("name") or "")} if isinstance(venue, dict) else None
            ),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "paperId": self.paper_id,
            "title": self.title,
            "abstract": self.abstract,
            "year": self.year,
            "citationCount": self.citation_count,
            "url": self.url,
            "authors": [a.as_dict() for a in self.authors],
            "openAccessPdf": dict(self.open_access_pdf) if self.open_access_pdf else None,
            "publicationVenue": dict(self.publication_venue) if self.publication_venue else None,
        }


@dataclass(slots=True, eq=False)
class SavedPaper(Paper):
    saved_at: float = 0.0
    notes: str | None = None

    @classmethod
    def from_paper(cls, paper: Paper, *, saved_at: float | None = None) -> SavedPaper:
        return cls(
            paper_id=paper.paper_id,
            title=paper.title,
            abstract=paper.abstract,
            year=paper.year,
            citation_count=paper.citation_count,
            url=paper.url,
            authors=list(paper.authors),
            open_access_pdf=dict(paper.open_access_pdf) if paper.open_access_pdf else None,
            publication_venue=dict(paper.publication_venue) if paper.publication_venue else None,
            saved_at=time.time() if saved_at is None else saved_at,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedPaper:
        saved_at = data.get("savedAt")
        saved = cls.from_paper(
            Paper.from_api(data),
            saved_at=float(saved_at) / 1000.0 if isinstance(saved_at, (int, float)) else None,
        )
        notes = data.get("notes")
        saved.notes = str(notes) if notes else None
        return saved

    def as_dict(self) -> dict[str, Any]:
        out = Paper.as_dict(self)
        out["savedAt"] = int(round(self.saved_at * 1000))
        if self.notes:
            out["notes"] = self.notes
        return out


@dataclass(slots=True, frozen=True)
class SearchQuery:
    query: str
    rationale: str

    def as_dict(self) -> dict[str, Any]:
        return {"query": self.query, "rationale": self.rationale}


@dataclass(slots=True)
class AnalysisResult:
    summary: str
    search_queries: list[SearchQuery] = field(default_factory=list)


@dataclass(slots=True)
class QueryState:
    results: list[Paper] = field(default_factory=list)
    is_loading: bool = False
    failed: bool = False
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "results": [p.as_dict() for p in self.results],
            "is_loading": self.is_loading,
            "failed": self.failed,
            "error": self.error,
        }


@dataclass(slots=True)
class Event:
    source: str
    status: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "status": self.status,
            "message": self.message,
            "details": self.details,
        }
