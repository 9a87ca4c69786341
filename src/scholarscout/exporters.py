from __future__ import annotations

import json
import re
from typing import Sequence

from scholarscout.models import SavedPaper

EXPORT_FORMATS = ("json", "csv", "bibtex", "text")
FORMAT_ALIASES = {
    "json": "json",
    "structured-data": "json",
    "csv": "csv",
    "tabular": "csv",
    "bibtex": "bibtex",
    "bib": "bibtex",
    "tagged-text": "bibtex",
    "text": "text",
    "txt": "text",
    "plain-text": "text",
}
EXPORT_FILENAMES = {
    "json": "library.json",
    "csv": "library.csv",
    "bibtex": "library.bib",
    "text": "references.txt",
}
CSV_HEADER = ["Paper ID", "Title", "Authors", "Year", "Venue", "Citations", "URL"]

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def normalize_format(fmt: str) -> str:
    key = fmt.strip().lower()
    if key not in FORMAT_ALIASES:
        raise ValueError(f"Unknown export format: {fmt!r}. Choose one of {', '.join(EXPORT_FORMATS)}.")
    return FORMAT_ALIASES[key]


def render_json(papers: Sequence[SavedPaper]) -> str:
    return json.dumps([p.as_dict() for p in papers], indent=2, ensure_ascii=False)


def bibtex_key(paper: SavedPaper) -> str:
    surname = ""
    if paper.authors:
        parts = paper.authors[0].name.split()
        if parts:
            surname = _NON_ALNUM.sub("", parts[-1])
    words = paper.title.split()
    title_word = _NON_ALNUM.sub("", words[0]) if words else ""
    year = str(paper.year) if paper.year else "nd"
    return f"{surname or 'Unknown'}{year}{title_word or 'Paper'}"


def render_bibtex(papers: Sequence[SavedPaper]) -> str:
    chunks: list[str] = []
    for paper in papers:
        lines = [
            f"@article{{{bibtex_key(paper)},",
            f"  title={{{paper.title}}},",
            f"  author={{{' and '.join(paper.author_names)}}},",
            f"  journal={{{paper.venue_name or 'Unknown'}}},",
            f"  year={{{paper.year or 'Unknown'}}},",
            f"  url={{{paper.url}}}",
            "}",
        ]
        chunks.append("\n".join(lines))
    return "\n\n".join(chunks)


def _csv_quote(value: str | None) -> str:
    return '"' + (value or "").replace('"', '""') + '"'


def render_csv(papers: Sequence[SavedPaper]) -> str:
    rows = [",".join(CSV_HEADER)]
    for p in papers:
        rows.append(
            ",".join(
                [
                    _csv_quote(p.paper_id),
                    _csv_quote(p.title),
                    _csv_quote("; ".join(p.author_names)),
                    str(p.year) if p.year else "",
                    _csv_quote(p.venue_name),
                    str(p.citation_count),
                    _csv_quote(p.url),
                ]
            )
        )
    return "\n".join(rows)


def render_plain_text(papers: Sequence[SavedPaper]) -> str:
    return "\n\n".join(
        f"{', '.join(p.author_names)} ({p.year or 'n.d.'}). {p.title}. {p.venue_name}. {p.url}"
        for p in papers
    )


def render_citation_list(papers: Sequence[SavedPaper]) -> str:
    return "\n".join(f"{', '.join(p.author_names)} ({p.year or 'n.d.'}). {p.title}." for p in papers)


RENDERERS = {
    "json": render_json,
    "csv": render_csv,
    "bibtex": render_bibtex,
    "text": render_plain_text,
}


def render(papers: Sequence[SavedPaper], fmt: str) -> str:
    return RENDERERS[normalize_format(fmt)](papers)
