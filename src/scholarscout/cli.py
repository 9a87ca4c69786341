from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scholarscout.config import load_env
from scholarscout.errors import ScholarScoutError
from scholarscout.exporters import EXPORT_FORMATS
from scholarscout.library import Library
from scholarscout.pipeline import RunConfig, Session, build_session
from scholarscout.sources import SemanticScholarSource
from scholarscout.utils import read_draft, was_truncated

app = typer.Typer(help="Turn a paper draft into literature searches and an exportable citation library")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _print_results(session: Session, show_events: bool) -> None:
    snap = session.state.snapshot()
    if snap.summary:
        console.print("[bold]Research Summary[/bold]")
        console.print(snap.summary)
        console.print()
    for query in snap.search_queries:
        entry = snap.query_states.get(query.query)
        console.print(f"[bold cyan]{query.query}[/bold cyan]  [dim]{query.rationale}[/dim]")
        if entry is None or entry.is_loading:
            console.print("  [yellow]still searching...[/yellow]")
            continue
        if entry.failed:
            console.print(f"  [red]search failed:[/red] {entry.error}")
            continue
        if not entry.results:
            console.print("  No papers found.")
            continue
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("Year", justify="right")
        table.add_column("Title")
        table.add_column("Authors")
        table.add_column("Cites", justify="right")
        for idx, paper in enumerate(entry.results, 1):
            authors = ", ".join(paper.author_names[:2]) + (" et al." if len(paper.authors) > 2 else "")
            table.add_row(str(idx), str(paper.year or "n.d."), paper.title, authors, str(paper.citation_count))
        console.print(table)
    if show_events:
        for event in snap.events:
            console.print(f"[dim]{event.source} {event.status}: {event.message} {event.details}[/dim]")


@app.command()
def analyze(
    text: str | None = typer.Argument(None, help="Draft text (or use --file)"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Draft file (.txt, .md, .tex, .latex)"),
    save_top: int = typer.Option(0, min=0, help="Save the top N results of every query to the library"),
    export_dir: Path | None = typer.Option(None, help="Write library exports to this directory"),
    fmt: list[str] = typer.Option(None, "--format", help="Export format (repeatable): json | csv | bibtex | text"),
    json_out: Path | None = typer.Option(None, help="Write the final search state snapshot as JSON"),
    backend: str | None = typer.Option(None, help="LLM backend override: gemini | openai"),
    model: str | None = typer.Option(None, help="Model override for the selected backend"),
    s2_key: str | None = typer.Option(None, help="Semantic Scholar API key (optional)"),
    workers: int | None = typer.Option(None, min=1, max=32, help="Maximum concurrent searches"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and event trace"),
) -> None:
    _configure_logging(verbose)
    if file is not None:
        try:
            text = read_draft(file)
        except (ValueError, OSError) as exc:
            console.print(f"[red]Cannot read draft {escape(str(file))}: {escape(str(exc))}[/red]")
            raise typer.Exit(code=2) from exc
    if not text or not text.strip():
        console.print("[red]Provide draft text as an argument or with --file.[/red]")
        raise typer.Exit(code=2)

    env = load_env()
    chosen = (backend or env.llm_backend).strip().lower()
    config = RunConfig(
        llm_backend=chosen,
        gemini_api_key=env.gemini_api_key,
        gemini_model=(model if model and chosen == "gemini" else env.gemini_model),
        openai_api_key=env.openai_api_key,
        openai_model=(model if model and chosen == "openai" else env.openai_model),
        semantic_scholar_api_key=s2_key or env.semantic_scholar_api_key,
        max_workers=workers or env.max_workers,
        max_input_chars=env.max_input_chars,
        search_attempts=env.search_attempts,
    )
    if was_truncated(text, config.max_input_chars):
        console.print(f"[dim]Draft is longer than {config.max_input_chars} characters; only the start is analyzed.[/dim]")

    session = build_session(config)
    try:
        with console.status("Analyzing draft and searching Semantic Scholar..."):
            session.run_analysis(text, wait=True)
        snap = session.state.snapshot()
        if snap.error:
            console.print(f"[bold red]Error:[/bold red] {snap.error}")
            raise typer.Exit(code=1)
        _print_results(session, verbose)
        if json_out is not None:
            json_out.parent.mkdir(parents=True, exist_ok=True)
            json_out.write_text(json.dumps(snap.as_dict(), indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

        if save_top:
            for entry in snap.query_states.values():
                for paper in entry.results[:save_top]:
                    session.library.save(paper)
            console.print(f"[bold green]Saved[/bold green] {len(session.library)} papers to the library.")
        if export_dir is not None:
            for name in fmt or list(EXPORT_FORMATS):
                path = session.library.export_to(export_dir, name)
                console.print(f"Wrote {path}")
    finally:
        session.close()


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    out: Path | None = typer.Option(None, help="Optional JSON output path"),
    s2_key: str | None = typer.Option(None, help="Semantic Scholar API key (optional)"),
    limit: int = typer.Option(10, min=1, max=100),
) -> None:
    env = load_env()
    source = SemanticScholarSource(
        api_key=s2_key or env.semantic_scholar_api_key,
        limit=limit,
        attempts=env.search_attempts,
    )
    try:
        papers = source.search(query)
    except ScholarScoutError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    payload = {"status": "ok", "query": query, "results": [p.as_dict() for p in papers]}
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if out is None:
        typer.echo(text)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text + "\n", encoding="utf-8")
    console.print(f"[bold green]Wrote[/bold green] {len(papers)} results to {out}")


@app.command("export")
def export_cmd(
    library_json: Path = typer.Argument(..., help="A library.json produced by a previous export"),
    fmt: list[str] = typer.Option(None, "--format", help="Export format (repeatable)"),
    out_dir: Path = typer.Option(Path("."), help="Output directory"),
) -> None:
    library = Library()
    added = library.load_json(library_json.read_text(encoding="utf-8"))
    for name in fmt or list(EXPORT_FORMATS):
        path = library.export_to(out_dir, name)
        console.print(f"Wrote {path} ({added} papers)")


if __name__ == "__main__":
    app()
