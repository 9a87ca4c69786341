import json
from pathlib import Path

from typer.testing import CliRunner

from scholarscout import cli
from scholarscout.errors import AnalysisTransportError, SearchRateLimitError
from scholarscout.llm import LLMBackend
from scholarscout.models import Author, Paper
from scholarscout.pipeline import build_session
from scholarscout.sources.base import PaperSource

runner = CliRunner()


class _Backend(LLMBackend):
    name = "test"

    def __init__(self, error=None):
        self.error = error

    def ask_text(self, payload, schema=None):
        if self.error is not None:
            raise self.error
        return json.dumps(
            {
                "summary": "Draft about robot learning.",
                "searchQueries": [
                    {"query": "robot imitation learning", "rationale": "core"},
                    {"query": "sim to real transfer", "rationale": "method"},
                ],
            }
        )


class _Source(PaperSource):
    name = "stub"

    def __init__(self, *args, **kwargs):
        pass

    def search(self, query, *, api_key=None):
        return [
            Paper(
                paper_id=f"{query}-{i}",
                title=f"{query.title()} {i}",
                year=2020 + i,
                authors=[Author("1", "Grace Hopper")],
            )
            for i in range(3)
        ]


def _clean_env(monkeypatch):
    for name in ("LLM_BACKEND", "GEMINI_API_KEY", "OPENAI_API_KEY", "SEMANTIC_SCHOLAR_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_analyze_saves_and_exports(monkeypatch, tmp_path: Path):
    _clean_env(monkeypatch)
    monkeypatch.setattr(
        cli, "build_session", lambda config: build_session(config, backend=_Backend(), source=_Source())
    )
    result = runner.invoke(
        cli.app,
        [
            "analyze",
            "Robots learn from demonstrations.",
            "--save-top",
            "2",
            "--export-dir",
            str(tmp_path),
            "--format",
            "bibtex",
            "--format",
            "json",
            "--json-out",
            str(tmp_path / "state.json"),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Draft about robot learning." in result.output
    saved = json.loads((tmp_path / "library.json").read_text(encoding="utf-8"))
    assert len(saved) == 4
    assert (tmp_path / "library.bib").read_text(encoding="utf-8").startswith("@article{Hopper2020Robot,")
    assert not (tmp_path / "library.csv").exists()
    state = json.loads((tmp_path / "state.json").read_text(encoding="utf-8"))
    assert state["summary"] == "Draft about robot learning."
    assert all(not s["is_loading"] and not s["failed"] for s in state["query_states"].values())


def test_analyze_reads_draft_file(monkeypatch, tmp_path: Path):
    _clean_env(monkeypatch)
    monkeypatch.setattr(
        cli, "build_session", lambda config: build_session(config, backend=_Backend(), source=_Source())
    )
    draft = tmp_path / "draft.tex"
    draft.write_text("\\section{Intro} Robots.", encoding="utf-8")
    result = runner.invoke(cli.app, ["analyze", "--file", str(draft)])
    assert result.exit_code == 0, result.output
    assert "sim to real transfer" in result.output


def test_analyze_failure_exits_nonzero(monkeypatch):
    _clean_env(monkeypatch)
    monkeypatch.setattr(
        cli,
        "build_session",
        lambda config: build_session(
            config, backend=_Backend(error=AnalysisTransportError("offline")), source=_Source()
        ),
    )
    result = runner.invoke(cli.app, ["analyze", "Some draft"])
    assert result.exit_code == 1
    assert "Connection failed" in result.output


def test_analyze_requires_text(monkeypatch):
    _clean_env(monkeypatch)
    result = runner.invoke(cli.app, ["analyze", "   "])
    assert result.exit_code == 2


def test_analyze_rejects_unreadable_draft_file(monkeypatch, tmp_path: Path):
    _clean_env(monkeypatch)
    unsupported = tmp_path / "draft.docx"
    unsupported.write_text("Robots.", encoding="utf-8")
    result = runner.invoke(cli.app, ["analyze", "--file", str(unsupported)])
    assert result.exit_code == 2
    assert "Unsupported" in result.output

    result = runner.invoke(cli.app, ["analyze", "--file", str(tmp_path / "missing.md")])
    assert result.exit_code == 2
    assert "Cannot" in result.output


def test_search_writes_json(monkeypatch, tmp_path: Path):
    _clean_env(monkeypatch)
    monkeypatch.setattr(cli, "SemanticScholarSource", _Source)
    out = tmp_path / "results.json"
    result = runner.invoke(cli.app, ["search", "graph neural networks", "--out", str(out)])
    assert result.exit_code == 0, result.output
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["status"] == "ok"
    assert [r["paperId"] for r in payload["results"]] == [f"graph neural networks-{i}" for i in range(3)]


def test_search_rate_limit_reports_error(monkeypatch):
    _clean_env(monkeypatch)

    class _Limited(_Source):
        def search(self, query, *, api_key=None):
            raise SearchRateLimitError("Semantic Scholar rate limit exceeded.")

    monkeypatch.setattr(cli, "SemanticScholarSource", _Limited)
    result = runner.invoke(cli.app, ["search", "anything"])
    assert result.exit_code == 1
    assert "rate limit" in result.output


def test_export_rerenders_library(tmp_path: Path):
    library_json = tmp_path / "library.json"
    library_json.write_text(
        json.dumps([{"paperId": "p1", "title": "He said \"Go\"", "year": 2019, "authors": [], "savedAt": 1}]),
        encoding="utf-8",
    )
    out_dir = tmp_path / "refs"
    result = runner.invoke(cli.app, ["export", str(library_json), "--format", "csv", "--out-dir", str(out_dir)])
    assert result.exit_code == 0, result.output
    rows = (out_dir / "library.csv").read_text(encoding="utf-8").split("\n")
    assert rows[1] == '"p1","He said ""Go""","",2019,"",0,""'
