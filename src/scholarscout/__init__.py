from scholarscout.library import Library
from scholarscout.models import AnalysisResult, Author, Paper, SavedPaper, SearchQuery
from scholarscout.pipeline import RunConfig, Session, build_session

__all__ = [
    "AnalysisResult",
    "Author",
    "Library",
    "Paper",
    "RunConfig",
    "SavedPaper",
    "SearchQuery",
    "Session",
    "build_session",
]

__version__ = "0.1.0"
