from scholarscout.sources.base import PaperSource
from scholarscout.sources.semantic_scholar import SemanticScholarSource

__all__ = [
    "PaperSource",
    "SemanticScholarSource",
]
