from __future__ import annotations


class ScholarScoutError(RuntimeError):
    """Base class for failures raised by the analysis and search collaborators."""


class ConfigurationError(ScholarScoutError):
    """Missing or rejected credential for the analysis backend."""


class AnalysisTransportError(ScholarScoutError):
    pass


class AnalysisRateLimitError(AnalysisTransportError):
    pass


class SearchTransportError(ScholarScoutError):
    pass


class SearchRateLimitError(SearchTransportError):
    pass


class MalformedResponseError(ScholarScoutError):
    """A collaborator answered, but not with the expected structure."""
