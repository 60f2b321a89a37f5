"""Exception hierarchy shared by the event source, the analyzers and the CLI."""

from __future__ import annotations


class JitAnalyzeError(Exception):
    """Base class for all jit-analyze failures."""


class EventSourceError(JitAnalyzeError, ValueError):
    """The input file could not be read or did not yield a valid event sequence."""


class AnalysisError(JitAnalyzeError, RuntimeError):
    """An invariant of the event stream was violated; the report would be meaningless."""
