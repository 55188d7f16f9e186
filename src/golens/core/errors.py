"""Exception hierarchy for GoLens.

Matching and resolution are total over well-formed input and never raise;
everything here is raised at the edges of a run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from golens.core.ingestion.extractor import Diagnostic

class GoLensError(Exception):
    """Base class for all errors raised by GoLens."""

class ExtractionError(GoLensError):
    """Raised when source units existed but none of them could be extracted."""

    def __init__(self, message: str, diagnostics: list[Diagnostic] | None = None) -> None:
        super().__init__(message)
        self.diagnostics = list(diagnostics or [])

class ResultValidationError(GoLensError, ValueError):
    """A serialized analysis result does not have the expected shape.

    ``location`` is the JSON path of the offending value, e.g.
    ``structs[2].methods[0].parameters``.
    """

    def __init__(self, location: str, problem: str) -> None:
        super().__init__(f"{location}: {problem}" if location else problem)
        self.location = location
        self.problem = problem

class MatcherUnavailableError(GoLensError):
    """The type-checker-backed matcher was given records without typed signatures."""

class AnalysisCancelled(GoLensError):
    """The caller's cancel event was set between extraction units."""
