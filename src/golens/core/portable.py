"""Portable re-resolution of serialized analysis results.

A result written to JSON loses the typed signatures of the in-process
analysis.  :func:`reresolve` re-verifies or augments such a result with the
string heuristic matcher, which only needs the rendered type strings.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from golens.core.errors import ResultValidationError
from golens.core.graph.model import AnalysisResult
from golens.core.ingestion.matcher import select_matcher
from golens.core.ingestion.resolver import resolve_implementations

logger = logging.getLogger(__name__)

def coerce_result(data: AnalysisResult | dict[str, Any] | str) -> AnalysisResult:
    """Turn *data* into a fresh :class:`AnalysisResult` without typed signatures.

    Accepts a result object, its dict form, or JSON text.

    Raises:
        ResultValidationError: If *data* does not have the result shape.
    """
    if isinstance(data, AnalysisResult):
        return AnalysisResult.from_dict(data.to_dict())
    if isinstance(data, str):
        return AnalysisResult.from_json(data)
    if isinstance(data, dict):
        return AnalysisResult.from_dict(data)
    raise ResultValidationError("", f"expected an analysis result, got {type(data).__name__}")

def reresolve(
    data: AnalysisResult | dict[str, Any] | str,
    reset: bool = False,
) -> AnalysisResult:
    """Resolve a serialized result again with the string heuristic.

    Existing links are kept and new ones are added without duplicates.  With
    *reset* the links are dropped first, so the returned relation is purely
    the heuristic's.  The input is never mutated.
    """
    result = coerce_result(data)
    if reset:
        result.clear_relations()
    added = resolve_implementations(result.interfaces, result.structs, select_matcher(result))
    logger.info("Re-resolution added %d implementation link(s)", added)
    return result

def load_result(path: Path) -> AnalysisResult:
    """Read a result from a JSON file."""
    return AnalysisResult.from_json(path.read_text(encoding="utf-8"))

def dump_result(result: AnalysisResult, path: Path) -> None:
    """Write *result* to *path* as indented JSON."""
    path.write_text(json.dumps(result.to_dict(), indent=2) + "\n", encoding="utf-8")
