"""Pipeline orchestrator for GoLens.

Runs all analysis phases in sequence and returns the resolved
:class:`AnalysisResult` with a summary of the run.

Phases executed:
    1. File walking (``.go`` files and ``go.mod`` module roots)
    2. Code parsing (tree-sitter, parallel)
    3. Package grouping
    4. Declaration extraction (package checks, interfaces, then structs)
    5. Implementation resolution (type-checker-backed matching)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from golens.config.ignore import load_gitignore
from golens.config.settings import AnalysisConfig
from golens.core.graph.model import AnalysisResult
from golens.core.ingestion.extractor import Diagnostic, extract_declarations
from golens.core.ingestion.matcher import select_matcher
from golens.core.ingestion.packages import group_packages
from golens.core.ingestion.parser_phase import process_parsing
from golens.core.ingestion.resolver import resolve_implementations
from golens.core.ingestion.walker import discover_modules, walk_repo

logger = logging.getLogger(__name__)

@dataclass
class PipelineResult:
    """Summary of a pipeline run."""

    files: int = 0
    packages: int = 0
    skipped_packages: int = 0
    interfaces: int = 0
    structs: int = 0
    implementations: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)
    duration_seconds: float = 0.0

def run_pipeline(
    repo_path: Path,
    config: AnalysisConfig | None = None,
    progress_callback: Callable[[str, float], None] | None = None,
    cancel_event: threading.Event | None = None,
) -> tuple[AnalysisResult, PipelineResult]:
    """Analyse the Go sources under *repo_path*.

    Parameters
    ----------
    repo_path:
        Root directory of the repository to analyse.
    config:
        Run settings; defaults to :class:`AnalysisConfig()`.
    progress_callback:
        Optional ``(phase_name, progress)`` callback where *progress* is a
        float in ``[0.0, 1.0]``.
    cancel_event:
        When set by another thread, the run stops before the next package
        and raises :class:`~golens.core.errors.AnalysisCancelled`.

    Returns
    -------
    tuple[AnalysisResult, PipelineResult]
        A freshly built result and a summary with counts and timings.  An
        empty repository yields an empty result, not an error.
    """
    start = time.monotonic()
    config = config or AnalysisConfig()
    summary = PipelineResult()

    def report(phase: str, pct: float) -> None:
        if progress_callback is not None:
            progress_callback(phase, pct)

    repo_path = repo_path.resolve()

    report("Walking files", 0.0)
    gitignore = load_gitignore(repo_path) if config.respect_gitignore else []
    files = walk_repo(
        repo_path,
        gitignore,
        max_workers=config.max_workers,
        include_tests=config.include_tests,
    )
    modules = discover_modules(repo_path, gitignore)
    summary.files = len(files)
    report("Walking files", 1.0)

    report("Parsing code", 0.0)
    parse_data = process_parsing(files, max_workers=config.max_workers)
    report("Parsing code", 1.0)

    packages = group_packages(parse_data, modules)
    summary.packages = len(packages)

    report("Extracting declarations", 0.0)
    extraction = extract_declarations(packages, config, cancel_event)
    summary.skipped_packages = extraction.units - extraction.extracted_units
    summary.diagnostics = extraction.diagnostics
    report("Extracting declarations", 1.0)

    report("Resolving implementations", 0.0)
    result = AnalysisResult(interfaces=extraction.interfaces, structs=extraction.structs)
    matcher = select_matcher(result)
    logger.debug("Resolving with the %s matcher", matcher.name)
    summary.implementations = resolve_implementations(result.interfaces, result.structs, matcher)
    report("Resolving implementations", 1.0)

    summary.interfaces = len(result.interfaces)
    summary.structs = len(result.structs)
    summary.duration_seconds = time.monotonic() - start

    logger.info(
        "Analysed %s: %d file(s), %d interface(s), %d struct(s), %d implementation(s) in %.2fs",
        repo_path,
        summary.files,
        summary.interfaces,
        summary.structs,
        summary.implementations,
        summary.duration_seconds,
    )
    return result, summary

def analyze(repo_path: Path, config: AnalysisConfig | None = None) -> AnalysisResult:
    """Resolve the full corpus under *repo_path* and return only the result."""
    result, _ = run_pipeline(repo_path, config)
    return result
