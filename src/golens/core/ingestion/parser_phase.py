"""Parsing phase for GoLens.

Takes file entries from the walker and parses each one with the tree-sitter
Go parser.  Files are parsed in parallel; every worker thread owns its own
``Parser`` instance since tree-sitter parsers are not safe to share.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from golens.core.ingestion.walker import FileEntry
from golens.core.parsers.base import LanguageParser, ParseResult, SyntaxIssue

logger = logging.getLogger(__name__)

@dataclass
class FileParseData:
    """Parse results for a single file, kept for later phases."""

    file_path: str
    language: str
    parse_result: ParseResult

_THREAD_STATE = threading.local()

def get_parser(language: str) -> LanguageParser:
    """Return the tree-sitter parser for *language* owned by the calling thread.

    Args:
        language: Currently only ``"go"``.

    Returns:
        A :class:`LanguageParser` instance ready to parse source code.

    Raises:
        ValueError: If *language* is not supported.
    """
    cache: dict[str, LanguageParser] | None = getattr(_THREAD_STATE, "parsers", None)
    if cache is None:
        cache = {}
        _THREAD_STATE.parsers = cache

    cached = cache.get(language)
    if cached is not None:
        return cached

    if language == "go":
        from golens.core.parsers.go_lang import GoParser

        parser = GoParser()
    else:
        raise ValueError(f"Unsupported language {language!r}. Expected one of: go")

    cache[language] = parser
    return parser

def parse_file(file_path: str, content: str, language: str) -> FileParseData:
    """Parse a single file and return structured parse data.

    A parser crash does not propagate: the returned :class:`ParseResult`
    carries a :class:`SyntaxIssue` so that the file's package is reported and
    skipped by the extractor.

    Args:
        file_path: Relative path to the file (used for identification).
        content: Raw source code of the file.
        language: Language identifier (``"go"``).
    """
    try:
        parser = get_parser(language)
        result = parser.parse(content, file_path)
    except Exception as exc:
        logger.warning("Failed to parse %s (%s), skipping", file_path, language, exc_info=True)
        result = ParseResult(errors=[SyntaxIssue(line=1, message=f"parser failure: {exc}")])

    return FileParseData(file_path=file_path, language=language, parse_result=result)

def process_parsing(
    files: list[FileEntry],
    max_workers: int = 8,
) -> list[FileParseData]:
    """Parse every file in parallel and return the parse data in input order.

    tree-sitter releases the GIL during C parsing, so a thread pool gives
    real parallelism here.
    """
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(
            executor.map(
                lambda f: parse_file(f.path, f.content, f.language),
                files,
            )
        )
