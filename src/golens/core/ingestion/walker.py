"""File system walker for discovering and reading Go source files in a repository."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from golens.config.ignore import should_ignore
from golens.config.languages import get_language, is_supported, is_test_file

GO_MOD = "go.mod"

@dataclass
class FileEntry:
    """A source file discovered during walking."""

    path: str  # POSIX path relative to the repo root (e.g., "internal/repo/user.go")
    content: str  # full file content
    language: str  # "go"

def discover_files(
    repo_path: Path,
    gitignore_patterns: list[str] | None = None,
    include_tests: bool = False,
) -> list[Path]:
    """Discover Go source file paths without reading their content.

    Walks *repo_path* recursively and returns paths that are not ignored and
    have a supported extension.  ``_test.go`` files are skipped unless
    *include_tests* is set, matching what ``go list ./...`` loads by default.

    Returns
    -------
    list[Path]
        List of absolute :class:`Path` objects for each discovered file.
    """
    repo_path = repo_path.resolve()
    discovered: list[Path] = []

    for file_path in repo_path.rglob("*"):
        if not file_path.is_file():
            continue

        relative = file_path.relative_to(repo_path)

        if should_ignore(relative, gitignore_patterns):
            continue

        if not is_supported(file_path):
            continue

        if not include_tests and is_test_file(file_path):
            continue

        discovered.append(file_path)

    return discovered

def discover_modules(
    repo_path: Path,
    gitignore_patterns: list[str] | None = None,
) -> dict[str, str]:
    """Find ``go.mod`` files and return ``{module root: module path}``.

    Module roots are POSIX paths relative to *repo_path* (``"."`` for the
    root itself).  A ``go.mod`` without a ``module`` directive is skipped.
    """
    repo_path = repo_path.resolve()
    modules: dict[str, str] = {}

    for mod_file in repo_path.rglob(GO_MOD):
        relative = mod_file.relative_to(repo_path)
        if should_ignore(relative, gitignore_patterns):
            continue
        try:
            text = mod_file.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError):
            continue
        module_path = parse_module_path(text)
        if module_path:
            modules[relative.parent.as_posix()] = module_path

    return modules

def parse_module_path(go_mod: str) -> str:
    """Return the path of the ``module`` directive in *go_mod* text, or ``""``."""
    for raw_line in go_mod.splitlines():
        line = raw_line.split("//", 1)[0].strip()
        parts = line.split(None, 1)
        if len(parts) == 2 and parts[0] == "module":
            return parts[1].strip().strip("\"`")
    return ""

def read_file(repo_path: Path, file_path: Path) -> FileEntry | None:
    """Read a single file and return a :class:`FileEntry`, or ``None`` on failure.

    Returns ``None`` when the file cannot be decoded as UTF-8 (binary files),
    when the file is empty, or when an OS-level error occurs.
    """
    relative = file_path.relative_to(repo_path)

    try:
        content = file_path.read_text(encoding="utf-8")
    except (UnicodeDecodeError, ValueError, OSError):
        return None

    if not content:
        return None

    language = get_language(file_path)
    if language is None:
        return None

    return FileEntry(
        path=relative.as_posix(),
        content=content,
        language=language,
    )

def walk_repo(
    repo_path: Path,
    gitignore_patterns: list[str] | None = None,
    max_workers: int = 8,
    include_tests: bool = False,
) -> list[FileEntry]:
    """Walk a repository and return all Go source files with their content.

    Discovers files using the same filtering logic as :func:`discover_files`,
    then reads their content in parallel using a :class:`ThreadPoolExecutor`.

    Returns
    -------
    list[FileEntry]
        Sorted (by path) list of :class:`FileEntry` objects for every
        discovered source file.
    """
    repo_path = repo_path.resolve()
    file_paths = discover_files(repo_path, gitignore_patterns, include_tests=include_tests)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = executor.map(lambda fp: read_file(repo_path, fp), file_paths)

    entries = [entry for entry in results if entry is not None]
    entries.sort(key=lambda e: e.path)
    return entries
