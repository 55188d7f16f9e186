"""Ignore-pattern handling for GoLens file discovery."""

from __future__ import annotations

import fnmatch
from pathlib import Path

import pathspec

DEFAULT_IGNORE_PATTERNS: frozenset[str] = frozenset(
    {
        # Directories
        "vendor",
        "testdata",
        "node_modules",
        ".git",
        ".golens",
        ".idea",
        ".vscode",
        "dist",
        "bin",
        # Files (exact names)
        ".DS_Store",
        "go.sum",
        "go.work.sum",
        # File globs
        "*.pb.go.tmp",
        "*.swp",
        "*.orig",
    }
)

# Separate glob patterns (contain wildcards) from literal names at module load
# so we only compute this once.
_GLOB_PATTERNS: frozenset[str] = frozenset(p for p in DEFAULT_IGNORE_PATTERNS if "*" in p or "?" in p)
_LITERAL_PATTERNS: frozenset[str] = DEFAULT_IGNORE_PATTERNS - _GLOB_PATTERNS

def _is_hidden_by_go_tool(part: str) -> bool:
    """The go tool skips directories and files whose name starts with ``_`` or ``.``."""
    return part.startswith(("_", "."))

def _matches_default_patterns(path: Path) -> bool:
    """Check whether *path* (relative) matches any default ignore pattern."""
    for part in path.parts:
        if part in _LITERAL_PATTERNS or _is_hidden_by_go_tool(part):
            return True
        for pattern in _GLOB_PATTERNS:
            if fnmatch.fnmatch(part, pattern):
                return True
    return False

_pathspec_cache: dict[tuple[str, ...], pathspec.PathSpec] = {}

def _matches_gitignore(path: Path, gitignore_patterns: list[str]) -> bool:
    """Check *path* against a list of gitignore-style patterns.

    The compiled pathspec is cached by the pattern content so it is only
    built once per unique pattern set.
    """
    if not gitignore_patterns:
        return False

    cache_key = tuple(gitignore_patterns)
    spec = _pathspec_cache.get(cache_key)
    if spec is None:
        spec = pathspec.PathSpec.from_lines("gitwildmatch", gitignore_patterns)
        _pathspec_cache[cache_key] = spec
    return spec.match_file(path.as_posix())

def should_ignore(
    path: str | Path,
    gitignore_patterns: list[str] | None = None,
) -> bool:
    """Return ``True`` if *path* should be ignored during file discovery.

    Parameters
    ----------
    path:
        A relative file path (e.g. ``internal/repo/user.go`` or ``vendor/x/y.go``).
    gitignore_patterns:
        Optional list of gitignore-style patterns loaded via :func:`load_gitignore`.
    """
    p = Path(path)

    if _matches_default_patterns(p):
        return True

    if gitignore_patterns and _matches_gitignore(p, gitignore_patterns):
        return True

    return False

def load_gitignore(repo_path: Path) -> list[str]:
    """Read ``.gitignore`` from *repo_path* and return a list of patterns.

    Blank lines and comments (lines starting with ``#``) are stripped.
    Returns an empty list when the file does not exist.
    """
    gitignore = repo_path / ".gitignore"
    if not gitignore.is_file():
        return []

    lines: list[str] = []
    text = gitignore.read_text(encoding="utf-8")
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line and not line.startswith("#"):
            lines.append(line)
    return lines
