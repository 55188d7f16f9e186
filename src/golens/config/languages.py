"""Language detection based on file extensions."""

from __future__ import annotations

from pathlib import Path

SUPPORTED_EXTENSIONS: dict[str, str] = {
    ".go": "go",
}

TEST_FILE_SUFFIX = "_test.go"

def get_language(file_path: str | Path) -> str | None:
    """Return the language name for *file_path* based on its extension.

    Returns ``None`` when the extension is not in :data:`SUPPORTED_EXTENSIONS`.
    """
    suffix = Path(file_path).suffix
    return SUPPORTED_EXTENSIONS.get(suffix)

def is_supported(file_path: str | Path) -> bool:
    """Return ``True`` if *file_path* has a supported extension."""
    return Path(file_path).suffix in SUPPORTED_EXTENSIONS

def is_test_file(file_path: str | Path) -> bool:
    """Return ``True`` for Go test files (``*_test.go``)."""
    return Path(file_path).name.endswith(TEST_FILE_SUFFIX)
