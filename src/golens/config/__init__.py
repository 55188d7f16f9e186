"""GoLens configuration: ignore patterns, language detection and run settings."""

from golens.config.ignore import DEFAULT_IGNORE_PATTERNS, load_gitignore, should_ignore
from golens.config.languages import SUPPORTED_EXTENSIONS, get_language, is_supported, is_test_file
from golens.config.settings import AnalysisConfig

__all__ = [
    "DEFAULT_IGNORE_PATTERNS",
    "SUPPORTED_EXTENSIONS",
    "AnalysisConfig",
    "get_language",
    "is_supported",
    "is_test_file",
    "load_gitignore",
    "should_ignore",
]
