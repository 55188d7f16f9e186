"""Package grouping for GoLens.

Go's unit of compilation is the package: every ``.go`` file of one directory
(external ``_test`` packages aside).  This phase groups parsed files into
:class:`GoPackage` units and derives each unit's import path from the
nearest enclosing ``go.mod``.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from golens.config.languages import is_test_file
from golens.core.ingestion.parser_phase import FileParseData

@dataclass
class GoPackage:
    """One extraction unit."""

    directory: str  # POSIX path relative to the repo root, "." for the root
    import_path: str
    files: list[FileParseData] = field(default_factory=list)

    @property
    def name(self) -> str:
        """The package clause shared by the files (first one found)."""
        for fpd in self.files:
            if fpd.parse_result.package:
                return fpd.parse_result.package
        return ""

def _directory_of(file_path: str) -> str:
    return PurePosixPath(file_path).parent.as_posix()

def import_path_for(directory: str, modules: dict[str, str], package_name: str = "") -> str:
    """Return the import path of the package living in *directory*.

    The longest module root containing *directory* wins.  Outside of any
    module the directory itself is the import path, or *package_name* for
    the repository root.
    """
    roots = [
        root
        for root in modules
        if root == "." or directory == root or directory.startswith(root + "/")
    ]
    if not roots:
        return directory if directory != "." else package_name

    best_root = max(roots, key=lambda r: -1 if r == "." else len(r))
    module_path = modules[best_root]
    if directory == best_root:
        return module_path
    suffix = directory if best_root == "." else directory[len(best_root) + 1 :]
    return f"{module_path}/{suffix}"

def group_packages(
    parse_data: list[FileParseData],
    modules: dict[str, str],
) -> list[GoPackage]:
    """Group parsed files into packages, ordered by directory.

    Test files declaring ``package foo_test`` form their own unit with the
    import path suffixed by ``_test``.
    """
    grouped: dict[tuple[str, bool], list[FileParseData]] = defaultdict(list)
    for fpd in parse_data:
        external_test = is_test_file(fpd.file_path) and fpd.parse_result.package.endswith("_test")
        grouped[(_directory_of(fpd.file_path), external_test)].append(fpd)

    packages: list[GoPackage] = []
    for (directory, external_test), files in sorted(grouped.items()):
        files.sort(key=lambda f: f.file_path)
        pkg = GoPackage(directory=directory, import_path="", files=files)
        pkg.import_path = import_path_for(directory, modules, pkg.name)
        if external_test:
            pkg.import_path += "_test"
        packages.append(pkg)
    return packages
