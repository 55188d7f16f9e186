"""Tests for golens.core.ingestion.walker."""

from __future__ import annotations

from pathlib import Path

import pytest

from golens.core.ingestion.walker import (
    FileEntry,
    discover_files,
    discover_modules,
    parse_module_path,
    walk_repo,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def tmp_repo(tmp_path: Path) -> Path:
    """Create a small Go module for walking.

    Layout::

        tmp_repo/
        +-- go.mod                     ("module example.com/app")
        +-- main.go
        +-- internal/
        |   +-- repo/
        |       +-- user.go
        |       +-- user_test.go       (skipped unless tests are included)
        +-- vendor/lib/lib.go          (ignored)
        +-- tools/
        |   +-- go.mod                 ("module example.com/tools")
        |   +-- gen.go
        +-- gen/models.go              (ignored through .gitignore)
        +-- README.md                  (not Go)
    """
    (tmp_path / "go.mod").write_text("module example.com/app\n\ngo 1.22\n", encoding="utf-8")
    (tmp_path / "main.go").write_text("package main\n", encoding="utf-8")

    repo = tmp_path / "internal" / "repo"
    repo.mkdir(parents=True)
    (repo / "user.go").write_text("package repo\n", encoding="utf-8")
    (repo / "user_test.go").write_text("package repo\n", encoding="utf-8")

    vendor = tmp_path / "vendor" / "lib"
    vendor.mkdir(parents=True)
    (vendor / "lib.go").write_text("package lib\n", encoding="utf-8")

    tools = tmp_path / "tools"
    tools.mkdir()
    (tools / "go.mod").write_text("module example.com/tools\n", encoding="utf-8")
    (tools / "gen.go").write_text("package tools\n", encoding="utf-8")

    gen = tmp_path / "gen"
    gen.mkdir()
    (gen / "models.go").write_text("package gen\n", encoding="utf-8")

    (tmp_path / "README.md").write_text("# app", encoding="utf-8")
    return tmp_path


# ---------------------------------------------------------------------------
# discover_files
# ---------------------------------------------------------------------------


class TestDiscoverFiles:
    def test_finds_go_files(self, tmp_repo: Path) -> None:
        found = {p.relative_to(tmp_repo).as_posix() for p in discover_files(tmp_repo)}
        assert "main.go" in found
        assert "internal/repo/user.go" in found
        assert "tools/gen.go" in found

    def test_skips_vendor_and_non_go(self, tmp_repo: Path) -> None:
        found = {p.relative_to(tmp_repo).as_posix() for p in discover_files(tmp_repo)}
        assert "vendor/lib/lib.go" not in found
        assert "README.md" not in found

    def test_skips_tests_by_default(self, tmp_repo: Path) -> None:
        found = {p.name for p in discover_files(tmp_repo)}
        assert "user_test.go" not in found

    def test_includes_tests_on_request(self, tmp_repo: Path) -> None:
        found = {p.name for p in discover_files(tmp_repo, include_tests=True)}
        assert "user_test.go" in found

    def test_respects_gitignore(self, tmp_repo: Path) -> None:
        found = {p.relative_to(tmp_repo).as_posix() for p in discover_files(tmp_repo, ["gen/"])}
        assert "gen/models.go" not in found


# ---------------------------------------------------------------------------
# walk_repo
# ---------------------------------------------------------------------------


class TestWalkRepo:
    def test_returns_sorted_entries(self, tmp_repo: Path) -> None:
        entries = walk_repo(tmp_repo, ["gen/"])
        paths = [e.path for e in entries]
        assert paths == sorted(paths)
        assert paths == ["internal/repo/user.go", "main.go", "tools/gen.go"]

    def test_entry_fields(self, tmp_repo: Path) -> None:
        entries = walk_repo(tmp_repo)
        main = next(e for e in entries if e.path == "main.go")
        assert isinstance(main, FileEntry)
        assert main.language == "go"
        assert main.content == "package main\n"

    def test_skips_empty_files(self, tmp_repo: Path) -> None:
        (tmp_repo / "empty.go").write_text("", encoding="utf-8")
        assert all(e.path != "empty.go" for e in walk_repo(tmp_repo))

    def test_skips_binary_files(self, tmp_repo: Path) -> None:
        (tmp_repo / "blob.go").write_bytes(b"\xff\xfe\x00\x01")
        assert all(e.path != "blob.go" for e in walk_repo(tmp_repo))

    def test_empty_repo(self, tmp_path: Path) -> None:
        assert walk_repo(tmp_path) == []


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------


class TestModules:
    def test_discover_modules(self, tmp_repo: Path) -> None:
        assert discover_modules(tmp_repo) == {
            ".": "example.com/app",
            "tools": "example.com/tools",
        }

    def test_parse_module_path(self) -> None:
        text = "// comment\nmodule github.com/acme/shop // trailing\n\ngo 1.21\n"
        assert parse_module_path(text) == "github.com/acme/shop"

    def test_parse_module_path_tab_and_quotes(self) -> None:
        assert parse_module_path('module\t"example.com/quoted"\n') == "example.com/quoted"

    def test_parse_module_path_missing(self) -> None:
        assert parse_module_path("go 1.22\nrequire example.com/x v1.0.0\n") == ""

    def test_go_mod_without_module_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "go.mod").write_text("go 1.22\n", encoding="utf-8")
        assert discover_modules(tmp_path) == {}
