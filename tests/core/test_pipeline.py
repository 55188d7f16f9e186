"""Tests for the pipeline orchestrator (pipeline.py)."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import pytest

from golens.config.settings import AnalysisConfig
from golens.core.errors import AnalysisCancelled, ExtractionError
from golens.core.ingestion.pipeline import PipelineResult, analyze, run_pipeline


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def tmp_repo(tmp_path: Path) -> Path:
    """Create a small Go module under a temporary directory.

    Layout::

        tmp_repo/
        +-- go.mod              (module example.com/shapes)
        +-- shape.go            (Shape interface)
        +-- circle.go           (Circle implements Shape)
        +-- square.go           (Square has no Area)
        +-- shape_test.go       (only analysed with include_tests)
    """
    (tmp_path / "go.mod").write_text("module example.com/shapes\n\ngo 1.22\n", encoding="utf-8")
    (tmp_path / "shape.go").write_text(
        "package shapes\n\ntype Shape interface {\n\tArea() float64\n}\n",
        encoding="utf-8",
    )
    (tmp_path / "circle.go").write_text(
        "package shapes\n\n"
        "type Circle struct {\n\tR float64\n}\n\n"
        "func (c Circle) Area() float64 { return 3.14 * c.R * c.R }\n",
        encoding="utf-8",
    )
    (tmp_path / "square.go").write_text(
        "package shapes\n\ntype Square struct {\n\tSide float64\n}\n",
        encoding="utf-8",
    )
    (tmp_path / "shape_test.go").write_text(
        "package shapes\n\ntype fakeShape struct{}\n\nfunc (fakeShape) Area() float64 { return 1 }\n",
        encoding="utf-8",
    )
    return tmp_path


# ---------------------------------------------------------------------------
# run_pipeline
# ---------------------------------------------------------------------------


class TestRunPipeline:
    def test_returns_result_and_summary(self, tmp_repo: Path) -> None:
        result, summary = run_pipeline(tmp_repo)

        assert isinstance(summary, PipelineResult)
        assert summary.files == 3
        assert summary.packages == 1
        assert summary.interfaces == 1
        assert summary.structs == 2
        assert summary.implementations == 1
        assert summary.skipped_packages == 0
        assert summary.duration_seconds >= 0.0

        assert [i.name for i in result.interfaces] == ["Shape"]

    def test_shape_scenario(self, tmp_repo: Path) -> None:
        result, _ = run_pipeline(tmp_repo)
        circle = next(s for s in result.structs if s.name == "Circle")
        square = next(s for s in result.structs if s.name == "Square")

        assert [(d.name, str(d.position)) for d in circle.implemented_interfaces] == [("Shape", "shape.go:3")]
        assert [(d.name, str(d.position)) for d in circle.get_method("Area").implemented_from] == [
            ("Shape.Area", "shape.go:4")
        ]
        assert square.implemented_interfaces == []

    def test_include_tests(self, tmp_repo: Path) -> None:
        result, summary = run_pipeline(tmp_repo, AnalysisConfig(include_tests=True))
        assert summary.files == 4
        fake = next(s for s in result.structs if s.name == "fakeShape")
        assert [d.name for d in fake.implemented_interfaces] == ["Shape"]

    def test_progress_callback(self, tmp_repo: Path) -> None:
        calls: list[tuple[str, float]] = []
        run_pipeline(tmp_repo, progress_callback=lambda phase, pct: calls.append((phase, pct)))

        phases = [phase for phase, _ in calls]
        assert phases[0] == "Walking files"
        assert "Parsing code" in phases
        assert "Extracting declarations" in phases
        assert phases[-1] == "Resolving implementations"
        assert all(0.0 <= pct <= 1.0 for _, pct in calls)

    def test_deterministic(self, tmp_repo: Path) -> None:
        first, _ = run_pipeline(tmp_repo)
        second, _ = run_pipeline(tmp_repo, AnalysisConfig(max_workers=1))
        assert first.to_dict() == second.to_dict()

    def test_gitignore_respected(self, tmp_repo: Path) -> None:
        (tmp_repo / ".gitignore").write_text("square.go\n", encoding="utf-8")
        result, _ = run_pipeline(tmp_repo)
        assert [s.name for s in result.structs] == ["Circle"]

        result, _ = run_pipeline(tmp_repo, AnalysisConfig(respect_gitignore=False))
        assert sorted(s.name for s in result.structs) == ["Circle", "Square"]

    def test_empty_repository(self, tmp_path: Path) -> None:
        result, summary = run_pipeline(tmp_path)
        assert result.interfaces == []
        assert result.structs == []
        assert summary.files == 0
        assert summary.implementations == 0

    def test_broken_package_is_skipped(self, tmp_repo: Path) -> None:
        broken = tmp_repo / "broken"
        broken.mkdir()
        (broken / "broken.go").write_text("package broken\n\ntype Oops struct {\n", encoding="utf-8")

        result, summary = run_pipeline(tmp_repo)
        assert summary.packages == 2
        assert summary.skipped_packages == 1
        assert summary.diagnostics
        assert summary.diagnostics[0].package == "example.com/shapes/broken"
        assert summary.implementations == 1
        assert all(s.name != "Oops" for s in result.structs)

    def test_only_broken_packages_raise(self, tmp_path: Path) -> None:
        (tmp_path / "broken.go").write_text("package broken\n\ntype Oops struct {\n", encoding="utf-8")
        with pytest.raises(ExtractionError):
            run_pipeline(tmp_path)

    def test_cancelled(self, tmp_repo: Path) -> None:
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(AnalysisCancelled):
            run_pipeline(tmp_repo, cancel_event=cancel)

    def test_resolves_with_type_checker(self, tmp_repo: Path, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="golens.core.ingestion.pipeline"):
            run_pipeline(tmp_repo)
        assert "Resolving with the type-checker matcher" in caplog.text

    def test_analyze_wrapper(self, tmp_repo: Path) -> None:
        result = analyze(tmp_repo)
        assert [i.name for i in result.interfaces] == ["Shape"]


# ---------------------------------------------------------------------------
# Embedding
# ---------------------------------------------------------------------------


def _write_module(root: Path, files: dict[str, str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "go.mod").write_text("module example.com/embed\n", encoding="utf-8")
    for name, code in files.items():
        (root / name).write_text(code, encoding="utf-8")
    return root


class TestEmbedding:
    def test_methods_of_embedded_basic_named_type(self, tmp_path: Path) -> None:
        repo = _write_module(
            tmp_path,
            {
                "log.go": "package embed\n\n"
                "type Stringer interface {\n\tString() string\n}\n\n"
                "type Level int\n\n"
                'func (l Level) String() string { return "info" }\n\n'
                "type Logger struct {\n\tLevel\n}\n",
            },
        )
        result, _ = run_pipeline(repo)
        logger = next(s for s in result.structs if s.name == "Logger")
        assert [m.name for m in logger.methods] == ["String"]
        assert [d.name for d in logger.implemented_interfaces] == ["Stringer"]

    def test_embedded_interface_methods_are_required(self, tmp_path: Path) -> None:
        repo = _write_module(
            tmp_path,
            {
                "io.go": "package embed\n\n"
                "type Reader interface {\n\tRead(p []byte) (int, error)\n}\n\n"
                "type ReadCloser interface {\n\tReader\n\tClose() error\n}\n\n"
                "type OnlyCloser struct{}\n\n"
                "func (OnlyCloser) Close() error { return nil }\n\n"
                "type File struct{}\n\n"
                "func (*File) Read(p []byte) (int, error) { return 0, nil }\n\n"
                "func (*File) Close() error { return nil }\n",
            },
        )
        result, _ = run_pipeline(repo)
        links = {s.name: [d.name for d in s.implemented_interfaces] for s in result.structs}
        assert links["OnlyCloser"] == []
        assert links["File"] == ["Reader", "ReadCloser"]


# ---------------------------------------------------------------------------
# Concurrent runs
# ---------------------------------------------------------------------------


class TestConcurrentRuns:
    def test_parallel_runs_do_not_interfere(
        self, tmp_repo: Path, tmp_path_factory: pytest.TempPathFactory
    ) -> None:
        other = _write_module(
            tmp_path_factory.mktemp("other"),
            {
                "store.go": "package embed\n\n"
                "type Store interface {\n\tGet(key string) (int, bool)\n}\n\n"
                "type MemStore struct{}\n\n"
                "func (MemStore) Get(key string) (int, bool) { return 0, false }\n",
            },
        )
        repos = [tmp_repo, other] * 3
        expected = {repo: run_pipeline(repo)[0].to_dict() for repo in (tmp_repo, other)}

        outputs: dict[int, dict] = {}
        errors: list[Exception] = []

        def _run(index: int, repo: Path) -> None:
            try:
                outputs[index] = run_pipeline(repo)[0].to_dict()
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=_run, args=(i, repo)) for i, repo in enumerate(repos)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        for index, repo in enumerate(repos):
            assert outputs[index] == expected[repo]
