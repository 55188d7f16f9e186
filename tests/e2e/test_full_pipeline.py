"""End-to-end tests for the full GoLens pipeline.

Creates a realistic multi-package Go module in a temp directory, runs the
full pipeline, and verifies the resolved graph, its JSON form and the
portable re-resolution of that JSON.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from golens.core.graph.model import AnalysisResult, StructInfo
from golens.core.ingestion.pipeline import PipelineResult, run_pipeline
from golens.core.ingestion.symbol_lookup import find_implementors, find_struct
from golens.core.portable import dump_result, load_result, reresolve
from golens.core.summary import summarize_structs


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_repo(tmp_path: Path) -> Path:
    """Create a multi-package Go module.

    Layout::

        sample_repo/
        +-- go.mod                                    module go-analyzer-test
        +-- internal/
            +-- interfaces/repository.go              Repository interface
            +-- repositories/user_repository.go       pointer-receiver implementation
            +-- repositories/audited.go               promotes through *UserPostgresRepository
            +-- store/store.go                        generic Store[K, V] and two candidates
            +-- shapes/shapes.go                      Shape, Circle, Square
    """
    (tmp_path / "go.mod").write_text("module go-analyzer-test\n\ngo 1.21\n", encoding="utf-8")

    interfaces = tmp_path / "internal" / "interfaces"
    interfaces.mkdir(parents=True)
    (interfaces / "repository.go").write_text(
        "package interfaces\n"
        "\n"
        "type Repository interface {\n"
        "\tCreate(entity interface{}) error\n"
        "\tUpdate(id string, entity interface{}) error\n"
        "\tDelete(id string) error\n"
        "\tFindById(id string) (interface{}, error)\n"
        "\tFindAll() ([]interface{}, error)\n"
        "}\n",
        encoding="utf-8",
    )

    repositories = tmp_path / "internal" / "repositories"
    repositories.mkdir(parents=True)
    (repositories / "user_repository.go").write_text(
        "package repositories\n"
        "\n"
        "import (\n"
        '\t"database/sql"\n'
        '\t"go-analyzer-test/internal/interfaces"\n'
        ")\n"
        "\n"
        "type UserPostgresRepository struct {\n"
        "\tdb *sql.DB\n"
        "}\n"
        "\n"
        "func NewUserPostgresRepository(db *sql.DB) interfaces.Repository {\n"
        "\treturn &UserPostgresRepository{db: db}\n"
        "}\n"
        "\n"
        "func (r *UserPostgresRepository) Create(entity interface{}) error {\n"
        "\treturn nil\n"
        "}\n"
        "\n"
        "func (r *UserPostgresRepository) Update(id string, entity interface{}) error {\n"
        "\treturn nil\n"
        "}\n"
        "\n"
        "func (r *UserPostgresRepository) Delete(id string) error {\n"
        "\treturn nil\n"
        "}\n"
        "\n"
        "func (r *UserPostgresRepository) FindById(id string) (interface{}, error) {\n"
        "\treturn nil, nil\n"
        "}\n"
        "\n"
        "func (r *UserPostgresRepository) FindAll() ([]interface{}, error) {\n"
        "\treturn nil, nil\n"
        "}\n",
        encoding="utf-8",
    )
    (repositories / "audited.go").write_text(
        "package repositories\n"
        "\n"
        "type AuditedRepository struct {\n"
        "\t*UserPostgresRepository\n"
        "\tlog []string\n"
        "}\n",
        encoding="utf-8",
    )

    store = tmp_path / "internal" / "store"
    store.mkdir(parents=True)
    (store / "store.go").write_text(
        "package store\n"
        "\n"
        "type Store[K comparable, V any] interface {\n"
        "\tGet(key K) (V, bool)\n"
        "\tPut(key K, value V)\n"
        "}\n"
        "\n"
        "type MemStore struct {\n"
        "\titems map[string]int\n"
        "}\n"
        "\n"
        "func (m *MemStore) Get(key string) (int, bool) { v, ok := m.items[key]; return v, ok }\n"
        "\n"
        "func (m *MemStore) Put(key string, value int) { m.items[key] = value }\n"
        "\n"
        "type MixedStore struct{}\n"
        "\n"
        "func (MixedStore) Get(key string) (int, bool) { return 0, false }\n"
        "\n"
        "func (MixedStore) Put(key string, value string) {}\n",
        encoding="utf-8",
    )

    shapes = tmp_path / "internal" / "shapes"
    shapes.mkdir(parents=True)
    (shapes / "shapes.go").write_text(
        "package shapes\n"
        "\n"
        "type Shape interface {\n"
        "\tArea() float64\n"
        "}\n"
        "\n"
        "type Circle struct {\n"
        "\tR float64\n"
        "}\n"
        "\n"
        "func (c Circle) Area() float64 { return 3.14 * c.R * c.R }\n"
        "\n"
        "type Square struct {\n"
        "\tSide float64\n"
        "}\n",
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture()
def analysed(sample_repo: Path) -> tuple[AnalysisResult, PipelineResult]:
    return run_pipeline(sample_repo)


def _struct(result: AnalysisResult, name: str) -> StructInfo:
    found = find_struct(result, name)
    assert found is not None, name
    return found


def _links(result: AnalysisResult) -> dict[str, list[str]]:
    return {s.name: [d.name for d in s.implemented_interfaces] for s in result.structs}


# ---------------------------------------------------------------------------
# Resolved graph
# ---------------------------------------------------------------------------


class TestResolvedGraph:
    def test_summary_counts(self, analysed: tuple[AnalysisResult, PipelineResult]) -> None:
        _, summary = analysed
        assert summary.files == 5
        assert summary.packages == 4
        assert summary.skipped_packages == 0
        assert summary.interfaces == 3

    def test_pointer_receiver_repository(self, analysed: tuple[AnalysisResult, PipelineResult]) -> None:
        result, _ = analysed
        repo = _struct(result, "UserPostgresRepository")

        assert str(repo.position) == "internal/repositories/user_repository.go:8"
        assert [m.name for m in repo.methods] == ["Create", "Update", "Delete", "FindById", "FindAll"]
        assert [(d.name, str(d.position)) for d in repo.implemented_interfaces] == [
            ("Repository", "internal/interfaces/repository.go:3")
        ]
        find_by_id = repo.get_method("FindById")
        assert find_by_id is not None
        assert find_by_id.return_types == ["interface{}", "error"]
        assert [(d.name, d.position.line) for d in find_by_id.implemented_from] == [("Repository.FindById", 7)]

    def test_promoted_methods_satisfy_interface(self, analysed: tuple[AnalysisResult, PipelineResult]) -> None:
        result, _ = analysed
        audited = _struct(result, "AuditedRepository")

        assert audited.embedded_types == ["*go-analyzer-test/internal/repositories.UserPostgresRepository"]
        assert [m.name for m in audited.methods] == ["Create", "Update", "Delete", "FindById", "FindAll"]
        assert [d.name for d in audited.implemented_interfaces] == ["Repository"]
        assert audited.get_method("Create").position.path == "internal/repositories/user_repository.go"

    def test_generic_interface_needs_consistent_bindings(
        self, analysed: tuple[AnalysisResult, PipelineResult]
    ) -> None:
        result, _ = analysed
        assert [d.name for d in _struct(result, "MemStore").implemented_interfaces] == ["Store"]
        assert _struct(result, "MixedStore").implemented_interfaces == []

    def test_shape_scenario(self, analysed: tuple[AnalysisResult, PipelineResult]) -> None:
        result, _ = analysed
        assert [d.name for d in _struct(result, "Circle").implemented_interfaces] == ["Shape"]
        assert _struct(result, "Square").implemented_interfaces == []

    def test_find_implementors(self, analysed: tuple[AnalysisResult, PipelineResult]) -> None:
        result, _ = analysed
        assert [s.name for s in find_implementors(result, "Repository")] == [
            "AuditedRepository",
            "UserPostgresRepository",
        ]

    def test_run_is_repeatable(self, sample_repo: Path) -> None:
        first, _ = run_pipeline(sample_repo)
        second, _ = run_pipeline(sample_repo)
        assert first.to_json() == second.to_json()


# ---------------------------------------------------------------------------
# Serialization and portable re-resolution
# ---------------------------------------------------------------------------


class TestPortableRoundTrip:
    def test_json_round_trip(self, analysed: tuple[AnalysisResult, PipelineResult], tmp_path: Path) -> None:
        result, _ = analysed
        target = tmp_path / "analysis.json"
        dump_result(result, target)

        loaded = load_result(target)
        assert loaded == result
        assert all(m.signature is None for s in loaded.structs for m in s.methods)
        assert "signature" not in json.dumps(result.to_dict())

    def test_reresolve_keeps_authoritative_links(self, analysed: tuple[AnalysisResult, PipelineResult]) -> None:
        result, _ = analysed
        augmented = reresolve(result.to_dict())
        for name, links in _links(result).items():
            assert set(links) <= set(_links(augmented)[name])

    def test_heuristic_is_more_permissive_for_placeholders(
        self, analysed: tuple[AnalysisResult, PipelineResult]
    ) -> None:
        result, _ = analysed
        rebuilt = reresolve(result.to_json(), reset=True)
        assert _links(rebuilt)["MixedStore"] == ["Store"]
        assert _links(rebuilt)["UserPostgresRepository"] == ["Repository"]

    def test_summary_of_analysis(self, analysed: tuple[AnalysisResult, PipelineResult]) -> None:
        result, _ = analysed
        summary = {s["name"]: s for s in summarize_structs(result)}
        create = summary["UserPostgresRepository"]["methods"][0]
        assert create["implementingInterfaces"] == [
            {
                "interfaceName": "Repository",
                "methodName": "Create",
                "declarationPath": "internal/interfaces/repository.go:4",
            }
        ]
