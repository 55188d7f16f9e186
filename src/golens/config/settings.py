"""Run-level settings for an analysis pass."""

from __future__ import annotations

from dataclasses import dataclass

@dataclass(frozen=True)
class AnalysisConfig:
    """Knobs for a single analysis run.

    ``position_segments`` controls how many trailing path components are kept
    in every reported :class:`~golens.core.graph.model.Position`.
    """

    include_tests: bool = False
    position_segments: int = 3
    max_workers: int = 8
    respect_gitignore: bool = True

    def __post_init__(self) -> None:
        if self.position_segments < 1:
            raise ValueError(f"position_segments must be >= 1, got {self.position_segments}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
