"""
Evaluation schemas: datasets of labeled cases, judge scores and run results.
"""

from typing import Any

from pydantic import BaseModel, Field


class Case(BaseModel):
    """One labeled input."""

    id: str
    input: Any
    expected: Any = None
    tags: list[str] = Field(default_factory=list)
    rubric: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class Dataset(BaseModel):
    """A named, ordered collection of cases."""

    name: str
    cases: list[Case] = Field(default_factory=list)


class Score(BaseModel):
    """What a judge returns for one case."""

    metrics: dict[str, float]
    notes: str | None = None
    artifacts: dict[str, Any] | None = None


class EvalCaseResult(BaseModel):
    id: str
    run_id: str = ""
    metrics: dict[str, float] = Field(default_factory=dict)
    notes: list[str] | None = None
    artifacts: list[dict[str, Any]] | None = None


class EvalRunResult(BaseModel):
    """
    Outcome of one evaluation run.

    ``aggregates`` holds the mean of each metric over the cases that reported
    it; ``passed`` is true only when every thresholded metric has an
    aggregate at or above its threshold.
    """

    name: str
    dataset: str
    cases: list[EvalCaseResult] = Field(default_factory=list)
    aggregates: dict[str, float] = Field(default_factory=dict)
    thresholds: dict[str, float] = Field(default_factory=dict)
    failed_thresholds: list[str] = Field(default_factory=list)
    passed: bool = False
