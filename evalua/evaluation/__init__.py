"""Evaluation harness: datasets, judges and threshold-based pass/fail."""

from evalua.evaluation.judges import Judge, JudgeInput, exact_match_judge, token_presence_judge
from evalua.evaluation.runner import (
    EvalSpec,
    aggregate_metrics,
    check_thresholds,
    define_eval,
    run_eval,
)
from evalua.evaluation.schemas import Case, Dataset, EvalCaseResult, EvalRunResult, Score

__all__ = [
    "Judge",
    "JudgeInput",
    "exact_match_judge",
    "token_presence_judge",
    "EvalSpec",
    "aggregate_metrics",
    "check_thresholds",
    "define_eval",
    "run_eval",
    "Case",
    "Dataset",
    "EvalCaseResult",
    "EvalRunResult",
    "Score",
]
