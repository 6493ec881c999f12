"""
Evaluation harness: run a target over a dataset, score each case with the
judges, average each metric across cases and compare against thresholds.

Cases run strictly one after another. A case whose run raises aborts the
whole evaluation; the error reaches the caller unchanged.
"""

import inspect
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from evalua.errors import MetricCollisionError
from evalua.evaluation.judges import Judge, JudgeInput
from evalua.evaluation.schemas import Dataset, EvalCaseResult, EvalRunResult, Score
from evalua.runtime.runtime import Runtime
from evalua.runtime.step import Step

logger = logging.getLogger(__name__)


@dataclass
class EvalSpec:
    """What to evaluate, on which data, how to score it and what counts as passing."""

    name: str
    target: Step
    dataset: Dataset
    judges: list[Judge] = field(default_factory=list)
    thresholds: dict[str, float] = field(default_factory=dict)


def define_eval(
    name: str,
    target: Step,
    dataset: Dataset,
    judges: Sequence[Judge] = (),
    thresholds: dict[str, float] | None = None,
) -> EvalSpec:
    return EvalSpec(
        name=name,
        target=target,
        dataset=dataset,
        judges=list(judges),
        thresholds=dict(thresholds or {}),
    )


def aggregate_metrics(cases: Sequence[EvalCaseResult]) -> dict[str, float]:
    """Arithmetic mean of each metric over the cases that reported it."""
    values: dict[str, list[float]] = {}
    for case in cases:
        for metric, value in case.metrics.items():
            values.setdefault(metric, []).append(value)
    return {metric: sum(vs) / len(vs) for metric, vs in values.items()}


def check_thresholds(
    aggregates: dict[str, float], thresholds: dict[str, float]
) -> list[str]:
    """Names of thresholded metrics that are missing, NaN or below their threshold."""
    failed = []
    for metric, threshold in thresholds.items():
        achieved = aggregates.get(metric)
        if achieved is None or not achieved >= threshold:
            failed.append(metric)
    return failed


async def _score(judge: Judge, args: JudgeInput) -> Score:
    result = judge(args)
    if inspect.isawaitable(result):
        result = await result
    return Score.model_validate(result)


async def run_eval(spec: EvalSpec, runtime: Runtime) -> EvalRunResult:
    """Execute ``spec`` through ``runtime`` and report pass/fail."""
    logger.info(
        f"Evaluation {spec.name!r} started: {len(spec.dataset.cases)} cases "
        f"from {spec.dataset.name!r}"
    )
    cases: list[EvalCaseResult] = []

    for case in spec.dataset.cases:
        result = await runtime.run(spec.target, case.input)
        args = JudgeInput(
            input=case.input,
            output=result.output,
            expected=case.expected,
            case=case,
            record=result.record,
        )

        metrics: dict[str, float] = {}
        notes: list[str] = []
        artifacts: list[dict] = []
        for judge in spec.judges:
            score = await _score(judge, args)
            for metric, value in score.metrics.items():
                if metric in metrics:
                    raise MetricCollisionError(case.id, metric)
                metrics[metric] = value
            if score.notes:
                notes.append(score.notes)
            if score.artifacts:
                artifacts.append(score.artifacts)

        logger.debug(f"Case {case.id!r} scored {metrics}")
        cases.append(
            EvalCaseResult(
                id=case.id,
                run_id=result.record.run_id,
                metrics=metrics,
                notes=notes or None,
                artifacts=artifacts or None,
            )
        )

    aggregates = aggregate_metrics(cases)
    failed = check_thresholds(aggregates, spec.thresholds)
    passed = not failed
    logger.info(
        f"Evaluation {spec.name!r} {'passed' if passed else 'failed'}: {aggregates}"
        + (f" (below threshold: {', '.join(failed)})" if failed else "")
    )

    return EvalRunResult(
        name=spec.name,
        dataset=spec.dataset.name,
        cases=cases,
        aggregates=aggregates,
        thresholds=dict(spec.thresholds),
        failed_thresholds=failed,
        passed=passed,
    )
