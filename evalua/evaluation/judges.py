"""Judges - scoring functions over one case's input, output and expected value.

A judge is any callable taking a ``JudgeInput`` and returning a ``Score``,
a dict with the same fields, or an awaitable of either.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from evalua.evaluation.schemas import Case, Score

if TYPE_CHECKING:
    from evalua.runtime.runtime import RunRecord


@dataclass(frozen=True)
class JudgeInput:
    input: Any
    output: Any
    expected: Any = None
    case: Case | None = None
    record: RunRecord | None = None


ScoreLike = Score | dict[str, Any]
Judge = Callable[[JudgeInput], ScoreLike | Awaitable[ScoreLike]]

ContentFn = Callable[[JudgeInput], "str | tuple[str, str]"]
TokensFn = Callable[[JudgeInput], list[str]]


def _identity(value: str) -> str:
    return value


def token_presence_judge(
    metric: str,
    content: ContentFn,
    tokens: TokensFn,
    normalize: Callable[[str], str] | None = None,
    score_when_no_tokens: float = 1.0,
) -> Judge:
    """Score the fraction of expected tokens found in some text.

    Args:
        metric: Metric name to report.
        content: Returns the text to search, or a ``(text, label)`` pair; the
            label prefixes the notes.
        tokens: Returns the tokens that should appear.
        normalize: Applied to both text and tokens before matching.
        score_when_no_tokens: Score reported when ``tokens`` is empty.
    """
    normalize = normalize or _identity

    def judge(args: JudgeInput) -> Score:
        found = content(args)
        label = None
        if isinstance(found, tuple):
            text, label = found
        else:
            text = found
        wanted = tokens(args)
        haystack = normalize(text or "")
        hits = [t for t in wanted if normalize(t or "") in haystack]
        score = len(hits) / len(wanted) if wanted else score_when_no_tokens
        notes = f"Matched {len(hits)}/{len(wanted)} tokens"
        return Score(
            metrics={metric: round(score, 2)},
            notes=f"{label}: matched {len(hits)}/{len(wanted)} tokens" if label else notes,
        )

    return judge


def exact_match_judge(
    metric: str = "exact_match",
    content: Callable[[JudgeInput], Any] | None = None,
) -> Judge:
    """1.0 when the (projected) output equals the expected value, else 0.0."""

    def judge(args: JudgeInput) -> Score:
        actual = content(args) if content else args.output
        return Score(metrics={metric: 1.0 if actual == args.expected else 0.0})

    return judge
