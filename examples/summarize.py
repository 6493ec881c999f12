"""Summarization workflow and its evaluation.

    evalua run examples/summarize.py:summarize_workflow --input input.json
    evalua eval examples/summarize.py:summarize_eval
    evalua eval examples/summarize.py:summarize_eval --llm litellm --model gpt-4o-mini
"""

from pydantic import BaseModel, Field

from evalua import (
    Case,
    Dataset,
    JudgeInput,
    Score,
    define_eval,
    step,
    token_presence_judge,
    workflow,
)

MODEL = "gpt-4o-mini"


class SummarizeInput(BaseModel):
    text: str = Field(min_length=1)
    max_words: int = Field(default=80, gt=0, le=200)


class Summary(BaseModel):
    summary: str


@step("summarize_step", input=SummarizeInput, output=Summary)
async def summarize_step(ctx, input: SummarizeInput) -> Summary:
    result = await ctx.llm.generate(
        ctx,
        model=MODEL,
        messages=[
            {
                "role": "system",
                "content": (
                    f"Summarize the user's text in {input.max_words} words or fewer. "
                    "Prioritize clarity, avoid embellishment, and keep key terms intact. "
                    "Reply with the summary only."
                ),
            },
            {"role": "user", "content": input.text},
        ],
        temperature=0,
    )
    words = result.raw.split()
    return Summary(summary=" ".join(words[: input.max_words]))


@workflow("summarize_workflow", input=SummarizeInput, output=Summary)
async def summarize_workflow(ctx, input: SummarizeInput) -> Summary:
    return await summarize_step(ctx, input)


summarize_tiny = Dataset(
    name="summarize:tiny",
    cases=[
        Case(
            id="renewable-energy",
            input={
                "text": (
                    "Renewable energy sources such as solar, wind, and geothermal are becoming "
                    "cheaper than fossil fuels in many regions. However, the variability of these "
                    "sources poses challenges for grid reliability. Energy storage, demand "
                    "response, and upgraded transmission lines are critical to ensure stable "
                    "power supply as renewables scale."
                ),
                "max_words": 60,
            },
            expected=["renewable", "solar", "wind", "storage"],
        ),
        Case(
            id="climate-policy",
            input={
                "text": (
                    "Several cities have adopted climate action plans that combine emissions "
                    "reductions with resilience investments. These plans often emphasize public "
                    "transit expansion, building electrification, and green space development. "
                    "Progress is uneven because funding, political support, and community "
                    "engagement vary widely across regions."
                ),
                "max_words": 55,
            },
            expected=["climate action", "transit", "electrification", "green space"],
        ),
    ],
)


key_terms = token_presence_judge(
    metric="key_terms",
    content=lambda args: args.output.summary,
    tokens=lambda args: [str(t) for t in args.expected] if isinstance(args.expected, list) else [],
    normalize=str.lower,
)


def brevity(args: JudgeInput) -> Score:
    word_count = len(args.output.summary.split())
    limit = SummarizeInput.model_validate(args.input).max_words
    ratio = 0.0 if word_count == 0 else min(1.0, limit / word_count)
    return Score(
        metrics={"brevity": round(ratio, 2)},
        notes=f"Summary used {word_count} words (limit {limit})",
    )


summarize_eval = define_eval(
    name="summarize_eval",
    target=summarize_workflow,
    dataset=summarize_tiny,
    judges=[key_terms, brevity],
    thresholds={"key_terms": 0.75, "brevity": 0.6},
)
