"""evalua - typed, traced steps and workflows with dataset-driven evaluation.

- runtime: ExecutionContext, Step/Workflow wrappers, Runtime orchestrator
- tracing: span tree + JSONL event stream per run
- llm: cache-aware generation client and backend responders
- tools: schema-validated tool registry
- evaluation: datasets, judges, aggregates and thresholds
"""

from evalua.cache import MISSING, Cache, FileCache, InMemoryCache
from evalua.config import RuntimeConfig
from evalua.errors import (
    EvaluaError,
    MetricCollisionError,
    TargetLoadError,
    ToolError,
    ValidationError,
)
from evalua.evaluation import (
    Case,
    Dataset,
    EvalRunResult,
    EvalSpec,
    JudgeInput,
    Score,
    define_eval,
    run_eval,
    token_presence_judge,
)
from evalua.llm import (
    GenerateRequest,
    GenerateResult,
    ProgrammableLLMClient,
    create_echo_llm,
    create_static_llm,
)
from evalua.runtime import (
    ExecutionContext,
    Policies,
    RunRecord,
    RunResult,
    Runtime,
    Step,
    Workflow,
    create_runtime,
    step,
    workflow,
)
from evalua.tools import Tool, ToolRegistry, create_tool_registry, tool
from evalua.tracing import InMemoryTraceSink, JsonlTraceSink, Trace, TraceSink

__version__ = "0.1.0"

__all__ = [
    "MISSING",
    "Cache",
    "FileCache",
    "InMemoryCache",
    "RuntimeConfig",
    "EvaluaError",
    "MetricCollisionError",
    "TargetLoadError",
    "ToolError",
    "ValidationError",
    "Case",
    "Dataset",
    "EvalRunResult",
    "EvalSpec",
    "JudgeInput",
    "Score",
    "define_eval",
    "run_eval",
    "token_presence_judge",
    "GenerateRequest",
    "GenerateResult",
    "ProgrammableLLMClient",
    "create_echo_llm",
    "create_static_llm",
    "ExecutionContext",
    "Policies",
    "RunRecord",
    "RunResult",
    "Runtime",
    "Step",
    "Workflow",
    "create_runtime",
    "step",
    "workflow",
    "Tool",
    "ToolRegistry",
    "create_tool_registry",
    "tool",
    "InMemoryTraceSink",
    "JsonlTraceSink",
    "Trace",
    "TraceSink",
]
