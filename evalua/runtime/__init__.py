"""Runtime core: context, step/workflow wrappers and the run orchestrator."""

from evalua.runtime.context import ExecutionContext, Policies
from evalua.runtime.runtime import RunRecord, RunResult, Runtime, create_runtime
from evalua.runtime.step import Step, Workflow, step, workflow

__all__ = [
    "ExecutionContext",
    "Policies",
    "RunRecord",
    "RunResult",
    "Runtime",
    "create_runtime",
    "Step",
    "Workflow",
    "step",
    "workflow",
]
