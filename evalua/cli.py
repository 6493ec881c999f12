"""
Command-line entry point.

    evalua run <target> [--input FILE]     execute a step/workflow, print {output, record}
    evalua eval <spec>                     run an evaluation, print the EvalRunResult

Targets are ``path/to/module.py[:attr]`` or ``package.module[:attr]``.
Exit codes: ``run`` 0 on success, 1 on error; ``eval`` 0 if passed, 1 otherwise.
"""

import argparse
import asyncio
import importlib
import importlib.util
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic_core import to_jsonable_python

from evalua.config import RuntimeConfig
from evalua.errors import TargetLoadError
from evalua.evaluation.runner import EvalSpec, run_eval
from evalua.llm.client import LLMClient, create_echo_llm
from evalua.runtime.runtime import Runtime
from evalua.runtime.step import Step

logger = logging.getLogger(__name__)

_PREFERRED_NAMES = ("default", "workflow", "step", "spec", "evaluation")


def _import_module(ref: str) -> Any:
    if ref.endswith(".py") or "/" in ref or "\\" in ref:
        path = Path(ref).resolve()
        if not path.exists():
            raise TargetLoadError(f"No such file: {ref}")
        module_name = f"_evalua_target_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise TargetLoadError(f"Cannot import {ref}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
        return module
    try:
        return importlib.import_module(ref)
    except ImportError as e:
        raise TargetLoadError(f"Cannot import {ref}: {e}") from e


def load_object(ref: str, kind: type) -> Any:
    """Resolve ``module[:attr]`` to an instance of ``kind``."""
    module_ref, _, attr = ref.partition(":")
    module = _import_module(module_ref)

    if attr:
        obj = getattr(module, attr, None)
        if not isinstance(obj, kind):
            raise TargetLoadError(f"{ref} is not a {kind.__name__}")
        return obj

    for name in _PREFERRED_NAMES:
        obj = getattr(module, name, None)
        if isinstance(obj, kind):
            return obj
    for obj in vars(module).values():
        if isinstance(obj, kind):
            return obj
    raise TargetLoadError(f"No {kind.__name__} found in {module_ref}")


def _read_input(path: str | None) -> Any:
    if not path:
        return {}
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _build_llm(args: argparse.Namespace, config: RuntimeConfig) -> LLMClient:
    if args.llm == "litellm":
        from evalua.llm.litellm import create_litellm_llm

        return create_litellm_llm(**({"model": config.model} if config.model else {}))
    return create_echo_llm()


def _build_runtime(args: argparse.Namespace) -> Runtime:
    config = RuntimeConfig.from_env()
    if args.trace_dir:
        config.trace_dir = Path(args.trace_dir)
    if args.cache_dir:
        config.cache_dir = Path(args.cache_dir)
    if args.model:
        config.model = args.model
    return Runtime.from_config(config, llm=_build_llm(args, config))


def _print_json(value: Any) -> None:
    print(json.dumps(to_jsonable_python(value, serialize_unknown=True), indent=2))


def cmd_run(args: argparse.Namespace) -> int:
    """Execute a step or workflow once."""
    try:
        target = load_object(args.target, Step)
        runtime = _build_runtime(args)
        result = asyncio.run(runtime.run(target, _read_input(args.input)))
    except Exception as e:
        logger.debug("Run failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _print_json({"output": result.output, "record": result.record})
    return 0


def cmd_eval(args: argparse.Namespace) -> int:
    """Run an evaluation spec."""
    try:
        spec = load_object(args.spec, EvalSpec)
        runtime = _build_runtime(args)
        result = asyncio.run(run_eval(spec, runtime))
    except Exception as e:
        logger.debug("Evaluation failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _print_json(result)
    if not result.passed:
        print(
            f"Eval failed: below threshold: {', '.join(result.failed_thresholds)}",
            file=sys.stderr,
        )
        return 1
    return 0


def _add_runtime_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--llm",
        choices=["echo", "litellm"],
        default="echo",
        help="Generation backend (default: echo)",
    )
    parser.add_argument("--model", help="Model override for the litellm backend")
    parser.add_argument("--trace-dir", help="Directory for trace files")
    parser.add_argument("--cache-dir", help="Enable the file cache in this directory")


def register_commands(subparsers: argparse._SubParsersAction) -> None:
    """Register the run/eval commands."""

    run_parser = subparsers.add_parser("run", help="Execute a step or workflow")
    run_parser.add_argument("target", help="module.py[:attr] or package.module[:attr]")
    run_parser.add_argument("--input", help="JSON file with the input")
    _add_runtime_options(run_parser)
    run_parser.set_defaults(func=cmd_run)

    eval_parser = subparsers.add_parser("eval", help="Run an evaluation")
    eval_parser.add_argument("spec", help="module.py[:attr] or package.module[:attr]")
    _add_runtime_options(eval_parser)
    eval_parser.set_defaults(func=cmd_eval)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evalua",
        description="Evaluation-driven workflow toolkit",
    )
    parser.add_argument("--log-level", help="Logging level (default: EVALUA_LOG_LEVEL or WARNING)")
    subparsers = parser.add_subparsers(dest="command", required=True)
    register_commands(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    level = args.log_level or RuntimeConfig.from_env().log_level
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return args.func(args)
