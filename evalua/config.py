"""Runtime configuration.

Values come from keyword arguments or from the environment:

    EVALUA_TRACE_DIR    directory for {run_id}.jsonl trace files (default ./traces)
    EVALUA_CACHE_DIR    enables the file cache when set
    EVALUA_MODEL        model override for the litellm backend
    EVALUA_LOG_LEVEL    logging level for the CLI (default WARNING)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from evalua.runtime.context import Policies


@dataclass
class RuntimeConfig:
    trace_dir: Path = field(default_factory=lambda: Path.cwd() / "traces")
    cache_dir: Path | None = None
    model: str | None = None
    log_level: str = "WARNING"
    policies: Policies = field(default_factory=Policies)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> RuntimeConfig:
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("EVALUA_TRACE_DIR"):
            config.trace_dir = Path(env["EVALUA_TRACE_DIR"])
        if env.get("EVALUA_CACHE_DIR"):
            config.cache_dir = Path(env["EVALUA_CACHE_DIR"])
        if env.get("EVALUA_MODEL"):
            config.model = env["EVALUA_MODEL"]
        if env.get("EVALUA_LOG_LEVEL"):
            config.log_level = env["EVALUA_LOG_LEVEL"].upper()
        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "trace_dir": str(self.trace_dir),
            "cache_dir": str(self.cache_dir) if self.cache_dir else None,
            "model": self.model,
            "log_level": self.log_level,
            "policies": self.policies.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RuntimeConfig:
        return cls(
            trace_dir=Path(data.get("trace_dir") or Path.cwd() / "traces"),
            cache_dir=Path(data["cache_dir"]) if data.get("cache_dir") else None,
            model=data.get("model"),
            log_level=data.get("log_level", "WARNING"),
            policies=Policies.from_dict(data.get("policies", {})),
        )
