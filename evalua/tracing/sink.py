"""Trace sinks - where a run's event stream goes.

Storage layout for the JSONL sink:
    {trace_dir}/
      {run_id}.jsonl     # one event per line, in emission order

The JSONL sink buffers events and writes them in one pass on ``flush()`` /
``close()``. The orchestrator closes the sink before it reports the run, so
every event is on disk by the time the caller sees a RunRecord.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic_core import to_jsonable_python

from evalua.tracing.schemas import TraceEvent, parse_event

logger = logging.getLogger(__name__)


def dump_event(event: TraceEvent) -> str:
    """Serialize one event as a single JSON line (no trailing newline)."""
    payload = to_jsonable_python(event, exclude_none=True, serialize_unknown=True)
    return json.dumps(payload, ensure_ascii=False)


class TraceSink(ABC):
    """Append-only destination for one run's trace events."""

    @abstractmethod
    def write(self, event: TraceEvent) -> None:
        """Append an event."""

    @abstractmethod
    def close(self) -> None:
        """Make everything written so far durable and release resources."""

    def flush(self) -> None:
        """Make everything written so far durable, keeping the sink open."""


class SharedTraceSink(TraceSink):
    """Caller-owned sink reused across runs.

    ``close()`` only flushes the wrapped sink; the caller closes it when done.
    """

    def __init__(self, sink: TraceSink) -> None:
        self.sink = sink

    def write(self, event: TraceEvent) -> None:
        self.sink.write(event)

    def flush(self) -> None:
        self.sink.flush()

    def close(self) -> None:
        self.sink.flush()


class InMemoryTraceSink(TraceSink):
    """Keeps events in a list. Useful for tests and programmatic inspection."""

    def __init__(self) -> None:
        self.events: list[TraceEvent] = []
        self.closed = False

    def write(self, event: TraceEvent) -> None:
        self.events.append(event)

    def close(self) -> None:
        self.closed = True

    def of_type(self, event_type: str) -> list[TraceEvent]:
        return [e for e in self.events if e.type == event_type]


class JsonlTraceSink(TraceSink):
    """Buffered JSONL file sink, one file per run."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._buffer: list[str] = []
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    def write(self, event: TraceEvent) -> None:
        if self._closed:
            raise RuntimeError(f"Trace sink {self._path} is closed")
        self._buffer.append(dump_event(event))

    def flush(self) -> None:
        """Append buffered events to the file."""
        if not self._buffer:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "a", encoding="utf-8") as f:
            for line in self._buffer:
                f.write(line)
                f.write("\n")
        logger.debug(f"Flushed {len(self._buffer)} trace events to {self._path}")
        self._buffer.clear()

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        self._closed = True


def read_trace(path: Path | str) -> list[TraceEvent]:
    """Load a JSONL trace file back into events."""
    events: list[TraceEvent] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                events.append(parse_event(line))
    return events
