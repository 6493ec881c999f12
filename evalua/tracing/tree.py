"""Rebuild the span tree of a run from its flat event stream."""

from __future__ import annotations

from dataclasses import dataclass, field

from evalua.tracing.schemas import SpanEnd, SpanStart, TraceEvent


@dataclass
class SpanNode:
    span_id: str
    name: str
    parent_span_id: str | None
    start: SpanStart
    end: SpanEnd | None = None
    children: list[SpanNode] = field(default_factory=list)

    @property
    def closed(self) -> bool:
        return self.end is not None

    @property
    def error(self) -> str | None:
        return self.end.error if self.end else None

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()


def build_span_tree(events: list[TraceEvent]) -> SpanNode:
    """Return the root span node of a single run.

    Raises:
        ValueError: if the stream is not a well-formed tree: no root or more
            than one, a span ended twice or before it started, an end that
            does not match its start, or a parent that was never opened.
    """
    nodes: dict[str, SpanNode] = {}
    roots: list[SpanNode] = []

    for event in events:
        if isinstance(event, SpanStart):
            if event.span_id in nodes:
                raise ValueError(f"Span {event.span_id} started twice")
            node = SpanNode(event.span_id, event.name, event.parent_span_id, event)
            nodes[event.span_id] = node
            if event.parent_span_id is None:
                roots.append(node)
            else:
                parent = nodes.get(event.parent_span_id)
                if parent is None:
                    raise ValueError(
                        f"Span {event.span_id} has unknown parent {event.parent_span_id}"
                    )
                parent.children.append(node)
        elif isinstance(event, SpanEnd):
            node = nodes.get(event.span_id)
            if node is None:
                raise ValueError(f"Span {event.span_id} ended before it started")
            if node.end is not None:
                raise ValueError(f"Span {event.span_id} ended twice")
            if node.name != event.name or node.parent_span_id != event.parent_span_id:
                raise ValueError(f"Span {event.span_id} end does not match its start")
            node.end = event

    if len(roots) != 1:
        raise ValueError(f"Expected exactly one root span, found {len(roots)}")
    return roots[0]
