"""Schema validation at span boundaries.

A schema is anything pydantic's ``TypeAdapter`` accepts: a ``BaseModel``
subclass, a plain type, or an ``Annotated`` type carrying constraints.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.errors import PydanticInvalidForJsonSchema

from evalua.errors import Direction, ValidationError
from evalua.tracing import Trace, ValidationErrorEvent

_adapters: dict[Any, TypeAdapter[Any]] = {}


def adapter_for(schema: Any) -> TypeAdapter[Any]:
    try:
        adapter = _adapters.get(schema)
    except TypeError:
        return TypeAdapter(schema)
    if adapter is None:
        adapter = _adapters[schema] = TypeAdapter(schema)
    return adapter


def schema_identity(schema: Any) -> Any:
    """Stable description of a schema, used in cache keys."""
    if schema is None:
        return None
    try:
        return adapter_for(schema).json_schema()
    except PydanticInvalidForJsonSchema:
        return repr(schema)


def issues_from(exc: PydanticValidationError) -> list[dict[str, Any]]:
    """Structured, JSON-safe issue list (loc, msg, type, input, ctx)."""
    return json.loads(exc.json(include_url=False))


def check(schema: Any, value: Any, direction: Direction) -> Any:
    """Validate without tracing. Raises ``ValidationError``."""
    try:
        return adapter_for(schema).validate_python(value)
    except PydanticValidationError as e:
        raise ValidationError(issues_from(e), direction) from e


def validate(schema: Any, value: Any, direction: Direction, trace: Trace) -> Any:
    """Validate ``value`` and return the coerced result.

    On failure emits one ``validation_error`` event on ``trace``'s span and
    raises ``ValidationError`` carrying the same issue list.
    """
    try:
        return check(schema, value, direction)
    except ValidationError as e:
        trace.emit(
            ValidationErrorEvent(
                run_id=trace.run_id,
                span_id=trace.span_id,
                direction=direction,
                issues=e.issues,
            )
        )
        raise
