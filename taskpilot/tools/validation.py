"""Parameter validation and discovery shared by every tool backend."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Optional

from .schema import ToolSpec, ValidationResult


def _is_number(value: Any) -> bool:
    if isinstance(value, float):
        return not math.isnan(value)
    return isinstance(value, int) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    """Zero-fraction floats such as 2.0 count as integers."""
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, int) and not isinstance(value, bool)


TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": lambda value: isinstance(value, str),
    "number": _is_number,
    "integer": _is_integer,
    "boolean": lambda value: isinstance(value, bool),
    "object": lambda value: isinstance(value, Mapping),
    "array": lambda value: isinstance(value, (list, tuple)),
    "null": lambda value: value is None,
}


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _matches_type(value: Any, declared: Any) -> bool:
    """Unknown or absent declared types pass. A list of types passes if any matches."""
    if isinstance(declared, str):
        check = TYPE_CHECKS.get(declared)
        return check is None or check(value)
    if isinstance(declared, (list, tuple)):
        known = [TYPE_CHECKS[name] for name in declared if isinstance(name, str) and name in TYPE_CHECKS]
        return not known or any(check(value) for check in known)
    return True


def validate_parameters(spec: Optional[ToolSpec], name: str, params: Any) -> ValidationResult:
    """Check params against a tool's input schema.

    Every problem is reported, not just the first one.
    """
    if spec is None:
        return ValidationResult(valid=False, errors=[f"unknown tool: {name}"])
    if not isinstance(params, Mapping):
        return ValidationResult(valid=False, errors=["parameters must be an object"])

    schema = spec.input_schema
    errors: List[str] = []

    for required in schema.required:
        if required not in params:
            errors.append(f"missing required parameter: {required}")

    for key, value in params.items():
        if key not in schema.properties:
            errors.append(f"unknown parameter: {key}")
            continue
        declared = schema.properties[key].get("type")
        if declared is not None and not _matches_type(value, declared):
            expected = declared if isinstance(declared, str) else "|".join(str(name) for name in declared)
            errors.append(
                f"invalid type for parameter {key}: expected {expected}, got {_type_name(value)}"
            )

    if errors:
        return ValidationResult(valid=False, errors=errors)
    return ValidationResult(valid=True)


def filter_catalog(specs: Iterable[ToolSpec], query: Optional[str], limit: int) -> List[ToolSpec]:
    """Case-insensitive substring match on name and description, capped at limit.

    A missing or blank query returns the catalog head.
    """
    limit = max(limit, 0)
    needle = (query or "").strip().lower()
    if not needle:
        return list(specs)[:limit]
    matches = [
        spec for spec in specs
        if needle in spec.name.lower() or needle in spec.description.lower()
    ]
    return matches[:limit]
