"""Declarative tool argument schemas.

Each tool declares its arguments with one descriptor per field. `validate_arguments` checks a raw
payload against a schema and returns either the typed, defaulted value or every violation found.
Routine validation failures are results, not exceptions.

The same descriptors render the JSON Schema advertised to MCP clients.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

import httpx

_MISSING: Any = object()


@dataclass(frozen=True, slots=True)
class StringArg:
    description: str = ""
    required: bool = False
    default: Any = _MISSING
    min_length: int | None = None
    choices: tuple[str, ...] | None = None
    url: bool = False


@dataclass(frozen=True, slots=True)
class IntegerArg:
    description: str = ""
    required: bool = False
    default: Any = _MISSING
    minimum: int | None = None
    maximum: int | None = None


@dataclass(frozen=True, slots=True)
class BooleanArg:
    description: str = ""
    required: bool = False
    default: Any = _MISSING


@dataclass(frozen=True, slots=True)
class ArrayArg:
    items: Arg | None = None
    description: str = ""
    required: bool = False
    default: Any = _MISSING
    min_items: int | None = None


@dataclass(frozen=True, slots=True)
class ObjectArg:
    """An object argument. Without `properties`, any string-keyed object is accepted."""

    properties: Mapping[str, Arg] | None = None
    description: str = ""
    required: bool = False
    default: Any = _MISSING


Arg = Union[StringArg, IntegerArg, BooleanArg, ArrayArg, ObjectArg]


@dataclass(frozen=True, slots=True)
class ToolSchema:
    """Static argument schema for a single tool."""

    properties: Mapping[str, Arg] = field(default_factory=dict)

    def to_json_schema(self) -> dict[str, Any]:
        """Render as a JSON Schema object for MCP tool listings."""
        return _object_json_schema(self.properties)


@dataclass(frozen=True, slots=True)
class Violation:
    path: str
    message: str

    def __str__(self) -> str:
        return f"Field '{self.path}' {self.message}"


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Either a validated argument mapping or the violations that prevented it."""

    value: dict[str, Any] | None
    violations: tuple[Violation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations

    def describe(self) -> str:
        return "\n".join(str(v) for v in self.violations)


def has_default(arg: Arg) -> bool:
    return arg.default is not _MISSING


def validate_arguments(schema: ToolSchema, raw: object) -> ValidationResult:
    """Validate and default a raw argument payload.

    Defaults apply only to keys that are entirely absent. An explicit null for an optional field
    stays None. Unknown keys are dropped. On any violation no value is returned.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        return ValidationResult(value=None, violations=(Violation("arguments", "must be an object"),))

    violations: list[Violation] = []
    value = _check_properties(schema.properties, raw, "", violations)
    if violations:
        return ValidationResult(value=None, violations=tuple(violations))
    return ValidationResult(value=value)


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _check_properties(
    properties: Mapping[str, Arg],
    raw: dict[str, Any],
    prefix: str,
    violations: list[Violation],
) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for name, arg in properties.items():
        path = _join(prefix, name)
        if name not in raw:
            if has_default(arg):
                out[name] = copy.deepcopy(arg.default)
            elif arg.required:
                violations.append(Violation(path, "is required"))
            continue

        v = raw[name]
        if v is None:
            if arg.required:
                violations.append(Violation(path, "is required"))
            else:
                out[name] = None
            continue

        out[name] = _check_value(arg, v, path, violations)
    return out


def _check_value(arg: Arg, v: Any, path: str, violations: list[Violation]) -> Any:
    if isinstance(arg, StringArg):
        return _check_string(arg, v, path, violations)
    if isinstance(arg, IntegerArg):
        return _check_integer(arg, v, path, violations)
    if isinstance(arg, BooleanArg):
        if not isinstance(v, bool):
            violations.append(Violation(path, "must be a boolean"))
        return v
    if isinstance(arg, ArrayArg):
        return _check_array(arg, v, path, violations)
    if isinstance(arg, ObjectArg):
        if not isinstance(v, dict):
            violations.append(Violation(path, "must be an object"))
            return v
        if arg.properties is None:
            return dict(v)
        return _check_properties(arg.properties, v, path, violations)
    raise TypeError(f"Unsupported argument descriptor: {type(arg).__name__}")


def _check_string(arg: StringArg, v: Any, path: str, violations: list[Violation]) -> Any:
    if not isinstance(v, str):
        violations.append(Violation(path, "must be a string"))
        return v
    if arg.min_length is not None and len(v) < arg.min_length:
        violations.append(Violation(path, f"must be at least {arg.min_length} characters"))
    if arg.choices is not None and v not in arg.choices:
        violations.append(Violation(path, f"must be one of: {', '.join(arg.choices)}"))
    if arg.url and not _looks_like_url(v):
        violations.append(Violation(path, "must be a valid URL"))
    return v


def _check_integer(arg: IntegerArg, v: Any, path: str, violations: list[Violation]) -> Any:
    if isinstance(v, float) and v.is_integer():
        v = int(v)
    if isinstance(v, bool) or not isinstance(v, int):
        violations.append(Violation(path, "must be an integer"))
        return v
    if arg.minimum is not None and v < arg.minimum:
        violations.append(Violation(path, f"must be >= {arg.minimum}"))
    if arg.maximum is not None and v > arg.maximum:
        violations.append(Violation(path, f"must be <= {arg.maximum}"))
    return v


def _check_array(arg: ArrayArg, v: Any, path: str, violations: list[Violation]) -> Any:
    if not isinstance(v, list):
        violations.append(Violation(path, "must be an array"))
        return v
    if arg.min_items is not None and len(v) < arg.min_items:
        violations.append(Violation(path, f"must contain at least {arg.min_items} items"))
    if arg.items is None:
        return list(v)

    checked = []
    for i, item in enumerate(v):
        item_path = f"{path}[{i}]"
        if item is None:
            violations.append(Violation(item_path, "must not be null"))
            continue
        checked.append(_check_value(arg.items, item, item_path, violations))
    return checked


def _looks_like_url(value: str) -> bool:
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, ValueError):
        return False
    return url.scheme in ("http", "https") and bool(url.host)


def _object_json_schema(properties: Mapping[str, Arg]) -> dict[str, Any]:
    out: dict[str, Any] = {
        "type": "object",
        "properties": {name: _arg_json_schema(arg) for name, arg in properties.items()},
    }
    required = [name for name, arg in properties.items() if arg.required and not has_default(arg)]
    if required:
        out["required"] = required
    return out


def _arg_json_schema(arg: Arg) -> dict[str, Any]:
    spec: dict[str, Any]
    if isinstance(arg, StringArg):
        spec = {"type": "string"}
        if arg.min_length is not None:
            spec["minLength"] = arg.min_length
        if arg.choices is not None:
            spec["enum"] = list(arg.choices)
        if arg.url:
            spec["format"] = "uri"
    elif isinstance(arg, IntegerArg):
        spec = {"type": "integer"}
        if arg.minimum is not None:
            spec["minimum"] = arg.minimum
        if arg.maximum is not None:
            spec["maximum"] = arg.maximum
    elif isinstance(arg, BooleanArg):
        spec = {"type": "boolean"}
    elif isinstance(arg, ArrayArg):
        spec = {"type": "array"}
        if arg.items is not None:
            spec["items"] = _arg_json_schema(arg.items)
        if arg.min_items is not None:
            spec["minItems"] = arg.min_items
    else:
        spec = _object_json_schema(arg.properties) if arg.properties is not None else {"type": "object"}

    if arg.description:
        spec["description"] = arg.description
    if has_default(arg):
        spec["default"] = arg.default
    return spec
