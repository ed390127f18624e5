"""Argument coercion: raw literal and variable values to typed argument values."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from minigraph.errors import CoercionError
from minigraph.parsing.query_parser import Argument, NullValue, Variable
from minigraph.types import ArgumentDefinition, InputObjectType, ScalarType


class _Unset:
    """Marker for a variable that was referenced but never provided."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


def value_from_ast(node: Any, variables: Mapping[str, Any]) -> Any:
    """Convert a parsed value into a plain Python value.

    Variables are replaced by their values; a variable that was not provided
    becomes UNSET (inside lists it becomes None, inside objects the key is
    dropped). The null literal becomes None.
    """
    if isinstance(node, Variable):
        return variables.get(node.name, UNSET)
    if isinstance(node, NullValue):
        return None
    if isinstance(node, list):
        items = [value_from_ast(item, variables) for item in node]
        return [None if item is UNSET else item for item in items]
    if isinstance(node, dict):
        result = {}
        for key, item in node.items():
            value = value_from_ast(item, variables)
            if value is not UNSET:
                result[key] = value
        return result
    return node


def arguments_from_ast(arguments: list[Argument], variables: Mapping[str, Any]) -> dict[str, Any]:
    """Return the raw argument map of a field; unprovided variables are left out."""
    raw: dict[str, Any] = {}
    for argument in arguments:
        value = value_from_ast(argument.value, variables)
        if value is not UNSET:
            raw[argument.name] = value
    return raw


def coerce_arguments(
    declared: Mapping[str, ArgumentDefinition],
    raw: Mapping[str, Any],
    *,
    strict: bool = True,
) -> dict[str, Any]:
    """Coerce raw argument values against their declared arguments.

    Declared arguments are checked in declaration order and the first
    failure aborts the whole call, so the result is never partial. Missing
    optional arguments are left out of the result.

    Args:
        declared: Argument descriptors of a field, by name.
        raw: Raw values by argument name (literals with variables replaced).
        strict: Reject keys an input object does not declare. When False,
            such keys are ignored.

    Returns:
        The typed argument values, by name.

    Raises:
        CoercionError: If a required argument is missing or null, or a value
            does not match its declared type.
    """
    return _coerce_fields(declared, raw, prefix="", strict=strict)


def _coerce_fields(
    declared: Mapping[str, ArgumentDefinition],
    raw: Mapping[str, Any],
    prefix: str,
    strict: bool,
) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for name, arg in declared.items():
        label = f"{prefix}{name}"
        if name not in raw:
            if arg.required:
                raise CoercionError(f"missing required argument {label}")
            continue
        result[name] = coerce_value(arg, raw[name], label, strict=strict)
    return result


def coerce_value(arg: ArgumentDefinition, value: Any, label: str, *, strict: bool = True) -> Any:
    """Coerce a single value against an argument (or input field) descriptor."""
    if value is None:
        if arg.required:
            raise CoercionError(f"argument {label} must not be null")
        return None

    type_def = arg.type_def
    if isinstance(type_def, ScalarType):
        if not type_def.accepts(value):
            raise CoercionError(f"type mismatch for {label}")
        return type_def.coerce(value)

    if isinstance(type_def, InputObjectType):
        if not isinstance(value, Mapping):
            raise CoercionError(f"type mismatch for {label}")
        result = _coerce_fields(type_def.fields, value, prefix=f"{label}.", strict=strict)
        if strict:
            for key in value:
                if key not in type_def.fields:
                    raise CoercionError(f"unknown field {key} for {type_def.name}")
        return result

    raise CoercionError(f"type mismatch for {label}")
