"""Error taxonomy for schema construction and request execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PathSegment = str | int


@dataclass
class ExecutionError:
    """An error reported in a request result.

    ``path`` lists the response keys (and list indices) leading to the field
    that failed. ``position`` is the character offset in the request string,
    when the error can be tied to a token.
    """

    message: str
    path: list[PathSegment] = field(default_factory=list)
    position: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "path": list(self.path)}


class MinigraphError(Exception):
    """Base class for all minigraph errors."""


class ConstructionError(MinigraphError):
    """The schema is malformed. Raised while building it."""


class ParseError(MinigraphError, SyntaxError):
    """The request string is not valid query-language syntax."""

    def __init__(self, message: str, position: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.position = position

    def __str__(self) -> str:
        return self.message


class ValidationError(MinigraphError):
    """The request does not fit the schema. Carries every violation found."""

    def __init__(self, violations: list[ExecutionError]) -> None:
        self.violations = violations
        summary = "; ".join(v.message for v in violations)
        super().__init__(f"Request failed validation: {summary}")


class CoercionError(MinigraphError):
    """An argument value does not match its declared type."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ResolutionError(MinigraphError):
    """A resolver failed, or returned a value that does not fit the field type."""

    def __init__(self, message: str, path: list[PathSegment] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = list(path) if path else []
