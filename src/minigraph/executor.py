"""Executor for query-language requests: parse, validate, execute, assemble."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping, Sequence
from contextlib import nullcontext
from dataclasses import dataclass, field, replace
from typing import Any

from minigraph.coercion import arguments_from_ast, coerce_arguments, value_from_ast
from minigraph.errors import (
    CoercionError,
    ExecutionError,
    ParseError,
    PathSegment,
    ResolutionError,
    ValidationError,
)
from minigraph.logging import get_logger
from minigraph.parsing.query_parser import Field, Operation, QueryParser, TypeRef, Variable
from minigraph.resolvers import ResolveInfo, resolve_field
from minigraph.schema import Schema
from minigraph.store import InMemoryStore
from minigraph.types import FieldDefinition, ListType, ObjectType, TypeDefinition

logger = get_logger(__name__)

# Deepest selection nesting a request may use
DEFAULT_MAX_DEPTH = 32

TYPENAME_FIELD = "__typename"


@dataclass
class ExecutionResult:
    """Result of a request: possibly partial data plus the errors met on the way."""

    data: dict[str, Any] | None
    errors: list[ExecutionError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """True when the request completed without any error."""
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Return the ``{data, errors}`` structure handed to a serializer."""
        return {
            "data": self.data,
            "errors": [error.to_dict() for error in self.errors],
        }


@dataclass
class ExecutionContext:
    """State owned by a single request while it executes."""

    schema: Schema
    operation: Operation
    store: InMemoryStore | None = None
    variables: dict[str, Any] = field(default_factory=dict)
    strict_input: bool = True
    errors: list[ExecutionError] = field(default_factory=list)

    @property
    def is_mutation(self) -> bool:
        return self.operation.operation_type == "mutation"


class QueryExecutor:
    """Executes requests against a schema and, optionally, a dataset store."""

    def __init__(
        self,
        schema: Schema,
        store: InMemoryStore | None = None,
        *,
        strict_input: bool = True,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        """Initialize an executor.

        Args:
            schema: The schema requests are validated and resolved against.
            store: Dataset passed to resolvers through ``ResolveInfo.store``.
                Root mutation resolvers run under its write lock.
            strict_input: Reject input-object keys the input type does not
                declare. When False, they are ignored.
            max_depth: Deepest selection nesting a request may use.
        """
        self.schema = schema
        self.store = store
        self.strict_input = strict_input
        self.max_depth = max_depth
        self._parser = QueryParser()
        # The ply lexer/parser keep per-parse state
        self._parse_lock = threading.Lock()

    # --- Public API ---

    def execute(self, source: str, variables: Mapping[str, Any] | None = None) -> ExecutionResult:
        """Parse, validate and execute a request string.

        Never raises for a bad request: parse and validation failures give a
        result with no data, field failures give partial data. Either way
        the problems are listed in ``errors``.
        """
        try:
            operation = self.parse(source)
        except ParseError as e:
            logger.debug("request rejected", stage="parse", error=e.message)
            return ExecutionResult(data=None, errors=[ExecutionError(e.message, position=e.position)])
        return self.execute_operation(operation, variables)

    def parse(self, source: str) -> Operation:
        """Parse a request string into an operation.

        Raises:
            ParseError: If the request is not valid syntax.
        """
        with self._parse_lock:
            return self._parser.parse(source)

    def validate(self, operation: Operation, variables: Mapping[str, Any] | None = None) -> None:
        """Check an operation against the schema.

        Raises:
            ValidationError: Listing every violation found.
        """
        violations = _Validator(self.schema, self.max_depth).validate(operation, variables or {})
        if violations:
            raise ValidationError(violations)

    def execute_operation(
        self, operation: Operation, variables: Mapping[str, Any] | None = None
    ) -> ExecutionResult:
        """Validate and execute an already parsed operation."""
        try:
            self.validate(operation, variables)
        except ValidationError as e:
            logger.debug("request rejected", stage="validate", violations=len(e.violations))
            return ExecutionResult(data=None, errors=list(e.violations))

        context = ExecutionContext(
            schema=self.schema,
            operation=operation,
            store=self.store,
            variables=self._variable_values(operation, variables or {}),
            strict_input=self.strict_input,
        )
        root_type = self.schema.root_type(operation.operation_type)
        if root_type is None:
            message = f"Schema does not support {operation.operation_type} operations"
            return ExecutionResult(data=None, errors=[ExecutionError(message, position=operation.position)])

        # Fields run one after another in request order, mutations included
        data = self._execute_selections(context, root_type, None, operation.selections, [])
        logger.debug(
            "request executed",
            operation=operation.operation_type,
            name=operation.name,
            errors=len(context.errors),
        )
        return ExecutionResult(data=data, errors=context.errors)

    # --- Execution ---

    @staticmethod
    def _variable_values(operation: Operation, provided: Mapping[str, Any]) -> dict[str, Any]:
        """Return the values of the operation's variables, defaults applied."""
        values: dict[str, Any] = {}
        for definition in operation.variable_definitions:
            if definition.name in provided:
                values[definition.name] = provided[definition.name]
            elif definition.has_default:
                values[definition.name] = value_from_ast(definition.default_value, {})
        return values

    def _execute_selections(
        self,
        context: ExecutionContext,
        object_type: ObjectType,
        parent: Any,
        selections: list[Field],
        path: list[PathSegment],
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, nodes in group_by_response_key(selections).items():
            node = merge_fields(nodes)
            if node.name == TYPENAME_FIELD:
                result[key] = object_type.name
                continue
            field_def = object_type.fields[node.name]
            result[key] = self._execute_field(context, object_type, field_def, node, parent, path + [key])
        return result

    def _execute_field(
        self,
        context: ExecutionContext,
        parent_type: ObjectType,
        field_def: FieldDefinition,
        node: Field,
        parent: Any,
        path: list[PathSegment],
    ) -> Any:
        raw = arguments_from_ast(node.arguments, context.variables)
        try:
            args = coerce_arguments(field_def.arguments, raw, strict=context.strict_input)
        except CoercionError as e:
            self._record(context, e.message, path, node.position)
            return None

        info = ResolveInfo(
            field_name=field_def.name,
            path=path,
            parent_type=parent_type,
            schema=context.schema,
            store=context.store,
            variables=context.variables,
            operation=context.operation.operation_type,
        )
        exclusive = context.is_mutation and len(path) == 1 and context.store is not None
        lock = context.store.writing() if exclusive else nullcontext()  # type: ignore[union-attr]
        try:
            with lock:
                value = resolve_field(field_def, parent, args, info)
        except ResolutionError as e:
            self._record(context, e.message, e.path or path, node.position)
            return None

        return self._complete_value(context, field_def.type_def, node, value, path)  # type: ignore[arg-type]

    def _complete_value(
        self,
        context: ExecutionContext,
        type_def: TypeDefinition,
        node: Field,
        value: Any,
        path: list[PathSegment],
    ) -> Any:
        if value is None:
            return None
        if type_def.is_scalar:
            return value
        if isinstance(type_def, ObjectType):
            return self._execute_selections(context, type_def, value, node.selections or [], path)
        if isinstance(type_def, ListType):
            if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
                self._record(
                    context,
                    f"Expected a list for field '{node.name}', got {type(value).__name__}",
                    path,
                    node.position,
                )
                return None
            return [
                self._complete_value(context, type_def.of_type, node, item, path + [index])  # type: ignore[arg-type]
                for index, item in enumerate(value)
            ]
        self._record(context, f"Field '{node.name}' has unsupported type '{type_def.name}'", path, node.position)
        return None

    @staticmethod
    def _record(context: ExecutionContext, message: str, path: list[PathSegment], position: int) -> None:
        logger.warning("field failed", path=path, error=message)
        context.errors.append(ExecutionError(message, path=list(path), position=position))


class _Validator:
    """Collects every way an operation does not fit the schema."""

    def __init__(self, schema: Schema, max_depth: int) -> None:
        self.schema = schema
        self.max_depth = max_depth
        self.violations: list[ExecutionError] = []
        self._defined: set[str] = set()

    def _add(self, message: str, path: list[PathSegment] | None = None, position: int | None = None) -> None:
        self.violations.append(ExecutionError(message, path=list(path or []), position=position))

    def validate(self, operation: Operation, variables: Mapping[str, Any]) -> list[ExecutionError]:
        root_type = self.schema.root_type(operation.operation_type)
        if root_type is None:
            self._add(f"Schema does not support {operation.operation_type} operations", position=operation.position)
            return self.violations

        for definition in operation.variable_definitions:
            if definition.name in self._defined:
                self._add(f"Variable ${definition.name} is defined more than once", position=operation.position)
            self._defined.add(definition.name)

            type_name = _innermost_name(definition.type_ref)
            if type_name not in self.schema.registry:
                self._add(f"Unknown type '{type_name}' for variable ${definition.name}", position=operation.position)
            if definition.has_default and value_depth(definition.default_value) > self.max_depth:
                self._add(
                    f"Default value of variable ${definition.name} nests deeper than the maximum of {self.max_depth}",
                    position=operation.position,
                )
            if (
                definition.type_ref.non_null
                and not definition.has_default
                and variables.get(definition.name) is None
            ):
                self._add(
                    f"Variable ${definition.name} of required type '{definition.type_ref}' was not provided",
                    position=operation.position,
                )

        self._validate_selections(root_type, operation.selections, [], depth=1)
        return self.violations

    def _validate_selections(
        self,
        parent_type: ObjectType,
        selections: list[Field],
        path: list[PathSegment],
        depth: int,
    ) -> None:
        if depth > self.max_depth:
            self._add(f"Selection depth exceeds the maximum of {self.max_depth}", path, selections[0].position)
            return

        for key, nodes in group_by_response_key(selections).items():
            field_path = path + [key]
            too_deep = [n for n in nodes if self._check_nesting(n, field_path)]
            node = nodes[0]
            for other in nodes[1:]:
                if not too_deep and not same_field(node, other):
                    self._add(
                        f"Fields '{key}' on type '{parent_type.name}' conflict: "
                        "they select different fields or arguments",
                        field_path,
                        other.position,
                    )
            node = merge_fields(nodes)

            if node.name == TYPENAME_FIELD:
                if node.arguments or node.selections is not None:
                    self._add(f"Field '{TYPENAME_FIELD}' takes no arguments or subfields", field_path, node.position)
                continue

            field_def = parent_type.get_field(node.name)
            if field_def is None:
                self._add(f"Cannot query field '{node.name}' on type '{parent_type.name}'", field_path, node.position)
                continue

            self._validate_arguments(parent_type, field_def, node, field_path)

            named = field_def.type_def.named_type()  # type: ignore[union-attr]
            with_subfields = [n for n in nodes if n.selections is not None]
            if isinstance(named, ObjectType):
                if len(with_subfields) < len(nodes):
                    self._add(
                        f"Field '{node.name}' of type '{field_def.type_def.name}' must have a selection of subfields",  # type: ignore[union-attr]
                        field_path,
                        node.position,
                    )
                else:
                    self._validate_selections(named, node.selections, field_path, depth + 1)  # type: ignore[arg-type]
            elif with_subfields:
                self._add(
                    f"Field '{node.name}' of type '{field_def.type_def.name}' cannot have a selection of subfields",  # type: ignore[union-attr]
                    field_path,
                    node.position,
                )

    def _check_nesting(self, node: Field, path: list[PathSegment]) -> bool:
        """Report arguments whose values nest deeper than allowed; True if any do."""
        too_deep = False
        for argument in node.arguments:
            if value_depth(argument.value) > self.max_depth:
                self._add(
                    f"Argument '{argument.name}' nests deeper than the maximum of {self.max_depth}",
                    path,
                    argument.position,
                )
                too_deep = True
        return too_deep

    def _validate_arguments(
        self,
        parent_type: ObjectType,
        field_def: FieldDefinition,
        node: Field,
        path: list[PathSegment],
    ) -> None:
        seen: set[str] = set()
        for argument in node.arguments:
            if argument.name not in field_def.arguments:
                self._add(
                    f"Unknown argument '{argument.name}' on field '{parent_type.name}.{field_def.name}'",
                    path,
                    argument.position,
                )
            elif argument.name in seen:
                self._add(
                    f"Argument '{argument.name}' is given more than once on field '{parent_type.name}.{field_def.name}'",
                    path,
                    argument.position,
                )
            seen.add(argument.name)
            for name in _variable_names(argument.value):
                if name not in self._defined:
                    self._add(f"Variable ${name} is not defined", path, argument.position)


# --- Selection helpers ---


def group_by_response_key(selections: list[Field]) -> dict[str, list[Field]]:
    """Group selected fields by the key they are reported under, in request order."""
    groups: dict[str, list[Field]] = {}
    for node in selections:
        groups.setdefault(node.response_key, []).append(node)
    return groups


def same_field(first: Field, second: Field) -> bool:
    """True when two selections under one response key ask for the same value."""
    if first.name != second.name:
        return False
    return _argument_map(first) == _argument_map(second)


def _argument_map(node: Field) -> dict[str, Any]:
    return {argument.name: argument.value for argument in node.arguments}


def merge_fields(nodes: list[Field]) -> Field:
    """Return one field standing for all selections under a response key.

    Arguments come from the first selection; sub-selections are concatenated
    in request order.
    """
    if len(nodes) == 1:
        return nodes[0]
    selected = [node.selections for node in nodes if node.selections is not None]
    selections = [child for children in selected for child in children] if selected else None
    return replace(nodes[0], selections=selections)


# --- Value helpers ---


def value_depth(value: Any) -> int:
    """Return how deeply lists and objects nest inside a parsed value."""
    depth = 0
    stack = [(value, 1)]
    while stack:
        item, level = stack.pop()
        if isinstance(item, list):
            children: Iterable[Any] = item
        elif isinstance(item, dict):
            children = item.values()
        else:
            continue
        depth = max(depth, level)
        stack.extend((child, level + 1) for child in children)
    return depth


def _innermost_name(type_ref: TypeRef) -> str:
    while type_ref.of_type is not None:
        type_ref = type_ref.of_type
    return type_ref.name or ""


def _variable_names(value: Any) -> list[str]:
    """Return the names of all variables referenced inside a parsed value."""
    names = []
    stack = [value]
    while stack:
        item = stack.pop()
        if isinstance(item, Variable):
            names.append(item.name)
        elif isinstance(item, list):
            stack.extend(reversed(item))
        elif isinstance(item, dict):
            stack.extend(reversed(list(item.values())))
    return names
