"""Schema construction: root types, type resolution and field accessors."""

from __future__ import annotations

import operator
from collections.abc import Iterable, Mapping
from typing import Any

from minigraph.errors import ConstructionError
from minigraph.logging import get_logger
from minigraph.types import (
    Accessor,
    ArgumentDefinition,
    FieldDefinition,
    InputObjectType,
    ListType,
    ObjectType,
    TypeDefinition,
    TypeRegistry,
    type_name,
)

logger = get_logger(__name__)

FieldMap = Mapping[str, FieldDefinition] | Iterable[FieldDefinition]


def _default_accessor(key: str) -> Accessor:
    """Read ``key`` from a mapping or an attribute. Absence yields None."""
    get_attribute = operator.attrgetter(key)

    def access(parent: Any) -> Any:
        if isinstance(parent, Mapping):
            return parent.get(key)
        try:
            return get_attribute(parent)
        except AttributeError:
            return None

    return access


class Schema:
    """Root query and mutation types bound to their type registry.

    Build instances with ``build_schema``. The schema is the only namespace
    for its types, and its descriptors are not modified after construction.
    """

    def __init__(
        self,
        registry: TypeRegistry,
        query_type: ObjectType,
        mutation_type: ObjectType | None,
        accessors: dict[str, dict[str, Accessor]],
    ) -> None:
        self.registry = registry
        self.query_type = query_type
        self.mutation_type = mutation_type
        self._accessors = accessors

    def get_type(self, name: str) -> TypeDefinition:
        """Get a type definition by name.

        Raises:
            KeyError: If the type is not found.
        """
        return self.registry.get_or_raise(name)

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return self.registry.list_types()

    def object_types(self) -> list[ObjectType]:
        """Return all object types, root types included."""
        return self.registry.object_types()

    def root_type(self, operation: str) -> ObjectType | None:
        """Return the root type an operation ("query" or "mutation") starts at."""
        if operation == "mutation":
            return self.mutation_type
        return self.query_type

    def accessor(self, type_name: str, field_name: str) -> Accessor:
        """Return the extraction function for a field without a resolver."""
        return self._accessors[type_name][field_name]


class _SchemaBuilder:
    """Registers every reachable type, then resolves names and checks shapes."""

    def __init__(self) -> None:
        self.registry = TypeRegistry()
        self._visited: set[int] = set()

    def register(self, type_def: Any, where: str) -> None:
        """Register ``type_def`` and every descriptor reachable from it."""
        if isinstance(type_def, str):
            return
        if not isinstance(type_def, TypeDefinition):
            raise ConstructionError(f"{where} has an invalid type: {type_def!r}")
        if isinstance(type_def, ListType):
            self.register(type_def.of_type, where)
            return
        try:
            self.registry.register(type_def)
        except ValueError as e:
            raise ConstructionError(str(e)) from e

        if id(type_def) in self._visited:
            return
        self._visited.add(id(type_def))

        if isinstance(type_def, ObjectType):
            for key, field_def in type_def.fields.items():
                if key != field_def.name:
                    raise ConstructionError(
                        f"Field '{field_def.name}' of type '{type_def.name}' is registered as '{key}'"
                    )
                self.register(field_def.type_def, f"Field '{type_def.name}.{key}'")
                for arg in field_def.arguments.values():
                    self.register(arg.type_def, f"Argument '{arg.name}' of field '{type_def.name}.{key}'")
        elif isinstance(type_def, InputObjectType):
            for key, input_field in type_def.fields.items():
                self.register(input_field.type_def, f"Input field '{type_def.name}.{key}'")

    def resolve(self, type_ref: TypeDefinition | str, where: str) -> TypeDefinition:
        """Resolve a type reference to a registered descriptor."""
        if isinstance(type_ref, ListType):
            type_ref.of_type = self.resolve(type_ref.of_type, where)
            return type_ref
        name = type_name(type_ref)
        resolved = self.registry.get(name)
        if resolved is None:
            raise ConstructionError(f"{where} has unknown type '{name}'")
        return resolved

    def resolve_all(self) -> dict[str, dict[str, Accessor]]:
        """Resolve named references in place and build the accessor table."""
        accessors: dict[str, dict[str, Accessor]] = {}
        for name in self.registry.list_types():
            type_def = self.registry.get_or_raise(name)
            if isinstance(type_def, ObjectType):
                accessors[type_def.name] = self._resolve_object(type_def)
            elif isinstance(type_def, InputObjectType):
                for input_field in type_def.fields.values():
                    self._resolve_argument(input_field, f"Input field '{type_def.name}.{input_field.name}'")
        return accessors

    def _resolve_object(self, object_type: ObjectType) -> dict[str, Accessor]:
        for name in object_type.accessors:
            if name not in object_type.fields:
                raise ConstructionError(f"Accessor given for unknown field '{object_type.name}.{name}'")

        table: dict[str, Accessor] = {}
        for field_def in object_type.fields.values():
            where = f"Field '{object_type.name}.{field_def.name}'"
            field_def.type_def = self.resolve(field_def.type_def, where)
            if field_def.type_def.named_type().is_input_object:
                raise ConstructionError(f"{where} cannot have input type '{field_def.type_def.name}'")
            for arg in field_def.arguments.values():
                self._resolve_argument(arg, f"Argument '{arg.name}' of field '{object_type.name}.{field_def.name}'")

            accessor = object_type.accessors.get(field_def.name)
            table[field_def.name] = accessor or _default_accessor(field_def.source or field_def.name)
        return table

    def _resolve_argument(self, arg: ArgumentDefinition, where: str) -> None:
        arg.type_def = self.resolve(arg.type_def, where)
        if not (arg.type_def.is_scalar or arg.type_def.is_input_object):
            raise ConstructionError(
                f"{where} must be a scalar or input object type, not '{arg.type_def.name}'"
            )


def _root_type(name: str, fields: FieldMap | ObjectType) -> ObjectType:
    root = fields if isinstance(fields, ObjectType) else ObjectType(name=name, fields=fields)  # type: ignore[arg-type]
    if not root.fields:
        raise ConstructionError(f"Root type '{root.name}' has no fields")
    return root


def build_schema(
    query_fields: FieldMap | ObjectType,
    mutation_fields: FieldMap | ObjectType | None = None,
    *,
    types: Iterable[TypeDefinition] = (),
    query_name: str = "RootQuery",
    mutation_name: str = "RootMutation",
) -> Schema:
    """Build a schema from root query fields and optional root mutation fields.

    Args:
        query_fields: Fields of the root query type (mapping or list), or a
            ready-made ObjectType.
        mutation_fields: Fields of the root mutation type. None means the
            schema has no mutation type.
        types: Extra types to register, so that fields can refer to them by
            name before they are otherwise reachable.
        query_name: Name given to the root query type.
        mutation_name: Name given to the root mutation type.

    Returns:
        The constructed Schema.

    Raises:
        ConstructionError: If a type reference does not resolve, an argument
            is not a scalar or input object, a root type has no fields, or
            two different types share a name.
    """
    query_type = _root_type(query_name, query_fields)
    mutation_type = _root_type(mutation_name, mutation_fields) if mutation_fields is not None else None

    builder = _SchemaBuilder()
    for extra in types:
        builder.register(extra, "Schema types")
    builder.register(query_type, "Schema")
    if mutation_type is not None:
        builder.register(mutation_type, "Schema")

    accessors = builder.resolve_all()
    schema = Schema(builder.registry, query_type, mutation_type, accessors)
    logger.debug(
        "schema built",
        types=len(schema.list_types()),
        query_type=query_type.name,
        mutation_type=mutation_type.name if mutation_type else None,
    )
    return schema
