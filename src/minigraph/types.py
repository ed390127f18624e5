"""Type descriptors for the minigraph schema.

Descriptors compare by identity: object types may reference each other in
cycles (Author <-> Tutorial), so structural equality is never used.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from minigraph.resolvers import ResolveInfo

# resolver(parent, args, info) -> value
Resolver = Callable[[Any, dict[str, Any], "ResolveInfo"], Any]

# accessor(parent) -> value
Accessor = Callable[[Any], Any]


@dataclass(eq=False)
class TypeDefinition:
    """Base class for all type descriptors."""

    name: str

    @property
    def is_scalar(self) -> bool:
        """Return whether this type is a scalar type."""
        return False

    @property
    def is_object(self) -> bool:
        """Return whether this type is an object type."""
        return False

    @property
    def is_list(self) -> bool:
        """Return whether this type is a list type."""
        return False

    @property
    def is_input_object(self) -> bool:
        """Return whether this type is an input-object type."""
        return False

    def named_type(self) -> TypeDefinition:
        """Unwrap list types down to the element type."""
        return self


def type_name(type_ref: TypeDefinition | str) -> str:
    """Return the name of a type given as a descriptor or a name."""
    return type_ref if isinstance(type_ref, str) else type_ref.name


@dataclass(eq=False)
class ScalarType(TypeDefinition):
    """A leaf type.

    ``accepts`` decides whether a raw input value literally matches the
    scalar kind; ``coerce`` converts an accepted value to its typed form.
    """

    accepts: Callable[[Any], bool] = field(default=lambda value: True, repr=False)
    coerce: Callable[[Any], Any] = field(default=lambda value: value, repr=False)
    description: str | None = None

    @property
    def is_scalar(self) -> bool:
        return True


def _is_whole_number(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


Int = ScalarType(name="Int", accepts=_is_whole_number, description="Whole number")
Float = ScalarType(
    name="Float",
    accepts=_is_number,
    coerce=float,
    description="Whole or fractional number",
)
String = ScalarType(
    name="String",
    accepts=lambda value: isinstance(value, str),
    description="Text",
)
Boolean = ScalarType(
    name="Boolean",
    accepts=lambda value: isinstance(value, bool),
    description="true or false",
)
ID = ScalarType(
    name="ID",
    accepts=lambda value: isinstance(value, str) or _is_whole_number(value),
    coerce=str,
    description="Unique identifier, given as text or a whole number",
)

BUILTIN_SCALARS: tuple[ScalarType, ...] = (Int, Float, String, Boolean, ID)


@dataclass(eq=False, init=False)
class ListType(TypeDefinition):
    """An ordered list of another type, e.g. ``[Tutorial]``."""

    of_type: TypeDefinition | str

    def __init__(self, of_type: TypeDefinition | str) -> None:
        super().__init__(name=f"[{type_name(of_type)}]")
        self.of_type = of_type

    @property
    def is_list(self) -> bool:
        return True

    def named_type(self) -> TypeDefinition:
        if isinstance(self.of_type, str):
            raise TypeError(f"List element type '{self.of_type}' is not resolved")
        return self.of_type.named_type()


@dataclass(eq=False)
class ArgumentDefinition:
    """An argument of a field, or a field of an input object."""

    name: str
    type_def: TypeDefinition | str
    required: bool = False
    description: str | None = None


@dataclass(eq=False)
class FieldDefinition:
    """A field of an object type."""

    name: str
    type_def: TypeDefinition | str
    arguments: dict[str, ArgumentDefinition] = field(default_factory=dict)
    resolver: Resolver | None = field(default=None, repr=False)
    description: str | None = None
    source: str | None = None  # attribute/key read by the default accessor

    def __post_init__(self) -> None:
        if not isinstance(self.arguments, dict):
            self.arguments = {arg.name: arg for arg in self.arguments}


@dataclass(eq=False)
class ObjectType(TypeDefinition):
    """An object type with an insertion-ordered map of fields.

    ``fields`` may be given as a dict or as a list of FieldDefinition.
    ``accessors`` overrides how a field without a resolver is read from the
    parent value; fields not listed get the default accessor when the
    schema is built.
    """

    fields: dict[str, FieldDefinition] = field(default_factory=dict)
    accessors: dict[str, Accessor] = field(default_factory=dict, repr=False)
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.fields, dict):
            self.fields = {f.name: f for f in self.fields}

    @property
    def is_object(self) -> bool:
        return True

    def get_field(self, name: str) -> FieldDefinition | None:
        """Get a field by name."""
        return self.fields.get(name)


@dataclass(eq=False)
class InputObjectType(TypeDefinition):
    """A structured argument type, e.g. ``AuthorInput``."""

    fields: dict[str, ArgumentDefinition] = field(default_factory=dict)
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.fields, dict):
            self.fields = {f.name: f for f in self.fields}

    @property
    def is_input_object(self) -> bool:
        return True

    def get_field(self, name: str) -> ArgumentDefinition | None:
        """Get an input field by name."""
        return self.fields.get(name)


class TypeRegistry:
    """Registry of all types known to one schema."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDefinition] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        """Register the built-in scalar types."""
        for scalar in BUILTIN_SCALARS:
            self._types[scalar.name] = scalar

    def register(self, type_def: TypeDefinition) -> None:
        """Register a type definition.

        Registering the same descriptor twice is a no-op; registering a
        different descriptor under a taken name is an error.
        """
        existing = self._types.get(type_def.name)
        if existing is type_def:
            return
        if existing is not None:
            raise ValueError(f"Type '{type_def.name}' is already defined")
        self._types[type_def.name] = type_def

    def get(self, name: str) -> TypeDefinition | None:
        """Get a type by name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> TypeDefinition:
        """Get a type by name, raising if not found."""
        type_def = self._types.get(name)
        if type_def is None:
            raise KeyError(f"Type '{name}' not found")
        return type_def

    def list_types(self) -> list[str]:
        """List all registered type names."""
        return list(self._types.keys())

    def object_types(self) -> list[ObjectType]:
        """Return all registered object types, in registration order."""
        return [t for t in self._types.values() if isinstance(t, ObjectType)]

    def __contains__(self, name: str) -> bool:
        return name in self._types
