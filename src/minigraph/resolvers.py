"""Resolver dispatch: produce a field's value from its parent and arguments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from minigraph.errors import PathSegment, ResolutionError
from minigraph.types import FieldDefinition, ObjectType

if TYPE_CHECKING:
    from minigraph.schema import Schema
    from minigraph.store import InMemoryStore


@dataclass
class ResolveInfo:
    """Per-field context handed to resolvers.

    ``store`` is the dataset the request runs against; resolvers should
    read and write through it rather than through module-level state.
    """

    field_name: str
    path: list[PathSegment]
    parent_type: ObjectType
    schema: Schema
    store: InMemoryStore | None = None
    variables: dict[str, Any] = field(default_factory=dict)
    operation: str = "query"


def resolve_field(
    field_def: FieldDefinition,
    parent: Any,
    args: dict[str, Any],
    info: ResolveInfo,
) -> Any:
    """Invoke the field's resolver, or read the field from the parent.

    Fields without a resolver use the schema's accessor table; a value
    missing on the parent yields None.

    Raises:
        ResolutionError: If the resolver raises. The error carries the
            field path and chains the original exception.
    """
    try:
        if field_def.resolver is None:
            accessor = info.schema.accessor(info.parent_type.name, field_def.name)
            return accessor(parent)
        return field_def.resolver(parent, args, info)
    except ResolutionError as e:
        if not e.path:
            e.path = list(info.path)
        raise
    except Exception as e:
        raise ResolutionError(str(e) or type(e).__name__, path=info.path) from e
