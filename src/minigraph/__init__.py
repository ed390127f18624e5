"""minigraph - A minimal GraphQL-style query execution core."""

from minigraph.coercion import coerce_arguments
from minigraph.errors import (
    CoercionError,
    ConstructionError,
    ExecutionError,
    MinigraphError,
    ParseError,
    ResolutionError,
    ValidationError,
)
from minigraph.executor import ExecutionResult, QueryExecutor
from minigraph.resolvers import ResolveInfo, resolve_field
from minigraph.schema import Schema, build_schema
from minigraph.store import InMemoryStore
from minigraph.types import (
    ID,
    ArgumentDefinition,
    Boolean,
    FieldDefinition,
    Float,
    InputObjectType,
    Int,
    ListType,
    ObjectType,
    ScalarType,
    String,
    TypeDefinition,
    TypeRegistry,
)

__all__ = [
    # Main API
    "build_schema",
    "Schema",
    "QueryExecutor",
    "ExecutionResult",
    "InMemoryStore",
    # Type definitions
    "TypeDefinition",
    "ScalarType",
    "ListType",
    "ObjectType",
    "InputObjectType",
    "FieldDefinition",
    "ArgumentDefinition",
    "TypeRegistry",
    "Int",
    "Float",
    "String",
    "Boolean",
    "ID",
    # Execution pieces
    "coerce_arguments",
    "resolve_field",
    "ResolveInfo",
    # Errors
    "MinigraphError",
    "ConstructionError",
    "ParseError",
    "ValidationError",
    "CoercionError",
    "ResolutionError",
    "ExecutionError",
]

__version__ = "0.1.0"
