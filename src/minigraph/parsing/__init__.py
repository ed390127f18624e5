"""Parsing module for the query language."""

from minigraph.parsing.query_parser import (
    Argument,
    Field,
    NullValue,
    Operation,
    QueryParser,
    TypeRef,
    Variable,
    VariableDefinition,
)

__all__ = [
    "Argument",
    "Field",
    "NullValue",
    "Operation",
    "QueryParser",
    "TypeRef",
    "Variable",
    "VariableDefinition",
]
