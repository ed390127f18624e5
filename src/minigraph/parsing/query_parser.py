"""Parser for the minigraph query language.

The language is a small subset of GraphQL: one operation per request, an
optional ``query``/``mutation`` keyword with an optional name and variable
definitions, and nested field selections with aliases and arguments.

    mutation Create($title: String!) {
        created: createTutorial(id: 3, title: $title, author: {id: 1, name: "Elliot Forbes"}) {
            id
            title
        }
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from minigraph.errors import ParseError
from minigraph.parsing.query_lexer import QueryLexer


@dataclass
class NullValue:
    """The null literal value."""

    pass


@dataclass
class Variable:
    """A reference to a request variable: $name."""

    name: str


@dataclass
class TypeRef:
    """A declared variable type like ``Int``, ``String!`` or ``[Int]``."""

    name: str | None = None  # None for list types
    of_type: TypeRef | None = None  # Element type for list types
    non_null: bool = False

    def __str__(self) -> str:
        inner = self.name if self.of_type is None else f"[{self.of_type}]"
        return f"{inner}!" if self.non_null else str(inner)


@dataclass
class VariableDefinition:
    """A variable declared by an operation: ``$id: Int = 1``."""

    name: str
    type_ref: TypeRef
    default_value: Any = None
    has_default: bool = False


@dataclass
class Argument:
    """An argument passed to a field."""

    name: str
    value: Any  # Literal, NullValue, Variable, list or dict of those
    position: int = 0


@dataclass
class Field:
    """A selected field, with its optional alias, arguments and sub-selection."""

    name: str
    alias: str | None = None
    arguments: list[Argument] = field(default_factory=list)
    selections: list[Field] | None = None
    position: int = 0

    @property
    def response_key(self) -> str:
        """Return the key this field is reported under in the result."""
        return self.alias or self.name


@dataclass
class Operation:
    """A parsed request: the root operation and its selection tree."""

    operation_type: str = "query"  # "query" or "mutation"
    name: str | None = None
    variable_definitions: list[VariableDefinition] = field(default_factory=list)
    selections: list[Field] = field(default_factory=list)
    position: int = 0


class QueryParser:
    """Parser for query-language requests."""

    tokens = QueryLexer.tokens

    def __init__(self) -> None:
        self.lexer = QueryLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore

    # --- Operations ---

    def p_document(self, p: yacc.YaccProduction) -> None:
        """document : operation"""
        p[0] = p[1]

    def p_operation_shorthand(self, p: yacc.YaccProduction) -> None:
        """operation : selection_set"""
        p[0] = Operation(operation_type="query", selections=p[1], position=p.lexpos(1))

    def p_operation_anonymous(self, p: yacc.YaccProduction) -> None:
        """operation : operation_type selection_set"""
        p[0] = Operation(operation_type=p[1], selections=p[2], position=p.lexpos(1))

    def p_operation_named(self, p: yacc.YaccProduction) -> None:
        """operation : operation_type name selection_set"""
        p[0] = Operation(operation_type=p[1], name=p[2], selections=p[3], position=p.lexpos(1))

    def p_operation_variables(self, p: yacc.YaccProduction) -> None:
        """operation : operation_type variable_definitions selection_set"""
        p[0] = Operation(
            operation_type=p[1],
            variable_definitions=p[2],
            selections=p[3],
            position=p.lexpos(1),
        )

    def p_operation_named_variables(self, p: yacc.YaccProduction) -> None:
        """operation : operation_type name variable_definitions selection_set"""
        p[0] = Operation(
            operation_type=p[1],
            name=p[2],
            variable_definitions=p[3],
            selections=p[4],
            position=p.lexpos(1),
        )

    def p_operation_type(self, p: yacc.YaccProduction) -> None:
        """operation_type : QUERY
                          | MUTATION"""
        p[0] = p[1]

    # Keywords are only reserved at the start of a request
    def p_name(self, p: yacc.YaccProduction) -> None:
        """name : IDENTIFIER
                | QUERY
                | MUTATION
                | TRUE
                | FALSE
                | NULL"""
        p[0] = p[1]

    # --- Variable definitions ---

    def p_variable_definitions(self, p: yacc.YaccProduction) -> None:
        """variable_definitions : LPAREN variable_definition_list RPAREN"""
        p[0] = p[2]

    def p_variable_definition_list_single(self, p: yacc.YaccProduction) -> None:
        """variable_definition_list : variable_definition"""
        p[0] = [p[1]]

    def p_variable_definition_list_multiple(self, p: yacc.YaccProduction) -> None:
        """variable_definition_list : variable_definition_list variable_definition"""
        p[0] = p[1] + [p[2]]

    def p_variable_definition(self, p: yacc.YaccProduction) -> None:
        """variable_definition : VARIABLE COLON type_ref"""
        p[0] = VariableDefinition(name=p[1], type_ref=p[3])

    def p_variable_definition_default(self, p: yacc.YaccProduction) -> None:
        """variable_definition : VARIABLE COLON type_ref EQ value"""
        p[0] = VariableDefinition(name=p[1], type_ref=p[3], default_value=p[5], has_default=True)

    def p_type_ref_named(self, p: yacc.YaccProduction) -> None:
        """type_ref : name"""
        p[0] = TypeRef(name=p[1])

    def p_type_ref_named_non_null(self, p: yacc.YaccProduction) -> None:
        """type_ref : name BANG"""
        p[0] = TypeRef(name=p[1], non_null=True)

    def p_type_ref_list(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACKET type_ref RBRACKET"""
        p[0] = TypeRef(of_type=p[2])

    def p_type_ref_list_non_null(self, p: yacc.YaccProduction) -> None:
        """type_ref : LBRACKET type_ref RBRACKET BANG"""
        p[0] = TypeRef(of_type=p[2], non_null=True)

    # --- Selections ---

    def p_selection_set(self, p: yacc.YaccProduction) -> None:
        """selection_set : LBRACE selection_list RBRACE"""
        p[0] = p[2]

    def p_selection_set_opt_empty(self, p: yacc.YaccProduction) -> None:
        """selection_set_opt : """
        p[0] = None

    def p_selection_set_opt(self, p: yacc.YaccProduction) -> None:
        """selection_set_opt : selection_set"""
        p[0] = p[1]

    def p_selection_list_single(self, p: yacc.YaccProduction) -> None:
        """selection_list : field"""
        p[0] = [p[1]]

    def p_selection_list_multiple(self, p: yacc.YaccProduction) -> None:
        """selection_list : selection_list field"""
        p[0] = p[1] + [p[2]]

    def p_field(self, p: yacc.YaccProduction) -> None:
        """field : name arguments_opt selection_set_opt"""
        p[0] = Field(name=p[1], arguments=p[2], selections=p[3], position=p.lexpos(1))

    def p_field_alias(self, p: yacc.YaccProduction) -> None:
        """field : name COLON name arguments_opt selection_set_opt"""
        p[0] = Field(name=p[3], alias=p[1], arguments=p[4], selections=p[5], position=p.lexpos(1))

    # --- Arguments ---

    def p_arguments_opt_empty(self, p: yacc.YaccProduction) -> None:
        """arguments_opt : """
        p[0] = []

    def p_arguments_opt(self, p: yacc.YaccProduction) -> None:
        """arguments_opt : LPAREN argument_list RPAREN"""
        p[0] = p[2]

    def p_argument_list_single(self, p: yacc.YaccProduction) -> None:
        """argument_list : argument"""
        p[0] = [p[1]]

    def p_argument_list_multiple(self, p: yacc.YaccProduction) -> None:
        """argument_list : argument_list argument"""
        p[0] = p[1] + [p[2]]

    def p_argument(self, p: yacc.YaccProduction) -> None:
        """argument : name COLON value"""
        p[0] = Argument(name=p[1], value=p[3], position=p.lexpos(1))

    # --- Values ---

    def p_value_literal(self, p: yacc.YaccProduction) -> None:
        """value : INTEGER
                 | FLOAT
                 | STRING"""
        p[0] = p[1]

    def p_value_true(self, p: yacc.YaccProduction) -> None:
        """value : TRUE"""
        p[0] = True

    def p_value_false(self, p: yacc.YaccProduction) -> None:
        """value : FALSE"""
        p[0] = False

    def p_value_null(self, p: yacc.YaccProduction) -> None:
        """value : NULL"""
        p[0] = NullValue()

    def p_value_variable(self, p: yacc.YaccProduction) -> None:
        """value : VARIABLE"""
        p[0] = Variable(name=p[1])

    def p_value_list(self, p: yacc.YaccProduction) -> None:
        """value : LBRACKET value_list RBRACKET
                 | LBRACKET RBRACKET"""
        if len(p) == 4:
            p[0] = p[2]
        else:
            p[0] = []

    def p_value_list_single(self, p: yacc.YaccProduction) -> None:
        """value_list : value"""
        p[0] = [p[1]]

    def p_value_list_multiple(self, p: yacc.YaccProduction) -> None:
        """value_list : value_list value"""
        p[0] = p[1] + [p[2]]

    def p_value_object(self, p: yacc.YaccProduction) -> None:
        """value : LBRACE object_field_list RBRACE
                 | LBRACE RBRACE"""
        if len(p) == 4:
            p[0] = dict(p[2])
        else:
            p[0] = {}

    def p_object_field_list_single(self, p: yacc.YaccProduction) -> None:
        """object_field_list : object_field"""
        p[0] = [p[1]]

    def p_object_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """object_field_list : object_field_list object_field"""
        p[0] = p[1] + [p[2]]

    def p_object_field(self, p: yacc.YaccProduction) -> None:
        """object_field : name COLON value"""
        p[0] = (p[1], p[3])

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise ParseError(f"Syntax error at '{p.value}' (position {p.lexpos})", p.lexpos)
        else:
            raise ParseError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="document", **kwargs)

    def parse(self, data: str) -> Operation:
        """Parse a request string.

        Raises:
            ParseError: If the request is not valid syntax.
        """
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.lexer.input(data)
        return self.parser.parse(data, lexer=self.lexer.lexer, tracking=True)
