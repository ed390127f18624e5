"""Lexer for the minigraph query language."""

import json

import ply.lex as lex

from minigraph.errors import ParseError


class QueryLexer:
    """Lexer for tokenizing query-language requests."""

    # Reserved keywords. They are still usable as field and argument names;
    # the parser accepts them wherever a name is expected.
    reserved = {
        "query": "QUERY",
        "mutation": "MUTATION",
        "true": "TRUE",
        "false": "FALSE",
        "null": "NULL",
    }

    # Token list
    tokens = [
        "VARIABLE",
        "IDENTIFIER",
        "INTEGER",
        "FLOAT",
        "STRING",
        "COLON",
        "BANG",
        "EQ",
        "LPAREN",
        "RPAREN",
        "LBRACKET",
        "RBRACKET",
        "LBRACE",
        "RBRACE",
    ] + list(reserved.values())

    # Simple tokens
    t_COLON = r":"
    t_BANG = r"!"
    t_EQ = r"="
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_LBRACKET = r"\["
    t_RBRACKET = r"\]"
    t_LBRACE = r"\{"
    t_RBRACE = r"\}"

    # Commas are insignificant, like whitespace
    t_ignore = " \t\r,"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_VARIABLE(self, t: lex.LexToken) -> lex.LexToken:
        r"\$[_a-zA-Z][_a-zA-Z0-9]*"
        t.value = t.value[1:]  # Strip the $ prefix, store just the name
        return t

    def t_FLOAT(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+(?:\.\d+(?:[eE][+-]?\d+)?|[eE][+-]?\d+)"
        t.value = float(t.value)
        return t

    def t_INTEGER(self, t: lex.LexToken) -> lex.LexToken:
        r"-?\d+"
        t.value = int(t.value)
        return t

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r'"([^"\\\n]|\\.)*"'
        # Escapes follow JSON: \" \\ \/ \b \f \n \r \t \uXXXX
        try:
            t.value = json.loads(t.value)
        except ValueError:
            raise ParseError(f"Invalid string literal {t.value} at position {t.lexpos}", t.lexpos)
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[_a-zA-Z][_a-zA-Z0-9]*"
        t.type = self.reserved.get(t.value, "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_COMMENT(self, t: lex.LexToken) -> None:
        r"\#[^\n]*"
        pass  # Ignore comments

    def t_error(self, t: lex.LexToken) -> None:
        raise ParseError(f"Illegal character '{t.value[0]}' at position {t.lexpos}", t.lexpos)

    # --- Lexer methods ---

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.lineno = 1
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens


# Module-level set of reserved keywords for use by other modules
RESERVED_KEYWORDS: frozenset[str] = frozenset(QueryLexer.reserved.keys())
