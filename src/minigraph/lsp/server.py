"""minigraph Language Server: diagnostics, completion, hover via pygls."""

from __future__ import annotations

import functools

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from minigraph.errors import ParseError, ValidationError
from minigraph.executor import QueryExecutor
from minigraph.logging import configure_logging
from minigraph.schema import Schema
from minigraph.tutorials import build_tutorial_schema
from minigraph.types import BUILTIN_SCALARS, ObjectType

# ---------------------------------------------------------------------------
# Static data
# ---------------------------------------------------------------------------

KEYWORDS: dict[str, str] = {
    "query": "Read-only operation; may be left out for the shorthand form",
    "mutation": "Operation whose root fields change the dataset, run one after another",
    "true": "Boolean literal",
    "false": "Boolean literal",
    "null": "Absence-of-value literal",
    "__typename": "Name of the object type the selection is on",
}

# ---------------------------------------------------------------------------
# Helpers (module-level so they are easy to unit-test)
# ---------------------------------------------------------------------------


def lexpos_to_position(source: str, lexpos: int) -> types.Position:
    """Convert a character offset into an LSP ``Position(line, character)``."""
    line = source.count("\n", 0, lexpos)
    last_nl = source.rfind("\n", 0, lexpos)
    character = lexpos if last_nl == -1 else lexpos - last_nl - 1
    return types.Position(line=line, character=character)


def _end_of_document(source: str) -> types.Position:
    lines = source.split("\n")
    return types.Position(line=max(len(lines) - 1, 0), character=len(lines[-1]) if lines else 0)


def _diagnostic(source: str, message: str, position: int | None) -> types.Diagnostic:
    start = lexpos_to_position(source, position) if position is not None else _end_of_document(source)
    end = types.Position(line=start.line, character=start.character + 1)
    return types.Diagnostic(
        range=types.Range(start=start, end=end),
        severity=types.DiagnosticSeverity.Error,
        source="minigraph",
        message=message,
    )


def collect_diagnostics(source: str, executor: QueryExecutor) -> list[types.Diagnostic]:
    """Return parse or validation problems of *source* as LSP diagnostics."""
    if not source.strip():
        return []
    try:
        operation = executor.parse(source)
    except ParseError as exc:
        return [_diagnostic(source, exc.message, exc.position)]
    try:
        executor.validate(operation)
    except ValidationError as exc:
        return [_diagnostic(source, v.message, v.position) for v in exc.violations]
    return []


def _field_detail(object_type: ObjectType, field_name: str) -> str:
    field_def = object_type.fields[field_name]
    return f"{object_type.name}.{field_name}: {field_def.type_def.name}"  # type: ignore[union-attr]


def field_completions(schema: Schema) -> list[types.CompletionItem]:
    """Return a completion item for every field of every object type."""
    items: list[types.CompletionItem] = []
    seen: set[str] = set()
    for object_type in schema.object_types():
        for name, field_def in object_type.fields.items():
            if name in seen:
                continue
            seen.add(name)
            items.append(
                types.CompletionItem(
                    label=name,
                    kind=types.CompletionItemKind.Field,
                    detail=_field_detail(object_type, name),
                    documentation=field_def.description,
                )
            )
    return items


def hover_text(schema: Schema, word: str) -> str | None:
    """Return markdown describing *word* as a field, type or keyword."""
    if word in KEYWORDS:
        return f"**{word}**: {KEYWORDS[word]}"

    scalars = {scalar.name: scalar for scalar in BUILTIN_SCALARS}
    if word in scalars:
        return f"**{word}**: {scalars[word].description}"

    if word in schema.registry:
        type_def = schema.get_type(word)
        description = getattr(type_def, "description", None)
        return f"**{word}**" + (f": {description}" if description else "")

    lines = []
    for object_type in schema.object_types():
        field_def = object_type.get_field(word)
        if field_def is None:
            continue
        line = f"`{_field_detail(object_type, word)}`"
        if field_def.description:
            line += f": {field_def.description}"
        lines.append(line)
    return "\n\n".join(lines) if lines else None


def _word_at_position(line_text: str, character: int) -> str:
    """Return the contiguous identifier-like word surrounding *character*."""
    if character < 0 or character >= len(line_text):
        return ""
    ch = line_text[character]
    if not (ch.isalnum() or ch == "_"):
        return ""
    # Scan left
    left = character
    while left > 0 and (line_text[left - 1].isalnum() or line_text[left - 1] == "_"):
        left -= 1
    # Scan right
    right = character
    while right < len(line_text) and (line_text[right].isalnum() or line_text[right] == "_"):
        right += 1
    return line_text[left:right]


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

server = LanguageServer("minigraph-language-server", "0.1.0")


@functools.cache
def _tutorial_executor() -> QueryExecutor:
    """Return the executor diagnostics run against, built on first use."""
    return QueryExecutor(build_tutorial_schema())


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: types.DidOpenTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: types.DidChangeTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


def _validate_document(uri: str) -> None:
    doc = server.workspace.get_text_document(uri)
    diagnostics = collect_diagnostics(doc.source, _tutorial_executor())
    server.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(
    types.TEXT_DOCUMENT_COMPLETION,
    types.CompletionOptions(trigger_characters=["{", " "]),
)
def completions(params: types.CompletionParams) -> types.CompletionList:
    items = field_completions(_tutorial_executor().schema)
    for name, desc in KEYWORDS.items():
        items.append(
            types.CompletionItem(
                label=name,
                kind=types.CompletionItemKind.Keyword,
                detail=desc,
            )
        )
    return types.CompletionList(is_incomplete=False, items=items)


@server.feature(types.TEXT_DOCUMENT_HOVER)
def hover(params: types.HoverParams) -> types.Hover | None:
    doc = server.workspace.get_text_document(params.text_document.uri)
    if params.position.line >= len(doc.lines):
        return None
    line_text = doc.lines[params.position.line]
    word = _word_at_position(line_text, params.position.character)
    if not word:
        return None

    content = hover_text(_tutorial_executor().schema, word)
    if content is None:
        return None
    return types.Hover(
        contents=types.MarkupContent(
            kind=types.MarkupKind.Markdown,
            value=content,
        )
    )


def main() -> None:
    # stdout is the JSON-RPC channel; logs must go to stderr
    configure_logging()
    server.start_io()


if __name__ == "__main__":
    main()
