"""Interactive REPL for running requests against the tutorial dataset."""

from __future__ import annotations

import argparse
import json
import readline  # noqa: F401 - enables line editing in input()
import sys
from pathlib import Path
from typing import Any

from minigraph.executor import DEFAULT_MAX_DEPTH, ExecutionResult, QueryExecutor
from minigraph.logging import configure_logging
from minigraph.schema import Schema
from minigraph.tutorials import build_tutorial_schema, populate


def brace_balance(text: str) -> int:
    """Return open braces minus closing braces, ignoring string literals and comments."""
    depth = 0
    in_string = False
    escape = False
    in_comment = False
    for char in text:
        if in_comment:
            if char == "\n":
                in_comment = False
            continue
        if escape:
            escape = False
            continue
        if in_string:
            if char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "#":
            in_comment = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
    return depth


def format_result(result: ExecutionResult) -> str:
    """Render a result as indented JSON, leaving out an empty error list."""
    output = result.to_dict()
    if not output["errors"]:
        del output["errors"]
    return json.dumps(output, indent=2)


def print_schema(schema: Schema) -> None:
    """Print the object types of the schema with their fields."""
    for object_type in schema.object_types():
        print(f"type {object_type.name} {{")
        for field_def in object_type.fields.values():
            args = ""
            if field_def.arguments:
                args = "(" + ", ".join(
                    f"{arg.name}: {arg.type_def.name}{'!' if arg.required else ''}"  # type: ignore[union-attr]
                    for arg in field_def.arguments.values()
                ) + ")"
            line = f"  {field_def.name}{args}: {field_def.type_def.name}"  # type: ignore[union-attr]
            if field_def.description:
                line += f"  # {field_def.description}"
            print(line)
        print("}")


def run_repl(executor: QueryExecutor) -> int:
    """Run the interactive REPL."""
    print("minigraph REPL - tutorial dataset")
    print("Type 'help' for commands, 'exit' to quit.\n")

    # Command history
    history_file = Path.home() / ".minigraph_history"
    try:
        readline.read_history_file(history_file)
    except FileNotFoundError:
        pass

    try:
        while True:
            try:
                line = input("minigraph> ")
            except EOFError:
                print()
                break

            stripped = line.strip()
            if not stripped:
                continue

            lower = stripped.lower()
            if lower in ("exit", "quit"):
                break
            if lower == "help":
                print_help()
                continue
            if lower == "schema":
                print_schema(executor.schema)
                continue

            # Requests span lines until their braces balance
            lines = [line]
            while brace_balance("\n".join(lines)) > 0:
                try:
                    lines.append(input("...> "))
                except EOFError:
                    print()
                    break

            result = executor.execute("\n".join(lines))
            print(format_result(result))
            print()

    finally:
        try:
            readline.set_history_length(1000)
            readline.write_history_file(history_file)
        except OSError:
            pass

    return 0


def print_help() -> None:
    """Print help information."""
    print("""
minigraph - query the tutorial dataset

REQUESTS:
  { tutorialList { id title } }             Query (shorthand form)
  query { tutorial(id: 1) { title } }       Named operation type
  query Q($id: Int) { author(id: $id) { name } }
  mutation {
    createTutorial(id: 3, title: "New", author: {id: 1, name: "Elliot Forbes"}) {
      id title
    }
  }

QUERY FIELDS:
  tutorial(id: Int)     Get Tutorial By ID
  author(id: Int)       Get Author By ID
  tutorialList          Get Tutorial List
  authorList            Get Author List

MUTATIONS:
  createTutorial(id: Int!, title: String!, author: AuthorInput)

COMMANDS:
  schema                Show the object types and their fields
  help                  Show this help
  exit, quit            Leave the REPL

Requests can span multiple lines; input continues until braces balance.
Mutations change the dataset for the rest of the session.
""")


def run_request(executor: QueryExecutor, source: str, variables: dict[str, Any] | None) -> int:
    """Execute one request and print its result.

    Returns:
        0 when the request produced no errors, 1 otherwise
    """
    result = executor.execute(source, variables)
    print(format_result(result))
    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    arg_parser = argparse.ArgumentParser(
        description="Run requests against the tutorial dataset"
    )
    arg_parser.add_argument(
        "-c", "--command",
        type=str,
        help="Execute a single request and exit",
    )
    arg_parser.add_argument(
        "-f", "--file",
        type=Path,
        help="Execute the request in a file and exit",
    )
    arg_parser.add_argument(
        "--variables",
        type=str,
        help="JSON object of variable values (for -c/--command and -f/--file)",
    )
    arg_parser.add_argument(
        "--permissive-input",
        action="store_true",
        help="Ignore input-object keys the input type does not declare",
    )
    arg_parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Deepest selection nesting a request may use (default: {DEFAULT_MAX_DEPTH})",
    )
    arg_parser.add_argument(
        "--debug",
        action="store_true",
        help="Log debug output to stderr",
    )

    args = arg_parser.parse_args(argv)
    configure_logging(debug=args.debug)

    variables: dict[str, Any] | None = None
    if args.variables:
        try:
            variables = json.loads(args.variables)
        except json.JSONDecodeError as e:
            print(f"Error: Invalid --variables JSON: {e}", file=sys.stderr)
            return 1
        if not isinstance(variables, dict):
            print("Error: --variables must be a JSON object", file=sys.stderr)
            return 1

    executor = QueryExecutor(
        build_tutorial_schema(),
        populate(),
        strict_input=not args.permissive_input,
        max_depth=args.max_depth,
    )

    if args.file:
        if not args.file.exists():
            print(f"Error: File not found: {args.file}", file=sys.stderr)
            return 1
        try:
            source = args.file.read_text()
        except OSError as e:
            print(f"Error reading file: {e}", file=sys.stderr)
            return 1
        return run_request(executor, source, variables)

    if args.command:
        return run_request(executor, args.command, variables)

    return run_repl(executor)


if __name__ == "__main__":
    sys.exit(main())
