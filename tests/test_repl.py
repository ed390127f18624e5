"""Tests for the minigraph command line."""

import json
from pathlib import Path

import pytest

from minigraph.errors import ExecutionError
from minigraph.executor import ExecutionResult, QueryExecutor
from minigraph.repl import brace_balance, format_result, main, run_repl
from minigraph.tutorials import build_tutorial_schema, populate


class TestHelperFunctions:
    """Tests for REPL helper functions."""

    def test_brace_balance(self):
        assert brace_balance("{ tutorialList { id } }") == 0
        assert brace_balance("{ tutorialList {") == 2
        assert brace_balance("}") == -1

    def test_brace_balance_ignores_strings(self):
        assert brace_balance('{ f(s: "{{") }') == 0
        assert brace_balance(r'{ f(s: "\"{") }') == 0

    def test_brace_balance_ignores_comments(self):
        assert brace_balance("{ # {\n}") == 0

    def test_format_result_without_errors(self):
        output = json.loads(format_result(ExecutionResult(data={"a": 1})))
        assert output == {"data": {"a": 1}}

    def test_format_result_with_errors(self):
        result = ExecutionResult(data=None, errors=[ExecutionError("bad", path=["a"])])
        output = json.loads(format_result(result))
        assert output == {"data": None, "errors": [{"message": "bad", "path": ["a"]}]}


class TestCommand:
    """Tests for -c/--command."""

    def test_query(self, capsys):
        code = main(["-c", "{ tutorialList { id title } }"])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert output == {
            "data": {
                "tutorialList": [
                    {"id": 1, "title": "Go GraphQL Tutorial"},
                    {"id": 2, "title": "Pandit Football Tutorial"},
                ]
            }
        }

    def test_errors_exit_nonzero(self, capsys):
        code = main(["-c", "{ tutorialList { nope } }"])
        output = json.loads(capsys.readouterr().out)

        assert code == 1
        assert output["data"] is None
        assert output["errors"][0]["message"] == "Cannot query field 'nope' on type 'Tutorial'"

    def test_syntax_error(self, capsys):
        code = main(["-c", "{ tutorialList"])
        output = json.loads(capsys.readouterr().out)

        assert code == 1
        assert "end of input" in output["errors"][0]["message"]

    def test_variables(self, capsys):
        code = main([
            "-c", "query Q($id: Int) { author(id: $id) { name } }",
            "--variables", '{"id": 2}',
        ])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert output["data"] == {"author": {"name": "Max Lopez"}}

    def test_invalid_variables(self, capsys):
        code = main(["-c", "{ authorList { id } }", "--variables", "{not json"])
        assert code == 1
        assert "Invalid --variables JSON" in capsys.readouterr().err

    def test_variables_must_be_object(self, capsys):
        code = main(["-c", "{ authorList { id } }", "--variables", "[1]"])
        assert code == 1
        assert "must be a JSON object" in capsys.readouterr().err

    def test_permissive_input(self, capsys):
        mutation = 'mutation { createTutorial(id: 3, title: "T", author: {id: 1, name: "A", x: 1}) { id } }'

        assert main(["-c", mutation]) == 1
        capsys.readouterr()
        assert main(["-c", mutation, "--permissive-input"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["data"] == {"createTutorial": {"id": 3}}

    def test_max_depth(self, capsys):
        code = main(["-c", "{ tutorial(id: 1) { author { name } } }", "--max-depth", "2"])
        output = json.loads(capsys.readouterr().out)

        assert code == 1
        assert output["errors"][0]["message"] == "Selection depth exceeds the maximum of 2"


class TestFile:
    """Tests for -f/--file."""

    def test_run_file(self, tmp_path: Path, capsys):
        request = tmp_path / "request.graphql"
        request.write_text("""
# Every tutorial with its comments
{
    tutorialList {
        title
        comments { body }
    }
}
""")
        code = main(["-f", str(request)])
        output = json.loads(capsys.readouterr().out)

        assert code == 0
        assert output["data"]["tutorialList"][1] == {
            "title": "Pandit Football Tutorial",
            "comments": [{"body": "Second Comment"}],
        }

    def test_file_not_found(self, tmp_path: Path, capsys):
        code = main(["-f", str(tmp_path / "missing.graphql")])
        assert code == 1
        assert "File not found" in capsys.readouterr().err


class TestRepl:
    """Tests for the interactive loop."""

    @pytest.fixture
    def run(self, monkeypatch, tmp_path, capsys):
        monkeypatch.setenv("HOME", str(tmp_path))

        def run(lines):
            inputs = iter(lines)

            def fake_input(prompt=""):
                try:
                    return next(inputs)
                except StopIteration:
                    raise EOFError

            monkeypatch.setattr("builtins.input", fake_input)
            executor = QueryExecutor(build_tutorial_schema(), populate())
            code = run_repl(executor)
            return code, capsys.readouterr().out

        return run

    def test_exit(self, run):
        code, out = run(["exit"])
        assert code == 0
        assert "minigraph REPL" in out

    def test_multiline_request(self, run):
        code, out = run(["{", "  author(id: 1) {", "    name", "  }", "}", "exit"])
        assert code == 0
        assert '"name": "Elliot Forbes"' in out

    def test_mutation_persists_for_session(self, run):
        code, out = run([
            'mutation { createTutorial(id: 9, title: "Session") { id } }',
            "{ tutorial(id: 9) { title } }",
        ])
        assert code == 0
        assert '"title": "Session"' in out

    def test_help(self, run):
        _, out = run(["help"])
        assert "createTutorial" in out

    def test_schema(self, run):
        _, out = run(["schema"])
        assert "type Tutorial {" in out
        assert "tutorial(id: Int): Tutorial  # Get Tutorial By ID" in out
        assert "createTutorial(id: Int!, title: String!, author: AuthorInput): Tutorial" in out
