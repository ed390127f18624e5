"""Tests for mutations against the tutorial dataset."""

import threading

import pytest

from minigraph.executor import QueryExecutor
from minigraph.tutorials import AUTHORS, TUTORIALS, build_tutorial_schema, populate

CREATE = """
mutation {
    createTutorial(id: %d, title: "%s", author: {id: 1, name: "Elliot Forbes"}) {
        id
        title
        author { id name }
    }
}
"""


@pytest.fixture
def store():
    return populate()


@pytest.fixture
def executor(store):
    return QueryExecutor(build_tutorial_schema(), store)


class TestCreateTutorial:
    """Tests for the createTutorial mutation."""

    def test_create_returns_tutorial(self, executor, store):
        result = executor.execute(CREATE % (5, "Hello World"))

        assert result.errors == []
        assert result.data == {
            "createTutorial": {
                "id": 5,
                "title": "Hello World",
                "author": {"id": 1, "name": "Elliot Forbes"},
            }
        }
        assert store.count(TUTORIALS) == 3

    def test_created_tutorial_is_queryable(self, executor):
        executor.execute(CREATE % (5, "Hello World"))

        result = executor.execute("{ tutorial(id: 5) { title } tutorialList { id } }")
        assert result.data == {
            "tutorial": {"title": "Hello World"},
            "tutorialList": [{"id": 1}, {"id": 2}, {"id": 5}],
        }

    def test_authors_are_unchanged(self, executor, store):
        executor.execute('mutation { createTutorial(id: 5, title: "T", author: {id: 10, name: "New"}) { id } }')
        assert store.count(AUTHORS) == 2

    def test_without_author(self, executor, store):
        result = executor.execute('mutation { createTutorial(id: 6, title: "Solo") { id author { name } } }')

        assert result.ok
        assert result.data == {"createTutorial": {"id": 6, "author": None}}
        assert store.count(TUTORIALS) == 3

    def test_new_tutorial_has_no_comments(self, executor):
        result = executor.execute('mutation { createTutorial(id: 6, title: "Solo") { comments { body } } }')
        assert result.data == {"createTutorial": {"comments": []}}

    def test_missing_id_does_not_append(self, executor, store):
        result = executor.execute('mutation { createTutorial(title: "No id") { id } }')

        assert result.data == {"createTutorial": None}
        assert [e.message for e in result.errors] == ["missing required argument id"]
        assert result.errors[0].path == ["createTutorial"]
        assert store.count(TUTORIALS) == 2

    def test_null_title_does_not_append(self, executor, store):
        result = executor.execute("mutation { createTutorial(id: 7, title: null) { id } }")

        assert result.errors[0].message == "argument title must not be null"
        assert store.count(TUTORIALS) == 2

    def test_incomplete_author_does_not_append(self, executor, store):
        result = executor.execute('mutation { createTutorial(id: 7, title: "T", author: {id: 1}) { id } }')

        assert result.errors[0].message == "missing required argument author.name"
        assert store.count(TUTORIALS) == 2

    def test_unknown_author_key_rejected(self, executor, store):
        result = executor.execute(
            'mutation { createTutorial(id: 7, title: "T", author: {id: 1, name: "A", email: "a@b"}) { id } }'
        )

        assert result.errors[0].message == "unknown field email for AuthorInput"
        assert store.count(TUTORIALS) == 2

    def test_unknown_author_key_ignored_when_permissive(self, store):
        executor = QueryExecutor(build_tutorial_schema(), store, strict_input=False)
        result = executor.execute(
            'mutation { createTutorial(id: 7, title: "T", author: {id: 1, name: "A", email: "a@b"}) { id } }'
        )

        assert result.ok
        assert store.count(TUTORIALS) == 3

    def test_duplicate_id(self, executor, store):
        result = executor.execute(CREATE % (1, "Again"))

        assert result.data == {"createTutorial": None}
        assert result.errors[0].message == "Tutorial with id 1 already exists"
        assert store.count(TUTORIALS) == 2

    def test_mutations_run_in_request_order(self, executor, store):
        result = executor.execute(
            """
            mutation {
                a: createTutorial(id: 10, title: "A") { id }
                b: createTutorial(id: 10, title: "B") { id }
                c: createTutorial(id: 11, title: "C") { id }
            }
            """
        )

        assert result.data == {"a": {"id": 10}, "b": None, "c": {"id": 11}}
        assert [e.path for e in result.errors] == [["b"]]
        assert [t.title for t in store.all(TUTORIALS)][2:] == ["A", "C"]

    def test_unknown_mutation_field(self, executor, store):
        result = executor.execute('mutation { deleteTutorial(id: 1) { id } }')

        assert result.data is None
        assert result.errors[0].message == "Cannot query field 'deleteTutorial' on type 'RootMutation'"
        assert store.count(TUTORIALS) == 2


class TestConcurrency:
    """Concurrent requests share one store."""

    def test_concurrent_distinct_mutations(self, executor, store):
        count = 20
        results = [None] * count

        def create(n):
            results[n] = executor.execute(CREATE % (100 + n, f"Tutorial {n}"))

        threads = [threading.Thread(target=create, args=(n,)) for n in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert all(result.ok for result in results)
        assert store.count(TUTORIALS) == 2 + count
        ids = [t.id for t in store.all(TUTORIALS)]
        assert sorted(ids[2:]) == [100 + n for n in range(count)]

    def test_concurrent_same_id(self, executor, store):
        count = 10
        results = [None] * count

        def create(n):
            results[n] = executor.execute(CREATE % (50, f"Racer {n}"))

        threads = [threading.Thread(target=create, args=(n,)) for n in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert sum(1 for result in results if result.ok) == 1
        assert store.count(TUTORIALS) == 3

    def test_reads_during_writes(self, executor, store):
        count = 10
        lengths = []

        def read():
            result = executor.execute("{ tutorialList { id } }")
            lengths.append(len(result.data["tutorialList"]))

        def write(n):
            executor.execute(CREATE % (200 + n, "W"))

        threads = [threading.Thread(target=write, args=(n,)) for n in range(count)]
        threads += [threading.Thread(target=read) for _ in range(count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert all(2 <= n <= 2 + count for n in lengths)
        assert store.count(TUTORIALS) == 2 + count
