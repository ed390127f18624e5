"""Tutorial demo: entity types, seed data and the tutorial schema."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from minigraph.errors import ResolutionError
from minigraph.resolvers import ResolveInfo
from minigraph.schema import Schema, build_schema
from minigraph.store import InMemoryStore
from minigraph.types import (
    ArgumentDefinition,
    FieldDefinition,
    InputObjectType,
    Int,
    ListType,
    ObjectType,
    String,
)

TUTORIALS = "tutorials"
AUTHORS = "authors"


@dataclass(frozen=True)
class Comment:
    body: str


@dataclass(frozen=True)
class Author:
    id: int
    name: str
    tutorials: tuple[int, ...] = ()


@dataclass(frozen=True)
class Tutorial:
    id: int
    title: str
    author: Author | None = None
    comments: tuple[Comment, ...] = ()


def populate() -> InMemoryStore:
    """Return a store seeded with the demo authors and tutorials."""
    elliot = Author(id=1, name="Elliot Forbes", tutorials=(1,))
    max_lopez = Author(id=2, name="Max Lopez", tutorials=(2,))
    return InMemoryStore(
        {
            TUTORIALS: [
                Tutorial(
                    id=1,
                    title="Go GraphQL Tutorial",
                    author=elliot,
                    comments=(Comment(body="First Comment"),),
                ),
                Tutorial(
                    id=2,
                    title="Pandit Football Tutorial",
                    author=max_lopez,
                    comments=(Comment(body="Second Comment"),),
                ),
            ],
            AUTHORS: [elliot, max_lopez],
        }
    )


# --- Resolvers ---


def _store(info: ResolveInfo) -> InMemoryStore:
    if info.store is None:
        raise ResolutionError(f"Field '{info.field_name}' needs a dataset store")
    return info.store


def resolve_tutorial(parent: Any, args: dict[str, Any], info: ResolveInfo) -> Tutorial | None:
    if "id" not in args:
        return None
    return _store(info).find_by_id(TUTORIALS, args["id"])


def resolve_author(parent: Any, args: dict[str, Any], info: ResolveInfo) -> Author | None:
    if "id" not in args:
        return None
    return _store(info).find_by_id(AUTHORS, args["id"])


def resolve_tutorial_list(parent: Any, args: dict[str, Any], info: ResolveInfo) -> tuple[Tutorial, ...]:
    return _store(info).all(TUTORIALS)


def resolve_author_list(parent: Any, args: dict[str, Any], info: ResolveInfo) -> tuple[Author, ...]:
    return _store(info).all(AUTHORS)


def create_tutorial(parent: Any, args: dict[str, Any], info: ResolveInfo) -> Tutorial:
    """Append a new tutorial and return it.

    The submitted author is attached to the tutorial only; the authors
    collection is left as it is.
    """
    store = _store(info)
    author_input = args.get("author")
    author = None
    if author_input is not None:
        author = Author(id=author_input["id"], name=author_input["name"])
    tutorial = Tutorial(id=args["id"], title=args["title"], author=author)

    with store.writing():
        if store.find_by_id(TUTORIALS, tutorial.id) is not None:
            raise ResolutionError(f"Tutorial with id {tutorial.id} already exists")
        store.append(TUTORIALS, tutorial)
    return tutorial


# --- Schema ---


def build_tutorial_schema() -> Schema:
    """Build the schema over the demo dataset."""
    comment_type = ObjectType(
        name="Comment",
        fields=[FieldDefinition("body", String)],
    )
    author_type = ObjectType(
        name="Author",
        fields=[
            FieldDefinition("id", Int),
            FieldDefinition("name", String),
            FieldDefinition("tutorials", ListType(Int), description="Ids of the author's tutorials"),
        ],
    )
    tutorial_type = ObjectType(
        name="Tutorial",
        fields=[
            FieldDefinition("id", Int),
            FieldDefinition("title", String),
            FieldDefinition("author", author_type),
            FieldDefinition("comments", ListType(comment_type)),
        ],
    )
    author_input = InputObjectType(
        name="AuthorInput",
        fields=[
            ArgumentDefinition("id", Int, required=True),
            ArgumentDefinition("name", String, required=True),
        ],
    )

    id_argument = [ArgumentDefinition("id", Int)]
    query_fields = [
        FieldDefinition(
            "tutorial",
            tutorial_type,
            arguments=id_argument,
            resolver=resolve_tutorial,
            description="Get Tutorial By ID",
        ),
        FieldDefinition(
            "author",
            author_type,
            arguments=id_argument,
            resolver=resolve_author,
            description="Get Author By ID",
        ),
        FieldDefinition(
            "tutorialList",
            ListType(tutorial_type),
            resolver=resolve_tutorial_list,
            description="Get Tutorial List",
        ),
        FieldDefinition(
            "authorList",
            ListType(author_type),
            resolver=resolve_author_list,
            description="Get Author List",
        ),
    ]
    mutation_fields = [
        FieldDefinition(
            "createTutorial",
            tutorial_type,
            arguments=[
                ArgumentDefinition("id", Int, required=True),
                ArgumentDefinition("title", String, required=True),
                ArgumentDefinition("author", author_input),
            ],
            resolver=create_tutorial,
            description="Create a new Tutorial",
        ),
    ]
    return build_schema(query_fields, mutation_fields)
