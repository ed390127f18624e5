"""Tests for schema construction."""

from dataclasses import dataclass

import pytest

from minigraph.errors import ConstructionError
from minigraph.schema import build_schema
from minigraph.tutorials import build_tutorial_schema
from minigraph.types import (
    ArgumentDefinition,
    FieldDefinition,
    InputObjectType,
    Int,
    ListType,
    ObjectType,
    String,
)


@dataclass
class Point:
    x: int
    y: int


class TestBuildSchema:
    """Tests for build_schema."""

    def test_tutorial_schema_types(self):
        schema = build_tutorial_schema()

        for name in ("RootQuery", "RootMutation", "Tutorial", "Author", "Comment", "AuthorInput"):
            assert name in schema.list_types()
        assert schema.query_type.name == "RootQuery"
        assert schema.mutation_type.name == "RootMutation"
        assert list(schema.query_type.fields) == ["tutorial", "author", "tutorialList", "authorList"]
        assert list(schema.mutation_type.fields) == ["createTutorial"]

    def test_root_type(self):
        schema = build_tutorial_schema()
        assert schema.root_type("query") is schema.query_type
        assert schema.root_type("mutation") is schema.mutation_type

    def test_without_mutation_type(self):
        schema = build_schema([FieldDefinition("hello", String)])
        assert schema.mutation_type is None
        assert schema.root_type("mutation") is None

    def test_custom_root_names(self):
        schema = build_schema(
            [FieldDefinition("hello", String)],
            [FieldDefinition("bump", Int)],
            query_name="Query",
            mutation_name="Mutation",
        )
        assert schema.query_type.name == "Query"
        assert schema.mutation_type.name == "Mutation"

    def test_reachable_types_are_registered(self):
        comment = ObjectType(name="Comment", fields=[FieldDefinition("body", String)])
        tutorial = ObjectType(
            name="Tutorial",
            fields=[FieldDefinition("comments", ListType(comment))],
        )
        schema = build_schema([FieldDefinition("tutorial", tutorial)])
        assert schema.get_type("Comment") is comment
        assert schema.get_type("Tutorial") is tutorial
        assert schema.object_types() == [schema.query_type, tutorial, comment]

    def test_named_references_resolve(self):
        author = ObjectType(
            name="Author",
            fields=[
                FieldDefinition("name", String),
                FieldDefinition("tutorials", ListType("Tutorial")),
            ],
        )
        tutorial = ObjectType(
            name="Tutorial",
            fields=[FieldDefinition("title", String), FieldDefinition("author", "Author")],
        )
        schema = build_schema([FieldDefinition("tutorial", tutorial)], types=[author])

        assert tutorial.fields["author"].type_def is author
        assert author.fields["tutorials"].type_def.of_type is tutorial

    def test_extra_types_are_registered(self):
        extra = ObjectType(name="Unused", fields=[FieldDefinition("id", Int)])
        schema = build_schema([FieldDefinition("hello", String)], types=[extra])
        assert schema.get_type("Unused") is extra

    def test_fields_given_as_mapping(self):
        schema = build_schema({"hello": FieldDefinition("hello", String)})
        assert list(schema.query_type.fields) == ["hello"]

    def test_root_given_as_object_type(self):
        root = ObjectType(name="Root", fields=[FieldDefinition("hello", String)])
        schema = build_schema(root)
        assert schema.query_type is root


class TestConstructionErrors:
    """Malformed schemas are rejected while building."""

    def test_unknown_type_name(self):
        with pytest.raises(ConstructionError, match="unknown type 'Missing'"):
            build_schema([FieldDefinition("thing", "Missing")])

    def test_unknown_list_element_type(self):
        with pytest.raises(ConstructionError, match="unknown type 'Missing'"):
            build_schema([FieldDefinition("things", ListType("Missing"))])

    def test_unknown_argument_type(self):
        with pytest.raises(ConstructionError, match="unknown type"):
            build_schema(
                [FieldDefinition("thing", String, arguments=[ArgumentDefinition("id", "Missing")])]
            )

    def test_object_argument_type(self):
        comment = ObjectType(name="Comment", fields=[FieldDefinition("body", String)])
        with pytest.raises(ConstructionError, match="scalar or input object"):
            build_schema(
                [FieldDefinition("thing", String, arguments=[ArgumentDefinition("c", comment)])]
            )

    def test_list_argument_type(self):
        with pytest.raises(ConstructionError, match="scalar or input object"):
            build_schema(
                [FieldDefinition("thing", String, arguments=[ArgumentDefinition("ids", ListType(Int))])]
            )

    def test_input_type_as_field_type(self):
        point_input = InputObjectType(name="PointInput", fields=[ArgumentDefinition("x", Int)])
        with pytest.raises(ConstructionError, match="input type"):
            build_schema([FieldDefinition("point", point_input)])

    def test_empty_query_root(self):
        with pytest.raises(ConstructionError, match="no fields"):
            build_schema([])

    def test_empty_mutation_root(self):
        with pytest.raises(ConstructionError, match="Root type 'RootMutation' has no fields"):
            build_schema([FieldDefinition("hello", String)], [])

    def test_duplicate_type_names(self):
        first = ObjectType(name="Thing", fields=[FieldDefinition("id", Int)])
        second = ObjectType(name="Thing", fields=[FieldDefinition("id", Int)])
        with pytest.raises(ConstructionError, match="already defined"):
            build_schema([FieldDefinition("a", first), FieldDefinition("b", second)])

    def test_shadowing_builtin_scalar(self):
        with pytest.raises(ConstructionError, match="already defined"):
            build_schema([FieldDefinition("a", ObjectType(name="Int", fields=[FieldDefinition("id", Int)]))])

    def test_invalid_type_value(self):
        with pytest.raises(ConstructionError, match="invalid type"):
            build_schema([FieldDefinition("a", 42)])

    def test_mismatched_field_key(self):
        with pytest.raises(ConstructionError, match="registered as"):
            build_schema({"greeting": FieldDefinition("hello", String)})

    def test_accessor_for_unknown_field(self):
        point = ObjectType(
            name="Point",
            fields=[FieldDefinition("x", Int)],
            accessors={"z": lambda parent: 0},
        )
        with pytest.raises(ConstructionError, match="unknown field 'Point.z'"):
            build_schema([FieldDefinition("point", point)])


class TestAccessorTable:
    """Fields without resolvers read from the parent through the accessor table."""

    def _schema(self, **point_kwargs):
        point = ObjectType(
            name="Point",
            fields=[
                FieldDefinition("x", Int),
                FieldDefinition("y", Int),
                FieldDefinition("horizontal", Int, source="x"),
            ],
            **point_kwargs,
        )
        return build_schema([FieldDefinition("point", point)])

    def test_reads_attributes(self):
        schema = self._schema()
        assert schema.accessor("Point", "x")(Point(x=1, y=2)) == 1

    def test_reads_mapping_keys(self):
        schema = self._schema()
        assert schema.accessor("Point", "y")({"x": 1, "y": 2}) == 2

    def test_missing_value_is_none(self):
        schema = self._schema()
        assert schema.accessor("Point", "y")({"x": 1}) is None
        assert schema.accessor("Point", "y")(object()) is None

    def test_reads_properties_and_unset_slots(self):
        class Slotted:
            __slots__ = ("x",)

            @property
            def y(self):
                return self.x * 2

        schema = self._schema()
        read_x = schema.accessor("Point", "x")
        read_y = schema.accessor("Point", "y")
        unset = Slotted()
        point = Slotted()
        point.x = 4

        assert read_x(unset) is None
        assert read_y(unset) is None
        assert read_x(point) == 4
        assert read_y(point) == 8
        assert read_y({"y": 5}) == 5

    def test_source_renames(self):
        schema = self._schema()
        assert schema.accessor("Point", "horizontal")(Point(x=5, y=0)) == 5

    def test_custom_accessor(self):
        schema = self._schema(accessors={"y": lambda parent: parent.y * 10})
        assert schema.accessor("Point", "y")(Point(x=1, y=2)) == 20

    def test_every_object_type_has_a_table(self):
        schema = build_tutorial_schema()
        for object_type in schema.object_types():
            for name in object_type.fields:
                assert callable(schema.accessor(object_type.name, name))
