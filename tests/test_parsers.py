# -*- coding: utf-8 -*-
"""Tests for node classification, $ref discovery and the schema parser."""

import pytest

from multischema.builders import ReferenceBuilder
from multischema.dependency_graph import DependencyGraphBuilder
from multischema.models import SchemaEntry
from multischema.parsers import (
    NodeKind,
    ParseContext,
    classify_node,
    extract_refs,
    parse_schema,
    resolve_pointer,
    split_member_path,
)
from multischema.parsers.refs import MISSING
from multischema.ref_resolver import RefResolver


def _context(registry, schema_id, graph=None, build_order=None, max_depth=None):
    entry = registry.get_entry(schema_id)
    return ParseContext.for_document(
        schema_id,
        entry.raw_schema,
        registry=registry,
        ref_resolver=RefResolver(registry),
        graph=graph,
        build_order=build_order,
        max_depth=max_depth,
    )


def _parse(registry, schema_id, **kwargs):
    ctx = _context(registry, schema_id, **kwargs)
    return parse_schema(registry.get_entry(schema_id).raw_schema, ctx), ctx


def _add(registry, schema_id, schema, export_name):
    registry.add_entry(SchemaEntry(id=schema_id, raw_schema=schema, export_name=export_name))


# ==============================================================================
# Classification
# ==============================================================================

class TestClassifyNode:
    """Tests for classify_node priority."""

    @pytest.mark.parametrize("node,kind", [
        ({"$ref": "#"}, NodeKind.REF),
        ({"type": "string", "nullable": True}, NodeKind.NULLABLE),
        ({"type": "object"}, NodeKind.OBJECT),
        ({"properties": {}}, NodeKind.OBJECT),
        ({"type": "object", "anyOf": []}, NodeKind.OBJECT),
        ({"type": "array"}, NodeKind.ARRAY),
        ({"anyOf": []}, NodeKind.ANY_OF),
        ({"allOf": []}, NodeKind.ALL_OF),
        ({"oneOf": []}, NodeKind.ONE_OF),
        ({"not": {}}, NodeKind.NOT),
        ({"enum": ["a"]}, NodeKind.ENUM),
        ({"const": None}, NodeKind.CONST),
        ({"type": ["string", "null"]}, NodeKind.MULTIPLE_TYPE),
        ({"type": "string"}, NodeKind.STRING),
        ({"type": "integer"}, NodeKind.NUMBER),
        ({"type": "boolean"}, NodeKind.BOOLEAN),
        ({"type": "null"}, NodeKind.NULL),
        ({"if": {}}, NodeKind.CONDITIONAL),
        ({}, NodeKind.UNKNOWN),
        ("not a schema", NodeKind.UNKNOWN),
    ])
    def test_classification(self, node, kind):
        assert classify_node(node) is kind

    def test_skip_nullable(self):
        assert classify_node({"type": "string", "nullable": True}, skip_nullable=True) is NodeKind.STRING


# ==============================================================================
# $ref discovery
# ==============================================================================

class TestExtractRefs:
    """Tests for extract_refs and pointer lookup."""

    def test_collects_from_all_subschema_locations(self):
        schema = {
            "properties": {"a": {"$ref": "a"}},
            "items": {"$ref": "b"},
            "allOf": [{"$ref": "c"}],
            "anyOf": [{"$ref": "d"}],
            "oneOf": [{"$ref": "e"}],
            "additionalProperties": {"$ref": "f"},
            "definitions": {"G": {"$ref": "g"}},
        }

        assert sorted(extract_refs(schema)) == ["a", "b", "c", "d", "e", "f", "g"]

    def test_document_order_and_deduplication(self):
        schema = {"properties": {
            "x": {"$ref": "user"},
            "y": {"items": {"$ref": "#/definitions/Tag"}},
            "z": {"$ref": "user"},
        }}

        assert extract_refs(schema) == ["user", "#/definitions/Tag"]

    def test_self_containing_tree_terminates(self, self_containing_schema):
        self_containing_schema["properties"]["other"] = {"$ref": "other"}

        assert extract_refs(self_containing_schema) == ["other"]

    def test_depth_limit(self):
        schema = {"items": {"items": {"items": {"$ref": "deep"}}}}

        assert extract_refs(schema, max_depth=2) == []
        assert extract_refs(schema, max_depth=3) == ["deep"]

    def test_resolve_pointer(self):
        root = {"definitions": {"a/b": {"type": "string"}}, "list": [{"x": 1}]}

        assert resolve_pointer(root, ["definitions", "a~1b"]) == {"type": "string"}
        assert resolve_pointer(root, ["list", "0", "x"]) == 1
        assert resolve_pointer(root, ["missing"]) is MISSING
        assert resolve_pointer(root, []) is root


class TestSplitMemberPath:
    """Tests for splitting pointers into member exports and shape accessors."""

    def _root(self):
        return {
            "type": "object",
            "properties": {
                "address": {
                    "type": "object",
                    "properties": {"zip": {"type": "string"}},
                },
                "tags": {"type": "array", "items": {"type": "string"}},
                "note": {"type": "object", "properties": {"text": {"type": "string"}}},
            },
            "required": ["address"],
            "definitions": {
                "Point": {"type": "object", "properties": {"x": {"type": "number"}}},
                "Choice": {"anyOf": [{"type": "string"}], "properties": {"y": {}}},
            },
        }

    @pytest.mark.parametrize("path,expected", [
        (["properties", "address"], ([], ["address"])),
        (["properties", "address", "properties", "zip"], ([], ["address", "zip"])),
        (["properties", "note", "properties", "text"], (["properties", "note"], ["text"])),
        (["properties", "tags", "items"], (["properties", "tags", "items"], [])),
        (["definitions", "Point"], (["definitions", "Point"], [])),
        (["definitions", "Point", "properties", "x"], (["definitions", "Point"], ["x"])),
        (["definitions", "Choice", "properties", "y"], (["definitions", "Choice", "properties", "y"], [])),
    ])
    def test_split(self, path, expected):
        assert split_member_path(self._root(), path) == expected

    def test_read_only_container_is_not_shape_accessible(self):
        root = {"type": "object", "readOnly": True, "properties": {"id": {"type": "string"}}}

        assert split_member_path(root, ["properties", "id"]) == (["properties", "id"], [])


# ==============================================================================
# Node parsing
# ==============================================================================

class TestParseSchema:
    """Tests for single-document parsing."""

    def test_object_with_required(self, registry, user_schema):
        _add(registry, "user", user_schema, "User")

        builder, _ = _parse(registry, "user")

        assert builder.render() == (
            'z.object({ "id": z.uuid(), "name": z.string().min(1), '
            '"age": z.number().int().gte(0).optional() })'
        )

    def test_boolean_schemas(self, registry):
        _add(registry, "doc", {"properties": {"any": True, "none": False}, "required": ["any", "none"]}, "Doc")

        builder, _ = _parse(registry, "doc")

        assert builder.render() == 'z.object({ "any": z.any(), "none": z.never() })'

    def test_annotations(self, registry):
        _add(registry, "doc", {"type": "string", "description": "Name", "default": "n/a"}, "Doc")

        builder, _ = _parse(registry, "doc")

        assert builder.render() == 'z.string().default("n/a").describe("Name")'

    def test_nullable(self, registry):
        _add(registry, "doc", {"type": "number", "nullable": True}, "Doc")

        assert _parse(registry, "doc")[0].render() == "z.number().nullable()"

    def test_multiple_types(self, registry):
        _add(registry, "doc", {"type": ["string", "null"]}, "Doc")

        assert _parse(registry, "doc")[0].render() == "z.union([z.string(), z.null()])"

    def test_empty_enum_is_never(self, registry):
        _add(registry, "doc", {"enum": []}, "Doc")

        assert _parse(registry, "doc")[0].render() == "z.never()"

    def test_record_from_additional_properties(self, registry):
        _add(registry, "doc", {"type": "object", "additionalProperties": {"type": "integer"}}, "Doc")

        assert _parse(registry, "doc")[0].render() == "z.record(z.string(), z.number().int())"

    def test_tuple_items(self, registry):
        _add(registry, "doc", {"type": "array", "prefixItems": [{"type": "string"}], "items": False}, "Doc")

        assert _parse(registry, "doc")[0].render() == "z.tuple([z.string()])"

    def test_draft4_exclusive_minimum(self, registry):
        _add(registry, "doc", {"type": "number", "minimum": 1, "exclusiveMinimum": True}, "Doc")

        assert _parse(registry, "doc")[0].render() == "z.number().gt(1)"

    def test_internal_reference_inlined(self, registry):
        schema = {
            "type": "object",
            "properties": {"home": {"$ref": "#/definitions/Address"}},
            "required": ["home"],
            "definitions": {"Address": {"type": "string"}},
        }
        _add(registry, "user", schema, "User")

        assert _parse(registry, "user")[0].render() == 'z.object({ "home": z.string() })'

    def test_missing_internal_pointer(self, registry):
        _add(registry, "doc", {"$ref": "#/definitions/Nope"}, "Doc")

        builder, ctx = _parse(registry, "doc")

        assert builder.render() == "z.unknown()"
        assert ctx.stats.unresolved_references == ["#/definitions/Nope"]


# ==============================================================================
# Recursion
# ==============================================================================

class TestRecursiveDocuments:
    """Tests for documents whose trees contain themselves."""

    def test_self_property_with_depth_two(self, registry, self_containing_schema):
        """The deepest ``self`` becomes the z.any() placeholder."""
        _add(registry, "loop", self_containing_schema, "Loop")

        builder, ctx = _parse(registry, "loop", max_depth=2)
        code = builder.render()

        assert code.count("z.object(") == 3
        assert '"self": z.any().optional()' in code
        assert ctx.guard.fallback_count == 1

    @pytest.mark.parametrize("max_depth", [None, 0, 1, 3, 10])
    def test_terminates_for_any_depth(self, registry, self_containing_schema, max_depth):
        _add(registry, "loop", self_containing_schema, "Loop")

        builder, _ = _parse(registry, "loop", max_depth=max_depth)

        assert builder.render().count("z.object(") == (max_depth or 0) + 1

    def test_recursive_internal_reference(self, registry):
        schema = {
            "$ref": "#/definitions/Node",
            "definitions": {"Node": {
                "type": "object",
                "properties": {"children": {"type": "array", "items": {"$ref": "#/definitions/Node"}}},
            }},
        }
        _add(registry, "tree", schema, "Tree")

        code = _parse(registry, "tree")[0].render()

        assert code == 'z.object({ "children": z.array(z.any()).optional() })'


# ==============================================================================
# Cross-document references
# ==============================================================================

class TestExternalReferences:
    """Tests for parse_ref against other documents."""

    def test_plain_reference(self, populated_registry):
        builder, ctx = _parse(populated_registry, "post")
        author = builder.properties["author"]

        assert isinstance(author, ReferenceBuilder)
        assert author.render() == "User"
        assert author.is_lazy is False
        assert ctx.stats.plain_references == ["user"]

    def test_unresolved_external_reference(self, registry):
        _add(registry, "post", {"properties": {"x": {"$ref": "ghost"}}, "required": ["x"]}, "Post")

        builder, ctx = _parse(registry, "post")

        assert builder.render() == 'z.object({ "x": z.unknown() })'
        assert ctx.stats.unresolved_references == ["ghost"]

    def test_pointer_to_property_uses_shape_accessor(self, populated_registry):
        _add(populated_registry, "comment", {"$ref": "user#/properties/name"}, "Comment")

        builder, ctx = _parse(populated_registry, "comment")

        assert builder.render() == "User.shape.name"
        assert builder.get_import_info().import_name == "User"
        assert ctx.stats.plain_references == ["user"]

    def test_pointer_to_definition_imports_member_export(self, registry):
        _add(registry, "geo", {"definitions": {"Point": {"type": "string"}}}, "Geo")
        _add(registry, "place", {"properties": {"at": {"$ref": "geo#/definitions/Point"}}}, "Place")

        builder, _ = _parse(registry, "place")
        at = builder.properties["at"]

        assert at.render() == "GeoPoint"
        assert at.get_import_info().import_name == "GeoPoint"
        assert at.get_import_info().module_path == "./geo"

    def test_missing_pointer_in_other_document(self, populated_registry):
        _add(populated_registry, "comment", {"$ref": "user#/properties/ghost"}, "Comment")

        builder, ctx = _parse(populated_registry, "comment")

        assert builder.render() == "z.unknown()"
        assert ctx.stats.unresolved_references == ["user#/properties/ghost"]

    def test_pointer_cycle_edge_pointing_back_is_lazy(self, registry):
        _add(registry, "a", {"properties": {"b": {"$ref": "b#/definitions/B"}},
                             "definitions": {"A": {"type": "string"}}}, "A")
        _add(registry, "b", {"properties": {"a": {"$ref": "a#/definitions/A"}},
                             "definitions": {"B": {"type": "number"}}}, "B")
        graph = DependencyGraphBuilder()
        graph.add_edge("a", "b")
        graph.add_edge("b", "a")
        graph.detect_cycles()
        snapshot = graph.snapshot()

        a_builder, _ = _parse(registry, "a", graph=snapshot, build_order=["a", "b"])
        b_builder, _ = _parse(registry, "b", graph=snapshot, build_order=["a", "b"])

        assert a_builder.properties["b"].render() == "BB"
        assert b_builder.properties["a"].render() == "z.lazy(() => AA)"
        assert b_builder.properties["a"].get_import_info().is_type_only is True

    def test_cycle_edge_pointing_back_is_lazy(self, registry):
        _add(registry, "a", {"properties": {"b": {"$ref": "b"}}}, "A")
        _add(registry, "b", {"properties": {"a": {"$ref": "a"}}}, "B")
        graph = DependencyGraphBuilder()
        graph.add_edge("a", "b")
        graph.add_edge("b", "a")
        graph.detect_cycles()
        snapshot = graph.snapshot()

        a_builder, _ = _parse(registry, "a", graph=snapshot, build_order=["a", "b"])
        b_builder, _ = _parse(registry, "b", graph=snapshot, build_order=["a", "b"])

        a_ref = a_builder.properties["b"]
        b_ref = b_builder.properties["a"]
        assert a_ref.is_lazy is False
        assert a_ref.import_info.is_type_only is False
        assert b_ref.is_lazy is True
        assert b_ref.import_info.is_type_only is True
        assert b_ref.render() == "z.lazy(() => A)"

    def test_self_reference_by_id(self, registry):
        _add(registry, "node", {"properties": {"next": {"$ref": "node"}}}, "Node")
        graph = DependencyGraphBuilder()
        graph.add_edge("node", "node")
        graph.detect_cycles()

        builder, _ = _parse(registry, "node", graph=graph.snapshot(), build_order=["node"])

        assert builder.render() == 'z.object({ "next": z.lazy(() => Node).optional() })'
        assert list(builder.iter_references())[0].get_import_info() is None
