# -*- coding: utf-8 -*-
"""Tests for the Zod code builders."""

import pytest

from multischema.builders import (
    AnyBuilder,
    ArrayBuilder,
    BooleanBuilder,
    ConditionalBuilder,
    EnumBuilder,
    IntersectionBuilder,
    LiteralBuilder,
    NotBuilder,
    NumberBuilder,
    ObjectBuilder,
    RecordBuilder,
    ReferenceBuilder,
    StringBuilder,
    TupleBuilder,
    UnionBuilder,
)
from multischema.models import ImportInfo, ImportKind


# ==============================================================================
# Modifiers
# ==============================================================================

class TestModifiers:
    """Tests for the fluent modifiers shared by all builders."""

    def test_modifier_order(self):
        code = StringBuilder().optional().nullable().default("x").describe("Name").render()

        assert code == 'z.string().optional().nullable().default("x").describe("Name")'

    def test_fluent_returns_same_builder(self):
        builder = BooleanBuilder()

        assert builder.optional() is builder
        assert builder.is_optional

    def test_default_none_is_rendered(self):
        """A default of null is still a default."""
        assert AnyBuilder().default(None).render() == "z.any().default(null)"

    def test_readonly(self):
        assert ArrayBuilder(StringBuilder()).readonly().render() == "z.array(z.string()).readonly()"


# ==============================================================================
# Leaf builders
# ==============================================================================

class TestLeafBuilders:
    """Tests for primitive builders."""

    @pytest.mark.parametrize("fmt,expected", [
        ("email", "z.email()"),
        ("uuid", "z.uuid()"),
        ("date-time", "z.iso.datetime()"),
        ("uri", "z.url()"),
        ("hostname", "z.string()"),
    ])
    def test_string_formats(self, fmt, expected):
        assert StringBuilder(format=fmt).render() == expected

    def test_string_constraints(self):
        code = StringBuilder(min_length=1, max_length=5, pattern="^a").render()

        assert code == 'z.string().min(1).max(5).regex(new RegExp("^a"))'

    def test_number_constraints(self):
        code = NumberBuilder(integer=True, minimum=0, exclusive_maximum=10, multiple_of=2).render()

        assert code == "z.number().int().gte(0).lt(10).multipleOf(2)"

    def test_enum_of_strings(self):
        assert EnumBuilder(["a", "b"]).render() == 'z.enum(["a", "b"])'

    def test_mixed_enum_is_union_of_literals(self):
        assert EnumBuilder(["a", 1]).render() == 'z.union([z.literal("a"), z.literal(1)])'

    def test_single_value_enum_is_literal(self):
        assert EnumBuilder([True]).render() == "z.literal(true)"

    def test_literal(self):
        assert LiteralBuilder("x").render() == 'z.literal("x")'


# ==============================================================================
# Composite builders
# ==============================================================================

class TestCompositeBuilders:
    """Tests for object, array and combinator builders."""

    def test_object_optional_properties(self):
        builder = ObjectBuilder(
            {"id": StringBuilder(), "nick": StringBuilder()},
            required=["id"],
        )

        assert builder.render() == 'z.object({ "id": z.string(), "nick": z.string().optional() })'

    def test_object_property_with_default_not_optional(self):
        builder = ObjectBuilder({"n": NumberBuilder().default(1)}, required=[])

        assert builder.render() == 'z.object({ "n": z.number().default(1) })'

    def test_optionality_does_not_mutate_shared_builder(self):
        shared = StringBuilder()
        ObjectBuilder({"a": shared}, required=[]).render()

        assert shared.render() == "z.string()"

    @pytest.mark.parametrize("additional,suffix", [
        (False, ".strict()"),
        (True, ".passthrough()"),
        (None, ""),
    ])
    def test_object_additional_properties(self, additional, suffix):
        assert ObjectBuilder({}, additional=additional).render() == "z.object({})" + suffix

    def test_object_catchall(self):
        assert ObjectBuilder({}, additional=NumberBuilder()).render() == "z.object({}).catchall(z.number())"

    def test_record(self):
        assert RecordBuilder(NumberBuilder()).render() == "z.record(z.string(), z.number())"

    def test_array_bounds(self):
        assert ArrayBuilder(AnyBuilder(), min_items=1, max_items=3).render() == "z.array(z.any()).min(1).max(3)"

    def test_tuple_with_rest(self):
        code = TupleBuilder([StringBuilder(), NumberBuilder()], rest=BooleanBuilder()).render()

        assert code == "z.tuple([z.string(), z.number()]).rest(z.boolean())"

    def test_union(self):
        assert UnionBuilder([StringBuilder(), NumberBuilder()]).render() == "z.union([z.string(), z.number()])"
        assert UnionBuilder([StringBuilder()]).render() == "z.string()"
        assert UnionBuilder([]).render() == "z.never()"

    def test_intersection_folds_left(self):
        code = IntersectionBuilder([StringBuilder(), NumberBuilder(), BooleanBuilder()]).render()

        assert code == "z.intersection(z.intersection(z.string(), z.number()), z.boolean())"

    def test_not(self):
        code = NotBuilder(StringBuilder()).render()

        assert code.startswith("z.any().refine((value) => !z.string().safeParse(value).success")

    def test_conditional(self):
        code = ConditionalBuilder(StringBuilder(), LiteralBuilder("a"), NumberBuilder()).render()

        assert code.startswith('z.union([z.literal("a"), z.number()]).superRefine(')
        assert "z.string().safeParse(value).success" in code


# ==============================================================================
# References
# ==============================================================================

class TestReferenceBuilder:
    """Tests for cross-document references."""

    def _info(self, **kwargs):
        return ImportInfo(import_name="User", module_path="./user", **kwargs)

    def test_plain_reference(self):
        builder = ReferenceBuilder("User", "User", self._info())

        assert builder.render() == "User"
        assert builder.get_import_info() == self._info()

    def test_lazy_reference(self):
        builder = ReferenceBuilder("User", "User", self._info(is_type_only=True), is_lazy=True)

        assert builder.render() == "z.lazy(() => User)"
        assert builder.is_type_only

    def test_namespace_reference(self):
        info = ImportInfo(import_name="user", module_path="./user", import_kind=ImportKind.NAMESPACE)

        assert ReferenceBuilder("user", "User", info).render() == "user.User"

    def test_unresolved_reference(self):
        builder = ReferenceBuilder.unresolved()

        assert builder.render() == "z.unknown()"
        assert builder.get_import_info() is None

    def test_self_reference_has_no_import(self):
        builder = ReferenceBuilder("Node", "Node", self._info(), is_lazy=True, self_reference=True)

        assert builder.render() == "z.lazy(() => Node)"
        assert builder.get_import_info() is None

    def test_property_path_uses_shape_accessors(self):
        builder = ReferenceBuilder("User", "User", self._info(), property_path=["address", "zip-code"])

        assert builder.render() == 'User.shape.address.shape["zip-code"]'

    def test_lazy_property_path(self):
        builder = ReferenceBuilder(
            "User", "User", self._info(is_type_only=True), is_lazy=True, property_path=["id"],
        )

        assert builder.render() == "z.lazy(() => User.shape.id)"

    def test_namespace_member_reference(self):
        info = ImportInfo(import_name="user", module_path="./user", import_kind=ImportKind.NAMESPACE)

        assert ReferenceBuilder("user", "UserAddress", info).render() == "user.UserAddress"

    def test_iter_references_finds_nested(self):
        ref = ReferenceBuilder("User", "User", self._info())
        tree = ObjectBuilder({"a": ArrayBuilder(ref), "b": UnionBuilder([ref, StringBuilder()])})

        assert list(tree.iter_references()) == [ref]
