# -*- coding: utf-8 -*-
"""
Schema Parser

Turns a schema tree into a Builder tree. Every dict node passes through
the context's RecursionGuard, so shared subtrees are parsed once and a
tree that contains itself terminates with a ``z.any()`` placeholder.

References:
    - internal (``#/...``): the target node is looked up in the current
      document and parsed in place, through the same guard
    - external, whole document: a ReferenceBuilder bound to the target
      module; lazy when the edge points back along a cycle
    - external with a pointer: bound to the target module as well, through
      ``.shape`` accessors for object properties (``User.shape.id``) or
      through a member export the target module adds (``UserAddress`` for
      ``user#/definitions/Address``)
    - unresolved: ``z.unknown()`` and a warning
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List

from multischema.builders import (
    AnyBuilder,
    ArrayBuilder,
    BooleanBuilder,
    Builder,
    ConditionalBuilder,
    EnumBuilder,
    IntersectionBuilder,
    LiteralBuilder,
    NeverBuilder,
    NotBuilder,
    NullBuilder,
    NumberBuilder,
    ObjectBuilder,
    RecordBuilder,
    ReferenceBuilder,
    StringBuilder,
    TupleBuilder,
    UnionBuilder,
    UnknownBuilder,
)
from multischema.models import ImportKind
from multischema.naming import member_export_name
from multischema.parsers.classify import NodeKind, classify_node
from multischema.parsers.context import ParseContext
from multischema.parsers.refs import MISSING, resolve_pointer, split_member_path

logger = logging.getLogger(__name__)


def parse_schema(node: Any, ctx: ParseContext) -> Builder:
    """Parse one schema node.

    ``true`` gives ``z.any()``, ``false`` gives ``z.never()``; any other
    non-dict node is treated as unconstrained.
    """
    if node is True:
        return AnyBuilder()
    if node is False:
        return NeverBuilder()
    if not isinstance(node, dict):
        logger.debug("Non-schema node at %s in %s", ctx.pointer, ctx.module_id)
        return AnyBuilder()

    return ctx.guard.guard(node, lambda: _parse_node(node, ctx), AnyBuilder)


class DefaultSchemaParser:
    """Parser used by SchemaProject when no custom parser is configured."""

    def parse(self, node: Any, context: ParseContext) -> Builder:
        return parse_schema(node, context)


def _parse_node(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    kind = classify_node(node)
    if kind is NodeKind.REF:
        return parse_ref(node["$ref"], ctx)
    return _apply_annotations(_parse_kind(node, ctx, kind), node)


def _parse_kind(node: Dict[str, Any], ctx: ParseContext, kind: NodeKind) -> Builder:
    return _PARSERS[kind](node, ctx)


def _apply_annotations(builder: Builder, node: Dict[str, Any]) -> Builder:
    if node.get("readOnly") is True:
        builder.readonly()
    if "default" in node:
        builder.default(node["default"])
    if isinstance(node.get("description"), str):
        builder.describe(node["description"])
    return builder


# ===================================================================
# References
# ===================================================================


def parse_ref(ref: str, ctx: ParseContext) -> Builder:
    """Parse a ``$ref``, resolving it against the registry.

    Returns the parsed target node for internal pointers, a
    ReferenceBuilder for another document (its export, a member export or
    a property of either), or an unresolved placeholder.
    """
    if ctx.ref_depth >= ctx.max_ref_depth:
        logger.warning(
            "Reference depth limit %d reached at %s in %s; using z.unknown()",
            ctx.max_ref_depth, ctx.pointer, ctx.module_id,
        )
        return UnknownBuilder()

    resolution = ctx.ref_resolver.resolve(ref, ctx.module_id)
    if resolution is None:
        return _unresolved(ref, ctx, "Unresolved $ref %r in %s at %s")

    target_id = resolution.target_schema_id
    path = resolution.definition_path
    if not resolution.is_external or (target_id == ctx.module_id and path):
        return _parse_pointer(ref, path, ctx)

    entry = ctx.registry.get_entry(target_id)
    if entry is None:
        return _unresolved(ref, ctx, "$ref %r in %s at %s targets an unregistered document")
    export_name = entry.export_name

    if target_id == ctx.module_id:
        ctx.stats.lazy_references.append(target_id)
        logger.debug("Self reference %r in %s rendered lazily", ref, ctx.module_id)
        return ReferenceBuilder(
            export_name,
            export_name,
            resolution.import_info.as_type_only(),
            is_lazy=True,
            self_reference=True,
        )

    import_info = resolution.import_info
    binding = import_info.import_name
    property_path: List[str] = []
    if path:
        if resolve_pointer(entry.raw_schema, path) is MISSING:
            return _unresolved(ref, ctx, "$ref %r in %s at %s points at a missing node")
        member_path, property_path = split_member_path(entry.raw_schema, path)
        if member_path:
            export_name = member_export_name(export_name, member_path)
            if import_info.import_kind != ImportKind.NAMESPACE:
                binding = export_name
                import_info = import_info.model_copy(update={"import_name": export_name})

    is_lazy = ctx.is_lazy_edge(target_id)
    if is_lazy:
        import_info = import_info.as_type_only()
        ctx.stats.lazy_references.append(target_id)
        logger.debug("Lazy reference %s -> %s", ctx.module_id, ref)
    else:
        ctx.stats.plain_references.append(target_id)

    return ReferenceBuilder(
        binding, export_name, import_info, is_lazy=is_lazy, property_path=property_path,
    )


def _unresolved(ref: str, ctx: ParseContext, message: str) -> Builder:
    ctx.stats.unresolved_references.append(ref)
    logger.warning(message, ref, ctx.module_id, ctx.pointer)
    return ReferenceBuilder.unresolved()


def _parse_pointer(ref: str, path: List[str], ctx: ParseContext) -> Builder:
    target = resolve_pointer(ctx.root, path)
    if target is MISSING:
        return _unresolved(ref, ctx, "$ref %r in %s at %s points at a missing node")
    return parse_schema(target, ctx.at_pointer(path))


# ===================================================================
# Node parsers
# ===================================================================


def parse_nullable(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    kind = classify_node(node, skip_nullable=True)
    inner = _parse_kind(node, ctx, kind) if kind is not NodeKind.REF else parse_ref(node["$ref"], ctx)
    if kind is NodeKind.REF:
        # Reference results may be shared; wrap instead of modifying.
        return UnionBuilder([inner, NullBuilder()])
    return inner.nullable()


def parse_object(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    properties: Dict[str, Builder] = {}
    raw_properties = node.get("properties")
    if isinstance(raw_properties, dict):
        for key, value in raw_properties.items():
            properties[key] = parse_schema(value, ctx.with_path("properties", key))

    additional_raw = node.get("additionalProperties")
    additional: Any = None
    if additional_raw is False:
        additional = False
    elif additional_raw is True:
        additional = True
    elif isinstance(additional_raw, dict):
        additional = parse_schema(additional_raw, ctx.with_path("additionalProperties"))

    required = node.get("required")
    if not isinstance(required, list):
        required = []

    if not properties and isinstance(additional, Builder):
        builder: Builder = RecordBuilder(additional)
    else:
        builder = ObjectBuilder(properties, required=required, additional=additional)

    # Combinators next to an object type narrow it further.
    parts = [builder]
    for key in ("anyOf", "oneOf"):
        if isinstance(node.get(key), list) and node[key]:
            parts.append(UnionBuilder([
                parse_schema(option, ctx.with_path(key, i)) for i, option in enumerate(node[key])
            ]))
    if isinstance(node.get("allOf"), list):
        parts.extend(parse_schema(part, ctx.with_path("allOf", i)) for i, part in enumerate(node["allOf"]))

    return builder if len(parts) == 1 else IntersectionBuilder(parts)


def parse_array(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    prefix = node.get("prefixItems")
    items = node.get("items")

    if isinstance(prefix, list) or isinstance(items, list):
        tuple_key = "prefixItems" if isinstance(prefix, list) else "items"
        members = [
            parse_schema(item, ctx.with_path(tuple_key, i))
            for i, item in enumerate(node[tuple_key])
        ]
        rest_raw = items if tuple_key == "prefixItems" else node.get("additionalItems")
        rest = None
        if isinstance(rest_raw, dict) or rest_raw is True:
            rest = parse_schema(rest_raw, ctx.with_path("additionalItems"))
        return TupleBuilder(members, rest=rest)

    if items is None:
        item: Builder = AnyBuilder()
    else:
        item = parse_schema(items, ctx.with_path("items"))
    return ArrayBuilder(item, min_items=node.get("minItems"), max_items=node.get("maxItems"))


def _parse_union(key: str) -> Callable[[Dict[str, Any], ParseContext], Builder]:
    def parse(node: Dict[str, Any], ctx: ParseContext) -> Builder:
        options = node[key]
        if not options:
            return AnyBuilder()
        return UnionBuilder([
            parse_schema(option, ctx.with_path(key, i)) for i, option in enumerate(options)
        ])
    return parse


def parse_all_of(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    parts = [parse_schema(part, ctx.with_path("allOf", i)) for i, part in enumerate(node["allOf"])]
    return IntersectionBuilder(parts)


def parse_not(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    return NotBuilder(parse_schema(node["not"], ctx.with_path("not")))


def parse_enum(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    values = node["enum"]
    if not values:
        return NeverBuilder()
    return EnumBuilder(values)


def parse_const(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    return LiteralBuilder(node["const"])


def parse_multiple_type(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    types = [t for t in node["type"] if isinstance(t, str)]
    if not types:
        return AnyBuilder()
    options = []
    for type_ in types:
        single = {key: value for key, value in node.items() if key not in ("type", "description", "default")}
        single["type"] = type_
        options.append(parse_schema(single, ctx))
    return UnionBuilder(options)


def parse_string(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    return StringBuilder(
        min_length=node.get("minLength"),
        max_length=node.get("maxLength"),
        pattern=node.get("pattern"),
        format=node.get("format"),
    )


def parse_number(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    minimum = node.get("minimum")
    maximum = node.get("maximum")
    exclusive_minimum = node.get("exclusiveMinimum")
    exclusive_maximum = node.get("exclusiveMaximum")

    # Draft 4 uses booleans that turn minimum/maximum exclusive.
    if isinstance(exclusive_minimum, bool):
        if exclusive_minimum and minimum is not None:
            exclusive_minimum, minimum = minimum, None
        else:
            exclusive_minimum = None
    if isinstance(exclusive_maximum, bool):
        if exclusive_maximum and maximum is not None:
            exclusive_maximum, maximum = maximum, None
        else:
            exclusive_maximum = None

    return NumberBuilder(
        integer=node.get("type") == "integer",
        minimum=minimum,
        maximum=maximum,
        exclusive_minimum=exclusive_minimum,
        exclusive_maximum=exclusive_maximum,
        multiple_of=node.get("multipleOf"),
    )


def parse_conditional(node: Dict[str, Any], ctx: ParseContext) -> Builder:
    if_ = parse_schema(node["if"], ctx.with_path("if"))
    then = parse_schema(node["then"], ctx.with_path("then")) if "then" in node else AnyBuilder()
    else_ = parse_schema(node["else"], ctx.with_path("else")) if "else" in node else AnyBuilder()
    return ConditionalBuilder(if_, then, else_)


_PARSERS: Dict[NodeKind, Callable[[Dict[str, Any], ParseContext], Builder]] = {
    NodeKind.NULLABLE: parse_nullable,
    NodeKind.OBJECT: parse_object,
    NodeKind.ARRAY: parse_array,
    NodeKind.ANY_OF: _parse_union("anyOf"),
    NodeKind.ALL_OF: parse_all_of,
    NodeKind.ONE_OF: _parse_union("oneOf"),
    NodeKind.NOT: parse_not,
    NodeKind.ENUM: parse_enum,
    NodeKind.CONST: parse_const,
    NodeKind.MULTIPLE_TYPE: parse_multiple_type,
    NodeKind.STRING: parse_string,
    NodeKind.NUMBER: parse_number,
    NodeKind.BOOLEAN: lambda node, ctx: BooleanBuilder(),
    NodeKind.NULL: lambda node, ctx: NullBuilder(),
    NodeKind.CONDITIONAL: parse_conditional,
    NodeKind.UNKNOWN: lambda node, ctx: AnyBuilder(),
}


__all__ = [
    "DefaultSchemaParser",
    "parse_schema",
    "parse_ref",
    "parse_object",
    "parse_array",
    "parse_nullable",
]
