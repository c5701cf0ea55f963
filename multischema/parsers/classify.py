# -*- coding: utf-8 -*-
"""
Schema node classification.

Each node is classified once into a NodeKind; the parser dispatches on
the result. Checks run in a fixed priority order, so a node matching
several kinds (``{"type": "object", "anyOf": [...]}``) always lands in
the same one.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class NodeKind(str, Enum):
    """Kinds of schema nodes, in classification priority order."""

    REF = "ref"
    NULLABLE = "nullable"
    OBJECT = "object"
    ARRAY = "array"
    ANY_OF = "anyOf"
    ALL_OF = "allOf"
    ONE_OF = "oneOf"
    NOT = "not"
    ENUM = "enum"
    CONST = "const"
    MULTIPLE_TYPE = "multipleType"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    CONDITIONAL = "conditional"
    UNKNOWN = "unknown"


def classify_node(node: Any, skip_nullable: bool = False) -> NodeKind:
    """Classify a schema node.

    Args:
        node: Schema node; anything but a dict is UNKNOWN.
        skip_nullable: Ignore ``nullable: true`` (used when the nullable
            wrapper parses the node underneath it).

    Returns:
        The NodeKind of the node.
    """
    if not isinstance(node, dict):
        return NodeKind.UNKNOWN

    if isinstance(node.get("$ref"), str):
        return NodeKind.REF
    if not skip_nullable and node.get("nullable") is True:
        return NodeKind.NULLABLE

    type_ = node.get("type")
    if type_ == "object" or (type_ is None and isinstance(node.get("properties"), dict)):
        return NodeKind.OBJECT
    if type_ == "array":
        return NodeKind.ARRAY
    if isinstance(node.get("anyOf"), list):
        return NodeKind.ANY_OF
    if isinstance(node.get("allOf"), list):
        return NodeKind.ALL_OF
    if isinstance(node.get("oneOf"), list):
        return NodeKind.ONE_OF
    if "not" in node:
        return NodeKind.NOT
    if isinstance(node.get("enum"), list):
        return NodeKind.ENUM
    if "const" in node:
        return NodeKind.CONST
    if isinstance(type_, list):
        return NodeKind.MULTIPLE_TYPE
    if type_ == "string":
        return NodeKind.STRING
    if type_ in ("number", "integer"):
        return NodeKind.NUMBER
    if type_ == "boolean":
        return NodeKind.BOOLEAN
    if type_ == "null":
        return NodeKind.NULL
    if "if" in node:
        return NodeKind.CONDITIONAL
    return NodeKind.UNKNOWN


__all__ = [
    "NodeKind",
    "classify_node",
]
