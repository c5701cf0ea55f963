# -*- coding: utf-8 -*-
"""
Reference helpers: ``$ref`` discovery and pointer lookup.

extract_refs walks the parts of a schema tree that can hold subschemas and
returns every ``$ref`` string in document order. It keeps its own stack,
tracks visited nodes by identity and stops descending past ``max_depth``,
so self-containing trees terminate.
"""

from __future__ import annotations

import logging
from typing import Any, List, Set, Tuple

from multischema.parsers.classify import NodeKind, classify_node

logger = logging.getLogger(__name__)

MISSING = object()

# Keys whose value is a single subschema.
_SCHEMA_KEYS = ("items", "additionalProperties", "additionalItems", "not", "if", "then", "else")
# Keys whose value is a list of subschemas.
_LIST_KEYS = ("allOf", "anyOf", "oneOf", "prefixItems")
# Keys whose value maps names to subschemas.
_MAP_KEYS = ("properties", "patternProperties", "definitions", "$defs")


def extract_refs(node: Any, max_depth: int = 100) -> List[str]:
    """Collect the ``$ref`` strings of a schema tree.

    Args:
        node: Root of the tree.
        max_depth: Nesting level below which nothing is collected.

    Returns:
        Distinct references, in document order.
    """
    refs: List[str] = []
    found: Set[str] = set()
    visited: Set[int] = set()
    stack: List[Tuple[Any, int]] = [(node, 0)]

    while stack:
        current, depth = stack.pop()
        if depth > max_depth:
            logger.debug("extract_refs: depth limit %d reached", max_depth)
            continue

        if isinstance(current, list):
            children = list(current)
        elif isinstance(current, dict):
            if id(current) in visited:
                continue
            visited.add(id(current))

            ref = current.get("$ref")
            if isinstance(ref, str) and ref not in found:
                found.add(ref)
                refs.append(ref)

            children = []
            for key in _SCHEMA_KEYS:
                if key in current:
                    children.append(current[key])
            for key in _LIST_KEYS:
                if isinstance(current.get(key), list):
                    children.extend(current[key])
            for key in _MAP_KEYS:
                if isinstance(current.get(key), dict):
                    children.extend(current[key].values())
            if isinstance(current.get("components"), dict):
                schemas = current["components"].get("schemas")
                if isinstance(schemas, dict):
                    children.extend(schemas.values())
        else:
            continue

        # Reverse so the first child is processed first.
        for child in reversed(children):
            if isinstance(child, (dict, list)):
                stack.append((child, depth + 1))

    return refs


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def resolve_pointer(root: Any, path: List[str]) -> Any:
    """Follow pointer segments from ``root``; returns MISSING when absent.

    Segments are unescaped (``~1`` -> ``/``, ``~0`` -> ``~``); list
    segments must be integer indexes.
    """
    current = root
    for raw in path:
        segment = _unescape(raw)
        if isinstance(current, dict):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return MISSING
        else:
            return MISSING
    return current


def _is_shape_container(node: Any) -> bool:
    """True for a node rendered as a plain ``z.object`` with a ``.shape``."""
    if not isinstance(node, dict) or classify_node(node) is not NodeKind.OBJECT:
        return False
    if not isinstance(node.get("properties"), dict):
        return False
    if any(key in node for key in ("allOf", "anyOf", "oneOf", "default")):
        return False
    return node.get("readOnly") is not True


def _reachable_by_shape(node: Any, names: List[str]) -> bool:
    for position, name in enumerate(names):
        if not _is_shape_container(node) or name not in node["properties"]:
            return False
        is_last = position == len(names) - 1
        required = node.get("required")
        if not is_last and not (isinstance(required, list) and name in required):
            return False
        node = node["properties"][name]
    return True


def split_member_path(root: Any, path: List[str]) -> Tuple[List[str], List[str]]:
    """Split a pointer into another document into member and property chain.

    The property chain is the longest trailing run of ``properties/<name>``
    pairs reachable through ``.shape`` accessors: every container on the way
    is a plain object schema and every intermediate property is required.
    The member is the rest of the path; an empty member means the
    document's own export.

    Example:
        >>> split_member_path(user, ["properties", "id"])
        ([], ['id'])
        >>> split_member_path(user, ["definitions", "Address"])
        (['definitions', 'Address'], [])
    """
    for start in range(len(path) + 1):
        tail = path[start:]
        if len(tail) % 2 or any(segment != "properties" for segment in tail[::2]):
            continue
        names = [_unescape(segment) for segment in tail[1::2]]
        if _reachable_by_shape(resolve_pointer(root, path[:start]), names):
            return list(path[:start]), names
    return list(path), []


def is_external_ref(ref: str) -> bool:
    return not ref.startswith("#")


__all__ = [
    "MISSING",
    "extract_refs",
    "is_external_ref",
    "resolve_pointer",
    "split_member_path",
]
