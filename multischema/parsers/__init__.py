# -*- coding: utf-8 -*-
"""
multischema parsers: schema tree to Builder tree.

Modules:
    - classify: NodeKind and classify_node()
    - context: ParseContext threaded through one document parse
    - refs: $ref discovery and pointer lookup
    - parse_schema: the guarded parser and per-kind node parsers
"""

from multischema.parsers.classify import NodeKind, classify_node
from multischema.parsers.context import ParseContext, ParseStats
from multischema.parsers.parse_schema import DefaultSchemaParser, parse_ref, parse_schema
from multischema.parsers.refs import extract_refs, is_external_ref, resolve_pointer, split_member_path

__all__ = [
    "NodeKind",
    "classify_node",
    "ParseContext",
    "ParseStats",
    "DefaultSchemaParser",
    "parse_schema",
    "parse_ref",
    "extract_refs",
    "is_external_ref",
    "split_member_path",
    "resolve_pointer",
]
