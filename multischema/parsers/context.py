# -*- coding: utf-8 -*-
"""
Parse Context

Immutable state threaded through one top-level parse of a document. The
context carries the document being generated (``module_id``) and its root,
the resolver, the graph snapshot and the document's RecursionGuard.

Derived contexts share the guard and the stats; only the path and the
reference depth change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from multischema.models import DependencyGraph
from multischema.recursion_guard import RecursionGuard
from multischema.ref_resolver import RefResolver
from multischema.registry import SchemaRegistry

logger = logging.getLogger(__name__)


@dataclass
class ParseStats:
    """Counters collected while parsing one document."""

    lazy_references: List[str] = field(default_factory=list)
    plain_references: List[str] = field(default_factory=list)
    unresolved_references: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParseContext:
    """Context for parsing one document.

    Attributes:
        module_id: Document whose module is being generated.
        root: Root node of ``module_id``; internal refs resolve against it.
        registry: Registered documents.
        ref_resolver: Resolver used for every ``$ref``.
        graph: Dependency graph snapshot taken by the orchestrator.
        guard: RecursionGuard of this top-level parse.
        build_index: Position of every document in the build order.
        path: Location of the current node inside ``root``.
        max_ref_depth: Bound on chained reference hops.
        ref_depth: Reference hops taken to reach the current node.
    """

    module_id: str
    root: Any
    registry: SchemaRegistry
    ref_resolver: RefResolver
    graph: DependencyGraph
    guard: RecursionGuard
    build_index: Mapping[str, int] = field(default_factory=dict)
    path: Tuple[str, ...] = ()
    max_ref_depth: int = 100
    ref_depth: int = 0
    stats: ParseStats = field(default_factory=ParseStats)

    @classmethod
    def for_document(
        cls,
        schema_id: str,
        root: Any,
        registry: SchemaRegistry,
        ref_resolver: RefResolver,
        graph: Optional[DependencyGraph] = None,
        build_order: Optional[List[str]] = None,
        max_depth: Optional[int] = None,
        max_ref_depth: int = 100,
    ) -> ParseContext:
        """Fresh context (and fresh RecursionGuard) for one document."""
        build_index: Dict[str, int] = {
            doc_id: position for position, doc_id in enumerate(build_order or [])
        }
        return cls(
            module_id=schema_id,
            root=root,
            registry=registry,
            ref_resolver=ref_resolver,
            graph=graph if graph is not None else DependencyGraph(),
            guard=RecursionGuard(max_depth=max_depth),
            build_index=build_index,
            max_ref_depth=max_ref_depth,
        )

    def with_path(self, *segments: Any) -> ParseContext:
        """Context for a child node."""
        return replace(self, path=self.path + tuple(str(s) for s in segments))

    def at_pointer(self, path: List[str]) -> ParseContext:
        """Context for a node reached through an internal ``$ref``."""
        return replace(self, path=tuple(path), ref_depth=self.ref_depth + 1)

    @property
    def pointer(self) -> str:
        return "#/" + "/".join(self.path)

    def is_lazy_edge(self, target_id: str) -> bool:
        """Decide whether a reference from this module to ``target_id`` is lazy.

        An edge is lazy when both documents share a recorded cycle component
        and the target is generated no later than this module. In a cycle
        only the edges pointing back along the build order become lazy.
        """
        if not self.graph.in_same_cycle(self.module_id, target_id):
            return False
        if target_id == self.module_id:
            return True
        target_pos = self.build_index.get(target_id)
        module_pos = self.build_index.get(self.module_id)
        if target_pos is None or module_pos is None:
            return True
        return target_pos < module_pos


__all__ = [
    "ParseContext",
    "ParseStats",
]
