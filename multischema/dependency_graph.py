# -*- coding: utf-8 -*-
"""
Dependency Graph Builder

Directed graph over schema document ids, built from the cross-document
edges discovered by the RefResolver. Provides cycle detection (Tarjan's
strongly connected components), topological ordering, reachability and
transitive dependency queries.

Guarantees:
    - Every traversal is iterative (explicit stacks), so pathological
      inputs cannot hit the interpreter recursion limit
    - Node and edge iteration follow insertion order, so every ordering
      is deterministic for a fixed sequence of add_node/add_edge calls
    - Cycle membership does not depend on traversal order

Example:
    >>> graph = DependencyGraphBuilder()
    >>> graph.add_edge("post", "user")
    >>> graph.topological_sort()
    ['user', 'post']
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterator, List, Set, Tuple

from multischema.exceptions import CycleDetectedError
from multischema.models import DependencyGraph, GraphSummary

logger = logging.getLogger(__name__)


class DependencyGraphBuilder:
    """Mutable dependency graph with cycle detection and ordering.

    An edge ``a -> b`` means document ``a`` references document ``b``
    (``a`` depends on ``b``). Self edges are legal and represent direct
    self-reference.

    Attributes:
        cycles: SCCs recorded by the last detect_cycles() call.
    """

    def __init__(self) -> None:
        # Dict-as-ordered-set keeps iteration independent of string hashing.
        self._edges: Dict[str, Dict[str, None]] = {}
        self.cycles: List[FrozenSet[str]] = []

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(self, node_id: str) -> None:
        """Add a node; existing nodes are left untouched."""
        if node_id not in self._edges:
            self._edges[node_id] = {}

    def add_edge(self, from_id: str, to_id: str) -> None:
        """Add a directed edge, creating missing endpoints. Duplicates are no-ops."""
        self.add_node(from_id)
        self.add_node(to_id)
        self._edges[from_id][to_id] = None

    def clear(self) -> None:
        """Drop all nodes, edges and recorded cycles."""
        self._edges.clear()
        self.cycles = []

    @property
    def nodes(self) -> List[str]:
        """Node ids in insertion order."""
        return list(self._edges)

    @property
    def edges(self) -> Dict[str, Set[str]]:
        """Copy of the adjacency map (from -> targets)."""
        return {node: set(targets) for node, targets in self._edges.items()}

    def has_node(self, node_id: str) -> bool:
        return node_id in self._edges

    def has_edge(self, from_id: str, to_id: str) -> bool:
        return to_id in self._edges.get(from_id, {})

    def neighbors(self, node_id: str) -> List[str]:
        """Direct dependencies of a node in insertion order."""
        return list(self._edges.get(node_id, {}))

    # ------------------------------------------------------------------
    # Reachability
    # ------------------------------------------------------------------

    def has_path(self, from_id: str, to_id: str) -> bool:
        """Check whether ``to_id`` is reachable from ``from_id``.

        ``from_id == to_id`` is trivially True.
        """
        if from_id == to_id:
            return True

        visited: Set[str] = set()
        stack = [from_id]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            if current == to_id:
                return True
            for neighbor in self._edges.get(current, {}):
                if neighbor not in visited:
                    stack.append(neighbor)
        return False

    # ------------------------------------------------------------------
    # Cycle detection
    # ------------------------------------------------------------------

    def detect_cycles(self) -> List[FrozenSet[str]]:
        """Find cycles with Tarjan's strongly connected components algorithm.

        A component is recorded iff it has more than one node, or it is a
        single node with a self edge. The result is stored on ``cycles``.

        Returns:
            The recorded components in discovery order.
        """
        index: Dict[str, int] = {}
        lowlink: Dict[str, int] = {}
        stack: List[str] = []
        on_stack: Set[str] = set()
        cycles: List[FrozenSet[str]] = []
        counter = 0

        for root in self._edges:
            if root in index:
                continue

            index[root] = lowlink[root] = counter
            counter += 1
            stack.append(root)
            on_stack.add(root)
            work: List[Tuple[str, Iterator[str]]] = [(root, iter(self._edges[root]))]

            while work:
                node, neighbors = work[-1]
                descended = False
                for neighbor in neighbors:
                    if neighbor not in index:
                        index[neighbor] = lowlink[neighbor] = counter
                        counter += 1
                        stack.append(neighbor)
                        on_stack.add(neighbor)
                        work.append((neighbor, iter(self._edges[neighbor])))
                        descended = True
                        break
                    if neighbor in on_stack:
                        lowlink[node] = min(lowlink[node], index[neighbor])
                if descended:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])

                if lowlink[node] == index[node]:
                    component: Set[str] = set()
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.add(member)
                        if member == node:
                            break
                    if len(component) > 1 or node in self._edges[node]:
                        cycles.append(frozenset(component))

        self.cycles = cycles
        if cycles:
            logger.info(
                "Detected %d cycle(s): %s",
                len(cycles), [sorted(c) for c in cycles],
            )
        return list(cycles)

    def in_same_cycle(self, a: str, b: str) -> bool:
        """Return True if a and b sit together in a recorded cycle component."""
        return any(a in scc and b in scc for scc in self.cycles)

    def strongly_connected_components(self) -> List[List[str]]:
        """All SCCs (cyclic or not) in dependency-first order.

        Members of each component keep node insertion order. Used as the
        deterministic build order when the graph is cyclic.
        """
        recorded = self.cycles
        try:
            self.detect_cycles()
            component_of: Dict[str, int] = {}
            components: List[List[str]] = []
            for scc in self.cycles:
                components.append([n for n in self._edges if n in scc])
                for member in scc:
                    component_of[member] = len(components) - 1
        finally:
            self.cycles = recorded

        for node in self._edges:
            if node not in component_of:
                component_of[node] = len(components)
                components.append([node])

        # Condensation graph is acyclic; order it dependencies-first.
        condensed = DependencyGraphBuilder()
        for position in range(len(components)):
            condensed.add_node(str(position))
        for node, targets in self._edges.items():
            for target in targets:
                if component_of[node] != component_of[target]:
                    condensed.add_edge(str(component_of[node]), str(component_of[target]))

        return [components[int(position)] for position in condensed.topological_sort()]

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def topological_sort(self) -> List[str]:
        """Order nodes so that every dependency precedes its dependents.

        Iterative DFS post-order over nodes in insertion order. Disconnected
        components are each fully ordered and concatenated.

        Raises:
            CycleDetectedError: On the first node revisited while still on
                the current DFS stack.
        """
        visited: Set[str] = set()
        result: List[str] = []

        for root in self._edges:
            if root in visited:
                continue

            visiting: Set[str] = {root}
            work: List[Tuple[str, Iterator[str]]] = [(root, iter(self._edges[root]))]
            while work:
                node, neighbors = work[-1]
                for neighbor in neighbors:
                    if neighbor in visited:
                        continue
                    if neighbor in visiting:
                        raise CycleDetectedError(neighbor)
                    visiting.add(neighbor)
                    work.append((neighbor, iter(self._edges[neighbor])))
                    break
                else:
                    work.pop()
                    visiting.discard(node)
                    visited.add(node)
                    result.append(node)

        return result

    def reverse_topological_sort(self) -> List[str]:
        """Dependents first; reverse of topological_sort()."""
        return list(reversed(self.topological_sort()))

    def is_acyclic(self) -> bool:
        """True iff topological_sort() succeeds."""
        try:
            self.topological_sort()
        except CycleDetectedError:
            return False
        return True

    # ------------------------------------------------------------------
    # Transitive queries
    # ------------------------------------------------------------------

    def get_dependencies(self, node_id: str) -> Set[str]:
        """All nodes reachable from ``node_id``, excluding itself."""
        return self._closure(node_id, self._edges)

    def get_dependents(self, node_id: str) -> Set[str]:
        """All nodes that can reach ``node_id``, excluding itself."""
        reverse: Dict[str, Dict[str, None]] = {node: {} for node in self._edges}
        for source, targets in self._edges.items():
            for target in targets:
                reverse[target][source] = None
        return self._closure(node_id, reverse)

    @staticmethod
    def _closure(node_id: str, adjacency: Dict[str, Dict[str, None]]) -> Set[str]:
        found: Set[str] = set()
        visited: Set[str] = set()
        stack = [node_id]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            for neighbor in adjacency.get(current, {}):
                if neighbor != node_id:
                    found.add(neighbor)
                    stack.append(neighbor)
        return found

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def snapshot(self) -> DependencyGraph:
        """Read-only copy of nodes, edges and recorded cycles."""
        return DependencyGraph(
            nodes=self.nodes,
            edges=self.edges,
            cycles=list(self.cycles),
        )

    def summary(self) -> GraphSummary:
        """Node/edge/cycle counts; no side effects."""
        return GraphSummary(
            node_count=len(self._edges),
            edge_count=sum(len(targets) for targets in self._edges.values()),
            has_cycles=bool(self.cycles),
            cycle_count=len(self.cycles),
        )

    def to_dot(self) -> str:
        """GraphViz DOT representation; cycle members share a rank."""
        lines = ["digraph DependencyGraph {"]
        for node in self._edges:
            lines.append(f'  "{node}";')
        for source, targets in self._edges.items():
            for target in targets:
                lines.append(f'  "{source}" -> "{target}";')
        for scc in self.cycles:
            members = '", "'.join(n for n in self._edges if n in scc)
            lines.append(f'  {{ rank=same; "{members}" }}')
        lines.append("}")
        return "\n".join(lines) + "\n"


__all__ = [
    "DependencyGraphBuilder",
]
