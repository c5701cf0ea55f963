# -*- coding: utf-8 -*-
"""Tests for RecursionGuard."""

import pytest

from multischema.recursion_guard import RecursionGuard

FALLBACK = "fallback"


def _walk(node, guard):
    """Render a nested dict tree through the guard."""
    def parse():
        children = [_walk(child, guard) for child in node.get("children", [])]
        return {"name": node.get("name"), "children": children}

    return guard.guard(node, parse, lambda: FALLBACK)


def _depth(result):
    depth = 0
    while isinstance(result, dict) and result["children"]:
        result = result["children"][0]
        depth += 1
    return depth, result


class TestRecursionGuard:
    """Tests for identity-keyed memoization and the expansion budget."""

    def test_plain_tree(self):
        tree = {"name": "root", "children": [{"name": "leaf"}]}
        guard = RecursionGuard()

        result = _walk(tree, guard)

        assert result == {"name": "root", "children": [{"name": "leaf", "children": []}]}
        assert guard.fallback_count == 0
        assert len(guard) == 2

    def test_shared_subtree_parsed_once(self):
        """Diamond: the shared node is parsed once and the result reused."""
        shared = {"name": "shared"}
        tree = {"name": "root", "children": [shared, shared]}
        calls = []
        guard = RecursionGuard()

        def parse_shared():
            calls.append(1)
            return object()

        first = guard.guard(shared, parse_shared, lambda: FALLBACK)
        second = guard.guard(shared, parse_shared, lambda: FALLBACK)

        assert first is second
        assert len(calls) == 1
        assert _walk(tree, RecursionGuard())["children"][0] == {"name": "shared", "children": []}

    def test_unconfigured_budget_falls_back_on_first_reentry(self):
        node = {"name": "loop", "children": []}
        node["children"].append(node)

        result = _walk(node, RecursionGuard())

        assert result == {"name": "loop", "children": [FALLBACK]}

    @pytest.mark.parametrize("max_depth", [0, 1, 2, 5, 20])
    def test_self_containing_node_terminates(self, max_depth):
        """Expansions stop after max_depth re-entries."""
        node = {"name": "loop", "children": []}
        node["children"].append(node)
        guard = RecursionGuard(max_depth=max_depth)

        depth, deepest = _depth(_walk(node, guard))

        assert deepest == FALLBACK
        assert depth == max_depth + 1
        assert guard.fallback_count == 1
        assert guard.expansion_count(node) == max_depth

    def test_is_active_while_parsing(self):
        node = {"name": "n"}
        guard = RecursionGuard()
        seen = []

        guard.guard(node, lambda: seen.append(guard.is_active(node)), lambda: None)

        assert seen == [True]
        assert guard.is_active(node) is False

    def test_equal_but_distinct_nodes_are_separate(self):
        """Identity, not equality, decides whether a node was seen."""
        guard = RecursionGuard()
        a = {"type": "string"}
        b = {"type": "string"}

        guard.guard(a, lambda: "a", lambda: FALLBACK)
        result = guard.guard(b, lambda: "b", lambda: FALLBACK)

        assert result == "b"
        assert len(guard) == 2

    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            RecursionGuard(max_depth=-1)
