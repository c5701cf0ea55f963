# -*- coding: utf-8 -*-
"""
Recursion Guard

Identity-keyed memo used while walking one schema document. It makes
self-referential trees (a dict that contains itself) terminate and lets
shared subtrees (diamonds) be parsed once.

Rules for each visit of a node:
    - first visit: record it, parse it, cache the result
    - visit with a cached result: return the cached result
    - re-entry while the node is still being parsed: return the fallback
      once the expansion counter reached ``max_depth``, otherwise count
      the expansion and parse again

A guard belongs to exactly one top-level parse call and is discarded with
it; it is never shared between documents or threads.

Example:
    >>> guard = RecursionGuard(max_depth=2)
    >>> result = guard.guard(node, lambda: parse(node), lambda: build_any())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class GuardState(Generic[T]):
    """Per-node bookkeeping; ``node`` pins the object so its id() stays unique."""

    node: Any
    expansion_count: int = 0
    cached_result: Optional[T] = None
    has_result: bool = False


class RecursionGuard(Generic[T]):
    """Identity-keyed memo with an expansion counter.

    Attributes:
        max_depth: Re-entries allowed per node before the fallback is used.
            ``None`` behaves like ``0``: the first re-entry gets the fallback.
    """

    def __init__(self, max_depth: Optional[int] = None) -> None:
        if max_depth is not None and max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        self.max_depth = max_depth
        self._seen: Dict[int, GuardState[T]] = {}
        self.fallback_count = 0

    def guard(self, node: Any, parse: Callable[[], T], fallback: Callable[[], T]) -> T:
        """Parse ``node`` through the guard.

        Args:
            node: Schema node; compared by identity.
            parse: Produces the result for the node.
            fallback: Produces the placeholder used when the budget is spent.

        Returns:
            The parsed, cached or fallback result.
        """
        state = self._seen.get(id(node))

        if state is None:
            state = GuardState(node=node)
            self._seen[id(node)] = state
        elif state.has_result:
            return state.cached_result  # type: ignore[return-value]
        elif state.expansion_count >= (self.max_depth or 0):
            self.fallback_count += 1
            logger.debug(
                "Recursion budget spent (count=%d, max_depth=%s); using fallback",
                state.expansion_count, self.max_depth,
            )
            return fallback()
        else:
            state.expansion_count += 1

        result = parse()
        state.cached_result = result
        state.has_result = True
        return result

    def is_active(self, node: Any) -> bool:
        """True while ``node`` is being parsed higher up the call stack."""
        state = self._seen.get(id(node))
        return state is not None and not state.has_result

    def expansion_count(self, node: Any) -> int:
        state = self._seen.get(id(node))
        return state.expansion_count if state is not None else 0

    def __len__(self) -> int:
        return len(self._seen)


__all__ = [
    "GuardState",
    "RecursionGuard",
]
