#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cube Solver - Generator Filters
===============================

Keep the generating set of one stabilizer-chain level small without
changing the group it generates.

Positions are indexes into the stabilizing order (the sticker slots of
every chain block, in chain order). The first `stabilized_count`
positions are already fixed by every element offered to the filter.

For a non-identity g, its action pair (i, j) is:
    i = first position g moves, j = position the sticker at i moves to
so j > i always holds.

JerrumFilter: the stored pairs form a forest on positions; closing a
cycle folds the cycle into a product that fixes more positions.
Bound: n - 1 generators.

SimsFilter: at most one generator per pair; collisions are divided out.
Bound: n(n-1)/2 generators.

Both filters preserve the generated group exactly.
"""

from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from .core.action import ActionAlgebra, CubeGroup

Pair = Tuple[int, int]


# =============================================================================
# Base Filter
# =============================================================================

class GeneratorFilter:
    """Shared bookkeeping for Jerrum and Sims filters."""
    name = "base"

    def __init__(self, group: CubeGroup, stabilizing_order: Sequence[int], stabilized_count: int):
        order = np.asarray(stabilizing_order, dtype=np.int64)
        if len(np.unique(order)) != len(order):
            raise ValueError("stabilizing order lists a slot twice")
        if not 0 <= stabilized_count <= len(order):
            raise ValueError(f"stabilized_count {stabilized_count} outside 0..{len(order)}")

        self.group = group
        self.order = order
        self.position_of = np.full(group.puzzle.slot_count, -1, dtype=np.int64)
        self.position_of[order] = np.arange(len(order))
        self.stabilized_count = stabilized_count
        self.n = len(order) - stabilized_count

        self.grid: Dict[Pair, ActionAlgebra] = {}
        self.accepted_count = 0
        self.jump_count = 0

    @property
    def limit(self) -> int:
        raise NotImplementedError

    def action_pair(self, generator: ActionAlgebra) -> Pair:
        """
        (i, j) for a non-identity generator, (-1, -1) for the identity.

        Raises:
            ValueError: if the generator moves an already-stabilized position
        """
        images = generator.permutation_map().array[self.order]
        moved = np.nonzero(images != self.order)[0]
        if len(moved) == 0:
            return -1, -1
        i = int(moved[0])
        if i < self.stabilized_count:
            raise ValueError(f"generator moves stabilized position {i} (prefix {self.stabilized_count})")
        j = int(self.position_of[images[i]])
        assert j > i, f"action pair ({i}, {j}) leaves the stabilizing order"
        return i, j

    def filter_generator(self, generator: ActionAlgebra) -> bool:
        """Offer a generator; returns True if the retained set changed."""
        raise NotImplementedError

    def generators(self) -> List[ActionAlgebra]:
        """Retained generating set, ordered by action pair."""
        return [self.grid[pair] for pair in sorted(self.grid) if pair[0] < pair[1]]

    def __len__(self) -> int:
        return self.accepted_count

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n={self.n}, accepted={self.accepted_count}, limit={self.limit})"


# =============================================================================
# Jerrum Filter
# =============================================================================

class JerrumFilter(GeneratorFilter):
    """Spanning-forest filter; at most n - 1 generators."""
    name = "jerrum"

    def __init__(self, group: CubeGroup, stabilizing_order: Sequence[int], stabilized_count: int):
        super().__init__(group, stabilizing_order, stabilized_count)
        self.adjacent: Dict[int, Set[int]] = {}

    @property
    def limit(self) -> int:
        return max(self.n - 1, 0)

    def _link(self, i: int, j: int, generator: ActionAlgebra) -> None:
        self.grid[(i, j)] = generator
        self.grid[(j, i)] = generator.invert()
        self.adjacent.setdefault(i, set()).add(j)
        self.adjacent.setdefault(j, set()).add(i)

    def _unlink(self, i: int, j: int) -> None:
        del self.grid[(i, j)]
        del self.grid[(j, i)]
        self.adjacent[i].discard(j)
        self.adjacent[j].discard(i)

    def _find_path(self, start: int, goal: int) -> Optional[List[int]]:
        """Nodes of the forest path start -> goal, or None."""
        if start not in self.adjacent or goal not in self.adjacent:
            return None
        parent = {start: None}
        stack = [start]
        while stack:
            node = stack.pop()
            if node == goal:
                break
            for nxt in self.adjacent[node]:
                if nxt not in parent:
                    parent[nxt] = node
                    stack.append(nxt)
        if goal not in parent:
            return None
        path = [goal]
        while path[-1] != start:
            path.append(parent[path[-1]])
        path.reverse()
        return path

    def filter_generator(self, generator: ActionAlgebra) -> bool:
        changed = False
        verifier = self.group.verifier
        last_i = -1
        g = generator
        while True:
            i, j = self.action_pair(g)
            if i < 0:
                break
            if verifier.should_verify():
                assert i > last_i, f"filter position did not advance ({last_i} -> {i})"
            last_i = i

            existing = self.grid.get((i, j))
            if existing is not None:
                # grid[(j, i)] maps j back to i, so the product fixes i
                g = self.grid[(j, i)].multiply(g)
                self.jump_count += 1
                continue

            path = self._find_path(j, i)
            self._link(i, j, g)
            changed = True
            if path is None:
                self.accepted_count += 1
                assert self.accepted_count <= self.limit, \
                    f"jerrum filter holds {self.accepted_count} generators, bound is {self.limit}"
                break

            # Cycle i -> j -> ... -> i, rotated to start at its smallest node
            nodes = [i] + path[:-1]
            if verifier.should_verify():
                assert len(nodes) >= 2, "cycle needs at least two edges"
                assert len(set(nodes)) == len(nodes), "cycle repeats a node"
                assert min(nodes) >= self.stabilized_count, "cycle touches stabilized positions"
            k = nodes.index(min(nodes))
            nodes = nodes[k:] + nodes[:k]
            edges = [(nodes[t], nodes[(t + 1) % len(nodes)]) for t in range(len(nodes))]

            product = self.group.identity()
            for edge in edges:
                product = self.grid[edge].multiply(product)
            self._unlink(*edges[0])
            self.jump_count += 1
            last_i = min(nodes)
            g = product
        return changed


# =============================================================================
# Sims Filter
# =============================================================================

class SimsFilter(GeneratorFilter):
    """One generator per action pair; at most n(n-1)/2 generators."""
    name = "sims"

    @property
    def limit(self) -> int:
        return self.n * (self.n - 1) // 2

    def filter_generator(self, generator: ActionAlgebra) -> bool:
        verifier = self.group.verifier
        last_i = -1
        g = generator
        while True:
            i, j = self.action_pair(g)
            if i < 0:
                return False
            if verifier.should_verify():
                assert i > last_i, f"filter position did not advance ({last_i} -> {i})"
            last_i = i

            existing = self.grid.get((i, j))
            if existing is None:
                self.grid[(i, j)] = g
                self.accepted_count += 1
                assert self.accepted_count <= self.limit, \
                    f"sims filter holds {self.accepted_count} generators, bound is {self.limit}"
                return True
            g = existing.invert().multiply(g)
            self.jump_count += 1


# =============================================================================
# Factory
# =============================================================================

FILTERS = {
    JerrumFilter.name: JerrumFilter,
    SimsFilter.name: SimsFilter,
}


def make_filter(name: str, group: CubeGroup, stabilizing_order: Sequence[int],
                stabilized_count: int) -> GeneratorFilter:
    try:
        cls = FILTERS[name]
    except KeyError:
        raise ValueError(f"unknown filter {name!r}; choose from {sorted(FILTERS)}") from None
    return cls(group, stabilizing_order, stabilized_count)
