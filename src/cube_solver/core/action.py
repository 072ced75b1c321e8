#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cube Solver - Action Algebra
============================

Group elements of the puzzle, kept symbolically:

    LEAF(moves)       explicit move list (composition order: last move applied first)
    MUL(left, right)  left · right, i.e. right applied first
    INV(child)        child⁻¹

Short results are kept as explicit move lists (eager mode). Long products
and inverses become lazy nodes that share their operands, so cost stays
bounded while coset representatives and Schreier generators pile up.
Every node can materialize a PermutationMap, which is cached and makes
application O(slots) no matter how long the word is.

Equality and hashing follow the represented element (the PermutationMap),
never the textual form.
"""

from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar, Union

import numpy as np

from .permutation import PermutationMap
from .puzzle import CubePuzzle, CubeState
from .shrink import ShrinkTable
from .types import EngineConfig, Move, SimplifyLevel, Verifier

LEAF, MUL, INV = "leaf", "mul", "inv"

T = TypeVar("T")


# =============================================================================
# Move List Helpers
# =============================================================================

def inverse_moves(puzzle: CubePuzzle, moves: Sequence[Move]) -> Tuple[Move, ...]:
    """Inverse of a move list, expressed with forward moves only."""
    out = []
    for move in reversed(moves):
        out.extend(puzzle.reverse(move))
    return tuple(out)


def cancel_runs(puzzle: CubePuzzle, moves: Sequence[Move]) -> Tuple[Move, ...]:
    """Drop every run of `turn_around` identical adjacent moves, cascading."""
    stack: List[List] = []
    for move in moves:
        if stack and stack[-1][0] == move:
            stack[-1][1] += 1
            if stack[-1][1] == puzzle.turn_around(move):
                stack.pop()
        else:
            stack.append([move, 1])
    out = []
    for move, count in stack:
        out.extend([move] * count)
    return tuple(out)


def pack_duplicates(items: Sequence[T]) -> Iterator[Tuple[int, int, T]]:
    """
    Run-length pack a sequence.

    Yields:
        (start, length, item) for each run of equal adjacent items
    """
    start = 0
    while start < len(items):
        end = start + 1
        while end < len(items) and items[end] == items[start]:
            end += 1
        yield start, end - start, items[start]
        start = end


def _postorder(root: "ActionAlgebra", done: Callable[["ActionAlgebra"], bool]) -> List["ActionAlgebra"]:
    """
    Nodes under `root` (inclusive), children before parents, each once.
    Subtrees whose root satisfies `done` are not entered.
    """
    order = []
    seen = set()
    stack = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            order.append(node)
            continue
        if id(node) in seen or done(node):
            continue
        seen.add(id(node))
        stack.append((node, True))
        for child in node.children():
            if id(child) not in seen and not done(child):
                stack.append((child, False))
    return order


# =============================================================================
# CubeGroup (session context)
# =============================================================================

class CubeGroup:
    """
    Session object shared by every ActionAlgebra of one puzzle.

    Owns the puzzle geometry, the engine configuration, the verification
    policy and the shrink table used by SimplifyLevel.LEVEL3.
    """

    def __init__(self, puzzle: Union[CubePuzzle, int], *, config: Optional[EngineConfig] = None,
                 verifier: Optional[Verifier] = None, verbose: bool = False):
        if not isinstance(puzzle, CubePuzzle):
            puzzle = CubePuzzle(puzzle)
        self.puzzle = puzzle
        self.config = config if config is not None else EngineConfig()
        self.config.validate()
        self.verifier = verifier if verifier is not None else Verifier()
        self.shrink_table = ShrinkTable(puzzle, rounds=self.config.shrink_rounds, verbose=verbose)

        self._move_maps: Dict[Move, PermutationMap] = {}
        self._identity = ActionAlgebra(self, LEAF, moves=())
        self._identity._map = PermutationMap.identity(puzzle)

    def __repr__(self) -> str:
        return f"CubeGroup(level={self.puzzle.level}, threshold={self.config.acceleration_threshold})"

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    def identity(self) -> "ActionAlgebra":
        return self._identity

    def action(self, moves: Iterable[Move]) -> "ActionAlgebra":
        """Action from a move list in composition order (last move applied first)."""
        moves = tuple(moves)
        for move in moves:
            self.puzzle.turn_around(move)   # rejects unknown tags
        if not moves:
            return self._identity
        return ActionAlgebra(self, LEAF, moves=moves)

    def sequence(self, moves: Iterable[Move]) -> "ActionAlgebra":
        """Action from a move list in execution order (first move applied first)."""
        return self.action(reversed(tuple(moves)))

    def elementary(self, move: Move) -> "ActionAlgebra":
        return self.action((move,))

    def generators(self) -> List["ActionAlgebra"]:
        """One elementary action per move tag."""
        return [self.elementary(m) for m in self.puzzle.moves]

    def random_action(self, length: int, rng: np.random.Generator) -> "ActionAlgebra":
        return self.action(self.puzzle.random_moves(length, rng))

    def move_map(self, move: Move) -> PermutationMap:
        """Cached PermutationMap of a single move."""
        pm = self._move_maps.get(move)
        if pm is None:
            identity = self.puzzle.identity()
            pm = PermutationMap.from_transform(self.puzzle, identity, self.puzzle.apply_move(identity, move))
            self._move_maps[move] = pm
        return pm


# =============================================================================
# ActionAlgebra
# =============================================================================

class ActionAlgebra:
    """
    Immutable group element.

    Build through CubeGroup factories, multiply() and invert(); never mutate.
    """
    __slots__ = ("group", "kind", "_moves", "left", "right", "_map", "_count", "_inverse_count")

    def __init__(self, group: CubeGroup, kind: str, *, moves: Tuple[Move, ...] = (),
                 left: "ActionAlgebra" = None, right: "ActionAlgebra" = None):
        self.group = group
        self.kind = kind
        self._moves = tuple(moves) if kind == LEAF else None
        self.left = left
        self.right = right
        self._map: Optional[PermutationMap] = None
        self._count: Optional[int] = None
        self._inverse_count: Optional[int] = None

    def children(self) -> Tuple["ActionAlgebra", ...]:
        if self.kind == MUL:
            return (self.left, self.right)
        if self.kind == INV:
            return (self.left,)
        return ()

    def _is_trivial(self) -> bool:
        """Structurally empty (cheap, no map needed)."""
        return self.kind == LEAF and not self._moves

    # -------------------------------------------------------------------------
    # Counts
    # -------------------------------------------------------------------------

    def count(self) -> int:
        """Number of elementary moves in the explicit form."""
        if self._count is None:
            self._fill_counts()
        return self._count

    def inverse_count(self) -> int:
        """Number of elementary moves in the explicit form of the inverse."""
        if self._inverse_count is None:
            self._fill_counts()
        return self._inverse_count

    def _fill_counts(self) -> None:
        puzzle = self.group.puzzle
        for node in _postorder(self, lambda n: n._count is not None):
            if node.kind == LEAF:
                node._count = len(node._moves)
                node._inverse_count = sum(len(puzzle.reverse(m)) for m in node._moves)
            elif node.kind == MUL:
                node._count = node.left._count + node.right._count
                node._inverse_count = node.left._inverse_count + node.right._inverse_count
            else:
                node._count = node.left._inverse_count
                node._inverse_count = node.left._count

    # -------------------------------------------------------------------------
    # Algebra
    # -------------------------------------------------------------------------

    def multiply(self, other: "ActionAlgebra") -> "ActionAlgebra":
        """self · other: `other` is applied first."""
        if other.group is not self.group:
            raise ValueError("cannot multiply actions of different groups")
        if other._is_trivial():
            return self
        if self._is_trivial():
            return other

        group = self.group
        if (self.kind == LEAF and other.kind == LEAF
                and self.count() + other.count() <= group.config.acceleration_threshold):
            product = ActionAlgebra(group, LEAF, moves=self._moves + other._moves)
            if self._map is not None and other._map is not None:
                product._map = self._map.compose(other._map)
            return product.simplify(SimplifyLevel.LEVEL0)
        return ActionAlgebra(group, MUL, left=self, right=other)

    def invert(self) -> "ActionAlgebra":
        if self._is_trivial():
            return self
        if self.kind == INV:
            return self.left

        group = self.group
        if self.kind == LEAF and self.inverse_count() <= group.config.acceleration_threshold:
            inverse = ActionAlgebra(group, LEAF, moves=inverse_moves(group.puzzle, self._moves))
            if self._map is not None:
                inverse._map = self._map.invert()
            return inverse
        return ActionAlgebra(group, INV, left=self)

    # -------------------------------------------------------------------------
    # Permutation map
    # -------------------------------------------------------------------------

    def permutation_map(self) -> PermutationMap:
        """Materialize (once) the sticker permutation of this element."""
        if self._map is None:
            for node in _postorder(self, lambda n: n._map is not None):
                node._map = node._evaluate_map()
        return self._map

    def _evaluate_map(self) -> PermutationMap:
        group = self.group
        if self.kind == MUL:
            return self.left._map.compose(self.right._map)
        if self.kind == INV:
            return self.left._map.invert()

        pm = PermutationMap.identity(group.puzzle)
        for move in self._moves:
            pm = pm.compose(group.move_map(move))
        if len(self._moves) <= group.config.verify_replay_limit and group.verifier.should_verify():
            pm.validate()
            identity = group.puzzle.identity()
            assert pm.apply(identity) == self._replay(identity), "leaf map disagrees with replay"
        return pm

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------

    def _replay(self, state: CubeState) -> CubeState:
        return self.group.puzzle.apply_moves(state, self.application_order())

    def apply(self, state: CubeState) -> CubeState:
        """Apply this element to a state via the cheapest available path."""
        group = self.group
        if self._map is not None:
            result = self._map.apply(state)
        elif self.kind == LEAF and self.count() <= group.config.acceleration_threshold:
            result = self._replay(state)
        else:
            result = self.permutation_map().apply(state)

        if self.count() <= group.config.verify_replay_limit and group.verifier.should_verify():
            assert result == self._replay(state), "map application disagrees with replay"
        return result

    def is_identity(self) -> bool:
        if self._is_trivial():
            return True
        return self.permutation_map().is_identity()

    # -------------------------------------------------------------------------
    # Explicit forms
    # -------------------------------------------------------------------------

    def moves(self) -> Tuple[Move, ...]:
        """
        Explicit move list in composition order (last move applied first).

        Raises:
            ValueError: if the explicit form exceeds max_flatten_length
        """
        if self.kind == LEAF:
            return self._moves
        limit = self.group.config.max_flatten_length
        if self.count() > limit:
            raise ValueError(f"explicit form has {self.count()} moves, limit is {limit}")

        puzzle = self.group.puzzle
        out: List[Move] = []
        stack = [(self, False)]
        while stack:
            node, inverted = stack.pop()
            if node.kind == LEAF:
                out.extend(inverse_moves(puzzle, node._moves) if inverted else node._moves)
            elif node.kind == INV:
                stack.append((node.left, not inverted))
            elif inverted:
                # (l·r)⁻¹ = r⁻¹ · l⁻¹; stack is LIFO so push the tail first
                stack.append((node.left, True))
                stack.append((node.right, True))
            else:
                stack.append((node.right, False))
                stack.append((node.left, False))
        return tuple(out)

    def application_order(self) -> Tuple[Move, ...]:
        """Explicit move list in execution order (first move applied first)."""
        return tuple(reversed(self.moves()))

    def notation(self) -> str:
        """Execution-order rendering with run-length suffixes, e.g. '1F2 2U 1L3'."""
        parts = []
        for _, run, move in pack_duplicates(self.application_order()):
            parts.append(move if run == 1 else f"{move}{run}")
        return " ".join(parts)

    # -------------------------------------------------------------------------
    # Simplification
    # -------------------------------------------------------------------------

    def simplify(self, level: SimplifyLevel = SimplifyLevel.LEVEL0) -> "ActionAlgebra":
        """
        Rewrite without changing the represented element.

        LEVEL0: cancel runs of identical moves in explicit lists
        LEVEL1: + sink inversions to the leaves, splice small products
        LEVEL2: + flatten to one explicit list
        LEVEL3: + replace substrings via the shrink table until no gain
        """
        level = SimplifyLevel(level)
        group = self.group
        puzzle = group.puzzle
        result = self

        if level >= SimplifyLevel.LEVEL1:
            result = result._sink_inversions()
        if level >= SimplifyLevel.LEVEL2 and result.kind != LEAF:
            result = ActionAlgebra(group, LEAF, moves=result.moves())

        if result.kind == LEAF:
            moves = cancel_runs(puzzle, result._moves)
            if level >= SimplifyLevel.LEVEL3:
                while True:
                    shorter = cancel_runs(puzzle, group.shrink_table.shrink(moves))
                    if len(shorter) >= len(moves):
                        break
                    moves = shorter
            if moves != result._moves:
                result = group.action(moves)

        if result is self:
            return self
        if result._map is None and self._map is not None:
            result._map = self._map
        if group.verifier.should_verify():
            assert result.permutation_map() == self.permutation_map(), \
                f"simplify level {int(level)} changed the element"
        return result

    def _sink_inversions(self) -> "ActionAlgebra":
        """Push every INV down to the leaves; (a·b)⁻¹ = b⁻¹·a⁻¹, (a⁻¹)⁻¹ = a."""
        group = self.group
        memo: Dict[Tuple[int, bool], ActionAlgebra] = {}
        stack = [(self, False, False)]
        while stack:
            node, inverted, ready = stack.pop()
            key = (id(node), inverted)
            if key in memo:
                continue

            if node.kind == MUL:
                deps = [(node.left, inverted), (node.right, inverted)]
            elif node.kind == INV:
                deps = [(node.left, not inverted)]
            else:
                deps = []

            if not ready and deps:
                stack.append((node, inverted, True))
                for child, inv in deps:
                    if (id(child), inv) not in memo:
                        stack.append((child, inv, False))
                continue

            if node.kind == LEAF:
                memo[key] = group.action(inverse_moves(group.puzzle, node._moves)) if inverted else node
            elif node.kind == INV:
                memo[key] = memo[(id(node.left), not inverted)]
            elif inverted:
                memo[key] = memo[(id(node.right), True)].multiply(memo[(id(node.left), True)])
            else:
                memo[key] = memo[(id(node.left), False)].multiply(memo[(id(node.right), False)])
        return memo[(id(self), False)]

    # -------------------------------------------------------------------------
    # Value semantics
    # -------------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, ActionAlgebra):
            return NotImplemented
        if self is other:
            return True
        return self.permutation_map() == other.permutation_map()

    def __hash__(self) -> int:
        return hash(self.permutation_map())

    def __repr__(self) -> str:
        if self.kind == LEAF:
            return f"ActionAlgebra(leaf, count={self.count()})"
        return f"ActionAlgebra({self.kind}, count={self.count()})"

    def __str__(self) -> str:
        if self.count() > self.group.config.max_flatten_length:
            return f"<lazy action: {self.count()} moves>"
        return self.notation()
