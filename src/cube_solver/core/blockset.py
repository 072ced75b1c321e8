"""
BlockSet: a chosen subset of blocks observed in a state snapshot.

Two BlockSets are equal when they select the same block indexes and those
blocks have the same position and colors; everything else in the snapshot
is ignored. BlockSets key the orbit -> coset tables of the stabilizer chain.
"""

from typing import FrozenSet, Iterable

import numpy as np

from .puzzle import CubeState


class BlockSet:
    __slots__ = ("indexes", "state", "_order", "_key")

    def __init__(self, state: CubeState, indexes: Iterable[int]):
        indexes = frozenset(int(i) for i in indexes)
        for i in indexes:
            if not 0 <= i < state.puzzle.block_count:
                raise ValueError(f"block index {i} out of range 0..{state.puzzle.block_count - 1}")
        self.indexes: FrozenSet[int] = indexes
        self.state = state
        self._order = np.array(sorted(indexes), dtype=np.int64)
        self._key = None

    def key(self) -> bytes:
        if self._key is None:
            self._key = (self._order.tobytes()
                         + self.state.positions[self._order].tobytes()
                         + self.state.colors[self._order].tobytes())
        return self._key

    def observe(self, state: CubeState) -> "BlockSet":
        """Same block selection, seen in another state."""
        return BlockSet(state, self.indexes)

    def apply(self, action) -> "BlockSet":
        """Snapshot after applying an ActionAlgebra."""
        return BlockSet(action.apply(self.state), self.indexes)

    def is_stabilized_by(self, action) -> bool:
        """True if `action` leaves every selected block where and as it is."""
        return self.apply(action) == self

    def merge(self, other: "BlockSet") -> "BlockSet":
        """
        Union of two disjoint selections over the same block arrangement.

        Raises:
            ValueError: if the selections overlap or the snapshots are of
                        different block arrangements
        """
        overlap = self.indexes & other.indexes
        if overlap:
            raise ValueError(f"cannot merge block sets sharing blocks {sorted(overlap)}")
        puzzle = self.state.puzzle
        if not puzzle.is_same_block_arrangement(self.state, other.state):
            raise ValueError("cannot merge block sets of different block arrangements")

        positions = self.state.positions.copy()
        colors = self.state.colors.copy()
        positions[other._order] = other.state.positions[other._order]
        colors[other._order] = other.state.colors[other._order]
        return BlockSet(puzzle.make_state(positions, colors), self.indexes | other.indexes)

    def __len__(self) -> int:
        return len(self.indexes)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BlockSet):
            return NotImplemented
        return self.indexes == other.indexes and self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __repr__(self) -> str:
        return f"BlockSet({sorted(self.indexes)})"
