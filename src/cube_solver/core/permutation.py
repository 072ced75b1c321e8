#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cube Solver - Permutation Maps
==============================

A PermutationMap is a bijection on sticker slots. Applying it to a state
costs one vectorized gather, independent of how many moves produced it.

Conventions:
- array[i] = slot that the sticker at slot i moves to (-1 = unused slot)
- a.compose(b) is "b first, then a": result[i] = a[b[i]]
"""

import numpy as np

from .puzzle import CubePuzzle, CubeState


class PermutationMap:
    """Sticker-slot permutation owned by one puzzle geometry."""
    __slots__ = ("puzzle", "array", "_hash")

    def __init__(self, puzzle: CubePuzzle, array: np.ndarray):
        array = np.asarray(array, dtype=np.int64)
        if array.shape != (puzzle.slot_count,):
            raise ValueError(f"permutation must have length {puzzle.slot_count}, got {array.shape}")
        array.flags.writeable = False
        self.puzzle = puzzle
        self.array = array
        self._hash = None

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def identity(cls, puzzle: CubePuzzle) -> "PermutationMap":
        return cls(puzzle, np.arange(puzzle.slot_count))

    @classmethod
    def from_transform(cls, puzzle: CubePuzzle, original: CubeState, current: CubeState) -> "PermutationMap":
        """
        Derive the slot permutation that takes `original` to `current`.

        Each colored sticker of block i in `original` is matched with the
        sticker of the same color on block i in `current`.

        Raises:
            ValueError: if the states are not the same block arrangement,
                        or two stickers land on the same slot
        """
        if not puzzle.is_same_block_arrangement(original, current):
            raise ValueError("cannot derive a permutation between different block arrangements")

        b, a, d, from_slots = puzzle.stickers(original)
        sticker_colors = original.colors[b, a, d]

        # Locate each color on the same block of the current state
        current_flat = current.colors.reshape(puzzle.block_count, 6)[b]
        hits = current_flat == sticker_colors[:, None]
        found = hits.argmax(axis=1)
        assert np.all(hits[np.arange(len(found)), found]), "sticker color missing from its block"

        to_axes, to_dirs = np.divmod(found, 2)
        to_slots = puzzle.slot_index(current.positions[b], to_axes, to_dirs)

        if len(np.unique(to_slots)) != len(to_slots):
            raise ValueError("duplicate target slot in permutation")

        array = np.full(puzzle.slot_count, -1, dtype=np.int64)
        array[from_slots] = to_slots
        return cls(puzzle, array)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def apply(self, state: CubeState) -> CubeState:
        """
        Relocate every sticker of `state` according to the map.

        Raises:
            ValueError: if a sticker hits an unused slot or the stickers of
                        one block disagree on its new position
        """
        puzzle = self.puzzle
        b, a, d, slots = puzzle.stickers(state)
        targets = self.array[slots]
        if np.any(targets < 0):
            raise ValueError("permutation sends a sticker to an unused slot")

        new_pos = puzzle.slot_positions[targets]
        positions = np.empty_like(state.positions)
        positions[b] = new_pos
        if not np.array_equal(positions[b], new_pos):
            raise ValueError("permutation would tear a block apart")

        colors = np.zeros_like(state.colors)
        colors[b, puzzle.slot_axes[targets], puzzle.slot_directions[targets]] = state.colors[b, a, d]
        return CubeState(puzzle, positions, colors)

    def compose(self, other: "PermutationMap") -> "PermutationMap":
        """`other` first, then `self`."""
        result = np.full_like(other.array, -1)
        used = other.array >= 0
        result[used] = self.array[other.array[used]]
        return PermutationMap(self.puzzle, result)

    def invert(self) -> "PermutationMap":
        result = np.full_like(self.array, -1)
        used = self.array >= 0
        result[self.array[used]] = np.nonzero(used)[0]
        return PermutationMap(self.puzzle, result)

    def is_identity(self) -> bool:
        used = self.array >= 0
        return bool(np.all(self.array[used] == np.nonzero(used)[0]))

    def moved(self) -> np.ndarray:
        """Slots whose sticker moves."""
        used = self.array >= 0
        return np.nonzero(used & (self.array != np.arange(len(self.array))))[0]

    def validate(self) -> None:
        """Assert the map is a bijection onto valid slots."""
        used = self.array >= 0
        targets = self.array[used]
        assert np.all(targets < self.puzzle.slot_count), "target slot out of range"
        assert len(np.unique(targets)) == len(targets), "permutation is not injective"
        assert np.array_equal(np.sort(targets), np.nonzero(used)[0]), "permutation mixes used and unused slots"

    # -------------------------------------------------------------------------
    # Value semantics
    # -------------------------------------------------------------------------

    def __eq__(self, other) -> bool:
        if not isinstance(other, PermutationMap):
            return NotImplemented
        return np.array_equal(self.array, other.array)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(self.array.tobytes())
        return self._hash

    def __getitem__(self, slot: int) -> int:
        return int(self.array[slot])

    def __len__(self) -> int:
        return len(self.array)

    def __repr__(self) -> str:
        return f"PermutationMap(moved={len(self.moved())}/{len(self.array)})"
