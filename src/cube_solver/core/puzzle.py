#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cube Solver - Puzzle Geometry
=============================

N×N×N cube states and layer turns.

Geometry:
- Coordinates are doubled so every level works: -(N-1), -(N-3), ..., N-1
- A block sits on the surface (at least one coordinate equals ±(N-1))
- Each block carries colors[axis][direction] (direction 0 = negative, 1 = positive)
- Blocks are tracked by identity: index i is always the same physical piece

Move tags are "{k}{F|U|L}" for k = 1..N, counted from the outer layer inwards:
- kF: k-th X layer from +X, clockwise about X
- kU: k-th Z layer from +Z, clockwise about Z
- kL: k-th Y layer from -Y, counter-clockwise about Y

Sticker slots (used by PermutationMap):
    slot = (axis*2 + direction) * N*N + row*N + col
where row/col are the remaining two coordinates mapped to 0..N-1.
"""

from typing import Dict, List, Sequence, Tuple

import numpy as np

from .types import Colors, Move, Positions

# =============================================================================
# Constants
# =============================================================================

X, Y, Z = 0, 1, 2
NEGATIVE, POSITIVE = 0, 1

NONE, GREEN, RED, BLUE, ORANGE, WHITE, YELLOW = range(7)
COLOR_LETTERS = ".GRBOWY"

# colors[axis] = (negative side, positive side)
STANDARD_COLORS = ((BLUE, GREEN), (ORANGE, RED), (YELLOW, WHITE))

# Rotation plane (h, v) for each rotation axis
ROTATION_PLANES = {X: (Y, Z), Y: (Z, X), Z: (X, Y)}

# Remaining axes for slot indexing
OTHER_AXES = np.array([[Y, Z], [X, Z], [X, Y]], dtype=int)

CORNER, EDGE, FACE = 0, 1, 2
BLOCK_TYPE_NAMES = {CORNER: "corner", EDGE: "edge", FACE: "face"}

TURN_AROUND = 4


# =============================================================================
# CubeState
# =============================================================================

class CubeState:
    """
    Immutable puzzle state.

    positions: (B, 3) int array of doubled coordinates
    colors:    (B, 3, 2) int array, 0 where the block has no sticker
    """
    __slots__ = ("puzzle", "positions", "colors", "_key")

    def __init__(self, puzzle: "CubePuzzle", positions: Positions, colors: Colors):
        positions = np.asarray(positions, dtype=np.int64)
        colors = np.asarray(colors, dtype=np.int64)
        if positions.shape != (puzzle.block_count, 3):
            raise ValueError(f"positions must have shape {(puzzle.block_count, 3)}, got {positions.shape}")
        if colors.shape != (puzzle.block_count, 3, 2):
            raise ValueError(f"colors must have shape {(puzzle.block_count, 3, 2)}, got {colors.shape}")
        positions.flags.writeable = False
        colors.flags.writeable = False
        self.puzzle = puzzle
        self.positions = positions
        self.colors = colors
        self._key = None

    def key(self) -> bytes:
        if self._key is None:
            self._key = self.positions.tobytes() + self.colors.tobytes()
        return self._key

    def __eq__(self, other) -> bool:
        if not isinstance(other, CubeState):
            return NotImplemented
        return self.puzzle.level == other.puzzle.level and self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __repr__(self) -> str:
        return f"CubeState(level={self.puzzle.level}, blocks={self.puzzle.block_count})"

    def __str__(self) -> str:
        return self.puzzle.render(self)


# =============================================================================
# CubePuzzle
# =============================================================================

class CubePuzzle:
    """
    Geometry and move set of an N×N×N cube.

    Provides the state collaborator interface the engine relies on:
    identity(), apply_move(), turn_around(), reverse(),
    is_same_block_arrangement() and the sticker slot encoding.
    """

    def __init__(self, level: int):
        if level < 2:
            raise ValueError(f"cube level must be >= 2, got {level}")
        self.level = level
        self.bound = level - 1
        self.face_size = level * level
        self.slot_count = 6 * self.face_size

        self._identity_positions, self._identity_colors = self._solved_blocks()
        self.block_count = len(self._identity_positions)

        self.moves: Tuple[Move, ...] = tuple(
            f"{k}{face}" for face in "FUL" for k in range(1, level + 1))
        self._move_specs: Dict[Move, Tuple[int, int, bool]] = {}
        for k in range(1, level + 1):
            layer = self.bound - 2 * (k - 1)
            self._move_specs[f"{k}F"] = (X, layer, True)
            self._move_specs[f"{k}U"] = (Z, layer, True)
            self._move_specs[f"{k}L"] = (Y, -layer, False)

        self._build_slot_tables()
        self._identity = CubeState(self, self._identity_positions, self._identity_colors)

    def __repr__(self) -> str:
        return f"CubePuzzle(level={self.level})"

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    def _solved_blocks(self) -> Tuple[np.ndarray, np.ndarray]:
        B = self.bound
        coords = range(-B, B + 1, 2)
        positions, colors = [], []
        for x in coords:
            for y in coords:
                for z in coords:
                    pos = (x, y, z)
                    if all(abs(c) != B for c in pos):
                        continue
                    block_colors = np.zeros((3, 2), dtype=np.int64)
                    for axis, c in enumerate(pos):
                        if c == B:
                            block_colors[axis, POSITIVE] = STANDARD_COLORS[axis][POSITIVE]
                        elif c == -B:
                            block_colors[axis, NEGATIVE] = STANDARD_COLORS[axis][NEGATIVE]
                    positions.append(pos)
                    colors.append(block_colors)
        return np.array(positions, dtype=np.int64), np.array(colors, dtype=np.int64)

    def _build_slot_tables(self) -> None:
        N, B = self.level, self.bound
        slots = np.arange(self.slot_count)
        faces = slots // self.face_size
        axes = faces // 2
        dirs = faces % 2
        rows = (slots % self.face_size) // N
        cols = slots % N

        pos = np.zeros((self.slot_count, 3), dtype=np.int64)
        pos[slots, axes] = np.where(dirs == POSITIVE, B, -B)
        others = OTHER_AXES[axes]
        pos[slots, others[:, 0]] = 2 * rows - B
        pos[slots, others[:, 1]] = 2 * cols - B

        self.slot_positions = pos
        self.slot_axes = axes
        self.slot_directions = dirs

    # -------------------------------------------------------------------------
    # State collaborator interface
    # -------------------------------------------------------------------------

    def identity(self) -> CubeState:
        """The solved state."""
        return self._identity

    def make_state(self, positions: Positions, colors: Colors) -> CubeState:
        return CubeState(self, positions, colors)

    def turn_around(self, move: Move) -> int:
        """Number of repetitions of `move` that return to identity."""
        self._move_layer(move)
        return TURN_AROUND

    def reverse(self, move: Move) -> Tuple[Move, ...]:
        """Decomposition of the inverse of `move` into forward moves."""
        self._move_layer(move)
        return (move,) * (TURN_AROUND - 1)

    def _move_layer(self, move: Move) -> Tuple[int, int, bool]:
        try:
            return self._move_specs[move]
        except KeyError:
            raise ValueError(f"unknown move tag {move!r} for level {self.level}") from None

    def apply_move(self, state: CubeState, move: Move) -> CubeState:
        """Apply one layer turn, returning a new state."""
        axis, layer, clockwise = self._move_layer(move)
        h, v = ROTATION_PLANES[axis]

        pos = state.positions.copy()
        col = state.colors.copy()
        mask = state.positions[:, axis] == layer
        p = state.positions[mask]
        c = state.colors[mask]

        new_p = p.copy()
        new_c = c.copy()
        if clockwise:
            new_p[:, h] = p[:, v]
            new_p[:, v] = -p[:, h]
            new_c[:, v, POSITIVE] = c[:, h, NEGATIVE]
            new_c[:, h, NEGATIVE] = c[:, v, NEGATIVE]
            new_c[:, v, NEGATIVE] = c[:, h, POSITIVE]
            new_c[:, h, POSITIVE] = c[:, v, POSITIVE]
        else:
            new_p[:, h] = -p[:, v]
            new_p[:, v] = p[:, h]
            new_c[:, v, POSITIVE] = c[:, h, POSITIVE]
            new_c[:, h, POSITIVE] = c[:, v, NEGATIVE]
            new_c[:, v, NEGATIVE] = c[:, h, NEGATIVE]
            new_c[:, h, NEGATIVE] = c[:, v, POSITIVE]

        pos[mask] = new_p
        col[mask] = new_c
        return CubeState(self, pos, col)

    def apply_moves(self, state: CubeState, moves: Sequence[Move]) -> CubeState:
        """Apply moves left to right (execution order)."""
        for move in moves:
            state = self.apply_move(state, move)
        return state

    # -------------------------------------------------------------------------
    # Block classification
    # -------------------------------------------------------------------------

    def block_types(self, positions: Positions) -> np.ndarray:
        """CORNER/EDGE/FACE for each row of positions."""
        on_boundary = (np.abs(positions) == self.bound).sum(axis=1)
        return 3 - on_boundary

    def _sorted_colors(self, colors: Colors) -> np.ndarray:
        return np.sort(colors.reshape(len(colors), 6), axis=1)

    def is_same_block_arrangement(self, a: CubeState, b: CubeState) -> bool:
        """True if every block index has the same type and color multiset in both states."""
        if a.puzzle.level != b.puzzle.level:
            return False
        return (np.array_equal(self.block_types(a.positions), self.block_types(b.positions))
                and np.array_equal(self._sorted_colors(a.colors), self._sorted_colors(b.colors)))

    def solving_order(self, state: CubeState = None) -> List[int]:
        """
        Block indexes in solving order: corners before edges before faces,
        then by sorted colors, position and raw colors.
        """
        if state is None:
            state = self._identity
        types = self.block_types(state.positions)
        sorted_colors = self._sorted_colors(state.colors)

        def sort_key(i):
            return (int(types[i]),
                    tuple(int(c) for c in sorted_colors[i] if c != NONE),
                    tuple(int(c) for c in state.positions[i]),
                    tuple(int(c) for c in state.colors[i].ravel()))

        return sorted(range(self.block_count), key=sort_key)

    # -------------------------------------------------------------------------
    # Sticker slots
    # -------------------------------------------------------------------------

    def slot_index(self, positions: Positions, axes: np.ndarray, directions: np.ndarray) -> np.ndarray:
        """Vectorized slot index for sticker (position, axis, direction)."""
        N, B = self.level, self.bound
        positions = np.atleast_2d(positions)
        axes = np.atleast_1d(axes)
        directions = np.atleast_1d(directions)
        rows_idx = np.arange(len(positions))
        others = OTHER_AXES[axes]
        r = (positions[rows_idx, others[:, 0]] + B) // 2
        c = (positions[rows_idx, others[:, 1]] + B) // 2
        return (axes * 2 + directions) * self.face_size + r * N + c

    def stickers(self, state: CubeState) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        All colored stickers of a state.

        Returns:
            (block, axis, direction, slot) arrays, one entry per sticker
        """
        b, a, d = np.nonzero(state.colors)
        slots = self.slot_index(state.positions[b], a, d)
        return b, a, d, slots

    def block_slots(self, state: CubeState, blocks: Sequence[int]) -> List[int]:
        """Sticker slots of the given blocks, block by block, in (axis, direction) order."""
        out = []
        for i in blocks:
            a, d = np.nonzero(state.colors[i])
            out.extend(int(s) for s in self.slot_index(
                np.repeat(state.positions[i:i + 1], len(a), axis=0), a, d))
        return out

    # -------------------------------------------------------------------------
    # Scrambles
    # -------------------------------------------------------------------------

    def random_moves(self, length: int, rng: np.random.Generator) -> List[Move]:
        idx = rng.integers(len(self.moves), size=length)
        return [self.moves[i] for i in idx]

    def random_state(self, length: int, rng: np.random.Generator) -> CubeState:
        return self.apply_moves(self._identity, self.random_moves(length, rng))

    # -------------------------------------------------------------------------
    # Checks and rendering
    # -------------------------------------------------------------------------

    def sticker_colors(self, state: CubeState) -> np.ndarray:
        """Color shown at every slot (0 if uncovered)."""
        b, a, d, slots = self.stickers(state)
        out = np.zeros(self.slot_count, dtype=np.int64)
        out[slots] = state.colors[b, a, d]
        return out

    def verify_invariants(self, state: CubeState) -> None:
        """Assert that a state is a physically consistent cube."""
        B = self.bound
        assert np.all(np.abs(state.positions) <= B), "block outside the cube"
        assert np.all((np.abs(state.positions) == B).any(axis=1)), "block off the surface"
        assert np.array_equal(np.bincount(self.block_types(state.positions), minlength=3),
                              np.bincount(self.block_types(self._identity_positions), minlength=3)), \
            "block type counts changed"
        _, _, _, slots = self.stickers(state)
        assert len(slots) == self.slot_count, f"expected {self.slot_count} stickers, got {len(slots)}"
        assert len(np.unique(slots)) == self.slot_count, "two stickers share a slot"
        counts = np.bincount(state.colors.ravel(), minlength=7)[1:]
        assert np.all(counts == self.face_size), f"color counts {counts.tolist()} != {self.face_size}"

    def render(self, state: CubeState) -> str:
        """Face-by-face text rendering."""
        shown = self.sticker_colors(state)
        lines = []
        for face in range(6):
            axis, direction = divmod(face, 2)
            lines.append(f"{'XYZ'[axis]}{'-+'[direction]}:")
            base = face * self.face_size
            for r in range(self.level):
                row = shown[base + r * self.level: base + (r + 1) * self.level]
                lines.append("  " + " ".join(COLOR_LETTERS[c] for c in row))
        return "\n".join(lines)
