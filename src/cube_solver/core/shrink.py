"""
Shrink table for move sequences.

A breadth-first dictionary from reachable state to a short move sequence
producing it. Substrings of a long sequence whose effect is in the table
are replaced by the stored (shorter) sequence. Building the table is
expensive, so it is created once per CubeGroup and only consulted by
SimplifyLevel.LEVEL3.
"""

from typing import Dict, Optional, Tuple

from .puzzle import CubePuzzle
from .types import DEFAULT_SHRINK_ROUNDS, Move

DEFAULT_SHRINK_WINDOW = 16
REDUCED_ROUND = 4   # from this round on only quarter turns are added


class ShrinkTable:
    """State -> short move sequence (composition order) lookup cache."""

    def __init__(self, puzzle: CubePuzzle, *, rounds: int = DEFAULT_SHRINK_ROUNDS,
                 window: int = DEFAULT_SHRINK_WINDOW, verbose: bool = False):
        if rounds <= 0:
            raise ValueError(f"shrink rounds must be positive, got {rounds}")
        if window <= 1:
            raise ValueError(f"shrink window must be > 1, got {window}")
        self.puzzle = puzzle
        self.rounds = rounds
        self.window = window
        self.verbose = verbose
        self._table: Optional[Dict[bytes, Tuple[Move, ...]]] = None

    @property
    def built(self) -> bool:
        return self._table is not None

    def __len__(self) -> int:
        return len(self._table) if self._table is not None else 0

    def build(self) -> None:
        puzzle = self.puzzle
        identity = puzzle.identity()
        table = {identity.key(): ()}
        frontier = [(identity, ())]

        for round_idx in range(self.rounds):
            next_frontier = []
            for state, moves in frontier:
                for move in puzzle.moves:
                    same = 0
                    while same < len(moves) and moves[same] == move:
                        same += 1
                    turns = puzzle.turn_around(move) - same - 1
                    if round_idx >= REDUCED_ROUND:
                        turns = min(turns, 1)

                    probe = state
                    for t in range(1, turns + 1):
                        probe = puzzle.apply_move(probe, move)
                        key = probe.key()
                        if key in table:
                            continue
                        new_moves = (move,) * t + moves
                        table[key] = new_moves
                        next_frontier.append((probe, new_moves))
            frontier = next_frontier
            if self.verbose:
                print(f"  shrink table round {round_idx + 1}: {len(table)} states")

        self._table = table

    def shrink(self, moves: Tuple[Move, ...]) -> Tuple[Move, ...]:
        """
        One greedy pass from the end of `moves` (composition order),
        replacing each substring that has a shorter table entry.
        """
        if self._table is None:
            self.build()
        puzzle = self.puzzle
        out = list(moves)
        start = len(out) - 1
        while start > 0:
            probe = puzzle.identity()
            best = None
            for end in range(start, max(-1, start - self.window), -1):
                probe = puzzle.apply_move(probe, out[end])
                found = self._table.get(probe.key())
                if found is not None and len(found) < start - end + 1:
                    if best is None or (start - end + 1) - len(found) > best[1]:
                        best = (end, (start - end + 1) - len(found), found)
            if best is None:
                start -= 1
                continue
            end, _, found = best
            out[end:start + 1] = list(found)
            start = end - 1
        return tuple(out)
