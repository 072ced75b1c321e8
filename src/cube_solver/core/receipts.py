#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cube Solver - Receipts & Verification
=====================================

Every solution carries a receipt:
- Residual: number of stickers off their solved color after replay (0 = solved)
- Move bill: (total_moves, steps, non-trivial steps)
- Explicit replay: how many steps were short enough to re-run with plain
  layer turns instead of their permutation maps
- PCE: Proof-Carrying English explanation

Deep chain levels produce astronomically long words, so replay goes through
each action's own application and only short steps are re-run move by move.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Sequence, Tuple

from .puzzle import CubePuzzle, CubeState

DEFAULT_EXPLICIT_REPLAY_LIMIT = 5_000

# =============================================================================
# Receipts Dataclass
# =============================================================================

@dataclass
class SolveReceipt:
    """Evidence that a solution returns a scramble to the solved state."""
    level: int
    scramble_length: int
    steps: int                     # chain levels walked
    active_steps: int              # levels whose action is not the identity
    total_moves: int               # explicit moves in the whole solution
    explicit_steps: int            # steps re-run move by move
    residual: int                  # stickers off after replay (0 = solved)
    pce: str                       # Proof-Carrying English explanation

    def as_dict(self) -> Dict:
        return asdict(self)

# =============================================================================
# Residual Computation
# =============================================================================

def residual(puzzle: CubePuzzle, state: CubeState, target: CubeState) -> int:
    """
    Number of sticker slots showing a different color in `state` and `target`.

    Returns:
        0 if the two states look identical
    """
    return int((puzzle.sticker_colors(state) != puzzle.sticker_colors(target)).sum())


def replay_solution(puzzle: CubePuzzle, state: CubeState, actions: Sequence,
                    *, explicit_limit: int = DEFAULT_EXPLICIT_REPLAY_LIMIT) -> Tuple[CubeState, int]:
    """
    Replay step actions in order.

    Steps of at most `explicit_limit` moves are re-run with plain layer
    turns; longer ones go through their permutation maps.

    Returns:
        (final_state, explicit_steps)
    """
    explicit = 0
    for action in actions:
        if action.count() <= explicit_limit:
            state = puzzle.apply_moves(state, action.application_order())
            explicit += 1
        else:
            state = action.apply(state)
    return state, explicit

# =============================================================================
# PCE Generation
# =============================================================================

def generate_pce(level: int, scramble_length: int, move_bill: Tuple[int, int, int], res: int) -> str:
    """
    Generate Proof-Carrying English explanation.

    Args:
        level: cube level N
        scramble_length: moves in the scramble
        move_bill: (total_moves, steps, active_steps)
        res: residual after replay

    Returns:
        PCE string tying the solution to its replay
    """
    total, steps, active = move_bill
    if res != 0:
        return (f"[{level}x{level}x{level}] Solution of {total} moves over {steps} levels "
                f"left {res} stickers misplaced.")
    return (f"[{level}x{level}x{level}] Scramble of {scramble_length} moves undone by {total} moves "
            f"in {active} of {steps} chain levels; replay shows 0 misplaced stickers.")

# =============================================================================
# Verification
# =============================================================================

def build_receipt(puzzle: CubePuzzle, scrambled: CubeState, scramble_length: int,
                  actions: Sequence, *, explicit_limit: int = DEFAULT_EXPLICIT_REPLAY_LIMIT) -> SolveReceipt:
    """
    Replay a solution and record its receipt.

    Args:
        scrambled: state the solution starts from
        actions: per-step ActionAlgebra, in solving order

    Returns:
        SolveReceipt with residual against the solved state
    """
    final, explicit = replay_solution(puzzle, scrambled, actions, explicit_limit=explicit_limit)
    res = residual(puzzle, final, puzzle.identity())
    total = sum(a.count() for a in actions)
    active = sum(1 for a in actions if not a.is_identity())
    bill = (total, len(actions), active)
    return SolveReceipt(
        level=puzzle.level,
        scramble_length=scramble_length,
        steps=len(actions),
        active_steps=active,
        total_moves=total,
        explicit_steps=explicit,
        residual=res,
        pce=generate_pce(puzzle.level, scramble_length, bill, res),
    )


def verify_receipts_zero(receipts: List[SolveReceipt]) -> Tuple[bool, List[int]]:
    """
    Verify that every solution reached residual 0.

    Returns:
        (all_zero, residuals)
    """
    residuals = [r.residual for r in receipts]
    return all(r == 0 for r in residuals), residuals
