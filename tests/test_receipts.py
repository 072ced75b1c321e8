"""
Receipt and utility tests.

Properties:
1. Residual counts misplaced stickers (0 = identical)
2. Receipts of chain solutions replay to residual 0
3. Receipt records land in receipts.jsonl
"""

import json
import numpy as np
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cube_solver.core.action import CubeGroup
from cube_solver.core.receipts import build_receipt, residual, verify_receipts_zero
from cube_solver.core.types import Verifier
from cube_solver.chain import StabilizerChainSolver
from cube_solver.utils import (
    pack_duplicates, random_scramble, moves_sha, state_sha, log_receipt
)


@pytest.fixture(scope="module")
def solver():
    group = CubeGroup(2, verifier=Verifier("never"))
    s = StabilizerChainSolver(group, generators=[group.elementary(m) for m in ("1F", "1U", "1L")])
    s.build()
    return s


# ==============================================================================
# Residual
# ==============================================================================

def test_residual_of_single_turn():
    puzzle = CubeGroup(2, verifier=Verifier("never")).puzzle
    identity = puzzle.identity()
    # the turned face keeps its color, the four side strips move
    assert residual(puzzle, puzzle.apply_move(identity, "1F"), identity) == 8
    assert residual(puzzle, identity, identity) == 0


# ==============================================================================
# Receipts
# ==============================================================================

def test_receipt_of_chain_solution(solver):
    puzzle = solver.puzzle
    scrambled = puzzle.apply_moves(puzzle.identity(), ["1F", "1U", "1U", "1L", "1F", "1U"])
    actions = [s.action for s in solver.solve_cube(scrambled)]
    receipt = build_receipt(puzzle, scrambled, 6, actions)
    assert receipt.residual == 0
    assert "0 misplaced" in receipt.pce
    assert receipt.steps == len(solver.steps)
    assert receipt.total_moves == sum(a.count() for a in actions)
    assert receipt.active_steps >= 1


def test_long_steps_replay_through_maps(solver):
    puzzle = solver.puzzle
    rng = np.random.default_rng(5)
    scrambled = puzzle.apply_moves(puzzle.identity(), [("1F", "1U", "1L")[i] for i in rng.integers(3, size=50)])
    actions = [s.action for s in solver.solve_cube(scrambled)]
    receipt = build_receipt(puzzle, scrambled, 50, actions, explicit_limit=-1)
    assert receipt.explicit_steps == 0
    assert receipt.residual == 0


def test_wrong_solution_leaves_residual():
    group = CubeGroup(2, verifier=Verifier("never"))
    puzzle = group.puzzle
    receipt = build_receipt(puzzle, puzzle.identity(), 0, [group.elementary("1F")])
    assert receipt.residual == 8
    assert "misplaced" in receipt.pce
    ok, residuals = verify_receipts_zero([receipt])
    assert not ok
    assert residuals == [8]


def test_receipt_logged_as_jsonl(tmp_path, solver):
    puzzle = solver.puzzle
    receipt = build_receipt(puzzle, puzzle.identity(), 0, [])
    log_receipt({"case": "a", "receipt": receipt.as_dict()}, out_dir=str(tmp_path))
    log_receipt({"case": "b", "receipt": receipt.as_dict()}, out_dir=str(tmp_path))
    lines = (tmp_path / "receipts.jsonl").read_text().splitlines()
    assert [json.loads(line)["case"] for line in lines] == ["a", "b"]
    assert json.loads(lines[0])["receipt"]["residual"] == 0


# ==============================================================================
# Utils
# ==============================================================================

def test_pack_duplicates():
    assert list(pack_duplicates(["1F", "1F", "2U", "1F"])) == [(0, 2, "1F"), (2, 1, "2U"), (3, 1, "1F")]
    assert list(pack_duplicates([])) == []


def test_hashes_are_stable():
    puzzle = CubeGroup(2, verifier=Verifier("never")).puzzle
    assert moves_sha(["1F", "1U"]) == moves_sha(("1F", "1U"))
    assert moves_sha(["1F", "1U"]) != moves_sha(["1U", "1F"])
    assert state_sha(puzzle.identity()) == state_sha(puzzle.identity())
    assert state_sha(puzzle.identity()) != state_sha(puzzle.apply_move(puzzle.identity(), "1F"))


def test_random_scramble():
    puzzle = CubeGroup(2, verifier=Verifier("never")).puzzle
    scramble = random_scramble(puzzle, 12, np.random.default_rng(0))
    assert len(scramble.moves) == 12
    assert scramble.state == puzzle.apply_moves(puzzle.identity(), scramble.moves)
    with pytest.raises(ValueError):
        random_scramble(puzzle, -1, np.random.default_rng(0))
