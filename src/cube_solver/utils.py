"""
Utility functions for Cube Solver.
"""

import json
import hashlib
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from .core.action import pack_duplicates  # noqa: F401 (re-exported)
from .core.puzzle import CubePuzzle, CubeState
from .types import Scramble


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Seeded numpy generator (None = fresh entropy)."""
    return np.random.default_rng(seed)


def random_scramble(puzzle: CubePuzzle, length: int, rng: np.random.Generator) -> Scramble:
    """Random move sequence applied to the solved state."""
    if length < 0:
        raise ValueError(f"scramble length must be >= 0, got {length}")
    moves = puzzle.random_moves(length, rng)
    return Scramble(moves=moves, state=puzzle.apply_moves(puzzle.identity(), moves),
                    metadata={"level": puzzle.level, "length": length})


def moves_sha(moves: Sequence[str]) -> str:
    """
    Compute SHA-256 hash of a move sequence.

    Args:
        moves: move tags (any fixed order)

    Returns:
        Hex string of SHA-256 hash
    """
    return hashlib.sha256(json.dumps(list(moves)).encode()).hexdigest()


def state_sha(state: CubeState) -> str:
    """Compute SHA-256 hash of a puzzle state."""
    payload = {
        "level": state.puzzle.level,
        "positions": state.positions.tolist(),
        "colors": state.colors.tolist(),
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()


def chain_sha(summaries: List) -> str:
    """
    Compute SHA-256 hash of a built chain's shape.

    Two builds with the same level, block order and orbit sizes hash equal,
    which makes runs comparable across seeds and filters.
    """
    payload = [{"blocks": list(s.blocks), "orbit_size": s.orbit_size} for s in summaries]
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()


def log_receipt(record: Dict, out_dir: str = None) -> None:
    """
    Write receipt record to JSONL file.

    Args:
        record: Dictionary with receipt data
        out_dir: Output directory (default: runs/YYYY-MM-DD)
    """
    if out_dir is None:
        date_str = datetime.now().strftime("%Y-%m-%d")
        out_dir = f"runs/{date_str}"

    Path(out_dir).mkdir(parents=True, exist_ok=True)
    receipt_path = Path(out_dir) / "receipts.jsonl"

    with open(receipt_path, "a") as f:
        f.write(json.dumps(record, sort_keys=True) + "\n")
