#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cube Solver - Core Type Definitions
===================================

Core types used throughout the engine:
- Move: a move tag such as "1F" or "3U"
- Positions / Colors: numpy arrays describing a puzzle state
- SimplifyLevel: cumulative rewrite levels for actions
- EngineConfig: tunables for one solving session
- Verifier: explicit self-verification policy
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

import numpy as np

# =============================================================================
# Core Types
# =============================================================================

Move = str                  # e.g. "1F", "2U", "3L"
Positions = np.ndarray      # dtype=int, shape (B, 3), doubled coordinates
Colors = np.ndarray         # dtype=int, shape (B, 3, 2), 0 = no sticker


class SimplifyLevel(IntEnum):
    """Rewrite levels for ActionAlgebra.simplify. Each level includes the ones below."""
    LEVEL0 = 0   # cancel runs of identical moves
    LEVEL1 = 1   # sink inversions to leaves
    LEVEL2 = 2   # flatten to one explicit move list
    LEVEL3 = 3   # substring shrinking via lookup table


# =============================================================================
# Engine Configuration
# =============================================================================

DEFAULT_ACCELERATION_THRESHOLD = 24
DEFAULT_MAX_FLATTEN_LENGTH = 200_000
DEFAULT_VERIFY_REPLAY_LIMIT = 2_000
DEFAULT_SHRINK_ROUNDS = 3
DEFAULT_VERIFY_RATE = 1e-3

VERIFY_MODES = ("always", "never", "sampled")


@dataclass
class EngineConfig:
    """Tunables for one CubeGroup session."""
    acceleration_threshold: int = DEFAULT_ACCELERATION_THRESHOLD
    max_flatten_length: int = DEFAULT_MAX_FLATTEN_LENGTH
    verify_replay_limit: int = DEFAULT_VERIFY_REPLAY_LIMIT   # longest word replayed by checks
    shrink_rounds: int = DEFAULT_SHRINK_ROUNDS
    coset_simplify_level: SimplifyLevel = SimplifyLevel.LEVEL0

    def validate(self) -> None:
        if self.acceleration_threshold < 0:
            raise ValueError(f"acceleration_threshold must be >= 0, got {self.acceleration_threshold}")
        if self.max_flatten_length <= 0:
            raise ValueError(f"max_flatten_length must be positive, got {self.max_flatten_length}")
        if self.verify_replay_limit < 0:
            raise ValueError(f"verify_replay_limit must be >= 0, got {self.verify_replay_limit}")
        if self.shrink_rounds <= 0:
            raise ValueError(f"shrink_rounds must be positive, got {self.shrink_rounds}")
        self.coset_simplify_level = SimplifyLevel(self.coset_simplify_level)


# =============================================================================
# Verification Policy
# =============================================================================

class Verifier:
    """
    Decides when expensive self-checks run.

    Modes:
        always:  every check runs (default; debug build)
        never:   no gated check runs
        sampled: each check runs with probability `rate` (opt-in)

    Check bodies are plain asserts, so `python -O` removes them entirely.
    """

    def __init__(self, mode: str = "always", *, rate: float = DEFAULT_VERIFY_RATE,
                 seed: Optional[int] = None):
        if mode not in VERIFY_MODES:
            raise ValueError(f"verify mode must be one of {VERIFY_MODES}, got {mode!r}")
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"verify rate must be in [0, 1], got {rate}")
        self.mode = mode
        self.rate = rate
        self._rng = np.random.default_rng(seed)
        self.checks_run = 0

    def should_verify(self) -> bool:
        if not __debug__ or self.mode == "never":
            return False
        if self.mode == "sampled" and self._rng.random() >= self.rate:
            return False
        self.checks_run += 1
        return True

    def __repr__(self) -> str:
        return f"Verifier(mode={self.mode!r}, rate={self.rate})"
