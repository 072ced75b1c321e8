"""Cube Solver - Core Group Algebra"""

from .types import (
    Move, Positions, Colors,
    SimplifyLevel, EngineConfig, Verifier,
    DEFAULT_ACCELERATION_THRESHOLD, DEFAULT_MAX_FLATTEN_LENGTH,
    DEFAULT_SHRINK_ROUNDS, DEFAULT_VERIFY_RATE, DEFAULT_VERIFY_REPLAY_LIMIT,
)
from .puzzle import (
    CubePuzzle,
    CubeState,
    CORNER, EDGE, FACE,
)
from .permutation import PermutationMap
from .shrink import ShrinkTable
from .action import (
    ActionAlgebra,
    CubeGroup,
    cancel_runs,
    pack_duplicates,
    inverse_moves,
)
from .blockset import BlockSet
from .receipts import (
    SolveReceipt,
    residual,
    replay_solution,
    generate_pce,
    build_receipt,
    verify_receipts_zero,
)

__all__ = [
    # Types
    'Move', 'Positions', 'Colors', 'SimplifyLevel', 'EngineConfig', 'Verifier',
    'DEFAULT_ACCELERATION_THRESHOLD', 'DEFAULT_MAX_FLATTEN_LENGTH',
    'DEFAULT_SHRINK_ROUNDS', 'DEFAULT_VERIFY_RATE', 'DEFAULT_VERIFY_REPLAY_LIMIT',
    # Puzzle
    'CubePuzzle', 'CubeState', 'CORNER', 'EDGE', 'FACE',
    # Algebra
    'PermutationMap', 'ShrinkTable', 'ActionAlgebra', 'CubeGroup',
    'cancel_runs', 'inverse_moves', 'pack_duplicates',
    # Block sets
    'BlockSet',
    # Receipts
    'SolveReceipt', 'residual', 'replay_solution', 'generate_pce',
    'build_receipt', 'verify_receipts_zero',
]
