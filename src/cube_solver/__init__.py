"""
Cube Solver - Stabilizer Chain Approach

Group-theoretic solver for N×N×N cubes: permutation maps, a lazy action
algebra, generator filters and an incremental stabilizer chain.
"""

from .core import (
    SimplifyLevel, EngineConfig, Verifier,
    CubePuzzle, CubeState,
    PermutationMap, ShrinkTable, ActionAlgebra, CubeGroup,
    BlockSet,
    SolveReceipt, build_receipt, residual,
)
from .types import SolveStep, ChainStepSummary, Scramble
from .utils import (
    pack_duplicates, make_rng, random_scramble,
    moves_sha, state_sha, chain_sha,
    log_receipt
)
from .filters import (
    GeneratorFilter,
    JerrumFilter,
    SimsFilter,
    make_filter,
    FILTERS
)
from .chain import (
    GStep,
    StabilizerChainSolver
)

__all__ = [
    # Types
    'SolveStep', 'ChainStepSummary', 'Scramble',
    'SimplifyLevel', 'EngineConfig', 'Verifier',
    # Puzzle
    'CubePuzzle', 'CubeState',
    # Algebra
    'PermutationMap', 'ShrinkTable', 'ActionAlgebra', 'CubeGroup', 'BlockSet',
    # Utils
    'pack_duplicates', 'make_rng', 'random_scramble',
    'moves_sha', 'state_sha', 'chain_sha', 'log_receipt',
    # Filters
    'GeneratorFilter', 'JerrumFilter', 'SimsFilter', 'make_filter', 'FILTERS',
    # Chain
    'GStep', 'StabilizerChainSolver',
    # Receipts
    'SolveReceipt', 'build_receipt', 'residual',
]
