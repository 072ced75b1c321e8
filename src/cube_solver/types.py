"""
Type definitions and dataclasses for Cube Solver.
"""

from dataclasses import dataclass, field
from typing import Dict, List

from .core.action import ActionAlgebra
from .core.puzzle import CubeState
from .core.types import Move


@dataclass
class SolveStep:
    """
    One entry of a solution.

    - action: element applied at this chain level
    - state: puzzle state right after applying it
    """
    action: ActionAlgebra
    state: CubeState


@dataclass
class ChainStepSummary:
    """Per-level statistics of a built stabilizer chain."""
    index: int
    blocks: List[int]            # block indexes fixed at this level
    orbit_size: int              # number of coset representatives
    generators: int              # retained generators
    rejected: int                # generators cached as useless
    filter_limit: int            # proven bound (-1 when unfiltered)
    filter_jumps: int            # collisions / cycles folded by the filter
    max_coset_moves: int         # longest representative (explicit form)

    def as_dict(self) -> Dict:
        return {
            "index": self.index,
            "blocks": list(self.blocks),
            "orbit_size": self.orbit_size,
            "generators": self.generators,
            "rejected": self.rejected,
            "filter_limit": self.filter_limit,
            "filter_jumps": self.filter_jumps,
            "max_coset_moves": self.max_coset_moves,
        }


@dataclass
class Scramble:
    """A random scramble and the state it produces."""
    moves: List[Move]            # execution order
    state: CubeState
    metadata: Dict = field(default_factory=dict)
