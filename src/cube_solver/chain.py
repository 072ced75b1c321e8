#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Cube Solver - Stabilizer Chain
==============================

Schreier-Sims style chain over block positions.

Level k of the chain (a GStep) works in the subgroup that fixes the blocks
of levels 0..k-1. It records, for every configuration its own blocks can
reach, one coset representative that produces it. Generators of the next
level come from the Schreier subgroup lemma:

    sub = rep(s·r)⁻¹ · (s·r)

for a generator s and a representative r; every such sub fixes this
level's blocks, so it is handed to level k+1.

Solving walks the chain top-down: look up the representative of the
observed configuration, apply its inverse, and move on. The blocks fixed
so far are never disturbed again.
"""

import time
from typing import Dict, List, Optional, Sequence

from .core.action import ActionAlgebra, CubeGroup
from .core.blockset import BlockSet
from .core.puzzle import CubeState
from .filters import FILTERS, GeneratorFilter, make_filter
from .types import ChainStepSummary, SolveStep

DEFAULT_STEP_LENGTH = 1
DEFAULT_FILTER = "jerrum"


# =============================================================================
# GStep: one level of the chain
# =============================================================================

class GStep:
    """
    One chain level.

    stabilized:    blocks fixed by every generator of this level
    to_stabilize:  blocks this level places
    orbit_to_coset: reachable configuration of to_stabilize -> representative
    """

    def __init__(self, group: CubeGroup, index: int, stabilized: BlockSet, to_stabilize: BlockSet,
                 gen_filter: Optional[GeneratorFilter] = None, *, verbose: bool = False):
        self.group = group
        self.index = index
        self.stabilized = stabilized
        self.to_stabilize = to_stabilize
        self.filter = gen_filter
        self.verbose = verbose

        self.generators: List[ActionAlgebra] = []
        self._generator_set = set()
        self.rejected = set()
        self.orbit_to_coset: Dict[BlockSet, ActionAlgebra] = {to_stabilize: group.identity()}
        self.next: Optional["GStep"] = None
        self.schreier_count = 0

    def __repr__(self) -> str:
        return (f"GStep({self.index}, blocks={sorted(self.to_stabilize.indexes)}, "
                f"orbit={len(self.orbit_to_coset)}, generators={len(self.generators)})")

    # -------------------------------------------------------------------------
    # Generator intake
    # -------------------------------------------------------------------------

    def add_generator_incrementally(self, generator: ActionAlgebra) -> int:
        """
        Offer a generator fixing `stabilized`.

        Returns:
            Number of new coset representatives found along the chain
        """
        if generator.is_identity() or generator in self._generator_set or generator in self.rejected:
            return 0

        if self.filter is not None:
            self.filter.filter_generator(generator)
            retained = self.filter.generators()
            new_generators = [g for g in retained if g not in self._generator_set]
            if not new_generators:
                self.rejected.add(generator)
                return 0
            retained_set = set(retained)
            self.generators = [g for g in self.generators if g in retained_set]
            self._generator_set = set(self.generators)
        else:
            new_generators = [generator]

        found = 0
        for g in new_generators:
            found += self._incorporate(g)

        if self.filter is None and found == 0:
            self.generators.remove(generator)
            self._generator_set.discard(generator)
            self.rejected.add(generator)
        return found

    def _incorporate(self, generator: ActionAlgebra) -> int:
        new_states = self._explore_orbit(generator)
        subgroup = self._schreier_generators(generator, new_states)
        found = len(new_states)

        if self.verbose and new_states:
            print(f"  step {self.index}: +{len(new_states)} cosets "
                  f"(orbit {len(self.orbit_to_coset)}, generators {len(self.generators)}, "
                  f"schreier {len(subgroup)})")

        if self.next is not None:
            for sub in subgroup:
                found += self.next.add_generator_incrementally(sub)
        return found

    # -------------------------------------------------------------------------
    # Orbit exploration
    # -------------------------------------------------------------------------

    def _explore_coset(self, start: BlockSet, generator: ActionAlgebra, new_states: List[BlockSet]) -> None:
        target = start.apply(generator)
        if self.stabilized.observe(target.state) != self.stabilized:
            raise ValueError(f"generator disturbs blocks stabilized before step {self.index}")
        if target in self.orbit_to_coset:
            return
        rep = generator.multiply(self.orbit_to_coset[start])
        self.orbit_to_coset[target] = rep.simplify(self.group.config.coset_simplify_level)
        new_states.append(target)

    def _explore_orbit(self, generator: ActionAlgebra) -> List[BlockSet]:
        """Close the orbit under the generators after adding `generator`."""
        new_states: List[BlockSet] = []
        for state in list(self.orbit_to_coset):
            self._explore_coset(state, generator, new_states)
        self.generators.append(generator)
        self._generator_set.add(generator)

        walk = 0
        while walk < len(new_states):
            state = new_states[walk]
            walk += 1
            for g in self.generators:
                self._explore_coset(state, g, new_states)
        return new_states

    # -------------------------------------------------------------------------
    # Schreier generators
    # -------------------------------------------------------------------------

    def _schreier_generators(self, generator: ActionAlgebra, new_states: List[BlockSet]) -> List[ActionAlgebra]:
        pairs = [(generator, state) for state in self.orbit_to_coset]
        pairs += [(s, state) for s in self.generators if s is not generator for state in new_states]

        verifier = self.group.verifier
        out: List[ActionAlgebra] = []
        seen = set()
        for s, state in pairs:
            sr = s.multiply(self.orbit_to_coset[state])
            rep = self.orbit_to_coset.get(state.apply(s))
            assert rep is not None, f"orbit of step {self.index} is not closed"
            sub = rep.invert().multiply(sr)
            if sub.is_identity() or sub in seen:
                continue
            if verifier.should_verify():
                assert self.to_stabilize.is_stabilized_by(sub), "schreier generator moves its blocks"
                assert self.stabilized.is_stabilized_by(sub), "schreier generator moves fixed blocks"
            seen.add(sub)
            out.append(sub)
        self.schreier_count += len(out)
        return out

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def simplify_cosets(self, level) -> None:
        self.orbit_to_coset = {k: v.simplify(level) for k, v in self.orbit_to_coset.items()}

    def summary(self) -> ChainStepSummary:
        limit = self.filter.limit if self.filter is not None else -1
        jumps = self.filter.jump_count if self.filter is not None else 0
        return ChainStepSummary(
            index=self.index,
            blocks=sorted(self.to_stabilize.indexes),
            orbit_size=len(self.orbit_to_coset),
            generators=len(self.generators),
            rejected=len(self.rejected),
            filter_limit=limit,
            filter_jumps=jumps,
            max_coset_moves=max(rep.count() for rep in self.orbit_to_coset.values()),
        )


# =============================================================================
# Solver
# =============================================================================

class StabilizerChainSolver:
    """
    Builds the chain for a CubeGroup and solves states with it.

    Args:
        group: session context (puzzle, config, verifier)
        step_length: blocks placed per chain level
        generators: initial generators (default: every elementary move)
        filter_name: "jerrum", "sims" or None for no filtering
        verbose: print progress
    """

    def __init__(self, group: CubeGroup, *, step_length: int = DEFAULT_STEP_LENGTH,
                 generators: Optional[Sequence[ActionAlgebra]] = None,
                 filter_name: Optional[str] = DEFAULT_FILTER, verbose: bool = False):
        if step_length < 1:
            raise ValueError(f"step_length must be >= 1, got {step_length}")
        if filter_name is not None and filter_name not in FILTERS:
            raise ValueError(f"unknown filter {filter_name!r}; choose from {sorted(FILTERS)}")

        self.group = group
        self.puzzle = group.puzzle
        self.step_length = step_length
        self.filter_name = filter_name
        self.verbose = verbose
        self.initial_generators = list(generators) if generators is not None else group.generators()

        order = self.puzzle.solving_order()
        self.chain: List[List[int]] = [order[k:k + step_length] for k in range(0, len(order), step_length)]
        if len(self.chain) < 2:
            raise ValueError(f"chain needs at least two steps, got {len(self.chain)}")

        self.steps: List[GStep] = self._make_steps()
        self.built = False
        self.metadata: Dict = {}

    def _make_steps(self) -> List[GStep]:
        puzzle = self.puzzle
        identity = puzzle.identity()
        stabilizing_order = puzzle.block_slots(identity, [b for blocks in self.chain for b in blocks])

        steps: List[GStep] = []
        stabilized = BlockSet(identity, [])
        stabilized_count = 0
        for index, blocks in enumerate(self.chain):
            to_stabilize = BlockSet(identity, blocks)
            gen_filter = None
            if self.filter_name is not None:
                gen_filter = make_filter(self.filter_name, self.group, stabilizing_order, stabilized_count)
            step = GStep(self.group, index, stabilized, to_stabilize, gen_filter, verbose=self.verbose)
            if steps:
                steps[-1].next = step
            steps.append(step)

            stabilized = stabilized.merge(to_stabilize)
            stabilized_count += len(puzzle.block_slots(identity, blocks))
        return steps

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def build(self) -> List[ChainStepSummary]:
        """Feed the initial generators into the chain."""
        t_start = time.time()
        if self.verbose:
            print(f"Building chain: level {self.puzzle.level}, {len(self.steps)} steps, "
                  f"{len(self.initial_generators)} generators, filter={self.filter_name}")

        for idx, g in enumerate(self.initial_generators, 1):
            found = self.steps[0].add_generator_incrementally(g)
            if self.verbose:
                print(f"generator {idx}/{len(self.initial_generators)} ({g}): {found} new cosets")

        self.built = True
        summaries = self.summaries()
        self.metadata = {
            "timing_ms": {"build": int((time.time() - t_start) * 1000)},
            "order": self.order(),
            "orbit_sizes": [s.orbit_size for s in summaries],
            "generators": sum(s.generators for s in summaries),
            "schreier": sum(step.schreier_count for step in self.steps),
        }
        if self.verbose:
            print(f"Chain built in {self.metadata['timing_ms']['build']} ms, group order {self.metadata['order']}")
        return summaries

    # -------------------------------------------------------------------------
    # Solving
    # -------------------------------------------------------------------------

    def solve_cube(self, state: CubeState) -> List[SolveStep]:
        """
        Decompose a state into one action per chain level.

        Raises:
            ValueError: if the chain is not built, or the state is not
                        reachable with the chain's generators
        """
        if not self.built:
            raise ValueError("chain not built; call build() first")
        identity = self.puzzle.identity()
        if not self.puzzle.is_same_block_arrangement(identity, state):
            raise ValueError("state is not an arrangement of this puzzle's blocks")

        current = state
        steps: List[SolveStep] = []
        for step in self.steps:
            observed = step.to_stabilize.observe(current)
            rep = step.orbit_to_coset.get(observed)
            if rep is None:
                raise ValueError(f"blocks {sorted(step.to_stabilize.indexes)} are in a configuration "
                                 f"outside the orbit of step {step.index}")
            action = rep.invert()
            current = action.apply(current)
            steps.append(SolveStep(action=action, state=current))

        assert current == identity, "solution does not reach the solved state"
        if self.group.verifier.should_verify():
            replay = state
            for s in steps:
                replay = s.action.apply(replay)
            assert replay == identity, "replaying the solution does not reach the solved state"
        return steps

    def contains(self, state: CubeState) -> bool:
        """
        Membership test by sifting.

        Raises:
            ValueError: if the chain is not built
        """
        if not self.built:
            raise ValueError("chain not built; call build() first")
        try:
            self.solve_cube(state)
        except ValueError:
            return False
        return True

    def solution_action(self, steps: Sequence[SolveStep]) -> ActionAlgebra:
        """Single element equal to applying every step in order."""
        result = self.group.identity()
        for s in steps:
            result = s.action.multiply(result)
        return result

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def order(self) -> int:
        """Group order: product of orbit sizes."""
        total = 1
        for step in self.steps:
            total *= len(step.orbit_to_coset)
        return total

    def summaries(self) -> List[ChainStepSummary]:
        return [step.summary() for step in self.steps]

    def simplify_cosets(self, level) -> None:
        """Re-simplify every stored representative."""
        for step in self.steps:
            step.simplify_cosets(level)
