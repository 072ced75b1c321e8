"""
Generator filter tests on toy subgroups of the 2×2×2 cube.

Properties:
1. Bounds: Jerrum keeps at most n-1 generators, Sims at most n(n-1)/2
2. Soundness: the retained set generates the same group as the input
3. Shape: Jerrum pairs form a forest, Sims pairs are distinct
4. Preconditions: moving a stabilized position raises ValueError
"""

import numpy as np
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cube_solver.core.action import CubeGroup
from cube_solver.core.types import Verifier
from cube_solver.filters import JerrumFilter, SimsFilter, make_filter
from cube_solver.chain import StabilizerChainSolver


# ==============================================================================
# Helper Functions
# ==============================================================================

def make_group():
    return CubeGroup(2, verifier=Verifier("always", seed=0))


def stabilizing_order(group):
    puzzle = group.puzzle
    return puzzle.block_slots(puzzle.identity(), puzzle.solving_order())


def redundant_words(group, base, rng, count):
    """Random products of the base generators (all inside <base>)."""
    words = []
    for _ in range(count):
        x = group.identity()
        for _ in range(int(rng.integers(1, 8))):
            g = base[int(rng.integers(len(base)))]
            x = g.multiply(x) if rng.integers(2) else g.invert().multiply(x)
        words.append(x)
    return words


def slot_orbits(group, gens):
    """Partition of sticker slots into orbits under <gens>."""
    maps = [g.permutation_map().array for g in gens]
    seen = set()
    orbits = []
    for start in range(group.puzzle.slot_count):
        if start in seen:
            continue
        orbit = {start}
        frontier = [start]
        while frontier:
            s = frontier.pop()
            for m in maps:
                t = int(m[s])
                if t not in orbit:
                    orbit.add(t)
                    frontier.append(t)
        seen |= orbit
        orbits.append(frozenset(orbit))
    return set(orbits)


def chain_order(group, gens):
    solver = StabilizerChainSolver(group, generators=gens)
    solver.build()
    return solver.order()


# ==============================================================================
# Bounds
# ==============================================================================

@pytest.mark.parametrize("cls", [JerrumFilter, SimsFilter])
def test_bound_holds_for_random_generators(cls):
    group = make_group()
    f = cls(group, stabilizing_order(group), 0)
    rng = np.random.default_rng(1)
    for g in redundant_words(group, group.generators(), rng, 60):
        f.filter_generator(g)
        assert len(f.generators()) <= f.limit
    assert f.accepted_count == len(f.generators())


def test_limits():
    group = make_group()
    order = stabilizing_order(group)
    assert JerrumFilter(group, order, 0).limit == 23
    assert JerrumFilter(group, order, 3).limit == 20
    assert SimsFilter(group, order, 0).limit == 24 * 23 // 2


def test_identity_is_ignored():
    group = make_group()
    f = JerrumFilter(group, stabilizing_order(group), 0)
    assert f.filter_generator(group.identity()) is False
    assert f.filter_generator(group.action(["1F"] * 4)) is False
    assert f.generators() == []


def test_duplicate_generator_does_not_change_set():
    group = make_group()
    for cls in (JerrumFilter, SimsFilter):
        f = cls(group, stabilizing_order(group), 0)
        assert f.filter_generator(group.elementary("1F")) is True
        assert f.filter_generator(group.action(["1F"] * 5)) is False
        assert len(f.generators()) == 1


# ==============================================================================
# Soundness
# ==============================================================================

@pytest.mark.parametrize("cls", [JerrumFilter, SimsFilter])
def test_retained_set_has_same_orbits(cls):
    group = make_group()
    base = [group.elementary("1F"), group.elementary("1U")]
    words = redundant_words(group, base, np.random.default_rng(2), 40) + base
    f = cls(group, stabilizing_order(group), 0)
    for w in words:
        f.filter_generator(w)
    assert slot_orbits(group, f.generators()) == slot_orbits(group, words)


@pytest.mark.parametrize("name", ["jerrum", "sims"])
def test_retained_set_generates_same_group(name):
    group = CubeGroup(2, verifier=Verifier("never"))
    base = [group.elementary("1F"), group.elementary("1U")]
    words = redundant_words(group, base, np.random.default_rng(3), 30)
    f = make_filter(name, group, stabilizing_order(group), 0)
    for w in words:
        f.filter_generator(w)
    assert chain_order(group, f.generators()) == chain_order(group, words)


# ==============================================================================
# Shape
# ==============================================================================

def test_jerrum_pairs_form_a_forest():
    group = make_group()
    f = JerrumFilter(group, stabilizing_order(group), 0)
    for g in redundant_words(group, group.generators(), np.random.default_rng(4), 60):
        f.filter_generator(g)

    parent = {}

    def find(x):
        while parent.get(x, x) != x:
            x = parent.get(x, x)
        return x

    for g in f.generators():
        i, j = f.action_pair(g)
        assert (i, j) in f.grid, "stored generator must sit at its own action pair"
        ri, rj = find(i), find(j)
        assert ri != rj, f"pair ({i}, {j}) closes a cycle"
        parent[ri] = rj


def test_sims_pairs_are_distinct():
    group = make_group()
    f = SimsFilter(group, stabilizing_order(group), 0)
    for g in redundant_words(group, group.generators(), np.random.default_rng(5), 60):
        f.filter_generator(g)
    pairs = [f.action_pair(g) for g in f.generators()]
    assert len(pairs) == len(set(pairs))
    assert sorted(pairs) == sorted(p for p in f.grid)


# ==============================================================================
# Preconditions
# ==============================================================================

def test_moving_stabilized_prefix_rejected():
    group = make_group()
    puzzle = group.puzzle
    order = stabilizing_order(group)
    first_block = puzzle.solving_order()[0]
    prefix = len(puzzle.block_slots(puzzle.identity(), [first_block]))
    f = JerrumFilter(group, order, prefix)
    mover = next(g for g in group.generators()
                 if not np.array_equal(g.apply(puzzle.identity()).positions[first_block],
                                       puzzle.identity().positions[first_block]))
    with pytest.raises(ValueError):
        f.filter_generator(mover)


def test_unknown_filter_rejected():
    group = make_group()
    with pytest.raises(ValueError):
        make_filter("greedy", group, stabilizing_order(group), 0)
