"""
ActionAlgebra tests.

Properties:
1. Group axioms: associativity, identity, inverses, group action
2. Representation equivalence: eager (explicit) and lazy (tree) forms agree
3. Move order: an elementary move has order turn_around
4. Simplification: every level keeps the element and is idempotent
5. Deep lazy trees evaluate without recursion
"""

import numpy as np
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cube_solver.core.action import ActionAlgebra, CubeGroup, LEAF, MUL, INV, cancel_runs, pack_duplicates
from cube_solver.core.types import EngineConfig, SimplifyLevel, Verifier


# ==============================================================================
# Helper Functions
# ==============================================================================

def make_group(level=2, threshold=24, verify="always", **config):
    return CubeGroup(level, config=EngineConfig(acceleration_threshold=threshold, **config),
                     verifier=Verifier(verify, seed=0))


def random_words(group, rng, count, max_len=30):
    return [group.random_action(int(rng.integers(1, max_len)), rng) for _ in range(count)]


def lazy_product(group, rng, factors=4):
    """Mixed product of random words, inverses included."""
    x = group.identity()
    for i, w in enumerate(random_words(group, rng, factors)):
        x = x.multiply(w.invert() if i % 2 else w)
    return x


def walk(node):
    stack, seen = [node], set()
    while stack:
        n = stack.pop()
        if id(n) in seen:
            continue
        seen.add(id(n))
        yield n
        stack.extend(n.children())


# ==============================================================================
# Group axioms
# ==============================================================================

@pytest.mark.parametrize("level", [2, 3])
def test_associativity(level):
    group = make_group(level)
    rng = np.random.default_rng(10 + level)
    for _ in range(20):
        a, b, c = random_words(group, rng, 3)
        assert a.multiply(b).multiply(c) == a.multiply(b.multiply(c))


@pytest.mark.parametrize("level", [2, 3])
def test_identity_is_neutral(level):
    group = make_group(level)
    e = group.identity()
    for a in random_words(group, np.random.default_rng(level), 20):
        assert e.multiply(a) == a
        assert a.multiply(e) == a
        assert e.apply(group.puzzle.identity()) == group.puzzle.identity()


@pytest.mark.parametrize("level", [2, 3])
def test_inverse(level):
    group = make_group(level)
    for a in random_words(group, np.random.default_rng(20 + level), 20):
        assert a.multiply(a.invert()).is_identity()
        assert a.invert().multiply(a).is_identity()


@pytest.mark.parametrize("level", [2, 3])
def test_group_action(level):
    group = make_group(level)
    puzzle = group.puzzle
    rng = np.random.default_rng(30 + level)
    for _ in range(20):
        a, b = random_words(group, rng, 2)
        state = puzzle.random_state(25, rng)
        assert a.multiply(b).apply(state) == a.apply(b.apply(state)), "(a·b)(s) must equal a(b(s))"


def test_multiply_applies_right_operand_first():
    group = make_group(2)
    puzzle = group.puzzle
    f, u = group.elementary("1F"), group.elementary("1U")
    expected = puzzle.apply_moves(puzzle.identity(), ["1U", "1F"])
    assert f.multiply(u).apply(puzzle.identity()) == expected
    assert f.multiply(u).application_order() == ("1U", "1F")


# ==============================================================================
# Eager vs lazy representations
# ==============================================================================

@pytest.mark.parametrize("level", [2, 3])
def test_eager_and_lazy_agree(level):
    eager = make_group(level, threshold=10 ** 6, verify="never")
    lazy = CubeGroup(eager.puzzle, config=EngineConfig(acceleration_threshold=0),
                     verifier=Verifier("never"))
    rng = np.random.default_rng(40 + level)
    for _ in range(20):
        words = [eager.puzzle.random_moves(int(rng.integers(1, 30)), rng) for _ in range(3)]
        x = eager.action(words[0]).multiply(eager.action(words[1]).invert()).multiply(eager.action(words[2]))
        y = lazy.action(words[0]).multiply(lazy.action(words[1]).invert()).multiply(lazy.action(words[2]))
        assert x.kind == LEAF
        assert y.kind == MUL
        assert np.array_equal(x.permutation_map().array, y.permutation_map().array)
        state = eager.puzzle.random_state(10, rng)
        assert x.apply(state) == y.apply(state)


def test_small_products_are_spliced():
    group = make_group(2, threshold=4)
    p = group.action(["1F"]).multiply(group.action(["1U"]))
    assert p.kind == LEAF
    assert p.moves() == ("1F", "1U")


def test_large_products_stay_lazy():
    group = make_group(2, threshold=3)
    a = group.action(["1F", "1U"])
    b = group.action(["1L", "2F"])
    p = a.multiply(b)
    assert p.kind == MUL
    assert p.count() == 4
    assert p.moves() == ("1F", "1U", "1L", "2F")


def test_inverse_counts():
    group = make_group(2, threshold=0)
    a = group.action(["1F", "1U"])
    assert a.count() == 2
    assert a.inverse_count() == 6
    inv = a.invert()
    assert inv.kind == INV
    assert inv.count() == 6
    assert inv.inverse_count() == 2
    assert inv.invert() is a, "double inversion must return the original node"


def test_explicit_inverse_within_threshold():
    group = make_group(2, threshold=24)
    inv = group.action(["1F", "1U"]).invert()
    assert inv.kind == LEAF
    assert inv.moves() == ("1U", "1U", "1U", "1F", "1F", "1F")


def test_identity_short_circuit():
    group = make_group(2)
    a = group.action(["1F"])
    assert a.multiply(group.identity()) is a
    assert group.identity().multiply(a) is a
    assert group.identity().invert() is group.identity()


def test_application_order_is_reverse_of_moves():
    group = make_group(2, threshold=0)
    x = group.action(["1F", "1U"]).multiply(group.action(["2L"]).invert())
    assert x.application_order() == tuple(reversed(x.moves()))
    assert group.puzzle.apply_moves(group.puzzle.identity(), x.application_order()) == \
        x.apply(group.puzzle.identity())


def test_sequence_uses_execution_order():
    group = make_group(2)
    assert group.sequence(["1F", "1U"]).moves() == ("1U", "1F")


# ==============================================================================
# Move order and equality
# ==============================================================================

@pytest.mark.parametrize("level", [2, 3])
def test_elementary_move_order(level):
    group = make_group(level)
    for move in group.puzzle.moves:
        g = group.elementary(move)
        power = group.identity()
        for k in range(1, group.puzzle.turn_around(move) + 1):
            power = power.multiply(g)
            assert power.is_identity() == (k == group.puzzle.turn_around(move)), f"{move}^{k}"


def test_equality_follows_element():
    group = make_group(2)
    a = group.action(["1F", "1F"])
    b = group.action(["1F"] * 6)
    assert a == b
    assert hash(a) == hash(b)
    assert a != group.action(["1F"])
    assert group.action(["1F"] * 4).is_identity()


def test_unknown_move_rejected():
    group = make_group(2)
    with pytest.raises(ValueError):
        group.action(["9Q"])


def test_groups_do_not_mix():
    a = make_group(2).elementary("1F")
    b = make_group(2).elementary("1F")
    with pytest.raises(ValueError):
        a.multiply(b)


# ==============================================================================
# Simplification
# ==============================================================================

def test_cancel_runs_cascades():
    group = make_group(2)
    moves = ("1U", "1F", "1F", "1F", "1F", "1U", "1U", "1U")
    assert cancel_runs(group.puzzle, moves) == ()
    assert cancel_runs(group.puzzle, ("1F",) * 5 + ("1U",)) == ("1F", "1U")


def test_level0_cancels_runs():
    group = make_group(2)
    x = group.action(["1F", "1F", "1F", "1F", "1U"])
    s = x.simplify(SimplifyLevel.LEVEL0)
    assert s.moves() == ("1U",)
    assert s == x


@pytest.mark.parametrize("level", [SimplifyLevel.LEVEL0, SimplifyLevel.LEVEL1, SimplifyLevel.LEVEL2])
def test_simplify_preserves_element_and_is_idempotent(level):
    group = make_group(2, threshold=8)
    rng = np.random.default_rng(int(level))
    for _ in range(10):
        x = lazy_product(group, rng)
        once = x.simplify(level)
        twice = once.simplify(level)
        assert once == x, f"level {int(level)} changed the element"
        assert twice == once
        assert twice.count() == once.count()
        if level >= SimplifyLevel.LEVEL2:
            assert once.kind == LEAF
            assert twice.moves() == once.moves()


def test_level1_removes_inversions():
    group = make_group(2, threshold=0)
    rng = np.random.default_rng(3)
    x = lazy_product(group, rng, factors=6).invert()
    s = x.simplify(SimplifyLevel.LEVEL1)
    assert all(node.kind != INV for node in walk(s)), "inversions must reach the leaves"
    assert s == x


def test_level3_shrinks_through_table():
    group = make_group(2, verify="never")
    # 1U and 2U commute, so everything after 1F cancels
    x = group.action(["1F", "1U", "2U", "1U", "1U", "1U", "2U", "2U", "2U"])
    s = x.simplify(SimplifyLevel.LEVEL3)
    assert s.moves() == ("1F",)
    assert s == x
    assert group.shrink_table.built
    assert s.simplify(SimplifyLevel.LEVEL3).moves() == s.moves()


def test_flatten_limit_enforced():
    group = make_group(2, threshold=0, max_flatten_length=5)
    x = group.action(["1F", "1U", "1L"]).multiply(group.action(["2F", "2U", "2L"]))
    with pytest.raises(ValueError):
        x.moves()
    with pytest.raises(ValueError):
        x.simplify(SimplifyLevel.LEVEL2)
    assert str(x) == "<lazy action: 6 moves>"


def test_notation_packs_runs():
    group = make_group(2)
    assert group.sequence(["1F", "1F", "2U"]).notation() == "1F2 2U"
    assert list(pack_duplicates(("1F", "1F", "2U"))) == [(0, 2, "1F"), (2, 1, "2U")]
    assert str(group.identity()) == ""


# ==============================================================================
# Deep trees
# ==============================================================================

def test_deep_lazy_tree_evaluates_iteratively():
    group = make_group(2, threshold=0, verify="never")
    f = group.elementary("1F")
    x = group.identity()
    for _ in range(5000):
        x = x.multiply(f)
    assert x.kind == MUL
    assert x.count() == 5000
    assert x.is_identity(), "5000 quarter turns is a multiple of 4"
    assert len(x.moves()) == 5000
    assert x.invert().simplify(SimplifyLevel.LEVEL1).is_identity()


# ==============================================================================
# Configuration
# ==============================================================================

def test_invalid_configuration_rejected():
    with pytest.raises(ValueError):
        CubeGroup(2, config=EngineConfig(acceleration_threshold=-1))
    with pytest.raises(ValueError):
        Verifier("sometimes")
    with pytest.raises(ValueError):
        Verifier("sampled", rate=2.0)


def test_verifier_modes():
    assert Verifier("always").should_verify() == __debug__
    assert not Verifier("never").should_verify()
    sampled = Verifier("sampled", rate=0.0, seed=1)
    assert not any(sampled.should_verify() for _ in range(100))


def test_verification_defaults_to_always():
    assert Verifier().mode == "always"
    assert CubeGroup(2).verifier.mode == "always"


def test_sampled_verifier_is_reproducible():
    a = Verifier("sampled", rate=0.5, seed=9)
    b = Verifier("sampled", rate=0.5, seed=9)
    draws = [a.should_verify() for _ in range(200)]
    assert draws == [b.should_verify() for _ in range(200)]
    if __debug__:
        assert 0 < sum(draws) < 200
        assert a.checks_run == sum(draws)
