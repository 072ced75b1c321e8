#!/usr/bin/env python3
"""
Randomized group-axiom verification for the action algebra.

Tests:
1. Associativity: (a·b)·c = a·(b·c)
2. Identity: e·a = a·e = a
3. Inverse: a·a⁻¹ = e
4. Group action: (a·b)(s) = a(b(s))
5. Eager and lazy forms of the same word agree

Usage:
    PYTHONPATH=src python scripts/verify_group_axioms.py --level=3 --cases=100
"""

import sys
import os
import argparse

# Add src to path if not already there
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from cube_solver import CubeGroup, EngineConfig, Verifier, make_rng

MAX_WORD = 60


def random_actions(group, rng, count):
    return [group.random_action(int(rng.integers(1, MAX_WORD)), rng) for _ in range(count)]


def test_associativity(group, rng, cases):
    """Test: (a·b)·c and a·(b·c) act identically."""
    print("Test 1: Associativity")
    failures = 0
    for _ in range(cases):
        a, b, c = random_actions(group, rng, 3)
        if a.multiply(b).multiply(c) != a.multiply(b.multiply(c)):
            failures += 1
    print(f"  {cases} cases: {'PASS' if failures == 0 else f'FAIL - {failures} mismatches'}")
    return failures == 0


def test_identity(group, rng, cases):
    """Test: identity is neutral on both sides."""
    print("\nTest 2: Identity")
    e = group.identity()
    failures = 0
    for a in random_actions(group, rng, cases):
        if e.multiply(a) != a or a.multiply(e) != a:
            failures += 1
    print(f"  {cases} cases: {'PASS' if failures == 0 else f'FAIL - {failures} mismatches'}")
    return failures == 0


def test_inverse(group, rng, cases):
    """Test: a·a⁻¹ and a⁻¹·a are the identity."""
    print("\nTest 3: Inverse")
    failures = 0
    for a in random_actions(group, rng, cases):
        if not a.multiply(a.invert()).is_identity() or not a.invert().multiply(a).is_identity():
            failures += 1
    print(f"  {cases} cases: {'PASS' if failures == 0 else f'FAIL - {failures} mismatches'}")
    return failures == 0


def test_group_action(group, rng, cases):
    """Test: applying a product equals applying the factors right to left."""
    print("\nTest 4: Group action")
    puzzle = group.puzzle
    failures = 0
    for _ in range(cases):
        a, b = random_actions(group, rng, 2)
        state = puzzle.random_state(int(rng.integers(0, MAX_WORD)), rng)
        if a.multiply(b).apply(state) != a.apply(b.apply(state)):
            failures += 1
    print(f"  {cases} cases: {'PASS' if failures == 0 else f'FAIL - {failures} mismatches'}")
    return failures == 0


def test_eager_lazy(level, rng, cases):
    """Test: a fully eager group and a fully lazy group agree on every word."""
    print("\nTest 5: Eager vs lazy forms")
    eager = CubeGroup(level, config=EngineConfig(acceleration_threshold=10 ** 6),
                      verifier=Verifier("never"))
    lazy = CubeGroup(eager.puzzle, config=EngineConfig(acceleration_threshold=0),
                     verifier=Verifier("never"))
    failures = 0
    for _ in range(cases):
        words = [eager.puzzle.random_moves(int(rng.integers(1, MAX_WORD)), rng) for _ in range(3)]
        x = eager.action(words[0]).multiply(eager.action(words[1]).invert()).multiply(eager.action(words[2]))
        y = lazy.action(words[0]).multiply(lazy.action(words[1]).invert()).multiply(lazy.action(words[2]))
        if x.permutation_map().array.tolist() != y.permutation_map().array.tolist():
            failures += 1
    print(f"  {cases} cases: {'PASS' if failures == 0 else f'FAIL - {failures} mismatches'}")
    return failures == 0


def main():
    parser = argparse.ArgumentParser(description="Verify group axioms of the action algebra")
    parser.add_argument("--level", type=int, default=3, help="Cube level N")
    parser.add_argument("--cases", type=int, default=100, help="Random cases per test")
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    args = parser.parse_args()

    print("=" * 60)
    print(f"GROUP AXIOM VERIFICATION (level {args.level})")
    print("=" * 60)

    rng = make_rng(args.seed)
    group = CubeGroup(args.level, verifier=Verifier("always"))

    results = [
        test_associativity(group, rng, args.cases),
        test_identity(group, rng, args.cases),
        test_inverse(group, rng, args.cases),
        test_group_action(group, rng, args.cases),
        test_eager_lazy(args.level, rng, args.cases),
    ]

    print("\n" + "=" * 60)
    print(f"OVERALL: {sum(results)}/{len(results)} tests passed")
    print("=" * 60)
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
