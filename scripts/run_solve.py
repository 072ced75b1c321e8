#!/usr/bin/env python3
"""
Build a stabilizer chain and solve random scrambles with it.

Produces:
- solutions.json (per-case scramble and step notation)
- receipts.jsonl (replay evidence for every case)

Usage:
    python scripts/run_solve.py --level=2 --cases=10 --output=runs/level2
    python scripts/run_solve.py --level=3 --filter=sims --verify=always --seed=7
"""

import sys
import json
import time
import argparse
from pathlib import Path
from datetime import datetime

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from cube_solver import (
    CubeGroup, EngineConfig, Verifier, StabilizerChainSolver,
    build_receipt, random_scramble, make_rng,
    moves_sha, state_sha, chain_sha, log_receipt
)
from cube_solver.core import DEFAULT_ACCELERATION_THRESHOLD


NOTATION_LIMIT = 2000


def describe_step(action, limit: int = NOTATION_LIMIT) -> str:
    """Packed notation for short steps; deep chain levels only report their length."""
    n = action.count()
    if n > limit:
        return f"(too long: {n} moves)"
    return action.notation()


def run_solve(level: int, cases: int, scramble_length: int, output_dir: str, *,
              step_length: int = 1, filter_name: str = "jerrum",
              threshold: int = DEFAULT_ACCELERATION_THRESHOLD, verify: str = "always",
              seed: int = None, notation_limit: int = NOTATION_LIMIT, verbose: bool = True):
    """
    Build the chain for one cube level and solve `cases` random scrambles.

    Args:
        level: cube level N
        cases: number of scrambles to solve
        scramble_length: random moves per scramble
        output_dir: Output directory for solutions and receipts
        verbose: Print progress messages

    Returns:
        (solved_count, cases)
    """
    Path(output_dir).mkdir(parents=True, exist_ok=True)

    config = EngineConfig(acceleration_threshold=threshold)
    group = CubeGroup(level, config=config, verifier=Verifier(verify, seed=seed))
    solver = StabilizerChainSolver(group, step_length=step_length, filter_name=filter_name,
                                   verbose=verbose)

    if verbose:
        print("=" * 70)
        print("Cube Solver - Stabilizer Chain")
        print(f"Level: {level}  Filter: {filter_name}  Threshold: {threshold}  Verify: {verify}")
        print(f"Output: {output_dir}")
        print(f"Cases: {cases}")
        print("=" * 70)

    summaries = solver.build()
    if verbose:
        for s in summaries:
            print(f"  step {s.index:3d} blocks {s.blocks}: orbit {s.orbit_size}, "
                  f"generators {s.generators}, rejected {s.rejected}")

    rng = make_rng(seed)
    solutions = {}
    solved_count = 0

    for idx in range(1, cases + 1):
        scramble = random_scramble(group.puzzle, scramble_length, rng)

        t_start = time.time()
        steps = solver.solve_cube(scramble.state)
        t_solve = time.time()

        actions = [s.action for s in steps]
        receipt = build_receipt(group.puzzle, scramble.state, scramble_length, actions)
        status = "solved" if receipt.residual == 0 else "failed"
        if status == "solved":
            solved_count += 1

        case_key = f"case-{idx:04d}"
        step_notes = [describe_step(a, notation_limit) for a in actions]
        solutions[case_key] = {
            "scramble": scramble.moves,
            "steps": step_notes,
        }

        record = {
            "case": case_key,
            "status": status,
            "receipt": receipt.as_dict(),
            "timing_ms": {
                "solve": int((t_solve - t_start) * 1000),
                "receipt": int((time.time() - t_solve) * 1000),
            },
            "hashes": {
                "scramble_sha": moves_sha(scramble.moves),
                "state_sha": state_sha(scramble.state),
                "solution_sha": moves_sha(step_notes + [state_sha(s.state) for s in steps]),
                "chain_sha": chain_sha(summaries),
            },
            "chain": solver.metadata,
        }
        log_receipt(record, out_dir=output_dir)

        if verbose:
            print(f"[{idx}/{cases}] {case_key}: {status} - {receipt.total_moves} moves "
                  f"in {receipt.active_steps} steps")

    solutions_path = Path(output_dir) / "solutions.json"
    with open(solutions_path, "w") as f:
        json.dump(solutions, f, indent=2)

    if verbose:
        print("=" * 70)
        print(f"COMPLETE: Solved {solved_count}/{cases}")
        print(f"Solutions: {solutions_path}")
        print(f"Receipts: {Path(output_dir) / 'receipts.jsonl'}")
        print("=" * 70)

    return solved_count, cases


def main():
    parser = argparse.ArgumentParser(description="Solve random cube scrambles with a stabilizer chain")
    parser.add_argument("--level", type=int, default=2, help="Cube level N (N×N×N)")
    parser.add_argument("--cases", type=int, default=10, help="Number of scrambles to solve")
    parser.add_argument("--scramble-length", type=int, default=1000, help="Random moves per scramble")
    parser.add_argument("--step-length", type=int, default=1, help="Blocks placed per chain level")
    parser.add_argument(
        "--filter",
        choices=["jerrum", "sims", "none"],
        default="jerrum",
        help="Generator filter strategy"
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=DEFAULT_ACCELERATION_THRESHOLD,
        help="Move count above which products and inverses stay lazy"
    )
    parser.add_argument(
        "--verify",
        choices=["always", "never", "sampled"],
        default="always",
        help="Self-verification policy"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output directory (default: runs/YYYY-MM-DD)"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress messages"
    )

    args = parser.parse_args()

    # Default output directory
    if args.output is None:
        date_str = datetime.now().strftime("%Y-%m-%d")
        output_dir = f"runs/{date_str}"
    else:
        output_dir = args.output

    filter_name = None if args.filter == "none" else args.filter
    try:
        solved, total = run_solve(args.level, args.cases, args.scramble_length, output_dir,
                                  step_length=args.step_length, filter_name=filter_name,
                                  threshold=args.threshold, verify=args.verify,
                                  seed=args.seed, verbose=not args.quiet)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)

    # Exit code: 0 if every case solved, 1 otherwise
    sys.exit(0 if solved == total else 1)


if __name__ == "__main__":
    main()
