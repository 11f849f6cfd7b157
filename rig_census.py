#!/usr/bin/env python3
"""
Census of the free idempotent rig on (up to) two generators.

Closes the 4^n candidate coefficient tuples under X = X·X and the rig
operations, then reports the quotient.

Usage:
  python rig_census.py count                 # 284 for two generators
  python rig_census.py count --generators 1
  python rig_census.py classes > classes.txt
  python rig_census.py export --out listings --policy lex
  python rig_census.py check --samples 20000
  python rig_census.py plot --out plots
  python rig_census.py eq "a + ab + ba + b" "a + b"
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from freerig import (
    NO_GENERATORS, ONE_GENERATOR, TWO_GENERATORS, Basis, Codec,
    add, format_element, multiply, one, parse_element, zero,
)
from closure.engine import (
    ClosureResult, check_binary, check_closed, check_idempotent,
    close_rig, sample_quads,
)
from closure.report import (
    POLICIES, Quotient, format_classes, plot_class_sizes,
    plot_convergence, write_listings,
)
from closure.translations import rig_translations, squares

BASES = {0: NO_GENERATORS, 1: ONE_GENERATOR, 2: TWO_GENERATORS}


# ── Closure ───────────────────────────────────────────────────


def run_closure(basis: Basis, verbose: bool = False,
                max_rounds: int | None = None) -> ClosureResult:
    n = 4 ** basis.size
    print(f"  Closing {n:,} tuples over basis {{{', '.join(basis.names)}}}...",
          file=sys.stderr, flush=True)
    t0 = time.time()
    result = close_rig(basis, verbose=verbose, max_rounds=max_rounds)
    elapsed = time.time() - t0
    print(f"  {result.num_classes:,} classes, {len(result.rounds)} rounds "
          f"({elapsed:.2f}s)", file=sys.stderr, flush=True)
    return result


def require_converged(result: ClosureResult):
    if not result.converged:
        raise RuntimeError(f"closure did not converge after {len(result.rounds)} rounds")


def print_basis(basis: Basis):
    width = max(len(name) for name in basis.names) + 1
    print(" " * width + "|" + "".join(f"{name:>{width}}" for name in basis.names))
    print("-" * (width + 1 + width * basis.size))
    for i, x in enumerate(basis.names):
        row = "".join(f"{basis.names[k]:>{width}}" for k in basis.table[i])
        print(f"{x:>{width}}|{row}")


# ── Verification ──────────────────────────────────────────────


def run_checks(result: ClosureResult, basis: Basis, samples: int = 10_000,
               seed: int = 0) -> bool:
    """Verify the closed partition; prints one line per property."""
    codec = Codec(basis.size)
    partition = result.partition
    all_ok = True

    def report(ok: bool, text: str):
        nonlocal all_ok
        all_ok &= ok
        print(f"    {'✓' if ok else '✗'} {text}")

    report(result.converged, f"closure converged in {len(result.rounds)} rounds")

    counts = [r.classes for r in result.rounds]
    report(all(a >= b for a, b in zip(counts, counts[1:])),
           "class count non-increasing across rounds")

    bad = check_idempotent(partition, squares(basis))
    report(not bad, f"X·X ≈ X for all {codec.size:,} tuples"
           + (f" ({len(bad)} failures)" if bad else ""))

    maps = rig_translations(basis)
    bad = check_closed(partition, maps)
    report(not bad, f"closed under {len(maps)} basis translations"
           + (f" ({len(bad)} failures)" if bad else ""))

    quads = sample_quads(partition, samples, seed=seed)

    def add_idx(i, j):
        return codec.encode(add(codec.decode(i), codec.decode(j)))

    def mul_idx(i, j):
        return codec.encode(multiply(codec.decode(i), codec.decode(j), basis))

    for symbol, op in (("+", add_idx), ("·", mul_idx)):
        bad = check_binary(partition, op, quads)
        report(not bad, f"{symbol} independent of representatives ({samples:,} samples)"
               + (f" ({len(bad)} failures)" if bad else ""))

    e = codec.encode(one(basis))
    z = codec.encode(zero(basis))
    report(partition.class_of(e) == [e], "identity forms a singleton class")
    report(not partition.same(e, z), "identity and zero are distinct")

    if basis is TWO_GENERATORS:
        lhs = codec.encode(parse_element("a + ab + ba + b"))
        rhs = codec.encode(parse_element("a + b"))
        report(partition.same(lhs, rhs), "a + ab + ba + b = a + b")

    return all_ok


# ── Main ──────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Free idempotent rig census via congruence closure"
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--generators", type=int, choices=sorted(BASES), default=2,
        help="Number of generators (default: 2)",
    )
    common.add_argument("--verbose", action="store_true", help="Print per-round progress")
    common.add_argument(
        "--max-rounds", type=int, default=None, help="Stop after this many rounds"
    )

    subparsers = parser.add_subparsers(dest="mode", help="Run mode")

    subparsers.add_parser("basis", parents=[common], help="Print the basis product table")

    count_p = subparsers.add_parser("count", parents=[common], help="Count the classes")
    count_p.add_argument("--rounds", action="store_true", help="Print round statistics")

    subparsers.add_parser("classes", parents=[common], help="Print every class")

    export_p = subparsers.add_parser("export", parents=[common], help="Write listings")
    export_p.add_argument("--out", type=Path, default=Path("listings"),
                          help="Output directory (default: listings)")
    export_p.add_argument("--policy", choices=POLICIES, default="small",
                          help="Representative policy (default: small)")

    check_p = subparsers.add_parser("check", parents=[common], help="Verify the closure")
    check_p.add_argument("--samples", type=int, default=10_000,
                         help="Sampled quads per operation (default: 10000)")
    check_p.add_argument("--seed", type=int, default=0, help="Sampling seed (default: 0)")

    plot_p = subparsers.add_parser("plot", parents=[common], help="Save convergence plots")
    plot_p.add_argument("--out", type=Path, default=Path("plots"),
                        help="Output directory (default: plots)")

    eq_p = subparsers.add_parser("eq", parents=[common], help="Decide x = y in the rig")
    eq_p.add_argument("x", help='Element, e.g. "a + 2ab"')
    eq_p.add_argument("y", help="Element")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.mode is None:
        parser.print_help()
        return 0

    basis = BASES[args.generators]
    try:
        if args.mode == "basis":
            print_basis(basis)
            return 0

        if args.mode == "eq":
            x = parse_element(args.x, basis)
            y = parse_element(args.y, basis)

        result = run_closure(basis, verbose=args.verbose, max_rounds=args.max_rounds)

        if args.mode == "count":
            if args.rounds:
                print(result.summary())
            require_converged(result)
            print(result.num_classes)

        elif args.mode == "classes":
            require_converged(result)
            sys.stdout.write(format_classes(result.partition, basis))

        elif args.mode == "export":
            q = Quotient(result, basis, policy=args.policy)
            for path in write_listings(q, args.out):
                print(f"  Wrote {path}")

        elif args.mode == "check":
            print("=" * 60)
            print(f"  Verification ({args.generators} generators)")
            print("=" * 60)
            ok = run_checks(result, basis, samples=args.samples, seed=args.seed)
            print("\n" + ("  All checks passed. ✓" if ok else "  SOME CHECKS FAILED"))
            return 0 if ok else 1

        elif args.mode == "plot":
            q = Quotient(result, basis)
            args.out.mkdir(parents=True, exist_ok=True)
            for path in (plot_convergence(result, args.out / "convergence.png"),
                         plot_class_sizes(q, args.out / "class_sizes.png")):
                print(f"  Saved {path}")

        elif args.mode == "eq":
            q = Quotient(result, basis)
            same = q.same(x, y)
            rel = "=" if same else "≠"
            print(f"{format_element(x, basis)} {rel} {format_element(y, basis)}")
            if same:
                print(f"  class {q.class_id(x)}: {q.label(q.class_id(x))}")
            return 0 if same else 1

    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except RuntimeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
