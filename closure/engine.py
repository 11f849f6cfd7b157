"""
Congruence-closure engine.

Computes the least equivalence on {0, ..., n-1} that contains a set of
seed pairs and is closed under a family of unary maps (the translations
of the operations, see translations.py).

Worklist form: pending pairs are processed in rounds. A pair already in
one class is dropped; a pair that merges two classes enqueues its image
(f(x), f(y)) under every map. Every merging pair has had its images
processed, so the final relation is closed, and nothing unforced is ever
merged. An empty worklist ends the run.

The pass form (naive_closure) rescans full binary tables until a pass
makes no merge. It is quadratic per pass and exists to cross-check the
worklist engine on small universes.
"""

from __future__ import annotations

import random
import sys
from dataclasses import dataclass, field

import numpy as np

from freerig import Basis, TWO_GENERATORS
from .partition import Partition
from .translations import idempotence_seeds, rig_translations


@dataclass(frozen=True)
class RoundStats:
    round: int
    pending: int   # pairs examined this round
    merges: int
    classes: int   # classes after the round


@dataclass
class ClosureResult:
    partition: Partition
    rounds: list[RoundStats] = field(default_factory=list)
    converged: bool = False

    @property
    def num_classes(self) -> int:
        return self.partition.num_classes

    def merges_per_round(self) -> list[int]:
        return [r.merges for r in self.rounds]

    def summary(self) -> str:
        lines = [f"{'round':>6} {'pairs':>10} {'merges':>8} {'classes':>8}"]
        for r in self.rounds:
            lines.append(f"{r.round:>6} {r.pending:>10,} {r.merges:>8,} {r.classes:>8,}")
        status = "converged" if self.converged else "NOT converged"
        lines.append(f"{self.num_classes:,} classes after {len(self.rounds)} rounds ({status})")
        return "\n".join(lines)


def _as_map(f, n: int, name: str) -> list[int]:
    arr = np.asarray(f, dtype=np.int64)
    if arr.shape != (n,):
        raise ValueError(f"map {name!r} must have shape ({n},), got {arr.shape}")
    if n and (arr.min() < 0 or arr.max() >= n):
        raise ValueError(f"map {name!r} has entries outside 0..{n - 1}")
    return arr.tolist()


class CongruenceClosure:
    """Worklist congruence closure over unary maps."""

    def __init__(self, n: int, maps: dict[str, np.ndarray],
                 verbose: bool = False, max_rounds: int | None = None):
        self.n = n
        self.partition = Partition(n)
        self.maps = [_as_map(f, n, name) for name, f in maps.items()]
        self.verbose = verbose
        self.max_rounds = max_rounds
        self.pending: list[tuple[int, int]] = []

        # --- Counters ---
        self.round = 0
        self.pairs_seen = 0
        self.merges = 0
        self.history: list[RoundStats] = []
        self.converged = False

    def assert_equal(self, i: int, j: int) -> None:
        self.partition.check_index(i)
        self.partition.check_index(j)
        self.pending.append((i, j))

    def seed(self, xs, ys) -> None:
        """Queue the pairs (xs[k], ys[k])."""
        xs = np.asarray(xs, dtype=np.int64).ravel().tolist()
        ys = np.asarray(ys, dtype=np.int64).ravel().tolist()
        if len(xs) != len(ys):
            raise ValueError(f"seed sides differ in length: {len(xs)} vs {len(ys)}")
        for i in xs + ys:
            self.partition.check_index(i)
        self.pending.extend(zip(xs, ys))

    def step(self) -> bool:
        """Process one round. Returns False when the run is over."""
        if not self.pending:
            self.converged = True
            return False
        if self.max_rounds is not None and self.round >= self.max_rounds:
            print(f"  warning: stopped after {self.round} rounds with "
                  f"{len(self.pending):,} pairs pending", file=sys.stderr, flush=True)
            return False

        work, self.pending = self.pending, []
        union = self.partition.union
        pending = self.pending
        merges = 0
        for x, y in work:
            if not union(x, y):
                continue
            merges += 1
            for f in self.maps:
                fx, fy = f[x], f[y]
                if fx != fy:
                    pending.append((fx, fy))

        self.round += 1
        self.pairs_seen += len(work)
        self.merges += merges
        stats = RoundStats(self.round, len(work), merges, self.partition.num_classes)
        self.history.append(stats)
        if self.verbose:
            print(f"  round {stats.round:3d}: {stats.pending:>9,} pairs  "
                  f"{stats.merges:>6,} merges  {stats.classes:>6,} classes", flush=True)
        return True

    def run(self) -> ClosureResult:
        while self.step():
            pass
        assert self.partition.num_classes == self.n - self.merges, \
            f"class count {self.partition.num_classes} disagrees with {self.merges} merges over {self.n}"
        if self.converged:
            self.partition.freeze()
        return ClosureResult(self.partition, list(self.history), self.converged)

    def stats(self) -> dict:
        return {
            "rounds": self.round,
            "pairs": self.pairs_seen,
            "merges": self.merges,
            "classes": self.partition.num_classes,
            "maps": len(self.maps),
            "pending": len(self.pending),
        }

    def stats_summary(self) -> str:
        s = self.stats()
        return (
            f"Rounds: {s['rounds']}\n"
            f"Pairs examined: {s['pairs']:,}\n"
            f"Merges: {s['merges']:,}\n"
            f"Classes: {s['classes']:,}\n"
            f"Maps: {s['maps']}"
        )


def close_rig(basis: Basis = TWO_GENERATORS, verbose: bool = False,
              max_rounds: int | None = None) -> ClosureResult:
    """Seed X ≈ X·X over the whole universe of ``basis`` and close."""
    engine = CongruenceClosure(4 ** basis.size, rig_translations(basis),
                               verbose=verbose, max_rounds=max_rounds)
    engine.seed(*idempotence_seeds(basis))
    return engine.run()


# ---------------------------------------------------------------------------
# Pass-based reference
# ---------------------------------------------------------------------------

def naive_closure(n: int, tables: dict[str, np.ndarray], seeds,
                  verbose: bool = False, max_passes: int | None = None) -> ClosureResult:
    """
    Full-pass congruence closure over explicit N×N tables.

    Round 0 applies the seeds. Each later pass snapshots the roots, finds
    every (X, Y) with X∘Y and root(X)∘root(Y) in different classes, and
    merges them; a pass without merges ends the run.
    """
    partition = Partition(n)
    tables = {name: np.asarray(t, dtype=np.int64) for name, t in tables.items()}
    for name, t in tables.items():
        if t.shape != (n, n):
            raise ValueError(f"table {name!r} must have shape ({n}, {n}), got {t.shape}")

    seeds = list(seeds)
    merges = sum(partition.union(int(x), int(y)) for x, y in seeds)
    rounds = [RoundStats(0, len(seeds), merges, partition.num_classes)]
    converged = False
    passes = 0
    while max_passes is None or passes < max_passes:
        roots = partition.roots()
        merges = 0
        checked = 0
        for t in tables.values():
            moved = t[np.ix_(roots, roots)]
            bad = np.nonzero(roots[t] != roots[moved])
            for x, y in zip(t[bad].tolist(), moved[bad].tolist()):
                merges += partition.union(x, y)
            checked += t.size
        passes += 1
        rounds.append(RoundStats(passes, checked, merges, partition.num_classes))
        if verbose:
            print(f"  pass {passes:3d}: {merges:>6,} merges  "
                  f"{partition.num_classes:>6,} classes", flush=True)
        if merges == 0:
            converged = True
            break
    if converged:
        partition.freeze()
    return ClosureResult(partition, rounds, converged)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------

def check_closed(partition: Partition, maps: dict[str, np.ndarray]) -> list[tuple[str, int]]:
    """(map name, index) for every x where f(x) and f(root(x)) part ways."""
    roots = partition.roots()
    failures = []
    for name, f in maps.items():
        f = np.asarray(f, dtype=np.int64)
        bad = np.nonzero(roots[f] != roots[f[roots]])[0]
        failures.extend((name, int(i)) for i in bad)
    return failures


def check_idempotent(partition: Partition, sq: np.ndarray) -> list[int]:
    """Indices x whose square lies outside x's class."""
    roots = partition.roots()
    return [int(i) for i in np.nonzero(roots != roots[np.asarray(sq)])[0]]


def sample_quads(partition: Partition, count: int, seed: int = 0) -> list[tuple[int, int, int, int]]:
    """Random (x1, x2, y1, y2) with x1 ≈ x2 and y1 ≈ y2, biased to big classes."""
    rng = random.Random(seed)
    members = {}
    for cls in partition.classes():
        for i in cls:
            members[i] = cls
    quads = []
    for _ in range(count):
        x1 = rng.randrange(partition.n)
        y1 = rng.randrange(partition.n)
        quads.append((x1, rng.choice(members[x1]), y1, rng.choice(members[y1])))
    return quads


def check_binary(partition: Partition, op, quads) -> list[tuple[int, int, int, int]]:
    """Quads where op(x1, y1) and op(x2, y2) land in different classes."""
    return [q for q in quads
            if not partition.same(op(q[0], q[2]), op(q[1], q[3]))]
