"""
Reporting for a finished closure.

Picks one representative per class, builds the quotient's Cayley tables
for + and ·, and writes the listings:

  elements.txt        id: representative  [class size]
  addition.txt        Cayley table of + over class ids
  multiplication.txt  Cayley table of · over class ids
"""

from __future__ import annotations

from functools import cached_property
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

from freerig import (
    Basis, Codec, Element, TWO_GENERATORS,
    add_arrays, format_element, multiply_arrays,
)
from .engine import ClosureResult
from .partition import Partition

POLICIES = ("lex", "small")


def representative_key(policy: str):
    """Sort key on coefficient tuples for a representative policy.

    lex:   smallest tuple in basis order (1, a, b, ab, ba, aba, bab)
    small: fewest nonzero coefficients, then smallest coefficient sum
    """
    if policy == "lex":
        return lambda x: x
    if policy == "small":
        return lambda x: (sum(1 for c in x if c), sum(x), x)
    raise ValueError(f"unknown representative policy {policy!r}, expected one of {POLICIES}")


class Quotient:
    """The quotient rig: one representative per class plus its tables."""

    def __init__(self, result: ClosureResult, basis: Basis = TWO_GENERATORS,
                 policy: str = "small"):
        if not result.converged:
            raise RuntimeError(
                f"closure did not converge after {len(result.rounds)} rounds; "
                f"refusing to report a partial partition"
            )
        self.basis = basis
        self.codec = Codec(basis.size)
        if result.partition.n != self.codec.size:
            raise ValueError(
                f"partition has {result.partition.n} elements, basis implies {self.codec.size}"
            )
        self.policy = policy
        key = representative_key(policy)

        def by_key(i: int):
            return key(self.codec.decode(i))

        classes = result.partition.classes()
        reps = [min(members, key=by_key) for members in classes]
        order = sorted(range(len(classes)), key=lambda c: by_key(reps[c]))
        self.classes = [classes[c] for c in order]
        self.representatives = [reps[c] for c in order]

        self.class_of = np.empty(self.codec.size, dtype=np.int64)
        for cid, members in enumerate(self.classes):
            self.class_of[members] = cid

    def __len__(self) -> int:
        return len(self.representatives)

    def element(self, cid: int) -> Element:
        return self.codec.decode(self.representatives[cid])

    def label(self, cid: int) -> str:
        return format_element(self.element(cid), self.basis)

    def class_id(self, x: Element) -> int:
        return int(self.class_of[self.codec.encode(x)])

    def same(self, x: Element, y: Element) -> bool:
        return self.class_id(x) == self.class_id(y)

    @cached_property
    def _rep_digits(self) -> np.ndarray:
        return np.array([self.element(c) for c in range(len(self))],
                        dtype=np.int64).reshape(len(self), self.basis.size)

    @cached_property
    def add_table(self) -> np.ndarray:
        d = self._rep_digits
        return self.class_of[self.codec.encode_array(add_arrays(d[:, None, :], d[None, :, :]))]

    @cached_property
    def mul_table(self) -> np.ndarray:
        d = self._rep_digits
        prods = multiply_arrays(d[:, None, :], d[None, :, :], self.basis)
        return self.class_of[self.codec.encode_array(prods)]


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def format_elements(q: Quotient) -> str:
    width = len(str(len(q) - 1))
    lines = [f"# {len(q)} elements, representatives by '{q.policy}'"]
    for cid in range(len(q)):
        lines.append(f"{cid:>{width}}: {q.label(cid)}  [{len(q.classes[cid])}]")
    return "\n".join(lines) + "\n"


def format_table(table: np.ndarray, symbol: str) -> str:
    k = table.shape[0]
    width = max(len(str(k - 1)), 1)
    header = f"{symbol:>{width}} |" + " ".join(f"{j:>{width}}" for j in range(k))
    lines = [header, "-" * len(header)]
    for i in range(k):
        lines.append(f"{i:>{width}} |" + " ".join(f"{int(v):>{width}}" for v in table[i]))
    return "\n".join(lines) + "\n"


def write_listings(q: Quotient, out_dir) -> list[Path]:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    files = {
        "elements.txt": format_elements(q),
        "addition.txt": format_table(q.add_table, "+"),
        "multiplication.txt": format_table(q.mul_table, "·"),
    }
    paths = []
    for name, text in files.items():
        path = out / name
        path.write_text(text, encoding="utf-8")
        paths.append(path)
    return paths


def format_classes(partition: Partition, basis: Basis = TWO_GENERATORS) -> str:
    """Every class with all its members, one class per line."""
    codec = Codec(basis.size)
    lines = []
    for cid, members in enumerate(partition.classes()):
        body = ", ".join(format_element(codec.decode(i), basis) for i in members)
        lines.append(f"{cid}: {body}")
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Plots
# ---------------------------------------------------------------------------

def plot_convergence(result: ClosureResult, path) -> Path:
    rounds = [r.round for r in result.rounds]
    fig, axes = plt.subplots(1, 2, figsize=(12, 4.5))

    axes[0].plot(rounds, [r.classes for r in result.rounds], marker="o", color="#1f77b4")
    axes[0].set_yscale("log")
    axes[0].set_xlabel("Round")
    axes[0].set_ylabel("Classes")
    axes[0].set_title(f"Classes per round (final: {result.num_classes})")
    axes[0].grid(True, alpha=0.3)

    axes[1].bar(rounds, [r.merges for r in result.rounds], color="#ff7f0e")
    axes[1].set_xlabel("Round")
    axes[1].set_ylabel("Merges")
    axes[1].set_title("Merges per round")
    axes[1].grid(True, axis="y", alpha=0.3)

    plt.tight_layout()
    path = Path(path)
    plt.savefig(path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return path


def plot_class_sizes(q: Quotient, path) -> Path:
    sizes = [len(members) for members in q.classes]
    fig, ax = plt.subplots(figsize=(10, 4.5))
    ax.hist(sizes, bins=np.logspace(0, np.log10(max(sizes)) + 0.1, 30), color="#2ca02c")
    ax.set_xscale("log")
    ax.set_xlabel("Class size (tuples)")
    ax.set_ylabel("Classes")
    ax.set_title(f"{len(q)} classes over {sum(sizes):,} tuples")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    path = Path(path)
    plt.savefig(path, dpi=200, bbox_inches="tight")
    plt.close(fig)
    return path
