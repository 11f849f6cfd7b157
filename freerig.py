"""
Free idempotent rig on two generators: basis, element codec and algebra.

Elements are formal sums  c0·1 + c1·a + c2·b + c3·ab + c4·ba + c5·aba + c6·bab
over the seven words that survive x·x = x in the multiplicative monoid
(the free band on {a, b} with an identity adjoined).

Coefficients live in {0, 1, 2, 3}: in an idempotent rig
    x + x = (x + x)(x + x) = 4x,
so any count >= 4 can be folded back onto the 2-cycle {2, 3}.

The candidate universe is all 4^7 = 16384 coefficient tuples, indexed by a
base-4 number with the coefficient of basis word k in digits 2k..2k+1.
Both operations are available on single tuples and, vectorised with numpy,
on whole arrays of digit rows.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import numpy as np

Element = tuple[int, ...]

COEFF_LIMIT = 4  # coefficients are 0..3

# ============================================================================
# Basis words
# ============================================================================

BASIS_NAMES = ("1", "a", "b", "ab", "ba", "aba", "bab")

# Row x, column y holds the reduced word x·y.
_PRODUCT_ROWS = {
    #        1      a      b      ab     ba     aba    bab
    "1":   ("1",   "a",   "b",   "ab",  "ba",  "aba", "bab"),
    "a":   ("a",   "a",   "ab",  "ab",  "aba", "aba", "ab"),
    "b":   ("b",   "ba",  "b",   "bab", "ba",  "ba",  "bab"),
    "ab":  ("ab",  "aba", "ab",  "ab",  "aba", "aba", "ab"),
    "ba":  ("ba",  "ba",  "bab", "bab", "ba",  "ba",  "bab"),
    "aba": ("aba", "aba", "ab",  "ab",  "aba", "aba", "ab"),
    "bab": ("bab", "ba",  "bab", "bab", "ba",  "ba",  "bab"),
}

BASIS_PRODUCTS: dict[tuple[str, str], str] = {
    (x, y): _PRODUCT_ROWS[x][j]
    for x in BASIS_NAMES
    for j, y in enumerate(BASIS_NAMES)
}


def reduce_word(text: str) -> str:
    """
    Normal form of a word over at most two letters in the free band.

    Adjacent repeats collapse (aa = a); an alternating word of length >= 3
    keeps its first letter and its parity (abab = ab, ababa = aba).
    """
    out: list[str] = []
    for ch in text:
        if not out or out[-1] != ch:
            out.append(ch)
    if len(set(out)) > 2:
        raise ValueError(f"word reduction needs at most two letters, got {text!r}")
    if len(out) >= 3:
        out = out[:2] if len(out) % 2 == 0 else out[:3]
    return "".join(out)


@dataclass(frozen=True)
class Basis:
    """Finite multiplicative basis: word names plus their product table.

    Index 0 is always the identity word "1".
    """

    names: tuple[str, ...]
    table: tuple[tuple[int, ...], ...]

    @classmethod
    def from_products(cls, names, products: dict[tuple[str, str], str]) -> "Basis":
        index = {name: i for i, name in enumerate(names)}
        table = []
        for x in names:
            row = []
            for y in names:
                try:
                    row.append(index[products[(x, y)]])
                except KeyError as exc:
                    raise ValueError(f"product {x}·{y} missing or outside the basis") from exc
            table.append(tuple(row))
        return cls(tuple(names), tuple(table))

    @classmethod
    def from_words(cls, names) -> "Basis":
        """Derive the product table by free-band reduction of concatenated words."""
        products = {}
        for x in names:
            for y in names:
                w = reduce_word(x.replace("1", "") + y.replace("1", ""))
                products[(x, y)] = w or "1"
        return cls.from_products(names, products)

    @property
    def size(self) -> int:
        return len(self.names)

    def product(self, i: int, j: int) -> int:
        return self.table[i][j]

    def validate(self) -> None:
        """Reject tables that cannot be the monoid of an idempotent rig."""
        n = self.size
        if n == 0 or self.names[0] != "1":
            raise ValueError("basis must start with the identity word '1'")
        if len(self.table) != n or any(len(row) != n for row in self.table):
            raise ValueError(f"product table must be {n}x{n}")
        for i, row in enumerate(self.table):
            for k in row:
                if not 0 <= k < n:
                    raise ValueError(f"product entry {k} in row {self.names[i]} out of range")
        for i in range(n):
            if self.table[0][i] != i or self.table[i][0] != i:
                raise ValueError(f"'1' is not an identity for {self.names[i]}")
            if self.table[i][i] != i:
                raise ValueError(f"{self.names[i]} is not idempotent")
        for i in range(n):
            for j in range(n):
                for k in range(n):
                    left = self.table[self.table[i][j]][k]
                    right = self.table[i][self.table[j][k]]
                    if left != right:
                        raise ValueError(
                            f"product not associative at "
                            f"({self.names[i]}, {self.names[j]}, {self.names[k]})"
                        )


TWO_GENERATORS = Basis.from_products(BASIS_NAMES, BASIS_PRODUCTS)
ONE_GENERATOR = Basis.from_words(("1", "a"))
NO_GENERATORS = Basis.from_words(("1",))


# ============================================================================
# Coefficients
# ============================================================================

def reduce_coeff(n: int) -> int:
    """Fold a count of copies onto {0, 1, 2, 3} (4x = 2x)."""
    if n < 0:
        raise ValueError(f"coefficient must be non-negative, got {n}")
    if n < 2:
        return n
    return 2 + (n - 2) % 2


def reduce_array(counts: np.ndarray) -> np.ndarray:
    counts = np.asarray(counts, dtype=np.int64)
    return np.where(counts < 2, counts, 2 + (counts - 2) % 2)


# ============================================================================
# Element codec
# ============================================================================

class Codec:
    """Base-4 index <-> coefficient tuple, for a basis of ``n`` words."""

    def __init__(self, n: int):
        self.n = n
        self.size = COEFF_LIMIT ** n
        self._shifts = 2 * np.arange(n, dtype=np.int64)

    def check_index(self, index: int) -> None:
        if not 0 <= index < self.size:
            raise ValueError(f"element index must be in 0..{self.size - 1}, got {index}")

    def check_element(self, x) -> None:
        if len(x) != self.n:
            raise ValueError(f"element must have {self.n} coefficients, got {len(x)}")
        for c in x:
            if not 0 <= c < COEFF_LIMIT:
                raise ValueError(f"coefficient must be in 0..3, got {c} in {tuple(x)}")

    def encode(self, x) -> int:
        self.check_element(x)
        index = 0
        for k, c in enumerate(x):
            index |= c << (2 * k)
        return index

    def decode(self, index: int) -> Element:
        self.check_index(index)
        return tuple((index >> (2 * k)) & 3 for k in range(self.n))

    def digits(self) -> np.ndarray:
        """The whole universe as an array of digit rows, row i = decode(i)."""
        idx = np.arange(self.size, dtype=np.int64)
        return (idx[:, None] >> self._shifts) & 3

    def encode_array(self, digits: np.ndarray) -> np.ndarray:
        digits = np.asarray(digits, dtype=np.int64)
        return (digits << self._shifts).sum(axis=-1)


CODEC = Codec(len(BASIS_NAMES))
NUM_ELEMENTS = CODEC.size  # 16384


def encode(x) -> int:
    return CODEC.encode(x)


def decode(index: int) -> Element:
    return CODEC.decode(index)


# ============================================================================
# Algebra
# ============================================================================

def zero(basis: Basis = TWO_GENERATORS) -> Element:
    return (0,) * basis.size


def one(basis: Basis = TWO_GENERATORS) -> Element:
    return (1,) + (0,) * (basis.size - 1)


def word(name: str, basis: Basis = TWO_GENERATORS) -> Element:
    """The element consisting of a single copy of a basis word."""
    if name not in basis.names:
        raise ValueError(f"unknown basis word {name!r}")
    k = basis.names.index(name)
    return tuple(1 if i == k else 0 for i in range(basis.size))


def add(x: Element, y: Element) -> Element:
    if len(x) != len(y):
        raise ValueError(f"cannot add elements of length {len(x)} and {len(y)}")
    return tuple(reduce_coeff(cx + cy) for cx, cy in zip(x, y))


def multiply(x: Element, y: Element, basis: Basis = TWO_GENERATORS) -> Element:
    """
    Bilinear product over the basis table.

    Copies landing on the same word from different (i, j) pairs are summed
    first; the 4x = 2x fold applies to the final counts only.
    """
    n = basis.size
    if len(x) != n or len(y) != n:
        raise ValueError(f"elements must have {n} coefficients")
    acc = [0] * n
    for i, ci in enumerate(x):
        if not ci:
            continue
        row = basis.table[i]
        for j, cj in enumerate(y):
            if cj:
                acc[row[j]] += ci * cj
    return tuple(reduce_coeff(c) for c in acc)


def add_arrays(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """Vectorised ``add`` over broadcastable digit arrays (last axis = basis)."""
    return reduce_array(np.asarray(xs, dtype=np.int64) + np.asarray(ys, dtype=np.int64))


def multiply_arrays(xs: np.ndarray, ys: np.ndarray,
                    basis: Basis = TWO_GENERATORS) -> np.ndarray:
    """Vectorised ``multiply`` over broadcastable digit arrays."""
    xs = np.asarray(xs, dtype=np.int64)
    ys = np.asarray(ys, dtype=np.int64)
    acc = np.zeros(np.broadcast_shapes(xs.shape, ys.shape), dtype=np.int64)
    for i in range(basis.size):
        for j in range(basis.size):
            acc[..., basis.table[i][j]] += xs[..., i] * ys[..., j]
    return reduce_array(acc)


# ============================================================================
# Text form
# ============================================================================

_TERM = re.compile(r"^(\d*)([a-z]*)$")


def format_element(x: Element, basis: Basis = TWO_GENERATORS) -> str:
    """'a + 2ab + 3' style; the zero tuple is '0'."""
    terms = []
    for c, name in zip(x, basis.names):
        if c == 0:
            continue
        if name == "1":
            terms.append(str(c))
        elif c == 1:
            terms.append(name)
        else:
            terms.append(f"{c}{name}")
    return " + ".join(terms) if terms else "0"


def parse_element(text: str, basis: Basis = TWO_GENERATORS) -> Element:
    """Inverse of ``format_element``; repeated terms add up (a + a = 2a)."""
    if not text.strip():
        raise ValueError("empty element")
    counts = [0] * basis.size
    for raw in text.split("+"):
        term = raw.strip().replace(" ", "")
        m = _TERM.match(term)
        if not term or m is None:
            raise ValueError(f"malformed term {raw.strip()!r} in {text!r}")
        digits, name = m.groups()
        if not name:
            # bare number: copies of the identity
            counts[0] += int(digits)
            continue
        if name not in basis.names:
            raise ValueError(f"unknown basis word {name!r} in {text!r}")
        counts[basis.names.index(name)] += int(digits) if digits else 1
    return tuple(reduce_coeff(c) for c in counts)
