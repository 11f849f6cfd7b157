"""
Operation tables for the congruence-closure engine.

The engine only ever sees unary maps over element indices. An equivalence
closed under every translation x ↦ x∘z and x ↦ z∘x is a congruence for ∘,
since X1∘Y1 ≈ X2∘Y1 ≈ X2∘Y2.

For the rig it suffices to translate by single basis words:
  - x ↦ x + w   (adding z = Σ cᵢwᵢ is a chain of these)
  - x ↦ w·x, x ↦ x·w   (x·z is a sum of the x·wᵢ, and + is already respected)
so 3 maps per basis word replace the N×N tables, which for the
two-generator universe would hold 16384² entries each.
"""

from __future__ import annotations

import numpy as np

from freerig import Basis, Codec, TWO_GENERATORS, add_arrays, multiply_arrays

# Largest universe for which full N×N operation tables are built.
MAX_TABLE_SIZE = 4 ** 5


def _unit(basis: Basis, k: int) -> np.ndarray:
    w = np.zeros(basis.size, dtype=np.int64)
    w[k] = 1
    return w


def rig_translations(basis: Basis = TWO_GENERATORS) -> dict[str, np.ndarray]:
    """
    Translation maps by basis words, keyed "+w", "w·" and "·w".

    Each map is an int64 array f with f[i] = index of (element i) op w.
    Multiplications by the identity word are omitted.
    """
    codec = Codec(basis.size)
    digits = codec.digits()
    maps: dict[str, np.ndarray] = {}
    for k, name in enumerate(basis.names):
        w = _unit(basis, k)
        maps[f"+{name}"] = codec.encode_array(add_arrays(digits, w))
        if k == 0:
            continue
        maps[f"{name}·"] = codec.encode_array(multiply_arrays(w, digits, basis))
        maps[f"·{name}"] = codec.encode_array(multiply_arrays(digits, w, basis))
    return maps


def squares(basis: Basis = TWO_GENERATORS) -> np.ndarray:
    """sq[i] = index of x·x for x = element i."""
    codec = Codec(basis.size)
    digits = codec.digits()
    return codec.encode_array(multiply_arrays(digits, digits, basis))


def idempotence_seeds(basis: Basis = TWO_GENERATORS) -> tuple[np.ndarray, np.ndarray]:
    """The pairs (X, X·X) for every element X."""
    sq = squares(basis)
    return np.arange(len(sq), dtype=np.int64), sq


def operation_tables(basis: Basis) -> dict[str, np.ndarray]:
    """Full N×N addition and multiplication tables, for small bases only."""
    codec = Codec(basis.size)
    if codec.size > MAX_TABLE_SIZE:
        raise ValueError(
            f"operation tables over {codec.size} elements would need "
            f"{codec.size ** 2:,} entries each (limit {MAX_TABLE_SIZE} elements)"
        )
    digits = codec.digits()
    xs, ys = digits[:, None, :], digits[None, :, :]
    return {
        "+": codec.encode_array(add_arrays(xs, ys)),
        "·": codec.encode_array(multiply_arrays(xs, ys, basis)),
    }


def translations_from_table(table: np.ndarray, name: str = "∘") -> dict[str, np.ndarray]:
    """Row and column translations of an N×N binary operation table."""
    table = np.asarray(table, dtype=np.int64)
    if table.ndim != 2 or table.shape[0] != table.shape[1]:
        raise ValueError(f"operation table must be square, got shape {table.shape}")
    maps: dict[str, np.ndarray] = {}
    for z in range(table.shape[0]):
        maps[f"x{name}{z}"] = table[:, z]
        maps[f"{z}{name}x"] = table[z, :]
    return maps
