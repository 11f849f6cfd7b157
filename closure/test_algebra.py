"""
Verification suite for the element codec and algebra in freerig.py.
"""

from __future__ import annotations

import os
import random
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np

from freerig import (
    BASIS_NAMES, CODEC, NUM_ELEMENTS, ONE_GENERATOR, TWO_GENERATORS, Basis, Codec,
    add, add_arrays, decode, encode, format_element, multiply, multiply_arrays,
    one, parse_element, reduce_array, reduce_coeff, reduce_word, word, zero,
)


def _sample(rng: random.Random, k: int):
    return [decode(rng.randrange(NUM_ELEMENTS)) for _ in range(k)]


def _raises(exc_type, fn, *args) -> bool:
    try:
        fn(*args)
    except exc_type:
        return True
    return False


# ---------------------------------------------------------------------------
# Coefficients
# ---------------------------------------------------------------------------

def test_reduce_coeff():
    assert [reduce_coeff(n) for n in range(8)] == [0, 1, 2, 3, 2, 3, 2, 3]
    for n in range(200):
        r = reduce_coeff(n)
        assert r in (0, 1, 2, 3)
        assert reduce_coeff(r) == r
    assert _raises(ValueError, reduce_coeff, -1)
    print("  reduce: range and idempotence hold for 0..199")


def test_reduce_array_matches_scalar():
    counts = np.arange(100)
    assert reduce_array(counts).tolist() == [reduce_coeff(n) for n in range(100)]


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------

def test_codec_bijection():
    seen = set()
    for i in range(NUM_ELEMENTS):
        x = decode(i)
        assert encode(x) == i
        seen.add(x)
    assert len(seen) == NUM_ELEMENTS == 4 ** 7
    print(f"  codec: {NUM_ELEMENTS} indices round-trip, {len(seen)} distinct tuples")


def test_codec_arrays():
    digits = CODEC.digits()
    assert digits.shape == (NUM_ELEMENTS, 7)
    assert tuple(digits[12345]) == decode(12345)
    assert np.array_equal(CODEC.encode_array(digits), np.arange(NUM_ELEMENTS))


def test_codec_layout():
    assert encode(zero()) == 0
    assert encode(one()) == 1
    assert encode(word("a")) == 4
    assert encode(word("b")) == 16
    assert encode(word("bab")) == 4 ** 6
    assert decode(NUM_ELEMENTS - 1) == (3,) * 7


def test_codec_errors():
    assert _raises(ValueError, decode, -1)
    assert _raises(ValueError, decode, NUM_ELEMENTS)
    assert _raises(ValueError, encode, (0,) * 6)
    assert _raises(ValueError, encode, (4, 0, 0, 0, 0, 0, 0))
    assert _raises(ValueError, word, "aa")


def test_small_codec():
    codec = Codec(0)
    assert codec.size == 1
    assert codec.decode(0) == ()
    assert codec.encode_array(codec.digits()).tolist() == [0]
    assert Codec(2).decode(7) == (3, 1)


# ---------------------------------------------------------------------------
# Basis
# ---------------------------------------------------------------------------

def test_reduce_word():
    assert reduce_word("") == ""
    assert reduce_word("aaa") == "a"
    assert reduce_word("aab") == "ab"
    assert reduce_word("abab") == "ab"
    assert reduce_word("ababa") == "aba"
    assert reduce_word("babba") == "ba"
    assert reduce_word("bababa") == "ba"
    assert _raises(ValueError, reduce_word, "abc")


def test_basis_table_is_free_band():
    assert TWO_GENERATORS.names == BASIS_NAMES
    assert Basis.from_words(BASIS_NAMES) == TWO_GENERATORS
    TWO_GENERATORS.validate()
    ONE_GENERATOR.validate()
    idx = TWO_GENERATORS.names.index
    assert TWO_GENERATORS.product(idx("ab"), idx("a")) == idx("aba")
    assert TWO_GENERATORS.product(idx("aba"), idx("bab")) == idx("ab")
    assert TWO_GENERATORS.product(idx("bab"), idx("ba")) == idx("ba")
    print("  basis: 7x7 table equals free-band reduction and validates")


def test_basis_validation_rejects_bad_tables():
    table = [list(row) for row in TWO_GENERATORS.table]

    not_idempotent = [row[:] for row in table]
    not_idempotent[1][1] = 3  # a·a = ab
    bad = Basis(BASIS_NAMES, tuple(tuple(r) for r in not_idempotent))
    assert _raises(ValueError, bad.validate)

    no_identity = [row[:] for row in table]
    no_identity[0][1] = 2  # 1·a = b
    bad = Basis(BASIS_NAMES, tuple(tuple(r) for r in no_identity))
    assert _raises(ValueError, bad.validate)

    # left-zero band on {a, b} with an identity: x·y = x
    left_zero = Basis(("1", "a", "b"), ((0, 1, 2), (1, 1, 1), (2, 2, 2)))
    left_zero.validate()
    # (b·c)·b = a·b = c but b·(c·b) = b·c = a
    nonassoc = Basis(("1", "a", "b", "c"),
                     ((0, 1, 2, 3), (1, 1, 3, 3), (2, 3, 2, 1), (3, 3, 3, 3)))
    assert _raises(ValueError, nonassoc.validate)

    assert _raises(ValueError, Basis.from_products, ("1", "a"), {("1", "1"): "1"})


# ---------------------------------------------------------------------------
# Algebra laws
# ---------------------------------------------------------------------------

def test_add_laws():
    rng = random.Random(1)
    for _ in range(2000):
        x, y, z = _sample(rng, 3)
        assert add(x, y) == add(y, x)
        assert add(add(x, y), z) == add(x, add(y, z))
        assert add(x, zero()) == x
    assert add((1, 2, 3, 0, 0, 0, 0), (1, 2, 3, 0, 0, 0, 0)) == (2, 2, 2, 0, 0, 0, 0)
    # 3 + 2 = 5 stays on the {2, 3} cycle
    assert add((3, 0, 0, 0, 0, 0, 0), (2, 0, 0, 0, 0, 0, 0)) == (3, 0, 0, 0, 0, 0, 0)
    assert reduce_coeff(3 + 2) == 3 and reduce_coeff(3 + 3) == 2
    print("  add: commutative, associative, zero identity on 2000 triples")


def test_multiply_laws():
    rng = random.Random(2)
    for _ in range(2000):
        x, y, z = _sample(rng, 3)
        assert multiply(x, add(y, z)) == add(multiply(x, y), multiply(x, z))
        assert multiply(add(y, z), x) == add(multiply(y, x), multiply(z, x))
        assert multiply(multiply(x, y), z) == multiply(x, multiply(y, z))
        assert multiply(one(), x) == x == multiply(x, one())
        assert multiply(zero(), x) == zero() == multiply(x, zero())
    print("  multiply: distributive, associative, unital on 2000 triples")


def test_multiply_examples():
    a_plus_b = parse_element("a + b")
    assert multiply(a_plus_b, a_plus_b) == parse_element("a + ab + ba + b")
    x = parse_element("2a + b")
    y = parse_element("a + 3b")
    # 2a·a + 2a·3b + b·a + b·3b = 2a + 6ab + ba + 3b
    assert multiply(x, y) == (0, 2, 3, 2, 1, 0, 0)
    assert multiply(parse_element("2a"), parse_element("2a")) == parse_element("2a")
    for name in BASIS_NAMES:
        w = word(name)
        assert multiply(w, w) == w


def test_array_forms_match_scalar():
    rng = random.Random(3)
    xs = _sample(rng, 500)
    ys = _sample(rng, 500)
    dx = np.array(xs)
    dy = np.array(ys)
    sums = add_arrays(dx, dy)
    prods = multiply_arrays(dx, dy)
    for k in range(500):
        assert tuple(sums[k]) == add(xs[k], ys[k])
        assert tuple(prods[k]) == multiply(xs[k], ys[k])


# ---------------------------------------------------------------------------
# Text form
# ---------------------------------------------------------------------------

def test_format_and_parse():
    assert format_element(zero()) == "0"
    assert format_element(one()) == "1"
    assert format_element((3, 0, 0, 2, 0, 0, 1)) == "3 + 2ab + bab"
    assert format_element(parse_element("a + ab + ba + b")) == "a + b + ab + ba"
    assert parse_element("2ab + 3") == (3, 0, 0, 2, 0, 0, 0)
    assert parse_element("a + a + a + a") == parse_element("2a")
    assert parse_element("5aba") == parse_element("3aba")
    assert parse_element("0") == zero()
    assert format_element((2, 1), ONE_GENERATOR) == "2 + a"
    rng = random.Random(4)
    for x in _sample(rng, 500):
        assert parse_element(format_element(x)) == x
    for bad in ("", "  ", "c", "a +", "2x", "a*b"):
        assert _raises(ValueError, parse_element, bad), bad


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main():
    print("=" * 60)
    print("freerig algebra: Verification Suite")
    print("=" * 60)

    tests = [
        test_reduce_coeff, test_reduce_array_matches_scalar,
        test_codec_bijection, test_codec_arrays, test_codec_layout,
        test_codec_errors, test_small_codec,
        test_reduce_word, test_basis_table_is_free_band,
        test_basis_validation_rejects_bad_tables,
        test_add_laws, test_multiply_laws, test_multiply_examples,
        test_array_forms_match_scalar, test_format_and_parse,
    ]
    for test in tests:
        print(f"\n--- {test.__name__} ---")
        test()

    print("\n" + "=" * 60)
    print("ALL TESTS PASSED")


if __name__ == "__main__":
    main()
