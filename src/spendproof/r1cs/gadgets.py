"""Reusable constraint gadgets: field arithmetic, booleans and bit decompositions."""

from typing import List, Sequence

from spendproof.r1cs.constraint_system import ConstraintSystem, LCLike, LinearCombination, as_lc
from spendproof.utils.field import safe_inverse, to_bits_le


def enforce_equal(cs: ConstraintSystem, a: LCLike, b: LCLike, label: str = "equal") -> None:
    """(a - b) * 1 = 0"""
    cs.enforce(as_lc(a, cs.modulus) - b, 1, 0, label)


def mul(cs: ConstraintSystem, a: LCLike, b: LCLike, label: str = "mul") -> LinearCombination:
    """Product of two combinations; free when either side is constant."""
    a = as_lc(a, cs.modulus)
    b = as_lc(b, cs.modulus)
    if a.is_constant():
        return b * a.constant_value
    if b.is_constant():
        return a * b.constant_value
    product = cs.alloc_witness(cs.value(a) * cs.value(b) % cs.modulus, label)
    cs.enforce(a, b, product, label)
    return product


def square(cs: ConstraintSystem, a: LCLike, label: str = "square") -> LinearCombination:
    return mul(cs, a, a, label)


def pow_constant(cs: ConstraintSystem, a: LCLike, exponent: int, label: str = "pow") -> LinearCombination:
    """a^exponent by left-to-right square-and-multiply."""
    if exponent < 1:
        raise ValueError("Exponent must be positive")
    result = as_lc(a, cs.modulus)
    for i, bit in enumerate(bin(exponent)[3:]):
        result = square(cs, result, f"{label}_sq{i}")
        if bit == "1":
            result = mul(cs, result, a, f"{label}_mul{i}")
    return result


def inverse(cs: ConstraintSystem, a: LCLike, label: str = "inverse") -> LinearCombination:
    """Allocate a^-1; unsatisfiable when a is zero."""
    inv = cs.alloc_witness(safe_inverse(cs.value(a), cs.modulus), label)
    cs.enforce(a, inv, 1, label)
    return inv


def enforce_boolean(cs: ConstraintSystem, bit: LCLike, label: str = "boolean") -> None:
    """bit * (1 - bit) = 0"""
    cs.enforce(bit, 1 - as_lc(bit, cs.modulus), 0, label)


def alloc_boolean(cs: ConstraintSystem, value: int, label: str = "bit") -> LinearCombination:
    bit = cs.alloc_witness(1 if value else 0, label)
    enforce_boolean(cs, bit, label)
    return bit


def pack_bits_le(bits: Sequence[LinearCombination]) -> LinearCombination:
    packed = LinearCombination(modulus=bits[0].modulus)
    for i, bit in enumerate(bits):
        packed = packed + bit * (1 << i)
    return packed


def alloc_bits_le(cs: ConstraintSystem, value: int, length: int, label: str = "bits") -> List[LinearCombination]:
    return [alloc_boolean(cs, bit, f"{label}_{i}") for i, bit in enumerate(to_bits_le(value, length))]


def enforce_le_constant(
    cs: ConstraintSystem, bits: Sequence[LinearCombination], bound: int, label: str = "le"
) -> None:
    """
    Enforce that the little-endian bits encode an integer <= bound.

    Walks from the most significant bit keeping a running flag that is one
    while the prefix of the bits equals the prefix of the bound. Where the
    bound has a zero bit, the input bit must be zero while the flag is set.
    """
    if bound < 0:
        raise ValueError("Bound must be non-negative")

    bound_length = bound.bit_length()
    for i in range(bound_length, len(bits)):
        enforce_equal(cs, bits[i], 0, f"{label}_high_{i}")

    run = None  # None stands for the constant one
    for i in reversed(range(min(bound_length, len(bits)))):
        if (bound >> i) & 1:
            run = bits[i] if run is None else mul(cs, run, bits[i], f"{label}_run_{i}")
        elif run is not None:
            cs.enforce(run, bits[i], 0, f"{label}_zero_{i}")


def to_bits_le_strict(
    cs: ConstraintSystem, value: LCLike, length: int, bound: int, label: str = "to_bits"
) -> List[LinearCombination]:
    """
    Decompose a field element into booleans and range-check the result.

    The bits must repack to value and encode an integer <= bound, which rules
    out aliased representations value + k * modulus.
    """
    bits = alloc_bits_le(cs, cs.value(value), length, label)
    enforce_equal(cs, pack_bits_le(bits), value, f"{label}_pack")
    enforce_le_constant(cs, bits, bound, f"{label}_range")
    return bits


def select(
    cs: ConstraintSystem, condition: LCLike, if_true: LCLike, if_false: LCLike, label: str = "select"
) -> LinearCombination:
    """condition ? if_true : if_false, for a boolean condition."""
    if_true = as_lc(if_true, cs.modulus)
    if_false = as_lc(if_false, cs.modulus)
    chosen = if_true if cs.value(condition) else if_false
    out = cs.alloc_witness(cs.value(chosen), label)
    cs.enforce(condition, if_true - if_false, out - if_false, label)
    return out
