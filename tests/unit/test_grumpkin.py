"""Tests for the key-derivation group."""

from dataclasses import replace

import pytest
from py_ecc.optimized_bn128 import add, multiply

from spendproof.crypto.grumpkin import (
    GRUMPKIN,
    fixed_base_scalar_mul_le_var,
    fixed_base_tables,
    scalar_mul,
    scalar_mul_le,
    to_affine,
    x_coordinate,
)
from spendproof.exceptions import CryptoError, ParameterError
from spendproof.r1cs.constraint_system import ConstraintSystem
from spendproof.r1cs.gadgets import alloc_bits_le
from spendproof.utils.field import FIELD_BITS, FIELD_MODULUS, to_bits_le

P = FIELD_MODULUS
SECRET = 0x1F3A9C5E7B2D4F6081A3C5E7092B4D6F8A1C3E5072B4D6F8091A2B3C4D5E6F70


class TestCurveGroup:
    """Test group parameters."""

    def test_generator_on_curve(self):
        assert GRUMPKIN.contains(GRUMPKIN.generator_point)
        assert GRUMPKIN.generator[0] == 1

    def test_order_exceeds_field(self):
        assert GRUMPKIN.order > P
        assert GRUMPKIN.scalar_bits == 254

    def test_order_annihilates_generator(self):
        assert to_affine(scalar_mul(GRUMPKIN, GRUMPKIN.order)) is None

    def test_off_curve_generator_rejected(self):
        with pytest.raises(ParameterError, match="not on the curve"):
            replace(GRUMPKIN, generator=(1, 2)).validate()

    def test_foreign_base_field_rejected(self):
        with pytest.raises(ParameterError, match="circuit field"):
            replace(GRUMPKIN, field_modulus=GRUMPKIN.order).validate()


class TestNativeArithmetic:
    """Test native scalar multiplication."""

    def test_matches_repeated_addition(self):
        g = GRUMPKIN.generator_point
        assert to_affine(scalar_mul(GRUMPKIN, 5)) == to_affine(multiply(g, 5))
        assert to_affine(scalar_mul(GRUMPKIN, 2)) == to_affine(add(g, g))

    def test_bits_form(self):
        assert to_affine(scalar_mul_le(GRUMPKIN, to_bits_le(SECRET, 254))) == to_affine(scalar_mul(GRUMPKIN, SECRET))

    def test_results_on_curve(self):
        assert GRUMPKIN.contains(scalar_mul(GRUMPKIN, SECRET))

    def test_negated_scalar_shares_x(self):
        point = to_affine(scalar_mul(GRUMPKIN, SECRET))
        negated = to_affine(scalar_mul(GRUMPKIN, GRUMPKIN.order - SECRET))
        assert negated == (point[0], P - point[1])

    def test_infinity_has_no_x(self):
        with pytest.raises(CryptoError):
            x_coordinate(GRUMPKIN.point(None))


class TestFixedBaseGadget:
    """In-circuit multiplication must agree with native multiplication."""

    def test_matches_native(self):
        cs = ConstraintSystem()
        bits = alloc_bits_le(cs, SECRET, FIELD_BITS)
        x, y = fixed_base_scalar_mul_le_var(cs, GRUMPKIN, bits)
        assert (cs.value(x), cs.value(y)) == to_affine(scalar_mul(GRUMPKIN, SECRET))
        assert cs.is_satisfied()
        # booleanity plus four constraints per addition (one per bit and the correction)
        assert cs.num_constraints == FIELD_BITS + 4 * (FIELD_BITS + 1)

    def test_short_scalar(self):
        cs = ConstraintSystem()
        bits = alloc_bits_le(cs, 173, 8)
        x, _ = fixed_base_scalar_mul_le_var(cs, GRUMPKIN, bits)
        assert cs.value(x) == x_coordinate(scalar_mul(GRUMPKIN, 173))
        assert cs.is_satisfied()

    def test_zero_scalar_unsatisfiable(self):
        cs = ConstraintSystem()
        bits = alloc_bits_le(cs, 0, 8)
        fixed_base_scalar_mul_le_var(cs, GRUMPKIN, bits)
        assert not cs.is_satisfied()

    def test_wrong_output_unsatisfied(self):
        cs = ConstraintSystem()
        bits = alloc_bits_le(cs, 173, 8)
        fixed_base_scalar_mul_le_var(cs, GRUMPKIN, bits)
        cs.witness_assignment[-2] = (cs.witness_assignment[-2] + 1) % P
        assert not cs.is_satisfied()

    def test_tables_cached(self):
        assert fixed_base_tables(GRUMPKIN, 8) is fixed_base_tables(GRUMPKIN, 8)
        assert len(fixed_base_tables(GRUMPKIN, 8).windows) == 8
