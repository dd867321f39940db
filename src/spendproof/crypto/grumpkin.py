"""
Key-derivation group: short-Weierstrass curves over the circuit field.

Public keys live on Grumpkin, y^2 = x^3 - 17 over the BN254 scalar field. Its
base field is the circuit field, so point coordinates are circuit variables
and scalar multiplication can be proven directly. Its order is the BN254 base
field modulus, which is larger than the circuit field.

Native arithmetic reuses py_ecc's projective formulas (they assume a = 0,
which holds here) over a field-element class bound to the curve's base field.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from Crypto.Hash import SHAKE256
from py_ecc.fields import optimized_FQ
from py_ecc.optimized_bn128 import add, curve_order, double, field_modulus, is_inf, neg, normalize
from py_ecc.optimized_bn128 import is_on_curve as _is_on_curve

from spendproof.exceptions import CryptoError, ParameterError
from spendproof.r1cs.constraint_system import ConstraintSystem, LinearCombination, as_lc
from spendproof.r1cs.gadgets import inverse as inverse_var
from spendproof.utils.field import FIELD_MODULUS, safe_inverse, sqrt, to_bits_le

AffinePoint = Tuple[int, int]
PointVar = Tuple[LinearCombination, LinearCombination]

OFFSET_SEED = b"spendproof.grumpkin.offsets"


class GrumpkinFQ(optimized_FQ):
    """Grumpkin base field (the BN254 scalar field)."""

    field_modulus = curve_order


@lru_cache(maxsize=None)
def _field_class(modulus: int) -> type:
    if modulus == GrumpkinFQ.field_modulus:
        return GrumpkinFQ
    return type("CurveFQ", (optimized_FQ,), {"field_modulus": modulus})


@dataclass(frozen=True)
class CurveGroup:
    """Prime-order curve y^2 = x^3 + b with a fixed generator."""

    name: str
    field_modulus: int
    b: int
    order: int
    generator: AffinePoint

    @property
    def field(self) -> type:
        return _field_class(self.field_modulus)

    @property
    def scalar_bits(self) -> int:
        return self.order.bit_length()

    def point(self, affine: Optional[AffinePoint]) -> tuple:
        """Projective point from affine coordinates (None is infinity)."""
        fq = self.field
        if affine is None:
            return (fq.one(), fq.one(), fq.zero())
        return (fq(affine[0]), fq(affine[1]), fq.one())

    @property
    def generator_point(self) -> tuple:
        return self.point(self.generator)

    def contains(self, point: tuple) -> bool:
        return _is_on_curve(point, self.field(self.b))

    def validate(self) -> "CurveGroup":
        """
        Check the group is usable for key derivation.

        Raises:
            ParameterError: If the generator is off-curve or the base field
                is not the circuit field
        """
        if self.field_modulus != FIELD_MODULUS:
            raise ParameterError(f"{self.name} base field must be the circuit field")
        if not self.contains(self.generator_point):
            raise ParameterError(f"{self.name} generator is not on the curve")
        if self.order < 2:
            raise ParameterError(f"{self.name} order must be at least 2")
        return self


def _grumpkin() -> CurveGroup:
    b = FIELD_MODULUS - 17
    y = sqrt(1 + b)
    return CurveGroup(
        name="grumpkin",
        field_modulus=FIELD_MODULUS,
        b=b,
        order=field_modulus,
        generator=(1, y),
    ).validate()


GRUMPKIN = _grumpkin()


# Native arithmetic

def scalar_mul_le(group: CurveGroup, bits: Sequence[int]) -> tuple:
    """Double-and-add over little-endian scalar bits."""
    acc = group.point(None)
    base = group.generator_point
    for bit in bits:
        if bit:
            acc = add(acc, base)
        base = double(base)
    return acc


def scalar_mul(group: CurveGroup, scalar: int) -> tuple:
    return scalar_mul_le(group, to_bits_le(scalar, max(scalar.bit_length(), 1)))


def to_affine(point: tuple) -> Optional[AffinePoint]:
    if is_inf(point):
        return None
    x, y = normalize(point)
    return (x.n, y.n)


def x_coordinate(point: tuple) -> int:
    affine = to_affine(point)
    if affine is None:
        raise CryptoError("The point at infinity has no x-coordinate")
    return affine[0]


# In-circuit fixed-base multiplication

@dataclass(frozen=True)
class FixedBaseTables:
    """
    Per-bit constants for fixed-base multiplication.

    Bit i selects between offset[i] and window[i] = 2^i * G + offset[i];
    the running sum starts at start and the correction removes start and all
    offsets at the end. Offsets keep every intermediate addition away from
    doubling and inverse cases except with negligible probability.
    """

    start: AffinePoint
    offsets: Tuple[AffinePoint, ...]
    windows: Tuple[AffinePoint, ...]
    correction: AffinePoint


def _derive_scalar(group: CurveGroup, label: bytes) -> int:
    xof = SHAKE256.new(OFFSET_SEED + b"." + group.name.encode() + b"." + label)
    return int.from_bytes(xof.read(64), "big") % (group.order - 1) + 1


@lru_cache(maxsize=None)
def fixed_base_tables(group: CurveGroup, num_bits: int) -> FixedBaseTables:
    start = scalar_mul(group, _derive_scalar(group, b"start"))
    offset = scalar_mul(group, _derive_scalar(group, b"offset"))
    power = group.generator_point

    total = start
    offsets: List[AffinePoint] = []
    windows: List[AffinePoint] = []
    for _ in range(num_bits):
        offsets.append(to_affine(offset))
        windows.append(to_affine(add(power, offset)))
        total = add(total, offset)
        power = double(power)
        offset = double(offset)

    return FixedBaseTables(
        start=to_affine(start),
        offsets=tuple(offsets),
        windows=tuple(windows),
        correction=to_affine(neg(total)),
    )


def _add_incomplete(cs: ConstraintSystem, p1: PointVar, p2: PointVar, label: str) -> PointVar:
    """Affine addition for points with distinct x-coordinates; four constraints."""
    x1, y1 = p1
    x2, y2 = p2
    p = cs.modulus

    dx = x2 - x1
    inverse_var(cs, dx, f"{label}_distinct")

    lam_value = cs.value(y2 - y1) * safe_inverse(cs.value(dx), p) % p
    lam = cs.alloc_witness(lam_value, f"{label}_lambda")
    cs.enforce(lam, dx, y2 - y1, f"{label}_slope")

    x3 = cs.alloc_witness((lam_value * lam_value - cs.value(x1) - cs.value(x2)) % p, f"{label}_x")
    cs.enforce(lam, lam, x3 + x1 + x2, f"{label}_x")

    y3 = cs.alloc_witness((lam_value * (cs.value(x1) - cs.value(x3)) - cs.value(y1)) % p, f"{label}_y")
    cs.enforce(lam, x1 - x3, y3 + y1, f"{label}_y")

    return x3, y3


def _constant_point(cs: ConstraintSystem, point: AffinePoint) -> PointVar:
    return cs.constant(point[0]), cs.constant(point[1])


def fixed_base_scalar_mul_le_var(
    cs: ConstraintSystem, group: CurveGroup, bits: Sequence[LinearCombination]
) -> PointVar:
    """
    In-circuit scalar * G for boolean little-endian bits.

    The scalar zero (and a negligible set of others) makes the system
    unsatisfiable: the result would be the point at infinity, which has no
    affine coordinates.
    """
    tables = fixed_base_tables(group, len(bits))

    with cs.namespace("fixed_base_mul"):
        acc = _constant_point(cs, tables.start)
        for i, bit in enumerate(bits):
            bit = as_lc(bit, cs.modulus)
            (ox, oy), (wx, wy) = tables.offsets[i], tables.windows[i]
            term = (bit * (wx - ox) + ox, bit * (wy - oy) + oy)
            acc = _add_incomplete(cs, acc, term, f"bit{i}")
        return _add_incomplete(cs, acc, _constant_point(cs, tables.correction), "correction")
