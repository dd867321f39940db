"""Prime-field helpers for the circuit field.

The circuit field is the BN254 scalar field. Its modulus doubles as the base
field of the Grumpkin key-derivation group, which is what makes BN254/Grumpkin
a 2-cycle. Field arithmetic beyond plain modular reduction goes through galois.
"""

from functools import lru_cache
from typing import List, Optional

import numpy as np
from galois import GF
from py_ecc.optimized_bn128 import curve_order

FIELD_MODULUS = curve_order
FIELD_BITS = FIELD_MODULUS.bit_length()

# 5 generates the multiplicative group of the BN254 scalar field
Fr = GF(FIELD_MODULUS, primitive_element=5, verify=False)


@lru_cache(maxsize=None)
def prime_field(modulus: int = FIELD_MODULUS):
    """galois field class for a prime modulus."""
    if modulus == FIELD_MODULUS:
        return Fr
    return GF(modulus)


def is_field_element(value, modulus: int = FIELD_MODULUS) -> bool:
    """Check that value is an int reduced below the modulus."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < modulus


def inverse(value: int, modulus: int = FIELD_MODULUS) -> int:
    """
    Modular inverse.

    Raises:
        ZeroDivisionError: If value is zero modulo the modulus
    """
    value %= modulus
    if value == 0:
        raise ZeroDivisionError("Zero has no inverse")
    return int(prime_field(modulus)(value) ** -1)


def safe_inverse(value: int, modulus: int = FIELD_MODULUS) -> int:
    """Modular inverse with inv(0) == 0, for witness generation."""
    value %= modulus
    return inverse(value, modulus) if value else 0


def to_bits_le(value: int, length: int) -> List[int]:
    """Little-endian bit decomposition of a non-negative integer."""
    if value < 0:
        raise ValueError("Cannot decompose a negative value")
    if value >> length:
        raise ValueError(f"Value does not fit in {length} bits")
    return [(value >> i) & 1 for i in range(length)]


def sqrt(value: int, modulus: int = FIELD_MODULUS) -> Optional[int]:
    """
    Square root in the prime field.

    Returns:
        The smaller of the two roots, or None for a non-residue
    """
    x = prime_field(modulus)(value % modulus)
    if not x.is_square():
        return None
    root = int(np.sqrt(x))
    return min(root, (modulus - root) % modulus)
