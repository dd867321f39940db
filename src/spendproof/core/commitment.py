"""Public keys, leaves and nullifiers derived from a spend secret."""

import secrets
from dataclasses import dataclass
from typing import List, Optional

from spendproof.crypto.grumpkin import GRUMPKIN, CurveGroup, scalar_mul_le, to_affine, x_coordinate
from spendproof.crypto.poseidon import PoseidonParameters, leaf_hash, poseidon_parameters
from spendproof.exceptions import InvalidSecretError
from spendproof.utils.field import FIELD_MODULUS, to_bits_le

Leaf = List[int]


@dataclass(frozen=True)
class SpendNote:
    """A secret together with everything publicly derived from it."""

    secret: int
    public_key: tuple  # affine (x, y)
    leaf: tuple
    nullifier: int


def _check_secret(secret: int) -> int:
    if not isinstance(secret, int) or isinstance(secret, bool):
        raise InvalidSecretError(f"Secret must be an int, got {type(secret)}")
    if not 0 < secret < FIELD_MODULUS:
        raise InvalidSecretError("Secret must lie in [1, field modulus)")
    return secret


def derive_public_key(secret: int, group: CurveGroup = GRUMPKIN) -> tuple:
    """
    Compute PublicKey = secret * G.

    Args:
        secret: Scalar in [1, field modulus)
        group: Key-derivation group

    Returns:
        tuple: Projective point

    Raises:
        InvalidSecretError: If the secret is out of range
    """
    _check_secret(secret)
    return scalar_mul_le(group, to_bits_le(secret, group.scalar_bits))


def derive_leaf(secret: int, group: CurveGroup = GRUMPKIN) -> Leaf:
    """
    The accumulator leaf for a secret: [PublicKey.x].

    Only the x-coordinate is committed, so secret and order - secret
    produce the same leaf.
    """
    return [x_coordinate(derive_public_key(secret, group))]


def compute_nullifier(params: PoseidonParameters, secret: int) -> int:
    """
    Compute nullifier nf = H(secret) under the leaf hash.

    Raises:
        InvalidSecretError: If the secret is out of range
    """
    return leaf_hash(params, [_check_secret(secret)])


def negated_secret(secret: int, group: CurveGroup = GRUMPKIN) -> int:
    """
    The scalar order - secret, whose public key is the negation of secret's.

    Raises:
        InvalidSecretError: If the result does not fit below the field modulus
    """
    _check_secret(secret)
    other = group.order - secret
    if other >= FIELD_MODULUS:
        raise InvalidSecretError(
            "order - secret is not a valid secret; the secret must exceed order - field modulus"
        )
    return other


def create_note(
    secret: int,
    params: Optional[PoseidonParameters] = None,
    group: CurveGroup = GRUMPKIN,
) -> SpendNote:
    """Derive the public key, leaf and nullifier for a secret."""
    params = params or poseidon_parameters()
    public_key = derive_public_key(secret, group)
    return SpendNote(
        secret=secret,
        public_key=to_affine(public_key),
        leaf=(x_coordinate(public_key),),
        nullifier=compute_nullifier(params, secret),
    )


def generate_secret(rng=None) -> int:
    """Sample a secret uniformly from [1, field modulus)."""
    rng = rng or secrets.SystemRandom()
    return rng.randrange(1, FIELD_MODULUS)
