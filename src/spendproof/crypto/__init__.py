"""Cryptographic primitives module"""

from spendproof.crypto.poseidon import (
    PoseidonParameters,
    poseidon_parameters,
    leaf_hash,
    two_to_one_hash,
)

from spendproof.crypto.grumpkin import (
    CurveGroup,
    GRUMPKIN,
    scalar_mul_le,
    x_coordinate,
)

from spendproof.crypto.groth16 import (
    ProvingKey,
    VerifyingKey,
    Proof,
)

__all__ = [
    'PoseidonParameters',
    'poseidon_parameters',
    'leaf_hash',
    'two_to_one_hash',
    'CurveGroup',
    'GRUMPKIN',
    'scalar_mul_le',
    'x_coordinate',
    'ProvingKey',
    'VerifyingKey',
    'Proof',
]
