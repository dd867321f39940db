"""Poseidon hash over the circuit field, natively and as constraint gadgets.

The accumulator and the nullifier both use Poseidon, an algebraic hash whose
permutation is cheap to express as R1CS. The same parameters drive the native
functions and the gadgets, so a digest computed in-circuit equals the digest
computed natively for the same inputs.

Construction:
    - Permutation: HADES design, full_rounds / 2 full rounds, then
      partial_rounds partial rounds, then full_rounds / 2 full rounds.
      Each round: add round constants, apply x^alpha (all cells in full
      rounds, the first cell in partial rounds), multiply by the MDS matrix.
    - Sponge: capacity 1, rate width - 1. The capacity cell starts at the
      input length, so inputs that differ only by trailing zeros hash
      differently. Inputs are added into the rate cells; the state is permuted whenever the rate is full and once more
      before squeezing the first rate cell.
    - Leaf hash: sponge over the leaf's field elements.
    - Two-to-one hash: sponge over [left, right].

Default parameters (width 3, alpha 5, 8 full + 57 partial rounds) are the
standard choice for 128-bit security over the BN254 scalar field. Round
constants are expanded from a fixed seed with SHAKE256; the MDS matrix is the
Cauchy matrix 1 / (i + j + width).

Example:
    >>> params = poseidon_parameters()
    >>> nullifier = leaf_hash(params, [secret])
    >>> parent = two_to_one_hash(params, left, right)
"""

from dataclasses import dataclass
from functools import lru_cache
from math import gcd
from typing import List, Sequence, Tuple

from Crypto.Hash import SHAKE256

from spendproof.exceptions import ParameterError
from spendproof.r1cs.constraint_system import ConstraintSystem, LinearCombination, as_lc
from spendproof.r1cs.gadgets import pow_constant
from spendproof.utils.field import FIELD_MODULUS, inverse, is_field_element

DEFAULT_SEED = b"spendproof.poseidon.bn254"


@dataclass(frozen=True)
class PoseidonParameters:
    """Poseidon permutation parameters."""

    width: int
    alpha: int
    full_rounds: int
    partial_rounds: int
    round_constants: Tuple[Tuple[int, ...], ...]
    mds: Tuple[Tuple[int, ...], ...]
    modulus: int = FIELD_MODULUS

    @property
    def rate(self) -> int:
        return self.width - 1

    @property
    def total_rounds(self) -> int:
        return self.full_rounds + self.partial_rounds

    def validate(self) -> "PoseidonParameters":
        """
        Check dimensions and ranges.

        Raises:
            ParameterError: If the parameters are inconsistent
        """
        if self.width < 2:
            raise ParameterError("Poseidon width must be at least 2")
        if self.full_rounds < 2 or self.full_rounds % 2:
            raise ParameterError("Full rounds must be a positive even number")
        if self.partial_rounds < 0:
            raise ParameterError("Partial rounds must be non-negative")
        if self.alpha < 3 or gcd(self.alpha, self.modulus - 1) != 1:
            raise ParameterError(f"x^{self.alpha} is not a permutation of the field")
        if len(self.round_constants) != self.total_rounds:
            raise ParameterError(
                f"Expected {self.total_rounds} rows of round constants, got {len(self.round_constants)}"
            )
        if any(len(row) != self.width for row in self.round_constants):
            raise ParameterError(f"Every round-constant row must have {self.width} entries")
        if len(self.mds) != self.width or any(len(row) != self.width for row in self.mds):
            raise ParameterError(f"MDS matrix must be {self.width}x{self.width}")
        for row in self.round_constants + self.mds:
            if not all(is_field_element(v, self.modulus) for v in row):
                raise ParameterError("Poseidon constants must be reduced field elements")
        return self


def derive_round_constants(
    width: int, total_rounds: int, seed: bytes = DEFAULT_SEED, modulus: int = FIELD_MODULUS
) -> Tuple[Tuple[int, ...], ...]:
    """Expand a seed into total_rounds x width field elements."""
    xof = SHAKE256.new(seed + b".ark")
    # 64 bytes per element keeps the reduction bias negligible
    return tuple(
        tuple(int.from_bytes(xof.read(64), "big") % modulus for _ in range(width))
        for _ in range(total_rounds)
    )


def cauchy_mds(width: int, modulus: int = FIELD_MODULUS) -> Tuple[Tuple[int, ...], ...]:
    return tuple(
        tuple(inverse(i + j + width, modulus) for j in range(width)) for i in range(width)
    )


@lru_cache(maxsize=None)
def poseidon_parameters(
    width: int = 3, alpha: int = 5, full_rounds: int = 8, partial_rounds: int = 57,
    seed: bytes = DEFAULT_SEED,
) -> PoseidonParameters:
    """Process-wide Poseidon parameters for the circuit field."""
    return PoseidonParameters(
        width=width,
        alpha=alpha,
        full_rounds=full_rounds,
        partial_rounds=partial_rounds,
        round_constants=derive_round_constants(width, full_rounds + partial_rounds, seed),
        mds=cauchy_mds(width),
    ).validate()


def _is_full_round(params: PoseidonParameters, round_index: int) -> bool:
    half = params.full_rounds // 2
    return round_index < half or round_index >= half + params.partial_rounds


# Native evaluation

def permute(params: PoseidonParameters, state: Sequence[int]) -> List[int]:
    """Apply the Poseidon permutation to a state of width field elements."""
    if len(state) != params.width:
        raise ParameterError(f"State must have {params.width} elements")

    p = params.modulus
    state = list(state)
    for r in range(params.total_rounds):
        state = [(s + c) % p for s, c in zip(state, params.round_constants[r])]
        if _is_full_round(params, r):
            state = [pow(s, params.alpha, p) for s in state]
        else:
            state[0] = pow(state[0], params.alpha, p)
        state = [sum(m * s for m, s in zip(row, state)) % p for row in params.mds]
    return state


def _sponge(params: PoseidonParameters, elements: Sequence[int]) -> int:
    if not elements:
        raise ParameterError("Cannot hash an empty input")

    p = params.modulus
    state = [0] * params.width
    state[0] = len(elements) % p
    absorbed = 0
    for element in elements:
        if not is_field_element(element, p):
            raise ParameterError("Hash inputs must be field elements")
        if absorbed == params.rate:
            state = permute(params, state)
            absorbed = 0
        state[1 + absorbed] = (state[1 + absorbed] + element) % p
        absorbed += 1
    return permute(params, state)[1]


def leaf_hash(params: PoseidonParameters, elements: Sequence[int]) -> int:
    """Hash a leaf (a sequence of field elements) to a digest."""
    return _sponge(params, elements)


def two_to_one_hash(params: PoseidonParameters, left: int, right: int) -> int:
    """Compress two digests into their parent."""
    return _sponge(params, [left, right])


# Constraint gadgets

def permute_var(
    cs: ConstraintSystem, params: PoseidonParameters, state: Sequence[LinearCombination]
) -> List[LinearCombination]:
    """In-circuit permutation; three constraints per S-box when alpha is 5."""
    if len(state) != params.width:
        raise ParameterError(f"State must have {params.width} elements")

    state = [as_lc(s, cs.modulus) for s in state]
    for r in range(params.total_rounds):
        state = [s + c for s, c in zip(state, params.round_constants[r])]
        if _is_full_round(params, r):
            state = [
                pow_constant(cs, s, params.alpha, f"round{r}_sbox{i}") for i, s in enumerate(state)
            ]
        else:
            state[0] = pow_constant(cs, state[0], params.alpha, f"round{r}_sbox0")
        mixed = []
        for row in params.mds:
            acc = LinearCombination(modulus=cs.modulus)
            for m, s in zip(row, state):
                acc = acc + s * m
            mixed.append(acc)
        state = mixed
    return state


def _sponge_var(
    cs: ConstraintSystem, params: PoseidonParameters, elements: Sequence[LinearCombination]
) -> LinearCombination:
    if not elements:
        raise ParameterError("Cannot hash an empty input")

    state = [cs.constant(0) for _ in range(params.width)]
    state[0] = cs.constant(len(elements))
    absorbed = 0
    for element in elements:
        if absorbed == params.rate:
            state = permute_var(cs, params, state)
            absorbed = 0
        state[1 + absorbed] = state[1 + absorbed] + element
        absorbed += 1
    return permute_var(cs, params, state)[1]


def leaf_hash_var(
    cs: ConstraintSystem, params: PoseidonParameters, elements: Sequence[LinearCombination]
) -> LinearCombination:
    with cs.namespace("leaf_hash"):
        return _sponge_var(cs, params, elements)


def two_to_one_hash_var(
    cs: ConstraintSystem, params: PoseidonParameters, left: LinearCombination, right: LinearCombination
) -> LinearCombination:
    with cs.namespace("two_to_one_hash"):
        return _sponge_var(cs, params, [left, right])
