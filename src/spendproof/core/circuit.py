"""
The spend relation.

Public inputs: the accumulator root and the nullifier.
Witness: the secret and the authentication path of its leaf.

A satisfying assignment shows knowledge of a secret whose public key's
x-coordinate is a leaf under the root and whose leaf hash is the nullifier.

The leaf binds only the x-coordinate of the public key. For a secret s with
s > order - field modulus, the scalar order - s is also a valid witness: it
yields the negated public key, hence the same leaf and path, but a different
nullifier. One leaf can therefore be spent under two nullifiers.
"""

from dataclasses import dataclass
from typing import List

from spendproof.core.merkle_tree import AuthenticationPath, AuthenticationPathVar, verify_membership_var
from spendproof.crypto.grumpkin import GRUMPKIN, CurveGroup, fixed_base_scalar_mul_le_var
from spendproof.crypto.poseidon import PoseidonParameters, leaf_hash_var
from spendproof.exceptions import ParameterError, SynthesisError
from spendproof.r1cs.constraint_system import ConstraintSystem
from spendproof.r1cs.gadgets import enforce_equal, to_bits_le_strict
from spendproof.utils.field import FIELD_BITS, FIELD_MODULUS, is_field_element


@dataclass(frozen=True)
class SpendCircuit:
    params: PoseidonParameters
    root: int
    path: AuthenticationPath
    secret: int
    nullifier: int
    group: CurveGroup = GRUMPKIN

    @classmethod
    def blank(cls, params: PoseidonParameters, depth: int, group: CurveGroup = GRUMPKIN) -> "SpendCircuit":
        """A circuit with all-zero values; synthesizes the shape used for key generation."""
        return cls(params=params, root=0, path=AuthenticationPath.blank(depth), secret=0, nullifier=0, group=group)

    @property
    def secret_bound(self) -> int:
        """Largest admissible secret: below both the field modulus and the group order."""
        return min(FIELD_MODULUS, self.group.order) - 1

    def public_inputs(self) -> List[int]:
        return [self.root, self.nullifier]

    def _check(self) -> None:
        for name in ("root", "secret", "nullifier"):
            if not is_field_element(getattr(self, name)):
                raise SynthesisError(f"{name} must be a field element")
        if not isinstance(self.path, AuthenticationPath):
            raise SynthesisError("path must be an AuthenticationPath")
        for sibling, _ in self.path.nodes:
            if not is_field_element(sibling):
                raise SynthesisError("Path siblings must be field elements")
        try:
            self.params.validate()
            self.group.validate()
        except (ParameterError, AttributeError) as e:
            raise SynthesisError(f"Invalid circuit parameters: {e}") from e

    def generate_constraints(self, cs: ConstraintSystem) -> None:
        """
        Synthesize the relation into cs.

        Raises:
            SynthesisError: If a value or parameter is malformed
        """
        self._check()

        root = cs.alloc_input(self.root, "root")

        with cs.namespace("secret"):
            secret = cs.alloc_witness(self.secret, "secret")
            secret_bits = to_bits_le_strict(cs, secret, FIELD_BITS, self.secret_bound, "secret_bits")

        nullifier = cs.alloc_input(self.nullifier, "nullifier")
        with cs.namespace("nullifier"):
            enforce_equal(cs, leaf_hash_var(cs, self.params, [secret]), nullifier, "nullifier_matches")

        with cs.namespace("public_key"):
            pk_x, _ = fixed_base_scalar_mul_le_var(cs, self.group, secret_bits)
        leaf = [pk_x]

        path = AuthenticationPathVar.allocate(cs, self.path)
        computed_root = verify_membership_var(cs, self.params, leaf, path)
        enforce_equal(cs, computed_root, root, "root_matches")

    def synthesize(self) -> ConstraintSystem:
        cs = ConstraintSystem()
        self.generate_constraints(cs)
        return cs

    def is_satisfied(self) -> bool:
        return self.synthesize().is_satisfied()
