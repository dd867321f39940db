"""
Groth16 over BN254, backed by zksnake.

Circuits are synthesized with spendproof.r1cs and compiled into a zksnake
R1CS; the QAP, the key ceremony, proving and verification are zksnake's. As
in arkworks, one extra row A[m + i] = {i: 1} is appended per instance
variable so the input polynomials are linearly independent.

zksnake draws the toxic waste and the proof blinding from the system random
source. Proving checks satisfiability first and refuses to produce a proof
for an unsatisfied system.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from zksnake.arithmetization import R1CS
from zksnake.array import SparseArray
from zksnake.ecc import ispointG1, ispointG2
from zksnake.groth16 import Groth16, Proof, ProvingKey, VerifyingKey
from zksnake.utils import next_power_of_two

from spendproof.exceptions import RelationUnsatisfiableError, SynthesisError
from spendproof.r1cs.constraint_system import ConstraintSystem
from spendproof.utils.field import FIELD_MODULUS, is_field_element

logger = logging.getLogger(__name__)

CURVE = "BN254"


class CompiledR1CS(R1CS):
    """
    A synthesized ConstraintSystem in zksnake's matrix form.

    Columns follow zksnake's witness layout: the constant one, the public
    inputs, then the private witnesses.
    """

    def __init__(self, cs: ConstraintSystem):
        # the base constructor expects zksnake's symbolic system; the matrices
        # come from cs instead
        self.constraint_system = cs
        self.n_public = cs.num_inputs
        self.p = FIELD_MODULUS
        self.A = None
        self.B = None
        self.C = None
        self.compile()

    def compile(self):
        cs = self.constraint_system
        a_rows, b_rows, c_rows = cs.to_matrices()
        a_rows = a_rows + [[(i, 1)] for i in range(cs.num_inputs)]

        matrices = []
        for rows in (a_rows, b_rows, c_rows):
            matrix = SparseArray([[]], len(a_rows), cs.num_variables, self.p)
            matrix.append([(i, col, value) for i, row in enumerate(rows) for col, value in row])
            matrices.append(matrix)
        self.A, self.B, self.C = matrices

    @property
    def domain_size(self) -> int:
        return next_power_of_two(self.A.n_row)

    def witness(self) -> Tuple[List[int], List[int]]:
        """(public witness, private witness) in zksnake's layout."""
        assignment = self.constraint_system.full_assignment()
        return assignment[: self.n_public], assignment[self.n_public:]


def num_public_inputs(vk: VerifyingKey) -> int:
    """Public inputs a verifying key expects, excluding the constant one."""
    return len(vk.ic) - 1


def setup(cs: ConstraintSystem) -> Tuple[ProvingKey, VerifyingKey]:
    """
    Generate a key pair for the shape of cs.

    Only the shape is used; assigned values are ignored.
    """
    r1cs = CompiledR1CS(cs)
    logger.info(
        f"Groth16 setup: {cs.num_constraints} constraints, {cs.num_variables} variables, "
        f"domain {r1cs.domain_size}"
    )
    backend = Groth16(r1cs, CURVE)
    backend.setup()
    logger.info("Groth16 setup complete")
    return backend.proving_key, backend.verifying_key


def prove(pk: ProvingKey, cs: ConstraintSystem) -> Proof:
    """
    Produce a proof for a synthesized, satisfied system.

    Raises:
        SynthesisError: If the system's shape does not match the key
        RelationUnsatisfiableError: If a constraint is violated
    """
    r1cs = CompiledR1CS(cs)
    public, private = r1cs.witness()
    if len(pk.kdelta_1) != len(private) or len(pk.tau_1) != r1cs.domain_size:
        raise SynthesisError(
            f"Constraint system shape ({cs.num_constraints} constraints, {cs.num_inputs} inputs, "
            f"{cs.num_variables} variables) does not match the proving key"
        )

    if not r1cs.is_sat(public, private):
        raise RelationUnsatisfiableError(f"Constraint '{cs.which_is_unsatisfied()}' is not satisfied")

    logger.debug(f"Groth16 prove: {cs.num_constraints} constraints")
    backend = Groth16(r1cs, CURVE)
    backend.proving_key = pk
    return backend.prove(public, private)


def _well_formed(proof: Proof) -> bool:
    # curve and subgroup membership are enforced when zksnake deserializes
    # a point, so only the point types are left to check here
    return ispointG1(proof.A) and ispointG2(proof.B) and ispointG1(proof.C)


def verify(vk: VerifyingKey, public_inputs: Sequence[int], proof: Optional[Proof]) -> bool:
    """
    Check e(A, B) = e(alpha, beta) * e(IC, gamma) * e(C, delta).

    Returns False (never raises) for a wrong number of inputs, inputs outside
    the field or a proof that is not made of BN254 points.
    """
    if not isinstance(proof, Proof) or not _well_formed(proof):
        return False
    public_inputs = list(public_inputs)
    if len(public_inputs) != num_public_inputs(vk):
        return False
    if not all(is_field_element(x) for x in public_inputs):
        return False

    # verification reads only the verifying key, so the relation is empty
    backend = Groth16(CompiledR1CS(ConstraintSystem()), CURVE)
    backend.verifying_key = vk
    return backend.verify(proof, [1] + public_inputs)
