"""Spend proofs: the spend relation proven with Groth16.

Keys are inputs here. They come from the key ceremony in
generate_artifacts.py and are loaded through spendproof.storage.
"""

import logging
from typing import Optional, Sequence, Tuple

from spendproof.core.circuit import SpendCircuit
from spendproof.crypto import groth16
from spendproof.crypto.groth16 import Proof, ProvingKey, VerifyingKey
from spendproof.exceptions import RelationUnsatisfiableError

logger = logging.getLogger(__name__)


class SpendProofSystem:
    """
    Proof glue for the spend relation.

    Public inputs are always [root, nullifier].
    """

    @staticmethod
    def prove(proving_key: ProvingKey, circuit: SpendCircuit) -> Proof:
        """
        Prove a spend.

        Raises:
            SynthesisError: If the circuit is malformed or does not match the key
            RelationUnsatisfiableError: If the witness does not satisfy the relation
        """
        cs = circuit.synthesize()
        logger.info(f"Proving spend with nullifier {circuit.nullifier:#x}")
        return groth16.prove(proving_key, cs)

    @staticmethod
    def verify(verifying_key: VerifyingKey, public_inputs: Sequence[int], proof: Optional[Proof]) -> bool:
        """
        Verify a spend proof against [root, nullifier].

        Returns:
            bool: True if the proof is valid; never raises for wrong inputs
        """
        valid = groth16.verify(verifying_key, public_inputs, proof)
        logger.debug(f"Spend proof verification: {valid}")
        return valid

    @staticmethod
    def attempt_spend(
        proving_key: ProvingKey,
        verifying_key: VerifyingKey,
        circuit: SpendCircuit,
    ) -> Tuple[bool, Optional[Proof]]:
        """
        Prove and verify in one go.

        An unsatisfiable witness and a rejected proof are the same outcome:
        the spend is rejected and no proof is returned.

        Raises:
            SynthesisError: If the circuit is malformed
        """
        try:
            proof = SpendProofSystem.prove(proving_key, circuit)
        except RelationUnsatisfiableError as e:
            logger.warning(f"Spend rejected: {e}")
            return False, None

        if not SpendProofSystem.verify(verifying_key, circuit.public_inputs(), proof):
            logger.warning("Spend rejected: proof did not verify")
            return False, None

        logger.info("Spend accepted")
        return True, proof
