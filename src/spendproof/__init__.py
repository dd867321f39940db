"""Main package initialization."""

__version__ = "0.1.0"
__author__ = "SpendProof Team"
__description__ = "Shielded-pool spend proofs and the double-nullifier flaw"

from .core.commitment import SpendNote, create_note, compute_nullifier, derive_leaf
from .core.merkle_tree import MerkleAccumulator, AuthenticationPath
from .core.circuit import SpendCircuit
from .core.proof_system import SpendProofSystem
from .core.ledger import SpendLedger

__all__ = [
    "SpendNote",
    "create_note",
    "compute_nullifier",
    "derive_leaf",
    "MerkleAccumulator",
    "AuthenticationPath",
    "SpendCircuit",
    "SpendProofSystem",
    "SpendLedger",
]
