#!/usr/bin/env python3
"""
Double-spend demonstration.

Loads the leaf set, the leaked secret and the key pair, spends the leaked
secret's leaf honestly, then spends the same leaf a second time under a
different nullifier. Run generate_artifacts.py first.
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from spendproof.config import configure_logging, get_settings
from spendproof.core.circuit import SpendCircuit
from spendproof.core.commitment import compute_nullifier, negated_secret
from spendproof.core.ledger import DatabaseNullifierStore, SpendLedger
from spendproof.core.merkle_tree import MerkleAccumulator
from spendproof.core.proof_system import SpendProofSystem
from spendproof.crypto.grumpkin import GRUMPKIN
from spendproof.crypto.poseidon import poseidon_parameters
from spendproof.exceptions import DeserializationError, InvalidLeafIndexError
from spendproof.storage.database import DatabaseManager
from spendproof.storage.files import load_key_pair, load_leaked_secret, load_leaves

PUZZLE_DESCRIPTION = """
Bob liked the Zcash design for private transactions and built his own
version. A spend proves that the spender knows a secret whose public key is
in the accumulator, and reveals the nullifier H(secret) so the same coin
cannot be spent twice. To save constraints, the accumulator only stores the
x-coordinate of each public key on Grumpkin.

Alice announced she can spend the same coin twice with two different
nullifiers. Given one leaked secret, can you?
"""


def welcome():
    print("=" * 70)
    print("SPENDPROOF: THE DOUBLE NULLIFIER")
    print("=" * 70)
    print()


def puzzle(description: str):
    print(description.strip())
    print()


def main():
    """Spend one leaf twice."""
    welcome()
    puzzle(PUZZLE_DESCRIPTION)

    settings = get_settings()
    params = poseidon_parameters()

    try:
        leaves = load_leaves(settings.leaves_path)
        leaked_secret, leaked_index = load_leaked_secret(settings.secret_path)
        pk, vk, key_depth = load_key_pair(settings.keys_path)
    except DeserializationError as e:
        print(f"✗ Could not load artifacts: {e}")
        print("  Run generate_artifacts.py first.")
        return 1

    accumulator = MerkleAccumulator.build(params, leaves, key_depth)
    root = accumulator.root
    index = leaked_index if leaked_index is not None else settings.leaf_index
    try:
        leaf = accumulator.leaf(index)
        path = accumulator.path(index)
    except InvalidLeafIndexError as e:
        print(f"✗ Cannot spend leaf {index}: {e}")
        return 1
    assert path.verify(params, root, leaf)

    db_manager = DatabaseManager(settings.database_url)
    db_manager.create_tables()
    with db_manager.get_session() as session:
        db_manager.record_root(session, root, accumulator.depth, len(accumulator))
    ledger = SpendLedger(vk, root, DatabaseNullifierStore(db_manager))

    # Step 1: the honest spend
    print("Step 1: Spend the leaked secret")
    print("-" * 70)
    nullifier = compute_nullifier(params, leaked_secret)
    circuit = SpendCircuit(params=params, root=root, path=path, secret=leaked_secret, nullifier=nullifier)
    accepted, proof = SpendProofSystem.attempt_spend(pk, vk, circuit)
    if not accepted:
        print("✗ Honest spend was rejected")
        return 1
    receipt = ledger.submit(proof, nullifier)
    print(f"✓ Spend #{receipt.spend_number} accepted, nullifier {receipt.nullifier_hex[:18]}...")
    print()

    # Step 2: the same leaf under the negated secret
    print("Step 2: Spend the same leaf with order - secret")
    print("-" * 70)
    secret_hack = negated_secret(leaked_secret, GRUMPKIN)
    nullifier_hack = compute_nullifier(params, secret_hack)
    assert nullifier_hack != nullifier

    circuit_hack = SpendCircuit(params=params, root=root, path=path, secret=secret_hack, nullifier=nullifier_hack)
    accepted, proof_hack = SpendProofSystem.attempt_spend(pk, vk, circuit_hack)
    if not accepted:
        print("✗ Second spend was rejected")
        return 1
    receipt = ledger.submit(proof_hack, nullifier_hack)
    print(f"✓ Spend #{receipt.spend_number} accepted, nullifier {receipt.nullifier_hex[:18]}...")
    print()

    print("=" * 70)
    print(f"Leaf {index} was spent twice; {len(ledger.store)} distinct nullifiers are published.")
    print("=" * 70)
    return 0


if __name__ == "__main__":
    configure_logging()
    sys.exit(main())
