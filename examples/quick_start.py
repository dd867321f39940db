#!/usr/bin/env python3
"""
Quick start guide for spend proofs.

Run this to see a complete honest spend: notes, accumulator, keys, proof,
verification and nullifier publication.
"""

import sys
from pathlib import Path

# Add src and the key ceremony script to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent.parent))

from generate_artifacts import generate_keys

from spendproof.core.circuit import SpendCircuit
from spendproof.core.commitment import create_note, generate_secret
from spendproof.core.ledger import SpendLedger
from spendproof.core.merkle_tree import MerkleAccumulator
from spendproof.core.proof_system import SpendProofSystem
from spendproof.crypto.poseidon import poseidon_parameters
from spendproof.exceptions import DoubleSpendError


def main():
    """Run a simple example of a spend."""

    print("=" * 70)
    print("SPENDPROOF QUICK START EXAMPLE")
    print("=" * 70)
    print()

    params = poseidon_parameters()

    # Step 1: Create notes
    print("Step 1: Create two notes")
    print("-" * 70)
    alice = create_note(generate_secret(), params)
    bob = create_note(generate_secret(), params)
    print(f"✓ Alice's leaf: {alice.leaf[0]:#066x}"[:40] + "...")
    print(f"✓ Bob's leaf:   {bob.leaf[0]:#066x}"[:40] + "...")
    print()

    # Step 2: Build the accumulator
    print("Step 2: Build the accumulator")
    print("-" * 70)
    accumulator = MerkleAccumulator.build(params, [list(alice.leaf), list(bob.leaf)])
    print(f"✓ {accumulator}")
    print()

    # Step 3: Key ceremony
    print("Step 3: Generate proving and verifying keys")
    print("-" * 70)
    pk, vk = generate_keys(params, accumulator.depth)
    print(f"✓ Keys for depth {accumulator.depth}")
    print()

    # Step 4: Alice spends
    print("Step 4: Alice proves her spend")
    print("-" * 70)
    circuit = SpendCircuit(
        params=params,
        root=accumulator.root,
        path=accumulator.path(0),
        secret=alice.secret,
        nullifier=alice.nullifier,
    )
    proof = SpendProofSystem.prove(pk, circuit)
    print(f"✓ Proof verifies: {SpendProofSystem.verify(vk, circuit.public_inputs(), proof)}")
    print()

    # Step 5: Publish the nullifier
    print("Step 5: Publish the nullifier")
    print("-" * 70)
    ledger = SpendLedger(vk, accumulator.root)
    receipt = ledger.submit(proof, alice.nullifier)
    print(f"✓ Published {receipt.nullifier_hex[:18]}...")
    try:
        ledger.submit(proof, alice.nullifier)
    except DoubleSpendError:
        print("✓ Replaying the same spend is rejected")
    print()


if __name__ == "__main__":
    main()
