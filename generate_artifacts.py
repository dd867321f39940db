#!/usr/bin/env python3
"""
Artifact generation script.

Builds a small leaf set, leaks the secret of one leaf, runs the key ceremony
for the spend circuit and writes everything to the data directory.
"""

import random
import sys
from pathlib import Path
from typing import Tuple

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from spendproof.config import configure_logging, get_settings
from spendproof.core.circuit import SpendCircuit
from spendproof.core.commitment import create_note, generate_secret
from spendproof.core.merkle_tree import MerkleAccumulator
from spendproof.crypto import groth16
from spendproof.crypto.groth16 import ProvingKey, VerifyingKey
from spendproof.crypto.grumpkin import GRUMPKIN, CurveGroup
from spendproof.crypto.poseidon import PoseidonParameters, poseidon_parameters
from spendproof.storage.files import save_key_pair, save_leaked_secret, save_leaves
from spendproof.utils.field import FIELD_MODULUS

NUM_LEAVES = 4


def generate_keys(
    params: PoseidonParameters, depth: int, group: CurveGroup = GRUMPKIN
) -> Tuple[ProvingKey, VerifyingKey]:
    """
    Run the key ceremony for spend circuits over trees of a given depth.

    Keys depend only on the circuit shape, so a blank instance is
    synthesized. In a deployment a trusted party runs this once and
    distributes the keys.
    """
    cs = SpendCircuit.blank(params, depth, group).synthesize()
    return groth16.setup(cs)


def generate_artifacts():
    """Write leaves, the leaked secret and the key pair."""
    settings = get_settings()
    rng = random.Random(settings.rng_seed)
    params = poseidon_parameters()

    if settings.leaf_index >= NUM_LEAVES:
        raise SystemExit(f"Leaf index {settings.leaf_index} is outside the {NUM_LEAVES} generated leaves")

    print("🔄 Generating artifacts...")

    notes = []
    for _ in range(NUM_LEAVES):
        secret = generate_secret(rng)
        # order - secret must also be a field element for the second spend
        while GRUMPKIN.order - secret >= FIELD_MODULUS:
            secret = generate_secret(rng)
        notes.append(create_note(secret, params))

    leaves = [list(note.leaf) for note in notes]
    accumulator = MerkleAccumulator.build(params, leaves, settings.tree_depth)
    print(f"  🌳 Accumulator: {len(accumulator)} leaves, depth {accumulator.depth}")

    save_leaves(settings.leaves_path, leaves)
    save_leaked_secret(settings.secret_path, notes[settings.leaf_index].secret, settings.leaf_index)
    print(f"  🔑 Leaked secret of leaf {settings.leaf_index}")

    print("  ⏳ Running key ceremony (this takes a while)...")
    pk, vk = generate_keys(params, accumulator.depth)
    save_key_pair(settings.keys_path, pk, vk, accumulator.depth)

    print(f"✅ Artifacts written to {settings.data_dir}")


if __name__ == "__main__":
    configure_logging()
    generate_artifacts()
