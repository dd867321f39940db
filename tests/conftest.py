"""Pytest configuration and fixtures."""

import random
import sys
from pathlib import Path

import pytest

# Add src and the root scripts to path for imports
root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path))
sys.path.insert(0, str(root_path / "src"))

from spendproof.core.commitment import create_note, generate_secret  # noqa: E402
from spendproof.core.merkle_tree import MerkleAccumulator  # noqa: E402
from spendproof.crypto.grumpkin import GRUMPKIN  # noqa: E402
from spendproof.crypto.poseidon import poseidon_parameters  # noqa: E402
from spendproof.utils.field import FIELD_MODULUS  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: Groth16 key generation and proving for the spend circuit")


def _doubly_spendable_secret(rng):
    """A secret whose negation order - secret is also a valid secret."""
    secret = generate_secret(rng)
    while GRUMPKIN.order - secret >= FIELD_MODULUS:
        secret = generate_secret(rng)
    return secret


@pytest.fixture(scope="session")
def params():
    """Default Poseidon parameters."""
    return poseidon_parameters()


@pytest.fixture(scope="session")
def notes(params):
    """Four notes with deterministic secrets."""
    rng = random.Random(2024)
    return [create_note(_doubly_spendable_secret(rng), params) for _ in range(4)]


@pytest.fixture(scope="session")
def leaves(notes):
    return [list(note.leaf) for note in notes]


@pytest.fixture(scope="session")
def accumulator(params, leaves):
    """Depth-2 accumulator over the four notes."""
    return MerkleAccumulator.build(params, leaves)


@pytest.fixture
def temp_db(tmp_path):
    """Fixture providing a temporary database URL."""
    return f"sqlite:///{tmp_path / 'test.db'}"
