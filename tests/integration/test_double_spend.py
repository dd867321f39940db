"""
End-to-end spend tests through Groth16.

Key generation and proving for the depth-2 spend circuit are the slow part
of the suite, so everything here is marked slow and shares one key pair.
"""

import importlib.util
from pathlib import Path

import pytest

from generate_artifacts import generate_keys
from spendproof.config import Settings, reset_settings
from spendproof.core.circuit import SpendCircuit
from spendproof.core.commitment import compute_nullifier, negated_secret
from spendproof.core.ledger import DatabaseNullifierStore, SpendLedger
from spendproof.core.merkle_tree import MerkleAccumulator
from spendproof.core.proof_system import SpendProofSystem
from spendproof.crypto.groth16 import num_public_inputs
from spendproof.exceptions import DoubleSpendError, InvalidProofError, SynthesisError
from spendproof.storage.database import DatabaseManager
from spendproof.storage.files import (
    load_key_pair,
    load_leaked_secret,
    load_leaves,
    save_key_pair,
    save_leaked_secret,
    save_leaves,
)
from spendproof.utils.field import FIELD_MODULUS

pytestmark = pytest.mark.slow

INDEX = 2

DEMO_PATH = Path(__file__).parent.parent.parent / "examples" / "double_spend_demo.py"


@pytest.fixture(scope="module")
def spend_keys(params, accumulator):
    return generate_keys(params, accumulator.depth)


@pytest.fixture(scope="module")
def leaked_secret(notes):
    return notes[INDEX].secret


@pytest.fixture(scope="module")
def honest(params, accumulator, leaked_secret, spend_keys):
    pk, _ = spend_keys
    circuit = SpendCircuit(
        params=params,
        root=accumulator.root,
        path=accumulator.path(INDEX),
        secret=leaked_secret,
        nullifier=compute_nullifier(params, leaked_secret),
    )
    return circuit, SpendProofSystem.prove(pk, circuit)


@pytest.fixture(scope="module")
def hack(params, accumulator, leaked_secret, spend_keys):
    pk, _ = spend_keys
    secret_hack = negated_secret(leaked_secret)
    circuit = SpendCircuit(
        params=params,
        root=accumulator.root,
        path=accumulator.path(INDEX),
        secret=secret_hack,
        nullifier=compute_nullifier(params, secret_hack),
    )
    return circuit, SpendProofSystem.prove(pk, circuit)


class TestHonestSpend:
    """A spend by the owner of a leaf."""

    def test_proof_verifies(self, spend_keys, honest):
        _, vk = spend_keys
        circuit, proof = honest
        assert num_public_inputs(vk) == 2
        assert SpendProofSystem.verify(vk, circuit.public_inputs(), proof)

    def test_forged_nullifier_rejected(self, spend_keys, honest, notes):
        _, vk = spend_keys
        circuit, proof = honest
        assert not SpendProofSystem.verify(vk, [circuit.root, notes[0].nullifier], proof)

    def test_other_root_rejected(self, spend_keys, honest, params, leaves):
        _, vk = spend_keys
        circuit, proof = honest
        other = MerkleAccumulator.build(params, leaves[:3])
        assert not SpendProofSystem.verify(vk, [other.root, circuit.nullifier], proof)

    def test_wrong_nullifier_not_proven(self, spend_keys, honest):
        pk, vk = spend_keys
        circuit, _ = honest
        bad = SpendCircuit(
            params=circuit.params,
            root=circuit.root,
            path=circuit.path,
            secret=circuit.secret,
            nullifier=(circuit.nullifier + 1) % FIELD_MODULUS,
        )
        assert SpendProofSystem.attempt_spend(pk, vk, bad) == (False, None)

    def test_depth_mismatch(self, spend_keys, params, leaked_secret):
        pk, _ = spend_keys
        deeper = MerkleAccumulator.build(params, [[1]] * 5)
        circuit = SpendCircuit(
            params=params,
            root=deeper.root,
            path=deeper.path(0),
            secret=leaked_secret,
            nullifier=compute_nullifier(params, leaked_secret),
        )
        with pytest.raises(SynthesisError):
            SpendProofSystem.prove(pk, circuit)


class TestDoubleNullifier:
    """The same leaf spent under order - secret."""

    def test_second_proof_verifies(self, spend_keys, honest, hack):
        _, vk = spend_keys
        honest_circuit, _ = honest
        hack_circuit, proof = hack
        assert hack_circuit.root == honest_circuit.root
        assert hack_circuit.nullifier != honest_circuit.nullifier
        assert SpendProofSystem.verify(vk, hack_circuit.public_inputs(), proof)

    def test_ledger_accepts_both(self, spend_keys, honest, hack, accumulator, temp_db):
        _, vk = spend_keys
        db_manager = DatabaseManager(temp_db)
        db_manager.create_tables()
        ledger = SpendLedger(vk, accumulator.root, DatabaseNullifierStore(db_manager))

        (circuit, proof), (circuit_hack, proof_hack) = honest, hack
        assert ledger.submit(proof, circuit.nullifier).spend_number == 1
        assert ledger.submit(proof_hack, circuit_hack.nullifier).spend_number == 2

        with pytest.raises(DoubleSpendError):
            ledger.submit(proof, circuit.nullifier)

    def test_ledger_rejects_swapped_proofs(self, spend_keys, honest, hack, accumulator):
        _, vk = spend_keys
        ledger = SpendLedger(vk, accumulator.root)
        (circuit, proof), (circuit_hack, proof_hack) = honest, hack
        with pytest.raises(InvalidProofError):
            ledger.submit(proof_hack, circuit.nullifier)
        with pytest.raises(InvalidProofError):
            ledger.submit(proof, circuit_hack.nullifier)


class TestArtifacts:
    """The persisted artifacts reproduce the scenario."""

    def test_round_trip(self, tmp_path, spend_keys, leaves, leaked_secret, hack, accumulator, params):
        pk, vk = spend_keys
        settings = Settings(data_dir=tmp_path)
        save_leaves(settings.leaves_path, leaves)
        save_leaked_secret(settings.secret_path, leaked_secret, INDEX)
        save_key_pair(settings.keys_path, pk, vk, accumulator.depth)

        loaded_leaves = load_leaves(settings.leaves_path)
        _, loaded_vk, depth = load_key_pair(settings.keys_path)
        assert load_leaked_secret(settings.secret_path) == (leaked_secret, INDEX)
        assert MerkleAccumulator.build(params, loaded_leaves, depth).root == accumulator.root

        circuit_hack, proof_hack = hack
        assert SpendProofSystem.verify(loaded_vk, circuit_hack.public_inputs(), proof_hack)


@pytest.fixture
def demo(tmp_path, monkeypatch, spend_keys, leaves, accumulator, leaked_secret):
    """The double-spend demo pointed at artifacts in tmp_path."""
    pk, vk = spend_keys
    settings = Settings(data_dir=tmp_path)
    save_leaves(settings.leaves_path, leaves)
    save_key_pair(settings.keys_path, pk, vk, accumulator.depth)

    monkeypatch.setenv("SPENDPROOF_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("SPENDPROOF_DATABASE_URL", f"sqlite:///{tmp_path / 'demo.db'}")
    reset_settings()

    spec = importlib.util.spec_from_file_location("double_spend_demo", DEMO_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    def run(leaf_index):
        save_leaked_secret(settings.secret_path, leaked_secret, leaf_index)
        return module.main()

    yield run
    reset_settings()


class TestDemo:
    """The demo spends the leaf recorded next to the leaked secret."""

    def test_recorded_leaf_spent_twice(self, demo, monkeypatch, capsys):
        # the configured index points at another leaf; the recorded one wins
        monkeypatch.setenv("SPENDPROOF_LEAF_INDEX", "0")
        reset_settings()
        assert demo(INDEX) == 0
        out = capsys.readouterr().out
        assert f"Leaf {INDEX} was spent twice" in out
        assert "Spend #2 accepted" in out

    def test_recorded_index_out_of_range(self, demo, capsys):
        assert demo(9) == 1
        assert "Cannot spend leaf 9" in capsys.readouterr().out

    def test_configured_index_used_when_none_recorded(self, demo, monkeypatch, capsys):
        monkeypatch.setenv("SPENDPROOF_LEAF_INDEX", "7")
        reset_settings()
        assert demo(None) == 1
        assert "Cannot spend leaf 7" in capsys.readouterr().out
