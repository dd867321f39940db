"""Unit tests for the Groth16 backend on a small circuit."""

import pytest
from zksnake.ecc import EllipticCurve

from spendproof.crypto.groth16 import CompiledR1CS, Proof, num_public_inputs, prove, setup, verify
from spendproof.exceptions import RelationUnsatisfiableError, SynthesisError
from spendproof.r1cs.constraint_system import ConstraintSystem
from spendproof.r1cs.gadgets import enforce_equal, mul
from spendproof.utils.field import FIELD_MODULUS

BN254 = EllipticCurve("BN254")


def cubic(x: int, out: int) -> ConstraintSystem:
    """x^3 + x + 5 = out with out public."""
    cs = ConstraintSystem()
    out_var = cs.alloc_input(out, "out")
    x_var = cs.alloc_witness(x, "x")
    x2 = mul(cs, x_var, x_var, "x2")
    x3 = mul(cs, x2, x_var, "x3")
    enforce_equal(cs, x3 + x_var + 5, out_var, "out")
    return cs


@pytest.fixture(scope="module")
def keys():
    return setup(cubic(0, 0))


@pytest.fixture(scope="module")
def proof(keys):
    pk, _ = keys
    return prove(pk, cubic(3, 35))


class TestCompiledR1CS:
    """Test the translation into zksnake's matrix form."""

    def test_shape(self):
        r1cs = CompiledR1CS(cubic(3, 35))
        assert r1cs.n_public == 2
        # three constraints plus one row per instance variable
        assert r1cs.A.n_row == 5
        assert r1cs.A.n_col == 5
        assert r1cs.domain_size == 8

    def test_witness_layout(self):
        public, private = CompiledR1CS(cubic(3, 35)).witness()
        assert public == [1, 35]
        assert private == [3, 9, 27]

    def test_satisfied(self):
        r1cs = CompiledR1CS(cubic(3, 35))
        assert r1cs.is_sat(*r1cs.witness())

    def test_unsatisfied(self):
        r1cs = CompiledR1CS(cubic(3, 36))
        assert not r1cs.is_sat(*r1cs.witness())


class TestGroth16:
    """Test setup, proving and verification."""

    def test_key_sizes(self, keys):
        pk, vk = keys
        assert num_public_inputs(vk) == 1
        assert len(pk.kdelta_1) == 3
        assert len(pk.tau_1) == 8

    def test_valid_proof(self, keys, proof):
        _, vk = keys
        assert verify(vk, [35], proof)

    def test_wrong_public_input(self, keys, proof):
        _, vk = keys
        assert not verify(vk, [36], proof)

    def test_wrong_input_count(self, keys, proof):
        _, vk = keys
        assert not verify(vk, [], proof)
        assert not verify(vk, [35, 0], proof)

    def test_input_outside_field(self, keys, proof):
        _, vk = keys
        assert not verify(vk, [35 + FIELD_MODULUS], proof)
        assert not verify(vk, ["35"], proof)

    def test_tampered_proof(self, keys, proof):
        _, vk = keys
        assert not verify(vk, [35], Proof(proof.A + BN254.G1(), proof.B, proof.C))
        assert not verify(vk, [35], Proof(proof.A, proof.B, -proof.C))

    def test_points_of_the_wrong_group(self, keys, proof):
        _, vk = keys
        assert not verify(vk, [35], Proof(proof.B, proof.A, proof.C))
        assert not verify(vk, [35], Proof(1, proof.B, proof.C))

    def test_missing_proof(self, keys):
        _, vk = keys
        assert not verify(vk, [35], None)

    def test_proofs_are_randomized(self, keys, proof):
        pk, vk = keys
        other = prove(pk, cubic(3, 35))
        assert other.A != proof.A
        assert verify(vk, [35], other)

    def test_unsatisfied_system_rejected(self, keys):
        pk, _ = keys
        with pytest.raises(RelationUnsatisfiableError, match="out"):
            prove(pk, cubic(3, 36))

    def test_shape_mismatch_rejected(self, keys):
        pk, _ = keys
        cs = cubic(3, 35)
        cs.alloc_witness(0, "extra")
        with pytest.raises(SynthesisError):
            prove(pk, cs)
