"""Unit tests for the spend relation."""

from dataclasses import replace

import pytest

from spendproof.core.circuit import SpendCircuit
from spendproof.core.commitment import compute_nullifier, generate_secret, negated_secret
from spendproof.core.merkle_tree import AuthenticationPath
from spendproof.exceptions import SynthesisError
from spendproof.utils.field import FIELD_MODULUS

INDEX = 2


@pytest.fixture
def circuit(params, notes, accumulator):
    note = notes[INDEX]
    return SpendCircuit(
        params=params,
        root=accumulator.root,
        path=accumulator.path(INDEX),
        secret=note.secret,
        nullifier=note.nullifier,
    )


class TestSpendCircuit:
    """Test satisfiability of the spend relation."""

    def test_honest_spend(self, circuit):
        cs = circuit.synthesize()
        assert cs.is_satisfied()
        assert cs.public_inputs == circuit.public_inputs()

    def test_public_inputs_order(self, circuit, accumulator, notes):
        assert circuit.public_inputs() == [accumulator.root, notes[INDEX].nullifier]

    def test_wrong_nullifier(self, circuit):
        assert not replace(circuit, nullifier=(circuit.nullifier + 1) % FIELD_MODULUS).is_satisfied()

    def test_nullifier_of_other_note(self, circuit, notes):
        assert not replace(circuit, nullifier=notes[0].nullifier).is_satisfied()

    def test_wrong_root(self, circuit):
        assert not replace(circuit, root=(circuit.root + 1) % FIELD_MODULUS).is_satisfied()

    def test_path_of_other_leaf(self, circuit, accumulator):
        assert not replace(circuit, path=accumulator.path(1)).is_satisfied()

    def test_secret_not_in_tree(self, circuit, params):
        secret = generate_secret()
        outsider = replace(circuit, secret=secret, nullifier=compute_nullifier(params, secret))
        assert not outsider.is_satisfied()

    def test_negated_secret_also_satisfies(self, circuit, params):
        """The x-only leaf lets order - secret spend the same leaf."""
        secret_hack = negated_secret(circuit.secret)
        nullifier_hack = compute_nullifier(params, secret_hack)
        hack = replace(circuit, secret=secret_hack, nullifier=nullifier_hack)
        assert hack.is_satisfied()
        assert hack.public_inputs()[0] == circuit.public_inputs()[0]
        assert nullifier_hack != circuit.nullifier

    def test_secret_bound(self, circuit):
        assert circuit.secret_bound == FIELD_MODULUS - 1


class TestSynthesis:
    """Test circuit shape and malformed instances."""

    def test_blank_shape_matches(self, circuit, params, accumulator):
        real = circuit.synthesize()
        blank = SpendCircuit.blank(params, accumulator.depth).synthesize()
        assert blank.num_constraints == real.num_constraints
        assert blank.num_inputs == real.num_inputs == 3
        assert blank.num_witnesses == real.num_witnesses
        assert [row[3] for row in blank.constraints] == [row[3] for row in real.constraints]

    def test_blank_is_unsatisfied(self, params):
        assert not SpendCircuit.blank(params, 2).is_satisfied()

    def test_depth_changes_shape(self, params):
        small = SpendCircuit.blank(params, 1).synthesize()
        large = SpendCircuit.blank(params, 2).synthesize()
        assert large.num_constraints > small.num_constraints

    @pytest.mark.parametrize("field", ["root", "secret", "nullifier"])
    def test_out_of_range_value(self, circuit, field):
        with pytest.raises(SynthesisError):
            replace(circuit, **{field: FIELD_MODULUS}).synthesize()

    def test_malformed_path(self, circuit):
        with pytest.raises(SynthesisError):
            replace(circuit, path=[(0, False), (0, True)]).synthesize()

    def test_unreduced_sibling(self, circuit):
        with pytest.raises(SynthesisError):
            replace(circuit, path=AuthenticationPath(((FIELD_MODULUS, False), (0, True)))).synthesize()

    def test_invalid_params(self, circuit, params):
        with pytest.raises(SynthesisError):
            replace(circuit, params=replace(params, full_rounds=7)).synthesize()
