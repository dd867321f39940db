"""Spend relation: commitments, accumulator, circuit, proofs and nullifier publication."""
