"""Rank-1 constraint systems and gadgets"""

from spendproof.r1cs.constraint_system import (
    ONE,
    ConstraintSystem,
    LinearCombination,
)

__all__ = [
    'ONE',
    'ConstraintSystem',
    'LinearCombination',
]
