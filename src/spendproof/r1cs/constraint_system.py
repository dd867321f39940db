"""Rank-1 constraint systems.

A constraint is a triple of linear combinations (a, b, c) asserting
<a, z> * <b, z> = <c, z> over the circuit field, where z is the full
assignment: the constant one, then the public inputs, then the witnesses.

Variables are keyed by sign while a circuit is being synthesized so inputs
and witnesses can be allocated in any order: instance variable i has key i
(key 0 is the constant one) and witness variable j has key -(j + 1).
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple, Union

from spendproof.utils.field import FIELD_MODULUS

ONE = 0

Term = Tuple[int, int]
Row = List[Term]


class LinearCombination:
    """Sparse linear combination {variable key: coefficient}."""

    __slots__ = ("terms", "modulus")

    def __init__(self, terms: Optional[Dict[int, int]] = None, modulus: int = FIELD_MODULUS):
        self.modulus = modulus
        self.terms: Dict[int, int] = {}
        if terms:
            for key, coeff in terms.items():
                coeff %= modulus
                if coeff:
                    self.terms[key] = coeff

    @classmethod
    def constant(cls, value: int, modulus: int = FIELD_MODULUS) -> "LinearCombination":
        return cls({ONE: value}, modulus)

    @classmethod
    def variable(cls, key: int, modulus: int = FIELD_MODULUS) -> "LinearCombination":
        return cls({key: 1}, modulus)

    def is_constant(self) -> bool:
        return all(key == ONE for key in self.terms)

    @property
    def constant_value(self) -> int:
        return self.terms.get(ONE, 0)

    def _combine(self, other: "LCLike", sign: int) -> "LinearCombination":
        other = as_lc(other, self.modulus)
        p = self.modulus
        out = LinearCombination(modulus=p)
        terms = dict(self.terms)
        for key, coeff in other.terms.items():
            value = (terms.get(key, 0) + sign * coeff) % p
            if value:
                terms[key] = value
            else:
                terms.pop(key, None)
        out.terms = terms
        return out

    def __add__(self, other: "LCLike") -> "LinearCombination":
        return self._combine(other, 1)

    def __radd__(self, other: "LCLike") -> "LinearCombination":
        return self._combine(other, 1)

    def __sub__(self, other: "LCLike") -> "LinearCombination":
        return self._combine(other, -1)

    def __rsub__(self, other: "LCLike") -> "LinearCombination":
        return as_lc(other, self.modulus)._combine(self, -1)

    def __neg__(self) -> "LinearCombination":
        return LinearCombination({k: -c for k, c in self.terms.items()}, self.modulus)

    def __mul__(self, scalar: int) -> "LinearCombination":
        if not isinstance(scalar, int):
            raise TypeError("Linear combinations can only be scaled by constants")
        return LinearCombination({k: c * scalar for k, c in self.terms.items()}, self.modulus)

    __rmul__ = __mul__

    def evaluate(self, values: "ConstraintSystem") -> int:
        total = 0
        for key, coeff in self.terms.items():
            total += coeff * values.variable_value(key)
        return total % self.modulus

    def __len__(self) -> int:
        return len(self.terms)

    def __repr__(self) -> str:
        return f"LinearCombination({self.terms})"


LCLike = Union[LinearCombination, int]


def as_lc(value: LCLike, modulus: int = FIELD_MODULUS) -> LinearCombination:
    if isinstance(value, LinearCombination):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return LinearCombination.constant(value, modulus)
    raise TypeError(f"Expected LinearCombination or int, got {type(value)}")


class ConstraintSystem:
    """
    Collects variables, their assigned values and constraints.

    Every allocation carries a value. Key generation synthesizes a blank
    instance (all-zero witness), so the shape of the system never depends on
    the values.
    """

    def __init__(self, modulus: int = FIELD_MODULUS):
        self.modulus = modulus
        self.input_assignment: List[int] = [1]
        self.witness_assignment: List[int] = []
        self.input_labels: List[str] = ["one"]
        self.witness_labels: List[str] = []
        self.constraints: List[Tuple[LinearCombination, LinearCombination, LinearCombination, str]] = []
        self._namespace: List[str] = []

    # Allocation

    def _check_value(self, value: int, label: str) -> int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"Value for {label} must be an int, got {type(value)}")
        return value % self.modulus

    def alloc_input(self, value: int, label: str = "input") -> LinearCombination:
        """Allocate a public input."""
        label = self._qualify(label)
        self.input_assignment.append(self._check_value(value, label))
        self.input_labels.append(label)
        return LinearCombination.variable(len(self.input_assignment) - 1, self.modulus)

    def alloc_witness(self, value: int, label: str = "witness") -> LinearCombination:
        """Allocate a private witness."""
        label = self._qualify(label)
        self.witness_assignment.append(self._check_value(value, label))
        self.witness_labels.append(label)
        return LinearCombination.variable(-len(self.witness_assignment), self.modulus)

    def constant(self, value: int) -> LinearCombination:
        return LinearCombination.constant(value, self.modulus)

    # Constraints

    def enforce(self, a: LCLike, b: LCLike, c: LCLike, label: str = "constraint") -> None:
        """Add the constraint a * b = c."""
        self.constraints.append(
            (as_lc(a, self.modulus), as_lc(b, self.modulus), as_lc(c, self.modulus), self._qualify(label))
        )

    @contextmanager
    def namespace(self, name: str) -> Iterator[None]:
        """Prefix labels of everything allocated inside the block."""
        self._namespace.append(name)
        try:
            yield
        finally:
            self._namespace.pop()

    def _qualify(self, label: str) -> str:
        return "/".join(self._namespace + [label])

    # Values

    def variable_value(self, key: int) -> int:
        if key >= 0:
            return self.input_assignment[key]
        return self.witness_assignment[-key - 1]

    def value(self, lc: LCLike) -> int:
        return as_lc(lc, self.modulus).evaluate(self)

    def which_is_unsatisfied(self) -> Optional[str]:
        """Label of the first violated constraint, or None."""
        p = self.modulus
        for a, b, c, label in self.constraints:
            if a.evaluate(self) * b.evaluate(self) % p != c.evaluate(self):
                return label
        return None

    def is_satisfied(self) -> bool:
        return self.which_is_unsatisfied() is None

    # Shape

    @property
    def num_constraints(self) -> int:
        return len(self.constraints)

    @property
    def num_inputs(self) -> int:
        """Number of instance variables, including the constant one."""
        return len(self.input_assignment)

    @property
    def num_witnesses(self) -> int:
        return len(self.witness_assignment)

    @property
    def num_variables(self) -> int:
        return self.num_inputs + self.num_witnesses

    @property
    def public_inputs(self) -> List[int]:
        return self.input_assignment[1:]

    def full_assignment(self) -> List[int]:
        return self.input_assignment + self.witness_assignment

    def flat_index(self, key: int) -> int:
        return key if key >= 0 else self.num_inputs + (-key - 1)

    def to_matrices(self) -> Tuple[List[Row], List[Row], List[Row]]:
        """A, B, C as sparse rows over flat variable indices."""
        a_rows: List[Row] = []
        b_rows: List[Row] = []
        c_rows: List[Row] = []
        for a, b, c, _ in self.constraints:
            a_rows.append([(self.flat_index(k), v) for k, v in a.terms.items()])
            b_rows.append([(self.flat_index(k), v) for k, v in b.terms.items()])
            c_rows.append([(self.flat_index(k), v) for k, v in c.terms.items()])
        return a_rows, b_rows, c_rows

    def __repr__(self) -> str:
        return (
            f"ConstraintSystem(constraints={self.num_constraints}, "
            f"inputs={self.num_inputs}, witnesses={self.num_witnesses})"
        )
