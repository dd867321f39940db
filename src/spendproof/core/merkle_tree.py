"""Merkle accumulator over leaf commitments, natively and in-circuit."""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from spendproof.crypto.poseidon import (
    PoseidonParameters,
    leaf_hash,
    leaf_hash_var,
    two_to_one_hash,
    two_to_one_hash_var,
)
from spendproof.exceptions import (
    InvalidLeafIndexError,
    MerkleTreeError,
    ParameterError,
    TreeCapacityExceededError,
)
from spendproof.r1cs.constraint_system import ConstraintSystem, LinearCombination
from spendproof.r1cs.gadgets import alloc_boolean, select
from spendproof.utils.field import is_field_element

EMPTY_DIGEST = 0
MAX_DEPTH = 32


@dataclass(frozen=True)
class AuthenticationPath:
    """
    Sibling digests from a leaf up to the root.

    Each entry is (sibling, is_right) where is_right is True when the node on
    the path is the right child, i.e. the sibling is hashed on the left.
    """

    nodes: Tuple[Tuple[int, bool], ...]

    @property
    def depth(self) -> int:
        return len(self.nodes)

    @property
    def siblings(self) -> List[int]:
        return [sibling for sibling, _ in self.nodes]

    @property
    def leaf_index(self) -> int:
        """Leaf position encoded by the directions."""
        return sum(1 << level for level, (_, is_right) in enumerate(self.nodes) if is_right)

    @classmethod
    def blank(cls, depth: int) -> "AuthenticationPath":
        """All-zero path of a given depth, used to synthesize circuit shapes."""
        return cls(tuple((EMPTY_DIGEST, False) for _ in range(depth)))

    def compute_root(self, params: PoseidonParameters, leaf: Sequence[int]) -> int:
        current = leaf_hash(params, leaf)
        for sibling, is_right in self.nodes:
            if is_right:
                current = two_to_one_hash(params, sibling, current)
            else:
                current = two_to_one_hash(params, current, sibling)
        return current

    def verify(self, params: PoseidonParameters, root: int, leaf: Sequence[int]) -> bool:
        """
        Recompute the root from leaf and compare.

        Returns:
            bool: False for a mismatch or a malformed path or leaf
        """
        try:
            for sibling, is_right in self.nodes:
                if not is_field_element(sibling) or not isinstance(is_right, bool):
                    return False
            return self.compute_root(params, leaf) == root
        except (TypeError, ValueError, ParameterError):
            return False


def verify(params: PoseidonParameters, root: int, leaf: Sequence[int], path: AuthenticationPath) -> bool:
    """Module-level form of AuthenticationPath.verify."""
    if not isinstance(path, AuthenticationPath):
        return False
    return path.verify(params, root, leaf)


def _required_depth(num_leaves: int) -> int:
    depth = 1
    while (1 << depth) < num_leaves:
        depth += 1
    return depth


class MerkleAccumulator:
    """
    Fixed-depth binary Merkle tree built once from an ordered leaf list.

    Digests are kept in an arena indexed by level and position. Level 0 holds
    leaf digests; slots past the last leaf are empty subtrees, whose digest at
    level k is empty[k] (empty[0] = EMPTY_DIGEST, empty[k + 1] =
    H(empty[k], empty[k])). Only the non-empty prefix of each level is stored.
    """

    def __init__(self, params: PoseidonParameters, depth: int, leaves: List[tuple], levels: List[List[int]],
                 empty: List[int]):
        self.params = params
        self.depth = depth
        self._leaves = leaves
        self._levels = levels
        self._empty = empty

    @classmethod
    def build(
        cls, params: PoseidonParameters, leaves: Sequence[Sequence[int]], depth: Optional[int] = None
    ) -> "MerkleAccumulator":
        """
        Hash the leaves and fold them into a root.

        Args:
            params: Hash parameters for both leaf and two-to-one hashing
            leaves: Ordered leaves, each a sequence of field elements
            depth: Tree depth; defaults to the smallest that fits the leaves

        Raises:
            MerkleTreeError: If leaves is empty or depth is out of range
            TreeCapacityExceededError: If the leaves do not fit in depth
            ParameterError: If a leaf is not a sequence of field elements
        """
        if not leaves:
            raise MerkleTreeError("Cannot build an accumulator without leaves")

        required = _required_depth(len(leaves))
        if depth is None:
            depth = required
        if depth < 1 or depth > MAX_DEPTH:
            raise MerkleTreeError(f"Tree depth must be between 1 and {MAX_DEPTH}")
        if depth < required:
            raise TreeCapacityExceededError(
                f"{len(leaves)} leaves do not fit in a tree of depth {depth} (max {1 << depth})"
            )

        frozen = [tuple(leaf) for leaf in leaves]

        empty = [EMPTY_DIGEST]
        for _ in range(depth):
            empty.append(two_to_one_hash(params, empty[-1], empty[-1]))

        level = [leaf_hash(params, leaf) for leaf in frozen]
        levels = [level]
        for k in range(depth):
            if len(level) % 2:
                level = level + [empty[k]]
            level = [two_to_one_hash(params, level[i], level[i + 1]) for i in range(0, len(level), 2)]
            levels.append(level)

        return cls(params, depth, frozen, levels, empty)

    def _node(self, level: int, position: int) -> int:
        nodes = self._levels[level]
        return nodes[position] if position < len(nodes) else self._empty[level]

    @property
    def root(self) -> int:
        return self._levels[self.depth][0]

    @property
    def capacity(self) -> int:
        return 1 << self.depth

    @property
    def leaves(self) -> List[tuple]:
        return list(self._leaves)

    def leaf(self, index: int) -> tuple:
        self._check_index(index)
        return self._leaves[index]

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or index < 0 or index >= len(self._leaves):
            raise InvalidLeafIndexError(f"Invalid leaf index: {index}")

    def path(self, index: int) -> AuthenticationPath:
        """
        Authentication path for the leaf at index.

        Raises:
            InvalidLeafIndexError: If index is not a leaf position
        """
        self._check_index(index)
        nodes = []
        position = index
        for level in range(self.depth):
            nodes.append((self._node(level, position ^ 1), bool(position & 1)))
            position >>= 1
        return AuthenticationPath(tuple(nodes))

    def get_state(self) -> Dict[str, object]:
        """Summary of the tree for persistence."""
        return {
            "depth": self.depth,
            "capacity": self.capacity,
            "num_leaves": len(self._leaves),
            "root": self.root,
        }

    def __len__(self) -> int:
        return len(self._leaves)

    def __repr__(self) -> str:
        return (
            f"MerkleAccumulator(depth={self.depth}, "
            f"leaves={len(self._leaves)}/{self.capacity}, "
            f"root={format(self.root, '064x')[:16]}...)"
        )


# In-circuit membership

@dataclass
class AuthenticationPathVar:
    siblings: List[LinearCombination]
    directions: List[LinearCombination]

    @classmethod
    def allocate(cls, cs: ConstraintSystem, path: AuthenticationPath) -> "AuthenticationPathVar":
        """Witness the siblings and boolean directions of a path."""
        siblings = []
        directions = []
        with cs.namespace("path"):
            for level, (sibling, is_right) in enumerate(path.nodes):
                siblings.append(cs.alloc_witness(sibling, f"sibling{level}"))
                directions.append(alloc_boolean(cs, is_right, f"is_right{level}"))
        return cls(siblings, directions)


def verify_membership_var(
    cs: ConstraintSystem,
    params: PoseidonParameters,
    leaf: Sequence[LinearCombination],
    path: AuthenticationPathVar,
) -> LinearCombination:
    """
    Recompute the root in-circuit from a leaf and a witnessed path.

    Mirrors AuthenticationPath.compute_root. Ordering each pair costs one
    constraint: left is selected and right = current + sibling - left.
    """
    with cs.namespace("membership"):
        current = leaf_hash_var(cs, params, leaf)
        for level, (sibling, is_right) in enumerate(zip(path.siblings, path.directions)):
            left = select(cs, is_right, sibling, current, f"left{level}")
            right = current + sibling - left
            with cs.namespace(f"level{level}"):
                current = two_to_one_hash_var(cs, params, left, right)
        return current
