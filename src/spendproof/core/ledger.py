"""Nullifier publication.

A spend is accepted when its proof verifies against the accumulator root and
its nullifier has not been published before; the nullifier is then published.
Uniqueness of nullifiers is the only double-spend check, so two different
nullifiers for the same leaf are both accepted.

Example Usage:
    >>> ledger = SpendLedger(verifying_key, accumulator.root)
    >>> receipt = ledger.submit(proof, nullifier)
    >>> ledger.is_spent(nullifier)
    True
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional, Set

from spendproof.core.proof_system import SpendProofSystem
from spendproof.crypto.groth16 import Proof, VerifyingKey
from spendproof.exceptions import DoubleSpendError, InvalidProofError
from spendproof.storage.database import DatabaseManager
from spendproof.storage.files import proof_to_hex
from spendproof.utils.encoding import field_to_hex

logger = logging.getLogger(__name__)


@dataclass
class NullifierRecord:
    """
    Record of a published nullifier.

    Tracks when and against which root it was published.
    """

    nullifier: int
    merkle_root: int
    published_at: str
    proof_hex: Optional[str] = None


class NullifierSet:
    """
    In-memory set of published nullifiers.

    The set grows over time and never shrinks.
    """

    def __init__(self):
        self.nullifiers: Set[int] = set()
        self.records: Dict[int, NullifierRecord] = {}

    def publish(self, nullifier: int, merkle_root: int, proof_hex: Optional[str] = None) -> bool:
        """
        Publish a nullifier.

        Returns:
            True if published, False if it was already published
        """
        if self.is_spent(nullifier):
            return False

        self.nullifiers.add(nullifier)
        self.records[nullifier] = NullifierRecord(
            nullifier=nullifier,
            merkle_root=merkle_root,
            published_at=datetime.now(timezone.utc).isoformat(),
            proof_hex=proof_hex,
        )
        return True

    def is_spent(self, nullifier: int) -> bool:
        """Check if a nullifier has been published."""
        return nullifier in self.nullifiers

    def get_record(self, nullifier: int) -> Optional[NullifierRecord]:
        return self.records.get(nullifier)

    def __len__(self) -> int:
        return len(self.nullifiers)


class DatabaseNullifierStore:
    """Published nullifiers kept in the published_nullifiers table."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def publish(self, nullifier: int, merkle_root: int, proof_hex: Optional[str] = None) -> bool:
        with self.db_manager.get_session() as session:
            if self.db_manager.is_nullifier_published(session, nullifier):
                return False
            self.db_manager.publish_nullifier(session, nullifier, merkle_root, proof_hex)
            return True

    def is_spent(self, nullifier: int) -> bool:
        with self.db_manager.get_session() as session:
            return self.db_manager.is_nullifier_published(session, nullifier)

    def __len__(self) -> int:
        with self.db_manager.get_session() as session:
            return self.db_manager.count_nullifiers(session)


@dataclass
class SpendReceipt:
    nullifier: int
    merkle_root: int
    spend_number: int

    @property
    def nullifier_hex(self) -> str:
        return field_to_hex(self.nullifier)


class SpendLedger:
    """Accepts spends against one accumulator root."""

    def __init__(self, verifying_key: VerifyingKey, root: int, store=None):
        self.verifying_key = verifying_key
        self.root = root
        self.store = store if store is not None else NullifierSet()

    def is_spent(self, nullifier: int) -> bool:
        return self.store.is_spent(nullifier)

    def submit(self, proof: Proof, nullifier: int) -> SpendReceipt:
        """
        Verify a spend and publish its nullifier.

        Raises:
            InvalidProofError: If the proof does not verify for [root, nullifier]
            DoubleSpendError: If the nullifier was already published
        """
        if not SpendProofSystem.verify(self.verifying_key, [self.root, nullifier], proof):
            raise InvalidProofError("Spend proof does not verify against the accumulator root")

        if not self.store.publish(nullifier, self.root, proof_to_hex(proof)):
            raise DoubleSpendError(f"Nullifier {field_to_hex(nullifier)} was already published")

        logger.info(f"Published nullifier {field_to_hex(nullifier)}")
        return SpendReceipt(nullifier=nullifier, merkle_root=self.root, spend_number=len(self.store))
