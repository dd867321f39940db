"""Storage layer for persistent data."""

from spendproof.storage.database import (
    DatabaseManager,
    PublishedNullifier,
    AccumulatorRoot,
    Base,
    get_db_manager,
    reset_db_manager,
)
from spendproof.storage.files import (
    load_leaves,
    save_leaves,
    load_leaked_secret,
    save_leaked_secret,
    load_key_pair,
    save_key_pair,
    proof_to_hex,
    proof_from_hex,
)

__all__ = [
    "DatabaseManager",
    "PublishedNullifier",
    "AccumulatorRoot",
    "Base",
    "get_db_manager",
    "reset_db_manager",
    "load_leaves",
    "save_leaves",
    "load_leaked_secret",
    "save_leaked_secret",
    "load_key_pair",
    "save_key_pair",
    "proof_to_hex",
    "proof_from_hex",
]
