"""Loading and saving the persisted artifacts: leaves, leaked secret, keys.

Loaders raise DeserializationError for any missing, malformed or out-of-range
content; callers treat that as fatal. Keys and proofs use zksnake's byte
encodings, hex-encoded.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError

from spendproof.crypto.groth16 import Proof, ProvingKey, VerifyingKey
from spendproof.exceptions import DeserializationError, SerializationError
from spendproof.models.schemas import KeyPairFile, LeavesFile, SecretFile
from spendproof.utils.encoding import bytes_to_hex, field_to_hex, hex_to_bytes, hex_to_field

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# zksnake raises these for truncated blobs and for points off the curve or
# outside the prime-order subgroup
_DECODE_ERRORS = (ValueError, AssertionError, IndexError, TypeError)


# Compact proof encoding

def proof_to_hex(proof: Proof) -> str:
    """Encode a proof as the hex of its 128-byte compressed form (A, B, C)."""
    try:
        return bytes_to_hex(proof.to_bytes())
    except (AttributeError, TypeError) as e:
        raise SerializationError(f"Cannot encode proof: {e}") from e


def proof_from_hex(hex_str: str) -> Proof:
    """
    Decode a proof produced by proof_to_hex.

    Raises:
        DeserializationError: If the encoding has the wrong size or a point
            is invalid
    """
    try:
        return Proof.from_bytes(hex_to_bytes(hex_str))
    except _DECODE_ERRORS as e:
        raise DeserializationError(f"Invalid proof encoding: {e}") from e


def _keys_from_hex(pk_hex: str, vk_hex: str) -> Tuple[ProvingKey, VerifyingKey]:
    try:
        return ProvingKey.from_bytes(hex_to_bytes(pk_hex)), VerifyingKey.from_bytes(hex_to_bytes(vk_hex))
    except _DECODE_ERRORS as e:
        raise DeserializationError(f"Invalid key encoding: {e}") from e


# Files

def _read(path: PathLike, model_cls):
    path = Path(path)
    try:
        return model_cls.model_validate_json(path.read_text())
    except FileNotFoundError as e:
        raise DeserializationError(f"{path} does not exist") from e
    except (OSError, ValidationError, ValueError) as e:
        logger.error(f"Failed to load {path}: {e}")
        raise DeserializationError(f"Malformed {model_cls.__name__} in {path}: {e}") from e


def _write(path: PathLike, model) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(model.model_dump_json(indent=2))
    except OSError as e:
        raise SerializationError(f"Could not write {path}: {e}") from e
    logger.info(f"Wrote {path}")
    return path


def load_leaves(path: PathLike) -> List[List[int]]:
    """Load the ordered accumulator leaves."""
    model = _read(path, LeavesFile)
    return [[hex_to_field(e) for e in leaf] for leaf in model.leaves]


def save_leaves(path: PathLike, leaves: List[List[int]]) -> Path:
    return _write(path, LeavesFile(leaves=[[field_to_hex(e) for e in leaf] for leaf in leaves]))


def load_leaked_secret(path: PathLike) -> Tuple[int, Optional[int]]:
    """
    Load the single leaked secret.

    Returns:
        (secret, index of the leaf it spends or None if not recorded)
    """
    model = _read(path, SecretFile)
    return hex_to_field(model.secret), model.leaf_index


def save_leaked_secret(path: PathLike, secret: int, leaf_index: Optional[int] = None) -> Path:
    return _write(path, SecretFile(secret=field_to_hex(secret), leaf_index=leaf_index))


def load_key_pair(path: PathLike) -> Tuple[ProvingKey, VerifyingKey, int]:
    """
    Load the key pair written by the key ceremony.

    Returns:
        (proving key, verifying key, tree depth)
    """
    model = _read(path, KeyPairFile)
    pk, vk = _keys_from_hex(model.proving_key, model.verifying_key)
    if not vk.ic or len(pk.tau_1) != len(pk.tau_2) or len(pk.tau_1) != len(pk.target_1):
        raise DeserializationError(f"Inconsistent key sizes in {path}")
    return pk, vk, model.tree_depth


def save_key_pair(path: PathLike, pk: ProvingKey, vk: VerifyingKey, tree_depth: int) -> Path:
    return _write(
        path,
        KeyPairFile(
            tree_depth=tree_depth,
            proving_key=bytes_to_hex(pk.to_bytes()),
            verifying_key=bytes_to_hex(vk.to_bytes()),
        ),
    )
