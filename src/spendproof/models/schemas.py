"""Pydantic data models for the on-disk artifacts.

Field elements are 0x-prefixed big-endian hex strings. Keys are zksnake's
serialized proving and verifying keys, hex-encoded.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from spendproof.utils.encoding import hex_to_bytes, hex_to_field
from spendproof.utils.field import FIELD_MODULUS


def _check_scalar(value: str) -> str:
    hex_to_field(value, FIELD_MODULUS)
    return value


class LeavesFile(BaseModel):
    """The ordered leaves of an accumulator."""
    leaves: List[List[str]] = Field(..., min_length=1, description="Leaves, each a list of field elements (hex)")

    @field_validator("leaves")
    @classmethod
    def check_leaves(cls, leaves: List[List[str]]) -> List[List[str]]:
        for leaf in leaves:
            if not leaf:
                raise ValueError("A leaf must contain at least one field element")
            for element in leaf:
                _check_scalar(element)
        return leaves


class SecretFile(BaseModel):
    """A single leaked spend secret."""
    secret: str = Field(..., description="Secret field element (hex)")
    leaf_index: Optional[int] = Field(default=None, ge=0, description="Leaf the secret spends")

    @field_validator("secret")
    @classmethod
    def check_secret(cls, secret: str) -> str:
        return _check_scalar(secret)


class KeyPairFile(BaseModel):
    """Proving and verifying key produced by the key ceremony."""
    tree_depth: int = Field(..., ge=1, description="Accumulator depth the keys were generated for")
    proving_key: str = Field(..., min_length=1, description="Serialized proving key (hex)")
    verifying_key: str = Field(..., min_length=1, description="Serialized verifying key (hex)")
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator("proving_key", "verifying_key")
    @classmethod
    def check_hex(cls, value: str) -> str:
        hex_to_bytes(value)
        return value
