"""Custom exceptions for the spend-proof system."""


class SpendProofException(Exception):
    """Base exception for all spend-proof errors."""
    pass


# Parameter Errors
class ParameterError(SpendProofException):
    """Raised when hash or group parameters are malformed or inconsistent."""
    pass


# Cryptography Errors
class CryptoError(SpendProofException):
    """Base exception for cryptographic errors."""
    pass


class InvalidSecretError(CryptoError):
    """Raised when a secret is not a usable scalar."""
    pass


# Merkle Tree Errors
class MerkleTreeError(SpendProofException):
    """Base exception for Merkle accumulator errors."""
    pass


class InvalidLeafIndexError(MerkleTreeError, IndexError):
    """Raised when a leaf or path index is out of range."""
    pass


class TreeCapacityExceededError(MerkleTreeError):
    """Raised when more leaves are given than the tree depth allows."""
    pass


# Proof Errors
class ProofError(SpendProofException):
    """Base exception for proof-related errors."""
    pass


class SynthesisError(ProofError):
    """Raised when a circuit cannot be synthesized (malformed instance)."""
    pass


class RelationUnsatisfiableError(ProofError):
    """Raised when the witness does not satisfy the spend relation."""
    pass


class InvalidProofError(ProofError):
    """Raised when proof verification fails where a valid proof is required."""
    pass


class DoubleSpendError(ProofError):
    """Raised when a nullifier has already been published."""
    pass


# Storage Errors
class StorageError(SpendProofException):
    """Base exception for storage errors."""
    pass


class SerializationError(StorageError):
    """Raised when serialization fails."""
    pass


class DeserializationError(StorageError):
    """Raised when deserialization fails."""
    pass
