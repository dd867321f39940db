"""Encoding and decoding utilities."""

from spendproof.utils.field import FIELD_MODULUS

FIELD_ELEMENT_SIZE = 32  # bytes


def bytes_to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string.

    Args:
        data: Bytes to convert

    Returns:
        str: Hexadecimal string with '0x' prefix
    """
    return "0x" + data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Convert hexadecimal string to bytes.

    Args:
        hex_str: Hexadecimal string (with or without '0x' prefix)

    Returns:
        bytes: Decoded bytes

    Raises:
        ValueError: If hex string is invalid
    """
    if hex_str.startswith("0x"):
        hex_str = hex_str[2:]

    if len(hex_str) % 2 != 0:
        raise ValueError("Hex string must have even number of characters")

    return bytes.fromhex(hex_str)


def field_to_bytes(value: int) -> bytes:
    """Serialize a field element as 32 big-endian bytes."""
    return value.to_bytes(FIELD_ELEMENT_SIZE, "big")


def field_to_hex(value: int) -> str:
    """Serialize a field element as a 0x-prefixed, zero-padded hex string."""
    return bytes_to_hex(field_to_bytes(value))


def hex_to_field(hex_str: str, modulus: int = FIELD_MODULUS) -> int:
    """
    Parse a hex string into a field element.

    Raises:
        ValueError: If the string is not hex or the value is not reduced
    """
    value = int.from_bytes(hex_to_bytes(hex_str), "big")
    if value >= modulus:
        raise ValueError("Value is not reduced below the field modulus")
    return value

