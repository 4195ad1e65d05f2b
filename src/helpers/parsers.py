"""Parsing utilities for common data transformations."""

from eth_utils import is_address, to_checksum_address


def parse_hex_int(hex_value: str | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string or None
        default: Default value if hex_value is None

    Returns:
        int: Parsed integer value

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    if hex_value is None:
        return default
    return int(hex_value, 16)


def parse_hex_bytes(hex_value: str | None) -> bytes:
    """Parse a 0x-prefixed hex string (e.g. an eth_call result) to bytes.

    Args:
        hex_value: Hex-encoded string or None

    Returns:
        bytes: Decoded bytes, empty for None or "0x"

    Example:
        >>> parse_hex_bytes("0x0a0b")
        b'\\n\\x0b'
    """
    if not hex_value:
        return b""
    return bytes.fromhex(hex_value.removeprefix("0x"))


def normalize_address(address: str) -> str:
    """Normalize an account address to its EIP-55 checksummed form.

    Votes are keyed by voter address, so every address entering the store
    goes through here.

    Args:
        address: Hex account address in any casing

    Returns:
        str: Checksummed address

    Raises:
        ValueError: If the value is not a valid address

    Example:
        >>> normalize_address("0x52908400098527886e0f7030069857d2e4169ee7")
        '0x52908400098527886E0F7030069857D2E4169EE7'
    """
    if not is_address(address):
        msg = f"Invalid address: {address!r}"
        raise ValueError(msg)
    return to_checksum_address(address)
