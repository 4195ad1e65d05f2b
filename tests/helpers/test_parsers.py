"""Tests for parsing utilities."""

import pytest

from src.helpers.parsers import normalize_address, parse_hex_bytes, parse_hex_int


class TestParseHex:
    """Tests for hex parsing helpers."""

    def test_parse_hex_int(self) -> None:
        """Test hex integers and the None default."""
        assert parse_hex_int("0xff") == 255
        assert parse_hex_int("0x0") == 0
        assert parse_hex_int(None) == 0
        assert parse_hex_int(None, 5) == 5

    def test_parse_hex_bytes(self) -> None:
        """Test eth_call results become raw bytes."""
        assert parse_hex_bytes("0x0a0b") == b"\x0a\x0b"
        assert parse_hex_bytes("0x") == b""
        assert parse_hex_bytes(None) == b""

    def test_parse_hex_bytes_rejects_garbage(self) -> None:
        """Test that non-hex text raises ValueError."""
        with pytest.raises(ValueError):
            parse_hex_bytes("0xzz")


class TestNormalizeAddress:
    """Tests for normalize_address."""

    def test_checksums_lowercase(self) -> None:
        """Test that lowercase addresses are checksummed."""
        assert (
            normalize_address("0x52908400098527886e0f7030069857d2e4169ee7")
            == "0x52908400098527886E0F7030069857D2E4169EE7"
        )

    def test_same_voter_in_any_casing(self) -> None:
        """Test that casing differences collapse to one voter key."""
        upper = "0x52908400098527886E0F7030069857D2E4169EE7"
        assert normalize_address(upper.lower()) == normalize_address(upper)

    @pytest.mark.parametrize("value", ["", "0x123", "not an address"])
    def test_rejects_invalid(self, value: str) -> None:
        """Test that invalid addresses raise ValueError."""
        with pytest.raises(ValueError, match="Invalid address"):
            normalize_address(value)
