"""
Tests for launch field validators.
"""

from __future__ import annotations

import pytest

from backend_pumpwatch.core.validators import (
    has_control_chars,
    is_sane_timestamp,
    is_suspicious_uri,
    is_valid_base58_mint,
    is_valid_creator_hex,
    parse_metadata_uri,
    pump_url_for,
    scammy_symbol_pattern,
    to_iso_utc,
)
from conftest import NOW, VALID_MINT


@pytest.mark.parametrize(
    "value,expected",
    [
        (VALID_MINT, True),
        ("  " + VALID_MINT + "  ", True),
        ("0OIl" + VALID_MINT[4:], False),  # chars outside the base58 alphabet
        ("abc", False),
        ("", False),
        (None, False),
        (12345, False),
    ],
)
def test_is_valid_base58_mint(value, expected):
    assert is_valid_base58_mint(value) is expected


def test_suspicious_uri_schemes_and_long_query():
    assert is_suspicious_uri("javascript:alert(1)") is True
    assert is_suspicious_uri("DATA:text/html;base64,AAAA") is True
    assert is_suspicious_uri("https://a.com/m?" + "x" * 300) is True
    assert is_suspicious_uri("https://a.com/m?x=1") is False
    assert is_suspicious_uri(None) is False


def test_parse_metadata_uri():
    assert parse_metadata_uri("https://a.com/m") == ("https://a.com/m", True)
    assert parse_metadata_uri("http://a.com/m") == ("http://a.com/m", False)
    assert parse_metadata_uri("ipfs-hash-only") == (None, False)
    assert parse_metadata_uri("") == (None, False)


def test_is_sane_timestamp():
    assert is_sane_timestamp(NOW - 60, NOW) is True
    assert is_sane_timestamp(NOW + 2 * 86_400, NOW) is False
    assert is_sane_timestamp(1_000, NOW) is False
    assert is_sane_timestamp(True, NOW) is False
    assert is_sane_timestamp("1760000000", NOW) is False


def test_creator_hex_format():
    assert is_valid_creator_hex("aa" * 32) is True
    assert is_valid_creator_hex("AB" * 32) is True
    assert is_valid_creator_hex("aa" * 31) is False
    assert is_valid_creator_hex("zz" * 32) is False


def test_control_chars_allow_zero_width_joiner():
    assert has_control_chars("Good\u0000Coin") is True
    assert has_control_chars("Coin\u202e") is True
    assert has_control_chars("\U0001F468\u200d\U0001F4BB") is False
    assert has_control_chars("Plain") is False


def test_scammy_symbol_patterns():
    assert scammy_symbol_pattern("AAAAAA") == "repeated_chars"
    assert scammy_symbol_pattern("\U0001F680\U0001F680\U0001F680") == "emoji_run"
    assert scammy_symbol_pattern("S\u041eL") == "confusable_script"  # Cyrillic O
    assert scammy_symbol_pattern("PEPE") is None
    assert scammy_symbol_pattern(None) is None


def test_to_iso_utc_and_pump_url():
    assert to_iso_utc(0) == "1970-01-01T00:00:00.000Z"
    assert to_iso_utc(None) is None
    assert to_iso_utc("x") is None
    assert pump_url_for(VALID_MINT) == f"https://pump.fun/{VALID_MINT}"
    assert pump_url_for(None) is None
