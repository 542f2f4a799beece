"""
gedstack Scanner Tests

1. Well-formed lines: level, xref, tag, value extraction
2. Incomplete input: need-more-input leaves nothing consumed
3. Malformed input: ScanError carries state, fragment and offset
4. Token round-trip through the line formatter
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from gedstack.encoder import format_line
from gedstack.scanner import Scanner, ScanError, ScanState, Token


def scan_one(data: bytes):
    result = Scanner().scan(data)
    assert result is not None, f"expected a token from {data!r}"
    return result


# ============================================================================
# Well-formed lines
# ============================================================================

@pytest.mark.parametrize("data, expected", [
    (b"1 SEX F\n", Token(1, "SEX", "F")),
    (b"    1 SEX F\n", Token(1, "SEX", "F")),
    (b"\t\r\n1 SEX F\n", Token(1, "SEX", "F")),
    (b"1     SEX      F\n", Token(1, "SEX", "F")),
    (b"1 SEX F \r", Token(1, "SEX", "F ")),
    (b"0 HEAD\r", Token(0, "HEAD")),
    (b"0 HEAD\n", Token(0, "HEAD")),
    (b"0 @OTHER@ SUBM\n", Token(0, "SUBM", "", "OTHER")),
    (b"2 NOTE some text with @ signs\n", Token(2, "NOTE", "some text with @ signs")),
    (b"12 _CUSTOM x\n", Token(12, "_CUSTOM", "x")),
    (b"1 NAME\tJohn /Doe/\n", Token(1, "NAME", "John /Doe/")),
])
def test_scan_line(data, expected):
    token, consumed = scan_one(data)
    assert token == expected
    assert consumed == len(data)


def test_consumed_counts_leading_whitespace_and_terminator():
    data = b"0 HEAD\r\n1 SOUR x\n"
    scanner = Scanner()

    token, consumed = scanner.scan(data)
    assert token == Token(0, "HEAD")
    assert consumed == 7

    token, consumed = scanner.scan(data, 7)
    assert token == Token(1, "SOUR", "x")
    assert consumed == 10


def test_value_decoded_with_encoding():
    token, _ = scan_one("1 NAME Zoë\n".encode("utf-8"))
    assert token.value == "Zoë"

    token, _ = Scanner(encoding="latin-1").scan("1 NAME Zoë\n".encode("latin-1"))
    assert token.value == "Zoë"


def test_tokens_generator_stops_at_partial_line():
    data = b"0 HEAD\n1 CHAR UTF-8\n0 TR"
    tokens = list(Scanner().tokens(data))
    assert tokens == [Token(0, "HEAD"), Token(1, "CHAR", "UTF-8")]


# ============================================================================
# Need more input
# ============================================================================

@pytest.mark.parametrize("data", [
    b"",
    b"   \r\n  ",
    b"1",
    b"1 SEX F",
    b" 1 SEX F ",
    b"0 @I1@",
    b"0 @I1@ IN",
])
def test_need_more_input(data):
    assert Scanner().scan(data) is None


# ============================================================================
# Malformed input
# ============================================================================

@pytest.mark.parametrize("data, state, offset, fragment", [
    (b"x SEX F\n", ScanState.START, 0, b"x"),
    (b"1X SEX F\n", ScanState.LEVEL, 1, b"1X"),
    (b"1 #SEX\n", ScanState.SEEK_TAG_OR_XREF, 2, b"#"),
    (b"0 @I-1@ INDI\n", ScanState.XREF, 4, b"@I-"),
    (b"0 @I1 INDI\n", ScanState.XREF, 5, b"@I1 "),
    (b"0 @I1@ #\n", ScanState.SEEK_TAG, 7, b"#"),
    (b"1 SE-X F\n", ScanState.TAG, 4, b"SE-"),
])
def test_scan_error(data, state, offset, fragment):
    scanner = Scanner()
    with pytest.raises(ScanError) as info:
        scanner.scan(data)
    err = info.value
    assert err.state is state
    assert err.offset == offset
    assert err.fragment == fragment
    assert scanner.state is ScanState.ERROR


def test_scanner_recovers_after_error():
    scanner = Scanner()
    with pytest.raises(ScanError):
        scanner.scan(b"bad\n")
    token, _ = scanner.scan(b"0 TRLR\n")
    assert token == Token(0, "TRLR")
    assert scanner.state is ScanState.END


# ============================================================================
# Round-trip
# ============================================================================

@pytest.mark.parametrize("token", [
    Token(0, "HEAD"),
    Token(0, "INDI", "", "I1"),
    Token(0, "NOTE", "free text", "N7"),
    Token(1, "NAME", "John /Doe/"),
    Token(3, "PAGE", "p. 12, line 4"),
    Token(2, "_UID", "ABC_123"),
])
def test_token_round_trip(token):
    line = format_line(token.level, token.tag, token.value, token.xref) + "\n"
    assert scan_one(line.encode())[0] == token
