"""
gedstack Scanner

Turns raw bytes of the leveled line format into tokens, one line at a time.

Each line has the shape:

    <level> [@<xref>@ ]<tag>[ <value>]<CR|LF>

The scanner is an explicit finite-state machine. It knows nothing about
record semantics: it only splits a line into (level, tag, value, xref) and
reports how many bytes it consumed so the driver can advance its buffer.

Three outcomes per call:
- (Token, consumed)  a complete line was found
- None               the buffer ends before a line terminator (need more input)
- ScanError          a byte violated the character class of the current state
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

logger = logging.getLogger(__name__)


# ============================================================================
# Tokens
# ============================================================================

@dataclass(frozen=True)
class Token:
    level: int
    tag: str
    value: str = ""
    xref: str = ""

    def __repr__(self) -> str:
        xref = f" @{self.xref}@" if self.xref else ""
        value = f" {self.value!r}" if self.value else ""
        return f"<Token {self.level}{xref} {self.tag}{value}>"


class ScanState(Enum):
    START = auto()
    LEVEL = auto()
    SEEK_TAG_OR_XREF = auto()
    XREF = auto()
    SEEK_TAG = auto()
    TAG = auto()
    SEEK_VALUE = auto()
    VALUE = auto()
    END = auto()
    ERROR = auto()


class ScanError(Exception):
    """A line could not be tokenized. Fatal to the decode."""

    def __init__(
        self,
        message: str,
        state: ScanState,
        fragment: bytes,
        offset: int,
        line: Optional[int] = None,
    ):
        line_str = f"Line {line}, " if line is not None else ""
        super().__init__(f"{line_str}Offset {offset}, {state.name}: {message} (near {fragment!r})")
        self.reason = message
        self.state = state
        self.fragment = fragment
        self.offset = offset
        self.line = line


# ============================================================================
# Character classes
# ============================================================================

_DIGITS = frozenset(b"0123456789")
_TAG_CHARS = frozenset(
    b"0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_"
)
_WHITESPACE = frozenset(b" \t\r\n")
_EOL = frozenset(b"\r\n")

SPACE = 0x20
TAB = 0x09
AT = 0x40


# ============================================================================
# Scanner
# ============================================================================

class Scanner:
    """Line tokenizer for the leveled format.

    Usage:
        scanner = Scanner()
        result = scanner.scan(b"0 @I1@ INDI\\n")
        if result is not None:
            token, consumed = result

    The scanner keeps the state of the line it is working on only for the
    duration of one call; every call starts from ScanState.START.
    """

    def __init__(self, encoding: str = "utf-8", errors: str = "replace") -> None:
        self.encoding = encoding
        self.errors = errors
        self.reset()

    def reset(self) -> None:
        self.state = ScanState.START
        self.token_start = 0
        self.level = 0
        self.tag = b""
        self.value = b""
        self.xref = b""

    def _fail(self, message: str, data: Union[bytes, bytearray, memoryview], i: int) -> ScanError:
        failed_in = self.state
        self.state = ScanState.ERROR
        fragment = bytes(data[self.token_start:i + 1])
        err = ScanError(message, failed_in, fragment, i)
        logger.error("scan failed: %s", err)
        return err

    def scan(
        self,
        data: Union[bytes, bytearray, memoryview],
        start: int = 0,
    ) -> Optional[tuple[Token, int]]:
        """Scan one line from data[start:].

        Returns (token, consumed) where consumed counts every byte from
        `start` up to and including the line terminator, or None when no
        complete line is available yet. Raises ScanError on malformed input.
        """
        self.reset()
        n = len(data)
        i = start

        while i < n:
            c = data[i]
            state = self.state

            if state is ScanState.START:
                if c in _DIGITS:
                    self.token_start = i
                    self.state = ScanState.LEVEL
                elif c not in _WHITESPACE:
                    self.token_start = i
                    raise self._fail("found non-whitespace before level", data, i)

            elif state is ScanState.LEVEL:
                if c == SPACE:
                    self.level = int(bytes(data[self.token_start:i]))
                    self.state = ScanState.SEEK_TAG_OR_XREF
                elif c not in _DIGITS:
                    raise self._fail("level contained non-numerics", data, i)

            elif state is ScanState.SEEK_TAG_OR_XREF:
                if c in _TAG_CHARS:
                    self.token_start = i
                    self.state = ScanState.TAG
                elif c == AT:
                    self.token_start = i
                    self.state = ScanState.XREF
                elif c != SPACE:
                    self.token_start = i
                    raise self._fail("expected tag or xref", data, i)

            elif state is ScanState.XREF:
                if c == SPACE:
                    if i - self.token_start < 2 or data[i - 1] != AT:
                        raise self._fail("xref not closed by '@'", data, i)
                    self.xref = bytes(data[self.token_start + 1:i - 1])
                    self.state = ScanState.SEEK_TAG
                elif c not in _TAG_CHARS and c != AT:
                    raise self._fail("xref contained non-alphanumeric", data, i)

            elif state is ScanState.SEEK_TAG:
                if c in _TAG_CHARS:
                    self.token_start = i
                    self.state = ScanState.TAG
                elif c != SPACE:
                    self.token_start = i
                    raise self._fail("expected tag after xref", data, i)

            elif state is ScanState.TAG:
                if c in _EOL:
                    self.tag = bytes(data[self.token_start:i])
                    self.state = ScanState.END
                    return self._emit(), i + 1 - start
                elif c == SPACE or c == TAB:
                    self.tag = bytes(data[self.token_start:i])
                    self.state = ScanState.SEEK_VALUE
                elif c not in _TAG_CHARS:
                    raise self._fail("tag contained non-alphanumeric", data, i)

            elif state is ScanState.SEEK_VALUE:
                if c in _EOL:
                    self.state = ScanState.END
                    return self._emit(), i + 1 - start
                elif c != SPACE:
                    self.token_start = i
                    self.state = ScanState.VALUE

            elif state is ScanState.VALUE:
                if c in _EOL:
                    self.value = bytes(data[self.token_start:i])
                    self.state = ScanState.END
                    return self._emit(), i + 1 - start

            i += 1

        return None

    def _emit(self) -> Token:
        return Token(
            level=self.level,
            tag=self.tag.decode("ascii"),
            value=self.value.decode(self.encoding, self.errors),
            xref=self.xref.decode("ascii"),
        )

    def tokens(self, data: Union[bytes, bytearray, memoryview]):
        """Yield every complete line of an in-memory buffer.

        Trailing bytes without a line terminator are left unscanned.
        """
        pos = 0
        while True:
            result = self.scan(data, pos)
            if result is None:
                return
            token, consumed = result
            pos += consumed
            yield token
