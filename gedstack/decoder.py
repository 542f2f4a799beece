"""
gedstack Streaming Driver

Feeds a binary source through the scanner in bounded chunks and hands each
token to the interpreter.

Buffer discipline: after every scan pass the unconsumed tail (a partial
line) is moved to the front of the buffer and the next chunk is appended
behind it. A line longer than one chunk just makes the buffer grow until
its terminator arrives; the scanner is not rerun on it before then. No
byte is ever dropped or scanned twice as part of two different tokens,
whatever the chunk size.

`line` counts physical lines (blank ones included, CR LF once), so a
ScanError points at the line a text editor would show.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from gedstack.config import DEFAULT_DECODER_CONFIG, DecoderConfig
from gedstack.interpreter import Interpreter
from gedstack.records import RootRecord
from gedstack.scanner import Scanner, ScanError, Token

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"


class SourceReadError(Exception):
    """The byte source failed. Nothing decoded so far is returned."""
    def __init__(self, message: str, offset: int):
        super().__init__(f"Read failed at offset {offset}: {message}")
        self.offset = offset


class Decoder:
    """Decode one stream.

    Usage:
        with open("family.ged", "rb") as f:
            root = Decoder(f).decode()

    A Decoder is single-use: it owns its scanner, buffer, cross-reference
    table and context stack for the lifetime of one decode.
    """

    def __init__(self, source: BinaryIO, config: Optional[DecoderConfig] = None):
        self.source = source
        self.config = config or DEFAULT_DECODER_CONFIG
        self.scanner = Scanner(self.config.encoding, self.config.errors)
        self.interpreter: Optional[Interpreter] = None
        # Bytes consumed so far (absolute offset of buffer[0])
        self.offset = 0
        # Physical lines consumed so far, blank lines included
        self.line = 0
        # Tokens emitted so far
        self.count = 0
        self._after_cr = False

    def _read(self) -> bytes:
        try:
            return self.source.read(self.config.chunk_size)
        except OSError as e:
            logger.error("read failed at offset %d: %s", self.offset, e)
            raise SourceReadError(str(e), self.offset) from e

    def _breaks(self, data: Union[bytes, bytearray]) -> int:
        """Line terminators in data; CR LF counts once, also across reads."""
        n = data.count(b"\n") + data.count(b"\r") - data.count(b"\r\n")
        if self._after_cr and data[:1] == b"\n":
            n -= 1
        return n

    def _advance(self, data: Union[bytes, bytearray]) -> None:
        if data:
            self.line += self._breaks(data)
            self._after_cr = data[-1:] == b"\r"

    def _scan(self, buffer: Union[bytes, bytearray], pos: int):
        try:
            return self.scanner.scan(buffer, pos)
        except ScanError as e:
            line = self.line + self._breaks(buffer[pos:e.offset]) + 1
            raise ScanError(
                e.reason, e.state, e.fragment, self.offset + e.offset, line=line,
            ) from None

    def tokens(self) -> Iterator[Token]:
        """Yield every token of the source in stream order."""
        buffer = bytearray()
        at_start = True
        # buffer[:searched] holds no terminator that could end a line
        searched = 0

        while True:
            chunk = self._read()
            eof = not chunk
            buffer += chunk

            if at_start:
                if len(buffer) < len(UTF8_BOM) and not eof:
                    continue
                if buffer.startswith(UTF8_BOM):
                    del buffer[:len(UTF8_BOM)]
                    self.offset += len(UTF8_BOM)
                at_start = False

            if not eof and buffer.find(b"\n", searched) < 0 and buffer.find(b"\r", searched) < 0:
                # still inside one long line: read on without rescanning it
                searched = len(buffer)
                continue

            pos = 0
            while True:
                result = self._scan(buffer, pos)
                if result is None:
                    break
                token, consumed = result
                self._advance(buffer[pos:pos + consumed])
                pos += consumed
                self.count += 1
                yield token

            del buffer[:pos]
            self.offset += pos
            searched = len(buffer)

            if eof:
                break

        if not buffer.strip():
            self._advance(buffer)
            self.offset += len(buffer)
        elif self.config.flush_trailing_line:
            token, _ = self._scan(bytes(buffer) + b"\n", 0)
            self._advance(bytes(buffer) + b"\n")
            self.count += 1
            self.offset += len(buffer)
            yield token
        else:
            logger.warning("discarding %d bytes after the last line terminator", len(buffer))

    def decode(self) -> RootRecord:
        self.interpreter = Interpreter()
        for token in self.tokens():
            self.interpreter.feed(token)
        root = self.interpreter.finish()
        logger.debug("decoded %d lines from %d bytes: %r", self.line, self.offset, root)
        return root

    def __repr__(self) -> str:
        return f"<Decoder offset={self.offset} lines={self.line}>"


def decode(source: BinaryIO, config: Optional[DecoderConfig] = None) -> RootRecord:
    """Decode a binary stream into a RootRecord."""
    return Decoder(source, config).decode()


def load(
    source: Union[str, bytes, Path, BinaryIO],
    config: Optional[DecoderConfig] = None,
) -> RootRecord:
    """Decode from a file path (str/Path), raw bytes, or a binary stream."""
    if isinstance(source, (bytes, bytearray)):
        return decode(io.BytesIO(source), config)
    elif isinstance(source, (str, Path)):
        path = Path(source)
        try:
            f = path.open("rb")
        except OSError as e:
            raise SourceReadError(str(e), 0) from e
        with f:
            return decode(f, config)
    elif hasattr(source, "read"):
        return decode(source, config)
    else:
        raise TypeError(f"Cannot load from {type(source)}")
