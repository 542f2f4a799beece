"""
gedstack Encoder

Turns a record graph back into lines of the leveled format by walking the
grammar tables in reverse: for every record, each field is written once,
in the order its first tag appears in the record's table, and nested
records follow at level+1.

Line shapes:

    0 @I1@ INDI              defining line: xref before the tag
    1 FAMC @F1@              reference line: xref after the tag
    1 NOTE first line        text with embedded newlines becomes
    2 CONT second line       one CONT line per extra line at level+1

Depth is taken from nesting, not from the `level` stored on records, so a
graph built by hand encodes the same as a decoded one.
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Iterator, Optional

from gedstack.config import DEFAULT_ENCODER_CONFIG, EncoderConfig
from gedstack.grammar import DISPATCH, Action, ActionKind, table_for
from gedstack.records import HeaderRecord, Record, RootRecord, TrailerRecord
from gedstack.xref import HEADER_XREF, TRAILER_XREF

logger = logging.getLogger(__name__)

# Ids the decoder invents for header and trailer; never written out
_SYNTHETIC = {(HeaderRecord, HEADER_XREF), (TrailerRecord, TRAILER_XREF)}


# ============================================================================
# Line primitives
# ============================================================================

def format_line(level: int, tag: str, value: str = "", xref: str = "", indent: bool = False) -> str:
    """Format one line (without terminator)."""
    pad = "  " * level if indent else ""
    if xref and level == 0:
        head = f"{level} @{xref}@ {tag}"
        tail = value
    else:
        head = f"{level} {tag}"
        pointer = f"@{xref}@" if xref else ""
        tail = " ".join(p for p in (value, pointer) if p)
    return f"{pad}{head} {tail}" if tail else f"{pad}{head}"


def long_lines(level: int, tag: str, text: str, xref: str = "", indent: bool = False) -> list[str]:
    """Format a value that may contain newlines as a line plus CONT lines."""
    parts = text.split("\n") if text else [""]
    lines = [format_line(level, tag, parts[0], xref, indent)]
    for part in parts[1:]:
        lines.append(format_line(level + 1, "CONT", part, indent=indent))
    return lines


def _xref_of(record: Optional[Record]) -> str:
    if record is None:
        return ""
    xref = getattr(record, "xref", "")
    if (type(record), xref) in _SYNTHETIC:
        return ""
    return xref


def _items(owner: object, action: Action) -> list:
    value = getattr(owner, action.field)
    if action.many:
        return list(value)
    if value is None or value == "":
        return []
    return [value]


# ============================================================================
# Encoder
# ============================================================================

class Encoder:
    """Record graph -> lines.

    Usage:
        text = Encoder().encode_text(root)
        Encoder(EncoderConfig(indent=True)).write(root, sys.stdout.buffer)
    """

    def __init__(self, config: Optional[EncoderConfig] = None):
        self.config = config or DEFAULT_ENCODER_CONFIG

    def _lines(self, level: int, tag: str, text: str, xref: str = "") -> list[str]:
        return long_lines(level, tag, text, xref, self.config.indent)

    def lines(self, root: RootRecord) -> Iterator[str]:
        """Header first, then every root collection, then the trailer."""
        for tag, action in DISPATCH[RootRecord].items():
            if action.kind is not ActionKind.DEFINE or action.record is TrailerRecord:
                continue
            for record in _items(root, action):
                yield from self.record_lines(record, 0, tag, action)
        yield format_line(0, "TRLR", indent=self.config.indent)

    def record_lines(
        self,
        record: Record,
        level: int,
        tag: str,
        action: Optional[Action] = None,
    ) -> Iterator[str]:
        """Lines for one record: its own line, then its body."""
        value = ""
        if action is not None and action.value_field:
            value = getattr(record, action.value_field)
        yield from self._lines(level, record.tag or tag, value, _xref_of(record))
        yield from self.body(record, level + 1)

    def body(self, record: object, level: int) -> Iterator[str]:
        """Lines for every populated field of a record, at `level`."""
        seen: set[str] = set()
        for tag, action in table_for(record).items():
            if action.kind in (ActionKind.CONTINUE, ActionKind.CONCAT):
                continue
            if action.field in seen:
                continue
            seen.add(action.field)
            yield from self._field(record, tag, action, level)

    def _field(self, owner: object, tag: str, action: Action, level: int) -> Iterator[str]:
        kind = action.kind

        if kind in (ActionKind.ASSIGN, ActionKind.APPEND):
            for value in _items(owner, action):
                yield from self._lines(level, tag, str(value))

        elif kind is ActionKind.VERBATIM:
            for raw in _items(owner, action):
                raw_level, raw_tag, raw_value = (raw.split(" ", 2) + ["", ""])[:3]
                depth = int(raw_level) - owner.level
                yield format_line(level - 1 + depth, raw_tag, raw_value, indent=self.config.indent)

        elif kind is ActionKind.CHILD:
            for record in _items(owner, action):
                yield from self.record_lines(record, level, tag, action)

        elif kind is ActionKind.LINK:
            for link in _items(owner, action):
                yield from self.link_lines(link, level, tag, action)

    def link_lines(self, link: Record, level: int, tag: str, action: Action) -> Iterator[str]:
        """Reference line for a link record, then the link's own body."""
        text = getattr(link, action.value_field) if action.value_field else ""
        target = getattr(link, action.target_field)
        xref = _xref_of(target)
        yield from self._lines(level, link.tag or tag, text, xref)
        if target is not None and not xref:
            # anonymous target written in place
            yield from self.body(target, level + 1)
        yield from self.body(link, level + 1)

    def encode_text(self, root: RootRecord) -> str:
        ending = self.config.line_ending
        return "".join(line + ending for line in self.lines(root))

    def encode(self, root: RootRecord) -> bytes:
        return self.encode_text(root).encode(self.config.encoding)

    def write(self, root: RootRecord, stream: BinaryIO) -> int:
        """Write the encoded graph to a binary stream. Returns bytes written."""
        ending = self.config.line_ending.encode(self.config.encoding)
        written = 0
        for line in self.lines(root):
            data = line.encode(self.config.encoding) + ending
            stream.write(data)
            written += len(data)
        logger.debug("encoded %d bytes", written)
        return written


def encode(root: RootRecord, config: Optional[EncoderConfig] = None) -> bytes:
    """Encode a whole record graph to bytes."""
    return Encoder(config).encode(root)


_CREATED_BY: dict[type, tuple[str, Action]] = {}


def _creating_action(kind: type) -> Optional[tuple[str, Action]]:
    if not _CREATED_BY:
        for table in DISPATCH.values():
            for tag, action in table.items():
                if action.record is not None:
                    _CREATED_BY.setdefault(action.record, (tag, action))
    return _CREATED_BY.get(kind)


def encode_record(record: Record, config: Optional[EncoderConfig] = None) -> str:
    """Render a single record and everything beneath it as text.

    The record's own line uses its stored level; nested lines follow it.
    """
    encoder = Encoder(config)
    found = _creating_action(type(record))
    tag, action = found if found is not None else (record.tag, None)
    if action is not None and action.kind is ActionKind.LINK:
        lines = encoder.link_lines(record, record.level, tag, action)
    else:
        lines = encoder.record_lines(record, record.level, tag, action)
    ending = encoder.config.line_ending
    return "".join(line + ending for line in lines)
