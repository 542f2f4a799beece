"""
gedstack Streaming Driver Tests

1. End-to-end decode of a small document
2. Chunk-boundary stability: every split offset, every chunk size
3. Long lines, byte-order mark, unterminated last line
4. Read failures and malformed input surface as single exceptions
"""

import io
import os
import sys
import time

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from gedstack import DecoderConfig, Decoder, ScanError, SourceReadError, decode, encode, load
from gedstack.scanner import Scanner, Token


def build_minimal_gedcom() -> bytes:
    return (
        "0 HEAD\r\n"
        "1 SOUR gedstack\r\n"
        "2 VERS 0.1\r\n"
        "1 CHAR UTF-8\r\n"
        "0 @I1@ INDI\r\n"
        "1 NAME Zoë /Smith/\r\n"
        "1 SEX F\r\n"
        "1 BIRT\r\n"
        "2 DATE 3 MAR 1921\r\n"
        "2 PLAC Paris\r\n"
        "1 FAMC @F1@\r\n"
        "1 NOTE She wrote\r\n"
        "2 CONC  letters\r\n"
        "2 CONT every week\r\n"
        "0 @F1@ FAM\r\n"
        "1 CHIL @I1@\r\n"
        "0 TRLR\r\n"
    ).encode("utf-8")


class ChunkedReader:
    """Binary source that hands out pre-cut parts, at most n bytes per read."""

    def __init__(self, parts, fail_after=None):
        self.parts = [bytes(p) for p in parts if p]
        self.reads = 0
        self.fail_after = fail_after

    def read(self, n=-1):
        self.reads += 1
        if self.fail_after is not None and self.reads > self.fail_after:
            raise OSError("device went away")
        if not self.parts:
            return b""
        part = self.parts[0]
        if n < 0 or n >= len(part):
            self.parts.pop(0)
            return part
        self.parts[0] = part[n:]
        return part[:n]


def decode_tokens(source, **config):
    return list(Decoder(source, DecoderConfig(**config)).tokens())


# ============================================================================
# End-to-end
# ============================================================================

def test_end_to_end_individual():
    root = load(b"0 @I1@ INDI\n1 NAME John /Doe/\n1 SEX M\n0 TRLR\n")
    assert len(root.individuals) == 1
    indi = root.individuals[0]
    assert indi.xref == "I1"
    assert indi.names[0].name == "John /Doe/"
    assert indi.sex == "M"
    assert root.trailer is not None


def test_minimal_document():
    root = load(build_minimal_gedcom())
    assert root.header.source_system.system_name == "gedstack"
    assert root.header.source_system.version == "0.1"

    indi = root.individuals[0]
    assert indi.names[0].name == "Zoë /Smith/"
    birth = indi.events[0]
    assert birth.tag == "BIRT"
    assert birth.date.date == "3 MAR 1921"
    assert birth.place.name == "Paris"
    assert indi.notes[0].note == "She wroteletters\nevery week"
    assert indi.parents[0].family is root.families[0]
    assert root.families[0].children[0].individual is indi


def test_load_path_and_stream(tmp_path):
    path = tmp_path / "tree.ged"
    path.write_bytes(build_minimal_gedcom())

    from_path = load(path)
    from_str = load(str(path))
    with path.open("rb") as f:
        from_stream = load(f)

    for root in (from_path, from_str, from_stream):
        assert root.counts()["individuals"] == 1
        assert root.counts()["families"] == 1


def test_load_rejects_unknown_source():
    with pytest.raises(TypeError):
        load(42)


# ============================================================================
# Chunk boundaries
# ============================================================================

def test_every_split_offset():
    data = build_minimal_gedcom()
    expected = list(Scanner().tokens(data))
    expected_graph = encode(load(data))
    assert len(expected) == 17

    for k in range(len(data) + 1):
        got = decode_tokens(ChunkedReader([data[:k], data[k:]]), chunk_size=4096)
        assert got == expected, f"split at {k}"
        root = decode(ChunkedReader([data[:k], data[k:]]), DecoderConfig(chunk_size=4096))
        assert encode(root) == expected_graph, f"split at {k}"


def test_every_chunk_size():
    data = build_minimal_gedcom()
    expected = list(Scanner().tokens(data))
    expected_graph = encode(load(data))

    for size in range(1, len(data) + 2):
        got = decode_tokens(io.BytesIO(data), chunk_size=size)
        assert got == expected, f"chunk_size={size}"
        root = load(data, DecoderConfig(chunk_size=size))
        assert encode(root) == expected_graph, f"chunk_size={size}"


def test_line_longer_than_chunk():
    long_value = "x" * 5000
    data = f"0 @N1@ NOTE {long_value}\n0 TRLR\n".encode()
    root = load(data, DecoderConfig(chunk_size=64))
    assert root.notes[0].note == long_value


def test_very_long_line_decodes_in_linear_time():
    long_value = "x" * 1_000_000
    data = f"0 @N1@ NOTE {long_value}\n0 TRLR\n".encode()
    started = time.perf_counter()
    root = load(data, DecoderConfig(chunk_size=512))
    elapsed = time.perf_counter() - started
    assert root.notes[0].note == long_value
    assert elapsed < 30, f"{elapsed:.1f}s"


def test_decoder_tracks_offset_and_lines():
    data = build_minimal_gedcom()
    decoder = Decoder(io.BytesIO(data), DecoderConfig(chunk_size=7))
    decoder.decode()
    assert decoder.offset == len(data)
    assert decoder.line == 17


# ============================================================================
# Stream edges
# ============================================================================

def test_byte_order_mark_skipped():
    data = b"\xef\xbb\xbf0 HEAD\n0 TRLR\n"
    for size in (1, 2, 3, 512):
        tokens = decode_tokens(io.BytesIO(data), chunk_size=size)
        assert tokens == [Token(0, "HEAD"), Token(0, "TRLR")]


def test_unterminated_last_line():
    root = load(b"0 HEAD\n0 TRLR")
    assert root.trailer is not None

    root = load(b"0 HEAD\n0 TRLR", DecoderConfig(flush_trailing_line=False))
    assert root.trailer is None


def test_blank_tail_ignored():
    tokens = decode_tokens(io.BytesIO(b"0 TRLR\n\n  \r\n"))
    assert tokens == [Token(0, "TRLR")]


def test_empty_source():
    root = load(b"")
    assert root.header is None
    assert root.trailer is None
    assert sum(root.counts().values()) == 0


def test_invalid_chunk_size():
    with pytest.raises(ValueError):
        DecoderConfig(chunk_size=0)


# ============================================================================
# Failures
# ============================================================================

def test_read_error_raises_source_read_error():
    data = build_minimal_gedcom()
    source = ChunkedReader([data], fail_after=2)
    with pytest.raises(SourceReadError) as info:
        Decoder(source, DecoderConfig(chunk_size=16)).decode()
    assert isinstance(info.value.__cause__, OSError)
    assert info.value.offset > 0


def test_missing_file(tmp_path):
    with pytest.raises(SourceReadError):
        load(tmp_path / "missing.ged")


@pytest.mark.parametrize("size", [1, 5, 512])
def test_scan_error_reports_absolute_position(size):
    data = b"0 HEAD\n1 SOUR x\nbad line\n0 TRLR\n"
    with pytest.raises(ScanError) as info:
        load(data, DecoderConfig(chunk_size=size))
    assert info.value.line == 3
    assert info.value.offset == 16
    assert info.value.fragment == b"b"


@pytest.mark.parametrize("size", [1, 2, 512])
def test_scan_error_line_counts_blank_lines(size):
    data = b"0 HEAD\n\n\n1 SOUR x\nbad\n"
    with pytest.raises(ScanError) as info:
        load(data, DecoderConfig(chunk_size=size))
    assert info.value.line == 5

    data = b"0 HEAD\r\n\r\n1 SOUR x\r\nbad\r\n"
    with pytest.raises(ScanError) as info:
        load(data, DecoderConfig(chunk_size=size))
    assert info.value.line == 4


def test_line_count_includes_blank_lines():
    data = b"0 HEAD\r\n\r\n0 TRLR\r\n"
    for size in range(1, len(data) + 1):
        decoder = Decoder(io.BytesIO(data), DecoderConfig(chunk_size=size))
        tokens = list(decoder.tokens())
        assert len(tokens) == decoder.count == 2
        assert decoder.line == 3, f"chunk_size={size}"
