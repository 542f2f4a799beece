"""
gedstack Encoder Tests

1. Line primitives: xref placement, CONT splitting, indentation
2. Decode -> encode reproduces canonical documents byte for byte
3. Synthetic header/trailer ids are never written
"""

import io
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from gedstack import EncoderConfig, encode, encode_record, load
from gedstack.encoder import Encoder, format_line, long_lines
from gedstack.records import (
    FamilyRecord,
    IndividualLink,
    IndividualRecord,
    NameRecord,
    RootRecord,
)


def build_canonical_text() -> str:
    """A document already in the encoder's field order."""
    return (
        "0 HEAD\n"
        "1 SOUR gedstack\n"
        "2 VERS 0.1\n"
        "1 SUBM @U1@\n"
        "1 GEDC\n"
        "2 VERS 5.5.1\n"
        "2 FORM LINEAGE-LINKED\n"
        "1 CHAR UTF-8\n"
        "0 @U1@ SUBM\n"
        "1 NAME Jane Submitter\n"
        "0 @I1@ INDI\n"
        "1 NAME John /Doe/\n"
        "2 GIVN John\n"
        "2 SURN Doe\n"
        "1 SEX M\n"
        "1 BIRT\n"
        "2 DATE 1 JAN 1900\n"
        "2 PLAC Springfield\n"
        "1 FAMS @F1@\n"
        "1 SOUR @S1@\n"
        "2 PAGE 12\n"
        "1 NOTE first line\n"
        "2 CONT second line\n"
        "0 @I2@ INDI\n"
        "1 NAME Mary /Roe/\n"
        "1 SEX F\n"
        "1 FAMS @F1@\n"
        "0 @F1@ FAM\n"
        "1 HUSB @I1@\n"
        "1 WIFE @I2@\n"
        "1 NCHI 0\n"
        "1 MARR\n"
        "2 DATE 1925\n"
        "0 @S1@ SOUR\n"
        "1 TITL Parish register\n"
        "2 CONT vol. 2\n"
        "0 TRLR\n"
    )


# ============================================================================
# Line primitives
# ============================================================================

@pytest.mark.parametrize("args, expected", [
    ((0, "HEAD"), "0 HEAD"),
    ((0, "INDI", "", "I1"), "0 @I1@ INDI"),
    ((0, "NOTE", "text", "N1"), "0 @N1@ NOTE text"),
    ((1, "FAMC", "", "F1"), "1 FAMC @F1@"),
    ((2, "ROLE", "CHIL", "I1"), "2 ROLE CHIL @I1@"),
    ((1, "SEX", "M"), "1 SEX M"),
])
def test_format_line(args, expected):
    assert format_line(*args) == expected


def test_format_line_indent():
    assert format_line(2, "DATE", "1900", indent=True) == "    2 DATE 1900"


def test_long_lines_split_on_newline():
    assert long_lines(1, "NOTE", "a\nb\n\nc") == [
        "1 NOTE a",
        "2 CONT b",
        "2 CONT",
        "2 CONT c",
    ]
    assert long_lines(0, "NOTE", "x\ny", xref="N1") == ["0 @N1@ NOTE x", "1 CONT y"]


# ============================================================================
# Round trip
# ============================================================================

def test_canonical_document_round_trips():
    text = build_canonical_text()
    root = load(text.encode())
    assert encode(root).decode() == text


def test_reencode_is_stable():
    text = (
        "0 @I1@ INDI\n"
        "1 BIRT\n"
        "1 NAME Late /Name/\n"
        "1 OBJE\n"
        "2 FILE portrait.jpg\n"
        "1 _UNKNOWN dropped\n"
        "0 @E1@ EVEN\n"
        "1 ROLE CHIL @I1@\n"
        "0 TRLR\n"
    )
    once = encode(load(text.encode()))
    twice = encode(load(once))
    assert once == twice
    assert b"_UNKNOWN" not in once
    assert b"1 ROLE CHIL @I1@\n" in once
    assert b"1 OBJE\n2 FILE portrait.jpg\n" in once
    # fields come out in table order
    assert once.index(b"1 NAME") < once.index(b"1 BIRT")


def test_synthetic_ids_not_written():
    out = encode(load(b"0 HEAD\n1 LANG English\n0 TRLR\n"))
    assert out == b"0 HEAD\n1 LANG English\n0 TRLR\n"


def test_empty_root():
    assert encode(RootRecord()) == b"0 TRLR\n"


def test_hand_built_graph():
    husband = IndividualRecord(xref="I1", sex="M")
    husband.names.append(NameRecord(name="Adam"))
    family = FamilyRecord(xref="F1", husband=IndividualLink(individual=husband))
    root = RootRecord(individuals=[husband], families=[family])

    config = EncoderConfig(line_ending="\r\n")
    assert Encoder(config).encode_text(root) == (
        "0 @I1@ INDI\r\n"
        "1 NAME Adam\r\n"
        "1 SEX M\r\n"
        "0 @F1@ FAM\r\n"
        "1 HUSB @I1@\r\n"
        "0 TRLR\r\n"
    )


def test_write_to_stream():
    root = load(build_canonical_text().encode())
    stream = io.BytesIO()
    written = Encoder().write(root, stream)
    assert written == len(stream.getvalue())
    assert stream.getvalue() == encode(root)


def test_encode_record_renders_subtree():
    root = load(build_canonical_text().encode())
    text = encode_record(root.individuals[1], EncoderConfig(indent=True))
    assert text == (
        "0 @I2@ INDI\n"
        "  1 NAME Mary /Roe/\n"
        "  1 SEX F\n"
        "  1 FAMS @F1@\n"
    )


def test_encode_record_for_link():
    root = load(build_canonical_text().encode())
    citation = root.individuals[0].citations[0]
    assert encode_record(citation) == "1 SOUR @S1@\n2 PAGE 12\n"
