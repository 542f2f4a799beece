"""
gedstack Cross-Reference Table

Maps (record kind, xref id) to the one shared record instance for that id.
The first touch of an id allocates the record, whether it comes from the
defining level-0 line or from a reference seen earlier; every later touch
returns the same object. This is what lets a family refer to an individual
that has not been defined yet.
"""

from __future__ import annotations

from typing import Optional

from gedstack.records import HeaderRecord, Record, TrailerRecord

HEADER_XREF = "HEAD"
TRAILER_XREF = "TRLR"


def strip_xref(value: str) -> str:
    """Extract the id from a reference value.

    "@I1@"        -> "I1"
    "CHIL @I1@"   -> "I1"
    "no pointer"  -> ""
    """
    if value.startswith("@"):
        return value.strip("@")
    at = value.find("@")
    if at < 0:
        return ""
    return value[at:].strip("@")


def strip_value(value: str) -> str:
    """Return the text in front of an embedded reference, if any.

    "CHIL @I1@"  -> "CHIL"
    "@I1@"       -> ""
    """
    at = value.find("@")
    if at < 0:
        return value
    return value[:at].strip(" ")


class CrossReferenceTable:
    """One instance per decode.

    Usage:
        refs = CrossReferenceTable()
        a = refs.resolve(IndividualRecord, "I1")
        assert refs.resolve(IndividualRecord, "I1") is a
    """

    def __init__(self) -> None:
        self._records: dict[tuple[type, str], Record] = {}
        self._defined: set[tuple[type, str]] = set()
        self.header = HeaderRecord(level=0, tag="HEAD", xref=HEADER_XREF)
        self.trailer = TrailerRecord(level=0, tag="TRLR", xref=TRAILER_XREF)
        self._records[(HeaderRecord, HEADER_XREF)] = self.header
        self._records[(TrailerRecord, TRAILER_XREF)] = self.trailer
        self._seeds = set(self._records)

    def resolve(self, kind: type, xref: str = "") -> Record:
        """Lookup-or-allocate the record of `kind` named `xref`.

        An empty xref never shares: it yields a fresh instance, except for
        the header and trailer kinds, which fall back to their seeds.
        """
        if not xref:
            if kind is HeaderRecord:
                return self.header
            if kind is TrailerRecord:
                return self.trailer
            return kind()
        key = (kind, xref)
        record = self._records.get(key)
        if record is None:
            record = kind(xref=xref)
            self._records[key] = record
        return record

    def define(self, kind: type, xref: str = "") -> tuple[Record, bool]:
        """Resolve for a level-0 definition.

        Returns (record, first) where `first` is False when the same id was
        already defined earlier in the stream. Redefinition is tolerated:
        the later lines keep populating the same instance.
        """
        if not xref:
            if kind is HeaderRecord:
                xref = HEADER_XREF
            elif kind is TrailerRecord:
                xref = TRAILER_XREF
            else:
                return kind(), True
        record = self.resolve(kind, xref)
        key = (kind, xref)
        first = key not in self._defined
        self._defined.add(key)
        return record, first

    def get(self, kind: type, xref: str) -> Optional[Record]:
        return self._records.get((kind, xref))

    def undefined(self) -> list[tuple[type, str]]:
        """(kind, xref) pairs that were referenced but never defined."""
        return [key for key in self._records
                if key not in self._defined and key not in self._seeds]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: tuple[type, str]) -> bool:
        return key in self._records

    def __repr__(self) -> str:
        return f"<CrossReferenceTable: {len(self._records)} ids, {len(self._defined)} defined>"
