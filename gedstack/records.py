"""
gedstack Record Graph

The typed output of a decode. Every line that introduces a nested structure
becomes one of the record classes below; lines that only carry a value are
stored in a field of the record that owns them.

Records are compared by identity, never by value: the same cross-reference
id always yields the same instance, and the graph may contain cycles
(an individual links to a family which links back to the individual).

Root-level kinds (the ones that may be defined at level 0 with an xref)
carry an `xref` field; see ROOT_KINDS.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Iterator, Optional


@dataclass(eq=False, repr=False)
class Record:
    """Base for every record kind.

    level: depth of the line that first produced this record
    tag:   tag of that line (event records keep BIRT, DEAT, ... here)
    """
    level: int = 0
    tag: str = ""

    def nested_records(self) -> Iterator[Record]:
        """Yield every record directly held by a field of this record."""
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Record):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Record):
                        yield item

    def __repr__(self) -> str:
        xref = getattr(self, "xref", "")
        xref_str = f" @{xref}@" if xref else ""
        tag_str = f" {self.tag}" if self.tag else ""
        return f"<{type(self).__name__}{xref_str}{tag_str} L{self.level}>"


# ============================================================================
# Small sub-structures
# ============================================================================

@dataclass(eq=False, repr=False)
class UserReferenceRecord(Record):
    number: str = ""     # ..REFN value
    type: str = ""       # ..REFN.TYPE


@dataclass(eq=False, repr=False)
class DateRecord(Record):
    date: str = ""                                    # ..DATE value
    time: str = ""                                    # ..DATE.TIME
    texts: list[str] = field(default_factory=list)    # ..DATE.TEXT
    day: str = ""                                     # ..DATE.DATD
    month: str = ""                                   # ..DATE.DATM
    year: str = ""                                    # ..DATE.DATY
    full: str = ""                                    # ..DATE.DATF
    short: str = ""                                   # ..DATE.DATS


@dataclass(eq=False, repr=False)
class ChangeRecord(Record):
    date: Optional[DateRecord] = None
    notes: list[NoteRecord] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class AddressRecord(Record):
    full: str = ""          # ..ADDR value, CONT/CONC joined
    line1: str = ""
    line2: str = ""
    line3: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    phone: str = ""


@dataclass(eq=False, repr=False)
class BlobRecord(Record):
    data: str = ""


@dataclass(eq=False, repr=False)
class CallNumberRecord(Record):
    call_number: str = ""
    media: str = ""         # ..CALN.MEDI is plain text, not a media link


@dataclass(eq=False, repr=False)
class CharacterSetRecord(Record):
    character_set: str = ""
    version: str = ""


@dataclass(eq=False, repr=False)
class GedcomRecord(Record):
    version: str = ""
    form: str = ""


@dataclass(eq=False, repr=False)
class SchemaRecord(Record):
    # Sub-lines kept verbatim as "<level> <tag> <value>"
    data: list[str] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class ShortTitleRecord(Record):
    short_title: str = ""
    indexed: str = ""


@dataclass(eq=False, repr=False)
class FootnoteRecord(Record):
    value: str = ""
    components: list[str] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class BibliographyRecord(Record):
    value: str = ""
    components: list[str] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class PlacePartRecord(Record):
    part: str = ""             # ..PLAn value
    jurisdiction: str = ""     # ..PLAn.JURI


@dataclass(eq=False, repr=False)
class BusinessRecord(Record):
    name: str = ""
    address: Optional[AddressRecord] = None
    phones: list[str] = field(default_factory=list)
    website: str = ""


@dataclass(eq=False, repr=False)
class DataRecord(Record):
    data: str = ""
    date: str = ""
    copyright: str = ""
    texts: list[str] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)
    agency: str = ""
    notes: list[NoteRecord] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class SystemRecord(Record):
    system_name: str = ""      # HEAD.SOUR value
    version: str = ""
    product_name: str = ""
    business: Optional[BusinessRecord] = None
    data: Optional[DataRecord] = None


@dataclass(eq=False, repr=False)
class HistoryRecord(Record):
    history: str = ""
    citations: list[CitationRecord] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class NameRecord(Record):
    name: str = ""
    prefix: str = ""
    given: str = ""
    middle: str = ""
    surname_prefix: str = ""
    surname: str = ""
    suffix: str = ""
    preferred_given: str = ""
    romanized: str = ""
    phonetic: str = ""
    name_type: str = ""
    primary: str = ""
    aka: list[str] = field(default_factory=list)
    nicknames: list[str] = field(default_factory=list)
    citations: list[CitationRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class RoleRecord(Record):
    role: str = ""                                   # text part of ..ROLE
    individual: Optional[IndividualRecord] = None    # xref part of ..ROLE
    principal: str = ""


# ============================================================================
# Links (reference lines below level 0)
# ============================================================================

@dataclass(eq=False, repr=False)
class IndividualLink(Record):
    individual: Optional[IndividualRecord] = None
    relationship: str = ""
    age: str = ""
    events: list[EventRecord] = field(default_factory=list)
    citations: list[CitationRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class FamilyLink(Record):
    family: Optional[FamilyRecord] = None
    pedigree: str = ""
    adopted: str = ""
    primary: str = ""
    notes: list[NoteRecord] = field(default_factory=list)
    citations: list[CitationRecord] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class MediaLink(Record):
    value: str = ""
    media: Optional[MediaRecord] = None


@dataclass(eq=False, repr=False)
class RepositoryLink(Record):
    repository: Optional[RepositoryRecord] = None
    call_number: Optional[CallNumberRecord] = None
    notes: list[NoteRecord] = field(default_factory=list)


@dataclass(eq=False, repr=False)
class SubmitterLink(Record):
    submitter: Optional[SubmitterRecord] = None


@dataclass(eq=False, repr=False)
class SubmissionLink(Record):
    submission: Optional[SubmissionRecord] = None


@dataclass(eq=False, repr=False)
class CitationRecord(Record):
    """A link to a source record, with the citation's own details."""
    value: str = ""                      # text of ..SOUR without the xref
    source: Optional[SourceRecord] = None
    page: str = ""
    reference: str = ""
    quality: str = ""
    cons: str = ""
    direct: str = ""
    source_quality: str = ""
    events: list[EventRecord] = field(default_factory=list)
    data: list[DataRecord] = field(default_factory=list)
    texts: list[str] = field(default_factory=list)
    media: list[MediaLink] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)


# ============================================================================
# Root-level kinds
# ============================================================================

@dataclass(eq=False, repr=False)
class NoteRecord(Record):
    xref: str = ""
    note: str = ""
    citations: list[CitationRecord] = field(default_factory=list)
    user_references: list[UserReferenceRecord] = field(default_factory=list)
    rin: str = ""
    change: Optional[ChangeRecord] = None


@dataclass(eq=False, repr=False)
class PlaceRecord(Record):
    xref: str = ""
    name: str = ""
    form: str = ""
    short_name: str = ""
    modifier: str = ""
    parts: list[PlacePartRecord] = field(default_factory=list)
    citations: list[CitationRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)
    change: Optional[ChangeRecord] = None


@dataclass(eq=False, repr=False)
class EventRecord(Record):
    xref: str = ""
    value: str = ""
    type: str = ""
    name: str = ""
    primary: str = ""
    date: Optional[DateRecord] = None
    place: Optional[PlaceRecord] = None
    roles: list[RoleRecord] = field(default_factory=list)
    address: Optional[AddressRecord] = None
    phones: list[str] = field(default_factory=list)
    parents: list[FamilyLink] = field(default_factory=list)
    husband: Optional[IndividualLink] = None
    wife: Optional[IndividualLink] = None
    spouse: Optional[IndividualLink] = None
    agency: str = ""
    cause: str = ""
    temple: str = ""
    quality: str = ""
    status: str = ""
    uids: list[str] = field(default_factory=list)
    rin: str = ""
    email: str = ""
    media: list[MediaLink] = field(default_factory=list)
    citations: list[CitationRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)
    change: Optional[ChangeRecord] = None
    update_time: str = ""


@dataclass(eq=False, repr=False)
class IndividualRecord(Record):
    xref: str = ""
    names: list[NameRecord] = field(default_factory=list)
    restriction: str = ""
    sex: str = ""
    events: list[EventRecord] = field(default_factory=list)
    attribute: str = ""
    parents: list[FamilyLink] = field(default_factory=list)     # INDI.FAMC
    families: list[FamilyLink] = field(default_factory=list)    # INDI.FAMS
    addresses: list[AddressRecord] = field(default_factory=list)
    phones: list[str] = field(default_factory=list)
    media: list[MediaLink] = field(default_factory=list)
    health: str = ""
    histories: list[HistoryRecord] = field(default_factory=list)
    quality: str = ""
    living: str = ""
    conl: str = ""
    ancestral_file_numbers: list[str] = field(default_factory=list)
    record_file_number: str = ""
    user_references: list[UserReferenceRecord] = field(default_factory=list)
    uids: list[str] = field(default_factory=list)
    rin: str = ""
    email: str = ""
    website: str = ""
    citations: list[CitationRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)
    associated: list[IndividualLink] = field(default_factory=list)
    submitters: list[SubmitterLink] = field(default_factory=list)
    ancestor_interest: list[SubmitterLink] = field(default_factory=list)    # INDI.ANCI
    descendant_interest: list[SubmitterLink] = field(default_factory=list)  # INDI.DESI
    change: Optional[ChangeRecord] = None
    update_time: str = ""
    alias: str = ""
    father: Optional[IndividualLink] = None
    mother: Optional[IndividualLink] = None
    miscellaneous: list[str] = field(default_factory=list)
    profile_picture: Optional[MediaLink] = None


@dataclass(eq=False, repr=False)
class FamilyRecord(Record):
    xref: str = ""
    husband: Optional[IndividualLink] = None
    wife: Optional[IndividualLink] = None
    num_children: Optional[int] = None
    children: list[IndividualLink] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)
    uids: list[str] = field(default_factory=list)
    rin: str = ""
    user_references: list[UserReferenceRecord] = field(default_factory=list)
    media: list[MediaLink] = field(default_factory=list)
    citations: list[CitationRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)
    submitters: list[SubmitterLink] = field(default_factory=list)
    change: Optional[ChangeRecord] = None
    update_time: str = ""


@dataclass(eq=False, repr=False)
class MediaRecord(Record):
    xref: str = ""
    value: str = ""
    format: str = ""
    url: str = ""
    file_name: str = ""
    title: str = ""
    date: str = ""
    author: str = ""
    text: str = ""
    notes: list[NoteRecord] = field(default_factory=list)
    blob: Optional[BlobRecord] = None
    user_references: list[UserReferenceRecord] = field(default_factory=list)
    rin: str = ""
    change: Optional[ChangeRecord] = None


@dataclass(eq=False, repr=False)
class SourceRecord(Record):
    xref: str = ""
    value: str = ""
    name: str = ""
    title: str = ""
    author: str = ""
    abbreviation: str = ""
    publication: str = ""
    parenthesized: str = ""
    texts: list[str] = field(default_factory=list)
    data: Optional[DataRecord] = None
    short_author: str = ""
    short_title: Optional[ShortTitleRecord] = None
    footnote: Optional[FootnoteRecord] = None
    bibliography: Optional[BibliographyRecord] = None
    repository: Optional[RepositoryLink] = None
    media: list[MediaLink] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)
    user_references: list[UserReferenceRecord] = field(default_factory=list)
    rin: str = ""
    change: Optional[ChangeRecord] = None


@dataclass(eq=False, repr=False)
class RepositoryRecord(Record):
    xref: str = ""
    name: str = ""
    address: Optional[AddressRecord] = None
    phones: list[str] = field(default_factory=list)
    website: str = ""
    notes: list[NoteRecord] = field(default_factory=list)
    user_references: list[UserReferenceRecord] = field(default_factory=list)
    rin: str = ""
    change: Optional[ChangeRecord] = None


@dataclass(eq=False, repr=False)
class SubmitterRecord(Record):
    xref: str = ""
    name: str = ""
    address: Optional[AddressRecord] = None
    country: str = ""
    phones: list[str] = field(default_factory=list)
    email: str = ""
    website: str = ""
    language: str = ""
    media: list[MediaLink] = field(default_factory=list)
    record_file_number: str = ""
    rin: str = ""
    stal: str = ""
    numb: str = ""
    change: Optional[ChangeRecord] = None


@dataclass(eq=False, repr=False)
class SubmissionRecord(Record):
    xref: str = ""
    submitter: Optional[SubmitterLink] = None
    family_file_name: str = ""
    temple: str = ""
    ancestors: str = ""
    descendants: str = ""
    ordinance: str = ""
    rin: str = ""


@dataclass(eq=False, repr=False)
class ChildStatusRecord(Record):
    xref: str = ""
    name: str = ""


@dataclass(eq=False, repr=False)
class EventDefinitionRecord(Record):
    xref: str = ""
    type: str = ""
    title: str = ""
    abbreviation: str = ""


@dataclass(eq=False, repr=False)
class HeaderRecord(Record):
    """The document header. There is only one per decode."""
    xref: str = ""
    source_system: Optional[SystemRecord] = None
    destination: str = ""
    date: Optional[DateRecord] = None
    file_name: str = ""
    gedcom: Optional[GedcomRecord] = None
    character_set: Optional[CharacterSetRecord] = None
    language: str = ""
    copyright: str = ""
    place: Optional[PlaceRecord] = None
    root_person: Optional[IndividualLink] = None
    home_person: Optional[IndividualLink] = None
    notes: list[NoteRecord] = field(default_factory=list)
    submitters: list[SubmitterLink] = field(default_factory=list)
    submissions: list[SubmissionLink] = field(default_factory=list)
    schema: Optional[SchemaRecord] = None


@dataclass(eq=False, repr=False)
class TrailerRecord(Record):
    """End-of-document marker. There is only one per decode."""
    xref: str = ""


ROOT_KINDS: tuple[type, ...] = (
    HeaderRecord,
    SubmissionRecord,
    SubmitterRecord,
    IndividualRecord,
    FamilyRecord,
    EventRecord,
    PlaceRecord,
    SourceRecord,
    RepositoryRecord,
    MediaRecord,
    NoteRecord,
    ChildStatusRecord,
    EventDefinitionRecord,
    TrailerRecord,
)


# ============================================================================
# Root aggregate
# ============================================================================

@dataclass(eq=False, repr=False)
class RootRecord(Record):
    """Everything a decode produced, in stream order per kind."""
    header: Optional[HeaderRecord] = None
    submissions: list[SubmissionRecord] = field(default_factory=list)
    submitters: list[SubmitterRecord] = field(default_factory=list)
    individuals: list[IndividualRecord] = field(default_factory=list)
    families: list[FamilyRecord] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)
    places: list[PlaceRecord] = field(default_factory=list)
    sources: list[SourceRecord] = field(default_factory=list)
    repositories: list[RepositoryRecord] = field(default_factory=list)
    media: list[MediaRecord] = field(default_factory=list)
    notes: list[NoteRecord] = field(default_factory=list)
    child_statuses: list[ChildStatusRecord] = field(default_factory=list)
    event_definitions: list[EventDefinitionRecord] = field(default_factory=list)
    trailer: Optional[TrailerRecord] = None

    def counts(self) -> dict[str, int]:
        """Number of records per root collection."""
        result: dict[str, int] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, list):
                result[f.name] = len(value)
        return result

    def __repr__(self) -> str:
        parts = [f"{name}={n}" for name, n in self.counts().items() if n]
        return f"<RootRecord: {', '.join(parts) or 'empty'}>"


# ============================================================================
# Text slots
# ============================================================================

class TextSlot:
    """A single string field (or one item of a string list) of a record.

    Tags like TEXT or TITL open a nested context whose CONT/CONC lines must
    extend exactly that string. The slot exposes it as `value` so the
    continuation actions work on it the same way they work on a record.
    """

    def __init__(self, owner: Any, field_name: str, index: Optional[int] = None) -> None:
        self.owner = owner
        self.field_name = field_name
        self.index = index

    @property
    def value(self) -> str:
        current = getattr(self.owner, self.field_name)
        if self.index is None:
            return current
        return current[self.index]

    @value.setter
    def value(self, text: str) -> None:
        if self.index is None:
            setattr(self.owner, self.field_name, text)
        else:
            getattr(self.owner, self.field_name)[self.index] = text

    def __repr__(self) -> str:
        idx = f"[{self.index}]" if self.index is not None else ""
        return f"<TextSlot {type(self.owner).__name__}.{self.field_name}{idx}>"
