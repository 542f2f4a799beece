"""
gedstack Grammar Tables

Static (record kind -> {tag: Action}) maps. The interpreter looks up the tag
of every incoming line in the table of the record on top of the context
stack; the encoder walks the same tables in reverse to turn records back
into lines.

Table order matters to the encoder: fields are written in the order their
first tag appears in the table.

Action kinds:
    ASSIGN    store the value in a scalar field
    APPEND    append the value to a list field
    CHILD     create a nested record, store it, descend into it
    LINK      create a link record pointing at a shared root record, descend
    DEFINE    resolve a root record by its own xref, collect it, descend
    CONTINUE  extend a text field with a newline and the value (CONT)
    CONCAT    extend a text field with the value only (CONC)
    VERBATIM  keep "<level> <tag> <value>" as a raw string
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional

from gedstack.records import (
    AddressRecord, BibliographyRecord, BlobRecord, BusinessRecord,
    CallNumberRecord, ChangeRecord, CharacterSetRecord, ChildStatusRecord,
    CitationRecord, DataRecord, DateRecord, EventDefinitionRecord,
    EventRecord, FamilyLink, FamilyRecord, FootnoteRecord, GedcomRecord,
    HeaderRecord, HistoryRecord, IndividualLink, IndividualRecord,
    MediaLink, MediaRecord, NameRecord, NoteRecord, PlacePartRecord,
    PlaceRecord, RepositoryLink, RepositoryRecord, RoleRecord, RootRecord,
    SchemaRecord, ShortTitleRecord, SourceRecord, SubmissionLink,
    SubmissionRecord, SubmitterLink, SubmitterRecord, SystemRecord,
    TextSlot, TrailerRecord, UserReferenceRecord,
)


class ActionKind(Enum):
    ASSIGN = auto()
    APPEND = auto()
    CHILD = auto()
    LINK = auto()
    DEFINE = auto()
    CONTINUE = auto()
    CONCAT = auto()
    VERBATIM = auto()


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    field: str
    # CHILD / LINK / DEFINE: record kind to create (LINK: the link wrapper)
    record: Optional[type] = None
    # Append to a list field instead of assigning
    many: bool = False
    # Field of the created record that receives the line's value
    value_field: Optional[str] = None
    # LINK: kind resolved through the xref table, and where it is stored
    target: Optional[type] = None
    target_field: Optional[str] = None
    # LINK: a line without a pointer creates an anonymous target in place
    inline: bool = False
    # ASSIGN / APPEND: open a text context so CONT/CONC extend this string
    text: bool = False
    # ASSIGN: value conversion (ValueError leaves the field untouched)
    convert: Optional[Callable[[str], object]] = None

    def __repr__(self) -> str:
        return f"<Action {self.kind.name} -> {self.field}>"


def assign(field: str, text: bool = False, convert: Optional[Callable] = None) -> Action:
    return Action(ActionKind.ASSIGN, field, text=text, convert=convert)


def append(field: str, text: bool = False) -> Action:
    return Action(ActionKind.APPEND, field, many=True, text=text)


def child(kind: type, field: str, many: bool = False, value: Optional[str] = None) -> Action:
    return Action(ActionKind.CHILD, field, record=kind, many=many, value_field=value)


def link(
    kind: type,
    field: str,
    target: type,
    target_field: str,
    many: bool = False,
    value: Optional[str] = None,
    inline: bool = False,
) -> Action:
    return Action(
        ActionKind.LINK, field, record=kind, many=many, value_field=value,
        target=target, target_field=target_field, inline=inline,
    )


def define(kind: type, field: str, many: bool = True, value: Optional[str] = None) -> Action:
    return Action(ActionKind.DEFINE, field, record=kind, many=many, value_field=value)


def cont(field: str) -> Action:
    return Action(ActionKind.CONTINUE, field)


def conc(field: str) -> Action:
    return Action(ActionKind.CONCAT, field)


def verbatim(field: str) -> Action:
    return Action(ActionKind.VERBATIM, field, many=True)


# ============================================================================
# Shared entries
# ============================================================================

def _text(field: str) -> dict[str, Action]:
    return {"CONT": cont(field), "CONC": conc(field)}


def _citations() -> Action:
    return link(CitationRecord, "citations", SourceRecord, "source", many=True, value="value")


def _notes() -> Action:
    return child(NoteRecord, "notes", many=True, value="note")


def _media() -> Action:
    return link(MediaLink, "media", MediaRecord, "media", many=True, value="value", inline=True)


def _refn() -> Action:
    return child(UserReferenceRecord, "user_references", many=True, value="number")


def _change() -> Action:
    return child(ChangeRecord, "change")


def _individual(field: str, many: bool = False) -> Action:
    return link(IndividualLink, field, IndividualRecord, "individual", many=many)


def _family(field: str) -> Action:
    return link(FamilyLink, field, FamilyRecord, "family", many=True)


def _submitter(field: str, many: bool = True) -> Action:
    return link(SubmitterLink, field, SubmitterRecord, "submitter", many=many)


INDIVIDUAL_EVENT_TAGS = (
    "ADOP", "BAPL", "BAPM", "BARM", "BASM", "BIRT", "BLES", "BURI",
    "CAST", "CENS", "CHR", "CHRA", "CONF", "CREM", "DEAT", "DSCR",
    "EDUC", "ELEC", "EMIG", "ENDL", "ENGA", "EVEN", "FACT", "FCOM",
    "GRAD", "IDNO", "ILLN", "IMMI", "IMMIG", "MARR", "MILI",
    "MILI_AWA", "MILI_RET", "NATI", "NATU", "NCHI", "NMR", "OCCU",
    "ORDN", "PROB", "PROP", "RELI", "RESD", "RESI", "RETI", "SLGC",
    "SSN", "TITL", "TRAV", "WAR", "WILL",
)

FAMILY_EVENT_TAGS = (
    "ANUL", "CENS", "DIV", "DIVF", "ENGA", "EVEN", "MARR", "MARB",
    "MARC", "MARL", "MARS", "SLGC", "SLGS",
)

SCHEMA_TAGS = (
    "AGER", "AKA", "CLASS", "COMP", "CONT", "DETAIL1", "DETAIL2",
    "EVEN", "LANG", "NAME", "NOTE", "PERI", "POSB", "POSF", "PREB",
    "PREF", "PRIN", "ROLE", "SEX", "SOUR", "STYL",
)


def _events(tags: tuple[str, ...]) -> dict[str, Action]:
    return {tag: child(EventRecord, "events", many=True, value="value") for tag in tags}


def _count(value: str) -> int:
    return int(value.strip())


# ============================================================================
# Tables
# ============================================================================

DISPATCH: dict[type, dict[str, Action]] = {
    RootRecord: {
        "HEAD": define(HeaderRecord, "header", many=False),
        "SUBM": define(SubmitterRecord, "submitters"),
        "SUBN": define(SubmissionRecord, "submissions"),
        "INDI": define(IndividualRecord, "individuals"),
        "FAM": define(FamilyRecord, "families"),
        "EVEN": define(EventRecord, "events", value="value"),
        "PLAC": define(PlaceRecord, "places", value="name"),
        "SOUR": define(SourceRecord, "sources", value="value"),
        "REPO": define(RepositoryRecord, "repositories"),
        "OBJE": define(MediaRecord, "media", value="value"),
        "NOTE": define(NoteRecord, "notes", value="note"),
        "CSTA": define(ChildStatusRecord, "child_statuses"),
        "_EVENT_DEFN": define(EventDefinitionRecord, "event_definitions"),
        "TRLR": define(TrailerRecord, "trailer", many=False),
    },

    HeaderRecord: {
        "SOUR": child(SystemRecord, "source_system", value="system_name"),
        "DEST": assign("destination"),
        "DATE": child(DateRecord, "date", value="date"),
        "SUBM": _submitter("submitters"),
        "SUBN": link(SubmissionLink, "submissions", SubmissionRecord, "submission", many=True),
        "FILE": assign("file_name"),
        "COPR": assign("copyright"),
        "GEDC": child(GedcomRecord, "gedcom"),
        "CHAR": child(CharacterSetRecord, "character_set", value="character_set"),
        "LANG": assign("language"),
        "PLAC": child(PlaceRecord, "place", value="name"),
        "_ROOT": _individual("root_person"),
        "_HME": _individual("home_person"),
        "SCHEMA": child(SchemaRecord, "schema"),
        "NOTE": _notes(),
    },

    SystemRecord: {
        "VERS": assign("version"),
        "NAME": assign("product_name"),
        "CORP": child(BusinessRecord, "business", value="name"),
        "DATA": child(DataRecord, "data", value="data"),
    },

    BusinessRecord: {
        "ADDR": child(AddressRecord, "address", value="full"),
        "PHON": append("phones"),
        "WWW": assign("website"),
    },

    AddressRecord: {
        **_text("full"),
        "ADR1": assign("line1"),
        "ADR2": assign("line2"),
        "ADR3": assign("line3"),
        "CITY": assign("city"),
        "STAE": assign("state"),
        "POST": assign("postal_code"),
        "CTRY": assign("country"),
        "PHON": assign("phone"),
    },

    ChangeRecord: {
        "DATE": child(DateRecord, "date", value="date"),
        "NOTE": _notes(),
    },

    DateRecord: {
        "TIME": assign("time"),
        "TEXT": append("texts", text=True),
        "DATD": assign("day"),
        "DATM": assign("month"),
        "DATY": assign("year"),
        "DATF": assign("full"),
        "DATS": assign("short"),
    },

    CharacterSetRecord: {
        "VERS": assign("version"),
    },

    GedcomRecord: {
        "VERS": assign("version"),
        "FORM": assign("form"),
    },

    SchemaRecord: {
        **{tag: verbatim("data") for tag in SCHEMA_TAGS},
    },

    SubmitterRecord: {
        "NAME": assign("name"),
        "ADDR": child(AddressRecord, "address", value="full"),
        "CTRY": assign("country"),
        "PHON": append("phones"),
        "EMAIL": assign("email"),
        "WWW": assign("website"),
        "LANG": assign("language"),
        "OBJE": _media(),
        "RFN": assign("record_file_number"),
        "RIN": assign("rin"),
        "STAL": assign("stal"),
        "NUMB": assign("numb"),
        "CHAN": _change(),
    },

    SubmissionRecord: {
        "SUBM": _submitter("submitter", many=False),
        "FAMF": assign("family_file_name"),
        "TEMP": assign("temple"),
        "ANCE": assign("ancestors"),
        "DESC": assign("descendants"),
        "ORDI": assign("ordinance"),
        "RIN": assign("rin"),
    },

    IndividualRecord: {
        "NAME": child(NameRecord, "names", many=True, value="name"),
        "RESN": assign("restriction"),
        "SEX": assign("sex"),
        **_events(INDIVIDUAL_EVENT_TAGS),
        "ATTR": assign("attribute"),
        "FAMC": _family("parents"),
        "FAMS": _family("families"),
        "FATH": _individual("father"),
        "MOTH": _individual("mother"),
        "ASSO": _individual("associated", many=True),
        "ALIA": assign("alias"),
        "ADDR": child(AddressRecord, "addresses", many=True, value="full"),
        "PHON": append("phones"),
        "EMAIL": assign("email"),
        "WWW": assign("website"),
        "OBJE": _media(),
        "_PROF": link(MediaLink, "profile_picture", MediaRecord, "media", value="value"),
        "HEAL": assign("health"),
        "HIST": child(HistoryRecord, "histories", many=True, value="history"),
        "QUAY": assign("quality"),
        "LVG": assign("living"),
        "CONL": assign("conl"),
        "AFN": append("ancestral_file_numbers"),
        "RFN": assign("record_file_number"),
        "REFN": _refn(),
        "_UID": append("uids"),
        "RIN": assign("rin"),
        "MISC": append("miscellaneous"),
        "SOUR": _citations(),
        "NOTE": _notes(),
        "SUBM": _submitter("submitters"),
        "ANCI": _submitter("ancestor_interest"),
        "DESI": _submitter("descendant_interest"),
        "CHAN": _change(),
        "_UPD": assign("update_time"),
    },

    FamilyRecord: {
        "HUSB": _individual("husband"),
        "WIFE": _individual("wife"),
        "NCHI": assign("num_children", convert=_count),
        "CHIL": _individual("children", many=True),
        **_events(FAMILY_EVENT_TAGS),
        "OBJE": _media(),
        "_UID": append("uids"),
        "RIN": assign("rin"),
        "REFN": _refn(),
        "SOUR": _citations(),
        "NOTE": _notes(),
        "SUBM": _submitter("submitters"),
        "CHAN": _change(),
        "_UPD": assign("update_time"),
    },

    EventRecord: {
        "TYPE": assign("type"),
        "NAME": assign("name"),
        "_PRIM": assign("primary"),
        "DATE": child(DateRecord, "date", value="date"),
        "PLAC": child(PlaceRecord, "place", value="name"),
        "ROLE": link(RoleRecord, "roles", IndividualRecord, "individual", many=True, value="role"),
        "ADDR": child(AddressRecord, "address", value="full"),
        "PHON": append("phones"),
        "FAMC": _family("parents"),
        "HUSB": _individual("husband"),
        "WIFE": _individual("wife"),
        "SPOU": _individual("spouse"),
        "AGNC": assign("agency"),
        "CAUS": assign("cause"),
        "TEMP": assign("temple"),
        "QUAY": assign("quality"),
        "STAT": assign("status"),
        "OBJE": _media(),
        "_UID": append("uids"),
        "RIN": assign("rin"),
        "EMAIL": assign("email"),
        "SOUR": _citations(),
        "NOTE": _notes(),
        "CHAN": _change(),
        "_UPD": assign("update_time"),
    },

    RoleRecord: {
        "PRIN": assign("principal"),
    },

    NameRecord: {
        "NPFX": assign("prefix"),
        "GIVN": assign("given"),
        "_MIDN": assign("middle"),
        "SPFX": assign("surname_prefix"),
        "SURN": assign("surname"),
        "NSFX": assign("suffix"),
        "_PGVN": assign("preferred_given"),
        "ROMN": assign("romanized"),
        "FONE": assign("phonetic"),
        "TYPE": assign("name_type"),
        "_PRIM": assign("primary"),
        "_AKA": append("aka"),
        "NICK": append("nicknames"),
        "SOUR": _citations(),
        "NOTE": _notes(),
    },

    PlaceRecord: {
        "FORM": assign("form"),
        "PLAS": assign("short_name"),
        "PLAM": assign("modifier"),
        **{f"PLA{n}": child(PlacePartRecord, "parts", many=True, value="part") for n in range(5)},
        "SOUR": _citations(),
        "NOTE": _notes(),
        "CHAN": _change(),
    },

    PlacePartRecord: {
        "JURI": assign("jurisdiction"),
    },

    IndividualLink: {
        "RELA": assign("relationship"),
        "AGE": assign("age"),
        "SLGC": child(EventRecord, "events", many=True, value="value"),
        "SOUR": _citations(),
        "NOTE": _notes(),
    },

    FamilyLink: {
        "PEDI": assign("pedigree"),
        "ADOP": assign("adopted"),
        "_PRIMARY": assign("primary"),
        "NOTE": _notes(),
    },

    MediaLink: {},
    SubmitterLink: {},
    SubmissionLink: {},

    CitationRecord: {
        **_text("value"),
        "PAGE": assign("page"),
        "REF": assign("reference"),
        "QUAY": assign("quality"),
        "CONS": assign("cons"),
        "DIRE": assign("direct"),
        "SOQU": assign("source_quality"),
        "EVEN": child(EventRecord, "events", many=True, value="value"),
        "DATA": child(DataRecord, "data", many=True, value="data"),
        "TEXT": append("texts", text=True),
        "OBJE": _media(),
        "NOTE": _notes(),
    },

    DataRecord: {
        "DATE": assign("date"),
        "COPR": assign("copyright"),
        "TEXT": append("texts", text=True),
        "EVEN": child(EventRecord, "events", many=True, value="value"),
        "AGNC": assign("agency"),
        "NOTE": _notes(),
    },

    SourceRecord: {
        **_text("value"),
        "NAME": assign("name", text=True),
        "TITL": assign("title", text=True),
        "AUTH": assign("author", text=True),
        "ABBR": assign("abbreviation", text=True),
        "PUBL": assign("publication", text=True),
        "_PAREN": assign("parenthesized"),
        "TEXT": append("texts", text=True),
        "DATA": child(DataRecord, "data", value="data"),
        "SHAU": assign("short_author"),
        "SHTI": child(ShortTitleRecord, "short_title", value="short_title"),
        "FOOT": child(FootnoteRecord, "footnote", value="value"),
        "BIBL": child(BibliographyRecord, "bibliography", value="value"),
        "REPO": link(RepositoryLink, "repository", RepositoryRecord, "repository"),
        "OBJE": _media(),
        "NOTE": _notes(),
        "REFN": _refn(),
        "RIN": assign("rin"),
        "CHAN": _change(),
    },

    ShortTitleRecord: {
        "INDX": assign("indexed"),
    },

    FootnoteRecord: {
        "COMP": append("components", text=True),
    },

    BibliographyRecord: {
        "COMP": append("components", text=True),
    },

    RepositoryRecord: {
        "NAME": assign("name"),
        "ADDR": child(AddressRecord, "address", value="full"),
        "PHON": append("phones"),
        "WWW": assign("website"),
        "NOTE": _notes(),
        "REFN": _refn(),
        "RIN": assign("rin"),
        "CHAN": _change(),
    },

    RepositoryLink: {
        "CALN": child(CallNumberRecord, "call_number", value="call_number"),
        "NOTE": _notes(),
    },

    CallNumberRecord: {
        "MEDI": assign("media"),
    },

    MediaRecord: {
        "FORM": assign("format"),
        "FILE": assign("file_name"),
        "_URL": assign("url"),
        "TITL": assign("title"),
        "DATE": assign("date"),
        "AUTH": assign("author"),
        "TEXT": assign("text", text=True),
        "BLOB": child(BlobRecord, "blob", value="data"),
        "NOTE": _notes(),
        "REFN": _refn(),
        "RIN": assign("rin"),
        "CHAN": _change(),
    },

    BlobRecord: {
        **_text("data"),
    },

    NoteRecord: {
        **_text("note"),
        "SOUR": _citations(),
        "REFN": _refn(),
        "RIN": assign("rin"),
        "CHAN": _change(),
    },

    HistoryRecord: {
        **_text("history"),
        "SOUR": _citations(),
    },

    UserReferenceRecord: {
        "TYPE": assign("type"),
    },

    ChildStatusRecord: {
        "NAME": assign("name"),
    },

    EventDefinitionRecord: {
        "TYPE": assign("type"),
        "TITL": assign("title"),
        "ABBR": assign("abbreviation"),
    },

    TrailerRecord: {},

    TextSlot: {
        **_text("value"),
    },
}


def table_for(record: object) -> dict[str, Action]:
    """Dispatch table of a record (empty for kinds with no sub-tags)."""
    return DISPATCH.get(type(record), {})
