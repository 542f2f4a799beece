"""
gedstack - decoder and encoder for leveled-line genealogy files
Rebuilds the record graph from "<level> [@xref@] <tag> [value]" lines.

Scanner:     bytes -> tokens, one line at a time, chunk-boundary safe
Interpreter: tokens -> records, driven by a context stack and static tag tables
Encoder:     records -> lines, walking the same tables in reverse
"""

__version__ = "0.1.0"

from gedstack.scanner import Scanner, ScanError, ScanState, Token
from gedstack.config import DecoderConfig, EncoderConfig
from gedstack.xref import CrossReferenceTable, strip_value, strip_xref
from gedstack.context import ContextStack, ParseContext, StackUnderflowError
from gedstack.interpreter import Interpreter, dispatch
from gedstack.decoder import Decoder, SourceReadError, decode, load
from gedstack.encoder import Encoder, encode, encode_record
from gedstack.graph import ReferenceGraph
from gedstack.records import (
    FamilyRecord,
    IndividualRecord,
    Record,
    RootRecord,
    SourceRecord,
)

__all__ = [
    "Scanner",
    "ScanError",
    "ScanState",
    "Token",
    "DecoderConfig",
    "EncoderConfig",
    "CrossReferenceTable",
    "strip_value",
    "strip_xref",
    "ContextStack",
    "ParseContext",
    "StackUnderflowError",
    "Interpreter",
    "dispatch",
    "Decoder",
    "SourceReadError",
    "decode",
    "load",
    "Encoder",
    "encode",
    "encode_record",
    "ReferenceGraph",
    "Record",
    "RootRecord",
    "IndividualRecord",
    "FamilyRecord",
    "SourceRecord",
]
