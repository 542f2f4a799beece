"""
gedstack Configuration

Knobs for the streaming decoder and the encoder. Both are frozen so one
instance can be shared between decode calls without surprises.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DecoderConfig:
    # Bytes requested from the source per read
    chunk_size: int = 512
    # Codec for values (tags and xrefs are always ASCII)
    encoding: str = "utf-8"
    errors: str = "replace"
    # Decode a final line that has no CR/LF before end of stream
    flush_trailing_line: bool = True

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")


@dataclass(frozen=True)
class EncoderConfig:
    # Two spaces of indentation per level (human-readable dump)
    indent: bool = False
    line_ending: str = "\n"
    encoding: str = "utf-8"


DEFAULT_DECODER_CONFIG = DecoderConfig()
DEFAULT_ENCODER_CONFIG = EncoderConfig()
