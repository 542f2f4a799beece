#!/usr/bin/env python3
"""
gedstack — leveled-line genealogy decoder

Command-line interface for decoding, inspecting and re-encoding files.

Usage:
    gedstack stats <file>                 Record counts, ignored lines, dangling ids
    gedstack dump <file> [--indent]       Decode and re-encode to stdout
    gedstack refs <file> [--xref ID]      Reference graph between root records
    gedstack tokens <file> [-n N]         Raw tokens as scanned
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from collections import Counter
from itertools import islice
from pathlib import Path

from gedstack.config import DecoderConfig, EncoderConfig
from gedstack.decoder import Decoder, SourceReadError
from gedstack.encoder import Encoder
from gedstack.graph import ReferenceGraph
from gedstack.scanner import ScanError


# ============================================================================
# Formatting helpers
# ============================================================================

class C:
    """ANSI colors."""
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    RESET = "\033[0m"

    @staticmethod
    def off():
        C.BOLD = C.DIM = C.RED = C.GREEN = C.YELLOW = C.CYAN = C.RESET = ""


def header(text: str) -> str:
    return f"\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}\n{C.BOLD}  {text}{C.RESET}\n{C.BOLD}{C.CYAN}{'─' * 60}{C.RESET}"


def ok(text: str) -> str:
    return f"  {C.GREEN}✓{C.RESET} {text}"


def warn(text: str) -> str:
    return f"  {C.YELLOW}⚠{C.RESET} {text}"


def fail(text: str) -> str:
    return f"  {C.RED}✗{C.RESET} {text}"


def filesize(n: int) -> str:
    if n > 1_000_000:
        return f"{n/1_000_000:.1f} MB"
    if n > 1_000:
        return f"{n/1_000:.1f} KB"
    return f"{n} B"


def decoder_config(args) -> DecoderConfig:
    return DecoderConfig(chunk_size=args.chunk_size)


def decode_file(args) -> Decoder:
    """Decode args.file; the returned Decoder holds the interpreter state."""
    with Path(args.file).open("rb") as f:
        decoder = Decoder(f, decoder_config(args))
        decoder.decode()
    return decoder


# ============================================================================
# Commands
# ============================================================================

def cmd_stats(args):
    """Record counts and decode diagnostics."""
    decoder = decode_file(args)
    interp = decoder.interpreter
    root = interp.root

    print(header(f"STATS: {args.file}"))
    print(f"  {C.DIM}Size: {filesize(decoder.offset)}  |  Lines: {decoder.line}{C.RESET}")

    if root.header is not None and root.header.source_system is not None:
        print(f"  Source system: {root.header.source_system.system_name}")

    print()
    for name, n in root.counts().items():
        if n:
            print(f"  {name:<20} {n:>8}")

    print()
    if interp.unhandled:
        tags = Counter(t.tag for t in interp.unhandled)
        common = ", ".join(f"{tag}×{n}" for tag, n in tags.most_common(8))
        print(warn(f"{len(interp.unhandled)} lines ignored ({common})"))
    else:
        print(ok("Every line handled"))

    undefined = interp.refs.undefined()
    if undefined:
        ids = ", ".join(xref for _, xref in undefined[:10])
        print(warn(f"{len(undefined)} ids referenced but never defined: {ids}"))
    else:
        print(ok("Every reference resolves to a definition"))

    if root.trailer is None:
        print(warn("No trailer line"))


def cmd_dump(args):
    """Decode and write the graph back out."""
    decoder = decode_file(args)
    encoder = Encoder(EncoderConfig(indent=args.indent))
    out = sys.stdout.buffer
    encoder.write(decoder.interpreter.root, out)
    out.flush()


def cmd_refs(args):
    """Show the reference graph, or the neighbourhood of one id."""
    decoder = decode_file(args)
    graph = ReferenceGraph(decoder.interpreter.root, decoder.interpreter.refs)

    print(header(f"REFERENCES: {args.file}"))

    if args.path:
        source, target = args.path
        chain = graph.path(source, target)
        if chain is None:
            print(fail(f"No reference chain between @{source}@ and @{target}@"))
        else:
            print(ok(" → ".join(f"@{x}@" for x in chain)))
        return

    if args.xref:
        if graph.record(args.xref) is None:
            print(fail(f"Unknown id @{args.xref}@"))
            return
        print(f"  {C.BOLD}@{args.xref}@{C.RESET} {graph.record(args.xref)!r}")
        for other in graph.relatives(args.xref):
            tags = graph.tags(args.xref, other) | graph.tags(other, args.xref)
            print(f"    {other:<12} {C.DIM}{', '.join(sorted(tags))}{C.RESET}")
        return

    print(graph.summary())
    components = graph.components()
    print()
    print(f"  {len(components)} connected groups, largest has {len(components[0]) if components else 0} ids")
    undefined = graph.undefined()
    if undefined:
        print(warn(f"Undefined: {', '.join(undefined)}"))


def cmd_tokens(args):
    """Print tokens as the scanner produces them."""
    with Path(args.file).open("rb") as f:
        decoder = Decoder(f, decoder_config(args))
        for token in islice(decoder.tokens(), args.limit):
            xref = f"@{token.xref}@ " if token.xref else ""
            print(f"{C.DIM}{decoder.line:>6}{C.RESET}  {token.level} {xref}{C.BOLD}{token.tag}{C.RESET} {token.value}")


# ============================================================================
# Main
# ============================================================================

def main():
    parser = argparse.ArgumentParser(
        prog="gedstack",
        description="gedstack — leveled-line genealogy decoder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""
        examples:
          gedstack stats family.ged
          gedstack dump family.ged --indent
          gedstack refs family.ged --xref I1
          gedstack refs family.ged --path I1 I42
          gedstack tokens family.ged -n 20
        """),
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colored output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log ignored lines (DEBUG)")
    parser.add_argument("--chunk-size", type=int, default=DecoderConfig.chunk_size,
                        help="Bytes read from the file per chunk")

    sub = parser.add_subparsers(dest="command", help="Command to run")

    # stats
    p = sub.add_parser("stats", help="Record counts and decode diagnostics")
    p.add_argument("file", help="File to decode")

    # dump
    p = sub.add_parser("dump", help="Decode and re-encode to stdout")
    p.add_argument("file", help="File to decode")
    p.add_argument("--indent", action="store_true", help="Indent two spaces per level")

    # refs
    p = sub.add_parser("refs", help="Reference graph between root records")
    p.add_argument("file", help="File to decode")
    p.add_argument("--xref", help="Show only the records related to this id")
    p.add_argument("--path", nargs=2, metavar=("FROM", "TO"), help="Shortest reference chain")

    # tokens
    p = sub.add_parser("tokens", help="Raw tokens as scanned")
    p.add_argument("file", help="File to scan")
    p.add_argument("-n", "--limit", type=int, default=None, help="Stop after N tokens")

    args = parser.parse_args()

    if args.no_color or not sys.stdout.isatty():
        C.off()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return

    # Dispatch
    commands = {
        "stats": cmd_stats,
        "dump": cmd_dump,
        "refs": cmd_refs,
        "tokens": cmd_tokens,
    }

    handler = commands.get(args.command)
    if handler:
        try:
            handler(args)
        except FileNotFoundError as e:
            print(fail(f"File not found: {e}"))
            sys.exit(1)
        except ScanError as e:
            print(fail(f"Malformed line: {e}"))
            sys.exit(1)
        except SourceReadError as e:
            print(fail(f"Read error: {e}"))
            sys.exit(1)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
