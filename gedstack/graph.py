"""
gedstack Reference Graph

A directed view of how root records point at each other. Nodes are the
xref ids of root records; an edge A -> B means some line beneath A refers
to B (a FAMC, a CHIL, a citation SOUR, ...). Edges carry the tags that
produced them.

Ids that are referenced but never defined at level 0 still become nodes,
marked defined=False.
"""

from __future__ import annotations

from typing import Iterator, Optional

import networkx as nx

from gedstack.records import Record, RootRecord
from gedstack.xref import CrossReferenceTable


def _references(record: Record) -> Iterator[tuple[str, Record]]:
    """(tag, target) for every xref-bearing record reachable beneath `record`.

    The walk stops at each xref-bearing record it meets; those are edges,
    not part of the record's own body.
    """
    stack: list[tuple[Record, str]] = [(child, record.tag) for child in record.nested_records()]
    seen: set[int] = set()
    while stack:
        current, via = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if getattr(current, "xref", ""):
            yield via, current
            continue
        for child in current.nested_records():
            stack.append((child, current.tag))


class ReferenceGraph:
    """networkx DiGraph over the root records of one decode."""

    def __init__(self, root: RootRecord, refs: Optional[CrossReferenceTable] = None):
        self.root = root
        self.refs = refs
        self._graph = nx.DiGraph()
        self._build()

    def _sources(self) -> Iterator[Record]:
        if self.root.header is not None:
            yield self.root.header
        for name in self.root.counts():
            for record in getattr(self.root, name):
                if getattr(record, "xref", ""):
                    yield record

    def _build(self) -> None:
        for record in self._sources():
            self._graph.add_node(record.xref, record=record, kind=type(record).__name__, defined=True)

        for record in self._sources():
            for via, target in _references(record):
                if target.xref not in self._graph:
                    self._graph.add_node(
                        target.xref, record=target, kind=type(target).__name__, defined=False,
                    )
                if self._graph.has_edge(record.xref, target.xref):
                    self._graph.edges[record.xref, target.xref]["tags"].add(via)
                else:
                    self._graph.add_edge(record.xref, target.xref, tags={via})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def undefined(self) -> list[str]:
        """Ids referenced somewhere but never defined at level 0."""
        if self.refs is not None:
            return sorted(xref for _, xref in self.refs.undefined())
        return sorted(n for n, data in self._graph.nodes(data=True) if not data["defined"])

    def record(self, xref: str) -> Optional[Record]:
        if xref not in self._graph:
            return None
        return self._graph.nodes[xref]["record"]

    def relatives(self, xref: str) -> list[str]:
        """Every id that refers to, or is referred to by, `xref`."""
        if xref not in self._graph:
            return []
        neighbours = set(self._graph.successors(xref)) | set(self._graph.predecessors(xref))
        return sorted(neighbours)

    def path(self, source: str, target: str) -> Optional[list[str]]:
        """Shortest chain of references between two ids, ignoring direction."""
        try:
            return nx.shortest_path(self._graph.to_undirected(as_view=True), source, target)
        except (nx.NetworkXNoPath, nx.NodeNotFound):
            return None

    def components(self) -> list[list[str]]:
        """Groups of ids connected by references, largest first."""
        groups = [sorted(c) for c in nx.weakly_connected_components(self._graph)]
        return sorted(groups, key=lambda g: (-len(g), g))

    def tags(self, source: str, target: str) -> set[str]:
        if not self._graph.has_edge(source, target):
            return set()
        return set(self._graph.edges[source, target]["tags"])

    @property
    def nodes(self) -> list[str]:
        return list(self._graph.nodes)

    @property
    def edges(self) -> list[tuple[str, str]]:
        return list(self._graph.edges)

    def summary(self) -> str:
        lines = [
            f"Reference Graph: {len(self._graph.nodes)} ids, {len(self._graph.edges)} references",
        ]
        for xref in sorted(self._graph.nodes):
            data = self._graph.nodes[xref]
            mark = "·" if data["defined"] else "?"
            lines.append(f"  [{mark}] {xref} ({data['kind']}) → {sorted(self._graph.successors(xref))}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"<ReferenceGraph: {len(self._graph.nodes)} nodes, {len(self._graph.edges)} edges>"
