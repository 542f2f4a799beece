"""
gedstack Parse Contexts

A ParseContext is plain data: the record lines are currently being applied
to, the dispatch table for that record, and the level of the line that
opened it. Any later line at or above that level (numerically <=) closes
the context.

The ContextStack always holds the root context at the bottom; popping it
is a programming error, not a data error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gedstack.grammar import Action


ROOT_MIN_LEVEL = -1


class StackUnderflowError(Exception):
    """Attempted to pop the root context."""
    def __init__(self, depth: int):
        super().__init__(f"Context stack underflow at depth {depth}")
        self.depth = depth


@dataclass
class ParseContext:
    min_level: int
    record: Any
    table: dict[str, Action]

    @property
    def is_root(self) -> bool:
        return self.min_level == ROOT_MIN_LEVEL

    def __repr__(self) -> str:
        return f"<ParseContext min_level={self.min_level} {self.record!r}>"


class ContextStack:
    def __init__(self, root: ParseContext):
        self._contexts: list[ParseContext] = [root]

    @property
    def top(self) -> ParseContext:
        return self._contexts[-1]

    @property
    def root(self) -> ParseContext:
        return self._contexts[0]

    def push(self, context: ParseContext) -> None:
        self._contexts.append(context)

    def pop(self) -> ParseContext:
        if len(self._contexts) <= 1:
            raise StackUnderflowError(len(self._contexts))
        return self._contexts.pop()

    def levels(self) -> list[int]:
        """min_level of every context, bottom first."""
        return [c.min_level for c in self._contexts]

    def __len__(self) -> int:
        return len(self._contexts)

    def __repr__(self) -> str:
        return f"<ContextStack depth={len(self._contexts)} levels={self.levels()}>"
