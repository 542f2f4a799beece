"""
gedstack Context Stack Interpreter

Applies tokens, one at a time, to the record graph:

1. Pop every context whose min_level is >= the token's level
2. Look the tag up in the dispatch table of the new top
3. Execute the action: set a field, append, or create a record and push it

All decoder state (the context stack and the cross-reference table) is
passed in explicitly; `dispatch` itself holds nothing between calls.
"""

from __future__ import annotations

import logging
from typing import Optional

from gedstack.context import ROOT_MIN_LEVEL, ContextStack, ParseContext
from gedstack.grammar import DISPATCH, Action, ActionKind, table_for
from gedstack.records import RootRecord, TextSlot
from gedstack.scanner import Token
from gedstack.xref import CrossReferenceTable, strip_value, strip_xref

logger = logging.getLogger(__name__)

# Table of a context opened by an unknown tag: matches nothing
_IGNORED: dict[str, Action] = {}


def dispatch(token: Token, stack: ContextStack, refs: CrossReferenceTable) -> Optional[Action]:
    """Apply one token. Returns the executed action, or None if ignored."""
    while token.level <= stack.top.min_level:
        stack.pop()

    context = stack.top
    if context.is_root and token.level != 0:
        logger.debug("not a level 0 root tag: %r", token)
        return None

    action = context.table.get(token.tag)
    if action is None:
        logger.debug("unhandled %s tag: %r", type(context.record).__name__, token)
        # swallow the whole subtree of the unknown line
        stack.push(ParseContext(token.level, None, _IGNORED))
        return None

    _execute(action, token, context, stack, refs)
    return action


def _store(owner: object, action: Action, record: object) -> None:
    if action.many:
        getattr(owner, action.field).append(record)
    else:
        setattr(owner, action.field, record)


def _push(stack: ContextStack, record: object, level: int) -> None:
    stack.push(ParseContext(level, record, table_for(record)))


def _execute(
    action: Action,
    token: Token,
    context: ParseContext,
    stack: ContextStack,
    refs: CrossReferenceTable,
) -> None:
    owner = context.record
    kind = action.kind

    if kind is ActionKind.ASSIGN:
        value: object = token.value
        if action.convert is not None:
            try:
                value = action.convert(token.value)
            except ValueError as e:
                logger.warning("%s = %r: %s", token.tag, token.value, e)
                return
        setattr(owner, action.field, value)
        if action.text:
            _push(stack, TextSlot(owner, action.field), token.level)

    elif kind is ActionKind.APPEND:
        items = getattr(owner, action.field)
        items.append(token.value)
        if action.text:
            _push(stack, TextSlot(owner, action.field, len(items) - 1), token.level)

    elif kind is ActionKind.CHILD:
        record = action.record(level=token.level, tag=token.tag)
        if action.value_field:
            setattr(record, action.value_field, token.value)
        _store(owner, action, record)
        _push(stack, record, token.level)

    elif kind is ActionKind.LINK:
        record = action.record(level=token.level, tag=token.tag)
        if action.value_field:
            setattr(record, action.value_field, strip_value(token.value))
        _store(owner, action, record)
        xref = strip_xref(token.value)
        if xref:
            setattr(record, action.target_field, refs.resolve(action.target, xref))
            _push(stack, record, token.level)
        elif action.inline:
            target = action.target(level=token.level, tag=token.tag)
            setattr(record, action.target_field, target)
            _push(stack, target, token.level)
        else:
            _push(stack, record, token.level)

    elif kind is ActionKind.DEFINE:
        record, first = refs.define(action.record, token.xref)
        record.level = token.level
        record.tag = token.tag
        if action.value_field:
            setattr(record, action.value_field, token.value)
        if first or not action.many:
            _store(owner, action, record)
        _push(stack, record, token.level)

    elif kind is ActionKind.CONTINUE:
        current = getattr(owner, action.field)
        setattr(owner, action.field, f"{current}\n{token.value}" if current else token.value)

    elif kind is ActionKind.CONCAT:
        setattr(owner, action.field, getattr(owner, action.field) + token.value)

    elif kind is ActionKind.VERBATIM:
        getattr(owner, action.field).append(f"{token.level} {token.tag} {token.value}")


# ============================================================================
# Decode session
# ============================================================================

class Interpreter:
    """One decode's worth of interpreter state.

    Usage:
        interp = Interpreter()
        for token in tokens:
            interp.feed(token)
        root = interp.root
    """

    def __init__(self, refs: Optional[CrossReferenceTable] = None):
        self.refs = refs if refs is not None else CrossReferenceTable()
        self.root = RootRecord()
        self.stack = ContextStack(ParseContext(ROOT_MIN_LEVEL, self.root, DISPATCH[RootRecord]))
        self.unhandled: list[Token] = []
        self.count = 0

    def feed(self, token: Token) -> Optional[Action]:
        self.count += 1
        action = dispatch(token, self.stack, self.refs)
        if action is None:
            self.unhandled.append(token)
        return action

    def finish(self) -> RootRecord:
        """End of stream: whatever is still open is complete as it stands."""
        if self.unhandled:
            logger.debug("%d of %d lines ignored", len(self.unhandled), self.count)
        return self.root

    def __repr__(self) -> str:
        return f"<Interpreter {self.count} tokens, depth={len(self.stack)}, {len(self.unhandled)} unhandled>"
