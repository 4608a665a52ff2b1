"""Resumable statement scanner for semicolon-terminated SQL streams.

The scanner turns an arbitrarily long character stream into individual SQL
statements while holding only the statement currently being built.  Input
arrives in chunks of any size; every piece of lexical context needed to
resume -- open string literal, open quoted identifier, open comment,
parenthesis depth, and a held-back delimiter character -- lives in an
explicit :class:`ScanState` value owned by the :class:`StatementScanner`.

Rules, applied outside strings, identifiers and comments:

1. ``--`` starts a line comment, stripped up to (not including) CR/LF.
2. ``/*`` starts a block comment, stripped through the closing ``*/``.
3. ``'`` toggles a string literal; ``''`` inside it is copied through.
4. ``"`` toggles a quoted identifier; ``""`` inside it is copied through.
5. ``(`` and ``)`` adjust the parenthesis depth (never below 0).
6. ``;`` at depth 0 terminates the statement.

Emitted statements are trimmed and never empty.  Comment text is never part
of an emitted statement.

Usage::

    scanner = StatementScanner()
    for chunk in chunks:
        for statement in scanner.feed(chunk):
            handle(statement)
    tail = scanner.finish()
    if tail is not None:
        handle(tail)

A scanner is single-use per stream and not thread-safe; independent passes
over the same source need independent scanners.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

# Characters that may change state while outside any quoted/comment region.
_NORMAL_TOKENS = re.compile(r"[-/'\"();]")

# Line comments end at the first CR or LF, which stays in the statement.
_LINE_END = re.compile(r"[\r\n]")


@dataclass
class ScanState:
    """Mutable lexical context carried across chunk boundaries.

    At most one of the four region flags is set at any time, and
    ``paren_depth`` only moves while none of them is set.  ``previous_char``
    holds a character seen at the very end of the last chunk whose meaning
    depends on the next one: a ``-`` or ``/`` that may open a comment, or a
    ``*`` inside a block comment that may close it.
    """

    in_single_quote: bool = False
    in_quoted_identifier: bool = False
    in_line_comment: bool = False
    in_block_comment: bool = False
    paren_depth: int = 0
    previous_char: str = ""
    buffer: list[str] = field(default_factory=list)

    @property
    def in_region(self) -> bool:
        """Return True while inside a string, identifier, or comment."""
        return (
            self.in_single_quote
            or self.in_quoted_identifier
            or self.in_line_comment
            or self.in_block_comment
        )

    def take_statement(self) -> str:
        """Return the buffered text, trimmed, and clear the buffer."""
        text = "".join(self.buffer).strip()
        self.buffer.clear()
        return text

    def reset(self) -> None:
        """Return every field to its initial value."""
        self.in_single_quote = False
        self.in_quoted_identifier = False
        self.in_line_comment = False
        self.in_block_comment = False
        self.paren_depth = 0
        self.previous_char = ""
        self.buffer.clear()


class StatementScanner:
    """Split a chunked character stream into SQL statements.

    Parameters
    ----------
    state:
        Optional pre-built :class:`ScanState`, mainly useful for tests that
        exercise a particular lexical context.  A fresh state is created
        when omitted.
    """

    def __init__(self, state: ScanState | None = None) -> None:
        self.state = state if state is not None else ScanState()

    def feed(self, chunk: str) -> Iterator[str]:
        """Consume *chunk* and lazily yield every statement it completes.

        The returned generator must be exhausted before the next call to
        :meth:`feed` or :meth:`finish`; the scan state only advances as the
        generator is consumed.
        """
        state = self.state
        text = state.previous_char + chunk
        state.previous_char = ""
        pos = 0
        end = len(text)

        while pos < end:
            if state.in_line_comment:
                match = _LINE_END.search(text, pos)
                if match is None:
                    return
                state.in_line_comment = False
                pos = match.start()
                continue

            if state.in_block_comment:
                close = text.find("*/", pos)
                if close < 0:
                    if text.endswith("*") and end - 1 >= pos:
                        state.previous_char = "*"
                    return
                state.in_block_comment = False
                pos = close + 2
                continue

            if state.in_single_quote or state.in_quoted_identifier:
                quote = "'" if state.in_single_quote else '"'
                close = text.find(quote, pos)
                if close < 0:
                    state.buffer.append(text[pos:])
                    return
                # A doubled quote closes and reopens the region, so the
                # escape is copied through unchanged.
                state.buffer.append(text[pos : close + 1])
                state.in_single_quote = False
                state.in_quoted_identifier = False
                pos = close + 1
                continue

            match = _NORMAL_TOKENS.search(text, pos)
            if match is None:
                state.buffer.append(text[pos:])
                return

            idx = match.start()
            char = match.group()
            if idx > pos:
                state.buffer.append(text[pos:idx])

            if char in "-/":
                opener = "-" if char == "-" else "*"
                if idx + 1 >= end:
                    # Decided by the first character of the next chunk.
                    state.previous_char = char
                    return
                if text[idx + 1] == opener:
                    if char == "-":
                        state.in_line_comment = True
                    else:
                        state.in_block_comment = True
                    pos = idx + 2
                    continue
                state.buffer.append(char)
            elif char == "'":
                state.in_single_quote = True
                state.buffer.append(char)
            elif char == '"':
                state.in_quoted_identifier = True
                state.buffer.append(char)
            elif char == "(":
                state.paren_depth += 1
                state.buffer.append(char)
            elif char == ")":
                state.paren_depth = max(0, state.paren_depth - 1)
                state.buffer.append(char)
            elif state.paren_depth == 0:
                statement = state.take_statement()
                if statement:
                    yield statement
            else:
                state.buffer.append(char)
            pos = idx + 1

    def finish(self) -> str | None:
        """Flush a trailing statement that was not terminated by ``;``.

        Resets all lexical state so the scanner could start a new stream.
        Returns None when nothing but whitespace (or comments) remains.
        """
        state = self.state
        if state.previous_char and not state.in_block_comment:
            state.buffer.append(state.previous_char)
        if state.in_region or state.paren_depth:
            logger.debug(
                "Stream ended inside an open region (depth=%d, quote=%s, identifier=%s)",
                state.paren_depth,
                state.in_single_quote,
                state.in_quoted_identifier,
            )
        statement = state.take_statement()
        state.reset()
        return statement or None


def iter_statements(chunks: Iterable[str]) -> Iterator[str]:
    """Yield every statement in *chunks*, including an unterminated tail.

    Each call uses its own :class:`StatementScanner`, so two calls over the
    same source are fully independent and produce identical sequences.
    """
    scanner = StatementScanner()
    for chunk in chunks:
        yield from scanner.feed(chunk)
    tail = scanner.finish()
    if tail is not None:
        yield tail
