"""Quote-aware helpers for taking apart parenthesised SQL regions.

These functions operate on a single, already-segmented statement.  They never
interpret SQL grammar beyond three things: single-quoted string literals
(``''`` escapes a quote), double-quoted identifiers (``""`` escapes a quote)
and parenthesis nesting.

Note the deliberate asymmetry in :func:`split_top_level`: it only knows about
single-quoted strings.  Value lists carry data literals, and a double quote
inside such data (HTML fragments, JSON, ...) is ordinary text.
"""

from __future__ import annotations

import re

from loader_engine.parser.errors import StructuralError

# Characters that can change the splitter's state.
_LIST_TOKENS = re.compile(r"[',()]")

# Characters that can change the paren matcher's and keyword finder's state.
_PAREN_TOKENS = re.compile(r"['\"()]")


def split_top_level(region: str) -> list[str]:
    """Split *region* on commas at nesting depth 0 outside string literals.

    Every item is stripped of surrounding whitespace.  An empty region yields
    an empty list, and a trailing comma does not produce an empty last item.

    Examples
    --------
    >>> split_top_level("1, 'a,b', f(2, 3)")
    ['1', "'a,b'", 'f(2, 3)']
    """
    items: list[str] = []
    depth = 0
    start = 0
    pos = 0

    while True:
        match = _LIST_TOKENS.search(region, pos)
        if match is None:
            break
        char = match.group()
        idx = match.start()

        if char == "'":
            # A doubled quote closes and immediately reopens the literal,
            # which leaves the split state unchanged.
            close = region.find("'", idx + 1)
            if close < 0:
                break
            pos = close + 1
            continue

        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(0, depth - 1)
        elif depth == 0:
            items.append(region[start:idx].strip())
            start = idx + 1
        pos = idx + 1

    if start < len(region):
        items.append(region[start:].strip())
    return items


def find_matching_paren(sql: str, open_pos: int) -> int:
    """Return the index of the ``)`` that closes the ``(`` at *open_pos*.

    Parentheses inside single-quoted strings and double-quoted identifiers
    are ignored.

    Raises
    ------
    ValueError
        If *open_pos* does not point at ``(``.
    StructuralError
        If the parenthesis is never closed.
    """
    if open_pos < 0 or open_pos >= len(sql) or sql[open_pos] != "(":
        raise ValueError(f"Position {open_pos} is not an opening parenthesis")

    depth = 0
    pos = open_pos
    while True:
        match = _PAREN_TOKENS.search(sql, pos)
        if match is None:
            break
        char = match.group()
        idx = match.start()

        if char in "'\"":
            close = sql.find(char, idx + 1)
            if close < 0:
                break
            pos = close + 1
            continue

        if char == "(":
            depth += 1
        else:
            depth -= 1
            if depth == 0:
                return idx
        pos = idx + 1

    raise StructuralError(sql, "Unbalanced parentheses: no matching ')' found")


def find_keyword(sql: str, keyword: str, start: int = 0) -> int:
    """Return the index of *keyword* as a whole word at top level, or -1.

    The search begins at *start*, is case-insensitive, and skips anything
    inside quotes or inside parentheses opened after *start*.
    """
    # Matched against the original text; str.upper() can change its length.
    pattern = re.compile(re.escape(keyword), re.IGNORECASE)
    depth = 0
    pos = start

    while True:
        found = pattern.search(sql, pos)
        if found is None:
            return -1
        candidate = found.start()

        # Advance the quote/paren state up to the candidate.
        while True:
            match = _PAREN_TOKENS.search(sql, pos, candidate)
            if match is None:
                break
            char = match.group()
            idx = match.start()
            if char in "'\"":
                close = sql.find(char, idx + 1)
                if close < 0:
                    return -1
                pos = close + 1
                continue
            depth = depth + 1 if char == "(" else max(0, depth - 1)
            pos = idx + 1

        if pos > candidate:
            # The candidate sat inside a quoted region; resume after it.
            continue

        end = found.end()
        before_ok = candidate == 0 or not _is_word_char(sql[candidate - 1])
        after_ok = end >= len(sql) or not _is_word_char(sql[end])
        if depth == 0 and before_ok and after_ok:
            return candidate
        pos = candidate + 1


def unquote_identifier(token: str) -> str:
    """Strip surrounding double quotes from an identifier, undoing ``""``."""
    text = token.strip()
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1].replace('""', '"')
    return text


def unquote_string(token: str) -> str:
    """Strip surrounding single quotes from a literal, undoing ``''``.

    Tokens that are not single-quoted are returned stripped but otherwise
    unchanged.
    """
    text = token.strip()
    if is_quoted_string(text):
        return text[1:-1].replace("''", "'")
    return text


def is_quoted_string(token: str) -> bool:
    """Return True if *token* is wrapped in single quotes."""
    return len(token) >= 2 and token[0] == "'" and token[-1] == "'"


def _is_word_char(char: str) -> bool:
    return char.isalnum() or char in "_$#"
