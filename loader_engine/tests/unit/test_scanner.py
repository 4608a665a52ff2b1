"""Unit tests for the resumable statement scanner.

Covers:
- Basic segmentation on ``;`` and the unterminated tail flushed by finish()
- Semicolons inside strings, quoted identifiers, comments and parentheses
- Comment stripping (line comments keep their line break)
- Every lexical delimiter split across a chunk boundary
- Determinism across independent scanners and idempotent re-segmentation
"""

from __future__ import annotations

import pytest
from loader_engine.parser.scanner import ScanState, StatementScanner, iter_statements

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _scan(*chunks: str) -> list[str]:
    return list(iter_statements(chunks))


def _scan_by_char(text: str) -> list[str]:
    return list(iter_statements(iter(text)))


MIXED_SOURCE = (
    "-- header comment; not a statement\n"
    "INSERT INTO T (A, B) VALUES (1, 'a;b');\n"
    "/* block; comment */ INSERT INTO \"we;ird\" (\"C\"\"D\") VALUES ('it''s');\n"
    "INSERT INTO T (A) VALUES (f(1, ';'));\n"
    "UPDATE T SET A = 2 -- trailing; comment\n"
    "WHERE B = 'x';\n"
    "INSERT INTO T (A) VALUES (3)"
)


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------


class TestSegmentation:
    """Splitting on top-level semicolons."""

    def test_splits_on_semicolons(self) -> None:
        assert _scan("SELECT 1; SELECT 2;") == ["SELECT 1", "SELECT 2"]

    def test_statements_are_trimmed(self) -> None:
        assert _scan("  \n SELECT 1  \n;\n") == ["SELECT 1"]

    def test_empty_statements_are_skipped(self) -> None:
        assert _scan(";;  ; SELECT 1;;") == ["SELECT 1"]

    def test_unterminated_tail_is_flushed(self) -> None:
        assert _scan("SELECT 1; SELECT 2") == ["SELECT 1", "SELECT 2"]

    def test_whitespace_tail_yields_nothing(self) -> None:
        scanner = StatementScanner()
        assert list(scanner.feed("SELECT 1;\n  \n")) == ["SELECT 1"]
        assert scanner.finish() is None

    def test_feed_is_lazy(self) -> None:
        scanner = StatementScanner()
        gen = scanner.feed("A; B;")
        assert scanner.state.buffer == []
        assert next(gen) == "A"
        assert list(gen) == ["B"]

    def test_finish_resets_state(self) -> None:
        scanner = StatementScanner()
        list(scanner.feed("INSERT INTO T VALUES ('open"))
        assert scanner.state.in_single_quote
        assert scanner.finish() == "INSERT INTO T VALUES ('open"
        assert scanner.state == ScanState()


# ---------------------------------------------------------------------------
# Protected semicolons
# ---------------------------------------------------------------------------


class TestProtectedSemicolons:
    """A ``;`` inside any protected region never ends a statement."""

    def test_inside_string(self) -> None:
        assert _scan("INSERT INTO T (A) VALUES ('a;b')") == ["INSERT INTO T (A) VALUES ('a;b')"]

    def test_inside_doubled_quote_string(self) -> None:
        assert _scan("SELECT 'it''s;here'; SELECT 2") == ["SELECT 'it''s;here'", "SELECT 2"]

    def test_inside_quoted_identifier(self) -> None:
        assert _scan('SELECT "a;""b" FROM T;') == ['SELECT "a;""b" FROM T']

    def test_inside_parentheses(self) -> None:
        assert _scan("SELECT f(1; 2); SELECT 3") == ["SELECT f(1; 2)", "SELECT 3"]

    def test_paren_depth_never_negative(self) -> None:
        scanner = StatementScanner()
        assert list(scanner.feed("SELECT 1)); SELECT 2;")) == ["SELECT 1))", "SELECT 2"]
        assert scanner.state.paren_depth == 0

    def test_double_quote_inside_string_is_text(self) -> None:
        assert _scan("SELECT 'say \"hi;\"'; SELECT 2") == ["SELECT 'say \"hi;\"'", "SELECT 2"]


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


class TestComments:
    """Comment text never reaches an emitted statement."""

    def test_line_comment_stripped_keeping_newline(self) -> None:
        assert _scan("SELECT 1 -- one; two\nFROM T;") == ["SELECT 1 \nFROM T"]

    def test_line_comment_with_crlf(self) -> None:
        assert _scan("SELECT 1 -- note\r\nFROM T;") == ["SELECT 1 \r\nFROM T"]

    def test_block_comment_stripped(self) -> None:
        assert _scan("SELECT /* a; b */ 1;") == ["SELECT  1"]

    def test_comment_only_input_yields_nothing(self) -> None:
        assert _scan("-- nothing here\n/* nor; here */") == []

    def test_single_dash_and_slash_are_text(self) -> None:
        assert _scan("SELECT 4 - 2 / 1;") == ["SELECT 4 - 2 / 1"]

    def test_comment_markers_inside_string_are_text(self) -> None:
        assert _scan("SELECT '-- not /* a comment';") == ["SELECT '-- not /* a comment'"]


# ---------------------------------------------------------------------------
# Chunk boundaries
# ---------------------------------------------------------------------------


class TestChunkBoundaries:
    """Splitting the input anywhere must not change the result."""

    @pytest.mark.parametrize(
        "chunks, expected",
        [
            (("SELECT 1 -", "- gone\nFROM T;"), ["SELECT 1 \nFROM T"]),
            (("SELECT /", "* gone */ 1;"), ["SELECT  1"]),
            (("SELECT /* gone *", "/ 1;"), ["SELECT  1"]),
            (("SELECT 'it'", "'s';"), ["SELECT 'it''s'"]),
            (('SELECT "a"', '"b";'), ['SELECT "a""b"']),
            (("SELECT 1 -", " 2;"), ["SELECT 1 - 2"]),
            (("SELECT 4 /", " 2;"), ["SELECT 4 / 2"]),
        ],
    )
    def test_delimiter_split_across_chunks(self, chunks: tuple[str, ...], expected: list[str]) -> None:
        assert _scan(*chunks) == expected

    def test_trailing_dash_flushed_by_finish(self) -> None:
        assert _scan("SELECT 1 -") == ["SELECT 1 -"]

    def test_block_comment_star_alone_does_not_close(self) -> None:
        assert _scan("SELECT /", "*", "/ still comment */ 1;") == ["SELECT  1"]

    def test_character_at_a_time_matches_single_chunk(self) -> None:
        assert _scan_by_char(MIXED_SOURCE) == _scan(MIXED_SOURCE)

    @pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 16])
    def test_any_chunk_size_matches_single_chunk(self, size: int) -> None:
        chunks = [MIXED_SOURCE[i : i + size] for i in range(0, len(MIXED_SOURCE), size)]
        assert _scan(*chunks) == _scan(MIXED_SOURCE)


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------


class TestDeterminism:
    """Independent passes and re-segmentation agree."""

    def test_expected_statements(self) -> None:
        assert _scan(MIXED_SOURCE) == [
            "INSERT INTO T (A, B) VALUES (1, 'a;b')",
            "INSERT INTO \"we;ird\" (\"C\"\"D\") VALUES ('it''s')",
            "INSERT INTO T (A) VALUES (f(1, ';'))",
            "UPDATE T SET A = 2 \nWHERE B = 'x'",
            "INSERT INTO T (A) VALUES (3)",
        ]

    def test_two_scanners_agree(self) -> None:
        first = _scan(MIXED_SOURCE)
        second = _scan(MIXED_SOURCE)
        assert first == second

    def test_resegmentation_is_idempotent(self) -> None:
        statements = _scan(MIXED_SOURCE)
        assert _scan(";".join(statements)) == statements
