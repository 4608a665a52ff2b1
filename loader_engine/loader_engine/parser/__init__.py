"""Statement segmentation and INSERT rewriting."""

from loader_engine.parser.errors import (
    LiteralValueError,
    StatementRewriteError,
    StructuralError,
)
from loader_engine.parser.insert_rewriter import (
    InsertParts,
    is_insert,
    locate_insert,
    normalize_date_literals,
    remove_column,
)
from loader_engine.parser.list_splitter import (
    find_keyword,
    find_matching_paren,
    split_top_level,
    unquote_identifier,
    unquote_string,
)
from loader_engine.parser.scanner import ScanState, StatementScanner, iter_statements

__all__ = [
    "InsertParts",
    "LiteralValueError",
    "ScanState",
    "StatementRewriteError",
    "StatementScanner",
    "StructuralError",
    "find_keyword",
    "find_matching_paren",
    "is_insert",
    "iter_statements",
    "locate_insert",
    "normalize_date_literals",
    "remove_column",
    "split_top_level",
    "unquote_identifier",
    "unquote_string",
]
