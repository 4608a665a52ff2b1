"""Execution of rewritten statements against the target database."""

from __future__ import annotations

from loader_engine.executor.batch_loader import (
    BatchLoader,
    LoadError,
    LoadProgress,
    LoadResult,
    count_insert_statements,
)
from loader_engine.executor.binder import BoundStatement, bind_insert, bind_value
from loader_engine.executor.connection import create_loader_engine

__all__ = [
    "BatchLoader",
    "BoundStatement",
    "LoadError",
    "LoadProgress",
    "LoadResult",
    "bind_insert",
    "bind_value",
    "count_insert_statements",
    "create_loader_engine",
]
