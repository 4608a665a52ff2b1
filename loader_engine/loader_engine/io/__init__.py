"""Chunked input reading."""

from loader_engine.io.reader import Chunk, iter_chunks, iter_file_statements

__all__ = ["Chunk", "iter_chunks", "iter_file_statements"]
