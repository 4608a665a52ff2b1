"""Chunked, byte-counting reading of large SQL files.

Files are read in binary and decoded through an incremental decoder, so a
multi-byte character split across two reads is reassembled correctly and the
number of bytes consumed is known exactly for progress reporting.
"""

from __future__ import annotations

import codecs
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from loader_engine.parser.scanner import StatementScanner

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 32 * 1024


@dataclass(frozen=True, slots=True)
class Chunk:
    """Decoded text plus the running count of bytes read from the file."""

    text: str
    bytes_read: int


def iter_chunks(
    path: Path,
    encoding: str = "utf-8",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[Chunk]:
    """Yield decoded chunks of *path*.

    A leading UTF-8 byte-order mark is dropped.

    Raises
    ------
    UnicodeDecodeError
        If the file is not valid in *encoding*.
    """
    decoder = codecs.getincrementaldecoder(encoding)(errors="strict")
    bytes_read = 0
    first = True

    with path.open("rb") as fh:
        while True:
            raw = fh.read(chunk_size)
            if not raw:
                break
            bytes_read += len(raw)
            text = decoder.decode(raw)
            if first and text:
                text = text.removeprefix("\ufeff")
                first = False
            if text:
                yield Chunk(text=text, bytes_read=bytes_read)

        tail = decoder.decode(b"", final=True)
        if tail:
            yield Chunk(text=tail, bytes_read=bytes_read)


def iter_file_statements(
    path: Path,
    encoding: str = "utf-8",
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[tuple[str, int]]:
    """Yield ``(statement, bytes_read)`` for every statement in *path*.

    Every call starts an independent pass with its own scanner.
    """
    scanner = StatementScanner()
    bytes_read = 0
    for chunk in iter_chunks(path, encoding, chunk_size):
        bytes_read = chunk.bytes_read
        for statement in scanner.feed(chunk.text):
            yield statement, bytes_read

    tail = scanner.finish()
    if tail is not None:
        yield tail, bytes_read
    logger.debug("Finished reading %s (%d bytes)", path, bytes_read)
