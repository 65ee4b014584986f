"""Output sinks for scraped records.

A sink receives the header once, at run start, and then whole worker
batches in the order workers finish. It is the only object shared between
workers, so appends are serialized with an asyncio.Lock: a batch is always
written in one piece, though batches from different workers may land in any
order.

Example::

    sink = CsvSink("osce_results.csv")
    await sink.start()
    await sink.append(records)
"""

from __future__ import annotations

import asyncio
import csv
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from entidades.data_types import OUTPUT_COLUMNS, OutputRecord


class RecordSink(Protocol):
    """Append-only destination for output records."""

    async def start(self) -> None:
        """Create or truncate the destination and write the header."""
        ...

    async def append(self, records: Sequence[OutputRecord]) -> None:
        """Append one batch of records atomically."""
        ...


class CsvSink:
    """Write records to a UTF-8 CSV file with the fixed column header.

    Args:
        path: Destination file. It is truncated by start().
        columns: Header row, OUTPUT_COLUMNS by default.
    """

    def __init__(
        self, path: Path | str, columns: Sequence[str] = OUTPUT_COLUMNS
    ) -> None:
        self.path = Path(path)
        self.columns = tuple(columns)
        self.rows_written = 0
        self._started = False
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        async with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(self.columns)
            self.rows_written = 0
            self._started = True

    async def append(self, records: Sequence[OutputRecord]) -> None:
        if not self._started:
            raise RuntimeError(f"CsvSink for {self.path} was not started")
        if not records:
            return
        rows = [record.as_row() for record in records]
        async with self._lock:
            # File I/O runs off the event loop; the lock keeps batches whole
            await asyncio.to_thread(self._write_rows, rows)
            self.rows_written += len(rows)

    def _write_rows(self, rows: list[list[str]]) -> None:
        with self.path.open("a", newline="", encoding="utf-8") as f:
            csv.writer(f).writerows(rows)


class MemorySink:
    """Keep the header and rows in memory, batch by batch."""

    def __init__(self, columns: Sequence[str] = OUTPUT_COLUMNS) -> None:
        self.columns = tuple(columns)
        self.header: tuple[str, ...] | None = None
        self.header_writes = 0
        self.batches: list[list[OutputRecord]] = []
        self._lock = asyncio.Lock()

    async def start(self) -> None:
        async with self._lock:
            self.header = self.columns
            self.header_writes += 1
            self.batches = []

    async def append(self, records: Sequence[OutputRecord]) -> None:
        if self.header is None:
            raise RuntimeError("MemorySink was not started")
        async with self._lock:
            self.batches.append(list(records))

    @property
    def records(self) -> list[OutputRecord]:
        return [record for batch in self.batches for record in batch]
