"""Sinks that receive filled row batches.

A sink hands out empty batches for a schema, accepts filled batches via
``append`` and finalizes its output on ``close``. File sinks delegate the
file format (stripes, row groups, compression) to pyarrow and open their
writer lazily on the first append.
"""

from __future__ import annotations

import abc
import logging
from pathlib import Path
from typing import Any, Literal, override

import pyarrow as pa
import pyarrow.orc as orc
import pyarrow.parquet as pq
import pydantic as pdt

import colbatch.arrow as arrow
import colbatch.errors as errors
import colbatch.vectors as vectors
from colbatch.types import TypeDescriptor

logger = logging.getLogger(__name__)

OrcCompression = Literal["uncompressed", "zlib", "snappy", "lz4", "zstd"]
ParquetCompression = Literal["snappy", "gzip", "zstd", "none"]


class BaseSink(abc.ABC, pdt.BaseModel, frozen=True, strict=True, extra="forbid"):
    """Abstract base for batch sinks.

    Sinks are context managers; leaving the block closes the sink.

    Example:
        with OrcSink(path="out/events.orc") as sink:
            BatchWriter(sink=sink).write(schema, rows)
    """

    kind: str

    _closed: bool = pdt.PrivateAttr(default=False)

    @property
    def closed(self) -> bool:
        return self._closed

    def create_batch(
        self,
        schema: TypeDescriptor,
        capacity: int = vectors.DEFAULT_BATCH_SIZE,
    ) -> vectors.RowBatch:
        """Return an empty batch with one vector per top-level column.

        Raises:
            UnsupportedSchemaError: If a category in the schema is not writable.
        """
        return vectors.RowBatch(schema, capacity)

    def append(self, batch: vectors.RowBatch) -> None:
        """Hand a filled batch to the sink.

        Raises:
            SinkClosedError: If the sink was already closed.
        """
        if self._closed:
            raise errors.SinkClosedError(self.kind)
        self._write(batch)

    def close(self) -> None:
        """Finalize the output. Closing twice is a no-op."""
        if self._closed:
            return
        self._finish()
        object.__setattr__(self, "_closed", True)

    @abc.abstractmethod
    def _write(self, batch: vectors.RowBatch) -> None:
        """Write one batch to the underlying output."""
        ...

    def _finish(self) -> None:
        """Release the underlying output. Default does nothing."""
        pass

    def __enter__(self) -> BaseSink:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class MemorySink(BaseSink):
    """Keeps appended batches in memory.

    Useful for tests and for callers that want Arrow data without a file.
    """

    kind: Literal["memory"] = "memory"

    _batches: list[vectors.RowBatch] = pdt.PrivateAttr(default_factory=list)

    @property
    def batches(self) -> list[vectors.RowBatch]:
        """Batches appended so far, in order."""
        return list(self._batches)

    @override
    def _write(self, batch: vectors.RowBatch) -> None:
        self._batches.append(batch)

    def to_table(self) -> pa.Table:
        """Concatenate all appended batches into one Arrow table.

        Raises:
            SinkError: If nothing has been appended yet.
        """
        if not self._batches:
            raise errors.SinkError(
                context="Converting memory sink to an Arrow table",
                cause="No batches have been appended",
                fix="Write rows with BatchWriter before calling to_table()",
            )
        return pa.Table.from_batches([arrow.to_record_batch(b) for b in self._batches])


class FileSink(BaseSink):
    """Base for sinks writing one file through a pyarrow writer."""

    path: str

    _writer: Any = pdt.PrivateAttr(default=None)

    @abc.abstractmethod
    def _open(self, schema: pa.Schema) -> Any:
        """Create the pyarrow writer for ``schema``."""
        ...

    @override
    def _write(self, batch: vectors.RowBatch) -> None:
        record_batch = arrow.to_record_batch(batch)
        if self._writer is None:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            object.__setattr__(self, "_writer", self._open(record_batch.schema))
            logger.info("Opened %s sink at %s", self.kind, self.path)
        self._write_record_batch(record_batch)
        logger.info("Appended %d rows to %s", record_batch.num_rows, self.path)

    @abc.abstractmethod
    def _write_record_batch(self, record_batch: pa.RecordBatch) -> None: ...

    @override
    def _finish(self) -> None:
        if self._writer is None:
            logger.info("Closing %s sink at %s with no batches; no file written", self.kind, self.path)
            return
        self._writer.close()
        object.__setattr__(self, "_writer", None)
        logger.info("Closed %s sink at %s", self.kind, self.path)


class OrcSink(FileSink):
    """ORC file written with ``pyarrow.orc.ORCWriter``."""

    kind: Literal["orc"] = "orc"

    compression: OrcCompression = "zstd"

    @override
    def _open(self, schema: pa.Schema) -> orc.ORCWriter:
        return orc.ORCWriter(self.path, compression=self.compression)

    @override
    def _write_record_batch(self, record_batch: pa.RecordBatch) -> None:
        self._writer.write(pa.Table.from_batches([record_batch]))


class ParquetSink(FileSink):
    """Parquet file written with ``pyarrow.parquet.ParquetWriter``."""

    kind: Literal["parquet"] = "parquet"

    compression: ParquetCompression = "snappy"

    @override
    def _open(self, schema: pa.Schema) -> pq.ParquetWriter:
        return pq.ParquetWriter(
            self.path,
            schema,
            compression=self.compression if self.compression != "none" else None,
        )

    @override
    def _write_record_batch(self, record_batch: pa.RecordBatch) -> None:
        self._writer.write_batch(record_batch)


SinkKind = MemorySink | OrcSink | ParquetSink
