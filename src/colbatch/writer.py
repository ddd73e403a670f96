"""Batch driver: turns a list of row values into one filled row batch.

Writers are built once per top-level column, before any row is written,
so an unsupported schema fails without touching the sink. Rows are then
written strictly in order, and within a row strictly in column order,
into a single batch that is appended to the sink once.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Literal

import pydantic as pdt

import colbatch.settings as settings_mod
import colbatch.sinks as sinks
import colbatch.vectors as vectors
import colbatch.writers as writers
from colbatch.types import Category, TypeDescriptor

logger = logging.getLogger(__name__)


class BatchWriter(pdt.BaseModel, frozen=True, extra="forbid"):
    """Writes rows for a schema into a sink as a single batch.

    The sink stays open; closing it is the caller's job.

    Example:
        sink = sinks.MemorySink()
        BatchWriter(sink=sink).write(struct(id=long_(), tags=list_of(string())), rows)
        table = sink.to_table()
    """

    sink: sinks.SinkKind = pdt.Field(..., discriminator="kind")
    settings: settings_mod.WriterSettings = pdt.Field(default_factory=settings_mod.WriterSettings)

    def write(self, schema: TypeDescriptor, rows: Sequence[Any]) -> vectors.RowBatch:
        """Write all ``rows`` into one batch and append it to the sink.

        For a struct schema each row supplies one value per field: a mapping
        is looked up by field name, a tuple or list is taken by position,
        anything else makes every column null for that row. For any other
        schema the row is the value of the single column.

        Args:
            schema: Schema of the rows.
            rows: Row values; materialized before writing.

        Returns:
            The batch handed to the sink.

        Raises:
            UnsupportedSchemaError: If a category in the schema is not
                writable. Raised before any row is written.
            ValueTypeError: In strict mode, on the first mismatched value.
        """
        rows = list(rows)
        batch = self.sink.create_batch(schema, self.settings.batch_capacity)
        column_writers = [
            writers.build_writer(t, col, strict=self.settings.strict)
            for t, col in zip(batch.column_types, batch.cols)
        ]
        batch.ensure_size(len(rows))
        logger.debug("Writing %d rows for schema '%s'", len(rows), schema)

        is_struct = schema.category == Category.STRUCT
        batch.size = 0
        for row in rows:
            values = _row_values(row, batch.column_names) if is_struct else (row,)
            for writer, value in zip(column_writers, values):
                writer.write(value, batch.size)
            batch.size += 1

        self.sink.append(batch)
        logger.info("Flushed batch of %d rows x %d columns to %s sink", batch.size, batch.num_cols, self.sink.kind)
        return batch


def _row_values(row: Any, names: list[str]) -> list[Any]:
    """Split a struct-schema row into one value per column."""
    if isinstance(row, Mapping):
        return [row.get(name) for name in names]
    if isinstance(row, (tuple, list)):
        values = list(row[: len(names)])
        return values + [None] * (len(names) - len(values))
    return [None] * len(names)


def write_rows(
    path: Path | str,
    schema: TypeDescriptor,
    rows: Sequence[Any],
    *,
    format: Literal["orc", "parquet"] | None = None,
    settings: settings_mod.WriterSettings | None = None,
) -> None:
    """Write ``rows`` to a new ORC or Parquet file in one batch.

    Opens the file sink chosen by ``format`` (default: ``settings.sink.format``),
    writes, and closes it. ``settings.sink.compression`` applies only when
    the resulting format is the configured one.

    Example:
        write_rows("out/scores.orc", list_of(long_()), [[1, 2, 3], [], [4]])
        write_rows("out/scores.parquet", list_of(long_()), rows, format="parquet")
    """
    settings = settings or settings_mod.WriterSettings()
    sink_format = format or settings.sink.format
    options: dict[str, Any] = {"path": str(path)}
    if settings.sink.compression is not None and sink_format == settings.sink.format:
        options["compression"] = settings.sink.compression

    sink: sinks.FileSink
    if sink_format == "parquet":
        sink = sinks.ParquetSink(**options)
    else:
        sink = sinks.OrcSink(**options)

    with sink:
        BatchWriter(sink=sink, settings=settings).write(schema, rows)
