"""Decode column vectors back into Python row values.

The inverse of colbatch.writers for in-memory batches: null rows decode
to None, lists to ``list``, maps to ``dict`` and structs to ``dict`` keyed
by field name. Reading files back is left to pyarrow.
"""

from __future__ import annotations

from typing import Any

import colbatch.errors as errors
import colbatch.vectors as vectors
from colbatch.types import Category, TypeDescriptor


def read_value(descriptor: TypeDescriptor, vector: vectors.ColumnVector, index: int) -> Any:
    """Decode row ``index`` of ``vector``."""
    if vector.is_null[index]:
        return None

    category = descriptor.category
    if category in (Category.INT, Category.LONG, Category.DOUBLE):
        return vector.vector[index]
    if category == Category.STRING:
        return vector.get_value(index).decode("utf-8")
    if category == Category.LIST:
        offset, length = vector.offsets[index], vector.lengths[index]
        return [read_value(descriptor.element, vector.child, i) for i in range(offset, offset + length)]
    if category == Category.MAP:
        offset, length = vector.offsets[index], vector.lengths[index]
        return {
            read_value(descriptor.key, vector.keys, i): read_value(descriptor.value, vector.values, i)
            for i in range(offset, offset + length)
        }
    if category == Category.STRUCT:
        return {
            name: read_value(child, field, index)
            for (name, child), field in zip(descriptor.fields(), vector.fields)
        }
    raise errors.UnsupportedSchemaError(str(descriptor))


def read_column(descriptor: TypeDescriptor, vector: vectors.ColumnVector, size: int) -> list[Any]:
    """Decode the first ``size`` rows of ``vector``."""
    return [read_value(descriptor, vector, index) for index in range(size)]


def read_batch(batch: vectors.RowBatch) -> list[Any]:
    """Decode every written row of ``batch``.

    Rows of a struct schema decode to dicts keyed by column name; rows of
    any other schema decode to the single column's value.
    """
    columns = [read_column(t, col, batch.size) for t, col in zip(batch.column_types, batch.cols)]
    if batch.schema.category != Category.STRUCT:
        return columns[0]
    if not columns:
        return [{} for _ in range(batch.size)]
    return [dict(zip(batch.column_names, row)) for row in zip(*columns)]
