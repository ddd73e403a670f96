"""PyArrow adaptation of schemas and row batches.

PyArrow is the interchange format between a filled RowBatch and the file
sinks. Descriptors map onto Arrow types one to one; batches are converted
column by column straight from the vector buffers, following each list and
map row's (offset, length) range into its children.
"""

from __future__ import annotations

import logging
from array import array
from itertools import accumulate

import pyarrow as pa
import pyarrow.compute as pc

import colbatch.errors as errors
import colbatch.vectors as vectors
from colbatch.types import Category, TypeDescriptor

logger = logging.getLogger(__name__)

_PRIMITIVE_TYPES: dict[Category, pa.DataType] = {
    Category.INT: pa.int32(),
    Category.LONG: pa.int64(),
    Category.DOUBLE: pa.float64(),
    Category.STRING: pa.string(),
}

# array.array typecodes of the fixed-width Arrow value buffers
_TYPECODES: dict[Category, str] = {
    Category.INT: "i",
    Category.LONG: "q",
    Category.DOUBLE: "d",
}


def to_arrow_type(descriptor: TypeDescriptor) -> pa.DataType:
    """Return the Arrow type for ``descriptor``.

    Raises:
        UnsupportedSchemaError: If a category in the tree is not writable.
    """
    category = descriptor.category
    if category in _PRIMITIVE_TYPES:
        return _PRIMITIVE_TYPES[category]
    if category == Category.LIST:
        return pa.list_(to_arrow_type(descriptor.element))
    if category == Category.MAP:
        return pa.map_(to_arrow_type(descriptor.key), to_arrow_type(descriptor.value))
    if category == Category.STRUCT:
        return pa.struct([pa.field(name, to_arrow_type(child)) for name, child in descriptor.fields()])
    raise errors.UnsupportedSchemaError(str(descriptor))


def to_arrow_schema(batch: vectors.RowBatch) -> pa.Schema:
    """Arrow schema of the batch's top-level columns."""
    return pa.schema(
        [pa.field(name, to_arrow_type(t)) for name, t in zip(batch.column_names, batch.column_types)]
    )


def _validity(nulls: list[bool]) -> pa.Buffer | None:
    """Arrow validity bitmap for ``nulls``, or None when nothing is null."""
    if not any(nulls):
        return None
    return pc.invert(pa.array(nulls, type=pa.bool_())).buffers()[1]


def _child_rows(
    vector: vectors.MultiValuedColumnVector,
    size: int,
    keep_null_keys: bool = True,
) -> tuple[pa.Array, list[int]]:
    """Arrow offsets of the first ``size`` rows and the child rows they cover.

    Null rows get a null offset. With ``keep_null_keys=False`` (maps only)
    child rows whose key is null are left out.
    """
    offsets: list[int | None] = []
    rows: list[int] = []
    for index in range(size):
        if vector.is_null[index]:
            offsets.append(None)
            continue
        offsets.append(len(rows))
        start = vector.offsets[index]
        covered = range(start, start + vector.lengths[index])
        if keep_null_keys:
            rows.extend(covered)
        else:
            rows.extend(row for row in covered if not vector.keys.is_null[row])
    offsets.append(len(rows))
    return pa.array(offsets, type=pa.int32()), rows


def _child_array(descriptor: TypeDescriptor, vector: vectors.ColumnVector, rows: list[int]) -> pa.Array:
    """Arrow array of the child ``rows`` of ``vector``, in order."""
    if all(row == position for position, row in enumerate(rows)):
        return to_arrow_array(descriptor, vector, len(rows))
    return to_arrow_array(descriptor, vector, max(rows) + 1).take(pa.array(rows, type=pa.int64()))


def to_arrow_array(descriptor: TypeDescriptor, vector: vectors.ColumnVector, size: int) -> pa.Array:
    """Convert the first ``size`` rows of ``vector`` to an Arrow array.

    Map entries with a null key have no Arrow form; they are dropped with a
    warning and the rest of the row is kept.

    Raises:
        UnsupportedSchemaError: If a category in the tree is not writable.
    """
    category = descriptor.category
    nulls = vector.is_null[:size]

    if category in _TYPECODES:
        data = array(_TYPECODES[category], vector.vector[:size])
        return pa.Array.from_buffers(_PRIMITIVE_TYPES[category], size, [_validity(nulls), pa.py_buffer(data)])

    if category == Category.STRING:
        values = [b"" if null else vector.get_value(index) for index, null in enumerate(nulls)]
        offsets = array("i", accumulate((len(value) for value in values), initial=0))
        return pa.Array.from_buffers(
            pa.string(),
            size,
            [_validity(nulls), pa.py_buffer(offsets), pa.py_buffer(b"".join(values))],
        )

    if category == Category.LIST:
        offsets, rows = _child_rows(vector, size)
        return pa.ListArray.from_arrays(offsets, _child_array(descriptor.element, vector.child, rows))

    if category == Category.MAP:
        offsets, rows = _child_rows(vector, size, keep_null_keys=False)
        dropped = sum(vector.lengths[index] for index in range(size) if not nulls[index]) - len(rows)
        if dropped:
            logger.warning("Dropped %d map entries with null keys from column '%s'", dropped, descriptor)
        return pa.MapArray.from_arrays(
            offsets,
            _child_array(descriptor.key, vector.keys, rows),
            _child_array(descriptor.value, vector.values, rows),
        )

    if category == Category.STRUCT:
        fields = [pa.field(name, to_arrow_type(child)) for name, child in descriptor.fields()]
        if not fields:
            return pa.array([None if null else {} for null in nulls], type=pa.struct([]))
        arrays = [
            to_arrow_array(child, field_vector, size)
            for (_, child), field_vector in zip(descriptor.fields(), vector.fields)
        ]
        mask = pa.array(nulls, type=pa.bool_()) if any(nulls) else None
        return pa.StructArray.from_arrays(arrays, fields=fields, mask=mask)

    raise errors.UnsupportedSchemaError(str(descriptor))


def to_record_batch(batch: vectors.RowBatch) -> pa.RecordBatch:
    """Convert the written rows of ``batch`` to an Arrow record batch."""
    arrays = [to_arrow_array(t, col, batch.size) for t, col in zip(batch.column_types, batch.cols)]
    return pa.RecordBatch.from_arrays(arrays, schema=to_arrow_schema(batch))
