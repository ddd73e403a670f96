"""Growable column vectors and the row batch that holds them.

Each vector owns its buffers. Fixed-width values live in ``array.array``
buffers sized to the vector's capacity; strings share one ``bytearray``
addressed by per-row (start, length) pairs; lists and maps address a range
of their child vectors through per-row (offset, length) pairs and a
``child_count`` cursor; struct fields are addressed by the parent's row index.

Growth is explicit: nothing grows on write. Callers call
``ensure_size(size, preserve_data)`` before writing past the capacity.
"""

from __future__ import annotations

from array import array

import colbatch.errors as errors
from colbatch.types import Category, TypeDescriptor

# Rows in a freshly created batch, as in ORC's VectorizedRowBatch
DEFAULT_BATCH_SIZE = 1024

# Column name given to the single column of a non-struct schema
UNNAMED_COLUMN = "_col0"


def _zeros(typecode: str, size: int) -> array:
    return array(typecode, bytes(array(typecode).itemsize * size))


def _grow(buffer: array, size: int, preserve_data: bool) -> array:
    """Return ``buffer`` extended to ``size`` slots, or a fresh zeroed one."""
    if preserve_data:
        buffer.extend(_zeros(buffer.typecode, size - len(buffer)))
        return buffer
    return _zeros(buffer.typecode, size)


class ColumnVector:
    """Base column vector: null bitmap plus capacity management."""

    def __init__(self, size: int = DEFAULT_BATCH_SIZE) -> None:
        self.no_nulls = True
        self.is_null: list[bool] = [False] * size

    @property
    def capacity(self) -> int:
        """Number of row slots currently allocated."""
        return len(self.is_null)

    def ensure_size(self, size: int, preserve_data: bool) -> None:
        """Grow the vector to at least ``size`` rows.

        Never shrinks. With ``preserve_data`` every slot written so far is
        kept; without it the grown buffers start zeroed.
        """
        if size <= self.capacity:
            return
        if preserve_data:
            self.is_null.extend([False] * (size - self.capacity))
        else:
            self.is_null = [False] * size
        self._grow_buffers(size, preserve_data)

    def _grow_buffers(self, size: int, preserve_data: bool) -> None:
        raise NotImplementedError(f"{type(self).__name__}._grow_buffers() not implemented")


class LongColumnVector(ColumnVector):
    """Signed 64-bit integers; backs both int and bigint columns."""

    def __init__(self, size: int = DEFAULT_BATCH_SIZE) -> None:
        super().__init__(size)
        self.vector = _zeros("q", size)

    def _grow_buffers(self, size: int, preserve_data: bool) -> None:
        self.vector = _grow(self.vector, size, preserve_data)


class DoubleColumnVector(ColumnVector):
    """IEEE 754 double values."""

    def __init__(self, size: int = DEFAULT_BATCH_SIZE) -> None:
        super().__init__(size)
        self.vector = _zeros("d", size)

    def _grow_buffers(self, size: int, preserve_data: bool) -> None:
        self.vector = _grow(self.vector, size, preserve_data)


class BytesColumnVector(ColumnVector):
    """Variable-length byte strings in one shared buffer.

    Row i holds ``buffer[start[i]:start[i] + length[i]]``. The buffer is
    append-only for the lifetime of the vector.
    """

    def __init__(self, size: int = DEFAULT_BATCH_SIZE) -> None:
        super().__init__(size)
        self.buffer = bytearray()
        self.start = _zeros("q", size)
        self.length = _zeros("q", size)

    def set_value(self, index: int, data: bytes) -> None:
        """Copy ``data`` into the buffer and point row ``index`` at it."""
        self.start[index] = len(self.buffer)
        self.length[index] = len(data)
        self.buffer += data

    def get_value(self, index: int) -> bytes:
        start = self.start[index]
        return bytes(self.buffer[start : start + self.length[index]])

    def _grow_buffers(self, size: int, preserve_data: bool) -> None:
        self.start = _grow(self.start, size, preserve_data)
        self.length = _grow(self.length, size, preserve_data)


class MultiValuedColumnVector(ColumnVector):
    """Shared layout of list and map vectors.

    Row i owns child rows ``[offsets[i], offsets[i] + lengths[i])``;
    ``child_count`` is the number of child rows handed out so far.
    Children are grown by the writer, not by ``ensure_size``.
    """

    def __init__(self, size: int = DEFAULT_BATCH_SIZE) -> None:
        super().__init__(size)
        self.offsets = _zeros("q", size)
        self.lengths = _zeros("q", size)
        self.child_count = 0

    def _grow_buffers(self, size: int, preserve_data: bool) -> None:
        self.offsets = _grow(self.offsets, size, preserve_data)
        self.lengths = _grow(self.lengths, size, preserve_data)

    def children(self) -> list[ColumnVector]:
        raise NotImplementedError(f"{type(self).__name__}.children() not implemented")


class ListColumnVector(MultiValuedColumnVector):
    def __init__(self, child: ColumnVector, size: int = DEFAULT_BATCH_SIZE) -> None:
        super().__init__(size)
        self.child = child

    def children(self) -> list[ColumnVector]:
        return [self.child]


class MapColumnVector(MultiValuedColumnVector):
    """Map rows; keys and values advance in lock step."""

    def __init__(
        self,
        keys: ColumnVector,
        values: ColumnVector,
        size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        super().__init__(size)
        self.keys = keys
        self.values = values

    def children(self) -> list[ColumnVector]:
        return [self.keys, self.values]


class StructColumnVector(ColumnVector):
    """One child vector per field, all indexed by the struct's row index."""

    def __init__(self, fields: list[ColumnVector], size: int = DEFAULT_BATCH_SIZE) -> None:
        super().__init__(size)
        self.fields = fields

    def _grow_buffers(self, size: int, preserve_data: bool) -> None:
        for field in self.fields:
            field.ensure_size(size, preserve_data)


def set_null(vector: ColumnVector, index: int) -> None:
    """Mark row ``index`` of ``vector`` as null.

    List and map rows also get a zero length so readers never follow a
    stale offset range.
    """
    if isinstance(vector, MultiValuedColumnVector):
        vector.lengths[index] = 0
    vector.no_nulls = False
    vector.is_null[index] = True


def create_vector(descriptor: TypeDescriptor, size: int = DEFAULT_BATCH_SIZE) -> ColumnVector:
    """Allocate an empty vector tree for ``descriptor``.

    Children of lists and maps start with the same capacity as the parent
    and grow as elements are written.

    Raises:
        UnsupportedSchemaError: If a category in the tree is not writable.
    """
    category = descriptor.category
    if category in (Category.INT, Category.LONG):
        return LongColumnVector(size)
    if category == Category.DOUBLE:
        return DoubleColumnVector(size)
    if category == Category.STRING:
        return BytesColumnVector(size)
    if category == Category.LIST:
        return ListColumnVector(create_vector(descriptor.element, size), size)
    if category == Category.MAP:
        return MapColumnVector(
            create_vector(descriptor.key, size),
            create_vector(descriptor.value, size),
            size,
        )
    if category == Category.STRUCT:
        return StructColumnVector([create_vector(child, size) for child in descriptor.children], size)
    raise errors.UnsupportedSchemaError(str(descriptor))


class RowBatch:
    """A set of top-level column vectors flushed together.

    A struct schema contributes one column per field; any other schema
    is a single column named ``_col0``. ``size`` is the number of rows
    written so far.
    """

    def __init__(self, schema: TypeDescriptor, capacity: int = DEFAULT_BATCH_SIZE) -> None:
        self.schema = schema
        if schema.category == Category.STRUCT:
            self.column_names = list(schema.field_names)
            self.column_types = list(schema.children)
        else:
            self.column_names = [UNNAMED_COLUMN]
            self.column_types = [schema]
        self.cols = [create_vector(t, capacity) for t in self.column_types]
        self.size = 0

    @property
    def num_cols(self) -> int:
        return len(self.cols)

    @property
    def capacity(self) -> int:
        return min((col.capacity for col in self.cols), default=0)

    def ensure_size(self, size: int) -> None:
        """Grow every top-level column to ``size`` rows, keeping written rows."""
        for col in self.cols:
            col.ensure_size(size, preserve_data=True)

    def column(self, name: str) -> ColumnVector:
        """Return the top-level vector for column ``name``."""
        try:
            return self.cols[self.column_names.index(name)]
        except ValueError:
            raise KeyError(f"RowBatch has no column '{name}'. Available columns: {self.column_names}") from None

    def __repr__(self) -> str:
        return f"RowBatch(schema='{self.schema}', size={self.size}, capacity={self.capacity})"
