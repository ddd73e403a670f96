"""Column writers and the dispatcher that builds them.

A column writer is bound to one (TypeDescriptor, ColumnVector) pair and
writes one row value at one row index. ``build_writer`` resolves the
descriptor's category once and pre-binds child writers, so writing a row
performs no further dispatch.

Values that do not fit the column are stored as null. With ``strict=True``
they raise ValueTypeError instead; None is always a null.
"""

from __future__ import annotations

import logging
import numbers
from collections.abc import Mapping, Sequence
from typing import Any, ClassVar

import colbatch.errors as errors
import colbatch.vectors as vectors
from colbatch.types import Category, TypeDescriptor

logger = logging.getLogger(__name__)

# Inclusive value ranges of the integer categories
_INTEGER_BOUNDS: dict[Category, tuple[int, int]] = {
    Category.INT: (-(2**31), 2**31 - 1),
    Category.LONG: (-(2**63), 2**63 - 1),
}


class ColumnWriter:
    """Writes row values of one column into its vector."""

    vector_type: ClassVar[type[vectors.ColumnVector]] = vectors.ColumnVector

    def __init__(
        self,
        descriptor: TypeDescriptor,
        vector: vectors.ColumnVector,
        strict: bool = False,
    ) -> None:
        self.descriptor = descriptor
        self.vector = vector
        self.strict = strict

    def write(self, value: Any, index: int) -> None:
        """Store ``value`` at row ``index``."""
        raise NotImplementedError(f"{type(self).__name__}.write() not implemented")

    def _mismatch(self, value: Any, index: int) -> None:
        """Handle a value the column cannot hold."""
        if self.strict and value is not None:
            raise errors.ValueTypeError(str(self.descriptor), value)
        vectors.set_null(self.vector, index)

    def __repr__(self) -> str:
        return f"{type(self).__name__}('{self.descriptor}')"


class LongWriter(ColumnWriter):
    """int and bigint columns; integers are widened to 64 bits."""

    vector_type = vectors.LongColumnVector
    vector: vectors.LongColumnVector

    def __init__(
        self,
        descriptor: TypeDescriptor,
        vector: vectors.ColumnVector,
        strict: bool = False,
    ) -> None:
        super().__init__(descriptor, vector, strict)
        self.min_value, self.max_value = _INTEGER_BOUNDS[descriptor.category]

    def write(self, value: Any, index: int) -> None:
        if (
            isinstance(value, numbers.Integral)
            and not isinstance(value, bool)
            and self.min_value <= value <= self.max_value
        ):
            self.vector.vector[index] = int(value)
        else:
            self._mismatch(value, index)


class DoubleWriter(ColumnWriter):
    """double columns; accepts floating point values only, not ints."""

    vector_type = vectors.DoubleColumnVector
    vector: vectors.DoubleColumnVector

    def write(self, value: Any, index: int) -> None:
        if isinstance(value, numbers.Real) and not isinstance(value, numbers.Rational):
            self.vector.vector[index] = float(value)
        else:
            self._mismatch(value, index)


class StringWriter(ColumnWriter):
    """string columns, stored as UTF-8."""

    vector_type = vectors.BytesColumnVector
    vector: vectors.BytesColumnVector

    def write(self, value: Any, index: int) -> None:
        if not isinstance(value, str):
            self._mismatch(value, index)
            return
        try:
            data = value.encode("utf-8")
        except UnicodeEncodeError:
            # Lone surrogates have no UTF-8 form
            self._mismatch(value, index)
            return
        self.vector.set_value(index, data)


class ListWriter(ColumnWriter):
    """array columns.

    Elements of row i go to child rows ``offsets[i]`` onwards. The child
    grows before any element is written and keeps earlier rows' elements
    once any exist.
    """

    vector_type = vectors.ListColumnVector
    vector: vectors.ListColumnVector

    def __init__(
        self,
        descriptor: TypeDescriptor,
        vector: vectors.ColumnVector,
        strict: bool = False,
    ) -> None:
        super().__init__(descriptor, vector, strict)
        self.element_writer = build_writer(descriptor.element, vector.child, strict=strict)

    def write(self, value: Any, index: int) -> None:
        column = self.vector
        offset = column.child_count
        column.offsets[index] = offset
        if not _is_sequence(value):
            self._mismatch(value, index)
            return
        if not value:
            vectors.set_null(column, index)
            return

        length = len(value)
        column.lengths[index] = length
        column.child.ensure_size(offset + length, preserve_data=offset != 0)
        for position, element in enumerate(value):
            self.element_writer.write(element, offset + position)
        column.child_count = offset + length


class MapWriter(ColumnWriter):
    """map columns; keys and values share one offset/length per row."""

    vector_type = vectors.MapColumnVector
    vector: vectors.MapColumnVector

    def __init__(
        self,
        descriptor: TypeDescriptor,
        vector: vectors.ColumnVector,
        strict: bool = False,
    ) -> None:
        super().__init__(descriptor, vector, strict)
        self.key_writer = build_writer(descriptor.key, vector.keys, strict=strict)
        self.value_writer = build_writer(descriptor.value, vector.values, strict=strict)

    def write(self, value: Any, index: int) -> None:
        column = self.vector
        offset = column.child_count
        column.offsets[index] = offset
        if not isinstance(value, Mapping):
            self._mismatch(value, index)
            return
        if not value:
            vectors.set_null(column, index)
            return

        length = len(value)
        column.lengths[index] = length
        column.keys.ensure_size(offset + length, preserve_data=offset != 0)
        column.values.ensure_size(offset + length, preserve_data=offset != 0)
        for position, (key, item) in enumerate(value.items()):
            self.key_writer.write(key, offset + position)
            self.value_writer.write(item, offset + position)
        column.child_count = offset + length


class StructWriter(ColumnWriter):
    """struct columns.

    Field values are looked up by name and written at the struct's own row
    index. A non-mapping value nulls the struct row only; field vectors keep
    whatever was written at that index before.
    """

    vector_type = vectors.StructColumnVector
    vector: vectors.StructColumnVector

    def __init__(
        self,
        descriptor: TypeDescriptor,
        vector: vectors.ColumnVector,
        strict: bool = False,
    ) -> None:
        super().__init__(descriptor, vector, strict)
        self.field_writers: list[tuple[str, ColumnWriter]] = [
            (name, build_writer(child, field_vector, strict=strict))
            for (name, child), field_vector in zip(descriptor.fields(), vector.fields)
        ]

    def write(self, value: Any, index: int) -> None:
        if not isinstance(value, Mapping):
            self._mismatch(value, index)
            return
        for name, writer in self.field_writers:
            writer.write(value.get(name), index)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


_WRITERS: dict[Category, type[ColumnWriter]] = {
    Category.INT: LongWriter,
    Category.LONG: LongWriter,
    Category.DOUBLE: DoubleWriter,
    Category.STRING: StringWriter,
    Category.LIST: ListWriter,
    Category.MAP: MapWriter,
    Category.STRUCT: StructWriter,
}


def build_writer(
    descriptor: TypeDescriptor,
    vector: vectors.ColumnVector,
    *,
    strict: bool = False,
) -> ColumnWriter:
    """Build the writer tree for ``descriptor`` bound to ``vector``.

    Args:
        descriptor: Column type.
        vector: Vector created for ``descriptor`` (see vectors.create_vector).
        strict: Raise ValueTypeError on mismatched values instead of
            storing null.

    Returns:
        ColumnWriter whose ``write(value, index)`` stores one row.

    Raises:
        UnsupportedSchemaError: If a category in the tree has no writer, or
            the vector does not match the descriptor.
    """
    writer_cls = _WRITERS.get(descriptor.category)
    if writer_cls is None:
        raise errors.UnsupportedSchemaError(str(descriptor))
    if not isinstance(vector, writer_cls.vector_type):
        raise errors.UnsupportedSchemaError(
            str(descriptor),
            cause=f"Type '{descriptor}' is bound to a {type(vector).__name__}, "
            f"expected a {writer_cls.vector_type.__name__}",
        )
    logger.debug("Building %s for '%s'", writer_cls.__name__, descriptor)
    return writer_cls(descriptor, vector, strict=strict)
