"""Type descriptors for columnar schemas.

A TypeDescriptor is an immutable schema node: a category tag, ordered
child descriptors and, for structs, the field names. Descriptors carry no
behaviour beyond validation and rendering; writers are built for them by
colbatch.writers.

The category vocabulary follows ORC so that any ORC schema can be
described, but only a closed subset is writable (see Category.is_writable).
"""

from __future__ import annotations

import enum

import pydantic as pdt

import colbatch.errors as errors


class Category(enum.Enum):
    """Type category, valued by its ORC type name."""

    BOOLEAN = "boolean"
    BYTE = "tinyint"
    SHORT = "smallint"
    INT = "int"
    LONG = "bigint"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    DATE = "date"
    TIMESTAMP = "timestamp"
    BINARY = "binary"
    DECIMAL = "decimal"
    VARCHAR = "varchar"
    CHAR = "char"
    LIST = "array"
    MAP = "map"
    STRUCT = "struct"
    UNION = "uniontype"

    @property
    def is_writable(self) -> bool:
        """True if colbatch has a column writer for this category."""
        return self in WRITABLE_CATEGORIES

    @property
    def is_compound(self) -> bool:
        """True for categories that own child descriptors."""
        return self in (Category.LIST, Category.MAP, Category.STRUCT, Category.UNION)


WRITABLE_CATEGORIES: frozenset[Category] = frozenset(
    {
        Category.INT,
        Category.LONG,
        Category.DOUBLE,
        Category.STRING,
        Category.LIST,
        Category.MAP,
        Category.STRUCT,
    }
)


class TypeDescriptor(pdt.BaseModel, frozen=True, extra="forbid"):
    """Immutable schema node.

    Example:
        schema = struct(
            name=string(),
            scores=list_of(long_()),
            attrs=map_of(string(), double()),
        )
        str(schema)  # 'struct<name:string,scores:array<bigint>,attrs:map<string,double>>'
    """

    category: Category
    children: tuple[TypeDescriptor, ...] = ()
    field_names: tuple[str, ...] = ()

    @pdt.model_validator(mode="after")
    def validate_shape(self) -> TypeDescriptor:
        """Ensure the number of children matches the category."""
        name = self.category.value
        count = len(self.children)
        if self.category == Category.LIST and count != 1:
            raise errors.InvalidSchemaError(name, f"array takes exactly 1 child, got {count}")
        if self.category == Category.MAP and count != 2:
            raise errors.InvalidSchemaError(name, f"map takes exactly 2 children (key, value), got {count}")
        if self.category == Category.STRUCT:
            if len(self.field_names) != count:
                raise errors.InvalidSchemaError(
                    name,
                    f"struct has {count} children but {len(self.field_names)} field names",
                )
            if len(set(self.field_names)) != count:
                raise errors.InvalidSchemaError(name, f"duplicate field names in {list(self.field_names)}")
        elif self.field_names:
            raise errors.InvalidSchemaError(name, "only struct types take field names")
        if not self.category.is_compound and count:
            raise errors.InvalidSchemaError(name, f"primitive type takes no children, got {count}")
        return self

    @property
    def element(self) -> TypeDescriptor:
        """Element type of a list."""
        return self.children[0]

    @property
    def key(self) -> TypeDescriptor:
        """Key type of a map."""
        return self.children[0]

    @property
    def value(self) -> TypeDescriptor:
        """Value type of a map."""
        return self.children[1]

    def fields(self) -> list[tuple[str, TypeDescriptor]]:
        """Return (name, descriptor) pairs of a struct in schema order."""
        return list(zip(self.field_names, self.children))

    def __str__(self) -> str:
        name = self.category.value
        if self.category == Category.STRUCT:
            inner = ",".join(f"{n}:{c}" for n, c in self.fields())
            return f"{name}<{inner}>"
        if self.children:
            return f"{name}<{','.join(str(c) for c in self.children)}>"
        return name


# =============================================================================
# Builders
# =============================================================================


def primitive(category: Category) -> TypeDescriptor:
    """Descriptor for a category without children."""
    return TypeDescriptor(category=category)


def int_() -> TypeDescriptor:
    return primitive(Category.INT)


def long_() -> TypeDescriptor:
    return primitive(Category.LONG)


def double() -> TypeDescriptor:
    return primitive(Category.DOUBLE)


def string() -> TypeDescriptor:
    return primitive(Category.STRING)


def list_of(element: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(category=Category.LIST, children=(element,))


def map_of(key: TypeDescriptor, value: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(category=Category.MAP, children=(key, value))


def struct_of(fields: list[tuple[str, TypeDescriptor]]) -> TypeDescriptor:
    """Struct descriptor from ordered (name, descriptor) pairs."""
    return TypeDescriptor(
        category=Category.STRUCT,
        children=tuple(t for _, t in fields),
        field_names=tuple(n for n, _ in fields),
    )


def struct(**fields: TypeDescriptor) -> TypeDescriptor:
    """Struct descriptor from keyword arguments, in argument order."""
    return struct_of(list(fields.items()))
