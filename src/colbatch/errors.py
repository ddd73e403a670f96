"""Structured error handling with context + cause + fix pattern.

All colbatch errors follow a consistent pattern that provides:
- Context: What operation was being attempted
- Cause: Why it failed
- Fix: How to resolve the issue

Per-value type mismatches are not errors unless strict mode is enabled;
an unsupported schema is always fatal.
"""

from __future__ import annotations

from typing import Any


class ColbatchError(Exception):
    """Base error with structured messaging.

    All colbatch errors inherit from this class and provide
    context, cause, and fix information.
    """

    def __init__(self, context: str, cause: str, fix: str) -> None:
        self.context = context
        self.cause = cause
        self.fix = fix
        message = f"{context}\n\nCause: {cause}\n\nFix: {fix}"
        super().__init__(message)

    def to_dict(self) -> dict:
        """Serialize error to structured dict for JSON output."""
        return {
            "error": True,
            "code": type(self).__name__,
            "context": self.context,
            "cause": self.cause,
            "fix": self.fix,
        }


class SchemaError(ColbatchError):
    """Schema related errors."""

    pass


class UnsupportedSchemaError(SchemaError):
    """A type category has no column writer."""

    def __init__(self, type_name: str, cause: str | None = None) -> None:
        super().__init__(
            context=f"Building column writer for type '{type_name}'",
            cause=cause or f"Type '{type_name}' is not a writable category",
            fix="Use only int, bigint, double, string, array, map and struct types in the schema",
        )


class InvalidSchemaError(SchemaError):
    """A type descriptor is malformed."""

    def __init__(self, category: str, details: str) -> None:
        super().__init__(
            context=f"Constructing '{category}' type descriptor",
            cause=details,
            fix="Check the number of children and the field names passed to the descriptor",
        )


class ValueTypeError(ColbatchError):
    """A row value does not match its column type (strict mode only)."""

    def __init__(self, type_name: str, value: Any) -> None:
        self.value = value
        super().__init__(
            context=f"Writing value to '{type_name}' column",
            cause=f"Value {value!r} of type '{type(value).__name__}' cannot be stored in a '{type_name}' column",
            fix="Pass a value of the column's type or None, or disable strict mode to store mismatches as null",
        )


class SinkError(ColbatchError):
    """Sink operation errors."""

    pass


class SinkClosedError(SinkError):
    """Batch appended to a sink that was already closed."""

    def __init__(self, kind: str) -> None:
        super().__init__(
            context=f"Appending batch to '{kind}' sink",
            cause="The sink has already been closed",
            fix="Create a new sink for each output file",
        )


class ConfigurationError(ColbatchError):
    """Configuration file or settings related errors."""

    pass


class ConfigNotFoundError(ConfigurationError):
    """Configuration file not found."""

    def __init__(self, path: str) -> None:
        super().__init__(
            context=f"Loading configuration from '{path}'",
            cause="Configuration file not found",
            fix=f"Create a colbatch.yaml file at '{path}' or construct WriterSettings directly",
        )


class ConfigValidationError(ConfigurationError):
    """Configuration validation failed."""

    def __init__(self, path: str, details: str) -> None:
        super().__init__(
            context=f"Validating configuration from '{path}'",
            cause=details,
            fix="Check the configuration file matches the expected schema (strict, batch_capacity, sink).",
        )
