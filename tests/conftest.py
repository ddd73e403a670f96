"""Shared fixtures for colbatch tests."""

from __future__ import annotations

import pytest

import colbatch.sinks as sinks
import colbatch.types as types
import colbatch.writer as writer


@pytest.fixture
def memory_sink() -> sinks.MemorySink:
    return sinks.MemorySink()


@pytest.fixture
def batch_writer(memory_sink: sinks.MemorySink) -> writer.BatchWriter:
    """Lenient writer appending to an in-memory sink."""
    return writer.BatchWriter(sink=memory_sink)


@pytest.fixture
def person_schema() -> types.TypeDescriptor:
    """Struct schema touching every writable category."""
    return types.struct(
        id=types.long_(),
        age=types.int_(),
        score=types.double(),
        name=types.string(),
        tags=types.list_of(types.string()),
        attrs=types.map_of(types.string(), types.long_()),
        address=types.struct(city=types.string(), zip=types.int_()),
    )
