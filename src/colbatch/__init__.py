from .errors import ColbatchError, UnsupportedSchemaError, ValueTypeError
from .readers import read_batch
from .settings import SinkSettings, WriterSettings, load_writer_settings
from .sinks import MemorySink, OrcSink, ParquetSink
from .types import (
    Category,
    TypeDescriptor,
    double,
    int_,
    list_of,
    long_,
    map_of,
    string,
    struct,
    struct_of,
)
from .vectors import RowBatch
from .writer import BatchWriter, write_rows

__all__ = [
    # types
    "Category",
    "TypeDescriptor",
    "int_",
    "long_",
    "double",
    "string",
    "list_of",
    "map_of",
    "struct",
    "struct_of",
    # writing
    "BatchWriter",
    "RowBatch",
    "write_rows",
    "read_batch",
    # sinks
    "MemorySink",
    "OrcSink",
    "ParquetSink",
    # settings
    "WriterSettings",
    "SinkSettings",
    "load_writer_settings",
    # errors
    "ColbatchError",
    "UnsupportedSchemaError",
    "ValueTypeError",
]
