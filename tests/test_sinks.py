"""Tests for sink classes -- batch handling and file output."""

import pyarrow as pa
import pyarrow.orc as orc
import pyarrow.parquet as pq
import pydantic as pdt
import pytest

import colbatch.errors as errors
import colbatch.sinks as sinks
import colbatch.types as types
import colbatch.vectors as vectors
import colbatch.writer as writer


# --- Test data helpers ---


def _schema() -> types.TypeDescriptor:
    return types.struct(
        user_id=types.string(),
        amounts=types.list_of(types.double()),
        labels=types.map_of(types.string(), types.long_()),
    )


def _rows() -> list[dict]:
    return [
        {"user_id": "u1", "amounts": [10.0, 20.0], "labels": {"a": 1}},
        {"user_id": "u2", "amounts": [], "labels": None},
        {"user_id": None, "amounts": [30.0], "labels": {"b": 2, "c": 3}},
    ]


# --- BaseSink tests ---


class TestBaseSink:
    """Test BaseSink ABC contract."""

    def test_cannot_instantiate_directly(self):
        """BaseSink is abstract and cannot be instantiated."""
        with pytest.raises(TypeError, match="abstract"):
            sinks.BaseSink(kind="test")

    def test_create_batch(self):
        """create_batch() returns an empty batch with the requested capacity."""
        batch = sinks.MemorySink().create_batch(_schema(), 8)

        assert isinstance(batch, vectors.RowBatch)
        assert batch.size == 0
        assert batch.capacity == 8
        assert batch.column_names == ["user_id", "amounts", "labels"]

    def test_append_after_close_raises(self):
        sink = sinks.MemorySink()
        sink.close()

        with pytest.raises(errors.SinkClosedError, match="memory"):
            sink.append(sink.create_batch(_schema()))

    def test_close_twice_is_noop(self):
        sink = sinks.MemorySink()
        sink.close()
        sink.close()
        assert sink.closed

    def test_context_manager_closes(self):
        with sinks.MemorySink() as sink:
            assert not sink.closed
        assert sink.closed

    def test_rejects_unknown_options(self):
        with pytest.raises(pdt.ValidationError):
            sinks.OrcSink(path="x.orc", level=3)


# --- MemorySink tests ---


class TestMemorySink:
    def test_keeps_batches_in_order(self):
        sink = sinks.MemorySink()
        first = sink.create_batch(types.long_())
        second = sink.create_batch(types.long_())

        sink.append(first)
        sink.append(second)

        assert sink.batches == [first, second]

    def test_to_table(self):
        sink = sinks.MemorySink()
        writer.BatchWriter(sink=sink).write(_schema(), _rows())

        table = sink.to_table()

        assert isinstance(table, pa.Table)
        assert table.num_rows == 3
        assert table.column("user_id").to_pylist() == ["u1", "u2", None]
        assert table.column("amounts").to_pylist() == [[10.0, 20.0], None, [30.0]]

    def test_to_table_without_batches(self):
        with pytest.raises(errors.SinkError, match="No batches"):
            sinks.MemorySink().to_table()


# --- File sinks ---


class TestOrcSink:
    def test_default_compression(self):
        assert sinks.OrcSink(path="x.orc").compression == "zstd"

    def test_write_creates_file(self, tmp_path):
        output = tmp_path / "nested" / "data.orc"
        with sinks.OrcSink(path=str(output)) as sink:
            writer.BatchWriter(sink=sink).write(_schema(), _rows())

        assert output.exists()

    def test_round_trip_preserves_data(self, tmp_path):
        output = tmp_path / "data.orc"
        with sinks.OrcSink(path=str(output), compression="zstd") as sink:
            writer.BatchWriter(sink=sink).write(_schema(), _rows())

        table = orc.read_table(str(output))
        assert table.num_rows == 3
        assert table.column("user_id").to_pylist() == ["u1", "u2", None]
        assert table.column("amounts").to_pylist() == [[10.0, 20.0], None, [30.0]]
        assert table.column("labels").to_pylist() == [[("a", 1)], None, [("b", 2), ("c", 3)]]

    def test_close_without_batches_writes_nothing(self, tmp_path):
        output = tmp_path / "empty.orc"
        sinks.OrcSink(path=str(output)).close()
        assert not output.exists()


class TestParquetSink:
    def test_default_compression(self):
        assert sinks.ParquetSink(path="x.parquet").compression == "snappy"

    def test_round_trip_preserves_data(self, tmp_path):
        output = tmp_path / "data.parquet"
        with sinks.ParquetSink(path=str(output), compression="none") as sink:
            writer.BatchWriter(sink=sink).write(_schema(), _rows())

        table = pq.read_table(str(output))
        assert table.num_rows == 3
        assert table.column("amounts").to_pylist() == [[10.0, 20.0], None, [30.0]]
        assert table.column("labels").to_pylist() == [[("a", 1)], None, [("b", 2), ("c", 3)]]

    def test_multiple_batches_in_one_file(self, tmp_path):
        output = tmp_path / "data.parquet"
        with sinks.ParquetSink(path=str(output)) as sink:
            batch_writer = writer.BatchWriter(sink=sink)
            batch_writer.write(types.long_(), [1, 2])
            batch_writer.write(types.long_(), [3])

        assert pq.read_table(str(output)).column("_col0").to_pylist() == [1, 2, 3]
