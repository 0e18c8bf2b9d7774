import gc

import pytest

from conftest import SCAN_URI, numbered_points, inclination_frame
from rxp_reader.engine import SimulatedEngine
from rxp_reader.errors import EngineError, ResourceError
from rxp_reader.stream.reader import InclinationBatchReader, PointBatchReader


def open_reader(engine, cls=PointBatchReader, uri=SCAN_URI):
    status, handle = engine.open(uri, True)
    assert status == 0
    return cls(engine, handle)


def test_read_batch_decodes_first_got_records(scan_engine):
    reader = open_reader(scan_engine)
    batch = reader.read_batch(4)
    assert [p.x for p in batch] == [0.0, 1.0, 2.0, 3.0]
    assert batch[3].deviation == 3
    assert batch[3].time == pytest.approx(0.003)


def test_trailing_slots_are_discarded(scan_engine):
    reader = open_reader(scan_engine)
    reader.read_batch(8)
    # Only two records left in the first frame; 6 slots stay unfilled
    batch = reader.read_batch(8)
    assert [p.x for p in batch] == [8.0, 9.0]


def test_no_data_and_no_frame_signal_is_end_of_stream(scan_engine):
    reader = open_reader(scan_engine)
    assert len(reader.read_batch(100)) == 10
    assert len(reader.read_batch(100)) == 5
    assert reader.read_batch(100) is None


def test_end_of_frame_without_data_is_not_end_of_stream(engine):
    engine.add_source(SCAN_URI, [numbered_points(2), numbered_points(0), numbered_points(2, start=2)])
    reader = open_reader(engine)
    assert len(reader.read_batch(10)) == 2
    assert reader.read_batch(10) == []
    assert [p.x for p in reader.read_batch(10)] == [2.0, 3.0]
    assert reader.read_batch(10) is None


def test_engine_failure_carries_last_error(scan_engine):
    reader = open_reader(scan_engine)
    scan_engine.fail_next_read(7, "checksum mismatch")
    with pytest.raises(EngineError) as excinfo:
        reader.read_batch(4)
    assert excinfo.value.code == 7
    assert excinfo.value.message == "checksum mismatch"
    assert str(excinfo.value) == "scanifc error, code 7: checksum mismatch"


def test_failed_last_error_query_degrades_message(scan_engine):
    reader = open_reader(scan_engine)
    scan_engine.fail_next_read(7, "checksum mismatch")
    scan_engine.last_error_status = 2
    with pytest.raises(EngineError) as excinfo:
        reader.read_batch(4)
    assert excinfo.value.code == 7
    assert excinfo.value.message is None
    assert excinfo.value.last_error_status == 2
    assert "unavailable" in str(excinfo.value)


def test_close_releases_once(scan_engine):
    reader = open_reader(scan_engine)
    reader.close()
    reader.close()
    assert reader.closed
    assert scan_engine.close_calls == 1
    assert scan_engine.open_handles == 0


def test_read_after_close_is_refused(scan_engine):
    reader = open_reader(scan_engine)
    reader.close()
    with pytest.raises(ResourceError):
        reader.read_batch(4)
    assert scan_engine.read_calls == 0


def test_garbage_collected_reader_releases_handle(scan_engine):
    reader = open_reader(scan_engine)
    reader.read_batch(3)
    del reader
    gc.collect()
    assert scan_engine.close_calls == 1
    assert scan_engine.open_handles == 0


def test_inclination_reader(engine):
    engine.add_source(SCAN_URI, [inclination_frame([(1.0, -8.5, -1.0), (2.0, -8.4, -0.9)])])
    reader = open_reader(engine, InclinationBatchReader)
    batch = reader.read_batch(5)
    assert [s.time for s in batch] == [1.0, 2.0]
    assert batch[1].roll == pytest.approx(-8.4, abs=1e-6)
    assert reader.read_batch(5) is None


class OvercountingEngine(SimulatedEngine):
    """Reports more records than the buffers can hold."""

    def read(self, handle, buffers):
        status, got, end_of_frame = super().read(handle, buffers)
        return status, got + 3, end_of_frame


def test_overcounted_batch_is_clamped_with_warning(caplog):
    engine = OvercountingEngine()
    engine.add_source(SCAN_URI, [numbered_points(10)])
    reader = open_reader(engine)
    with caplog.at_level("WARNING", logger="rxp_reader.stream.reader"):
        batch = reader.read_batch(4)
    assert [p.x for p in batch] == [0.0, 1.0, 2.0, 3.0]
    assert "reported 7 records for a batch of 4" in caplog.text
