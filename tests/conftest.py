"""Common test fixtures for pedometer tests."""

from datetime import date

import pytest

from pedometer.config import Settings
from pedometer.counter import DailyStepCounter
from pedometer.storage import InMemoryDayRecordStore, InMemoryKeyValueStore, PersistenceWriter


class FakeClock:
    """Calendar clock the tests can move forward."""

    def __init__(self, day: date):
        self.day = day

    def __call__(self) -> date:
        return self.day


@pytest.fixture
def test_settings(tmp_path):
    """Settings writing state under a temporary directory."""
    return Settings(
        state_path=str(tmp_path / "state.json"),
        history_db_path=str(tmp_path / "history.db"),
        device_id="test-device-1",
        has_step_counter=False,
        has_accelerometer=True,
        sensor_mode="auto",
        smoothing_alpha=0.5,
        amplitude_threshold_ms2=11.0,
        refractory_interval_ms=250.0,
        stride_length_meters=0.7,
    )


@pytest.fixture
def clock():
    return FakeClock(date(2025, 6, 26))


@pytest.fixture
def state_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def history_store():
    return InMemoryDayRecordStore()


@pytest.fixture
def writer():
    writer = PersistenceWriter()
    yield writer
    writer.close()


@pytest.fixture
def counter(state_store, history_store, writer, clock):
    """Daily counter backed by in-memory stores."""
    return DailyStepCounter(
        state_store=state_store,
        history_store=history_store,
        writer=writer,
        today=clock,
        stride_length_meters=0.7,
        device_id="test-device-1",
    )


@pytest.fixture
def sample_accelerometer_message():
    """Sample accelerometer message from the input topic."""
    return {
        "schema_version": "1.0.0",
        "device_id": "test-device-1",
        "timestamp_ns": 1_000_000_000,
        "x": 0.1,
        "y": 0.2,
        "z": 9.8,
    }


@pytest.fixture
def sample_step_counter_message():
    """Sample hardware step counter message from the input topic."""
    return {
        "schema_version": "1.0.0",
        "device_id": "test-device-1",
        "timestamp_ns": 1_000_000_000,
        "steps": 1200,
    }
