"""Unit tests for step sources and their selection."""

import pytest

from pedometer.exceptions import NoSensorAvailableError
from pedometer.models import (
    AccelSample,
    SensorCapabilities,
    SensorKind,
    StepCounterReading,
    StepEvent,
)
from pedometer.sources import (
    AccelerometerStepSource,
    StepCounterSource,
    detect_capabilities,
    select_step_source,
)
from pedometer.step_detector import StepDetector

MS = 1_000_000


class TestStepCounterSource:
    """Test delta semantics of the hardware step counter."""

    def test_first_reading_sets_baseline(self):
        source = StepCounterSource()
        assert source.process(StepCounterReading(timestamp_ns=0, steps=5000)) is None
        assert source.last_steps == 5000

    def test_delta_after_baseline(self):
        source = StepCounterSource()
        source.process(StepCounterReading(timestamp_ns=0, steps=5000))

        event = source.process(StepCounterReading(timestamp_ns=10, steps=5003))

        assert event == StepEvent(timestamp_ns=10, steps=3, source=SensorKind.STEP_COUNTER)

    def test_unchanged_count_emits_nothing(self):
        source = StepCounterSource()
        source.process(StepCounterReading(timestamp_ns=0, steps=10))
        assert source.process(StepCounterReading(timestamp_ns=10, steps=10)) is None

    def test_sensor_reset_counts_new_value(self):
        source = StepCounterSource()
        source.process(StepCounterReading(timestamp_ns=0, steps=5000))

        event = source.process(StepCounterReading(timestamp_ns=10, steps=4))

        assert event.steps == 4
        assert source.last_steps == 4

    def test_ignores_accelerometer_samples(self):
        source = StepCounterSource()
        assert source.process(AccelSample(timestamp_ns=0, x=0.0, y=0.0, z=9.8)) is None
        assert source.last_steps is None


class TestAccelerometerStepSource:
    """Test the accelerometer fallback source."""

    def test_emits_step_on_peak(self):
        detector = StepDetector(smoothing_alpha=1.0, amplitude_threshold=11.0, refractory_interval_ns=0)
        source = AccelerometerStepSource(detector)

        readings = [(0, 9.8), (10 * MS, 12.0), (20 * MS, 10.0)]
        events = [source.process(AccelSample(timestamp_ns=ts, x=0.0, y=0.0, z=z)) for ts, z in readings]

        assert events[:2] == [None, None]
        assert events[2] == StepEvent(timestamp_ns=10 * MS, source=SensorKind.ACCELEROMETER)

    def test_ignores_step_counter_readings(self):
        source = AccelerometerStepSource(StepDetector())
        assert source.process(StepCounterReading(timestamp_ns=0, steps=3)) is None
        assert source.detector.preprocessor.samples_accepted == 0

    def test_nan_sample_counted(self):
        source = AccelerometerStepSource(StepDetector())
        source.process(AccelSample(timestamp_ns=0, x=float("nan"), y=0.0, z=0.0))
        assert source.detector.preprocessor.samples_non_finite == 1


class TestSelectStepSource:
    """Test the one-time choice between sensors."""

    def test_prefers_step_counter(self, test_settings):
        capabilities = SensorCapabilities(has_step_counter=True, has_accelerometer=True)
        source = select_step_source(capabilities, test_settings)
        assert isinstance(source, StepCounterSource)

    def test_falls_back_to_accelerometer(self, test_settings):
        capabilities = SensorCapabilities(has_step_counter=False, has_accelerometer=True)
        source = select_step_source(capabilities, test_settings)

        assert isinstance(source, AccelerometerStepSource)
        assert source.detector.decision.amplitude_threshold == test_settings.amplitude_threshold_ms2
        assert source.detector.decision.refractory_interval_ns == 250 * MS
        assert source.detector.preprocessor.smoothing_alpha == test_settings.smoothing_alpha

    def test_forced_accelerometer(self, test_settings):
        test_settings.sensor_mode = "accelerometer"
        capabilities = SensorCapabilities(has_step_counter=True, has_accelerometer=True)
        assert isinstance(select_step_source(capabilities, test_settings), AccelerometerStepSource)

    def test_forced_mode_without_hardware(self, test_settings):
        test_settings.sensor_mode = "step_counter"
        capabilities = SensorCapabilities(has_step_counter=False, has_accelerometer=True)
        with pytest.raises(NoSensorAvailableError):
            select_step_source(capabilities, test_settings)

    def test_no_sensor_available(self, test_settings):
        with pytest.raises(NoSensorAvailableError):
            select_step_source(SensorCapabilities(), test_settings)

    def test_detect_capabilities_from_settings(self, test_settings):
        test_settings.has_step_counter = True
        capabilities = detect_capabilities(test_settings)
        assert capabilities == SensorCapabilities(has_step_counter=True, has_accelerometer=True)
