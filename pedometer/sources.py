"""Sensor strategies that turn readings into step events."""

from abc import ABC, abstractmethod
from typing import Optional, Union

import structlog

from .config import Settings
from .exceptions import NoSensorAvailableError
from .metrics import peaks_detected, samples_rejected
from .models import (
    AccelSample,
    SensorCapabilities,
    SensorKind,
    StepCounterReading,
    StepEvent,
)
from .step_detector import StepDetector

logger = structlog.get_logger(__name__)

SensorReading = Union[AccelSample, StepCounterReading]


class StepSource(ABC):
    """Produces step events from one kind of sensor reading."""

    kind: SensorKind

    @abstractmethod
    def process(self, reading: SensorReading) -> Optional[StepEvent]:
        """Handle one reading; return a step event when steps were taken."""


class AccelerometerStepSource(StepSource):
    """Software step detection on raw accelerometer samples."""

    kind = SensorKind.ACCELEROMETER

    def __init__(self, detector: StepDetector):
        self.detector = detector

    def process(self, reading: SensorReading) -> Optional[StepEvent]:
        if not isinstance(reading, AccelSample):
            logger.warning("Accelerometer source ignoring reading", reading_type=type(reading).__name__)
            return None

        preprocessor = self.detector.preprocessor
        non_finite = preprocessor.samples_non_finite
        out_of_order = preprocessor.samples_out_of_order
        peaks = self.detector.peaks_detected

        event = self.detector.update(reading.timestamp_ns, reading.x, reading.y, reading.z)

        if preprocessor.samples_non_finite != non_finite:
            samples_rejected.labels(reason="non_finite").inc()
        elif preprocessor.samples_out_of_order != out_of_order:
            samples_rejected.labels(reason="out_of_order").inc()
        if self.detector.peaks_detected != peaks:
            peaks_detected.inc()

        return event


class StepCounterSource(StepSource):
    """Hardware step counter reporting a cumulative count.

    The first reading only sets the baseline. A count lower than the
    previous one means the sensor was reset (usually a reboot), so the whole
    new count is taken as the delta.
    """

    kind = SensorKind.STEP_COUNTER

    def __init__(self):
        self.last_steps: Optional[int] = None

    def process(self, reading: SensorReading) -> Optional[StepEvent]:
        if not isinstance(reading, StepCounterReading):
            logger.warning("Step counter source ignoring reading", reading_type=type(reading).__name__)
            return None

        if self.last_steps is None:
            self.last_steps = reading.steps
            logger.info("Step counter baseline set", steps=reading.steps)
            return None

        if reading.steps < self.last_steps:
            logger.info(
                "Step counter was reset",
                previous_steps=self.last_steps,
                steps=reading.steps,
            )
            delta = reading.steps
        else:
            delta = reading.steps - self.last_steps
        self.last_steps = reading.steps

        if delta == 0:
            return None
        return StepEvent(timestamp_ns=reading.timestamp_ns, steps=delta, source=self.kind)


def detect_capabilities(settings: Settings) -> SensorCapabilities:
    """Sensor capabilities as declared in the configuration."""
    return SensorCapabilities(
        has_step_counter=settings.has_step_counter,
        has_accelerometer=settings.has_accelerometer,
    )


def select_step_source(capabilities: SensorCapabilities, settings: Settings) -> StepSource:
    """Pick the step source once for the lifetime of the service.

    The hardware step counter wins when present unless ``sensor_mode``
    forces one of the two.
    """
    use_step_counter = capabilities.has_step_counter and settings.sensor_mode != "accelerometer"
    use_accelerometer = capabilities.has_accelerometer and settings.sensor_mode != "step_counter"

    if use_step_counter:
        logger.info("Using sensor step counter")
        return StepCounterSource()

    if use_accelerometer:
        logger.info(
            "Using fallback sensor accelerometer",
            smoothing_alpha=settings.smoothing_alpha,
            amplitude_threshold_ms2=settings.amplitude_threshold_ms2,
            refractory_interval_ms=settings.refractory_interval_ms,
        )
        return AccelerometerStepSource(StepDetector.from_settings(settings))

    raise NoSensorAvailableError(
        f"No usable step sensor (capabilities={capabilities.model_dump()}, "
        f"sensor_mode={settings.sensor_mode})"
    )
