"""Step service wiring a step source to the daily counter."""

from typing import Optional

import structlog

from .config import Settings
from .counter import DailyStepCounter
from .metrics import readings_processed
from .models import SensorCapabilities, SensorKind, SensorMessage, StepCountUpdate
from .sources import SensorReading, StepSource, detect_capabilities, select_step_source
from .storage import JsonFileKeyValueStore, PersistenceWriter, SqliteDayRecordStore

logger = structlog.get_logger(__name__)


class StepService:
    """Owns one step source and one daily counter for its whole lifetime.

    Readings are handled one at a time and to completion: the source may
    emit a step event, which the counter turns into a count update.
    """

    def __init__(self, source: StepSource, counter: DailyStepCounter):
        self.source = source
        self.counter = counter

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        capabilities: Optional[SensorCapabilities] = None,
    ) -> "StepService":
        """Build the service from configuration.

        Raises:
            NoSensorAvailableError: if no usable sensor is present.
        """
        if capabilities is None:
            capabilities = detect_capabilities(settings)
        source = select_step_source(capabilities, settings)

        counter = DailyStepCounter(
            state_store=JsonFileKeyValueStore(settings.state_path),
            history_store=SqliteDayRecordStore(settings.history_db_path),
            writer=PersistenceWriter(),
            stride_length_meters=settings.stride_length_meters,
            device_id=settings.device_id,
        )
        return cls(source, counter)

    @property
    def todays_steps(self) -> int:
        return self.counter.todays_steps

    def handle_reading(self, reading: SensorReading) -> Optional[StepCountUpdate]:
        readings_processed.labels(source=self.source.kind.value).inc()

        event = self.source.process(reading)
        if event is None:
            return None
        return self.counter.record(event)

    def handle_message(self, message: SensorMessage) -> Optional[StepCountUpdate]:
        """Convert a bus message to the reading type of the active source."""
        if self.source.kind is SensorKind.ACCELEROMETER:
            reading = message.to_accel_sample()
        else:
            reading = message.to_step_counter_reading()

        if reading is None:
            logger.debug(
                "Message does not match active sensor",
                sensor=self.source.kind.value,
                device_id=message.device_id,
            )
            return None
        return self.handle_reading(reading)

    def close(self) -> None:
        self.counter.close()
