"""Day-scoped step counting with persistence and observers."""

from datetime import date
from typing import Callable, List, Optional

import structlog

from .metrics import observer_errors, steps_detected, todays_steps
from .models import DailyStepRecord, StepCountUpdate, StepEvent
from .storage import DayRecordStore, KeyValueStore, PersistenceWriter

logger = structlog.get_logger(__name__)

KEY_STEPS = "STEPS"
KEY_DATE = "DATE"

StepCountObserver = Callable[[StepCountUpdate], None]


class DailyStepCounter:
    """Counts today's steps from a stream of step events.

    The day is compared by calendar date against ``today()``. When an event
    arrives on a new day, yesterday's total is appended to the history
    before the count restarts, and the event counts toward the new day.
    """

    def __init__(
        self,
        state_store: KeyValueStore,
        history_store: DayRecordStore,
        writer: Optional[PersistenceWriter] = None,
        today: Callable[[], date] = date.today,
        stride_length_meters: float = 0.7,
        device_id: Optional[str] = None,
    ):
        self.state_store = state_store
        self.history_store = history_store
        self.writer = writer or PersistenceWriter()
        self.today = today
        self.stride_length_meters = stride_length_meters
        self.device_id = device_id
        self.observers: List[StepCountObserver] = []

        stored_date = state_store.get(KEY_DATE)
        self.current_date: date = date.fromisoformat(stored_date) if stored_date else today()
        self.todays_steps: int = int(state_store.get(KEY_STEPS, 0))
        todays_steps.set(self.todays_steps)

        logger.info(
            "Restored step count",
            day=self.current_date.isoformat(),
            todays_steps=self.todays_steps,
        )

    def add_observer(self, observer: StepCountObserver) -> None:
        self.observers.append(observer)

    def record(self, event: StepEvent) -> StepCountUpdate:
        """Add the event's steps to today's count and notify observers."""
        day = self.today()
        if day != self.current_date:
            self._start_new_day(day)

        self.todays_steps += event.steps
        self.writer.submit(
            "state",
            self.state_store.put,
            {KEY_DATE: self.current_date.isoformat(), KEY_STEPS: self.todays_steps},
        )

        steps_detected.labels(source=event.source.value).inc(event.steps)
        todays_steps.set(self.todays_steps)

        update = StepCountUpdate(
            device_id=self.device_id,
            day=self.current_date,
            todays_steps=self.todays_steps,
            steps_added=event.steps,
            distance_meters=round(self.todays_steps * self.stride_length_meters, 2),
            source=event.source,
            event_timestamp_ns=event.timestamp_ns,
        )
        self._notify(update)
        return update

    def _start_new_day(self, day: date) -> None:
        record = DailyStepRecord(day=self.current_date, steps=self.todays_steps)
        self.writer.submit("history", self.history_store.append, record)

        logger.info(
            "Starting count for new day",
            previous_day=record.day.isoformat(),
            previous_steps=record.steps,
            day=day.isoformat(),
        )

        self.current_date = day
        self.todays_steps = 0

    def _notify(self, update: StepCountUpdate) -> None:
        for observer in self.observers:
            try:
                observer(update)
            except Exception as e:
                observer_errors.inc()
                logger.error(
                    "Step count observer failed",
                    observer=getattr(observer, "__name__", repr(observer)),
                    error=str(e),
                )

    def history(self) -> List[DailyStepRecord]:
        self.writer.flush()
        return self.history_store.records()

    def flush(self) -> None:
        self.writer.flush()

    def close(self) -> None:
        self.writer.close()
        self.history_store.close()
