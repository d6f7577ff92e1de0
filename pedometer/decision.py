"""Amplitude and debounce checks that turn peaks into steps."""

from enum import Enum
from typing import Optional

import structlog

from .models import PeakCandidate, SensorKind, StepEvent

logger = structlog.get_logger(__name__)


class DebouncePhase(str, Enum):
    """Whether the next peak may be accepted as a step."""

    ARMED = "armed"
    REFRACTORY = "refractory"


class StepDecisionLogic:
    """Accepts a peak as a step when it is tall enough and not too soon.

    The refractory window is not driven by a timer: the phase is derived from
    the candidate's own timestamp each time one arrives.
    """

    def __init__(self, amplitude_threshold: float, refractory_interval_ns: int):
        if refractory_interval_ns < 0:
            raise ValueError("refractory_interval_ns must not be negative")
        self.amplitude_threshold = amplitude_threshold
        self.refractory_interval_ns = refractory_interval_ns
        self.reset()

    def reset(self) -> None:
        self.last_step_ns: Optional[int] = None
        self.step_count = 0

        self.rejected_low_amplitude = 0
        self.rejected_refractory = 0

    def phase(self, now_ns: int) -> DebouncePhase:
        """Debounce phase at ``now_ns``."""
        if self.last_step_ns is None:
            return DebouncePhase.ARMED
        if now_ns - self.last_step_ns > self.refractory_interval_ns:
            return DebouncePhase.ARMED
        return DebouncePhase.REFRACTORY

    def evaluate(self, candidate: PeakCandidate) -> Optional[StepEvent]:
        if candidate.magnitude <= self.amplitude_threshold:
            self.rejected_low_amplitude += 1
            return None

        if self.phase(candidate.timestamp_ns) is DebouncePhase.REFRACTORY:
            self.rejected_refractory += 1
            logger.debug(
                "Peak inside refractory interval",
                timestamp_ns=candidate.timestamp_ns,
                last_step_ns=self.last_step_ns,
            )
            return None

        self.last_step_ns = candidate.timestamp_ns
        self.step_count += 1
        return StepEvent(timestamp_ns=candidate.timestamp_ns, source=SensorKind.ACCELEROMETER)
