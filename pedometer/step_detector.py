"""Step detection algorithm for accelerometer data."""

from typing import Optional

import structlog

from .config import Settings
from .decision import StepDecisionLogic
from .models import StepEvent
from .preprocessor import SignalPreprocessor

logger = structlog.get_logger(__name__)


class StepDetector:
    """Detects individual steps from a stream of accelerometer samples.

    Chains a :class:`SignalPreprocessor` and a :class:`StepDecisionLogic`.
    Every instance owns its state, so two detectors fed the same samples
    emit the same events.
    """

    def __init__(
        self,
        smoothing_alpha: float = 0.5,
        amplitude_threshold: float = 11.0,
        refractory_interval_ns: int = 250_000_000,
    ):
        self.preprocessor = SignalPreprocessor(smoothing_alpha)
        self.decision = StepDecisionLogic(amplitude_threshold, refractory_interval_ns)
        self.peaks_detected = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "StepDetector":
        return cls(
            smoothing_alpha=settings.smoothing_alpha,
            amplitude_threshold=settings.amplitude_threshold_ms2,
            refractory_interval_ns=settings.refractory_interval_ns,
        )

    @property
    def step_count(self) -> int:
        return self.decision.step_count

    def update(self, timestamp_ns: int, x: float, y: float, z: float) -> Optional[StepEvent]:
        """Feed one accelerometer sample, returning a step if one completed."""
        candidate = self.preprocessor.update(timestamp_ns, x, y, z)
        if candidate is None:
            return None

        self.peaks_detected += 1
        event = self.decision.evaluate(candidate)
        if event:
            logger.debug(
                "Step detected",
                timestamp_ns=event.timestamp_ns,
                magnitude=round(candidate.magnitude, 3),
                step_count=self.step_count,
            )
        return event

    def reset(self) -> None:
        self.preprocessor.reset()
        self.decision.reset()
        self.peaks_detected = 0
