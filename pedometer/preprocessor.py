"""Acceleration magnitude smoothing and peak detection."""

import math
from typing import Optional

import structlog

from .models import PeakCandidate

logger = structlog.get_logger(__name__)


class SignalPreprocessor:
    """Turns raw accelerometer samples into peak candidates.

    Each sample is reduced to its magnitude ``sqrt(x² + y² + z²)`` and
    smoothed with an exponentially weighted moving average. A peak candidate
    is reported when the smoothed signal turns from rising to falling; it
    carries the timestamp and value of the sample at the top, so it is only
    known one sample later.

    Samples with a non-finite magnitude or a timestamp older than the last
    accepted one are ignored without touching the trend state.
    """

    def __init__(self, smoothing_alpha: float = 0.5):
        if not 0.0 < smoothing_alpha <= 1.0:
            raise ValueError(f"smoothing_alpha must be in (0, 1], got {smoothing_alpha}")
        self.smoothing_alpha = smoothing_alpha
        self.reset()

    def reset(self) -> None:
        self._last_timestamp_ns: Optional[int] = None
        self._last_value: Optional[float] = None
        self._rising = False

        self.samples_accepted = 0
        self.samples_non_finite = 0
        self.samples_out_of_order = 0

    @property
    def last_value(self) -> Optional[float]:
        """Most recent smoothed magnitude, None before the first sample."""
        return self._last_value

    @property
    def rising(self) -> bool:
        return self._rising

    @staticmethod
    def magnitude(x: float, y: float, z: float) -> float:
        return math.hypot(x, y, z)

    def update(self, timestamp_ns: int, x: float, y: float, z: float) -> Optional[PeakCandidate]:
        """Feed one sample; return a peak candidate if the previous sample was a local maximum."""
        magnitude = self.magnitude(x, y, z)
        if not math.isfinite(magnitude):
            self.samples_non_finite += 1
            logger.debug("Ignoring non-finite sample", timestamp_ns=timestamp_ns)
            return None

        if self._last_timestamp_ns is not None and timestamp_ns < self._last_timestamp_ns:
            self.samples_out_of_order += 1
            logger.debug(
                "Ignoring out-of-order sample",
                timestamp_ns=timestamp_ns,
                last_timestamp_ns=self._last_timestamp_ns,
            )
            return None

        self.samples_accepted += 1

        if self._last_value is None:
            self._last_timestamp_ns = timestamp_ns
            self._last_value = magnitude
            return None

        filtered = self.smoothing_alpha * magnitude + (1.0 - self.smoothing_alpha) * self._last_value

        candidate = None
        if filtered > self._last_value:
            self._rising = True
        elif filtered < self._last_value:
            if self._rising:
                candidate = PeakCandidate(
                    timestamp_ns=self._last_timestamp_ns,
                    magnitude=self._last_value,
                )
            self._rising = False
        # Equal values are a plateau: the trend carries over.

        self._last_timestamp_ns = timestamp_ns
        self._last_value = filtered
        return candidate
