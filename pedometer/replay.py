"""Offline replay of accelerometer traces through a fresh step detector."""

from typing import List, Optional

import numpy as np

from .config import Settings
from .models import StepEvent
from .step_detector import StepDetector


def replay_accelerometer(
    timestamps_ns: np.ndarray,
    xyz: np.ndarray,
    detector: Optional[StepDetector] = None,
    settings: Optional[Settings] = None,
) -> List[StepEvent]:
    """Run a recorded trace through a step detector, sample by sample.

    Args:
        timestamps_ns: shape ``(n,)`` monotonic timestamps in nanoseconds
        xyz: shape ``(n, 3)`` acceleration components
        detector: detector to feed; a new one is built when omitted
        settings: tuning used to build the detector when none is given

    Returns:
        Step events in emission order
    """
    timestamps_ns = np.asarray(timestamps_ns, dtype=np.int64)
    xyz = np.asarray(xyz, dtype=np.float64)
    if xyz.ndim != 2 or xyz.shape[1] != 3:
        raise ValueError(f"xyz must have shape (n, 3), got {xyz.shape}")
    if timestamps_ns.shape != (xyz.shape[0],):
        raise ValueError(
            f"timestamps_ns must have shape ({xyz.shape[0]},), got {timestamps_ns.shape}"
        )

    if detector is None:
        detector = StepDetector.from_settings(settings) if settings else StepDetector()

    events = []
    for ts, (x, y, z) in zip(timestamps_ns.tolist(), xyz.tolist()):
        event = detector.update(ts, x, y, z)
        if event is not None:
            events.append(event)
    return events


def synthetic_walk(
    frequency_hz: float,
    amplitude_ms2: float,
    duration_s: float,
    sample_rate_hz: float = 50.0,
    gravity_ms2: float = 9.81,
    noise_ms2: float = 0.0,
    seed: int = 0,
):
    """Vertical acceleration of an idealised walk: gravity plus a sine.

    Returns:
        ``(timestamps_ns, xyz)`` arrays suitable for :func:`replay_accelerometer`
    """
    n = int(round(duration_s * sample_rate_hz))
    t = np.arange(n) / sample_rate_hz
    z = gravity_ms2 + amplitude_ms2 * np.sin(2 * np.pi * frequency_hz * t)

    xyz = np.zeros((n, 3))
    xyz[:, 2] = z
    if noise_ms2 > 0:
        rng = np.random.default_rng(seed)
        xyz += rng.normal(0.0, noise_ms2, size=xyz.shape)

    timestamps_ns = np.round(t * 1e9).astype(np.int64)
    return timestamps_ns, xyz
