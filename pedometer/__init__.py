"""
Pedometer - step counting from a hardware step counter or an accelerometer
"""

__version__ = "1.0.0"

from pedometer.counter import DailyStepCounter
from pedometer.decision import DebouncePhase, StepDecisionLogic
from pedometer.exceptions import NoSensorAvailableError, PedometerError, PersistenceError
from pedometer.models import AccelSample, PeakCandidate, StepCountUpdate, StepEvent
from pedometer.preprocessor import SignalPreprocessor
from pedometer.sources import (
    AccelerometerStepSource,
    StepCounterSource,
    StepSource,
    select_step_source,
)
from pedometer.step_detector import StepDetector

__all__ = [
    "AccelSample",
    "AccelerometerStepSource",
    "DailyStepCounter",
    "DebouncePhase",
    "NoSensorAvailableError",
    "PeakCandidate",
    "PedometerError",
    "PersistenceError",
    "SignalPreprocessor",
    "StepCountUpdate",
    "StepCounterSource",
    "StepDecisionLogic",
    "StepDetector",
    "StepEvent",
    "StepSource",
    "select_step_source",
]
