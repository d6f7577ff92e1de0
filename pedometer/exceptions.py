"""Exceptions raised by the pedometer service."""


class PedometerError(Exception):
    """Base class for pedometer errors."""


class NoSensorAvailableError(PedometerError):
    """Neither a step counter nor an accelerometer is available."""


class PersistenceError(PedometerError):
    """A state or history write could not be completed."""
