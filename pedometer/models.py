"""Data models for step counting."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SensorKind(str, Enum):
    """Sensor strategy that produced a step."""

    STEP_COUNTER = "step_counter"
    ACCELEROMETER = "accelerometer"


class SensorCapabilities(BaseModel):
    """Sensors the device exposes, detected once at startup."""

    has_step_counter: bool = False
    has_accelerometer: bool = False


class AccelSample(BaseModel):
    """Raw tri-axial accelerometer sample in the device frame."""

    timestamp_ns: int = Field(description="Monotonic sensor timestamp in nanoseconds")
    x: float
    y: float
    z: float


class StepCounterReading(BaseModel):
    """Cumulative step count reported by a hardware step counter."""

    timestamp_ns: int = Field(description="Monotonic sensor timestamp in nanoseconds")
    steps: int = Field(ge=0, description="Steps since the sensor was last reset")


class PeakCandidate(BaseModel):
    """Local maximum of the smoothed acceleration magnitude."""

    model_config = ConfigDict(frozen=True)

    timestamp_ns: int
    magnitude: float


class StepEvent(BaseModel):
    """One or more steps detected at a point in time."""

    model_config = ConfigDict(frozen=True)

    timestamp_ns: int
    steps: int = Field(default=1, ge=1)
    source: SensorKind = SensorKind.ACCELEROMETER


class DailyStepRecord(BaseModel):
    """Total steps counted on one calendar day."""

    day: date
    steps: int = Field(ge=0)


class StepCountUpdate(BaseModel):
    """Step count published to observers after each counted event."""

    schema_version: str = Field(default="1.0.0")
    device_id: Optional[str] = None
    day: date = Field(description="Calendar day the count belongs to")
    todays_steps: int = Field(description="Steps counted so far today")
    steps_added: int = Field(description="Steps added by the triggering event")
    distance_meters: float = Field(description="Estimated distance walked today")
    source: SensorKind
    event_timestamp_ns: int = Field(description="Sensor timestamp of the step event")

    @property
    def notification_text(self) -> str:
        return f"{self.distance_meters / 1000:.2f} km | {self.todays_steps} steps"


class SensorMessage(BaseModel):
    """Reading as published on the pedometer input topic.

    Accelerometer messages carry ``x``, ``y`` and ``z``; step counter
    messages carry ``steps``.
    """

    schema_version: str = "1.0.0"
    device_id: str
    timestamp_ns: int
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    steps: Optional[int] = Field(default=None, ge=0)

    def to_accel_sample(self) -> Optional[AccelSample]:
        if self.x is None or self.y is None or self.z is None:
            return None
        return AccelSample(timestamp_ns=self.timestamp_ns, x=self.x, y=self.y, z=self.z)

    def to_step_counter_reading(self) -> Optional[StepCounterReading]:
        if self.steps is None:
            return None
        return StepCounterReading(timestamp_ns=self.timestamp_ns, steps=self.steps)
