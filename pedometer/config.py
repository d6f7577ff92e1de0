"""Configuration for the pedometer service."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with PEDOMETER_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="PEDOMETER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Service settings
    service_name: str = "pedometer"
    host: str = "0.0.0.0"  # nosec B104 - binding to all interfaces in container
    port: int = 8014
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    detection_log_level: str = Field(
        default="INFO",
        description="Level for the per-sample detection loggers",
    )
    kafka_log_level: str = "WARNING"
    environment: str = "development"
    device_id: str = Field(
        default="default-device",
        description="Device whose readings this service counts",
    )
    shutdown_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="How long shutdown waits for the consumer to finish its batch",
    )

    # Kafka settings
    kafka_bootstrap_servers: str = "kafka:29092"
    kafka_consumer_group_id: str = "pedometer"
    kafka_input_topic: str = "device.sensor.pedometer.raw"
    kafka_output_topic: str = "device.health.steps.daily"
    kafka_auto_offset_reset: str = "earliest"
    kafka_max_poll_records: int = 500

    # Sensor capabilities, checked once at startup
    has_step_counter: bool = False
    has_accelerometer: bool = True
    sensor_mode: Literal["auto", "step_counter", "accelerometer"] = "auto"

    # Step detection settings
    smoothing_alpha: float = Field(
        default=0.5,
        gt=0.0,
        le=1.0,
        description="EWMA weight of the newest magnitude sample",
    )
    amplitude_threshold_ms2: float = Field(
        default=11.0,
        gt=0.0,
        description="Minimum smoothed acceleration magnitude of a step peak",
    )
    refractory_interval_ms: float = Field(
        default=250.0,
        ge=0.0,
        description="Minimum time between two accepted steps",
    )

    # Calibration settings
    stride_length_meters: float = Field(default=0.7, gt=0.0)

    # Persistence settings
    state_path: str = "data/pedometer_state.json"
    history_db_path: str = "data/pedometer_history.db"

    @property
    def refractory_interval_ns(self) -> int:
        return int(self.refractory_interval_ms * 1_000_000)


settings = Settings()
