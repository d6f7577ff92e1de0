"""
Structured logging for the pedometer

Every record carries the service, environment and device it came from, plus
the active sensor once one has been selected. The per-sample detection
loggers and the Kafka client get their own levels so that a DEBUG service
log does not drown in one line per accelerometer sample.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import EventDict, Processor

from pedometer.config import Settings

# Loggers that write once per sample or per candidate peak
DETECTION_LOGGERS = (
    "pedometer.preprocessor",
    "pedometer.decision",
    "pedometer.step_detector",
)

KAFKA_LOGGERS = ("kafka",)

# Fields added to every record; filled by setup_logging and bind_sensor
_log_context: Dict[str, Any] = {}


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def add_pedometer_context(logger, method_name, event_dict: EventDict) -> EventDict:
    for key, value in _log_context.items():
        event_dict.setdefault(key, value)
    return event_dict


def bind_sensor(sensor: str) -> None:
    """Tag all following records with the sensor steps are counted from."""
    _log_context["sensor"] = sensor


def setup_logging(
    service_name: str,
    settings: Optional[Settings] = None,
) -> structlog.BoundLogger:
    """
    Configure structlog and the standard library loggers

    Args:
        service_name: Name of the service for log identification
        settings: Optional settings object (will create default if not provided)

    Returns:
        Logger bound to the service name
    """
    if settings is None:
        settings = Settings(service_name=service_name)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=_level(settings.log_level),
    )
    for name in DETECTION_LOGGERS:
        logging.getLogger(name).setLevel(_level(settings.detection_log_level))
    for name in KAFKA_LOGGERS:
        logging.getLogger(name).setLevel(_level(settings.kafka_log_level))

    _log_context.clear()
    _log_context.update(
        service=service_name,
        environment=settings.environment,
        device_id=settings.device_id,
    )

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_pedometer_context,
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger(service_name)
