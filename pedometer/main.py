"""Main application with health endpoints."""

import threading
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .config import settings
from .consumer import StepCounterConsumer
from .exceptions import NoSensorAvailableError, PedometerError
from .logging import bind_sensor, setup_logging
from .service import StepService

logger = structlog.get_logger(__name__)

# Consumer owned by the application lifespan
consumer: Optional[StepCounterConsumer] = None
consumer_thread: Optional[threading.Thread] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    global consumer, consumer_thread

    setup_logging(settings.service_name, settings)

    # Startup
    try:
        service = StepService.from_settings(settings)
    except NoSensorAvailableError as e:
        logger.error("No detector available, step counting disabled", error=str(e))
        service = None
    except PedometerError as e:
        logger.error("Could not open step storage, step counting disabled", error=str(e))
        service = None

    if service is not None:
        bind_sensor(service.source.kind.value)
        consumer = StepCounterConsumer(service)
        consumer_thread = threading.Thread(target=consumer.start, daemon=True)
        consumer_thread.start()

    yield

    # Shutdown
    if consumer:
        consumer.cleanup()
    if consumer_thread:
        consumer_thread.join(timeout=settings.shutdown_timeout_seconds)
        if consumer_thread.is_alive():
            logger.warning(
                "Consumer did not stop in time",
                timeout_seconds=settings.shutdown_timeout_seconds,
            )
    consumer = None
    consumer_thread = None


app = FastAPI(
    title="Pedometer",
    description="Counts steps from a step counter or accelerometer data",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/healthz")
async def liveness():
    """Liveness check endpoint."""
    return {"status": "alive"}


@app.get("/readyz")
async def readiness():
    """Readiness check endpoint."""
    if consumer and consumer.running:
        return {"status": "ready", "sensor": consumer.service.source.kind.value}

    return Response(
        content='{"status": "not ready"}',
        status_code=503,
        media_type="application/json",
    )


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/steps")
async def steps():
    """Steps counted for the current day."""
    if consumer is None:
        return Response(
            content='{"detail": "no detector available"}',
            status_code=503,
            media_type="application/json",
        )

    counter = consumer.service.counter
    return {
        "day": counter.current_date.isoformat(),
        "todays_steps": counter.todays_steps,
        "distance_meters": round(counter.todays_steps * counter.stride_length_meters, 2),
        "sensor": consumer.service.source.kind.value,
    }


@app.get("/history")
def history():
    """Step totals of previous days."""
    if consumer is None:
        return Response(
            content='{"detail": "no detector available"}',
            status_code=503,
            media_type="application/json",
        )

    records = consumer.service.counter.history()
    return {"records": [record.model_dump(mode="json") for record in records]}


if __name__ == "__main__":
    uvicorn.run(
        "pedometer.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
