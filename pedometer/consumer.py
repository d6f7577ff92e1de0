"""Kafka consumer feeding sensor readings to the step service."""

import json
import signal
import sys
import threading
from typing import Optional

import structlog
from kafka import KafkaConsumer, KafkaProducer
from pydantic import ValidationError

from .config import Settings, settings
from .exceptions import PedometerError
from .logging import bind_sensor, setup_logging
from .metrics import processing_duration, processing_errors
from .models import SensorMessage, StepCountUpdate
from .service import StepService

logger = structlog.get_logger(__name__)


class StepCounterConsumer:
    """Consumes pedometer sensor messages and publishes step count updates."""

    def __init__(self, service: StepService, settings: Settings = settings):
        self.service = service
        self.settings = settings
        self.consumer: Optional[KafkaConsumer] = None
        self.producer: Optional[KafkaProducer] = None
        self.running = False
        self._stop_requested = threading.Event()
        self.message_count = 0
        self.update_count = 0

        self.service.counter.add_observer(self.publish_update)

    def start(self):
        """Start consuming messages."""
        try:
            self.consumer = KafkaConsumer(
                self.settings.kafka_input_topic,
                bootstrap_servers=self.settings.kafka_bootstrap_servers,
                group_id=self.settings.kafka_consumer_group_id,
                value_deserializer=lambda m: json.loads(m.decode("utf-8")),
                auto_offset_reset=self.settings.kafka_auto_offset_reset,
                enable_auto_commit=True,
                max_poll_records=self.settings.kafka_max_poll_records,
            )

            self.producer = KafkaProducer(
                bootstrap_servers=self.settings.kafka_bootstrap_servers,
                value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
                compression_type="lz4",
            )

            logger.info(
                "Started step counter consumer",
                input_topic=self.settings.kafka_input_topic,
                output_topic=self.settings.kafka_output_topic,
                sensor=self.service.source.kind.value,
            )

            self.running = True
            self._consume_messages()

        except Exception as e:
            logger.error("Failed to start consumer", error=str(e))
            raise
        finally:
            self.running = False
            self._close()

    def _consume_messages(self):
        """Main message consumption loop."""
        while not self._stop_requested.is_set():
            try:
                message_batch = self.consumer.poll(timeout_ms=1000)

                for topic_partition, messages in message_batch.items():
                    for message in messages:
                        with processing_duration.time():
                            self.process_message(message.value)

            except KeyboardInterrupt:
                logger.info("Received interrupt signal")
                break
            except Exception as e:
                logger.error("Error in consumption loop", error=str(e))
                processing_errors.inc()

    def process_message(self, message_data: dict) -> Optional[StepCountUpdate]:
        """Process a single sensor message."""
        self.message_count += 1
        try:
            message = SensorMessage(**message_data)
        except (TypeError, ValidationError) as e:
            logger.error(
                "Failed to parse message",
                error=str(e),
                message=str(message_data)[:200],
            )
            processing_errors.inc()
            return None

        if message.device_id != self.settings.device_id:
            return None

        update = self.service.handle_message(message)
        if update:
            self.update_count += 1

        # Log progress every 1000 messages
        if self.message_count % 1000 == 0:
            logger.info(
                "Consumer progress",
                messages=self.message_count,
                updates=self.update_count,
                todays_steps=self.service.todays_steps,
            )
        return update

    def publish_update(self, update: StepCountUpdate) -> None:
        """Send a step count update to the output topic."""
        logger.debug(
            "Step count updated",
            todays_steps=update.todays_steps,
            notification=update.notification_text,
        )
        if self.producer is None:
            return

        self.producer.send(
            self.settings.kafka_output_topic,
            key=(update.device_id or self.settings.device_id).encode("utf-8"),
            value=update.model_dump(mode="json"),
        )

    def cleanup(self):
        """Ask the poll loop to stop.

        The batch being processed is finished first; clients and stores are
        closed by :meth:`start` once the loop has exited.
        """
        self._stop_requested.set()

    def _close(self):
        """Close Kafka clients, then flush and close the step service."""
        if self.consumer:
            try:
                self.consumer.close()
                logger.info("Closed Kafka consumer")
            except Exception as e:
                logger.error("Error closing consumer", error=str(e))

        if self.producer:
            try:
                self.producer.flush()
                self.producer.close()
                logger.info("Closed Kafka producer")
            except Exception as e:
                logger.error("Error closing producer", error=str(e))

        self.service.close()


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    logger.info("Received signal", signum=signum)
    sys.exit(0)


def main():
    """Main entry point."""
    setup_logging(settings.service_name, settings)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        service = StepService.from_settings(settings)
    except PedometerError as e:
        logger.error("No detector available", error=str(e))
        sys.exit(1)

    bind_sensor(service.source.kind.value)
    consumer = StepCounterConsumer(service)

    try:
        consumer.start()
    except Exception as e:
        logger.error("Fatal error", error=str(e))
        sys.exit(1)
    finally:
        consumer.cleanup()


if __name__ == "__main__":
    main()
