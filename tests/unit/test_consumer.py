"""Unit tests for the Kafka consumer."""

import json
from unittest.mock import MagicMock, patch

import pytest

from pedometer.consumer import StepCounterConsumer
from pedometer.models import SensorCapabilities
from pedometer.service import StepService
from pedometer.sources import StepCounterSource


@pytest.fixture
def service(counter):
    return StepService(StepCounterSource(), counter)


@pytest.fixture
def consumer(service, test_settings):
    return StepCounterConsumer(service, test_settings)


class TestProcessMessage:
    """Test handling of single messages."""

    def test_step_counter_messages_produce_update(self, consumer, sample_step_counter_message):
        assert consumer.process_message(sample_step_counter_message) is None

        message = dict(sample_step_counter_message, timestamp_ns=2_000_000_000, steps=1210)
        update = consumer.process_message(message)

        assert update.todays_steps == 10
        assert consumer.update_count == 1
        assert consumer.message_count == 2

    def test_invalid_message_skipped(self, consumer):
        assert consumer.process_message({"device_id": "test-device-1"}) is None
        assert consumer.update_count == 0

    def test_other_device_skipped(self, consumer, sample_step_counter_message):
        message = dict(sample_step_counter_message, device_id="other-device")
        consumer.process_message(message)

        assert consumer.service.source.last_steps is None


class TestPublishing:
    """Test publishing updates to the output topic."""

    def test_update_sent_to_output_topic(self, consumer, test_settings, sample_step_counter_message):
        consumer.producer = MagicMock()

        consumer.process_message(sample_step_counter_message)
        consumer.process_message(dict(sample_step_counter_message, steps=1203))

        consumer.producer.send.assert_called_once()
        args, kwargs = consumer.producer.send.call_args
        assert args[0] == test_settings.kafka_output_topic
        assert kwargs["key"] == b"test-device-1"
        assert kwargs["value"]["todays_steps"] == 3
        assert kwargs["value"]["source"] == "step_counter"

    def test_no_producer_no_error(self, consumer, sample_step_counter_message):
        consumer.process_message(sample_step_counter_message)
        update = consumer.process_message(dict(sample_step_counter_message, steps=1201))
        assert update.todays_steps == 1


class TestLifecycle:
    """Test start and cleanup."""

    def test_start_polls_until_stopped(self, consumer, sample_step_counter_message):
        record = MagicMock(value=sample_step_counter_message)

        def poll(timeout_ms):
            consumer.cleanup()
            return {"partition": [record]}

        with patch("pedometer.consumer.KafkaConsumer") as kafka_consumer, patch(
            "pedometer.consumer.KafkaProducer"
        ) as producer:
            kafka_consumer.return_value.poll.side_effect = poll
            consumer.start()

        assert consumer.message_count == 1
        assert consumer.service.source.last_steps == 1200
        assert consumer.running is False
        kafka_consumer.return_value.close.assert_called_once()
        producer.return_value.flush.assert_called_once()
        producer.return_value.close.assert_called_once()

    def test_start_failure_raises(self, consumer):
        with patch("pedometer.consumer.KafkaConsumer", side_effect=RuntimeError("no brokers")):
            with pytest.raises(RuntimeError, match="no brokers"):
                consumer.start()

        assert consumer.running is False

    def test_cleanup_only_requests_stop(self, consumer):
        kafka_consumer = MagicMock()
        producer = MagicMock()
        consumer.consumer = kafka_consumer
        consumer.producer = producer

        consumer.cleanup()

        kafka_consumer.close.assert_not_called()
        producer.close.assert_not_called()

    def test_batch_in_flight_at_cleanup_is_persisted(self, test_settings, sample_step_counter_message):
        service = StepService.from_settings(test_settings, SensorCapabilities(has_step_counter=True))
        consumer = StepCounterConsumer(service, test_settings)

        def reading(timestamp_ns, steps):
            message = dict(sample_step_counter_message, timestamp_ns=timestamp_ns, steps=steps)
            return MagicMock(value=message)

        batches = [
            {"partition": [reading(1_000_000_000, 100), reading(2_000_000_000, 110)]},
            {"partition": [reading(3_000_000_000, 125)]},
        ]

        def poll(timeout_ms):
            batch = batches.pop(0)
            if not batches:
                # Shutdown arrives while the last batch is still being handled
                consumer.cleanup()
            return batch

        with patch("pedometer.consumer.KafkaConsumer") as kafka_consumer, patch(
            "pedometer.consumer.KafkaProducer"
        ):
            kafka_consumer.return_value.poll.side_effect = poll
            consumer.start()

        assert service.todays_steps == 25
        with open(test_settings.state_path, encoding="utf-8") as f:
            assert json.load(f)["STEPS"] == 25
