"""Tests for the azure-servicebus adapters."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from azure.servicebus import ServiceBusMessage
from azure.servicebus.exceptions import MessageSizeExceededError

from azure_blast.models import OutgoingMessage
from azure_blast.service_bus_adapters import (
    MessageBatchAdapter,
    ReceiverAdapter,
    ServiceBusSenderAdapter,
    SessionReceiverAdapter,
    to_service_bus_message,
)

from conftest import FakeBatch


def test_to_service_bus_message_copies_fields():
    message = to_service_bus_message(OutgoingMessage(
        body="hello",
        session_id="s-1",
        content_type="text/plain",
        application_properties={"tenant": "fontys"},
    ))

    assert isinstance(message, ServiceBusMessage)
    assert str(message) == "hello"
    assert message.session_id == "s-1"
    assert message.content_type == "text/plain"
    assert message.application_properties == {"tenant": "fontys"}


class TestMessageBatchAdapter:
    def test_try_add_returns_true_when_added(self):
        inner = MagicMock()
        inner.__len__.return_value = 1

        batch = MessageBatchAdapter(inner)

        assert batch.try_add(OutgoingMessage(body="a")) is True
        assert batch.count == 1
        inner.add_message.assert_called_once()

    def test_try_add_returns_false_when_full(self):
        inner = MagicMock()
        inner.add_message.side_effect = MessageSizeExceededError(message="batch full")

        assert MessageBatchAdapter(inner).try_add(OutgoingMessage(body="a")) is False

    def test_other_errors_propagate(self):
        inner = MagicMock()
        inner.add_message.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError):
            MessageBatchAdapter(inner).try_add(OutgoingMessage(body="a"))


class TestServiceBusSenderAdapter:
    def test_create_batch_wraps_sdk_batch(self):
        inner = MagicMock()
        batch = ServiceBusSenderAdapter(inner).create_batch()

        assert isinstance(batch, MessageBatchAdapter)
        assert batch.inner is inner.create_message_batch.return_value

    def test_send_batch_sends_inner_batch(self):
        inner = MagicMock()
        sender = ServiceBusSenderAdapter(inner)
        batch = sender.create_batch()

        sender.send_batch(batch)

        inner.send_messages.assert_called_once_with(inner.create_message_batch.return_value)

    def test_send_batch_rejects_foreign_batch(self):
        with pytest.raises(TypeError):
            ServiceBusSenderAdapter(MagicMock()).send_batch(FakeBatch(1))

    def test_schedule_returns_first_sequence_number(self):
        inner = MagicMock()
        inner.schedule_messages.return_value = [17]
        when = datetime(2030, 1, 1, tzinfo=timezone.utc)

        assert ServiceBusSenderAdapter(inner).schedule_message(OutgoingMessage(body="a"), when) == 17
        assert inner.schedule_messages.call_args.args[1] == when

    def test_context_manager_closes_sender(self):
        inner = MagicMock()
        with ServiceBusSenderAdapter(inner) as sender:
            sender.send_message(OutgoingMessage(body="a"))

        inner.send_messages.assert_called_once()
        inner.close.assert_called_once()


class TestReceiverAdapters:
    def test_receive_converts_timedelta_to_seconds(self):
        inner = MagicMock()
        inner.receive_messages.return_value = ["m"]

        result = ReceiverAdapter(inner).receive_messages(5, timedelta(seconds=3))

        assert result == ["m"]
        inner.receive_messages.assert_called_once_with(max_message_count=5, max_wait_time=3.0)

    def test_complete_delegates(self):
        inner = MagicMock()
        ReceiverAdapter(inner).complete_message("m")
        inner.complete_message.assert_called_once_with("m")

    def test_session_receiver_keeps_session_id(self):
        receiver = SessionReceiverAdapter(MagicMock(), "s-1")
        assert receiver.session_id == "s-1"
