"""
Adapters binding the capability contracts to azure-servicebus clients.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Union

from azure.servicebus import (
    ServiceBusMessage,
    ServiceBusMessageBatch,
    ServiceBusReceivedMessage,
    ServiceBusReceiver,
    ServiceBusSender,
)
from azure.servicebus.exceptions import MessageSizeExceededError

from .interfaces import MessageBatch, MessageSender, Receiver, SessionReceiver
from .models import OutgoingMessage


def to_service_bus_message(message: OutgoingMessage) -> ServiceBusMessage:
    """Builds the SDK message for an OutgoingMessage."""
    return ServiceBusMessage(
        message.body,
        content_type=message.content_type,
        session_id=message.session_id or None,
        application_properties=dict(message.application_properties) or None,
        scheduled_enqueue_time_utc=message.scheduled_enqueue_time_utc,
    )


def _wait_seconds(max_wait_time: Optional[Union[float, timedelta]]) -> Optional[float]:
    if isinstance(max_wait_time, timedelta):
        return max_wait_time.total_seconds()
    return max_wait_time


class MessageBatchAdapter(MessageBatch):
    """Wraps a ServiceBusMessageBatch."""

    def __init__(self, inner: ServiceBusMessageBatch):
        self.inner = inner

    @property
    def count(self) -> int:
        return len(self.inner)

    @property
    def max_size_in_bytes(self) -> int:
        return self.inner.max_size_in_bytes

    def try_add(self, message: OutgoingMessage) -> bool:
        try:
            self.inner.add_message(to_service_bus_message(message))
        except MessageSizeExceededError:
            return False
        return True


class ServiceBusSenderAdapter(MessageSender):
    """Wraps a ServiceBusSender bound to one queue."""

    def __init__(self, inner: ServiceBusSender):
        self.inner = inner

    def create_batch(self) -> MessageBatch:
        return MessageBatchAdapter(self.inner.create_message_batch())

    def send_message(self, message: OutgoingMessage) -> None:
        self.inner.send_messages(to_service_bus_message(message))

    def send_batch(self, batch: MessageBatch) -> None:
        if not isinstance(batch, MessageBatchAdapter):
            raise TypeError(f"Unknown batch implementation: {type(batch).__name__}")
        self.inner.send_messages(batch.inner)

    def schedule_message(self, message: OutgoingMessage, enqueue_time: datetime) -> int:
        sequence_numbers = self.inner.schedule_messages(to_service_bus_message(message), enqueue_time)
        return sequence_numbers[0]

    def close(self) -> None:
        self.inner.close()


class ReceiverAdapter(Receiver):
    """Wraps a ServiceBusReceiver."""

    def __init__(self, inner: ServiceBusReceiver):
        self.inner = inner

    def receive_messages(self, max_messages: int,
                         max_wait_time: Optional[Union[float, timedelta]] = None) -> List[ServiceBusReceivedMessage]:
        return self.inner.receive_messages(
            max_message_count=max_messages,
            max_wait_time=_wait_seconds(max_wait_time)
        )

    def complete_message(self, message: ServiceBusReceivedMessage) -> None:
        self.inner.complete_message(message)

    def close(self) -> None:
        self.inner.close()


class SessionReceiverAdapter(ReceiverAdapter, SessionReceiver):
    """Wraps a ServiceBusReceiver opened on a session."""

    def __init__(self, inner: ServiceBusReceiver, session_id: str):
        super().__init__(inner)
        self.session_id = session_id
