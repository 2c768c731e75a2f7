"""Shared test doubles for the messaging capabilities."""

from datetime import datetime
from typing import List, Optional

import pytest

from azure_blast.azure_service_bus import AzureServiceBus
from azure_blast.interfaces import MessageBatch, MessageSender, Receiver, SessionReceiver
from azure_blast.models import OutgoingMessage


class FakeBatch(MessageBatch):
    """Accepts at most `capacity` messages."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self.messages: List[OutgoingMessage] = []
        self.released = False

    @property
    def count(self) -> int:
        return len(self.messages)

    def try_add(self, message: OutgoingMessage) -> bool:
        if len(self.messages) >= self.capacity:
            return False
        self.messages.append(message)
        return True

    def release(self) -> None:
        self.released = True


class FakeSender(MessageSender):
    def __init__(self, capacity: int = 100, send_error: Optional[Exception] = None):
        self.capacity = capacity
        self.send_error = send_error
        self.created_batches: List[FakeBatch] = []
        self.sent_batches: List[List[str]] = []
        self.sent_messages: List[OutgoingMessage] = []
        self.scheduled: List[tuple] = []
        self.closed = False

    def create_batch(self) -> MessageBatch:
        batch = FakeBatch(self.capacity)
        self.created_batches.append(batch)
        return batch

    def send_message(self, message: OutgoingMessage) -> None:
        self.sent_messages.append(message)

    def send_batch(self, batch: MessageBatch) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent_batches.append([message.text for message in batch.messages])

    def schedule_message(self, message: OutgoingMessage, enqueue_time: datetime) -> int:
        self.scheduled.append((message, enqueue_time))
        return 1000 + len(self.scheduled)

    def close(self) -> None:
        self.closed = True


class FakeReceiver(Receiver):
    def __init__(self, messages: Optional[list] = None):
        self.messages = messages
        self.receive_calls: List[tuple] = []
        self.completed: list = []
        self.closed = False

    def receive_messages(self, max_messages, max_wait_time=None):
        self.receive_calls.append((max_messages, max_wait_time))
        if self.messages is None:
            return None
        return self.messages[:max_messages]

    def complete_message(self, message) -> None:
        self.completed.append(message)

    def close(self) -> None:
        self.closed = True


class FakeSessionReceiver(FakeReceiver, SessionReceiver):
    def __init__(self, session_id: str, messages: Optional[list] = None):
        super().__init__(messages)
        self.session_id = session_id


class RecordingTransport:
    """Hands out fakes and records every factory call."""

    def __init__(self, capacity: int = 100, send_error: Optional[Exception] = None,
                 messages: Optional[list] = None):
        self.capacity = capacity
        self.send_error = send_error
        self.messages = messages
        self.senders: List[FakeSender] = []
        self.receivers: List[FakeReceiver] = []
        self.calls: List[tuple] = []

    def sender_factory(self, client, queue_name):
        self.calls.append(("sender", queue_name))
        sender = FakeSender(self.capacity, self.send_error)
        self.senders.append(sender)
        return sender

    def receiver_factory(self, client, queue_name):
        self.calls.append(("receiver", queue_name))
        receiver = FakeReceiver(self.messages)
        self.receivers.append(receiver)
        return receiver

    def session_receiver_factory(self, client, queue_name, session_id):
        self.calls.append(("session_receiver", queue_name, session_id))
        receiver = FakeSessionReceiver(session_id, self.messages)
        self.receivers.append(receiver)
        return receiver

    @property
    def sender(self) -> FakeSender:
        return self.senders[-1]

    def build_bus(self, client=None) -> AzureServiceBus:
        return AzureServiceBus(
            client=client if client is not None else object(),
            sender_factory=self.sender_factory,
            receiver_factory=self.receiver_factory,
            session_receiver_factory=self.session_receiver_factory,
        )


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def bus(transport: RecordingTransport) -> AzureServiceBus:
    service_bus = transport.build_bus()
    service_bus.setup("Endpoint=sb://contoso.servicebus.windows.net/;SharedAccessKeyName=k;SharedAccessKey=v",
                      "orders")
    return service_bus
