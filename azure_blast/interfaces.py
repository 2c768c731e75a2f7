"""
Capability contracts used by AzureServiceBus.
Each has one production adapter in service_bus_adapters; tests provide their own.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, List, Optional, Union

from .models import OutgoingMessage


class MessageBatch(ABC):
    """Size-bounded, ordered container of messages filled before one send."""

    @property
    @abstractmethod
    def count(self) -> int:
        """Number of messages added so far."""

    @abstractmethod
    def try_add(self, message: OutgoingMessage) -> bool:
        """
        Adds a message if it fits.

        Returns:
            False when the batch is full; existing contents are left untouched
        """

    def release(self) -> None:
        """Frees resources held by the batch."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()


class MessageSender(ABC):
    """Sends single, batched and scheduled messages to one queue."""

    @abstractmethod
    def create_batch(self) -> MessageBatch:
        pass

    @abstractmethod
    def send_message(self, message: OutgoingMessage) -> None:
        pass

    @abstractmethod
    def send_batch(self, batch: MessageBatch) -> None:
        pass

    @abstractmethod
    def schedule_message(self, message: OutgoingMessage, enqueue_time: datetime) -> int:
        """Schedules a message and returns its sequence number."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class Receiver(ABC):
    """Receives and settles messages from one queue."""

    @abstractmethod
    def receive_messages(self, max_messages: int,
                         max_wait_time: Optional[Union[float, timedelta]] = None) -> Optional[List[Any]]:
        pass

    @abstractmethod
    def complete_message(self, message: Any) -> None:
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class SessionReceiver(Receiver):
    """Receiver locked to a single session."""

    session_id: Optional[str] = None
