"""
Azure Service Bus helper for sending and receiving queue messages.
Handles message properties (headers), size-bounded batch sending and scheduling.
"""

import logging
import weakref
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from azure.servicebus import ServiceBusClient, TransportType

from . import header_factory
from .exceptions import MessageTooLargeError, NotConfiguredError
from .interfaces import MessageBatch, MessageSender, Receiver, SessionReceiver
from .models import DEFAULT_CONTENT_TYPE, OutgoingMessage
from .service_bus_adapters import ReceiverAdapter, ServiceBusSenderAdapter, SessionReceiverAdapter

SenderFactory = Callable[[ServiceBusClient, str], MessageSender]
ReceiverFactory = Callable[[ServiceBusClient, str], Receiver]
SessionReceiverFactory = Callable[[ServiceBusClient, str, str], SessionReceiver]


def _default_sender_factory(client: ServiceBusClient, queue_name: str) -> MessageSender:
    return ServiceBusSenderAdapter(client.get_queue_sender(queue_name=queue_name))


def _default_receiver_factory(client: ServiceBusClient, queue_name: str) -> Receiver:
    return ReceiverAdapter(client.get_queue_receiver(queue_name=queue_name))


def _default_session_receiver_factory(client: ServiceBusClient, queue_name: str,
                                      session_id: str) -> SessionReceiver:
    inner = client.get_queue_receiver(queue_name=queue_name, session_id=session_id)
    return SessionReceiverAdapter(inner, session_id)


class AzureServiceBus:
    """
    Sends and receives messages on one Service Bus queue.

    The instance starts unconfigured; setup() binds a connection string and a queue.
    Every data-moving operation fails with NotConfiguredError before touching the
    transport when setup() has not been called.

    Properties added with add_or_update_property() are stamped onto every message
    sent through this instance. Sends also accept an explicit properties mapping
    that overrides the stored ones for that call only.
    """

    def __init__(self, client: Optional[ServiceBusClient] = None,
                 sender_factory: Optional[SenderFactory] = None,
                 receiver_factory: Optional[ReceiverFactory] = None,
                 session_receiver_factory: Optional[SessionReceiverFactory] = None):
        """
        Initialize the Service Bus helper.

        Args:
            client: Optional pre-built client; it is never closed by this instance
            sender_factory: Builds a MessageSender from a client and queue name
            receiver_factory: Builds a Receiver from a client and queue name
            session_receiver_factory: Builds a SessionReceiver from a client, queue name and session id
        """
        self.logger = logging.getLogger(__name__)

        self._client = client
        self._owns_client = False
        self._sender_factory = sender_factory or _default_sender_factory
        self._receiver_factory = receiver_factory or _default_receiver_factory
        self._session_receiver_factory = session_receiver_factory or _default_session_receiver_factory

        self._properties: Dict[str, Any] = {}
        # Plain receivers per queue; at most one open session receiver per queue
        self._receivers: Dict[str, Receiver] = {}
        self._session_receivers: Dict[str, SessionReceiver] = {}
        self._delivered_by: "weakref.WeakKeyDictionary[Any, Receiver]" = weakref.WeakKeyDictionary()

        self.connection_string: Optional[str] = None
        self.queue_name: Optional[str] = None
        self.content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def is_configured(self) -> bool:
        return bool(self.connection_string) and bool(self.queue_name)

    def setup(self, connection_string: str, queue_name: str,
              content_type: str = DEFAULT_CONTENT_TYPE) -> None:
        """
        Binds the connection string and queue used by all operations.

        Args:
            connection_string: Service Bus namespace connection string
            queue_name: Queue to send to and receive from
            content_type: Content type stamped on outgoing messages

        Raises:
            ValueError: If connection_string or queue_name is empty
        """
        if not connection_string or not connection_string.strip():
            raise ValueError("Service Bus connection string cannot be None or empty")
        if not queue_name or not queue_name.strip():
            raise ValueError("Queue name cannot be None or empty")

        if self.connection_string is not None and connection_string != self.connection_string:
            self.logger.info("Connection string changed; closing receivers bound to the previous namespace")
            self._close_receivers()
            self._close_client()

        self.connection_string = connection_string
        self.queue_name = queue_name
        self.content_type = content_type or DEFAULT_CONTENT_TYPE

        self.logger.info(f"Service Bus configured for queue '{self.queue_name}' ({self.content_type})")

    def switch_queue(self, queue_name: str) -> None:
        """
        Points the instance at another queue on the same namespace.

        Raises:
            NotConfiguredError: If setup() has not been called
            ValueError: If queue_name is empty
        """
        if not self.connection_string:
            raise NotConfiguredError("Connection string must be set via setup() before switching queues")
        if not queue_name or not queue_name.strip():
            raise ValueError("Queue name cannot be None or empty")

        self.logger.info(f"Switching queue from '{self.queue_name}' to '{queue_name}'")
        self.queue_name = queue_name

    # Property bag

    @property
    def properties(self) -> Mapping[str, Any]:
        """Read-only snapshot of the stored message properties."""
        return header_factory.from_mapping(self._properties)

    def add_or_update_property(self, key: str, value: Any) -> None:
        self._properties[key] = value

    def remove_property(self, key: str) -> bool:
        return self._properties.pop(key, _MISSING) is not _MISSING

    def clear_properties(self) -> None:
        self._properties.clear()

    # Sending

    def send_message(self, message_body: str, session_id: Optional[str] = None,
                     properties: Optional[Mapping[str, Any]] = None) -> None:
        """
        Sends a single message.

        Args:
            message_body: Message body
            session_id: Optional session identifier
            properties: Extra properties for this message, overriding stored ones
        """
        self._ensure_configured()
        message = self._build_message(_encode(message_body), session_id, self._snapshot_properties(properties))

        with self._create_sender() as sender:
            sender.send_message(message)

        self.logger.debug(f"Sent 1 message to queue '{self.queue_name}'")

    def send_batch_messages(self, messages: Sequence[str], session_id: Optional[str] = None,
                            properties: Optional[Mapping[str, Any]] = None) -> int:
        """
        Sends messages in as few size-bounded batches as possible, keeping input order.

        Args:
            messages: Ordered message bodies
            session_id: Optional session identifier applied to every message
            properties: Extra properties for these messages, overriding stored ones

        Returns:
            Number of batches sent

        Raises:
            MessageTooLargeError: If a message does not fit into an empty batch
            ValueError: If messages is None or a single str/bytes body
        """
        self._ensure_configured()
        if messages is None:
            raise ValueError("messages cannot be None")
        if isinstance(messages, (str, bytes)):
            raise ValueError("messages must be a sequence of message bodies, not a single body")

        bodies = list(messages)
        if not bodies:
            self.logger.debug("No messages to send")
            return 0

        stamped = self._snapshot_properties(properties)
        self.logger.info(f"Starting batch send of {len(bodies)} messages to queue '{self.queue_name}'")

        with self._create_sender() as sender:
            batch_count = self._send_messages_in_batches(sender, bodies, session_id, stamped)

        self.logger.info(f"Sent {len(bodies)} messages in {batch_count} batch(es) to '{self.queue_name}'")
        return batch_count

    def send_scheduled_message(self, message_body: str, schedule_time_utc: datetime,
                               session_id: Optional[str] = None,
                               properties: Optional[Mapping[str, Any]] = None) -> int:
        """
        Schedules a message for later delivery.

        Returns:
            Sequence number assigned by the broker
        """
        self._ensure_configured()
        message = self._build_message(_encode(message_body), session_id, self._snapshot_properties(properties))
        message.scheduled_enqueue_time_utc = schedule_time_utc

        with self._create_sender() as sender:
            sequence_number = sender.schedule_message(message, schedule_time_utc)

        self.logger.debug(f"Scheduled message {sequence_number} on '{self.queue_name}' for {schedule_time_utc}")
        return sequence_number

    # Receiving

    def receive_messages(self, max_messages: int = 10, session_id: Optional[str] = None,
                         max_wait_time: Optional[Union[float, timedelta]] = None) -> List[Any]:
        """
        Receives up to max_messages messages; uses a session receiver when session_id is given.

        Only one session receiver is kept open per queue: asking for another session
        closes the previous one and releases its session lock.

        Returns:
            Received messages (empty list when none are available)
        """
        self._ensure_configured()
        receiver = self._get_receiver(session_id)
        messages = receiver.receive_messages(max_messages, max_wait_time)

        received = list(messages or [])
        for message in received:
            self._delivered_by[message] = receiver
        self.logger.debug(f"Received {len(received)} messages from '{self.queue_name}'")
        return received

    def complete_message(self, message: Any) -> None:
        """
        Completes a received message through the receiver that delivered it.

        Raises:
            ValueError: If the message was not received through this instance,
                or its receiver has been closed since
        """
        self._ensure_configured()
        receiver = self._delivered_by.pop(message, None)
        if receiver is None:
            raise ValueError("Message was not received through an open receiver of this instance")
        receiver.complete_message(message)

    def close(self) -> None:
        """Closes cached receivers and the client created by this instance."""
        self._close_receivers()
        self._close_client()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def _send_messages_in_batches(self, sender: MessageSender, bodies: List[str],
                                  session_id: Optional[str], properties: Mapping[str, Any]) -> int:
        """
        Fills a fresh batch until it rejects a message, sends it, and continues
        from the first message that did not fit.

        Returns:
            Number of batches sent
        """
        index = 0
        batch_number = 0

        while index < len(bodies):
            batch_number += 1

            with sender.create_batch() as batch:
                first_index = index
                while index < len(bodies):
                    message = self._build_message(_encode(bodies[index]), session_id, properties)
                    if not batch.try_add(message):
                        break
                    index += 1

                if index == first_index:
                    raise MessageTooLargeError(index, getattr(batch, "max_size_in_bytes", None))

                try:
                    self._send_single_batch(sender, batch, batch_number)
                except Exception as batch_error:
                    self._handle_batch_error(batch_error, batch_number)
                    raise

        return batch_number

    def _send_single_batch(self, sender: MessageSender, batch: MessageBatch, batch_number: int) -> None:
        sender.send_batch(batch)
        self.logger.debug(f"Batch {batch_number}: Sent {batch.count} messages to '{self.queue_name}'")

    def _handle_batch_error(self, batch_error: Exception, batch_number: int) -> None:
        self.logger.error(f"Error sending batch {batch_number}: {str(batch_error)}")
        self.logger.error(f"Batch error type: {type(batch_error)}")

    def _build_message(self, body: Union[str, bytes], session_id: Optional[str],
                       properties: Mapping[str, Any]) -> OutgoingMessage:
        return OutgoingMessage(
            body=body,
            session_id=session_id or None,
            content_type=self.content_type,
            application_properties=dict(properties)
        )

    def _snapshot_properties(self, overrides: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
        return header_factory.merge(self._properties, overrides)

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise NotConfiguredError(
                "AzureServiceBus is not configured. Call setup() before performing any operations."
            )

    def _get_client(self) -> ServiceBusClient:
        if self._client is None:
            self._client = ServiceBusClient.from_connection_string(
                self.connection_string,
                transport_type=TransportType.AmqpOverWebsocket
            )
            self._owns_client = True
        return self._client

    def _close_client(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
            self._owns_client = False

    def _create_sender(self) -> MessageSender:
        return self._sender_factory(self._get_client(), self.queue_name)

    def _get_receiver(self, session_id: Optional[str]) -> Receiver:
        if not session_id:
            receiver = self._receivers.get(self.queue_name)
            if receiver is None:
                receiver = self._receiver_factory(self._get_client(), self.queue_name)
                self._receivers[self.queue_name] = receiver
            return receiver

        session_receiver = self._session_receivers.get(self.queue_name)
        if session_receiver is not None and session_receiver.session_id == session_id:
            return session_receiver

        if session_receiver is not None:
            self.logger.debug(f"Releasing session '{session_receiver.session_id}' on '{self.queue_name}'")
            self._forget_receiver(session_receiver)

        session_receiver = self._session_receiver_factory(self._get_client(), self.queue_name, session_id)
        self._session_receivers[self.queue_name] = session_receiver
        return session_receiver

    def _forget_receiver(self, receiver: Receiver) -> None:
        """Closes a receiver and drops the messages it delivered from settlement tracking."""
        for message, owner in list(self._delivered_by.items()):
            if owner is receiver:
                del self._delivered_by[message]
        receiver.close()

    def _close_receivers(self) -> None:
        for cache in (self._receivers, self._session_receivers):
            for receiver in cache.values():
                receiver.close()
            cache.clear()
        self._delivered_by.clear()


_MISSING = object()


def _encode(body: Union[str, bytes]) -> bytes:
    if isinstance(body, bytes):
        return body
    return body.encode("utf-8")
