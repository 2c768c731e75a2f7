"""
JSON helpers for sending payloads through AzureServiceBus.
Headers travel with each call as explicit properties; the bus property bag is left untouched.
"""

import dataclasses
import json
import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from . import header_factory
from .azure_service_bus import AzureServiceBus

logger = logging.getLogger(__name__)

HeaderFactoryFn = Callable[[Any], Optional[Mapping[str, Any]]]


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def _prepare(value: Any, camel_case: bool, drop_none: bool) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        prepared = {}
        for item in dataclasses.fields(value):
            field_value = getattr(value, item.name)
            if field_value is None and drop_none:
                continue
            key = _to_camel(item.name) if camel_case else item.name
            prepared[key] = _prepare(field_value, camel_case, drop_none)
        return prepared
    if isinstance(value, Mapping):
        return {key: _prepare(item, camel_case, drop_none) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_prepare(item, camel_case, drop_none) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def serialize(payload: Any, camel_case: bool = True, drop_none: bool = True) -> str:
    """
    Serializes a payload to JSON text.
    Dataclass field names are camelCased and None fields dropped; dict keys are kept as given.
    """
    return json.dumps(_prepare(payload, camel_case, drop_none), default=str)


def send_json(bus: AzureServiceBus, payload: Any, headers: Optional[Mapping[str, Any]] = None,
              session_id: Optional[str] = None) -> None:
    """Serializes a payload and sends it as one message."""
    bus.send_message(serialize(payload), session_id=session_id, properties=headers)


def send_json_with_headers(bus: AzureServiceBus, payload: Any, *headers: Tuple[str, Any],
                           session_id: Optional[str] = None) -> None:
    """Like send_json, with headers given as (key, value) pairs."""
    send_json(bus, payload, header_factory.create(*headers) if headers else None, session_id)


def send_json_many(bus: AzureServiceBus, payloads: Iterable[Any],
                   headers: Optional[Mapping[str, Any]] = None,
                   session_id: Optional[str] = None) -> int:
    """
    Serializes payloads and sends them through the batch sender.

    Returns:
        Number of batches sent (0 for no payloads)
    """
    bodies = [serialize(payload) for payload in payloads]
    if not bodies:
        return 0
    return bus.send_batch_messages(bodies, session_id=session_id, properties=headers or None)


def send_json_each(bus: AzureServiceBus, payloads: Iterable[Any], header_factory_fn: HeaderFactoryFn,
                   session_id: Optional[str] = None) -> int:
    """
    Sends each payload as its own message with headers computed per payload.

    Returns:
        Number of messages sent
    """
    sent = 0
    for payload in payloads:
        headers = header_factory_fn(payload) if header_factory_fn else None
        send_json(bus, payload, header_factory.from_mapping(headers) if headers else None, session_id)
        sent += 1
    logger.debug(f"Sent {sent} JSON messages individually")
    return sent
