"""Tests for the JSON send helpers."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from azure_blast import bus_send

from conftest import RecordingTransport

CONNECTION_STRING = "Endpoint=sb://contoso.servicebus.windows.net/;SharedAccessKeyName=k;SharedAccessKey=v"


@dataclass
class OrderCreated:
    order_id: int
    customer_name: str
    created_at: datetime
    note: Optional[str] = None


def _bus(capacity=100):
    transport = RecordingTransport(capacity=capacity)
    service_bus = transport.build_bus()
    service_bus.setup(CONNECTION_STRING, "orders")
    return transport, service_bus


class TestSerialize:
    def test_dataclass_fields_are_camel_cased_and_none_dropped(self):
        payload = OrderCreated(7, "Ada", datetime(2024, 1, 2, tzinfo=timezone.utc))

        assert json.loads(bus_send.serialize(payload)) == {
            "orderId": 7,
            "customerName": "Ada",
            "createdAt": "2024-01-02T00:00:00+00:00",
        }

    def test_dict_keys_are_kept(self):
        assert json.loads(bus_send.serialize({"order_id": 1, "nested": {"a_b": None}})) == {
            "order_id": 1,
            "nested": {"a_b": None},
        }

    def test_none_payload(self):
        assert bus_send.serialize(None) == "null"


class TestSendJson:
    def test_send_json_passes_headers_per_call(self):
        transport, service_bus = _bus()
        service_bus.add_or_update_property("tenant", "fontys")

        bus_send.send_json(service_bus, {"id": 1}, headers={"type": "order"}, session_id="s-1")

        message = transport.sender.sent_messages[0]
        assert json.loads(message.text) == {"id": 1}
        assert message.session_id == "s-1"
        assert message.application_properties == {"tenant": "fontys", "type": "order"}
        assert dict(service_bus.properties) == {"tenant": "fontys"}

    def test_send_json_with_header_pairs(self):
        transport, service_bus = _bus()

        bus_send.send_json_with_headers(service_bus, {"id": 1}, ("type", "order"), ("", "dropped"), ("type", "refund"))

        assert transport.sender.sent_messages[0].application_properties == {"type": "refund"}

    def test_send_json_with_no_header_pairs(self):
        transport, service_bus = _bus()

        bus_send.send_json_with_headers(service_bus, {"id": 1})

        assert transport.sender.sent_messages[0].application_properties == {}


class TestSendJsonMany:
    def test_empty_payloads_send_nothing(self):
        transport, service_bus = _bus()

        assert bus_send.send_json_many(service_bus, []) == 0
        assert transport.calls == []

    def test_payloads_go_through_batch_sender(self):
        transport, service_bus = _bus(capacity=2)

        batches = bus_send.send_json_many(service_bus, [{"n": 1}, {"n": 2}, {"n": 3}], headers={"kind": "n"})

        assert batches == 2
        sent = [json.loads(body) for batch in transport.sender.sent_batches for body in batch]
        assert sent == [{"n": 1}, {"n": 2}, {"n": 3}]
        messages = [m for batch in transport.sender.created_batches for m in batch.messages]
        assert all(m.application_properties == {"kind": "n"} for m in messages)
        assert dict(service_bus.properties) == {}

    def test_send_json_each_uses_per_payload_headers(self):
        transport, service_bus = _bus()

        sent = bus_send.send_json_each(
            service_bus,
            [{"n": 1}, {"n": 2}],
            lambda payload: {"index": payload["n"]} if payload["n"] == 2 else None,
        )

        assert sent == 2
        messages = transport.senders[0].sent_messages + transport.senders[1].sent_messages
        assert [m.application_properties for m in messages] == [{}, {"index": 2}]
