"""
Helpers for building JSON-ready payload dictionaries (plain values, events, commands).
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple


def single(key: str, value: Any) -> Dict[str, Any]:
    """Payload with exactly one entry; raises ValueError for a blank key."""
    if key is None or not key.strip():
        raise ValueError("Key must be non-empty")
    return {key: value}


def many(*values: Tuple[str, Any]) -> Dict[str, Any]:
    """Payload from (key, value) pairs, skipping blank keys; the last value for a key wins."""
    payload = {}
    for key, value in values:
        if key is not None and key.strip():
            payload[key] = value
    return payload


def event(event_id: str, timestamp_utc: Optional[datetime] = None,
          data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Event envelope with an id and an ISO-8601 timestamp.

    Args:
        event_id: Event identifier
        timestamp_utc: Event time (defaults to now, UTC)
        data: Extra fields merged into the envelope; they may override id/timestamp

    Returns:
        Dict with "id", "timestamp" and the data entries
    """
    timestamp = timestamp_utc or datetime.now(timezone.utc)
    payload = {
        "id": event_id,
        "timestamp": timestamp.isoformat()
    }
    if data:
        payload.update(data)
    return payload


def command(command_type: str, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Command envelope: {"commandType": command_type, **data}."""
    payload = {"commandType": command_type}
    if data:
        payload.update(data)
    return payload
