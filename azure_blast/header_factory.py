"""
Builders for message header maps.
Every function returns a read-only snapshot that shares no state with its inputs.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple


def empty() -> Mapping[str, Any]:
    """Returns an empty read-only header map."""
    return MappingProxyType({})


def create(*headers: Tuple[str, Any]) -> Mapping[str, Any]:
    """
    Builds a header map from (key, value) pairs.
    Pairs with a None, empty or whitespace-only key are dropped; the last value for a key wins.

    Example:
        create(("tenant", "fontys"), ("", "ignore"), ("key", "v1"), ("key", "v2"))
        -> {"tenant": "fontys", "key": "v2"}
    """
    result = {}
    for key, value in headers:
        if key is None or not str(key).strip():
            continue
        result[key] = value
    return MappingProxyType(result)


def from_mapping(source: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Copies an existing mapping (None gives an empty map)."""
    if source is None:
        return empty()
    return MappingProxyType(dict(source))


def merge(base_headers: Optional[Mapping[str, Any]],
          overrides: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """
    Merges two header maps; entries in overrides replace base entries with the same key.
    None is treated as an empty map.
    """
    result = dict(base_headers or {})
    result.update(overrides or {})
    return MappingProxyType(result)
