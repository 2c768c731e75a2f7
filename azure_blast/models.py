"""
Plain data carriers shared by the AzureBlast wrappers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Union


DEFAULT_CONTENT_TYPE = "application/json"


@dataclass
class OutgoingMessage:
    """A message built right before it is handed to a sender capability."""

    body: Union[str, bytes]
    session_id: Optional[str] = None
    content_type: str = DEFAULT_CONTENT_TYPE
    application_properties: Dict[str, Any] = field(default_factory=dict)
    scheduled_enqueue_time_utc: Optional[datetime] = None

    @property
    def text(self) -> str:
        """Body decoded as UTF-8 text."""
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


@dataclass
class Entity:
    """Table metadata: name plus column name to SQL type."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass
class Relationship:
    """Foreign key between two tables."""

    name: str
    from_entity: str
    from_attribute: str
    to_entity: str
    to_attribute: str
