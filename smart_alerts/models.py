"""Data models for shop alerts."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


class AlertKind(str, Enum):
    """Category of the business event behind an alert."""

    URGENT = "urgent"
    DEADLINE = "deadline"
    REMINDER = "reminder"
    INFO = "info"


class Priority(str, Enum):
    """Alert priority, ordered by severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}


@dataclass
class Alert:
    """A notable shop event shown in the alert feed."""

    id: str
    kind: AlertKind
    title: str
    message: str
    priority: Union[Priority, str]  # raw string when the source sends an unknown value
    created_at: datetime
    action_url: Optional[str] = None
    dismissed: bool = False

    def __post_init__(self):
        """Normalize empty action links and naive timestamps."""
        if not self.action_url:
            self.action_url = None
        if self.created_at.tzinfo is None:
            self.created_at = self.created_at.replace(tzinfo=timezone.utc)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Alert":
        """
        Build an Alert from a source record.

        Accepts both the backend's camelCase keys and snake_case keys.

        Raises:
            ValueError: if the record has no id or no title
        """
        if not isinstance(data, dict):
            raise ValueError(f"Alert record must be a mapping, got {type(data).__name__}")

        alert_id = data.get("id", data.get("_id"))
        if alert_id is None or str(alert_id).strip() == "":
            raise ValueError("Alert record has no id")

        title = data.get("title")
        if not title:
            raise ValueError(f"Alert {alert_id} has no title")

        created = data.get("createdAt") or data.get("created_at") or data.get("timestamp")

        return cls(
            id=str(alert_id),
            kind=parse_kind(data.get("kind", data.get("type"))),
            title=str(title).strip(),
            message=str(data.get("message") or "").strip(),
            priority=parse_priority(data.get("priority")),
            created_at=parse_timestamp(created),
            action_url=parse_action_url(data.get("actionUrl") or data.get("action_url")),
            dismissed=parse_flag(data.get("dismissed", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the backend's field names."""
        priority = self.priority.value if isinstance(self.priority, Priority) else self.priority
        return {
            "id": self.id,
            "type": self.kind.value,
            "title": self.title,
            "message": self.message,
            "priority": priority,
            "createdAt": self.created_at.isoformat(),
            "actionUrl": self.action_url,
            "dismissed": self.dismissed,
        }


def parse_kind(value: Any) -> AlertKind:
    """Map a wire value to an AlertKind, defaulting to INFO."""
    if isinstance(value, AlertKind):
        return value
    try:
        return AlertKind(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown alert kind {value!r}, treating as info")
        return AlertKind.INFO


def parse_priority(value: Any) -> Union[Priority, str]:
    """Map a wire value to a Priority, keeping unknown values as raw strings."""
    if isinstance(value, Priority):
        return value
    raw = str(value or "").strip().lower()
    try:
        return Priority(raw)
    except ValueError:
        logger.debug(f"Unknown alert priority {value!r}")
        return raw


def parse_action_url(value: Any) -> Optional[str]:
    """Action links must be strings; anything else makes the record malformed."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"actionUrl must be a string, got {type(value).__name__}")
    return value.strip() or None


def parse_flag(value: Any) -> bool:
    """Parse a boolean that loosely typed payloads may send as a string."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes", "1"):
            return True
        if text in ("false", "no", "0", ""):
            return False
    raise ValueError(f"Invalid boolean {value!r}")


def parse_timestamp(value: Any) -> datetime:
    """Parse a timestamp into an aware UTC datetime."""
    if value is None or value == "":
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # epoch milliseconds, as JavaScript clients send them
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Invalid timestamp {value!r}: {e}") from e
    else:
        try:
            parsed = date_parser.parse(str(value))
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid timestamp {value!r}: {e}") from e

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
