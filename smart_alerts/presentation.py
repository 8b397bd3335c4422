"""Pure formatting helpers for displaying alerts."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from .models import Priority


@dataclass(frozen=True)
class Presentation:
    """Visual treatment for a priority level."""

    css_class: str
    icon: str
    symbol: str


_PRESENTATIONS = {
    Priority.URGENT: Presentation("border-red-500 bg-red-50", "priority_high", "!!"),
    Priority.HIGH: Presentation("border-orange-500 bg-orange-50", "warning", "!"),
    Priority.MEDIUM: Presentation("border-yellow-500 bg-yellow-50", "schedule", "~"),
    Priority.LOW: Presentation("border-blue-500 bg-blue-50", "notifications", "-"),
}

DEFAULT_PRESENTATION = Presentation("border-gray-500 bg-gray-50", "notifications", "*")


def priority_presentation(priority: Union[Priority, str, None]) -> Presentation:
    """Return the presentation for a priority, gray for anything unrecognised."""
    if isinstance(priority, Priority):
        return _PRESENTATIONS[priority]
    try:
        known = Priority(str(priority).strip().lower())
    except ValueError:
        return DEFAULT_PRESENTATION
    return _PRESENTATIONS[known]


def relative_age(created_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Format how long ago an alert was created.

    Uses whole-minute buckets: "Just now", "{m}m ago", "{h}h ago", "{d}d ago".
    Timestamps in the future read as "Just now".
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    minutes = int((now - created_at).total_seconds() // 60)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 1440:
        return f"{minutes // 60}h ago"
    return f"{minutes // 1440}d ago"
