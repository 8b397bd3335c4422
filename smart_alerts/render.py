"""Markdown rendering of the alert feed."""

import logging
import webbrowser
from datetime import datetime
from typing import List, Optional
from urllib.parse import urljoin

from .feed import AlertFeed, ViewState
from .models import Alert
from .presentation import priority_presentation, relative_age

logger = logging.getLogger(__name__)


def format_interval(seconds: float) -> str:
    """Format a refresh interval, e.g. 300 -> "5min"."""
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)}min"
    return f"{int(seconds)}s"


def render_loading() -> str:
    lines = ["## ░░░░░░░░░░░░", ""]
    for _ in range(3):
        lines.append("> ░░░░░░░░░░░░░░░░░░░░░░░░░░░░░░")
        lines.append("")
    return "\n".join(lines)


def render_all_clear() -> str:
    return "## All Clear!\n\nNo urgent alerts at this time\n"


def render_alert(alert: Alert, now: Optional[datetime] = None, base_url: Optional[str] = None) -> str:
    """Render one alert as a markdown block."""
    presentation = priority_presentation(alert.priority)
    lines = [
        f"### [{presentation.symbol}] {alert.title} · {relative_age(alert.created_at, now)}",
        "",
        alert.message,
        "",
    ]
    if alert.action_url:
        lines.append(f"[Take Action →]({resolve_action_url(alert, base_url)})")
        lines.append("")
    lines.append(f"`id: {alert.id}`")
    lines.append("")
    return "\n".join(lines)


def render_feed(feed: AlertFeed, now: Optional[datetime] = None, base_url: Optional[str] = None) -> str:
    """Render the feed for its current view state."""
    state = feed.view_state
    if state == ViewState.LOADING:
        return render_loading()
    if state == ViewState.ALL_CLEAR:
        return render_all_clear()

    active = feed.active_alerts
    plural = "" if len(active) == 1 else "s"

    lines: List[str] = [
        "## Smart Alerts",
        "",
        f"{len(active)} active alert{plural} · Auto-refresh: {format_interval(feed.refresh_interval)}",
        "",
        "---",
        "",
    ]
    for alert in active:
        lines.append(render_alert(alert, now, base_url))
        lines.append("---")
        lines.append("")

    lines.append(f"Showing {len(active)} of {feed.total_count} total alerts")
    lines.append("")
    return "\n".join(lines)


def resolve_action_url(alert: Alert, base_url: Optional[str] = None) -> Optional[str]:
    """Resolve an alert's action link, joining relative links onto base_url."""
    if not alert.action_url:
        return None
    if base_url:
        return urljoin(base_url.rstrip("/") + "/", alert.action_url)
    return alert.action_url


def open_action(alert: Alert, base_url: Optional[str] = None) -> bool:
    """
    Navigate to an alert's action link in the system browser.

    Returns:
        False if the alert offers no action, otherwise whether the browser opened
    """
    url = resolve_action_url(alert, base_url)
    if url is None:
        logger.info(f"Alert {alert.id} has no action")
        return False

    logger.info(f"Opening {url}")
    return webbrowser.open(url)
