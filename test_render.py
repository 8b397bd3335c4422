#!/usr/bin/env python3
"""Tests for feed rendering and action navigation."""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent))

from smart_alerts.feed import AlertFeed
from smart_alerts.fetchers.fixture import FixtureAlertSource
from smart_alerts.models import Alert, AlertKind, Priority
from smart_alerts.render import (
    format_interval,
    open_action,
    render_alert,
    render_feed,
    resolve_action_url,
)

NOW = datetime(2025, 6, 2, 12, 0, tzinfo=timezone.utc)


def make_alert(alert_id="1", action_url=None, priority=Priority.URGENT):
    return Alert(
        id=alert_id,
        kind=AlertKind.URGENT,
        title="Urgent Approval Required",
        message="Customer is waiting",
        priority=priority,
        created_at=NOW - timedelta(hours=2),
        action_url=action_url,
    )


def loaded_feed():
    feed = AlertFeed(FixtureAlertSource())
    asyncio.run(feed.refresh())
    return feed


def test_render_loading_skeleton():
    output = render_feed(AlertFeed(FixtureAlertSource()))
    assert "░" in output
    assert "Smart Alerts" not in output


def test_render_active_feed():
    feed = loaded_feed()
    output = render_feed(feed, base_url="http://localhost:3000")

    assert "## Smart Alerts" in output
    assert "3 active alerts · Auto-refresh: 5min" in output
    assert "Urgent Approval Required · 2h ago" in output
    assert "[Take Action →](http://localhost:3000/admin/dashboard/approvals)" in output
    assert "Showing 3 of 3 total alerts" in output
    assert output.index("Urgent Approval") < output.index("Follow-up Tasks Due")


def test_render_after_dismissal():
    feed = loaded_feed()
    feed.dismiss("2")
    feed.dismiss("3")
    output = render_feed(feed)

    assert "1 active alert ·" in output
    assert "Approval Deadline Approaching" not in output
    assert "Showing 1 of 3 total alerts" in output


def test_render_all_clear():
    feed = loaded_feed()
    feed.dismiss_all()
    output = render_feed(feed)

    assert "All Clear!" in output
    assert "No urgent alerts at this time" in output


def test_render_alert_without_action():
    output = render_alert(make_alert(), now=NOW)
    assert "[!!] Urgent Approval Required · 2h ago" in output
    assert "Take Action" not in output
    assert "`id: 1`" in output


def test_render_alert_unknown_priority_uses_default_symbol():
    output = render_alert(make_alert(priority="critical"), now=NOW)
    assert output.startswith("### [*]")


def test_format_interval():
    assert format_interval(300) == "5min"
    assert format_interval(45) == "45s"


def test_resolve_action_url():
    assert resolve_action_url(make_alert()) is None
    relative = make_alert(action_url="/admin/dashboard/tasks")
    assert resolve_action_url(relative) == "/admin/dashboard/tasks"
    assert resolve_action_url(relative, "https://shop.example.com/app") == "https://shop.example.com/admin/dashboard/tasks"
    absolute = make_alert(action_url="https://other.example.com/x")
    assert resolve_action_url(absolute, "https://shop.example.com") == "https://other.example.com/x"


def test_open_action():
    with patch("smart_alerts.render.webbrowser.open", return_value=True) as browser_open:
        assert open_action(make_alert(action_url="/admin/dashboard/approvals"), "http://localhost:3000") is True
        browser_open.assert_called_once_with("http://localhost:3000/admin/dashboard/approvals")

        assert open_action(make_alert()) is False
        assert browser_open.call_count == 1


def test_render_with_base_url_skips_records_with_bad_action_links(tmp_path):
    fixture = tmp_path / "alerts.yaml"
    fixture.write_text(
        "- id: a1\n"
        "  title: Bad link\n"
        "  priority: high\n"
        "  actionUrl: 42\n"
        "- id: a2\n"
        "  title: Good link\n"
        "  priority: low\n"
        "  actionUrl: /admin/dashboard/tasks\n"
    )
    feed = AlertFeed(FixtureAlertSource(str(fixture)))
    asyncio.run(feed.refresh())

    output = render_feed(feed, base_url="http://localhost:3000")

    assert "Bad link" not in output
    assert "[Take Action →](http://localhost:3000/admin/dashboard/tasks)" in output
    assert "Showing 1 of 1 total alerts" in output
