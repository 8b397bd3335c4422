#!/usr/bin/env python3
"""Tests for configuration loading and the CLI helpers."""

import asyncio
import io
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from smart_alerts.fetchers.fixture import FixtureAlertSource
from smart_alerts.fetchers.rest import RestAlertSource
from smart_alerts.main import (
    build_feed,
    build_source,
    handle_command,
    load_config,
    run_once,
    run_watch,
    start_line_reader,
)


def test_load_config(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("app:\n  refresh_interval: 60\nsource:\n  type: fixture\n")

    config = load_config(str(config_file))

    assert config["app"]["refresh_interval"] == 60
    assert config["source"]["type"] == "fixture"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_load_config_empty_file(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("")
    assert load_config(str(config_file)) == {}


def test_example_config_is_valid():
    config = load_config(str(Path(__file__).parent / "config.example.yaml"))
    for section in ("app", "source"):
        assert section in config
    assert isinstance(build_source(config["source"]), RestAlertSource)


def test_build_source_rest(monkeypatch):
    monkeypatch.delenv("SMART_ALERTS_TOKEN", raising=False)
    source = build_source({"type": "rest", "base_url": "http://shop.local/api", "token": "t0k"})
    assert isinstance(source, RestAlertSource)
    assert source.url == "http://shop.local/api/alerts"
    assert source.headers["Authorization"] == "Bearer t0k"


def test_build_source_token_from_environment(monkeypatch):
    monkeypatch.setenv("SMART_ALERTS_TOKEN", "from-env")
    source = build_source({"type": "rest", "base_url": "http://shop.local/api", "token": "t0k"})
    assert source.headers["Authorization"] == "Bearer from-env"


def test_build_source_errors():
    with pytest.raises(ValueError):
        build_source({"type": "rest"})
    with pytest.raises(ValueError):
        build_source({"type": "carrier-pigeon"})


def test_build_feed_defaults():
    feed = build_feed({}, FixtureAlertSource())
    assert feed.refresh_interval == 300
    assert feed.preserve_dismissed is True

    feed = build_feed({"app": {"refresh_interval": 30, "preserve_dismissed": False}}, FixtureAlertSource())
    assert feed.refresh_interval == 30
    assert feed.preserve_dismissed is False


def test_run_once_prints_and_writes(tmp_path, capsys):
    feed = build_feed({}, FixtureAlertSource())
    output = tmp_path / "out" / "alerts.md"

    assert asyncio.run(run_once(feed, output=str(output))) is True

    printed = capsys.readouterr().out
    assert "3 active alerts" in printed
    assert output.read_text() == printed[:-1]


def test_run_once_failure_returns_false(tmp_path, capsys):
    feed = build_feed({}, FixtureAlertSource(str(tmp_path / "missing.yaml")))
    assert asyncio.run(run_once(feed)) is False
    assert "░" in capsys.readouterr().out


def test_handle_command():
    feed = build_feed({}, FixtureAlertSource())
    asyncio.run(feed.refresh())

    assert handle_command(feed, "d 2\n") is True
    assert feed.get("2").dismissed
    assert handle_command(feed, "") is True
    assert handle_command(feed, "da") is True
    assert feed.active_count == 0
    assert handle_command(feed, "q") is False


def test_handle_command_open(capsys):
    feed = build_feed({}, FixtureAlertSource())
    asyncio.run(feed.refresh())

    with patch("smart_alerts.main.open_action") as open_action:
        handle_command(feed, "o 1", base_url="http://localhost:3000")
        open_action.assert_called_once_with(feed.get("1"), "http://localhost:3000")

        handle_command(feed, "o 99")
        assert open_action.call_count == 1
    assert "No alert with id 99" in capsys.readouterr().out


def test_line_reader_runs_on_daemon_thread():
    async def scenario():
        lines = asyncio.Queue()
        thread = start_line_reader(asyncio.get_running_loop(), lines, io.StringIO("d 1\n"))
        assert thread.daemon

        assert await asyncio.wait_for(lines.get(), 1) == "d 1\n"
        assert await asyncio.wait_for(lines.get(), 1) == ""
        thread.join(1)
        assert not thread.is_alive()

    asyncio.run(scenario())


def test_run_watch_processes_commands(capsys):
    feed = build_feed({}, FixtureAlertSource())
    asyncio.run(feed.refresh())

    asyncio.run(asyncio.wait_for(run_watch(feed, stream=io.StringIO("d 1\nq\n")), 5))

    assert feed.get("1").dismissed
    assert not feed.running
    assert "Commands:" in capsys.readouterr().out


def test_run_watch_stops_at_end_of_input():
    feed = build_feed({}, FixtureAlertSource())
    asyncio.run(asyncio.wait_for(run_watch(feed, stream=io.StringIO("")), 5))
    assert not feed.running
