#!/usr/bin/env python3
"""Main entry point for the smart alerts dashboard."""

import argparse
import asyncio
import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional

import yaml

from .feed import DEFAULT_REFRESH_INTERVAL, AlertFeed
from .fetchers.base import AlertSource
from .fetchers.fixture import FixtureAlertSource
from .fetchers.rest import RestAlertSource
from .render import open_action, render_feed

logger = logging.getLogger(__name__)

HELP_TEXT = "Commands: d <id> dismiss | da dismiss all | o <id> open action | r refresh | q quit"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def load_config(config_path: str) -> dict:
    """Load configuration from YAML file."""
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_file, "r") as f:
        config = yaml.safe_load(f)

    return config or {}


def build_source(source_config: dict) -> AlertSource:
    """Create the alert source described by the `source` config section."""
    source_type = source_config.get("type", "rest")

    if source_type == "fixture":
        return FixtureAlertSource(source_config.get("fixture_path"))

    if source_type == "rest":
        base_url = source_config.get("base_url")
        if not base_url:
            raise ValueError("source.base_url is required for the rest source")
        token = os.environ.get("SMART_ALERTS_TOKEN") or source_config.get("token")
        return RestAlertSource(
            base_url=base_url,
            path=source_config.get("path", "/alerts"),
            token=token,
            timeout=source_config.get("timeout", 10),
            headers=source_config.get("headers"),
        )

    raise ValueError(f"Unknown source type: {source_type}")


def build_feed(config: dict, source: AlertSource) -> AlertFeed:
    app_config = config.get("app", {})
    return AlertFeed(
        source,
        refresh_interval=app_config.get("refresh_interval", DEFAULT_REFRESH_INTERVAL),
        preserve_dismissed=app_config.get("preserve_dismissed", True),
    )


def write_output(text: str, output: Optional[str]):
    """Print the rendered feed, and write it to a file if configured."""
    print(text)
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            f.write(text)


async def run_once(feed: AlertFeed, base_url: Optional[str] = None, output: Optional[str] = None) -> bool:
    """Refresh once and print the feed."""
    success = await feed.refresh()
    write_output(render_feed(feed, base_url=base_url), output)
    return success


def handle_command(feed: AlertFeed, line: str, base_url: Optional[str] = None) -> bool:
    """
    Apply one console command to the feed.

    Returns:
        False when the user asked to quit
    """
    parts = line.strip().split(maxsplit=1)
    if not parts:
        return True

    command = parts[0].lower()
    arg = parts[1].strip() if len(parts) > 1 else ""

    if command in ("q", "quit", "exit"):
        return False
    if command == "d" and arg:
        if not feed.dismiss(arg):
            print(f"No active alert with id {arg}")
    elif command == "da":
        feed.dismiss_all()
    elif command == "o" and arg:
        alert = feed.get(arg)
        if alert is None:
            print(f"No alert with id {arg}")
        else:
            open_action(alert, base_url)
    elif command == "r":
        feed.trigger_refresh()
    else:
        print(HELP_TEXT)
    return True


def start_line_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue, stream=None) -> threading.Thread:
    """
    Read lines from stream on a daemon thread and hand them to the loop.

    The thread never blocks interpreter shutdown, so Ctrl-C exits immediately.
    An empty string is queued at end of input.
    """
    if stream is None:
        stream = sys.stdin

    def _read():
        while True:
            line = stream.readline()
            try:
                loop.call_soon_threadsafe(queue.put_nowait, line)
            except RuntimeError:
                # loop already closed
                return
            if not line:
                return

    thread = threading.Thread(target=_read, name="stdin-reader", daemon=True)
    thread.start()
    return thread


async def run_watch(feed: AlertFeed, base_url: Optional[str] = None, output: Optional[str] = None, stream=None):
    """Run the feed on its timer, re-rendering on every change, until the user quits."""
    lines: asyncio.Queue = asyncio.Queue()
    feed.on_change = lambda f: write_output(render_feed(f, base_url=base_url), output)

    write_output(render_feed(feed, base_url=base_url), output)
    print(HELP_TEXT)

    async with feed:
        start_line_reader(asyncio.get_running_loop(), lines, stream)
        while True:
            line = await lines.get()
            if not line:
                break
            if not handle_command(feed, line, base_url):
                break


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Smart alerts dashboard for the shop backend"
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to config YAML file (default: config.yaml)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Refresh once, print the alerts and exit",
    )
    parser.add_argument(
        "--fixture",
        action="store_true",
        help="Use the built-in sample alerts instead of the configured source",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--output",
        help="Also write the rendered alerts to this markdown file",
    )
    parser.add_argument(
        "--log-file",
        help="Path to log file (default: logs/smart-alerts.log)",
    )

    args = parser.parse_args()

    # Setup logging
    log_file = args.log_file or "logs/smart-alerts.log"
    setup_logging(verbose=args.verbose, log_file=log_file)

    # Load config
    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        if not args.fixture:
            logging.error(f"Configuration error: {e}")
            sys.exit(1)
        config = {}
    except Exception as e:
        logging.error(f"Error loading config: {e}")
        sys.exit(1)

    source_config = config.get("source", {})
    if args.fixture:
        source_config = {"type": "fixture"}

    try:
        source = build_source(source_config)
    except ValueError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(1)

    feed = build_feed(config, source)
    app_config = config.get("app", {})
    base_url = app_config.get("base_url")
    output = args.output or app_config.get("output")

    # Run
    try:
        if args.once:
            ok = asyncio.run(run_once(feed, base_url=base_url, output=output))
            sys.exit(0 if ok else 1)
        asyncio.run(run_watch(feed, base_url=base_url, output=output))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logging.exception(f"Error during execution: {e}")
        sys.exit(1)
    finally:
        source.close()


if __name__ == "__main__":
    main()
