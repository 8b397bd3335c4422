"""Fixture alert fetcher for demos and offline use."""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import yaml

from ..models import Alert
from .base import AlertFetchFailure, AlertSource, parse_records

logger = logging.getLogger(__name__)

SAMPLE_ALERTS = [
    {
        "id": "1",
        "type": "urgent",
        "title": "Urgent Approval Required",
        "message": "High-value appointment ($2,500) waiting for approval - customer is waiting",
        "priority": "urgent",
        "age_minutes": 120,
        "actionUrl": "/admin/dashboard/approvals",
    },
    {
        "id": "2",
        "type": "deadline",
        "title": "Approval Deadline Approaching",
        "message": "3 appointments will exceed 24-hour approval window in the next 2 hours",
        "priority": "high",
        "age_minutes": 60,
        "actionUrl": "/admin/dashboard/approvals",
    },
    {
        "id": "3",
        "type": "reminder",
        "title": "Follow-up Tasks Due",
        "message": "5 follow-up tasks are due today for declined appointments",
        "priority": "medium",
        "age_minutes": 30,
        "actionUrl": "/admin/dashboard/tasks",
    },
]


class FixtureAlertSource(AlertSource):
    """Serves alerts from a YAML file, or the built-in samples when no file is given."""

    name = "fixture"

    def __init__(self, fixture_path: Optional[str] = None):
        self.fixture_path = Path(fixture_path) if fixture_path else None

    async def fetch_alerts(self) -> List[Alert]:
        records = self._load_records()
        now = datetime.now(timezone.utc)

        resolved = []
        for record in records:
            if isinstance(record, dict) and "age_minutes" in record:
                record = dict(record)
                age = record.pop("age_minutes")
                try:
                    created_at = now - timedelta(minutes=float(age))
                except (TypeError, ValueError, OverflowError) as e:
                    logger.error(f"Skipping fixture alert {record.get('id')}: bad age_minutes {age!r}: {e}")
                    continue
                record.setdefault("createdAt", created_at)
            resolved.append(record)

        alerts = parse_records(resolved, self.name)
        logger.info(f"Loaded {len(alerts)} fixture alerts")
        return alerts

    def _load_records(self) -> list:
        if self.fixture_path is None:
            return SAMPLE_ALERTS

        try:
            with open(self.fixture_path, "r") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise AlertFetchFailure(f"Cannot read fixture {self.fixture_path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("alerts")
        if not isinstance(data, list):
            raise AlertFetchFailure(f"Fixture {self.fixture_path} must contain a list of alerts")
        return data
