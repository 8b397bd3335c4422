"""Abstract alert source."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List

from ..models import Alert

logger = logging.getLogger(__name__)


class AlertFetchFailure(Exception):
    """Retrieving the alert collection failed (transport, HTTP status or payload)."""


class AlertSource(ABC):
    """Something that can produce the current alert collection."""

    name = "source"

    @abstractmethod
    async def fetch_alerts(self) -> List[Alert]:
        """Fetch the current alerts, raising AlertFetchFailure on any failure."""

    def close(self):
        """Release any held resources."""


def parse_records(records: Iterable[Any], source_name: str) -> List[Alert]:
    """
    Turn raw records into Alerts.

    Malformed records are skipped. Duplicate ids keep their first occurrence.
    """
    alerts = []
    seen_ids = set()

    for record in records:
        try:
            alert = Alert.from_dict(record)
        except ValueError as e:
            logger.error(f"Skipping malformed alert from {source_name}: {e}")
            continue

        if alert.id in seen_ids:
            logger.warning(f"Duplicate alert id {alert.id} from {source_name}, keeping first")
            continue

        seen_ids.add(alert.id)
        alerts.append(alert)

    return alerts
