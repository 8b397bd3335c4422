"""REST alert fetcher."""

import asyncio
import logging
from typing import Any, List, Optional

import requests

from ..models import Alert
from .base import AlertFetchFailure, AlertSource, parse_records

logger = logging.getLogger(__name__)


class RestAlertSource(AlertSource):
    """Fetches alerts with GET {base_url}{path} from the shop backend."""

    name = "rest"

    def __init__(
        self,
        base_url: str,
        path: str = "/alerts",
        token: Optional[str] = None,
        timeout: float = 10,
        headers: Optional[dict] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: Backend API base URL (e.g., "http://localhost:5000/api")
            path: Alerts endpoint path
            token: Optional bearer token for the backend's auth middleware
            timeout: Request timeout in seconds
            headers: Optional additional headers
            session: Optional requests session to reuse
        """
        self.url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
        self.timeout = timeout
        self.session = session or requests.Session()

        self.headers = {"Accept": "application/json"}
        if headers:
            self.headers.update(headers)
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    async def fetch_alerts(self) -> List[Alert]:
        return await asyncio.to_thread(self.fetch_alerts_sync)

    def fetch_alerts_sync(self) -> List[Alert]:
        """Blocking fetch; runs in a worker thread when awaited."""
        logger.debug(f"Fetching alerts from {self.url}")

        try:
            response = self.session.get(self.url, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise AlertFetchFailure(f"Request to {self.url} failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise AlertFetchFailure(f"Invalid JSON from {self.url}: {e}") from e

        records = extract_records(payload)
        alerts = parse_records(records, self.url)
        logger.info(f"Fetched {len(alerts)} alerts from {self.url}")
        return alerts

    def close(self):
        self.session.close()


def extract_records(payload: Any) -> list:
    """
    Pull the alert list out of a response body.

    Accepts a bare JSON array, the backend envelope {"success": ..., "data": [...]},
    or {"alerts": [...]}.
    """
    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        if payload.get("success") is False:
            message = payload.get("message", "unknown error")
            raise AlertFetchFailure(f"Backend reported failure: {message}")
        for key in ("data", "alerts"):
            if isinstance(payload.get(key), list):
                return payload[key]

    raise AlertFetchFailure(f"Unexpected alerts payload: {type(payload).__name__}")
