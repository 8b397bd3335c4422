"""Live alert feed with periodic refresh and local dismissal."""

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional, Set

from .fetchers.base import AlertFetchFailure, AlertSource
from .models import Alert

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_INTERVAL = 5 * 60


class ViewState(str, Enum):
    """What the feed should display."""

    LOADING = "loading"
    ALL_CLEAR = "all_clear"
    ACTIVE = "active"


class AlertFeed:
    """
    Holds the current alert collection for one viewer.

    Refreshes replace the collection from the source; dismissals are local and
    never sent anywhere. Only the most recently started refresh may apply its
    result, and nothing is applied once the feed is stopped.
    """

    def __init__(
        self,
        source: AlertSource,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        preserve_dismissed: bool = True,
        on_change: Optional[Callable[["AlertFeed"], None]] = None,
    ):
        self.source = source
        self.refresh_interval = refresh_interval
        self.preserve_dismissed = preserve_dismissed
        self.on_change = on_change

        self._alerts: List[Alert] = []
        self._loaded = False
        self._loading = False
        self._generation = 0
        self._stopped = False
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    # -- derived views ---------------------------------------------------

    @property
    def alerts(self) -> List[Alert]:
        return list(self._alerts)

    @property
    def active_alerts(self) -> List[Alert]:
        return [alert for alert in self._alerts if not alert.dismissed]

    @property
    def total_count(self) -> int:
        return len(self._alerts)

    @property
    def active_count(self) -> int:
        return len(self.active_alerts)

    @property
    def dismissed_count(self) -> int:
        return self.total_count - self.active_count

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def show_skeleton(self) -> bool:
        """Placeholder is only shown until the first successful load."""
        return not self._loaded

    @property
    def view_state(self) -> ViewState:
        if not self._loaded:
            return ViewState.LOADING
        if not self.active_alerts:
            return ViewState.ALL_CLEAR
        return ViewState.ACTIVE

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def get(self, alert_id: str) -> Optional[Alert]:
        for alert in self._alerts:
            if alert.id == alert_id:
                return alert
        return None

    # -- operations ------------------------------------------------------

    async def refresh(self) -> bool:
        """
        Fetch the current alerts and replace the collection.

        Failures are logged and leave the existing collection untouched.

        Returns:
            True if a fresh collection was applied, False otherwise
        """
        self._generation += 1
        generation = self._generation
        self._loading = True

        try:
            alerts = await self.source.fetch_alerts()
        except AlertFetchFailure as e:
            logger.error(f"Error fetching alerts from {self.source.name}: {e}")
            return False
        except asyncio.CancelledError:
            logger.debug(f"Refresh #{generation} cancelled")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error fetching alerts from {self.source.name}: {e}")
            return False
        finally:
            if generation == self._generation:
                self._loading = False

        if self._stopped:
            logger.debug(f"Discarding refresh #{generation}: feed stopped")
            return False
        if generation != self._generation:
            logger.debug(f"Discarding stale refresh #{generation} (latest is #{self._generation})")
            return False

        self._apply(alerts)
        return True

    def _apply(self, alerts: List[Alert]):
        if self.preserve_dismissed:
            dismissed_ids = {alert.id for alert in self._alerts if alert.dismissed}
            for alert in alerts:
                if alert.id in dismissed_ids:
                    alert.dismissed = True

        self._alerts = list(alerts)
        self._loaded = True
        logger.info(f"Alerts refreshed: {self.active_count} active of {self.total_count}")
        self._notify()

    def dismiss(self, alert_id: str) -> bool:
        """Dismiss one alert locally. Unknown ids are ignored."""
        alert = self.get(alert_id)
        if alert is None:
            logger.debug(f"Dismiss ignored, no alert with id {alert_id}")
            return False
        if alert.dismissed:
            return False

        alert.dismissed = True
        logger.debug(f"Dismissed alert {alert_id}")
        self._notify()
        return True

    def dismiss_all(self) -> int:
        """Dismiss every held alert. Returns how many were newly dismissed."""
        count = 0
        for alert in self._alerts:
            if not alert.dismissed:
                alert.dismissed = True
                count += 1

        if count:
            logger.debug(f"Dismissed {count} alerts")
            self._notify()
        return count

    def _notify(self):
        if self.on_change is None:
            return
        try:
            self.on_change(self)
        except Exception as e:
            logger.exception(f"Error in alert feed change handler: {e}")

    # -- scheduling ------------------------------------------------------

    def start(self):
        """Refresh now and then every refresh_interval seconds. Needs a running loop."""
        if self.running:
            return
        self._stopped = False
        self._timer = asyncio.get_running_loop().create_task(self._run_timer())
        logger.debug(f"Alert feed started (interval {self.refresh_interval}s)")

    def trigger_refresh(self) -> asyncio.Task:
        """Start a refresh without waiting for it."""
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _run_timer(self):
        while True:
            self.trigger_refresh()
            await asyncio.sleep(self.refresh_interval)

    async def stop(self):
        """Cancel the timer and any in-flight refresh."""
        self._stopped = True
        self._generation += 1
        self._loading = False

        tasks = list(self._in_flight)
        if self._timer is not None:
            tasks.append(self._timer)
            self._timer = None

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._in_flight.clear()
        logger.debug("Alert feed stopped")

    async def __aenter__(self) -> "AlertFeed":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()
