"""Self-adjusting polling schedule.

The DWD dataset declares when its next version will be published
(``next_update``). After each successful cycle the controller sleeps until
that moment plus a one minute safety offset. When no usable delay can be
derived it falls back to fixed intervals:

  - first-ever fetch failed:                     1 minute
  - fetch failed after an earlier success:      10 minutes
  - ``next_update`` unparseable, past, too far:  5 minutes
  - cycle failed after fetching:                 5 minutes

Each cycle schedules exactly one successor, so cycles never overlap.
``stop()`` cancels the pending wake-up; a cycle already running completes but
is not rescheduled.
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import TYPE_CHECKING

from pollenflug.config import Settings, get_settings
from pollenflug.datasources.dwd import fetch_pollen_dataset
from pollenflug.errors import MalformedTimestampError, TransportError
from pollenflug.flows.sync import sync_pollen
from pollenflug.schemas import Locale
from pollenflug.timestamps import DEFAULT_TIMEZONE, parse_timestamp

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

SAFETY_OFFSET = 60.0  # seconds added to next_update
FIRST_FETCH_RETRY = 60.0
POLL_FALLBACK = 10 * 60.0
SCHEDULE_FALLBACK = 5 * 60.0
MAX_TIMER_DELAY = 2_147_483_647 / 1000  # largest 32-bit millisecond timer


class ControllerState(StrEnum):
    """Lifecycle of the schedule controller."""

    IDLE = "idle"
    FETCHING = "fetching"
    SYNCING = "syncing"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


def compute_delay(
    next_update: str | None,
    now: datetime | None = None,
    tz: str = DEFAULT_TIMEZONE,
) -> float:
    """
    Seconds to wait before the next cycle.

    ``next_update - now + SAFETY_OFFSET``, or ``SCHEDULE_FALLBACK`` if the
    timestamp can't be parsed or the result isn't positive or exceeds
    ``MAX_TIMER_DELAY``.
    """
    now = now or datetime.now(UTC)
    try:
        wake = parse_timestamp(next_update, tz)
    except MalformedTimestampError as e:
        logger.warning("Cannot derive next update time: %s", e)
        return SCHEDULE_FALLBACK

    delay = (wake - now).total_seconds() + SAFETY_OFFSET
    if delay <= 0 or delay >= MAX_TIMER_DELAY:
        return SCHEDULE_FALLBACK
    return delay


class ScheduleController:
    """Drives fetch → reconcile → project cycles on the derived schedule."""

    def __init__(
        self,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.locale = Locale.from_language(self.settings.language)
        self.clock = clock or (lambda: datetime.now(UTC))
        self.state = ControllerState.IDLE
        self.has_fetched = False
        self.next_wake: datetime | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def run_cycle(self) -> float:
        """Run one cycle and return the delay in seconds until the next one."""
        self.state = ControllerState.FETCHING
        logger.info("Requesting DWD pollen information now.")
        try:
            dataset = fetch_pollen_dataset(self.settings.url, timeout=self.settings.request_timeout)
        except TransportError as e:
            logger.error("%s", e)
            if self.has_fetched:
                return POLL_FALLBACK
            logger.error("Error reading pollen risk index.")
            return FIRST_FETCH_RETRY
        self.has_fetched = True

        self.state = ControllerState.SYNCING
        try:
            sync_pollen(
                dataset=dataset,
                region=self.settings.region,
                locale=self.locale,
                tz=self.settings.timezone,
            )
        except Exception:
            logger.exception("Sync cycle failed, retrying later")
            return SCHEDULE_FALLBACK

        delay = compute_delay(dataset.next_update, self.clock(), self.settings.timezone)
        if delay == SCHEDULE_FALLBACK:
            logger.info("Next DWD pollen request starts in %d minutes.", delay // 60)
        else:
            logger.info("Next DWD pollen request starts on %s", dataset.next_update)
        return delay

    def run_forever(self) -> None:
        """Run cycles in the calling thread until ``stop()`` is called."""
        while not self._stop.is_set():
            delay = self.run_cycle()
            if self._stop.is_set():
                break
            self.state = ControllerState.SLEEPING
            self.next_wake = self.clock() + timedelta(seconds=delay)
            if self._stop.wait(delay):
                break
        self.next_wake = None
        self.state = ControllerState.STOPPED

    def start(self) -> threading.Thread:
        """Start the cycle loop in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run_forever, name="pollenflug-scheduler", daemon=True
        )
        self._thread.start()
        return self._thread

    def stop(self) -> None:
        """Cancel the pending wake-up. A running cycle finishes but isn't rescheduled."""
        logger.info("Stopping scheduler")
        self._stop.set()
        self.next_wake = None

    def join(self, timeout: float | None = None) -> None:
        """Wait for the background loop to exit."""
        if self._thread is not None:
            self._thread.join(timeout)
