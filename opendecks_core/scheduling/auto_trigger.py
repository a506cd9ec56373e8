# opendecks_core/scheduling/auto_trigger.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from opendecks_core.domain.models import NightSchedule, NightState, WindowId
from opendecks_core.domain.timegrid import to_utc

logger = logging.getLogger(__name__)


def due_windows(schedule: NightSchedule, state: NightState, now: datetime, grace_sec: int = 60) -> List[WindowId]:
    """Windows whose draw trigger has passed within the grace period and which are still empty."""
    t = to_utc(now)
    out: List[WindowId] = []
    for w in schedule.windows:
        trigger = to_utc(w.draw_trigger)
        if trigger <= t < trigger + timedelta(seconds=grace_sec) and not state.assigned(w.window_id):
            out.append(w.window_id)
    return out


class PeriodicTask:
    """Runs `fn` every `interval` seconds on a daemon thread until stopped."""

    def __init__(self, name: str, interval: float, fn: Callable[[], None]) -> None:
        self.name = name
        self.interval = interval
        self._fn = fn
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info("%s started (every %.1fs)", self.name, self.interval)

    def stop(self, timeout: Optional[float] = 2.0) -> None:
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.info("%s stopped", self.name)

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self._fn()
            except Exception:
                logger.exception("%s tick failed", self.name)


class AutoDrawScheduler:
    """Polls the kiosk and fires each window's draw at most once per night."""

    def __init__(self, service, interval: float = 5.0) -> None:
        self._service = service
        self._task = PeriodicTask("auto-draw", interval, self.tick)

    @property
    def running(self) -> bool:
        return self._task.running

    def tick(self) -> List[WindowId]:
        return self._service.auto_draw_tick()

    def start(self) -> None:
        self._task.start()

    def stop(self) -> None:
        self._task.stop()
