# opendecks_core/state/store.py
"""
Session state container.

NightState is immutable; every operation builds a new value under one
process-local lock and swaps it in, so the auto-trigger thread and UI
actions never observe a half-applied update. Subscribers are notified
with (old, new) after each swap, still inside the lock, in swap order.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from threading import RLock
from typing import Callable, List, Optional

from opendecks_core.domain.models import NightState

logger = logging.getLogger(__name__)

Listener = Callable[[NightState, NightState], None]


class NightStore:
    def __init__(self, initial: Optional[NightState] = None) -> None:
        self._lock = RLock()
        self._state = initial if initial is not None else NightState()
        self._listeners: List[Listener] = []

    @property
    def state(self) -> NightState:
        with self._lock:
            return self._state

    @property
    def lock(self) -> RLock:
        return self._lock

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def apply(self, fn: Callable[[NightState], NightState], reason: str = "") -> NightState:
        """Run `fn` on the current state and swap in the result. Exceptions leave state untouched."""
        with self._lock:
            old = self._state
            new = fn(old)
            if new is old:
                return old
            new = replace(new, version=old.version + 1)
            self._state = new
            logger.debug("state v%d -> v%d (%s)", old.version, new.version, reason)
            for listener in list(self._listeners):
                try:
                    listener(old, new)
                except Exception:
                    logger.exception("state listener failed (%s)", reason)
            return new

    def reset(self) -> NightState:
        """Fresh night; the cooldown setting is a device setting and survives."""
        return self.apply(
            lambda s: NightState(cooldown_enabled=s.cooldown_enabled),
            reason="reset",
        )


@dataclass(frozen=True)
class StatusPulse:
    message: str
    ok: bool
    expires_at: float


class StatusBoard:
    """Transient status line; a pulse disappears `clear_after` seconds after it was posted."""

    def __init__(self, clear_after: float = 3.0, monotonic: Callable[[], float] = time.monotonic) -> None:
        self._clear_after = clear_after
        self._monotonic = monotonic
        self._lock = RLock()
        self._current: Optional[StatusPulse] = None

    def pulse(self, message: str, ok: bool = True) -> StatusPulse:
        p = StatusPulse(message=message, ok=ok, expires_at=self._monotonic() + self._clear_after)
        with self._lock:
            self._current = p
        (logger.info if ok else logger.warning)("status: %s", message)
        return p

    def current(self) -> Optional[StatusPulse]:
        with self._lock:
            if self._current is not None and self._monotonic() >= self._current.expires_at:
                self._current = None
            return self._current

    @property
    def message(self) -> str:
        p = self.current()
        return p.message if p else ""
