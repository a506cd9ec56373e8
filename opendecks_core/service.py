# opendecks_core/service.py
"""
Kiosk service - every inbound action goes through here.

- Operations are pure state transforms run inside NightStore.apply
- KioskError outcomes are pulsed to the status board and re-raised
- Admin actions are gated by the shared staff PIN
"""
from __future__ import annotations

import logging
import random
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, List, Optional, Union

from opendecks_core.config import AppConfig, DEFAULT_CONFIG
from opendecks_core.domain.clock import ZoneClock
from opendecks_core.domain.models import Category, NightSchedule, NightState, Participant, WindowId
from opendecks_core.domain.timegrid import NightGrid, window_title
from opendecks_core.draw import fair_draw
from opendecks_core.registry import signups
from opendecks_core.reporting.export import signups_csv
from opendecks_core.scheduling.auto_trigger import due_windows
from opendecks_core.state.store import NightStore, StatusBoard
from opendecks_core.validation.validator import KioskError, ValidationError, check_pin

logger = logging.getLogger(__name__)


def parse_window_id(value: Union[WindowId, int, str]) -> WindowId:
    if isinstance(value, WindowId):
        return value
    try:
        return WindowId(int(str(value).replace("window", "")))
    except ValueError:
        raise ValidationError(f"Unknown window: {value}") from None


class KioskService:
    def __init__(
        self,
        cfg: AppConfig = DEFAULT_CONFIG,
        clock: Optional[ZoneClock] = None,
        rng: Optional[random.Random] = None,
        store: Optional[NightStore] = None,
        status: Optional[StatusBoard] = None,
    ) -> None:
        self.cfg = cfg
        self.clock = clock or ZoneClock(cfg.timezone_name)
        self.grid = NightGrid(cfg=cfg, zone=self.clock.zone)
        self.rng = rng or random.Random()
        self.store = store or NightStore(NightState(cooldown_enabled=cfg.signup.cooldown_enabled_default))
        self.status = status or StatusBoard(cfg.scheduler.status_clear_sec)
        self._schedule: Optional[NightSchedule] = None

    # ----- reads -----
    @property
    def state(self) -> NightState:
        return self.store.state

    @property
    def schedule(self) -> NightSchedule:
        """Slots are generated once per logical night."""
        base = self.grid.logical_night_base(self.clock.now())
        with self.store.lock:
            if self._schedule is None or self._schedule.base != base:
                self._schedule = self.grid.windows_for(base)
                logger.info("schedule generated for night of %s", base.date().isoformat())
            return self._schedule

    def remaining_names(self) -> List[str]:
        return fair_draw.remaining_names(self.state)

    def window_title(self, window_id: WindowId) -> str:
        return window_title(self.schedule.window(window_id), self.clock.zone)

    # ----- plumbing -----
    @contextmanager
    def _reported(self, success: str) -> Iterator[None]:
        try:
            yield
        except KioskError as e:
            self.status.pulse(e.message, ok=False)
            raise
        self.status.pulse(success)

    def _admin(self, pin: Optional[str]) -> None:
        try:
            check_pin(pin, self.cfg.admin_pin)
        except KioskError as e:
            self.status.pulse(e.message, ok=False)
            raise

    def _window(self, window: Union[WindowId, int, str]) -> WindowId:
        try:
            return parse_window_id(window)
        except KioskError as e:
            self.status.pulse(e.message, ok=False)
            raise

    # ----- public actions -----
    def submit_signup(self, name: Optional[str], category: Union[Category, str, None]) -> Participant:
        created: List[Participant] = []

        def op(s: NightState) -> NightState:
            new, p = signups.submit(s, name, category, self.clock.now(), self.cfg.signup.cooldown_seconds)
            created.append(p)
            return new

        with self._reported("Added! Good luck in the draw."):
            self.store.apply(op, reason="signup")
        return created[0]

    def set_cooldown_enabled(self, enabled: bool) -> None:
        self.store.apply(lambda s: replace(s, cooldown_enabled=bool(enabled)), reason="cooldown")
        self.status.pulse(f"Sign-up cooldown {'on' if enabled else 'off'}.")

    # ----- admin actions -----
    def remove_signup(self, participant_id: str) -> None:
        with self._reported("Sign-up removed."):
            self.store.apply(lambda s: signups.remove(s, participant_id), reason="remove")

    def reset_night(self, pin: Optional[str]) -> None:
        self._admin(pin)
        self.store.reset()
        logger.info("night reset")
        self.status.pulse("Everything cleared.")

    def run_draw_now(self, window: Union[WindowId, int, str], pin: Optional[str]) -> NightState:
        self._admin(pin)
        wid = self._window(window)
        with self._reported(f"Draw complete for {self.window_title(wid)}."):
            return self._run_draw(wid)

    def _run_draw(self, wid: WindowId) -> NightState:
        slots = self.schedule.window(wid).slots
        return self.store.apply(
            lambda s: fair_draw.run_draw(s, wid, slots, self.rng, self.clock.now()),
            reason=f"draw {wid.key}",
        )

    def redraw_window(self, window: Union[WindowId, int, str], pin: Optional[str]) -> NightState:
        self._admin(pin)
        wid = self._window(window)
        slots = self.schedule.window(wid).slots
        with self._reported("Window re-drawn."):
            return self.store.apply(
                lambda s: fair_draw.redraw_window(s, wid, slots, self.rng, self.clock.now()),
                reason=f"redraw {wid.key}",
            )

    def reroll_slot(self, window: Union[WindowId, int, str], slot_id: str, pin: Optional[str]) -> NightState:
        self._admin(pin)
        wid = self._window(window)
        with self._reported("Slot re-rolled."):
            return self.store.apply(
                lambda s: fair_draw.reroll_slot(s, wid, slot_id, self.rng),
                reason=f"reroll {wid.key}",
            )

    def manual_replace(self, window: Union[WindowId, int, str], slot_id: str, name: Optional[str], pin: Optional[str]) -> NightState:
        self._admin(pin)
        wid = self._window(window)
        with self._reported("Slot updated."):
            return self.store.apply(
                lambda s: fair_draw.manual_replace(s, wid, slot_id, name),
                reason=f"replace {wid.key}",
            )

    def export_signups_csv(self, pin: Optional[str]) -> str:
        self._admin(pin)
        with self._reported("Sign-ups exported."):
            return signups_csv(self.state, self.clock.zone)

    # ----- auto trigger -----
    def auto_draw_tick(self) -> List[WindowId]:
        """Fire any due draw. The due check and the draw share the store lock."""
        fired: List[WindowId] = []
        now = self.clock.now()
        schedule = self.schedule
        with self.store.lock:
            for wid in due_windows(schedule, self.state, now, self.cfg.scheduler.trigger_grace_sec):
                try:
                    with self._reported(f"Draw complete for {self.window_title(wid)}."):
                        self._run_draw(wid)
                except KioskError as e:
                    logger.warning("auto draw for %s skipped: %s", wid.key, e.message)
                    continue
                logger.info("auto draw fired for %s", wid.key)
                fired.append(wid)
        return fired
