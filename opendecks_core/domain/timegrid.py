# opendecks_core/domain/timegrid.py
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from typing import List

from dateutil import tz

from opendecks_core.config import AppConfig
from opendecks_core.domain.models import NightSchedule, Slot, Window, WindowId


def to_utc(dt: datetime) -> datetime:
    """Aware datetimes sharing a tzinfo compare by wall clock; UTC compares by elapsed time."""
    return dt.astimezone(tz.UTC)


@dataclass(frozen=True)
class NightGrid:
    """Windows and slots of a logical night (23:00-01:00, 01:00-03:00 local)."""
    cfg: AppConfig
    zone: tzinfo

    def logical_night_base(self, instant: datetime) -> datetime:
        local = instant.astimezone(self.zone)
        day = local.date()
        if local.hour < self.cfg.night_cutover_hour:
            day -= timedelta(days=1)
        return self.wall_clock(datetime(day.year, day.month, day.day, tzinfo=self.zone), 0)

    def wall_clock(self, base: datetime, offset_min: int) -> datetime:
        """
        Local wall-clock time `offset_min` clock minutes after midnight of `base`'s date.
        Counting from the date keeps anchors right when DST skips midnight itself.
        A time skipped by spring-forward moves forward by the gap length;
        an ambiguous fall-back time keeps its first occurrence (fold=0).
        """
        naive = datetime.combine(base.date(), time()) + timedelta(minutes=offset_min)
        return tz.resolve_imaginary(naive.replace(tzinfo=self.zone))

    def generate_slots(self, start: datetime, end: datetime, minutes: int = 30, max_slots: int = 4) -> List[Slot]:
        # slots are spaced by elapsed minutes, so clock-change nights keep their count
        slots: List[Slot] = []
        cursor = to_utc(start)
        stop = to_utc(end)
        step = timedelta(minutes=minutes)
        while cursor < stop and len(slots) < max_slots:
            nxt = cursor + step
            if nxt > stop:
                break
            slots.append(Slot(
                id=str(uuid.uuid4()),
                start=cursor.astimezone(self.zone),
                end=nxt.astimezone(self.zone),
            ))
            cursor = nxt
        return slots

    def _window(self, window_id: WindowId, base: datetime, start_min: int, end_min: int, draw_min: int) -> Window:
        d = self.cfg.draw
        start = self.wall_clock(base, start_min)
        end = self.wall_clock(base, end_min)
        return Window(
            window_id=window_id,
            start=start,
            end=end,
            draw_trigger=self.wall_clock(base, draw_min),
            slots=tuple(self.generate_slots(start, end, d.slot_minutes, d.max_slots_per_window)),
        )

    def windows_for(self, base: datetime) -> NightSchedule:
        d = self.cfg.draw
        return NightSchedule(
            base=base,
            window1=self._window(WindowId.WINDOW1, base, d.window1_start_min, d.window1_end_min, d.draw1_offset_min),
            window2=self._window(WindowId.WINDOW2, base, d.window2_start_min, d.window2_end_min, d.draw2_offset_min),
        )

    def schedule_at(self, instant: datetime) -> NightSchedule:
        return self.windows_for(self.logical_night_base(instant))


def fmt_hm(dt: datetime, zone: tzinfo) -> str:
    return dt.astimezone(zone).strftime("%H:%M")


def window_title(window: Window, zone: tzinfo) -> str:
    return f"{fmt_hm(window.start, zone)} – {fmt_hm(window.end, zone)}"


def countdown(target: datetime, now: datetime) -> str:
    """HH:MM:SS until target, 00:00:00 once it has passed."""
    remaining = int((to_utc(target) - to_utc(now)).total_seconds())
    if remaining <= 0:
        return "00:00:00"
    hh, rest = divmod(remaining, 3600)
    mm, ss = divmod(rest, 60)
    return f"{hh:02d}:{mm:02d}:{ss:02d}"
