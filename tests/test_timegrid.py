"""Tests for the night boundary, window calculator and slot generator."""

from datetime import datetime, timedelta

import pytest
from dateutil import tz

from opendecks_core.config import DEFAULT_CONFIG
from opendecks_core.domain.clock import ZoneClock, zone_for
from opendecks_core.domain.timegrid import NightGrid, countdown, fmt_hm, to_utc, window_title

from conftest import LONDON, local


class TestLogicalNightBase:
    def test_early_morning_belongs_to_previous_night(self, grid):
        """03:00 counts for last night's draw."""
        assert grid.logical_night_base(local(2025, 9, 5, 3, 0)) == local(2025, 9, 4)

    def test_noon_belongs_to_same_day(self, grid):
        assert grid.logical_night_base(local(2025, 9, 5, 12, 0)) == local(2025, 9, 5)

    @pytest.mark.parametrize("hour,minute,expected_day", [(0, 0, 4), (4, 59, 4), (5, 0, 5), (23, 59, 5)])
    def test_cutover_at_five(self, grid, hour, minute, expected_day):
        base = grid.logical_night_base(local(2025, 9, 5, hour, minute))
        assert base.date().day == expected_day
        assert (base.hour, base.minute) == (0, 0)

    def test_utc_instant_is_converted_to_local_first(self, grid):
        # 2025-09-05 03:30 UTC is 04:30 BST: still the previous night
        instant = local(2025, 9, 5, 4, 30).astimezone(tz.UTC)
        assert grid.logical_night_base(instant).date().isoformat() == "2025-09-04"


class TestWindowsFor:
    def test_trigger_and_window_times(self, tonight):
        assert to_utc(tonight.window1.draw_trigger) == to_utc(local(2025, 9, 5, 22, 45))
        assert to_utc(tonight.window2.draw_trigger) == to_utc(local(2025, 9, 6, 0, 45))
        assert to_utc(tonight.window1.start) == to_utc(local(2025, 9, 5, 23, 0))
        assert to_utc(tonight.window1.end) == to_utc(local(2025, 9, 6, 1, 0))
        assert to_utc(tonight.window2.start) == to_utc(local(2025, 9, 6, 1, 0))
        assert to_utc(tonight.window2.end) == to_utc(local(2025, 9, 6, 3, 0))

    def test_windows_are_adjacent_and_disjoint(self, tonight):
        assert to_utc(tonight.window1.end) == to_utc(tonight.window2.start)
        assert to_utc(tonight.window1.start) < to_utc(tonight.window1.end)

    def test_each_window_has_four_slots(self, tonight):
        for w in tonight.windows:
            assert len(w.slots) == 4
            assert len({s.id for s in w.slots}) == 4

    def test_first_slot_is_2300_to_2330(self, tonight):
        first = tonight.window1.slots[0]
        assert fmt_hm(first.start, LONDON) == "23:00"
        assert fmt_hm(first.end, LONDON) == "23:30"
        assert to_utc(first.end) - to_utc(first.start) == timedelta(minutes=30)

    def test_slots_lie_inside_their_window(self, tonight):
        for w in tonight.windows:
            for s in w.slots:
                assert to_utc(w.start) <= to_utc(s.start) < to_utc(s.end) <= to_utc(w.end)

    def test_window_title(self, tonight):
        assert window_title(tonight.window1, LONDON) == "23:00 – 01:00"
        assert window_title(tonight.window2, LONDON) == "01:00 – 03:00"

    def test_slot_ids_are_fresh_each_call(self, grid):
        a = grid.windows_for(local(2025, 9, 5))
        b = grid.windows_for(local(2025, 9, 5))
        assert {s.id for s in a.window1.slots}.isdisjoint({s.id for s in b.window1.slots})


class TestClockChangeNights:
    def test_spring_forward_gap_moves_forward(self, grid):
        """01:00 does not exist on 2025-03-30; the window edge lands on 02:00 BST."""
        sched = grid.windows_for(local(2025, 3, 29))
        assert to_utc(sched.window1.end) == to_utc(local(2025, 3, 30, 2, 0))
        assert fmt_hm(sched.window2.start, LONDON) == "02:00"
        assert len(sched.window1.slots) == 4
        # one elapsed hour is left for the second window
        assert len(sched.window2.slots) == 2

    def test_fall_back_still_yields_four_slots(self, grid):
        sched = grid.windows_for(local(2025, 10, 25))
        assert fmt_hm(sched.window1.start, LONDON) == "23:00"
        for w in sched.windows:
            assert len(w.slots) == 4
            for s in w.slots:
                assert to_utc(s.end) - to_utc(s.start) == timedelta(minutes=30)

    def test_dst_skipping_midnight_keeps_evening_anchors(self):
        """Santiago springs forward at 00:00 on 2025-09-07; 22:45 and 23:00 stay put."""
        santiago = tz.gettz("America/Santiago")
        grid = NightGrid(cfg=DEFAULT_CONFIG, zone=santiago)
        base = grid.logical_night_base(datetime(2025, 9, 7, 12, 0, tzinfo=santiago))
        assert base.date().isoformat() == "2025-09-07"
        sched = grid.windows_for(base)
        assert fmt_hm(sched.window1.draw_trigger, santiago) == "22:45"
        assert fmt_hm(sched.window1.start, santiago) == "23:00"
        assert fmt_hm(sched.window2.end, santiago) == "03:00"
        assert len(sched.window1.slots) == 4

    def test_fall_back_window_anchors_track_wall_clock(self, grid):
        sched = grid.windows_for(local(2025, 10, 25))
        assert fmt_hm(sched.window1.draw_trigger, LONDON) == "22:45"
        assert fmt_hm(sched.window2.end, LONDON) == "03:00"


class TestGenerateSlots:
    def test_stops_before_overrunning_interval(self, grid):
        start = local(2025, 9, 5, 23, 0)
        slots = grid.generate_slots(start, start + timedelta(minutes=100))
        assert len(slots) == 3

    def test_respects_max_slots(self, grid):
        start = local(2025, 9, 5, 20, 0)
        assert len(grid.generate_slots(start, start + timedelta(hours=5), max_slots=2)) == 2

    def test_empty_interval(self, grid):
        start = local(2025, 9, 5, 20, 0)
        assert grid.generate_slots(start, start) == []


class TestCountdown:
    def test_formats_remaining_time(self):
        assert countdown(local(2025, 9, 5, 22, 45), local(2025, 9, 5, 20, 0)) == "02:45:00"

    def test_zero_once_passed(self):
        assert countdown(local(2025, 9, 5, 22, 45), local(2025, 9, 5, 23, 0)) == "00:00:00"


class TestZoneClock:
    def test_unknown_zone_fails_fast(self):
        with pytest.raises(ValueError):
            zone_for("Mars/Olympus_Mons")

    def test_now_is_in_zone(self, fake_now):
        clock = ZoneClock("Europe/London", source=fake_now)
        assert clock.now().strftime("%H:%M") == "20:00"
