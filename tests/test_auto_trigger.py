"""Tests for the auto-draw trigger."""

import threading
from datetime import timedelta

from opendecks_core.domain.models import Category, WindowId
from opendecks_core.draw.fair_draw import assigned_names
from opendecks_core.scheduling.auto_trigger import AutoDrawScheduler, PeriodicTask, due_windows

from conftest import local


class TestDueWindows:
    def test_before_trigger(self, tonight, service):
        assert due_windows(tonight, service.state, local(2025, 9, 5, 22, 44, 59)) == []

    def test_inside_grace(self, tonight, service):
        assert due_windows(tonight, service.state, local(2025, 9, 5, 22, 45)) == [WindowId.WINDOW1]
        assert due_windows(tonight, service.state, local(2025, 9, 5, 22, 45, 59)) == [WindowId.WINDOW1]

    def test_after_grace(self, tonight, service):
        assert due_windows(tonight, service.state, local(2025, 9, 5, 22, 46)) == []

    def test_second_window_after_midnight(self, tonight, service):
        assert due_windows(tonight, service.state, local(2025, 9, 6, 0, 45, 30)) == [WindowId.WINDOW2]


def _sign_up(service, fake_now, entries):
    service.set_cooldown_enabled(False)
    for name, cat in entries:
        service.submit_signup(name, cat)


class TestServiceTick:
    ENTRIES = [("A", Category.FEMALE), ("B", Category.MALE), ("C", Category.NON_BINARY),
               ("D", Category.DUO), ("E", Category.FEMALE), ("F", Category.MALE)]

    def test_fires_once_per_window(self, service, fake_now):
        _sign_up(service, fake_now, self.ENTRIES)
        fake_now.set(local(2025, 9, 5, 22, 45, 5))
        assert service.auto_draw_tick() == [WindowId.WINDOW1]
        first = service.state.window1
        fake_now.advance(seconds=5)
        assert service.auto_draw_tick() == []
        assert service.state.window1 == first

    def test_second_draw_excludes_first_window(self, service, fake_now):
        _sign_up(service, fake_now, self.ENTRIES)
        fake_now.set(local(2025, 9, 5, 22, 45, 5))
        service.auto_draw_tick()
        fake_now.set(local(2025, 9, 6, 0, 45, 10))
        assert service.auto_draw_tick() == [WindowId.WINDOW2]
        state = service.state
        assert len(state.window2) == 2
        assert assigned_names(state, WindowId.WINDOW1).isdisjoint(assigned_names(state, WindowId.WINDOW2))

    def test_empty_night_reports_and_continues(self, service, fake_now):
        fake_now.set(local(2025, 9, 5, 22, 45, 5))
        assert service.auto_draw_tick() == []
        assert service.status.message == "No sign-ups yet."


class TestPeriodicTask:
    def test_runs_until_stopped(self):
        ticked = threading.Event()
        task = PeriodicTask("test-loop", 0.01, ticked.set)
        task.start()
        assert ticked.wait(2.0)
        task.stop()
        assert not task.running

    def test_tick_errors_do_not_kill_loop(self):
        calls = []
        done = threading.Event()

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first tick fails")
            done.set()

        task = PeriodicTask("flaky-loop", 0.01, flaky)
        task.start()
        assert done.wait(2.0)
        task.stop()

    def test_start_twice_keeps_one_thread_and_stop_is_repeatable(self):
        task = PeriodicTask("single-loop", 0.01, lambda: None)
        task.start()
        thread = task._thread
        task.start()
        assert task._thread is thread
        task.stop()
        task.stop()
        assert not task.running
        assert not thread.is_alive()

    def test_scheduler_start_stop(self, service):
        scheduler = AutoDrawScheduler(service, interval=0.01)
        scheduler.start()
        assert scheduler.running
        scheduler.stop()
        assert not scheduler.running
