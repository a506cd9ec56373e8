# main_cli.py
from __future__ import annotations

import argparse
import logging
import random
from dataclasses import replace
from datetime import datetime

from opendecks_core.config import DEFAULT_CONFIG
from opendecks_core.domain.clock import ZoneClock
from opendecks_core.domain.models import WindowId
from opendecks_core.domain.timegrid import countdown, fmt_hm, window_title
from opendecks_core.io_layer.signup_reader import read_signups_file
from opendecks_core.reporting.export import export_night_xlsx
from opendecks_core.reporting.report import build_set_times_table, build_signup_table
from opendecks_core.service import KioskService
from opendecks_core.validation.validator import KioskError


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Open Decks kiosk: schedule and fair draw")
    p.add_argument("--zone", default=DEFAULT_CONFIG.timezone_name, help="IANA timezone of the venue")
    p.add_argument("--at", default=None, help="pretend current local time (e.g. 2025-09-05 22:50)")
    p.add_argument("--log-level", default="WARNING")
    p.add_argument("--pin", default=DEFAULT_CONFIG.admin_pin, help="admin PIN for this kiosk")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("schedule", help="print tonight's draw times and slots")

    d = sub.add_parser("draw", help="dry-run both draws from a signup file")
    d.add_argument("--signups", required=True, help="csv/xlsx with Name, Category columns")
    d.add_argument("--seed", type=int, default=None)
    d.add_argument("--out", default=None, help="night report xlsx")
    d.add_argument("--csv", default=None, help="write the signup CSV export here")
    return p.parse_args(argv)


def build_clock(zone: str, at: str | None) -> ZoneClock:
    clock = ZoneClock(zone)
    if at:
        fixed = clock.localize(datetime.strptime(at, "%Y-%m-%d %H:%M"))
        clock.source = lambda: fixed
    return clock


def print_schedule(svc: KioskService) -> None:
    sched = svc.schedule
    zone = svc.clock.zone
    now = svc.clock.now()
    print(f"Night of {sched.base.date().isoformat()} ({svc.cfg.timezone_name})")
    for w in sched.windows:
        print(f"  Draw {fmt_hm(w.draw_trigger, zone)} for {window_title(w, zone)}  (in {countdown(w.draw_trigger, now)})")
        for s in w.slots:
            print(f"    {fmt_hm(s.start, zone)} – {fmt_hm(s.end, zone)}")


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        clock = build_clock(args.zone, args.at)
    except ValueError as e:
        print(f"[ERROR] {e}")
        return 1
    cfg = replace(DEFAULT_CONFIG, timezone_name=args.zone, admin_pin=args.pin)

    if args.command == "schedule":
        print_schedule(KioskService(cfg, clock=clock))
        return 0

    svc = KioskService(cfg, clock=clock, rng=random.Random(args.seed))
    svc.set_cooldown_enabled(False)  # bulk import

    try:
        rows = read_signups_file(args.signups)
    except (OSError, ValueError) as e:
        print(f"[ERROR] {e}")
        return 1

    for name, category in rows:
        try:
            svc.submit_signup(name, category)
        except KioskError as e:
            print(f"[WARN] {name}: {e.message}")

    for wid in (WindowId.WINDOW1, WindowId.WINDOW2):
        try:
            svc.run_draw_now(wid, cfg.admin_pin)
        except KioskError as e:
            print(f"[WARN] {svc.window_title(wid)}: {e.message}")

    set_times = build_set_times_table(svc.state, svc.schedule, clock.zone)
    if set_times.empty:
        print("[RESULT] no set times drawn")
    else:
        print(set_times.to_string(index=False))

    if args.csv:
        with open(args.csv, "w", encoding="utf-8", newline="") as f:
            f.write(svc.export_signups_csv(cfg.admin_pin))
        print(f"[RESULT] CSV: {args.csv}")
    if args.out:
        out_path = export_night_xlsx(args.out, set_times, build_signup_table(svc.state, clock.zone))
        print(f"[RESULT] OK: {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
