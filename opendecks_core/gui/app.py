# opendecks_core/gui/app.py
from __future__ import annotations

import atexit
from pathlib import Path
import sys
from typing import Tuple

import streamlit as st

# Streamlit changes the working directory, so put the repository root on the path.
ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from opendecks_core.config import DEFAULT_CONFIG
from opendecks_core.domain.models import Category, WindowId
from opendecks_core.domain.timegrid import countdown, fmt_hm
from opendecks_core.registry.signups import category_of, newest_first
from opendecks_core.reporting.export import csv_filename, night_xlsx_bytes, signups_csv
from opendecks_core.reporting.report import build_set_times_table, build_signup_table
from opendecks_core.scheduling.auto_trigger import AutoDrawScheduler
from opendecks_core.service import KioskService
from opendecks_core.validation.validator import KioskError


@st.cache_resource
def _runtime() -> Tuple[KioskService, AutoDrawScheduler]:
    """One kiosk per process, shared by every browser tab; its auto-draw thread is stopped at exit."""
    svc = KioskService(DEFAULT_CONFIG)
    scheduler = AutoDrawScheduler(svc, interval=DEFAULT_CONFIG.scheduler.poll_interval_sec)
    scheduler.start()
    atexit.register(scheduler.stop)
    return svc, scheduler


def _service() -> KioskService:
    return _runtime()[0]


def _attempt(fn, *args) -> None:
    # errors are already on the status board
    try:
        fn(*args)
    except KioskError:
        pass


@st.fragment(run_every=1)
def live_panel(svc: KioskService) -> None:
    now = svc.clock.now()
    st.caption(f"Local time ({svc.cfg.timezone_name})")
    st.markdown(f"**{now.strftime('%a %d %b %Y • %H:%M:%S')}**")
    sched = svc.schedule
    cols = st.columns(2)
    for col, w in zip(cols, sched.windows):
        with col:
            st.metric(f"Draw for {svc.window_title(w.window_id)}", fmt_hm(w.draw_trigger, svc.clock.zone),
                      countdown(w.draw_trigger, now), delta_color="off")
    st.caption(f"Sign-ups so far: {len(svc.state.signups)}")
    if svc.status.message:
        p = svc.status.current()
        (st.success if p and p.ok else st.warning)(svc.status.message)


def set_times_list(svc: KioskService, wid: WindowId) -> None:
    zone = svc.clock.zone
    st.subheader(f"{svc.window_title(wid)} Set Times")
    items = svc.state.assigned(wid)
    if not items:
        st.write("No set times yet. They will appear here after the draw.")
        return
    for a in items:
        st.markdown(f"`{fmt_hm(a.start, zone)} – {fmt_hm(a.end, zone)}` **{a.participant_name}**")


def admin_panel(svc: KioskService, pin: str) -> None:
    zone = svc.clock.zone
    st.subheader("Admin Controls")

    cooldown = st.toggle("Sign-up cooldown (1 min)", value=svc.state.cooldown_enabled)
    if cooldown != svc.state.cooldown_enabled:
        svc.set_cooldown_enabled(cooldown)

    c1, c2, c3, c4 = st.columns(4)
    with c1:
        # the click runs the PIN gate and posts the status
        st.download_button("Export sign-ups (CSV)", data=signups_csv(svc.state, zone),
                           file_name=csv_filename(svc.clock.now(), zone), mime="text/csv",
                           on_click=_attempt, args=(svc.export_signups_csv, pin))
    with c2:
        if st.button(f"Run {svc.window_title(WindowId.WINDOW1)} draw now"):
            _attempt(svc.run_draw_now, WindowId.WINDOW1, pin)
    with c3:
        if st.button(f"Run {svc.window_title(WindowId.WINDOW2)} draw now"):
            _attempt(svc.run_draw_now, WindowId.WINDOW2, pin)
    with c4:
        if st.button("Clear all", type="primary"):
            _attempt(svc.reset_night, pin)

    st.download_button(
        "Night report (xlsx)",
        data=night_xlsx_bytes(build_set_times_table(svc.state, svc.schedule, zone), build_signup_table(svc.state, zone)),
        file_name="open-decks-night.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )

    for col, wid in zip(st.columns(2), (WindowId.WINDOW1, WindowId.WINDOW2)):
        with col:
            st.markdown(f"**Manage {svc.window_title(wid)}**")
            if st.button("Re-draw window", key=f"redraw-{wid.key}"):
                _attempt(svc.redraw_window, wid, pin)
            for a in svc.state.assigned(wid):
                badge = category_of(svc.state, a.participant_name).label
                st.markdown(f"`{fmt_hm(a.start, zone)} – {fmt_hm(a.end, zone)}` {a.participant_name} _({badge})_")
                k = f"{wid.key}-{a.slot_id}"
                if st.button("Re-roll", key=f"reroll-{k}"):
                    _attempt(svc.reroll_slot, wid, a.slot_id, pin)
                new_name = st.text_input("Replace with name", key=f"manual-{k}")
                if st.button("Replace", key=f"replace-{k}"):
                    _attempt(svc.manual_replace, wid, a.slot_id, new_name, pin)
            st.caption(f"Unassigned names available: {len(svc.remaining_names())}")

    st.markdown("**Current sign-ups**")
    if not svc.state.signups:
        st.write("No one yet.")
    for p in svc.state.signups:
        row = st.columns([4, 2, 2, 1])
        row[0].write(p.display_name)
        row[1].write(p.category.label)
        row[2].write(p.signed_up_at.astimezone(zone).strftime("%H:%M"))
        if row[3].button("Remove", key=f"remove-{p.id}"):
            svc.remove_signup(p.id)
            st.rerun()


def main():
    st.set_page_config(page_title="Open Decks", layout="wide")
    svc = _service()

    st.title("Stage & Radio: Open Decks – Registration Draw")
    live_panel(svc)

    st.header("Add Your Name")
    with st.form("signup", clear_on_submit=True):
        name = st.text_input("DJ name (solo or duo)")
        category = st.selectbox("Gender", list(Category), index=None,
                                format_func=lambda c: c.label.capitalize(), placeholder="Select gender…")
        if st.form_submit_button("Submit"):
            _attempt(svc.submit_signup, name, category)

    left, right = st.columns(2)
    with left:
        set_times_list(svc, WindowId.WINDOW1)
    with right:
        set_times_list(svc, WindowId.WINDOW2)

    st.subheader("Signed Up (So Far)")
    recent = newest_first(svc.state)
    if not recent:
        st.write("No one has signed up yet. Add your name above.")
    for p in recent:
        st.write(f"{p.display_name} · {p.signed_up_at.astimezone(svc.clock.zone).strftime('%H:%M')}")

    with st.expander("Admin"):
        pin = st.text_input("Admin PIN", type="password")
        if pin and pin == svc.cfg.admin_pin:
            admin_panel(svc, pin)
        elif pin:
            st.error("Wrong PIN")

    st.caption("DST-aware (GMT/BST) • Manual draws require staff PIN • Session-only")


if __name__ == "__main__":
    main()
