# opendecks_core/reporting/report.py
from __future__ import annotations

from datetime import tzinfo

import pandas as pd

from opendecks_core.domain.models import NightSchedule, NightState
from opendecks_core.domain.timegrid import fmt_hm, window_title
from opendecks_core.registry.signups import category_of, export_records


def build_signup_table(state: NightState, zone: tzinfo) -> pd.DataFrame:
    rows = [
        dict(name=r.name, category=r.category.value, signed_up=r.signed_up_at.astimezone(zone).strftime("%Y-%m-%d %H:%M"))
        for r in export_records(state)
    ]
    return pd.DataFrame(rows, columns=["name", "category", "signed_up"])


def build_set_times_table(state: NightState, schedule: NightSchedule, zone: tzinfo) -> pd.DataFrame:
    rows = []
    for w in schedule.windows:
        for a in state.assigned(w.window_id):
            rows.append(dict(
                window=window_title(w, zone),
                start_time=fmt_hm(a.start, zone),
                end_time=fmt_hm(a.end, zone),
                participant=a.participant_name,
                category=category_of(state, a.participant_name).value,
            ))
    return pd.DataFrame(rows, columns=["window", "start_time", "end_time", "participant", "category"])
