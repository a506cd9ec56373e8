# opendecks_core/reporting/export.py
from __future__ import annotations

import csv
from datetime import datetime, tzinfo
from io import BytesIO
from pathlib import Path

import pandas as pd

from opendecks_core.domain.models import NightState
from opendecks_core.registry.signups import export_records

CSV_COLUMNS = ["Name", "Category", "Signed Up (local)"]


def signups_csv(state: NightState, zone: tzinfo) -> str:
    """Every value quoted, embedded quotes doubled, ordered by signup time."""
    rows = [
        [r.name, r.category.value, r.signed_up_at.astimezone(zone).strftime("%Y-%m-%d %H:%M")]
        for r in export_records(state)
    ]
    df = pd.DataFrame(rows, columns=CSV_COLUMNS)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def csv_filename(now: datetime, zone: tzinfo) -> str:
    return f"open-decks-signups-{now.astimezone(zone).strftime('%Y%m%d-%H%M')}.csv"


def _write_night(target, set_times_df: pd.DataFrame, signups_df: pd.DataFrame) -> None:
    with pd.ExcelWriter(target, engine="openpyxl") as w:
        set_times_df.to_excel(w, sheet_name="set_times", index=False)
        signups_df.to_excel(w, sheet_name="signups", index=False)


def export_night_xlsx(out_path: str, set_times_df: pd.DataFrame, signups_df: pd.DataFrame) -> str:
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    _write_night(out_path, set_times_df, signups_df)
    return out_path


def night_xlsx_bytes(set_times_df: pd.DataFrame, signups_df: pd.DataFrame) -> bytes:
    """In-memory copy for download buttons."""
    buf = BytesIO()
    _write_night(buf, set_times_df, signups_df)
    return buf.getvalue()
