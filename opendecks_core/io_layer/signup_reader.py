# opendecks_core/io_layer/signup_reader.py
from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pandas as pd


def read_signups_file(path: str) -> List[Tuple[str, str]]:
    """
    Read (name, category) rows from a .csv or .xlsx file.
    Expected columns: Name, Category (header case is ignored).
    An exported signup CSV can be read back as-is.
    """
    suffix = Path(path).suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    elif suffix in (".xlsx", ".xlsm"):
        df = pd.read_excel(path, dtype=str, engine="openpyxl").fillna("")
    else:
        raise ValueError(f"Unsupported signup file type: {path}")

    cols = {str(c).strip().lower(): c for c in df.columns}
    if "name" not in cols or "category" not in cols:
        raise ValueError(f"{path} needs 'Name' and 'Category' columns")

    rows: List[Tuple[str, str]] = []
    for _, r in df.iterrows():
        name = str(r[cols["name"]]).strip()
        if not name:
            continue
        rows.append((name, str(r[cols["category"]]).strip()))
    return rows
