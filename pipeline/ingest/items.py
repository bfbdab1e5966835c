from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd
from pandas.api.types import is_bool, is_float, is_integer

from processes.solver.types import OPTIONAL_ITEM_FIELDS, Item

ITEM_COLUMNS = ("weight", "value") + OPTIONAL_ITEM_FIELDS


def _read_table(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == ".parquet":
        return pd.read_parquet(path)
    # keep cells as text so blanks stay distinguishable from zero
    return pd.read_csv(path, dtype=str, keep_default_na=False)


def _coerce_int(val: Any, column: str, row: int) -> int | None:
    if val is None:
        return None
    if isinstance(val, str):
        s = val.strip()
        if not s:
            return None
        try:
            return int(s)
        except ValueError:
            pass
        try:
            f = float(s)
        except ValueError:
            raise ValueError(f"row {row}: {column} is not a number: {val!r}") from None
    elif is_bool(val):
        raise ValueError(f"row {row}: {column} must be an integer, got {val!r}")
    elif is_integer(val):
        # exact, no float round-trip
        return int(val)
    elif is_float(val):
        if pd.isna(val):
            return None
        f = float(val)
    elif val is pd.NA:
        return None
    else:
        raise ValueError(f"row {row}: {column} is not a number: {val!r}")
    if not f.is_integer():
        raise ValueError(f"row {row}: {column} must be an integer, got {val!r}")
    return int(f)


def normalize_items(df: pd.DataFrame, header_map: dict[str, str] | None = None) -> list[Item]:
    """Turn an item table into `Item`s, preserving row order.

    Headers are matched case-insensitively; `header_map` renames source
    headers to item fields first. Blank cells mean the field is absent.
    """
    work = df.rename(columns=header_map or {})
    work = work.rename(columns={c: str(c).strip().lower() for c in work.columns})
    missing = [c for c in ("weight", "value") if c not in work.columns]
    if missing:
        raise ValueError(f"Missing required columns in item table: {missing}")

    present = [c for c in ITEM_COLUMNS if c in work.columns]
    items: list[Item] = []
    for row_no, rec in enumerate(work[present].to_dict(orient="records"), start=1):
        fields = {c: _coerce_int(rec.get(c), c, row_no) for c in present}
        items.append(Item(**fields))
    return items


def load_items(path: Path, header_map: dict[str, str] | None = None) -> list[Item]:
    return normalize_items(_read_table(path), header_map)
