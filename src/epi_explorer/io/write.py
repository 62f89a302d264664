from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

TABLE_SUFFIXES = {"csv": "csv", "parquet": "parquet"}


def table_suffix(fmt: str) -> str:
    try:
        return TABLE_SUFFIXES[fmt]
    except KeyError as exc:
        raise ValueError(f"Unsupported table format: {fmt}") from exc


def write_table(df: pd.DataFrame, path: Path, fmt: str = "csv") -> Path:
    """Write an explorer table; the ``date`` column is stored as ISO dates."""
    table_suffix(fmt)
    path.parent.mkdir(parents=True, exist_ok=True)
    working = df.copy()
    if "date" in working.columns:
        working["date"] = pd.to_datetime(working["date"]).dt.date
    if fmt == "parquet":
        working.to_parquet(path, index=False)
    else:
        working.to_csv(path, index=False)
    return path


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return path
