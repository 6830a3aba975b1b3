# file: src/climate_cv/io_utils.py
"""
Result I/O

Loads the monthly climate CSV (Year, Month, one column per variable) into
MonthlySeries and writes run artifacts (fold table, summary, holdout table,
run metadata). Writes go through a temp file so a crashed run never leaves a
half-written artifact.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd

from .series import MonthlySeries, build_monthly_frame, to_monthly_series


def ensure_dir(path: Path) -> None:
    """Create the output directory (and parents) if missing"""
    path.mkdir(parents=True, exist_ok=True)


def atomic_write_csv(df: pd.DataFrame, path: Path) -> None:
    """
    Atomic CSV write: write to temp in same directory, then replace.
    """
    ensure_dir(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    df.to_csv(tmp, index=False)
    os.replace(tmp, path)


def atomic_write_json(payload: Dict[str, Any], path: Path) -> None:
    """Run metadata as indented JSON; non-serializable values fall back to str"""
    ensure_dir(path.parent)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, default=str)
    os.replace(tmp, path)


def load_monthly_series(
    path: Path,
    variables: Sequence[str],
    frequency: int = 12,
) -> List[MonthlySeries]:
    """
    Read a CSV with Year, Month and one column per variable into MonthlySeries.

    Variables are returned in the requested order.
    """
    frame = build_monthly_frame(pd.read_csv(path))
    return [to_monthly_series(frame, v, frequency=frequency) for v in variables]
