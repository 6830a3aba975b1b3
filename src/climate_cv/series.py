# file: src/climate_cv/series.py
"""
Monthly Series Objects and Contracts

Hard gates for the monthly input contract:
- Monotonic: strictly increasing month-start timestamps
- Frequency: no missing months between first and last observation
- Uniqueness: no duplicate months
- Values: numeric, missing values kept as NaN (never coerced to zero)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from .errors import SeriesContractError

logger = logging.getLogger(__name__)

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@dataclass
class MonthlyValidationResult:
    """Results of monthly time index validation"""
    is_valid: bool
    n_rows: int
    n_duplicates: int
    n_missing_months: int
    missing_months: List[pd.Timestamp]
    n_nulls: int
    is_monotonic: bool


def validate_monthly_index(index: pd.DatetimeIndex) -> MonthlyValidationResult:
    """
    Validate a monthly time index.

    Checks:
    1. No duplicate months
    2. Expected month-start frequency vs observed (missing months)
    3. Strictly increasing order (as given, not after sorting)
    """
    index = pd.DatetimeIndex(index)
    n_nulls = int(index.isna().sum())
    clean = index.dropna()

    n_duplicates = int(clean.duplicated(keep=False).sum())
    is_monotonic = bool(clean.is_monotonic_increasing) and n_duplicates == 0

    missing_months: List[pd.Timestamp] = []
    if len(clean) > 0:
        months = clean.to_period("M")
        expected = pd.period_range(months.min(), months.max(), freq="M")
        missing = sorted(set(expected) - set(months))
        missing_months = [p.to_timestamp() for p in missing]

    is_valid = (
        n_nulls == 0
        and n_duplicates == 0
        and is_monotonic
        and len(missing_months) == 0
    )

    return MonthlyValidationResult(
        is_valid=is_valid,
        n_rows=len(index),
        n_duplicates=n_duplicates,
        n_missing_months=len(missing_months),
        missing_months=missing_months[:10],
        n_nulls=n_nulls,
        is_monotonic=is_monotonic,
    )


def assert_monthly_contract(index: pd.DatetimeIndex, name: str = "series") -> None:
    """
    Raise SeriesContractError if the monthly contract is violated.
    """
    result = validate_monthly_index(index)
    if not result.is_valid:
        raise SeriesContractError(
            f"Invalid monthly index for {name}: duplicates={result.n_duplicates}, "
            f"missing_months={result.n_missing_months}, "
            f"null_timestamps={result.n_nulls}, "
            f"monotonic={result.is_monotonic}"
        )


@dataclass(frozen=True)
class MonthlySeries:
    """One climatic variable sampled once per calendar month.

    Values are stored as a read-only float array; NaN marks a missing
    observation. When an index is given it must satisfy the monthly contract.
    """
    name: str
    values: np.ndarray
    index: Optional[pd.DatetimeIndex] = None
    frequency: int = 12

    def __post_init__(self):
        values = np.array(self.values, dtype=float, copy=True)
        if values.ndim != 1:
            raise SeriesContractError(
                f"{self.name}: expected a 1-D sequence, got shape {values.shape}"
            )
        if np.isinf(values).any():
            raise SeriesContractError(f"{self.name}: infinite values are not allowed")
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

        if self.frequency < 1:
            raise SeriesContractError(
                f"{self.name}: frequency must be positive, got {self.frequency}"
            )

        if self.index is not None:
            index = pd.DatetimeIndex(self.index)
            if len(index) != len(values):
                raise SeriesContractError(
                    f"{self.name}: index length {len(index)} != values length {len(values)}"
                )
            assert_monthly_contract(index, name=self.name)
            object.__setattr__(self, "index", index)

    def __len__(self) -> int:
        return len(self.values)

    @property
    def n_missing(self) -> int:
        return int(np.isnan(self.values).sum())

    def timestamps(self, positions: Iterable[int]) -> Optional[pd.DatetimeIndex]:
        """Timestamps at the given positions, or None when the series has no index"""
        if self.index is None:
            return None
        return self.index[list(positions)]


def parse_month(value) -> int:
    """
    Month as 1-12 from a number or a month name ("Jan", "january", "03").
    """
    if isinstance(value, (int, np.integer)):
        month = int(value)
    else:
        text = str(value).strip()
        try:
            month = int(float(text))
        except ValueError:
            abbr = text[:3].title()
            if abbr not in MONTH_ABBR:
                raise SeriesContractError(f"Unrecognized month value: {value!r}")
            month = MONTH_ABBR.index(abbr) + 1

    if not 1 <= month <= 12:
        raise SeriesContractError(f"Month out of range: {value!r}")
    return month


def build_monthly_frame(
    df: pd.DataFrame,
    year_col: str = "Year",
    month_col: str = "Month",
) -> pd.DataFrame:
    """
    Add a month-start `ds` column from Year/Month and sort by it.

    Month may be numeric (1-12) or text (e.g. "January").
    """
    missing = [col for col in (year_col, month_col) if col not in df.columns]
    if missing:
        raise SeriesContractError(f"Missing required columns: {missing}")

    frame = df.copy()
    years = pd.to_numeric(frame[year_col], errors="raise").astype(int)
    months = frame[month_col].map(parse_month)
    frame["ds"] = pd.to_datetime(
        pd.DataFrame({"year": years, "month": months, "day": 1}), errors="raise"
    )
    frame = frame.sort_values("ds").reset_index(drop=True)
    assert_monthly_contract(pd.DatetimeIndex(frame["ds"]), name="monthly table")

    logger.info(
        f"Monthly table: {len(frame)} rows, "
        f"{frame['ds'].min():%Y-%m} to {frame['ds'].max():%Y-%m}"
    )
    return frame


def to_monthly_series(
    frame: pd.DataFrame,
    variable: str,
    ds_col: str = "ds",
    frequency: int = 12,
) -> MonthlySeries:
    """
    Extract one variable from a monthly frame as a MonthlySeries.

    Non-numeric values raise; blank cells stay NaN.
    """
    if variable not in frame.columns:
        raise SeriesContractError(f"Variable {variable!r} not found in columns {frame.columns.tolist()}")
    if ds_col not in frame.columns:
        raise SeriesContractError(f"Missing required datetime column: {ds_col}")

    values = pd.to_numeric(frame[variable], errors="raise").to_numpy(dtype=float)
    series = MonthlySeries(
        name=variable,
        values=values,
        index=pd.DatetimeIndex(frame[ds_col]),
        frequency=frequency,
    )

    if series.n_missing:
        logger.warning(f"{variable}: {series.n_missing} missing values kept as NaN")

    return series
