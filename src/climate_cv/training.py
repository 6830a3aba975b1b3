# file: src/climate_cv/training.py
"""
Holdout and Rolling-Origin Evaluators

Fits one model per split, forecasts the split's horizon and scores it.
Per-fold FitFailures are recorded as NaN-metric folds (with the reason)
so one bad fold never stops a sweep. ConfigurationErrors are raised
before any fitting happens.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .backtesting import BacktestSplit, ExpandingWindowBacktest, HoldoutSplit
from .errors import ConfigurationError, FitFailure
from .evaluation import ForecastMetrics
from .models import FittedModel, ForecastModel, ForecastResult
from .series import MonthlySeries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FoldMetric:
    """Scored result for one (variable, model, fold)"""
    variable: str
    model: str
    origin: int
    n_train: int
    n_test: int
    rmse: float
    mae: float
    mape: float
    error: Optional[str] = None
    actual: Tuple[float, ...] = field(default=(), repr=False)
    predicted: Tuple[float, ...] = field(default=(), repr=False)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_record(self) -> Dict:
        """Plain row for tabular export (no arrays)"""
        return {
            "ClimaticVariable": self.variable,
            "Model": self.model,
            "origin": self.origin,
            "n_train": self.n_train,
            "n_test": self.n_test,
            "rmse": self.rmse,
            "mae": self.mae,
            "mape": self.mape,
            "error": self.error,
        }


@dataclass
class HoldoutResult:
    """Single-split evaluation; fitted model and forecast kept for this evaluation only"""
    variable: str
    model: str
    train_size: int
    test: np.ndarray
    rmse: float
    mae: float
    mape: float
    forecast: Optional[ForecastResult] = None
    fitted: Optional[FittedModel] = None
    test_index: Optional[pd.DatetimeIndex] = None
    error: Optional[str] = None

    @property
    def horizon(self) -> int:
        return len(self.test)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def metrics(self) -> Dict[str, float]:
        return {"rmse": self.rmse, "mae": self.mae, "mape": self.mape}

    def to_frame(self) -> pd.DataFrame:
        """
        Observed vs forecast over the test block, with interval bounds

        Columns: step, [ds], actual, yhat, yhat_lo_<level>, yhat_hi_<level>
        """
        if self.forecast is None:
            frame = pd.DataFrame({"step": np.arange(1, self.horizon + 1)})
            if self.test_index is not None:
                frame["ds"] = self.test_index
            frame["actual"] = self.test
            frame["yhat"] = np.nan
            return frame

        frame = self.forecast.to_frame(index=self.test_index)
        frame.insert(2 if self.test_index is not None else 1, "actual", self.test)
        return frame


def _score_split(
    series: MonthlySeries,
    model: ForecastModel,
    split: BacktestSplit,
    confidence_levels: Optional[Sequence[int]] = None,
):
    """Fit on train, forecast test horizon, score. Returns (metrics, forecast, fitted)"""
    y_train = series.values[split.train_indices]
    y_test = series.values[split.test_indices]

    fitted = model.fit(y_train, season_length=series.frequency)
    forecast = model.forecast(fitted, horizon=split.test_size, confidence_levels=confidence_levels)
    metrics = ForecastMetrics.compute_all(y_test, forecast.mean)

    return metrics, forecast, fitted


def holdout_eval(
    series: MonthlySeries,
    model: ForecastModel,
    train_fraction: float = 0.8,
    confidence_levels: Optional[Sequence[int]] = (80, 95),
) -> HoldoutResult:
    """
    Fit on the first floor(train_fraction * n) points, score on the rest

    Args:
        series: Monthly series
        model: Model family adapter
        train_fraction: Share of observations used for training
        confidence_levels: Prediction interval levels kept for plotting

    Returns:
        HoldoutResult

    Raises:
        ConfigurationError: train or test side would be empty
    """
    context = {"variable": series.name, "model": model.get_name()}
    try:
        split = HoldoutSplit(train_fraction).generate_split(len(series))
    except ConfigurationError as e:
        raise e.with_context(**context) from e

    y_test = np.array(series.values[split.test_indices])
    test_index = series.timestamps(split.test_indices)

    try:
        metrics, forecast, fitted = _score_split(series, model, split, confidence_levels)
    except FitFailure as e:
        logger.warning(f"[holdout] {series.name} / {model.get_name()}: {e.reason}")
        return HoldoutResult(
            variable=series.name,
            model=model.get_name(),
            train_size=split.train_size,
            test=y_test,
            rmse=np.nan,
            mae=np.nan,
            mape=np.nan,
            test_index=test_index,
            error=e.reason,
        )

    logger.info(
        f"[holdout] {series.name} / {model.get_name()}: train={split.train_size}, "
        f"h={split.test_size}, RMSE={metrics['rmse']:.4f}, MAE={metrics['mae']:.4f}"
    )

    return HoldoutResult(
        variable=series.name,
        model=model.get_name(),
        train_size=split.train_size,
        test=y_test,
        rmse=metrics["rmse"],
        mae=metrics["mae"],
        mape=metrics["mape"],
        forecast=forecast,
        fitted=fitted,
        test_index=test_index,
    )


def _evaluate_fold(series: MonthlySeries, model: ForecastModel, split: BacktestSplit) -> FoldMetric:
    y_test = series.values[split.test_indices]

    try:
        metrics, forecast, _ = _score_split(series, model, split)
    except FitFailure as e:
        logger.warning(
            f"[rolling] {series.name} / {model.get_name()} origin={split.origin}: {e.reason}"
        )
        return FoldMetric(
            variable=series.name,
            model=model.get_name(),
            origin=split.origin,
            n_train=split.train_size,
            n_test=split.test_size,
            rmse=np.nan,
            mae=np.nan,
            mape=np.nan,
            error=e.reason,
            actual=tuple(float(v) for v in y_test),
        )

    return FoldMetric(
        variable=series.name,
        model=model.get_name(),
        origin=split.origin,
        n_train=split.train_size,
        n_test=split.test_size,
        rmse=metrics["rmse"],
        mae=metrics["mae"],
        mape=metrics["mape"],
        actual=tuple(float(v) for v in y_test),
        predicted=tuple(float(v) for v in forecast.mean),
    )


def rolling_origin_eval(
    series: MonthlySeries,
    model: ForecastModel,
    initial: int = 36,
    horizon: int = 1,
    step: int = 1,
    n_jobs: int = 1,
) -> List[FoldMetric]:
    """
    Walk-forward, expanding-window cross-validation

    For each origin in initial, initial+step, ... with origin + horizon <= n:
    train = values[:origin], test = values[origin:origin + horizon].

    Args:
        series: Monthly series
        model: Model family adapter
        initial: Training length at the first origin (months)
        horizon: Forecast horizon (months)
        step: Origin advance (months)
        n_jobs: Worker threads for folds; output order is always ascending origin

    Returns:
        One FoldMetric per origin (possibly empty)

    Raises:
        ConfigurationError: non-positive parameters or initial >= n
    """
    context = {"variable": series.name, "model": model.get_name()}
    try:
        splits = ExpandingWindowBacktest(initial=initial, horizon=horizon, step=step).generate_splits(len(series))
    except ConfigurationError as e:
        raise e.with_context(**context) from e

    if not splits:
        return []

    if n_jobs > 1:
        with ThreadPoolExecutor(max_workers=n_jobs) as executor:
            folds = list(executor.map(lambda s: _evaluate_fold(series, model, s), splits))
    else:
        folds = [_evaluate_fold(series, model, split) for split in splits]

    n_failed = sum(fold.failed for fold in folds)
    logger.info(
        f"[rolling] {series.name} / {model.get_name()}: {len(folds)} folds "
        f"(origins {splits[0].origin}..{splits[-1].origin}), {n_failed} failed"
    )
    return folds
