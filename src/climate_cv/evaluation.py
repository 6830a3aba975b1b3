# file: src/climate_cv/evaluation.py
"""
Forecast Accuracy Metrics

Computes RMSE, MAE and MAPE with explicit missing-value handling:
- positions with a missing actual (or missing prediction) are masked out
- "present but zero" and "absent" are different conditions for MAPE
- an undefined metric is NaN, never zero and never an exception
"""

import logging
from typing import Dict

import numpy as np

logger = logging.getLogger(__name__)


def _as_float_array(values) -> np.ndarray:
    return np.asarray(values, dtype=float).ravel()


class ForecastMetrics:
    """Compute forecasting evaluation metrics"""

    @staticmethod
    def valid_mask(y_true: np.ndarray, y_pred: np.ndarray) -> np.ndarray:
        """Positions where both actual and prediction are present"""
        y_true = _as_float_array(y_true)
        y_pred = _as_float_array(y_pred)
        if y_true.shape != y_pred.shape:
            raise ValueError(
                f"actual and predicted lengths differ: {len(y_true)} != {len(y_pred)}"
            )
        return np.isfinite(y_true) & np.isfinite(y_pred)

    @staticmethod
    def rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Root Mean Squared Error

        Returns NaN if no position has both actual and prediction.
        """
        y_true = _as_float_array(y_true)
        y_pred = _as_float_array(y_pred)
        valid_mask = ForecastMetrics.valid_mask(y_true, y_pred)

        if valid_mask.sum() == 0:
            return np.nan

        return float(np.sqrt(np.mean((y_true[valid_mask] - y_pred[valid_mask]) ** 2)))

    @staticmethod
    def mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Mean Absolute Error

        Returns NaN if no position has both actual and prediction.
        """
        y_true = _as_float_array(y_true)
        y_pred = _as_float_array(y_pred)
        valid_mask = ForecastMetrics.valid_mask(y_true, y_pred)

        if valid_mask.sum() == 0:
            return np.nan

        return float(np.mean(np.abs(y_true[valid_mask] - y_pred[valid_mask])))

    @staticmethod
    def mape(y_true: np.ndarray, y_pred: np.ndarray) -> float:
        """
        Mean Absolute Percentage Error (%)

        Only positions with a present, non-zero actual contribute.
        Returns NaN when no such position exists (e.g. all actuals zero).
        """
        y_true = _as_float_array(y_true)
        y_pred = _as_float_array(y_pred)
        valid_mask = ForecastMetrics.valid_mask(y_true, y_pred) & (y_true != 0)

        if valid_mask.sum() == 0:
            return np.nan

        ape = np.abs((y_true[valid_mask] - y_pred[valid_mask]) / y_true[valid_mask])
        return float(100 * np.mean(ape))

    @staticmethod
    def compute_all(y_true: np.ndarray, y_pred: np.ndarray) -> Dict[str, float]:
        """
        Compute all metrics at once

        Args:
            y_true: Actual values (NaN = missing)
            y_pred: Predictions

        Returns:
            Dictionary with rmse, mae, mape
        """
        return {
            "rmse": ForecastMetrics.rmse(y_true, y_pred),
            "mae": ForecastMetrics.mae(y_true, y_pred),
            "mape": ForecastMetrics.mape(y_true, y_pred),
        }


def compute_series_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    valid_threshold: int = 1,
) -> Dict[str, float]:
    """
    Compute metrics with explicit validation

    Args:
        y_true: Actual values
        y_pred: Predictions
        valid_threshold: Minimum valid positions required

    Returns:
        Dictionary of metrics plus valid_count
    """
    valid_count = int(ForecastMetrics.valid_mask(y_true, y_pred).sum())

    if valid_count < valid_threshold:
        logger.debug(f"Insufficient valid positions: {valid_count} < {valid_threshold}")
        return {
            "rmse": np.nan,
            "mae": np.nan,
            "mape": np.nan,
            "valid_count": valid_count,
        }

    metrics = ForecastMetrics.compute_all(y_true, y_pred)
    metrics["valid_count"] = valid_count

    return metrics
