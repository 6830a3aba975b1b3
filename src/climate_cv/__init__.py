"""
Climate CV: forecast validation for monthly climatic series

Implements holdout and rolling-origin evaluation of two model families:
- Validation protocols (80/20 holdout, expanding-window walk-forward)
- Model adapters ((S)ARIMA and Holt-Winters/ETS via StatsForecast)
- Evaluation metrics (RMSE, MAE, MAPE) with explicit missing-value policy
- Result aggregation (per-fold tables, mean +/- SD summaries)
"""

from .aggregation import ResultAggregator, summarize_folds
from .backtesting import (BacktestSplit, ExpandingWindowBacktest, HoldoutSplit,
                          validate_backtesting_splits)
from .config import EvaluationConfig, load_config
from .errors import ConfigurationError, FitFailure, SeriesContractError
from .evaluation import ForecastMetrics, compute_series_metrics
from .models import (AutoARIMAModel, AutoETSModel, FittedModel, ForecastModel,
                     ForecastResult, ModelFactory)
from .series import MonthlySeries, build_monthly_frame, to_monthly_series
from .tasks import RunReport, run_all, run_holdout, run_rolling_origin
from .training import FoldMetric, HoldoutResult, holdout_eval, rolling_origin_eval

__all__ = [
    # Series
    "MonthlySeries",
    "build_monthly_frame",
    "to_monthly_series",
    # Backtesting
    "BacktestSplit",
    "HoldoutSplit",
    "ExpandingWindowBacktest",
    "validate_backtesting_splits",
    # Models
    "ForecastModel",
    "AutoARIMAModel",
    "AutoETSModel",
    "FittedModel",
    "ForecastResult",
    "ModelFactory",
    # Evaluation
    "ForecastMetrics",
    "compute_series_metrics",
    "FoldMetric",
    "HoldoutResult",
    "holdout_eval",
    "rolling_origin_eval",
    # Aggregation
    "ResultAggregator",
    "summarize_folds",
    # Runs
    "EvaluationConfig",
    "load_config",
    "RunReport",
    "run_holdout",
    "run_rolling_origin",
    "run_all",
    # Errors
    "ConfigurationError",
    "FitFailure",
    "SeriesContractError",
]
