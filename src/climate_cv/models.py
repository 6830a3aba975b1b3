# file: src/climate_cv/models.py
"""
Forecast Model Adapters

Uniform fit/forecast interface over two automatically-selected model families:
1. (S)ARIMA - order search (incl. seasonal terms and differencing) by information criterion
2. Holt-Winters / ETS - error/trend/season components selected by information criterion

Both are backed by StatsForecast. Any fit that cannot produce a usable
forecast surfaces as FitFailure; there is no fallback forecast.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import ConfigurationError, FitFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FittedModel:
    """Opaque fitted estimator for one train segment (never reused across folds)"""
    model_name: str
    estimator: Any
    n_obs: int
    season_length: int
    fit_time: float


@dataclass
class ForecastResult:
    """Point forecast with optional prediction intervals keyed by confidence level"""
    model_name: str
    mean: np.ndarray
    lower: Dict[int, np.ndarray] = field(default_factory=dict)
    upper: Dict[int, np.ndarray] = field(default_factory=dict)
    forecast_time: float = 0.0

    @property
    def horizon(self) -> int:
        return len(self.mean)

    @property
    def levels(self) -> List[int]:
        return sorted(self.lower)

    def interval(self, level: int):
        """(lower, upper) bounds at a confidence level"""
        if level not in self.lower:
            raise KeyError(f"No {level}% interval in forecast (have {self.levels})")
        return self.lower[level], self.upper[level]

    def to_frame(self, index: Optional[pd.DatetimeIndex] = None) -> pd.DataFrame:
        """
        Plain tabular export: step, [ds], yhat, yhat_lo_<level>, yhat_hi_<level>
        """
        frame = pd.DataFrame({"step": np.arange(1, self.horizon + 1)})
        if index is not None:
            frame["ds"] = index
        frame["yhat"] = self.mean
        for level in self.levels:
            frame[f"yhat_lo_{level}"] = self.lower[level]
            frame[f"yhat_hi_{level}"] = self.upper[level]
        return frame


class ForecastModel(ABC):
    """Base class for forecasting model families"""

    def __init__(self, fit_timeout: Optional[float] = None, min_train_size: Optional[int] = None):
        """
        Args:
            fit_timeout: Seconds allowed per fit; exceeded -> FitFailure. The
                abandoned fit runs on in a daemon thread until it returns.
            min_train_size: Minimum train length (default: 2 * season_length)
        """
        self.fit_timeout = fit_timeout
        self.min_train_size = min_train_size

    @abstractmethod
    def _build_estimator(self, season_length: int):
        """Create an unfitted StatsForecast model"""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Model name"""
        pass

    @staticmethod
    def _contiguous_tail(y: np.ndarray) -> np.ndarray:
        """Longest run of non-missing values that ends at the last observation"""
        missing = np.flatnonzero(np.isnan(y))
        if len(missing) == 0:
            return y
        return y[missing[-1] + 1:]

    def _check_training_input(self, y: np.ndarray, season_length: int) -> np.ndarray:
        """Trim to the contiguous tail and reject degenerate segments"""
        name = self.get_name()
        min_size = self.min_train_size or 2 * season_length

        usable = self._contiguous_tail(y)
        if len(usable) < len(y):
            logger.debug(
                f"{name}: {int(np.isnan(y).sum())} missing values, "
                f"fitting on last {len(usable)} of {len(y)} obs"
            )

        if len(usable) < min_size:
            raise FitFailure(
                name, f"train segment too short for season_length={season_length}: "
                      f"{len(usable)} contiguous obs < {min_size}"
            )
        if np.ptp(usable) == 0:
            raise FitFailure(name, "train segment is constant")

        return usable

    def _run_fit(self, estimator, y: np.ndarray):
        if self.fit_timeout is None:
            return estimator.fit(y)

        outcome: Dict[str, Any] = {}

        def target():
            try:
                outcome["fitted"] = estimator.fit(y)
            except Exception as e:
                outcome["error"] = e

        # Abandoned fits must not block interpreter exit
        worker = threading.Thread(target=target, name=f"{self.get_name()}-fit", daemon=True)
        worker.start()
        worker.join(self.fit_timeout)

        if worker.is_alive():
            raise FitFailure(
                self.get_name(), f"fit exceeded time budget of {self.fit_timeout}s"
            )
        if "error" in outcome:
            raise outcome["error"]
        return outcome["fitted"]

    def fit(self, y: Sequence[float], season_length: int = 12) -> FittedModel:
        """
        Fit the model family to one train segment

        Args:
            y: Training values (contiguous prefix of the series); missing values
               restrict the fit to the run after the last gap
            season_length: Observations per seasonal cycle

        Returns:
            FittedModel

        Raises:
            FitFailure: degenerate input, library error, or time budget exceeded
        """
        y = self._check_training_input(np.asarray(y, dtype=float), season_length)

        estimator = self._build_estimator(season_length)

        start_time = time.time()
        try:
            fitted = self._run_fit(estimator, y)
        except FitFailure:
            raise
        except Exception as e:
            raise FitFailure(self.get_name(), f"fit failed: {e}") from e
        fit_time = time.time() - start_time

        logger.debug(f"{self.get_name()} fitted on {len(y)} obs in {fit_time:.2f}s")

        return FittedModel(
            model_name=self.get_name(),
            estimator=fitted,
            n_obs=len(y),
            season_length=season_length,
            fit_time=fit_time,
        )

    def forecast(
        self,
        fitted: FittedModel,
        horizon: int,
        confidence_levels: Optional[Sequence[int]] = None,
    ) -> ForecastResult:
        """
        Forecast `horizon` steps ahead from a fitted model

        Args:
            fitted: Result of fit()
            horizon: Number of steps
            confidence_levels: e.g. (80, 95); None for point forecast only

        Raises:
            FitFailure: non-finite forecast or collapsed interval
        """
        name = self.get_name()
        if horizon < 1:
            raise ConfigurationError("horizon must be >= 1", model=name, horizon=horizon)

        levels = sorted(int(lv) for lv in confidence_levels) if confidence_levels else []

        start_time = time.time()
        try:
            raw = fitted.estimator.predict(h=horizon, level=levels or None)
        except Exception as e:
            raise FitFailure(name, f"forecast failed: {e}") from e
        forecast_time = time.time() - start_time

        mean = np.asarray(raw["mean"], dtype=float)
        if len(mean) != horizon or not np.isfinite(mean).all():
            raise FitFailure(name, "degenerate point forecast (non-finite or wrong length)")

        lower: Dict[int, np.ndarray] = {}
        upper: Dict[int, np.ndarray] = {}
        for level in levels:
            lo = np.asarray(raw[f"lo-{level}"], dtype=float)
            hi = np.asarray(raw[f"hi-{level}"], dtype=float)
            if not (np.isfinite(lo).all() and np.isfinite(hi).all()) or np.any(hi <= lo):
                raise FitFailure(name, f"degenerate {level}% prediction interval")
            lower[level] = lo
            upper[level] = hi

        return ForecastResult(
            model_name=name,
            mean=mean,
            lower=lower,
            upper=upper,
            forecast_time=forecast_time,
        )


class AutoARIMAModel(ForecastModel):
    """Seasonal ARIMA with automatic order selection"""

    def __init__(self, max_models: int = 94, fit_timeout: Optional[float] = None,
                 min_train_size: Optional[int] = None):
        super().__init__(fit_timeout=fit_timeout, min_train_size=min_train_size)
        self.max_models = max_models

    def _build_estimator(self, season_length: int):
        from statsforecast.models import AutoARIMA

        return AutoARIMA(season_length=season_length, nmodels=self.max_models)

    def get_name(self) -> str:
        return "(S)ARIMA"


class AutoETSModel(ForecastModel):
    """Holt-Winters via the ETS state-space formulation with automatic component selection"""

    def __init__(self, model: str = "ZZZ", fit_timeout: Optional[float] = None,
                 min_train_size: Optional[int] = None):
        super().__init__(fit_timeout=fit_timeout, min_train_size=min_train_size)
        self.model = model

    def _build_estimator(self, season_length: int):
        from statsforecast.models import AutoETS

        return AutoETS(season_length=season_length, model=self.model)

    def get_name(self) -> str:
        return "Holt-Winters"


class ModelFactory:
    """Factory for creating model instances"""

    _models = {
        "sarima": AutoARIMAModel,
        "hw": AutoETSModel,
    }

    @classmethod
    def create(cls, model_name: str, **kwargs) -> ForecastModel:
        """Create model by key ("sarima" or "hw")"""
        if model_name not in cls._models:
            raise ConfigurationError(
                f"Unknown model: {model_name}", available=cls.list_models()
            )

        return cls._models[model_name](**kwargs)

    @classmethod
    def from_config(cls, model_name: str, config) -> ForecastModel:
        """Create model with budgets taken from an EvaluationConfig"""
        kwargs = {"fit_timeout": config.fit_timeout}
        if model_name == "sarima":
            kwargs["max_models"] = config.max_models
        return cls.create(model_name, **kwargs)

    @classmethod
    def list_models(cls) -> List[str]:
        """List available model keys"""
        return list(cls._models.keys())
