"""Shared fixtures: synthetic monthly series and deterministic model stubs."""

import time

import numpy as np
import pandas as pd
import pytest

from src.climate_cv.models import ForecastModel
from src.climate_cv.series import MonthlySeries


class SeasonalNaiveEstimator:
    """Repeats the last observed season; fixed-width intervals"""

    def __init__(self, season_length: int, width: float = 1.0):
        self.season_length = season_length
        self.width = width
        self.y = None

    def fit(self, y):
        self.y = np.asarray(y, dtype=float)
        return self

    def predict(self, h, level=None):
        last = self.y[-self.season_length:]
        mean = np.array([last[i % self.season_length] for i in range(h)])
        out = {"mean": mean}
        for lv in level or []:
            half = self.width * lv / 100
            out[f"lo-{lv}"] = mean - half
            out[f"hi-{lv}"] = mean + half
        return out


class SeasonalNaiveModel(ForecastModel):
    def _build_estimator(self, season_length: int):
        return SeasonalNaiveEstimator(season_length)

    def get_name(self) -> str:
        return "SeasonalNaive"


class _ExplodingEstimator(SeasonalNaiveEstimator):
    def __init__(self, season_length, fail_lengths):
        super().__init__(season_length)
        self.fail_lengths = fail_lengths

    def fit(self, y):
        if len(y) in self.fail_lengths:
            raise np.linalg.LinAlgError("singular matrix")
        return super().fit(y)


class FlakyModel(ForecastModel):
    """Fails to fit for chosen training lengths"""

    def __init__(self, fail_lengths, **kwargs):
        super().__init__(**kwargs)
        self.fail_lengths = set(fail_lengths)

    def _build_estimator(self, season_length: int):
        return _ExplodingEstimator(season_length, self.fail_lengths)

    def get_name(self) -> str:
        return "Flaky"


class _SlowEstimator(SeasonalNaiveEstimator):
    def fit(self, y):
        time.sleep(0.5)
        return super().fit(y)


class SlowModel(ForecastModel):
    def _build_estimator(self, season_length: int):
        return _SlowEstimator(season_length)

    def get_name(self) -> str:
        return "Slow"


class _NaNEstimator(SeasonalNaiveEstimator):
    def predict(self, h, level=None):
        out = super().predict(h, level)
        out["mean"] = np.full(h, np.nan)
        return out


class NaNForecastModel(ForecastModel):
    def _build_estimator(self, season_length: int):
        return _NaNEstimator(season_length)

    def get_name(self) -> str:
        return "NaNForecast"


class _CollapsedIntervalEstimator(SeasonalNaiveEstimator):
    def __init__(self, season_length):
        super().__init__(season_length, width=0.0)


class CollapsedIntervalModel(ForecastModel):
    def _build_estimator(self, season_length: int):
        return _CollapsedIntervalEstimator(season_length)

    def get_name(self) -> str:
        return "Collapsed"


def make_seasonal_values(n: int = 84, noise: float = 0.5, seed: int = 42) -> np.ndarray:
    rng = np.random.default_rng(seed)
    t = np.arange(n)
    return 15 + 8 * np.sin(2 * np.pi * t / 12) + 0.02 * t + rng.normal(0, noise, n)


def make_series(name: str = "Temperature", n: int = 84, **kwargs) -> MonthlySeries:
    index = pd.date_range("2014-01-01", periods=n, freq="MS")
    return MonthlySeries(name=name, values=make_seasonal_values(n, **kwargs), index=index)


@pytest.fixture
def seasonal_series():
    return make_series()


@pytest.fixture
def cycle_series():
    """48 monthly points: one 4-year pattern [10, 12, 11, 13, ...]"""
    base = [10, 12, 11, 13, 15, 18, 21, 20, 17, 14, 12, 11]
    values = np.array(base * 4, dtype=float) + np.repeat([0.0, 0.3, 0.1, 0.4], 12)
    index = pd.date_range("2014-01-01", periods=48, freq="MS")
    return MonthlySeries(name="Temperature", values=values, index=index)


@pytest.fixture
def naive_model():
    return SeasonalNaiveModel()
