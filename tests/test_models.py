"""
Model Adapter Tests

FitFailure policy (degenerate input, library errors, time budget,
degenerate forecasts) and the StatsForecast-backed model families.
"""

import threading

import numpy as np
import pandas as pd
import pytest

from src.climate_cv.config import EvaluationConfig
from src.climate_cv.errors import ConfigurationError, FitFailure
from src.climate_cv.models import (AutoARIMAModel, AutoETSModel,
                                   ForecastResult, ModelFactory)
from tests.conftest import (CollapsedIntervalModel, FlakyModel,
                            NaNForecastModel, SeasonalNaiveModel, SlowModel,
                            make_seasonal_values)


@pytest.mark.fail_loud
class TestFitFailurePolicy:

    def test_constant_series_fails(self):
        with pytest.raises(FitFailure, match="constant"):
            SeasonalNaiveModel().fit(np.full(36, 5.0), season_length=12)

    def test_too_short_for_season_fails(self):
        with pytest.raises(FitFailure, match="too short"):
            SeasonalNaiveModel().fit(make_seasonal_values(20), season_length=12)

    def test_min_train_size_override(self):
        fitted = SeasonalNaiveModel(min_train_size=12).fit(make_seasonal_values(20), season_length=12)

        assert fitted.n_obs == 20

    def test_early_gap_fits_on_contiguous_tail(self):
        y = make_seasonal_values(48)
        y[5] = np.nan

        fitted = SeasonalNaiveModel().fit(y, season_length=12)

        assert fitted.n_obs == 42
        np.testing.assert_array_equal(fitted.estimator.y, y[6:])

    def test_late_gap_leaves_too_short_tail(self):
        y = make_seasonal_values(36)
        y[20] = np.nan

        with pytest.raises(FitFailure, match="15 contiguous obs < 24"):
            SeasonalNaiveModel().fit(y, season_length=12)

    def test_trailing_missing_value_fails(self):
        y = make_seasonal_values(36)
        y[-1] = np.nan

        with pytest.raises(FitFailure, match="too short"):
            SeasonalNaiveModel().fit(y, season_length=12)

    def test_library_error_wrapped(self):
        model = FlakyModel(fail_lengths=[36])

        with pytest.raises(FitFailure, match="singular matrix") as excinfo:
            model.fit(make_seasonal_values(36), season_length=12)

        assert excinfo.value.model_name == "Flaky"
        assert excinfo.value.__cause__ is not None

    def test_time_budget_exceeded(self):
        model = SlowModel(fit_timeout=0.05)

        with pytest.raises(FitFailure, match="time budget"):
            model.fit(make_seasonal_values(36), season_length=12)

    def test_abandoned_fit_does_not_block_exit(self):
        model = SlowModel(fit_timeout=0.05)

        with pytest.raises(FitFailure, match="time budget"):
            model.fit(make_seasonal_values(36), season_length=12)

        workers = [t for t in threading.enumerate() if t.name == "Slow-fit"]
        assert workers
        assert all(t.daemon for t in workers)

    def test_library_error_wrapped_under_time_budget(self):
        model = FlakyModel(fail_lengths=[36], fit_timeout=10)

        with pytest.raises(FitFailure, match="singular matrix"):
            model.fit(make_seasonal_values(36), season_length=12)

    def test_time_budget_not_exceeded(self):
        model = SlowModel(fit_timeout=10)
        fitted = model.fit(make_seasonal_values(36), season_length=12)

        assert fitted.model_name == "Slow"

    def test_non_finite_forecast_fails(self):
        model = NaNForecastModel()
        fitted = model.fit(make_seasonal_values(36), season_length=12)

        with pytest.raises(FitFailure, match="degenerate point forecast"):
            model.forecast(fitted, horizon=3)

    def test_collapsed_interval_fails(self):
        model = CollapsedIntervalModel()
        fitted = model.fit(make_seasonal_values(36), season_length=12)

        # point forecast alone is fine
        assert model.forecast(fitted, horizon=3).horizon == 3
        with pytest.raises(FitFailure, match="80% prediction interval"):
            model.forecast(fitted, horizon=3, confidence_levels=(80, 95))

    def test_non_positive_horizon_is_config_error(self):
        model = SeasonalNaiveModel()
        fitted = model.fit(make_seasonal_values(36), season_length=12)

        with pytest.raises(ConfigurationError):
            model.forecast(fitted, horizon=0)


@pytest.mark.smoke
class TestForecastResult:

    def test_stub_forecast_shape_and_intervals(self):
        model = SeasonalNaiveModel()
        y = make_seasonal_values(36)
        fitted = model.fit(y, season_length=12)
        result = model.forecast(fitted, horizon=14, confidence_levels=(95, 80))

        assert result.horizon == 14
        assert result.levels == [80, 95]
        np.testing.assert_allclose(result.mean[:12], y[-12:])
        lo, hi = result.interval(95)
        assert np.all(lo < result.mean) and np.all(result.mean < hi)

    def test_missing_level_raises(self):
        result = ForecastResult("x", mean=np.array([1.0]))

        with pytest.raises(KeyError, match="No 80% interval"):
            result.interval(80)

    def test_to_frame_columns(self):
        result = ForecastResult(
            "x",
            mean=np.array([1.0, 2.0]),
            lower={80: np.array([0.5, 1.5])},
            upper={80: np.array([1.5, 2.5])},
        )
        frame = result.to_frame(index=pd.date_range("2020-01-01", periods=2, freq="MS"))

        assert list(frame.columns) == ["step", "ds", "yhat", "yhat_lo_80", "yhat_hi_80"]


@pytest.mark.smoke
class TestModelFactory:

    def test_create_known_models(self):
        assert isinstance(ModelFactory.create("sarima"), AutoARIMAModel)
        assert isinstance(ModelFactory.create("hw"), AutoETSModel)
        assert ModelFactory.list_models() == ["sarima", "hw"]

    def test_unknown_model_raises(self):
        with pytest.raises(ConfigurationError, match="Unknown model"):
            ModelFactory.create("prophet")

    def test_from_config_budgets(self):
        config = EvaluationConfig(max_models=20, fit_timeout=30.0)

        arima = ModelFactory.from_config("sarima", config)
        ets = ModelFactory.from_config("hw", config)

        assert arima.max_models == 20
        assert arima.fit_timeout == 30.0
        assert ets.fit_timeout == 30.0

    def test_display_names(self):
        assert AutoARIMAModel().get_name() == "(S)ARIMA"
        assert AutoETSModel().get_name() == "Holt-Winters"


class TestStatsForecastModels:
    """Real model families on a noisy seasonal series"""

    @pytest.mark.parametrize("model_cls", [AutoARIMAModel, AutoETSModel])
    def test_fit_forecast_with_intervals(self, model_cls):
        y = make_seasonal_values(60)
        model = model_cls()

        fitted = model.fit(y, season_length=12)
        result = model.forecast(fitted, horizon=6, confidence_levels=(80, 95))

        assert fitted.n_obs == 60
        assert result.horizon == 6
        assert np.isfinite(result.mean).all()
        lo80, hi80 = result.interval(80)
        lo95, hi95 = result.interval(95)
        assert np.all(lo95 <= lo80) and np.all(hi80 <= hi95)
        assert np.all(lo80 < result.mean) and np.all(result.mean < hi80)

    @pytest.mark.parametrize("model_cls", [AutoARIMAModel, AutoETSModel])
    def test_deterministic(self, model_cls):
        y = make_seasonal_values(48)
        model = model_cls()

        first = model.forecast(model.fit(y), horizon=3).mean
        second = model.forecast(model.fit(y), horizon=3).mean

        np.testing.assert_allclose(first, second)

    @pytest.mark.parametrize("model_cls", [AutoARIMAModel, AutoETSModel])
    def test_seasonal_forecast_tracks_cycle(self, model_cls):
        """Forecast of a strongly seasonal series stays near the cycle"""
        y = make_seasonal_values(72, noise=0.1)
        truth = make_seasonal_values(84, noise=0.0)[72:]
        model = model_cls()

        result = model.forecast(model.fit(y, season_length=12), horizon=12)

        assert np.max(np.abs(result.mean - truth)) < 3.0
