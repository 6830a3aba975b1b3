"""
Monthly Series Contract Tests

Fail-loud gates: gaps, duplicates, ordering, non-numeric values.
"""

import numpy as np
import pandas as pd
import pytest

from src.climate_cv.errors import SeriesContractError
from src.climate_cv.series import (MonthlySeries, build_monthly_frame,
                                   parse_month, to_monthly_series,
                                   validate_monthly_index)


@pytest.mark.fail_loud
class TestMonthlyIndex:

    def test_valid_index(self):
        index = pd.date_range("2014-01-01", periods=24, freq="MS")
        result = validate_monthly_index(index)

        assert result.is_valid
        assert result.n_missing_months == 0

    def test_gap_detected(self):
        index = pd.date_range("2014-01-01", periods=24, freq="MS").delete(5)
        result = validate_monthly_index(index)

        assert not result.is_valid
        assert result.n_missing_months == 1
        assert result.missing_months[0] == pd.Timestamp("2014-06-01")

    def test_duplicate_detected(self):
        index = pd.DatetimeIndex(["2014-01-01", "2014-02-01", "2014-02-01", "2014-03-01"])
        result = validate_monthly_index(index)

        assert not result.is_valid
        assert result.n_duplicates == 2

    def test_unsorted_detected(self):
        index = pd.DatetimeIndex(["2014-02-01", "2014-01-01", "2014-03-01"])
        result = validate_monthly_index(index)

        assert not result.is_valid
        assert not result.is_monotonic

    def test_series_with_gap_raises(self):
        index = pd.date_range("2014-01-01", periods=12, freq="MS").delete(3)
        with pytest.raises(SeriesContractError, match="missing_months=1"):
            MonthlySeries("Temperature", np.arange(11.0), index=index)

    def test_index_length_mismatch_raises(self):
        index = pd.date_range("2014-01-01", periods=12, freq="MS")
        with pytest.raises(SeriesContractError, match="index length"):
            MonthlySeries("Temperature", np.arange(10.0), index=index)


@pytest.mark.fail_loud
class TestMonthlySeriesValues:

    def test_values_read_only(self):
        series = MonthlySeries("Temperature", [1.0, 2.0, 3.0])

        with pytest.raises(ValueError):
            series.values[0] = 10.0

    def test_input_not_aliased(self):
        raw = np.array([1.0, 2.0, 3.0])
        series = MonthlySeries("Temperature", raw)
        raw[0] = 99.0

        assert series.values[0] == 1.0

    def test_missing_kept_as_nan(self):
        series = MonthlySeries("Precipitation", [1.0, None, 0.0])

        assert series.n_missing == 1
        assert np.isnan(series.values[1])
        assert series.values[2] == 0.0

    def test_two_dimensional_raises(self):
        with pytest.raises(SeriesContractError, match="1-D"):
            MonthlySeries("Temperature", np.ones((3, 2)))

    def test_timestamps(self):
        index = pd.date_range("2014-01-01", periods=6, freq="MS")
        series = MonthlySeries("Temperature", np.arange(6.0), index=index)

        assert list(series.timestamps([4, 5])) == [pd.Timestamp("2014-05-01"), pd.Timestamp("2014-06-01")]
        assert MonthlySeries("x", [1.0]).timestamps([0]) is None


@pytest.mark.smoke
class TestMonthlyFrame:

    def test_parse_month_variants(self):
        assert parse_month(3) == 3
        assert parse_month("03") == 3
        assert parse_month("March") == 3
        assert parse_month("mar") == 3
        assert parse_month(12.0) == 12

    def test_parse_month_invalid(self):
        with pytest.raises(SeriesContractError):
            parse_month("Smarch")
        with pytest.raises(SeriesContractError):
            parse_month(13)

    def test_build_frame_sorts_and_indexes(self):
        df = pd.DataFrame({
            "Year": [2014, 2014, 2014],
            "Month": ["March", "January", "February"],
            "Temperature": [3.0, 1.0, 2.0],
        })

        frame = build_monthly_frame(df)

        assert list(frame["ds"]) == list(pd.date_range("2014-01-01", periods=3, freq="MS"))
        assert list(frame["Temperature"]) == [1.0, 2.0, 3.0]

    def test_build_frame_gap_raises(self):
        df = pd.DataFrame({"Year": [2014, 2014], "Month": [1, 3], "Temperature": [1.0, 3.0]})

        with pytest.raises(SeriesContractError):
            build_monthly_frame(df)

    def test_non_numeric_value_raises(self):
        df = pd.DataFrame({
            "Year": [2014, 2014],
            "Month": [1, 2],
            "Temperature": ["1.5", "NOT_A_NUMBER"],
        })
        frame = build_monthly_frame(df)

        with pytest.raises((ValueError, TypeError)):
            to_monthly_series(frame, "Temperature")

    def test_unknown_variable_raises(self):
        df = pd.DataFrame({"Year": [2014], "Month": [1], "Temperature": [1.0]})
        frame = build_monthly_frame(df)

        with pytest.raises(SeriesContractError, match="WindSpeed"):
            to_monthly_series(frame, "WindSpeed")
