"""
Utility tests: date normalisation, numeric coercion and calendar windows.
"""

from datetime import date, datetime

import numpy as np
import pandas as pd
import pytest

from branch_dashboard.utils import (
    days_in_month,
    days_remaining_in_month,
    month_key,
    month_start,
    mtd_window,
    normalise_date,
    normalise_date_series,
    safe_float,
    ytd_window,
)

JAN_5 = pd.Timestamp("2024-01-05")


class TestNormaliseDate:

    @pytest.mark.parametrize("value", [
        "05/01/2024",
        "2024-01-05",
        "2024-01-05T10:30:00",
        datetime(2024, 1, 5, 23, 59),
        date(2024, 1, 5),
        pd.Timestamp("2024-01-05 23:30", tz="Asia/Kolkata"),
        np.datetime64("2024-01-05T12:00"),
        45296,
    ])
    def test_date_like_values(self, value):
        assert normalise_date(value) == JAN_5

    @pytest.mark.parametrize("value", [None, "", "   ", "garbage", True, float("nan"), pd.NaT, [2024]])
    def test_missing_or_invalid(self, value):
        assert normalise_date(value) is None

    def test_series(self):
        series = pd.Series(["05/01/2024", None, "bad", "2024-01-06 08:00"])
        result = normalise_date_series(series)
        assert result.iloc[0] == JAN_5
        assert pd.isna(result.iloc[1])
        assert pd.isna(result.iloc[2])
        assert result.iloc[3] == pd.Timestamp("2024-01-06")

    def test_tz_aware_series_keeps_wall_clock_date(self):
        series = pd.Series(pd.to_datetime(["2024-01-05 23:30"]).tz_localize("Asia/Kolkata"))
        assert normalise_date_series(series).iloc[0] == JAN_5


class TestSafeFloat:

    @pytest.mark.parametrize("value, expected", [
        (3, 3.0),
        ("1,234.5", 1234.5),
        (" 42 ", 42.0),
        ("abc", None),
        ("", None),
        (None, None),
        ("inf", None),
        (float("nan"), None),
    ])
    def test_coercion(self, value, expected):
        assert safe_float(value) == expected


class TestCalendar:

    def test_month_helpers(self):
        assert month_start("2024-03-17") == pd.Timestamp("2024-03-01")
        assert month_key("17/03/2024") == "2024-03"
        assert month_start("never") is None

    def test_days_in_month(self):
        assert days_in_month(2024, 2) == 29
        assert days_in_month(2023, 2) == 28

    def test_days_remaining_counts_today(self):
        assert days_remaining_in_month("2024-02-29") == 1
        assert days_remaining_in_month("2024-01-01") == 31

    def test_windows(self):
        assert mtd_window("2024-03-15") == (pd.Timestamp("2024-03-01"), pd.Timestamp("2024-03-15"))
        assert ytd_window("2024-03-15") == (pd.Timestamp("2024-01-01"), pd.Timestamp("2024-03-15"))

    def test_window_with_bad_date_raises(self):
        with pytest.raises(ValueError):
            mtd_window("bad")
        with pytest.raises(ValueError):
            ytd_window(None)
