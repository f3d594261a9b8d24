"""
KPI tests: daily statistics, product shares, progress and run rate.
"""

import pandas as pd
import pytest

from branch_dashboard.kpis import (
    achievement_pct,
    average_daily_amount,
    calc_variance,
    classify_progress,
    contribution_pct,
    daily_run_rate,
    highest_day,
    product_contributions,
    product_target_vs_achievement,
    target_due_status,
    top_product,
)

D1 = pd.Timestamp("2024-01-01")
D2 = pd.Timestamp("2024-01-02")


class TestDailyStatistics:

    def test_average_daily_amount(self):
        assert average_daily_amount({D1: 100.0, D2: 300.0}) == 200.0

    def test_average_of_nothing_is_zero(self):
        assert average_daily_amount({}) == 0.0

    def test_highest_day_tie_goes_to_first(self):
        assert highest_day({D1: 300.0, D2: 300.0}) == {"date": D1, "amount": 300.0}

    def test_highest_day_without_data(self):
        assert highest_day({}) == {"date": "N/A", "amount": 0.0}


class TestProducts:

    def test_top_product(self):
        assert top_product({"A": 100.0, "B": 300.0, "C": 200.0}) == "B"

    def test_top_product_without_positive_totals(self):
        assert top_product({}) == "N/A"
        assert top_product({"A": 0.0}) == "N/A"

    def test_contribution_pct(self):
        shares = contribution_pct({"A": 100.0, "B": 300.0})
        assert shares == {"A": 25.0, "B": 75.0}

    def test_contribution_pct_all_zero(self):
        assert contribution_pct({"A": 0.0, "B": 0.0}) == {"A": 0.0, "B": 0.0}

    def test_product_contributions_sorted_desc(self):
        df = product_contributions({"A": 100.0, "B": 300.0, "C": 0.0})
        assert list(df["product"]) == ["B", "A"]
        assert list(df["pct"]) == [75.0, 25.0]

    def test_product_contributions_empty(self):
        df = product_contributions({})
        assert df.empty
        assert list(df.columns) == ["product", "value", "pct"]


class TestProgress:

    def test_calc_variance(self):
        assert calc_variance(110, 100) == (10, 10.0)
        assert calc_variance(5, 0) == (5, None)

    @pytest.mark.parametrize("achieved, target, expected", [
        (50, 200, 25.0),
        (10, 0, 100.0),
        (0, 0, 0.0),
    ])
    def test_achievement_pct(self, achieved, target, expected):
        assert achievement_pct(achieved, target) == expected

    @pytest.mark.parametrize("pct, band", [
        (120, "green"),
        (100, "green"),
        (75, "amber"),
        (74.9, "orange"),
        (50, "orange"),
        (49.99, "red"),
        (None, "grey"),
    ])
    def test_classify_progress(self, pct, band):
        assert classify_progress(pct) == band


class TestRunRate:

    def test_remaining_target_spread_over_days_left(self):
        result = daily_run_rate(3100, 31, 1100, 11, "2024-01-22")
        assert result["days_in_month"] == 31
        assert result["days_remaining_in_month"] == 10
        assert result["remaining_target_amount"] == 2000
        assert result["daily_run_rate_amount"] == 200.0
        assert result["daily_run_rate_account"] == 2.0
        assert result["month"] == "2024-01"

    def test_overachievement_floors_at_zero(self):
        result = daily_run_rate(100, 1, 500, 5, "2024-02-29")
        assert result["days_remaining_in_month"] == 1
        assert result["remaining_target_amount"] == 0.0
        assert result["daily_run_rate_amount"] == 0.0

    def test_invalid_date_raises(self):
        with pytest.raises(ValueError):
            daily_run_rate(1, 1, 0, 0, "someday")


@pytest.mark.parametrize("today, status, days", [
    ("2024-01-20", "on_track", 11),
    ("2024-01-25", "due_soon", 6),
    ("2024-01-31", "due_today", 0),
    ("2024-02-01", "overdue", -1),
])
def test_target_due_status(today, status, days):
    assert target_due_status("2024-01-31", today) == {"status": status, "days_remaining": days}


def test_target_without_due_date():
    assert target_due_status(None, "2024-01-20")["status"] == "no_due_date"


def test_product_target_vs_achievement(make_fact, catalog):
    targets = make_fact([
        ("2024-01-01", "S1", None, "DDS AMT", 1000, "target"),
        ("2024-01-01", "S1", None, "FD AMT", 1000, "target"),
        ("2024-01-01", "S1", None, "GRAND TOTAL AMT", 1500, "target"),
        ("2024-01-01", "S1", None, "DDS AC", 10, "target"),
    ])
    achievements = make_fact([
        ("2024-01-04", "S1", "B1", "DDS AMT", 500),
        ("2024-01-04", "S1", "B1", "DDS AC", 4),
    ])
    table = product_target_vs_achievement(targets, achievements, catalog)

    assert list(table["product"]) == ["GRAND TOTAL", "DDS", "FD"]
    grand = table.iloc[0]
    assert grand["amount_target"] == 1500.0
    assert grand["amount_achieved"] == 500.0
    assert grand["account_pct"] == 40.0

    dds = table.iloc[1]
    assert dds["amount_pct"] == 50.0
    assert dds["account_target"] == 10.0
    assert table.iloc[2]["amount_pct"] == 0.0
