"""
Transform tests: typed records and wide uploads into the record fact table.
"""

import logging

import pandas as pd

from branch_dashboard.aggregation import aggregate_grand_total
from branch_dashboard.models import Record
from branch_dashboard.transforms import (
    RECORD_COLUMNS,
    build_fact_achievement,
    build_fact_records,
    empty_fact_table,
    normalise_fact_table,
    summarise_upload,
)


class TestFactRecords:

    def test_schema_and_types(self):
        fact = build_fact_records([
            Record("achievement", "05/01/2024", "DDS AMT", "1,200", employee_code=" S1 ", branch_name="B1"),
            Record("target", "2024-01-01", "DDS AMT", 5000, branch_name="B1", due_date="2024-01-31"),
        ])
        assert list(fact.columns) == RECORD_COLUMNS
        assert fact.loc[0, "date"] == pd.Timestamp("2024-01-05")
        assert fact.loc[0, "value"] == 1200.0
        assert fact.loc[0, "employee_code"] == "S1"
        assert fact.loc[1, "employee_code"] is None
        assert fact.loc[1, "due_date"] == pd.Timestamp("2024-01-31")
        assert fact.loc[1, "entry_id"] is None

    def test_empty_input(self):
        fact = build_fact_records([])
        assert fact.empty
        assert list(fact.columns) == RECORD_COLUMNS

    def test_normalise_blanks_and_missing_columns(self):
        raw = pd.DataFrame({
            "kind": ["achievement"],
            "date": ["2024-01-05 17:45"],
            "metric": ["DDS AMT"],
            "value": ["abc"],
            "branch_name": ["   "],
        })
        fact = normalise_fact_table(raw)
        assert list(fact.columns) == RECORD_COLUMNS
        assert fact.loc[0, "date"] == pd.Timestamp("2024-01-05")
        assert pd.isna(fact.loc[0, "value"])
        assert fact.loc[0, "branch_name"] is None
        assert fact.loc[0, "employee_code"] is None


class TestWideUpload:

    def test_melt_drops_derived_columns(self, wide_upload, staff):
        fact = build_fact_achievement(wide_upload, staff)
        assert "TOTAL AMOUNTS" not in set(fact["metric"])
        assert "STAFF NAME" not in set(fact["metric"])
        assert set(fact["metric"]) == {
            "DDS AMT", "FD AMT", "DDS AC", "GRAND TOTAL AMT", "GRAND TOTAL AC",
        }
        assert (fact["kind"] == "achievement").all()

    def test_staff_resolved_by_name_or_code(self, wide_upload, staff):
        fact = build_fact_achievement(wide_upload, staff)
        first_day = fact[fact["date"] == pd.Timestamp("2024-01-05")]
        second_day = fact[fact["date"] == pd.Timestamp("2024-01-06")]
        assert set(first_day["employee_code"]) == {"S1"}
        assert set(second_day["employee_code"]) == {"S2"}

    def test_unresolved_staff_keeps_branch(self, wide_upload, caplog):
        with caplog.at_level(logging.WARNING):
            fact = build_fact_achievement(wide_upload, staff=[])
        assert fact["employee_code"].isna().all()
        assert set(fact["branch_name"]) == {"B1"}
        assert "not in the directory" in caplog.text

    def test_unresolved_rows_on_same_day_stay_separate(self, catalog):
        upload = pd.DataFrame([
            {"DATE": "05/01/2024", "STAFF NAME": "NEW JOINER ONE", "BRANCH NAME": "B1",
             "DDS AMT": 300, "GRAND TOTAL AMT": 300},
            {"DATE": "05/01/2024", "STAFF NAME": "NEW JOINER TWO", "BRANCH NAME": "B1",
             "DDS AMT": 300, "GRAND TOTAL AMT": 300},
        ])
        fact = build_fact_achievement(upload, staff=[])
        assert fact["employee_code"].isna().all()
        assert set(fact["entry_id"]) == {"achievement-1", "achievement-2"}
        assert aggregate_grand_total(fact, catalog)["amount_total"] == 600.0
        assert summarise_upload(fact, catalog)["total_amount"] == 600.0

    def test_empty_or_undated_upload(self):
        assert build_fact_achievement(pd.DataFrame()).empty
        no_date = pd.DataFrame([{"STAFF NAME": "S1", "DDS AMT": 1}])
        assert build_fact_achievement(no_date).empty

    def test_summary_prefers_explicit_grand_totals(self, wide_upload, staff, catalog):
        fact = build_fact_achievement(wide_upload, staff)
        summary = summarise_upload(fact, catalog)
        assert summary["staff_count"] == 2
        assert summary["branch_count"] == 1
        assert summary["start_date"] == pd.Timestamp("2024-01-05")
        assert summary["end_date"] == pd.Timestamp("2024-01-06")
        # Row two carries an explicit 60 against a constituent sum of 50
        assert summary["total_amount"] == 360.0
        assert summary["total_accounts"] == 1.0


def test_summary_of_empty_table():
    summary = summarise_upload(empty_fact_table())
    assert summary["staff_count"] == 0
    assert summary["start_date"] is None
    assert summary["total_amount"] == 0.0
