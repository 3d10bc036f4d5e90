"""
Tests for the chart aggregates.

Each aggregate is checked against a hand-computed result and against the
properties the views rely on (every record counted once, shares summing to
100, percentages bounded).
"""

import pandas as pd
import pytest

from lmdash.services.aggregates import (
    DEFAULT_MODELS,
    SizeGroup,
    calculate_size_groups,
    cross_tab_type_model,
    enrollment_time_series,
    model_enrollment_share,
    model_order,
    monthly_totals,
    size_group_by_model,
    virtual_share_for_month,
    virtual_share_keys,
    virtual_share_per_district_month,
)
from lmdash.services.datastore import empty_records
from lmdash.services.pipeline import apply_time_filter
from lmdash.utils.periods import YearMonth


def _counts(rows):
    return {(r["size_group"], r["learning_model"]): r["count"] for r in rows}


class TestSizeGroups:

    def test_fixed_buckets_and_open_bucket(self, records):
        groups = calculate_size_groups(records)

        assert [g.label for g in groups] == ["0-199", "200-399", "400-599", "600-799", "800+"]
        assert groups[0] == SizeGroup(0, 200, "0-199")
        assert groups[-1].open_ended
        assert groups[-1].min == 800

    def test_open_bucket_ceiling_is_capped(self, records):
        # max enrollment is 1200
        assert calculate_size_groups(records)[-1].max == 999

    def test_open_bucket_ceiling_follows_filtered_max(self, records):
        jan = apply_time_filter(records, 2021, 1)

        assert calculate_size_groups(jan)[-1].max == 199

    def test_empty_working_set(self):
        assert calculate_size_groups(empty_records())[-1].max == 0

    def test_only_the_open_bucket_is_unbounded(self):
        assert SizeGroup(0, 200, "0-199").upper == 200
        assert SizeGroup(800, 999, "800+", open_ended=True).upper == float("inf")


class TestSizeGroupByModel:

    def test_every_record_counted_once(self, records):
        rows = size_group_by_model(records)

        assert sum(r["count"] for r in rows) == len(records)

    def test_bucket_boundaries(self, records):
        counts = _counts(size_group_by_model(records))

        assert counts[("0-199", "In-person")] == 1  # 199
        assert counts[("200-399", "Virtual")] == 1  # 200
        assert counts[("400-599", "Virtual")] == 1  # 400
        assert counts[("800+", "In-person")] == 1  # 850
        assert counts[("800+", "Closed")] == 1  # 1200, above the display ceiling

    def test_open_bucket_takes_values_above_its_ceiling(self):
        frame = pd.DataFrame(
            {"learning_model": ["Virtual"] * 3, "enrollment_total": [799, 800, 5000]}
        )

        counts = _counts(size_group_by_model(frame))

        assert counts[("600-799", "Virtual")] == 1
        assert counts[("800+", "Virtual")] == 2

    def test_dense_cross_product(self, records):
        rows = size_group_by_model(records)

        assert len(rows) == 5 * len(DEFAULT_MODELS)
        assert _counts(rows)[("600-799", "Hybrid")] == 0

    def test_unknown_model_gets_its_own_column(self, records):
        extra = records.copy()
        extra.loc[0, "learning_model"] = "Hybrid-Rotation"

        rows = size_group_by_model(extra)

        assert len(rows) == 5 * (len(DEFAULT_MODELS) + 1)
        assert sum(r["count"] for r in rows) == len(extra)

    def test_empty_input_is_zeroed(self):
        rows = size_group_by_model(empty_records())

        assert len(rows) == 5 * len(DEFAULT_MODELS)
        assert all(r["count"] == 0 for r in rows)


class TestModelEnrollmentShare:

    def test_january_split(self, scenario_records):
        jan = apply_time_filter(scenario_records, 2021, 1)

        rows = model_enrollment_share(jan)

        assert rows == [
            {"learning_model": "Virtual", "enrollment": 100, "percent": 66.67},
            {"learning_model": "Hybrid", "enrollment": 50, "percent": 33.33},
        ]

    def test_percentages_sum_to_100(self, records):
        rows = model_enrollment_share(records)

        assert sum(r["percent"] for r in rows) == pytest.approx(100, abs=0.02)

    def test_zero_total_gives_zero_percent(self, records):
        zero = records[records["enrollment_total"] == 0]

        rows = model_enrollment_share(zero)

        assert rows == [{"learning_model": "Hybrid", "enrollment": 0, "percent": 0.0}]

    def test_empty_input(self):
        assert model_enrollment_share(empty_records()) == []
        assert model_enrollment_share(None) == []


class TestVirtualShare:

    def test_per_district_and_month(self, records):
        shares = virtual_share_per_district_month(records)

        assert shares[("D1", YearMonth(2021, 1))] == pytest.approx(100 * 100 / 150)
        assert shares[("D1", YearMonth(2021, 2))] == 100.0
        assert shares[("D2", YearMonth(2021, 2))] == 0.0
        assert shares[("D3", YearMonth(2020, 12))] == 100.0

    def test_zero_total_is_zero(self, records):
        shares = virtual_share_per_district_month(records)

        assert shares[("D3", YearMonth(2021, 2))] == 0.0

    def test_values_are_bounded(self, records):
        shares = virtual_share_per_district_month(records)

        assert all(0 <= v <= 100 for v in shares.values())

    def test_external_keys(self, records):
        keys = virtual_share_keys(virtual_share_per_district_month(records))

        assert keys["D1-2-2021"] == 100.0
        assert keys["D3-12-2020"] == 100.0

    def test_single_month_lookup(self, records):
        shares = virtual_share_per_district_month(records)

        feb = virtual_share_for_month(shares, YearMonth(2021, 2))

        assert feb == {"D1": 100.0, "D2": 0.0, "D3": 0.0}
        assert feb.get("Nowhere", 0) == 0
        assert virtual_share_for_month(shares, None) == {}

    def test_custom_virtual_label(self, records):
        shares = virtual_share_per_district_month(records, virtual_model="Closed")

        assert shares[("D2", YearMonth(2021, 2))] == pytest.approx(100 * 1200 / 2050)

    def test_empty_input(self):
        assert virtual_share_per_district_month(empty_records()) == {}


class TestCrossTab:

    def test_observed_pairs_only(self, records):
        cells = cross_tab_type_model(records)

        lookup = {(c["school_type"], c["learning_model"]): c["count"] for c in cells}
        assert lookup == {
            ("TypeA", "Hybrid"): 1,
            ("TypeA", "Virtual"): 3,
            ("TypeB", "Closed"): 1,
            ("TypeB", "Hybrid"): 1,
            ("TypeB", "In-person"): 2,
        }

    def test_empty_input(self):
        assert cross_tab_type_model(empty_records()) == []


class TestTimeSeries:

    def test_sorted_by_month(self, records):
        series = enrollment_time_series(records)

        dates = [p["date"] for p in series]
        assert dates == sorted(dates)
        assert dates[0] == "2020-12-01"

    def test_values_per_month_and_model(self, records):
        series = enrollment_time_series(records)

        jan = [p for p in series if p["date"] == "2021-01-01"]
        assert jan == [
            {"date": "2021-01-01", "learning_model": "Virtual", "value": 100.0},
            {"date": "2021-01-01", "learning_model": "Hybrid", "value": 50.0},
            {"date": "2021-01-01", "learning_model": "In-person", "value": 199.0},
        ]

    def test_non_numeric_enrollment_counts_as_zero(self):
        frame = pd.DataFrame(
            {
                "time_period_start": pd.to_datetime(["2021-01-01", "2021-01-05"]),
                "school_type": ["A", "A"],
                "learning_model": ["Virtual", "Virtual"],
                "district_name": ["D1", "D1"],
                "enrollment_total": ["100", "n/a"],
            }
        )

        series = enrollment_time_series(frame)

        assert series == [{"date": "2021-01-01", "learning_model": "Virtual", "value": 100.0}]

    def test_monthly_totals(self, records):
        totals = monthly_totals(records)

        assert totals == [
            {"date": "2020-12-01", "total": 400.0},
            {"date": "2021-01-01", "total": 349.0},
            {"date": "2021-02-01", "total": 2250.0},
        ]

    def test_empty_input(self):
        assert enrollment_time_series(empty_records()) == []
        assert monthly_totals(None) == []


def test_model_order_puts_configured_models_first(records):
    extra = records.copy()
    extra.loc[0, "learning_model"] = "Asynchronous"

    assert model_order(extra) == list(DEFAULT_MODELS) + ["Asynchronous"]


def test_aggregates_do_not_mutate_input(records):
    before = records.copy()

    size_group_by_model(records)
    model_enrollment_share(records)
    virtual_share_per_district_month(records)
    cross_tab_type_model(records)
    enrollment_time_series(records)

    pd.testing.assert_frame_equal(records, before)
