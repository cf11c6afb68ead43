from datetime import date

import pytest

from propreports.services.periods import (
    InvalidDateRangeError,
    add_months,
    month_buckets,
    month_key,
    months_between,
    presets,
    resolve_preset,
    validate_date_range,
)


def test_month_key_truncates_dates_and_strings():
    assert month_key(date(2024, 3, 17)) == "2024-03"
    assert month_key("2024-11-05") == "2024-11"


def test_single_month_range_gives_one_bucket():
    buckets = month_buckets(date(2024, 5, 3), date(2024, 5, 28))
    assert [b.key for b in buckets] == ["2024-05"]
    assert buckets[0].label == "May 2024"
    assert buckets[0].period_start == date(2024, 5, 1)
    assert buckets[0].period_end == date(2024, 5, 31)


def test_buckets_cover_every_month_inclusive():
    buckets = month_buckets(date(2024, 1, 31), date(2024, 3, 1))
    assert [b.key for b in buckets] == ["2024-01", "2024-02", "2024-03"]
    assert buckets[1].period_end == date(2024, 2, 29)


def test_year_boundary_never_skips_a_month():
    buckets = month_buckets(date(2023, 11, 30), date(2024, 2, 1))
    assert [b.key for b in buckets] == ["2023-11", "2023-12", "2024-01", "2024-02"]
    assert [b.label for b in buckets] == ["Nov 2023", "Dec 2023", "Jan 2024", "Feb 2024"]


def test_bucket_count_matches_calendar_months():
    start, end = date(2019, 7, 14), date(2024, 6, 2)
    buckets = month_buckets(start, end)
    assert len(buckets) == months_between(start, end) + 1
    assert len({b.key for b in buckets}) == len(buckets)


def test_inverted_range_yields_no_buckets():
    assert month_buckets(date(2024, 5, 1), date(2024, 4, 30)) == []


def test_new_buckets_start_at_zero():
    bucket = month_buckets(date(2024, 1, 1), date(2024, 1, 1))[0]
    assert bucket.revenue == 0
    assert bucket.payment_count == 0
    assert bucket.outstanding == 0
    assert bucket.move_ins == 0


def test_add_months_clamps_day():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 3, 15), -3) == date(2023, 12, 15)
    assert add_months(date(2024, 12, 10), 1) == date(2025, 1, 10)


def test_validate_date_range_rejects_inverted_range():
    with pytest.raises(InvalidDateRangeError, match="end_date must be on or after start_date"):
        validate_date_range(date(2024, 5, 2), date(2024, 5, 1))


def test_validate_date_range_caps_span_at_five_years():
    validate_date_range(date(2019, 1, 1), date(2023, 12, 31))
    with pytest.raises(InvalidDateRangeError, match="Date range cannot exceed 5 years"):
        validate_date_range(date(2019, 1, 1), date(2024, 1, 2))


def test_same_day_range_is_valid():
    validate_date_range(date(2024, 5, 1), date(2024, 5, 1))


@pytest.mark.parametrize(
    "name, expected_start",
    [
        ("current_month", date(2024, 6, 1)),
        ("last_3_months", date(2024, 3, 15)),
        ("last_6_months", date(2023, 12, 15)),
        ("year_to_date", date(2024, 1, 1)),
        ("last_year", date(2023, 6, 15)),
        ("last_2_years", date(2022, 6, 15)),
    ],
)
def test_presets_end_today(name, expected_start):
    today = date(2024, 6, 15)
    assert resolve_preset(name, today) == (expected_start, today)


def test_unknown_preset_is_rejected():
    with pytest.raises(InvalidDateRangeError):
        resolve_preset("last_decade", date(2024, 6, 15))


def test_presets_listing_includes_every_preset():
    listing = presets(date(2024, 6, 15))
    assert [p["name"] for p in listing] == [
        "current_month", "last_3_months", "last_6_months",
        "year_to_date", "last_year", "last_2_years",
    ]
    assert listing[3]["start_date"] == "2024-01-01"
