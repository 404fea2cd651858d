from __future__ import annotations

from datetime import date

import pytest

from business_case.calendar_utils import (
    add_years,
    fiscal_quarter,
    fiscal_quarter_bounds,
    fiscal_year,
    fiscal_year_bounds,
    inclusive_end,
    parse_date_only,
)


@pytest.mark.parametrize(
    "d, expected",
    [
        (date(2024, 11, 1), 2025),
        (date(2024, 12, 31), 2025),
        (date(2025, 1, 1), 2025),
        (date(2025, 10, 31), 2025),
        (date(2025, 11, 1), 2026),
    ],
)
def test_fiscal_year_starts_in_november(d, expected):
    assert fiscal_year(d) == expected


@pytest.mark.parametrize(
    "d, expected",
    [
        (date(2024, 11, 15), 1),
        (date(2025, 1, 31), 1),
        (date(2025, 2, 1), 2),
        (date(2025, 4, 30), 2),
        (date(2025, 5, 1), 3),
        (date(2025, 7, 31), 3),
        (date(2025, 8, 1), 4),
        (date(2025, 10, 31), 4),
    ],
)
def test_fiscal_quarter_boundaries(d, expected):
    assert fiscal_quarter(d) == expected


def test_fiscal_bounds_are_half_open():
    assert fiscal_year_bounds(2025) == (date(2024, 11, 1), date(2025, 11, 1))
    assert fiscal_quarter_bounds(2025, 1) == (date(2024, 11, 1), date(2025, 2, 1))
    assert fiscal_quarter_bounds(2025, 4) == (date(2025, 8, 1), date(2025, 11, 1))


def test_parse_date_only_accepts_strict_literal():
    assert parse_date_only("2025-01-10") == date(2025, 1, 10)
    assert parse_date_only(" 2024-02-29 ") == date(2024, 2, 29)


@pytest.mark.parametrize("text", ["2025-02-30", "2025-13-01", "2025-1-10", "10/01/2025", "", "2025-01-10T00:00:00", None, 20250110])
def test_parse_date_only_rejects_everything_else(text):
    assert parse_date_only(text) is None


def test_add_years_moves_leap_day_to_march():
    assert add_years(date(2024, 2, 29), 1) == date(2025, 3, 1)
    assert add_years(date(2024, 11, 1), 3) == date(2027, 11, 1)


def test_boundaries_saturate_at_the_representable_range():
    assert fiscal_year_bounds(1) == (date.min, date(1, 11, 1))
    assert fiscal_year_bounds(10000) == (date(9999, 11, 1), date.max)
    assert fiscal_quarter_bounds(10000, 2) == (date.max, date.max)
    assert add_years(date(2025, 1, 1), 10000) == date.max
    assert add_years(date(5, 1, 1), -10) == date.min
    assert inclusive_end(date.max) == date.max
    assert inclusive_end(date(2025, 12, 31)) == date(2026, 1, 1)
