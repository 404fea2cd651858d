"""Fiscal calendar utilities.

Fiscal year FY<Y> runs from November 1 of calendar year Y-1 through October 31
of calendar year Y. Quarters: Q1 Nov-Jan, Q2 Feb-Apr, Q3 May-Jul, Q4 Aug-Oct.

Boundaries that fall outside the representable date range saturate at
``date.min`` / ``date.max`` instead of raising.
"""

from __future__ import annotations

import re
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta

FISCAL_YEAR_START_MONTH = 11

_DATE_ONLY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def fiscal_year(d: date) -> int:
    return d.year + 1 if d.month >= FISCAL_YEAR_START_MONTH else d.year


def fiscal_quarter(d: date) -> int:
    # Months since the fiscal year began: Nov -> 0 ... Oct -> 11.
    months_in = (d.month - FISCAL_YEAR_START_MONTH) % 12
    return months_in // 3 + 1


def _month_start(year: int, month: int) -> date:
    """First day of ``month`` (which may run past 12) of ``year``, saturated."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    if year < MINYEAR:
        return date.min
    if year > MAXYEAR:
        return date.max
    return date(year, month, 1)


def fiscal_year_bounds(fy: int) -> tuple[date, date]:
    """Return [start, end) of a fiscal year."""
    return _month_start(fy - 1, FISCAL_YEAR_START_MONTH), _month_start(fy, FISCAL_YEAR_START_MONTH)


def fiscal_quarter_bounds(fy: int, quarter: int) -> tuple[date, date]:
    """Return [start, end) of quarter 1..4 of a fiscal year."""
    if quarter not in (1, 2, 3, 4):
        raise ValueError(f"quarter must be in 1..4, got {quarter}")
    first_month = FISCAL_YEAR_START_MONTH + 3 * (quarter - 1)
    return _month_start(fy - 1, first_month), _month_start(fy - 1, first_month + 3)


def parse_date_only(value) -> date | None:
    """Parse a strict YYYY-MM-DD literal; return None for anything else."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    match = _DATE_ONLY_RE.match(value.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    # date() already rejects Feb 30 and friends; the round-trip keeps the contract explicit.
    if parsed.isoformat() != f"{year:04d}-{month:02d}-{day:02d}":
        return None
    return parsed


def add_years(d: date, years: int) -> date:
    """Shift by whole calendar years; Feb 29 lands on Mar 1 in non-leap years."""
    target = d.year + int(years)
    if target > MAXYEAR:
        return date.max
    if target < MINYEAR:
        return date.min
    try:
        return d.replace(year=target)
    except ValueError:
        return date(target, 3, 1)


def inclusive_end(end: date) -> date:
    if end >= date.max:
        return date.max
    return end + timedelta(days=1)
