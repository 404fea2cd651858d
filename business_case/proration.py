"""Day-range proration across fiscal-year buckets.

One closed-form implementation shared by the depreciation scheduler and the
resource cost allocator: an amount spread evenly over ``[start, end)`` is split
by the number of days each fiscal year overlaps the range.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from business_case.calendar_utils import fiscal_quarter_bounds, fiscal_year, fiscal_year_bounds
from business_case.numeric import round2, to_number

BUCKETS = (
    "prior_fys",
    "current_year",
    "year_plus_1",
    "year_plus_2",
    "year_plus_3",
    "year_plus_4",
    "year_plus_5",
)
YEARLY_BUCKETS = BUCKETS[1:]
MAX_OFFSET = len(YEARLY_BUCKETS) - 1
QUARTERS = ("q1", "q2", "q3", "q4")


@dataclass(frozen=True)
class ProrationResult:
    buckets: dict[str, float] = field(default_factory=lambda: {b: 0.0 for b in BUCKETS})
    beyond_horizon: float = 0.0
    total_days: int = 0

    @property
    def bucket_sum(self) -> float:
        return round2(sum(self.buckets.values()))


def overlap_days(a_start: date, a_end: date, b_start: date, b_end: date) -> int:
    """Day count of the intersection of two half-open ranges."""
    start = max(a_start, b_start)
    end = min(a_end, b_end)
    return max(0, (end - start).days)


def fiscal_year_day_counts(start: date, end_exclusive: date) -> dict[int, int]:
    """Map fiscal year -> days of ``[start, end_exclusive)`` falling inside it."""
    counts: dict[int, int] = {}
    if end_exclusive <= start:
        return counts
    last_day = end_exclusive.toordinal() - 1
    for fy in range(fiscal_year(start), fiscal_year(date.fromordinal(last_day)) + 1):
        fy_start, fy_end = fiscal_year_bounds(fy)
        days = overlap_days(start, end_exclusive, fy_start, fy_end)
        if days:
            counts[fy] = days
    return counts


def bucket_for_offset(offset: int) -> str | None:
    if offset < 0:
        return "prior_fys"
    if offset <= MAX_OFFSET:
        return YEARLY_BUCKETS[offset]
    return None


def allocate(start: date | None, end_exclusive: date | None, total_amount, anchor_fy: int) -> ProrationResult:
    """Distribute ``total_amount`` over fiscal-year buckets relative to ``anchor_fy``.

    Offsets below zero fold into ``prior_fys``; offsets past +5 are not
    accumulated in any bucket and are reported as ``beyond_horizon`` instead.
    """
    if start is None or end_exclusive is None:
        return ProrationResult()
    total_days = (end_exclusive - start).days
    if total_days <= 0:
        return ProrationResult()
    amount = to_number(total_amount)

    raw = {b: 0.0 for b in BUCKETS}
    dropped = 0.0
    for fy, days in fiscal_year_day_counts(start, end_exclusive).items():
        share = amount * days / total_days
        bucket = bucket_for_offset(fy - int(anchor_fy))
        if bucket is None:
            dropped += share
        else:
            raw[bucket] += share

    return ProrationResult(
        buckets={b: round2(v) for b, v in raw.items()},
        beyond_horizon=round2(dropped),
        total_days=total_days,
    )


def quarter_day_counts(start: date, end_exclusive: date, fy: int) -> dict[str, int]:
    """Days of ``[start, end_exclusive)`` falling in each quarter of ``fy``."""
    counts = {}
    for number, name in enumerate(QUARTERS, start=1):
        q_start, q_end = fiscal_quarter_bounds(fy, number)
        counts[name] = overlap_days(start, end_exclusive, q_start, q_end)
    return counts
