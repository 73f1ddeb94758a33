"""
Week and month boundaries used as report aggregation windows.

Two week numberings live side by side:

* ``compute_week`` is the Monday-first scheme behind the weekly report list.
  The week number is taken from the Monday, and ``year`` is the calendar year
  of that Monday. Stored weekly reports are keyed on this pair.
* ``compute_iso_week`` / ``iso_week`` follow ISO-8601, including the ISO
  week-numbering year. Only project weekly reports use it.

They disagree for weeks straddling New Year (the week of 2024-12-30 is week 1
of calendar year 2024 in the first scheme and 2025-W01 in ISO), so they are
never mixed.
"""
from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List

WEEK = "week"
MONTH = "month"


@dataclass(frozen=True)
class Period:
    kind: str
    year: int
    index: int  # week number or month number
    start_date: date
    end_date: date
    label: str

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


def compute_week(reference_date: date) -> Period:
    start = reference_date - timedelta(days=reference_date.weekday())
    end = start + timedelta(days=6)
    return Period(
        kind=WEEK,
        year=start.year,
        index=start.isocalendar()[1],
        start_date=start,
        end_date=end,
        label=f"{start:%Y-%m-%d} 至 {end:%Y-%m-%d}",
    )


def _iso_label(start: date, end: date) -> str:
    return f"{start.month}月{start.day}日 - {end.month}月{end.day}日"


def compute_iso_week(reference_date: date) -> Period:
    iso_year, iso_week_number, iso_weekday = reference_date.isocalendar()
    start = reference_date - timedelta(days=iso_weekday - 1)
    end = start + timedelta(days=6)
    return Period(
        kind=WEEK,
        year=iso_year,
        index=iso_week_number,
        start_date=start,
        end_date=end,
        label=_iso_label(start, end),
    )


def iso_week(year: int, week: int) -> Period:
    """ISO week by number. Raises ValueError for a week the ISO year does not have."""
    start = date.fromisocalendar(year, week, 1)
    end = start + timedelta(days=6)
    return Period(kind=WEEK, year=year, index=week, start_date=start, end_date=end,
                  label=_iso_label(start, end))


def week_from_key(year: int, week: int) -> Period:
    """Inverse of ``compute_week`` for a stored (year, week_number) key."""
    if not 1 <= week <= 53:
        raise ValueError("week out of range")
    # Week numbers come from the Monday, so the candidate Monday is the ISO
    # Monday of that number; for week 1 it may fall in the previous December.
    for iso_year in (year, year + 1):
        try:
            monday = date.fromisocalendar(iso_year, week, 1)
        except ValueError:
            continue
        if monday.year == year:
            return compute_week(monday)
    raise ValueError(f"week {week} does not exist in {year}")


def compute_month(reference_date: date) -> Period:
    year, month = reference_date.year, reference_date.month
    start = date(year, month, 1)
    end = date(year, month, monthrange(year, month)[1])
    return Period(
        kind=MONTH,
        year=year,
        index=month,
        start_date=start,
        end_date=end,
        label=f"{year}年{month:02d}月",
    )


def month_from_key(year: int, month: int) -> Period:
    return compute_month(date(year, month, 1))


def _shift_month(year: int, month: int, delta: int):
    total = year * 12 + (month - 1) + delta
    return total // 12, total % 12 + 1


def trailing_weeks(today: date, count: int = 12) -> List[Period]:
    return [compute_week(today - timedelta(days=7 * i)) for i in range(count)]


def trailing_months(today: date, count: int = 24) -> List[Period]:
    months = []
    for i in range(count):
        year, month = _shift_month(today.year, today.month, -i)
        months.append(month_from_key(year, month))
    return months


def period_days(period: Period) -> List[date]:
    return [period.start_date + timedelta(days=i) for i in range(period.total_days)]
