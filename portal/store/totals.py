"""
Weekly spend totals.

A labor entry counts on its start_date; a material on its delivery_eta.
Entries without a parseable date never count.

The window reaches back `window_days` whole days from the reference
date and includes both ends, so for 2025-09-05 it covers
2025-08-29 .. 2025-09-05.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Mapping

from pydantic import BaseModel

from portal.models.records import ProjectData, parse_iso_date
from portal.services.storage.interface import DailyRollup


class WeeklyTotals(BaseModel):
    """Paid and unpaid spend, in PHP."""

    paid: Decimal = Decimal("0")
    unpaid: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        return self.paid + self.unpaid

    def __add__(self, other: "WeeklyTotals") -> "WeeklyTotals":
        return WeeklyTotals(paid=self.paid + other.paid, unpaid=self.unpaid + other.unpaid)


def window_bounds(reference_date: date, window_days: int = 7) -> tuple[date, date]:
    """
    (first_day, last_day) of the window, both inclusive.

    The window reaches back window_days before the reference date, so it
    spans window_days + 1 calendar days: the default of 7 covers
    2025-08-29 through 2025-09-05.
    """
    return reference_date - timedelta(days=window_days), reference_date


def _dated_costs(project_data: ProjectData) -> Iterable[tuple[str, Decimal, bool]]:
    for entry in project_data.labor:
        yield entry.start_date, entry.cost, entry.paid
    for entry in project_data.materials:
        yield entry.delivery_eta, entry.total_cost, entry.paid


def compute_weekly_totals(
    project_data: ProjectData,
    reference_date: date,
    window_days: int = 7,
) -> WeeklyTotals:
    """Sum labor and material costs dated inside the window, split by paid flag."""
    first_day, last_day = window_bounds(reference_date, window_days)
    paid = Decimal("0")
    unpaid = Decimal("0")

    for raw_date, cost, is_paid in _dated_costs(project_data):
        entry_date = parse_iso_date(raw_date)
        if entry_date is None or not (first_day <= entry_date <= last_day):
            continue
        if is_paid:
            paid += cost
        else:
            unpaid += cost

    return WeeklyTotals(paid=paid, unpaid=unpaid)


def compute_all_projects_weekly_totals(
    projects: Mapping[str, ProjectData],
    reference_date: date,
    window_days: int = 7,
) -> WeeklyTotals:
    """Sum of every project's weekly totals."""
    result = WeeklyTotals()
    for project_data in projects.values():
        result = result + compute_weekly_totals(project_data, reference_date, window_days)
    return result


def daily_rollups(project_id: str, project_data: ProjectData) -> list[DailyRollup]:
    """Paid/unpaid spend per dated day, oldest first. Undated entries are skipped."""
    by_day: dict[date, DailyRollup] = {}
    for raw_date, cost, is_paid in _dated_costs(project_data):
        entry_date = parse_iso_date(raw_date)
        if entry_date is None:
            continue
        rollup = by_day.setdefault(entry_date, DailyRollup(project_id=project_id, day=entry_date))
        if is_paid:
            rollup.paid += cost
        else:
            rollup.unpaid += cost
    return [by_day[day] for day in sorted(by_day)]
