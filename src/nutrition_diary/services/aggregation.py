"""Aggregation of logged line items into day reports and daily totals."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Protocol
from uuid import UUID

from nutrition_diary.domain.entries import FoodEntry, MealSlot
from nutrition_diary.domain.stats import (
    DailyTotals,
    DateRange,
    DayReport,
    ItemRow,
    NoData,
    SlotBucket,
)
from nutrition_diary.services.dates import day_range, today_in
from nutrition_diary.services.macros import sum_profiles

SLOT_ORDER = [
    MealSlot.BREAKFAST,
    MealSlot.LUNCH,
    MealSlot.DINNER,
    MealSlot.SNACK,
    MealSlot.UNSET,
]


class StatsRepository(Protocol):
    """Read interface over entries and items for reporting."""

    def list_item_rows(self, user_id: UUID, start: date, end: date) -> list[ItemRow]:
        """Return items of entries consumed in [start, end) with their entries."""

    def list_entries(self, user_id: UUID, start: date, end: date) -> list[FoodEntry]:
        """Return entries consumed in [start, end)."""

    def list_recent_entries(self, user_id: UUID, limit: int) -> list[FoodEntry]:
        """Return the most recently created entries."""


@dataclass
class EntryAggregator:
    """Sums stored line items over a date range."""

    repository: StatsRepository
    timezone_name: str

    def today(self) -> date:
        """Return today's date in the reference timezone."""
        return today_in(self.timezone_name)

    def day_report(
        self,
        user_id: UUID,
        date_range: DateRange | None = None,
        *,
        today: date | None = None,
    ) -> DayReport | NoData:
        """Return items and totals for a range, defaulting to today."""
        resolved = date_range or day_range(today or self.today(), "Today")
        rows = self.repository.list_item_rows(user_id, resolved.start, resolved.end)
        report = build_day_report(resolved, rows)
        if isinstance(report, NoData):
            # entries kept without items after a failed extraction
            raw = self.repository.list_entries(user_id, resolved.start, resolved.end)
            return NoData(range=resolved, raw_entries=len(raw))
        return report

    def daily_totals(self, user_id: UUID, date_range: DateRange) -> list[DailyTotals]:
        """Return per-day totals for days with at least one item."""
        rows = self.repository.list_item_rows(
            user_id, date_range.start, date_range.end
        )
        return group_by_day(rows)


def build_day_report(date_range: DateRange, rows: list[ItemRow]) -> DayReport | NoData:
    """Order rows, bucket them by meal slot and compute totals."""
    ordered = [
        row for row in sort_rows(rows) if date_range.contains(row.entry.consumed_on)
    ]
    if not ordered:
        return NoData(range=date_range)

    by_slot: dict[MealSlot, list[ItemRow]] = defaultdict(list)
    for row in ordered:
        by_slot[row.entry.meal_slot].append(row)
    buckets = [
        SlotBucket(
            slot=slot,
            rows=by_slot[slot],
            totals=sum_profiles([row.item.macros for row in by_slot[slot]]),
        )
        for slot in SLOT_ORDER
        if by_slot.get(slot)
    ]
    return DayReport(
        range=date_range,
        rows=ordered,
        totals=sum_profiles([row.item.macros for row in ordered]),
        buckets=buckets,
    )


def group_by_day(rows: list[ItemRow]) -> list[DailyTotals]:
    """Sum rows per consumption date, oldest day first."""
    by_day: dict[date, list[ItemRow]] = defaultdict(list)
    for row in sort_rows(rows):
        by_day[row.entry.consumed_on].append(row)
    return [
        DailyTotals(
            day=day,
            totals=sum_profiles([row.item.macros for row in by_day[day]]),
        )
        for day in sorted(by_day)
    ]


def sort_rows(rows: list[ItemRow]) -> list[ItemRow]:
    """Order rows by entry creation, then item creation; ties keep input order."""
    return sorted(rows, key=lambda row: (row.entry.created_at, row.item.created_at))
