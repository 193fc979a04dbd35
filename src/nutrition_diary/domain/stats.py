"""Domain models for day reports and period trends."""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

from nutrition_diary.domain.entries import FoodEntry, LineItem, MealSlot
from nutrition_diary.domain.goals import Nutrient
from nutrition_diary.domain.nutrition import MacroProfile


@dataclass(frozen=True)
class DateRange:
    """Half-open date range [start, end) with a display label."""

    start: date
    end: date
    label: str

    @property
    def days(self) -> int:
        """Number of calendar days covered."""
        return (self.end - self.start).days

    def contains(self, day: date) -> bool:
        """Return true when the day falls inside the range."""
        return self.start <= day < self.end


@dataclass(frozen=True)
class ItemRow:
    """A line item joined with the entry that owns it."""

    entry: FoodEntry
    item: LineItem


@dataclass(frozen=True)
class SlotBucket:
    """Items and subtotal for one meal slot."""

    slot: MealSlot
    rows: list[ItemRow]
    totals: MacroProfile


@dataclass(frozen=True)
class DayReport:
    """Aggregated items for a date range."""

    range: DateRange
    rows: list[ItemRow]
    totals: MacroProfile
    buckets: list[SlotBucket]


@dataclass(frozen=True)
class NoData:
    """Nothing with nutrition data was logged in the requested range."""

    range: DateRange
    raw_entries: int = 0


@dataclass(frozen=True)
class DailyTotals:
    """Totals for a single consumption date."""

    day: date
    totals: MacroProfile


class TrendDirection(StrEnum):
    """Sign of a period-over-period delta."""

    UP = "up"
    FLAT = "flat"
    DOWN = "down"


@dataclass(frozen=True)
class NutrientTrend:
    """Difference between two period averages for one nutrient."""

    nutrient: Nutrient
    delta: float
    direction: TrendDirection


@dataclass(frozen=True)
class PeriodAverage:
    """Average daily totals over the days with data inside a range."""

    range: DateRange
    days_logged: int
    average: MacroProfile


@dataclass(frozen=True)
class InsufficientData:
    """The window holds no complete day of data."""

    range: DateRange


@dataclass(frozen=True)
class WeekAverage:
    """Average for one ISO week inside a month."""

    iso_year: int
    iso_week: int
    average: PeriodAverage


@dataclass(frozen=True)
class WeeklyTrend:
    """Trailing seven-day averages compared with the week before."""

    current: PeriodAverage
    previous: PeriodAverage | None
    trends: list[NutrientTrend]
    daily: list[DailyTotals]


@dataclass(frozen=True)
class MonthlyTrend:
    """Calendar-month averages compared with the previous month."""

    current: PeriodAverage
    previous: PeriodAverage | None
    trends: list[NutrientTrend]
    weeks: list[WeekAverage]
