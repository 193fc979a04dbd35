"""Weekly and monthly averages with period-over-period trends."""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from uuid import UUID

from nutrition_diary.domain.goals import Nutrient
from nutrition_diary.domain.nutrition import MacroProfile
from nutrition_diary.domain.stats import (
    DailyTotals,
    DateRange,
    InsufficientData,
    MonthlyTrend,
    NutrientTrend,
    PeriodAverage,
    TrendDirection,
    WeekAverage,
    WeeklyTrend,
)
from nutrition_diary.services.aggregation import EntryAggregator
from nutrition_diary.services.macros import round1

WINDOW_DAYS = 7
DECEMBER = 12


@dataclass
class PeriodTrendAnalyzer:
    """Computes period averages from per-day totals."""

    aggregator: EntryAggregator

    def weekly(
        self, user_id: UUID, *, today: date | None = None
    ) -> WeeklyTrend | InsufficientData:
        """Average the seven full days before today against the week before."""
        reference = today or self.aggregator.today()
        current_range = DateRange(
            start=reference - timedelta(days=WINDOW_DAYS),
            end=reference,
            label="Last 7 days",
        )
        previous_range = DateRange(
            start=reference - timedelta(days=2 * WINDOW_DAYS),
            end=current_range.start,
            label="Previous 7 days",
        )
        daily = self.aggregator.daily_totals(user_id, current_range)
        current = average_daily(current_range, daily)
        if current is None:
            return InsufficientData(range=current_range)
        previous = average_daily(
            previous_range, self.aggregator.daily_totals(user_id, previous_range)
        )
        return WeeklyTrend(
            current=current,
            previous=previous,
            trends=compare(current.average, previous.average) if previous else [],
            daily=daily,
        )

    def monthly(
        self, user_id: UUID, *, today: date | None = None
    ) -> MonthlyTrend | InsufficientData:
        """Average the current calendar month against the previous one."""
        reference = today or self.aggregator.today()
        current_range = month_range(reference)
        previous_range = month_range(current_range.start - timedelta(days=1))
        daily = self.aggregator.daily_totals(user_id, current_range)
        current = average_daily(current_range, daily)
        if current is None:
            return InsufficientData(range=current_range)
        previous = average_daily(
            previous_range, self.aggregator.daily_totals(user_id, previous_range)
        )
        return MonthlyTrend(
            current=current,
            previous=previous,
            trends=compare(current.average, previous.average) if previous else [],
            weeks=iso_week_averages(current_range, daily),
        )


def month_range(day: date) -> DateRange:
    """Return the calendar month containing ``day``."""
    start = day.replace(day=1)
    if start.month == DECEMBER:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return DateRange(start=start, end=end, label=start.strftime("%m.%Y"))


def average_daily(
    date_range: DateRange, daily: list[DailyTotals]
) -> PeriodAverage | None:
    """Average totals over the days that have data; None when there are none."""
    days = [entry for entry in daily if date_range.contains(entry.day)]
    if not days:
        return None
    count = len(days)
    total = MacroProfile.zero()
    for entry in days:
        total = total + entry.totals
    return PeriodAverage(
        range=date_range,
        days_logged=count,
        average=MacroProfile(
            kcal=round1(total.kcal / count),
            protein=round1(total.protein / count),
            fat=round1(total.fat / count),
            carbs=round1(total.carbs / count),
            fiber=round1(total.fiber / count),
        ),
    )


def compare(current: MacroProfile, previous: MacroProfile) -> list[NutrientTrend]:
    """Return current minus previous for every nutrient with its direction."""
    trends = []
    for nutrient in Nutrient:
        delta = round1(nutrient.amount(current) - nutrient.amount(previous))
        trends.append(
            NutrientTrend(nutrient=nutrient, delta=delta, direction=direction(delta))
        )
    return trends


def direction(delta: float) -> TrendDirection:
    """Map the sign of a delta to a direction."""
    if delta > 0:
        return TrendDirection.UP
    if delta < 0:
        return TrendDirection.DOWN
    return TrendDirection.FLAT


def iso_week_averages(
    date_range: DateRange, daily: list[DailyTotals]
) -> list[WeekAverage]:
    """Average days grouped by ISO week, earliest week first."""
    by_week: dict[tuple[int, int], list[DailyTotals]] = defaultdict(list)
    for entry in daily:
        if date_range.contains(entry.day):
            iso = entry.day.isocalendar()
            by_week[(iso.year, iso.week)].append(entry)

    weeks = []
    for (iso_year, iso_week), days in sorted(by_week.items()):
        monday = date.fromisocalendar(iso_year, iso_week, 1)
        week_range = DateRange(
            start=max(monday, date_range.start),
            end=min(monday + timedelta(days=7), date_range.end),
            label=f"W{iso_week:02d}",
        )
        average = average_daily(week_range, days)
        if average is not None:
            weeks.append(
                WeekAverage(iso_year=iso_year, iso_week=iso_week, average=average)
            )
    return weeks
