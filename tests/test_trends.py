from datetime import date
from uuid import uuid4

from nutrition_diary.domain.goals import Nutrient
from nutrition_diary.domain.stats import (
    InsufficientData,
    MonthlyTrend,
    TrendDirection,
    WeeklyTrend,
)
from nutrition_diary.services.aggregation import EntryAggregator
from nutrition_diary.services.trends import PeriodTrendAnalyzer, direction, month_range
from tests.conftest import InMemoryEntryRepository, make_draft

TODAY = date(2025, 9, 22)


def test_weekly_averages_days_with_data_only(
    entry_repository: InMemoryEntryRepository, aggregator: EntryAggregator
) -> None:
    user_id = uuid4()
    entry_repository.add_entry(user_id, date(2025, 9, 15), [make_draft(kcal=1800)])
    entry_repository.add_entry(user_id, date(2025, 9, 21), [make_draft(kcal=2200)])
    # today is outside the trailing window
    entry_repository.add_entry(user_id, TODAY, [make_draft(kcal=5000)])

    result = PeriodTrendAnalyzer(aggregator).weekly(user_id, today=TODAY)

    assert isinstance(result, WeeklyTrend)
    assert result.current.range.start == date(2025, 9, 15)
    assert result.current.range.end == TODAY
    assert result.current.days_logged == 2
    assert result.current.average.kcal == 2000.0
    assert result.previous is None
    assert result.trends == []
    assert [day.day for day in result.daily] == [date(2025, 9, 15), date(2025, 9, 21)]


def test_weekly_compares_with_previous_week(
    entry_repository: InMemoryEntryRepository, aggregator: EntryAggregator
) -> None:
    user_id = uuid4()
    entry_repository.add_entry(
        user_id, date(2025, 9, 10), [make_draft(kcal=2100, protein=80)]
    )
    entry_repository.add_entry(
        user_id, date(2025, 9, 17), [make_draft(kcal=1900, protein=95.5)]
    )

    result = PeriodTrendAnalyzer(aggregator).weekly(user_id, today=TODAY)

    assert isinstance(result, WeeklyTrend)
    assert result.previous is not None
    trends = {trend.nutrient: trend for trend in result.trends}
    assert trends[Nutrient.CALORIES].delta == -200.0
    assert trends[Nutrient.CALORIES].direction is TrendDirection.DOWN
    assert trends[Nutrient.PROTEIN].delta == 15.5
    assert trends[Nutrient.PROTEIN].direction is TrendDirection.UP
    assert trends[Nutrient.FAT].direction is TrendDirection.FLAT


def test_weekly_without_current_data_is_insufficient(
    entry_repository: InMemoryEntryRepository, aggregator: EntryAggregator
) -> None:
    user_id = uuid4()
    entry_repository.add_entry(user_id, date(2025, 9, 10), [make_draft(kcal=2000)])

    result = PeriodTrendAnalyzer(aggregator).weekly(user_id, today=TODAY)

    assert isinstance(result, InsufficientData)


def test_monthly_groups_iso_weeks(
    entry_repository: InMemoryEntryRepository, aggregator: EntryAggregator
) -> None:
    user_id = uuid4()
    # 2025-09-01 is a Monday, week 36
    entry_repository.add_entry(user_id, date(2025, 9, 1), [make_draft(kcal=1000)])
    entry_repository.add_entry(user_id, date(2025, 9, 3), [make_draft(kcal=2000)])
    entry_repository.add_entry(user_id, date(2025, 9, 9), [make_draft(kcal=1600)])
    entry_repository.add_entry(user_id, date(2025, 8, 20), [make_draft(kcal=1000)])

    result = PeriodTrendAnalyzer(aggregator).monthly(user_id, today=TODAY)

    assert isinstance(result, MonthlyTrend)
    assert result.current.days_logged == 3
    assert result.current.average.kcal == 1533.3
    assert [(week.iso_week, week.average.average.kcal) for week in result.weeks] == [
        (36, 1500.0),
        (37, 1600.0),
    ]
    assert result.previous is not None
    assert result.previous.average.kcal == 1000.0
    calories = next(t for t in result.trends if t.nutrient is Nutrient.CALORIES)
    assert calories.delta == 533.3


def test_monthly_without_data_is_insufficient(aggregator: EntryAggregator) -> None:
    result = PeriodTrendAnalyzer(aggregator).monthly(uuid4(), today=TODAY)

    assert isinstance(result, InsufficientData)
    assert result.range.start == date(2025, 9, 1)


def test_month_range_rolls_over_december() -> None:
    december = month_range(date(2025, 12, 31))
    assert december.start == date(2025, 12, 1)
    assert december.end == date(2026, 1, 1)
    assert month_range(date(2025, 2, 14)).days == 28


def test_direction() -> None:
    assert direction(0.1) is TrendDirection.UP
    assert direction(0.0) is TrendDirection.FLAT
    assert direction(-3) is TrendDirection.DOWN
