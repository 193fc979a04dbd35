"""Plain-text rendering of diary data for chat replies."""

from nutrition_diary.domain.entries import LineItem, LoggedEntry, MealSlot
from nutrition_diary.domain.goals import GoalSet, Nutrient, NutrientProgress
from nutrition_diary.domain.nutrition import MacroProfile
from nutrition_diary.domain.stats import (
    DayReport,
    InsufficientData,
    MonthlyTrend,
    NoData,
    NutrientTrend,
    PeriodAverage,
    TrendDirection,
    WeeklyTrend,
)
from nutrition_diary.errors import (
    EmptyTranscriptError,
    ExtractionAuthError,
    ExtractionRateLimitedError,
    ExtractionServiceError,
    ExtractionTimeoutError,
    GoalOutOfRangeError,
    InvalidDateTokenError,
    InvalidGoalValueError,
    InvalidGramsError,
    MalformedExtractionError,
    NotFoundError,
    NothingRecognizedError,
    StorageError,
    UnknownNutrientError,
    VoiceTooLongError,
    ZeroBaselineError,
)
from nutrition_diary.services.goals import lagging_nutrients

SLOT_TITLES = {
    MealSlot.BREAKFAST: "Breakfast",
    MealSlot.LUNCH: "Lunch",
    MealSlot.DINNER: "Dinner",
    MealSlot.SNACK: "Snack",
    MealSlot.UNSET: "Unclassified",
}

_TREND_ARROWS = {
    TrendDirection.UP: "↑",
    TrendDirection.FLAT: "→",
    TrendDirection.DOWN: "↓",
}

_SUGGESTIONS = {
    Nutrient.CALORIES: "Add a full meal or a calorie-dense snack.",
    Nutrient.PROTEIN: "Add a protein source: eggs, cottage cheese, chicken or fish.",
    Nutrient.CARBS: "Add whole grains, fruit or potatoes.",
    Nutrient.FIBER: "Add vegetables, berries or legumes.",
}

_ERROR_MESSAGES: list[tuple[type[Exception], str]] = [
    (
        ExtractionTimeoutError,
        "The analysis took too long. Your note is saved, please try again.",
    ),
    (
        MalformedExtractionError,
        "I couldn't read the analysis result. Please rephrase and try again.",
    ),
    (
        NothingRecognizedError,
        "I couldn't find any food in that. Try something like 'oatmeal 60g'.",
    ),
    (
        ExtractionRateLimitedError,
        "The analysis service is busy. Please try again in a minute.",
    ),
    (
        ExtractionAuthError,
        "The analysis service is unavailable right now. Please try again later.",
    ),
    (EmptyTranscriptError, "I couldn't hear any words in that voice note."),
    (ExtractionServiceError, "The analysis service failed. Please try again later."),
    (
        InvalidDateTokenError,
        "I couldn't parse that date. Use today, yesterday, DD.MM.YYYY or YYYY-MM-DD.",
    ),
    (InvalidGramsError, "Please send a number of grams greater than zero."),
    (InvalidGoalValueError, "Please send the goal as a number."),
    (
        UnknownNutrientError,
        "Unknown nutrient. Use calories, protein, fat, carbs or fiber.",
    ),
    (NotFoundError, "Not found. It may have been deleted."),
    (ZeroBaselineError, "This item has no stored weight, so it can't be rescaled."),
    (StorageError, "I couldn't save that. Please send it again."),
]


def error_message(exc: Exception) -> str | None:
    """Return the fixed user-facing message for a known error, if any."""
    if isinstance(exc, VoiceTooLongError):
        return f"Voice notes up to {exc.limit_seconds} seconds, please."
    if isinstance(exc, GoalOutOfRangeError):
        return (
            f"The {exc.nutrient} goal must be between "
            f"{exc.minimum:g} and {exc.maximum:g}."
        )
    for error_type, message in _ERROR_MESSAGES:
        if isinstance(exc, error_type):
            return message
    return None


def format_macros(macros: MacroProfile) -> str:
    """Format a profile as a single line."""
    return (
        f"{macros.kcal:.0f} kcal, "
        f"{macros.protein:.1f}P / {macros.fat:.1f}F / {macros.carbs:.1f}C, "
        f"fiber {macros.fiber:.1f} g"
    )


def format_item(item: LineItem) -> str:
    """Format one line item."""
    edited = " (edited)" if item.manually_edited else ""
    return f"- {item.name}: {item.grams:g} g{edited}, {format_macros(item.macros)}"


def format_logged_entry(logged: LoggedEntry) -> str:
    """Format the confirmation for a freshly logged entry."""
    lines = ["Logged:"]
    lines.extend(format_item(item) for item in logged.items)
    lines.append(f"Total: {format_macros(logged.totals)}")
    return "\n".join(lines)


def format_entry_items(items: list[LineItem]) -> str:
    """Format the items of one entry for the edit picker."""
    if not items:
        return "This entry has no items to edit."
    lines = ["Pick an item to correct its grams:"]
    lines.extend(format_item(item) for item in items)
    return "\n".join(lines)


def format_day_report(
    report: DayReport | NoData,
    progress: dict[Nutrient, NutrientProgress] | None = None,
) -> str:
    """Format a day report grouped by meal slot."""
    if isinstance(report, NoData):
        if report.raw_entries:
            return (
                f"Nothing with nutrition data logged for {report.range.label}. "
                f"Unrecognized entries: {report.raw_entries}."
            )
        return f"No entries found for {report.range.label}."
    lines = [f"{report.range.label}: {format_macros(report.totals)}"]
    for bucket in report.buckets:
        lines.append("")
        lines.append(f"{SLOT_TITLES[bucket.slot]}: {bucket.totals.kcal:.0f} kcal")
        lines.extend(format_item(row.item) for row in bucket.rows)
    if progress:
        lines.append("")
        lines.append(format_progress(progress))
    return "\n".join(lines)


def format_progress(progress: dict[Nutrient, NutrientProgress]) -> str:
    """Format goal progress with suggestions for lagging nutrients."""
    if not progress:
        return "No goals set. Use /goals to add one."
    lines = ["Goals:"]
    for nutrient, item in progress.items():
        lines.append(
            f"- {nutrient.value.capitalize()}: {item.current:g}/{item.goal:g} "
            f"{nutrient.unit_label} ({item.percent}%, {item.band.value})"
        )
    suggestions = [_SUGGESTIONS[nutrient] for nutrient in lagging_nutrients(progress)]
    if suggestions:
        lines.append("Suggestions:")
        lines.extend(f"- {suggestion}" for suggestion in suggestions)
    return "\n".join(lines)


def format_goals(goals: GoalSet) -> str:
    """Format the user's current goals."""
    lines = ["Your daily goals:"]
    for nutrient in Nutrient:
        value = goals.get(nutrient)
        shown = f"{value:g} {nutrient.unit_label}" if value is not None else "not set"
        lines.append(f"- {nutrient.value.capitalize()}: {shown}")
    return "\n".join(lines)


def format_item_corrected(item: LineItem, report: DayReport | NoData) -> str:
    """Format the reply after a gram correction."""
    lines = ["Updated:", format_item(item)]
    if isinstance(report, DayReport):
        lines.append(f"Today: {format_macros(report.totals)}")
    return "\n".join(lines)


def format_weekly(
    result: WeeklyTrend | InsufficientData,
    progress: dict[Nutrient, NutrientProgress] | None = None,
) -> str:
    """Format the trailing-week view."""
    if isinstance(result, InsufficientData):
        return "Not enough data for the last 7 days yet."
    lines = _format_comparison(result.current, result.previous, result.trends)
    lines.append("")
    lines.append("Daily totals:")
    for day in result.daily:
        lines.append(f"- {day.day:%d.%m}: {day.totals.kcal:.0f} kcal")
    if progress:
        lines.append("")
        lines.append(format_progress(progress))
    return "\n".join(lines)


def format_monthly(
    result: MonthlyTrend | InsufficientData,
    progress: dict[Nutrient, NutrientProgress] | None = None,
) -> str:
    """Format the calendar-month view."""
    if isinstance(result, InsufficientData):
        return f"No data for {result.range.label} yet."
    lines = _format_comparison(result.current, result.previous, result.trends)
    lines.append("")
    lines.append("Weekly averages:")
    for week in result.weeks:
        lines.append(
            f"- Week {week.iso_week}: {week.average.average.kcal:.0f} kcal "
            f"({week.average.days_logged} days)"
        )
    if progress:
        lines.append("")
        lines.append(format_progress(progress))
    return "\n".join(lines)


def _format_comparison(
    current: PeriodAverage,
    previous: PeriodAverage | None,
    trends: list[NutrientTrend],
) -> list[str]:
    lines = [
        f"{current.range.label} ({current.days_logged} days logged), daily average:",
        format_macros(current.average),
    ]
    if previous is None:
        lines.append("Previous period: no data to compare.")
        return lines
    lines.append(f"{previous.range.label}: {format_macros(previous.average)}")
    lines.append("Trend:")
    for trend in trends:
        lines.append(
            f"- {trend.nutrient.value.capitalize()}: {trend.delta:+.1f} "
            f"{_TREND_ARROWS[trend.direction]}"
        )
    return lines
