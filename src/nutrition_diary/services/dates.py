"""Resolution of day tokens into date ranges in the reference timezone."""

import re
from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from nutrition_diary.domain.stats import DateRange
from nutrition_diary.errors import InvalidDateTokenError

_TODAY_TOKENS = {"today", "сегодня"}
_YESTERDAY_TOKENS = {"yesterday", "вчера"}
_DOTTED_DATE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_SUMMARY_REQUEST = re.compile(
    r"^(?:итог\s+за|summary\s+for)\s+(\S+)$", flags=re.IGNORECASE
)


def today_in(timezone_name: str, now: datetime | None = None) -> date:
    """Return the current calendar day in the given timezone."""
    moment = now or datetime.now(tz=UTC)
    return moment.astimezone(ZoneInfo(timezone_name)).date()


def day_range(day: date, label: str | None = None) -> DateRange:
    """Return the one-day range starting at ``day``."""
    return DateRange(
        start=day,
        end=day + timedelta(days=1),
        label=label or day.strftime("%d.%m.%Y"),
    )


def resolve_day_token(token: str, today: date) -> DateRange:
    """Resolve ``today``, ``yesterday``, ``DD.MM.YYYY`` or ``YYYY-MM-DD``."""
    cleaned = token.strip().lower()
    if cleaned in _TODAY_TOKENS:
        return day_range(today, "Today")
    if cleaned in _YESTERDAY_TOKENS:
        return day_range(today - timedelta(days=1), "Yesterday")

    match = _DOTTED_DATE.match(cleaned)
    if match:
        day, month, year = (int(part) for part in match.groups())
        return day_range(_build_date(year, month, day, token))
    match = _ISO_DATE.match(cleaned)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return day_range(_build_date(year, month, day, token))
    raise InvalidDateTokenError(f"Unrecognized date token: {token!r}")


def parse_summary_request(text: str) -> str | None:
    """Return the date token of a free-text day summary request, if any."""
    match = _SUMMARY_REQUEST.match(text.strip())
    if match is None:
        return None
    return match.group(1)


def _build_date(year: int, month: int, day: int, token: str) -> date:
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDateTokenError(f"Not a calendar date: {token!r}") from exc
