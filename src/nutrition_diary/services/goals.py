"""Goal management and progress evaluation."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutrition_diary.domain.goals import (
    GOAL_RANGES,
    GoalSet,
    Nutrient,
    NutrientProgress,
    ProgressBand,
)
from nutrition_diary.domain.nutrition import MacroProfile
from nutrition_diary.errors import (
    GoalOutOfRangeError,
    InvalidGoalValueError,
    UnknownNutrientError,
)
from nutrition_diary.services.macros import round1, round_half_up

ON_TRACK_PERCENT = 90
BEHIND_PERCENT = 70

_NUTRIENT_ALIASES: dict[str, Nutrient] = {
    "calories": Nutrient.CALORIES,
    "calorie": Nutrient.CALORIES,
    "kcal": Nutrient.CALORIES,
    "ккал": Nutrient.CALORIES,
    "калории": Nutrient.CALORIES,
    "protein": Nutrient.PROTEIN,
    "белок": Nutrient.PROTEIN,
    "белки": Nutrient.PROTEIN,
    "fat": Nutrient.FAT,
    "fats": Nutrient.FAT,
    "жиры": Nutrient.FAT,
    "carbs": Nutrient.CARBS,
    "carbohydrates": Nutrient.CARBS,
    "углеводы": Nutrient.CARBS,
    "fiber": Nutrient.FIBER,
    "fibre": Nutrient.FIBER,
    "клетчатка": Nutrient.FIBER,
}

_logger = logging.getLogger(__name__)


class GoalRepository(Protocol):
    """Persistence interface for goal sets."""

    def get_goals(self, user_id: UUID) -> GoalSet | None:
        """Return the user's goal row, if present."""

    def upsert_goal(
        self, user_id: UUID, nutrient: Nutrient, value: float | None
    ) -> None:
        """Create or update a single nutrient goal."""

    def delete_goals(self, user_id: UUID) -> None:
        """Delete the user's goal row."""


def parse_nutrient(raw: str) -> Nutrient:
    """Return the nutrient named by ``raw`` (English or Russian)."""
    nutrient = _NUTRIENT_ALIASES.get(raw.strip().lower())
    if nutrient is None:
        raise UnknownNutrientError(f"Unknown nutrient: {raw!r}")
    return nutrient


def parse_goal_value(nutrient: Nutrient, raw: str) -> float:
    """Parse a typed goal value and check it against the nutrient's range."""
    try:
        value = float(raw.strip().replace(",", "."))
    except ValueError as exc:
        raise InvalidGoalValueError(f"Not a number: {raw!r}") from exc
    return validate_goal(nutrient, value)


def validate_goal(nutrient: Nutrient, value: float) -> float:
    """Return the value when it lies within the nutrient's accepted range."""
    goal_range = GOAL_RANGES[nutrient]
    if not goal_range.contains(value):
        raise GoalOutOfRangeError(
            nutrient.value, value, goal_range.minimum, goal_range.maximum
        )
    return value


@dataclass
class GoalService:
    """Service for reading and editing daily goals."""

    repository: GoalRepository

    def get_goals(self, user_id: UUID) -> GoalSet:
        """Return the user's goals; nutrients without a goal are None."""
        return self.repository.get_goals(user_id) or GoalSet()

    def set_goal(self, user_id: UUID, nutrient: Nutrient, value: float) -> GoalSet:
        """Replace one nutrient goal after validating its range."""
        validate_goal(nutrient, value)
        self.repository.upsert_goal(user_id, nutrient, value)
        _logger.info("Set %s goal to %s for user %s", nutrient.value, value, user_id)
        return self.get_goals(user_id)

    def remove_goal(self, user_id: UUID, nutrient: Nutrient) -> GoalSet:
        """Clear one nutrient goal."""
        self.repository.upsert_goal(user_id, nutrient, None)
        return self.get_goals(user_id)

    def reset_goals(self, user_id: UUID) -> None:
        """Clear all goals."""
        self.repository.delete_goals(user_id)


def evaluate_progress(
    goals: GoalSet, totals: MacroProfile | None
) -> dict[Nutrient, NutrientProgress]:
    """Compare a day's totals with each goal that is set."""
    consumed = totals or MacroProfile.zero()
    progress: dict[Nutrient, NutrientProgress] = {}
    for nutrient in Nutrient:
        goal = goals.get(nutrient)
        if goal is None:
            continue
        amount = nutrient.amount(consumed)
        current = (
            float(round_half_up(amount))
            if nutrient is Nutrient.CALORIES
            else round1(amount)
        )
        percent = round_half_up(amount / goal * 100)
        progress[nutrient] = NutrientProgress(
            current=current,
            goal=goal,
            percent=percent,
            band=progress_band(percent),
        )
    return progress


def progress_band(percent: int) -> ProgressBand:
    """Map a percentage of a goal to its qualitative band."""
    if percent >= ON_TRACK_PERCENT:
        return ProgressBand.ON_TRACK
    if percent >= BEHIND_PERCENT:
        return ProgressBand.BEHIND
    return ProgressBand.FAR_BEHIND


def lagging_nutrients(progress: dict[Nutrient, NutrientProgress]) -> list[Nutrient]:
    """Return nutrients far behind their goal that deserve a suggestion."""
    return [
        nutrient
        for nutrient, item in progress.items()
        if nutrient is not Nutrient.FAT and item.band is ProgressBand.FAR_BEHIND
    ]
