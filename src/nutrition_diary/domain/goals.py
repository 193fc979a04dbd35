"""Domain models for nutrition goals."""

from dataclasses import dataclass
from enum import StrEnum

from nutrition_diary.domain.nutrition import MacroProfile


class Nutrient(StrEnum):
    """Nutrients a user can set a daily goal for."""

    CALORIES = "calories"
    PROTEIN = "protein"
    FAT = "fat"
    CARBS = "carbs"
    FIBER = "fiber"

    def amount(self, profile: MacroProfile) -> float:
        """Return this nutrient's value from a macro profile."""
        return getattr(profile, _PROFILE_FIELDS[self])

    @property
    def unit_label(self) -> str:
        """Display unit for the nutrient."""
        return "kcal" if self is Nutrient.CALORIES else "g"


_PROFILE_FIELDS = {
    Nutrient.CALORIES: "kcal",
    Nutrient.PROTEIN: "protein",
    Nutrient.FAT: "fat",
    Nutrient.CARBS: "carbs",
    Nutrient.FIBER: "fiber",
}


@dataclass(frozen=True)
class GoalRange:
    """Inclusive bounds accepted for a goal value."""

    minimum: float
    maximum: float

    def contains(self, value: float) -> bool:
        """Return true when the value is within bounds."""
        return self.minimum <= value <= self.maximum


GOAL_RANGES: dict[Nutrient, GoalRange] = {
    Nutrient.CALORIES: GoalRange(500, 8000),
    Nutrient.PROTEIN: GoalRange(20, 400),
    Nutrient.FAT: GoalRange(10, 200),
    Nutrient.CARBS: GoalRange(50, 800),
    Nutrient.FIBER: GoalRange(5, 80),
}


@dataclass(frozen=True)
class GoalSet:
    """Per-user daily targets; None means no goal for that nutrient."""

    calories: float | None = None
    protein: float | None = None
    fat: float | None = None
    carbs: float | None = None
    fiber: float | None = None

    def get(self, nutrient: Nutrient) -> float | None:
        """Return the goal value for a nutrient."""
        return getattr(self, nutrient.value)

    def is_empty(self) -> bool:
        """Return true when no nutrient has a goal."""
        return all(self.get(nutrient) is None for nutrient in Nutrient)


class ProgressBand(StrEnum):
    """Qualitative band for a goal percentage."""

    ON_TRACK = "on track"
    BEHIND = "behind"
    FAR_BEHIND = "far behind"


@dataclass(frozen=True)
class NutrientProgress:
    """Progress toward one goal."""

    current: float
    goal: float
    percent: int
    band: ProgressBand
