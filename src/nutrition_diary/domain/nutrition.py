"""Nutrition domain models."""

from dataclasses import dataclass
from enum import StrEnum


class Unit(StrEnum):
    """Quantity units accepted from the extractor."""

    G = "g"
    ML = "ml"
    PIECE = "piece"
    SLICE = "slice"
    TSP = "tsp"
    TBSP = "tbsp"
    CUP = "cup"
    GLASS = "glass"
    CAN = "can"
    BOTTLE = "bottle"


@dataclass(frozen=True)
class MacroProfile:
    """Calories, macronutrients and fiber for a portion or a 100 g reference."""

    kcal: float
    protein: float
    fat: float
    carbs: float
    fiber: float

    @classmethod
    def zero(cls) -> "MacroProfile":
        """Return an all-zero profile."""
        return cls(kcal=0.0, protein=0.0, fat=0.0, carbs=0.0, fiber=0.0)

    def __add__(self, other: "MacroProfile") -> "MacroProfile":
        return MacroProfile(
            kcal=self.kcal + other.kcal,
            protein=self.protein + other.protein,
            fat=self.fat + other.fat,
            carbs=self.carbs + other.carbs,
            fiber=self.fiber + other.fiber,
        )

    def as_dict(self) -> dict[str, float]:
        """Return the profile as a plain mapping."""
        return {
            "kcal": self.kcal,
            "protein": self.protein,
            "fat": self.fat,
            "carbs": self.carbs,
            "fiber": self.fiber,
        }
