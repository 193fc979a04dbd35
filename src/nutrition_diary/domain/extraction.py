"""Models for structured food extraction results."""

from pydantic import BaseModel, Field

from nutrition_diary.domain.nutrition import MacroProfile, Unit


class Per100g(BaseModel):
    """Nutrient profile normalized to 100 grams."""

    kcal: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    fiber: float = Field(ge=0.0)

    def to_profile(self) -> MacroProfile:
        """Convert to a domain macro profile."""
        return MacroProfile(
            kcal=self.kcal,
            protein=self.protein,
            fat=self.fat,
            carbs=self.carbs,
            fiber=self.fiber,
        )


class ExtractedItem(BaseModel):
    """Single food item recognized by the extractor."""

    name: str = Field(min_length=1)
    quantity: float = Field(gt=0.0)
    unit: Unit
    per100g: Per100g
    density_g_per_ml: float | None = None
    piece_grams: float | None = None
    resolved_grams: float | None = None


class ExtractionResult(BaseModel):
    """Structured output for food extraction."""

    items: list[ExtractedItem]
