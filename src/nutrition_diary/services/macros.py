"""Scaling of per-100 g nutrient profiles to portion values."""

from decimal import ROUND_HALF_UP, Decimal

from nutrition_diary.domain.nutrition import MacroProfile

_ONE_DECIMAL = Decimal("0.1")


def round1(value: float) -> float:
    """Round half away from zero to one decimal place."""
    return float(Decimal(repr(value)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    """Round half away from zero to an integer."""
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def scale_profile(grams: float, per100g: MacroProfile) -> MacroProfile:
    """Return absolute values for ``grams`` of a food, one decimal each."""
    factor = grams / 100
    return MacroProfile(
        kcal=round1(per100g.kcal * factor),
        protein=round1(per100g.protein * factor),
        fat=round1(per100g.fat * factor),
        carbs=round1(per100g.carbs * factor),
        fiber=round1(per100g.fiber * factor),
    )


def rescale(macros: MacroProfile, ratio: float) -> MacroProfile:
    """Multiply every field by the same ratio, one decimal each."""
    return MacroProfile(
        kcal=round1(macros.kcal * ratio),
        protein=round1(macros.protein * ratio),
        fat=round1(macros.fat * ratio),
        carbs=round1(macros.carbs * ratio),
        fiber=round1(macros.fiber * ratio),
    )


def sum_profiles(profiles: list[MacroProfile]) -> MacroProfile:
    """Sum profiles and round the totals to one decimal."""
    total = MacroProfile.zero()
    for profile in profiles:
        total = total + profile
    return MacroProfile(
        kcal=round1(total.kcal),
        protein=round1(total.protein),
        fat=round1(total.fat),
        carbs=round1(total.carbs),
        fiber=round1(total.fiber),
    )
