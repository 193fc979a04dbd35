"""Conversion of quantity and unit pairs into grams."""

from dataclasses import dataclass
from enum import Enum

from nutrition_diary.domain.nutrition import Unit

DEFAULT_DENSITY_G_PER_ML = 1.0
DEFAULT_PIECE_GRAMS = 100.0


class ConversionKind(Enum):
    """How a unit turns a quantity into grams."""

    MASS = "mass"
    VOLUME = "volume"
    DISCRETE = "discrete"
    FIXED = "fixed"


@dataclass(frozen=True)
class ConversionRule:
    """Conversion policy for a single unit."""

    kind: ConversionKind
    grams_per_unit: float = 1.0


UNIT_CONVERSIONS: dict[Unit, ConversionRule] = {
    Unit.G: ConversionRule(ConversionKind.MASS),
    Unit.ML: ConversionRule(ConversionKind.VOLUME, DEFAULT_DENSITY_G_PER_ML),
    Unit.PIECE: ConversionRule(ConversionKind.DISCRETE, DEFAULT_PIECE_GRAMS),
    Unit.SLICE: ConversionRule(ConversionKind.DISCRETE, DEFAULT_PIECE_GRAMS),
    Unit.TSP: ConversionRule(ConversionKind.FIXED, 5.0),
    Unit.TBSP: ConversionRule(ConversionKind.FIXED, 15.0),
    Unit.CUP: ConversionRule(ConversionKind.FIXED, 250.0),
    Unit.GLASS: ConversionRule(ConversionKind.FIXED, 250.0),
    Unit.CAN: ConversionRule(ConversionKind.FIXED, 330.0),
    Unit.BOTTLE: ConversionRule(ConversionKind.FIXED, 330.0),
}


def resolve_grams(
    quantity: float,
    unit: Unit,
    *,
    density_g_per_ml: float | None = None,
    piece_grams: float | None = None,
    model_declared_grams: float | None = None,
) -> float:
    """Return the weight in grams for a quantity of a unit.

    A positive gram estimate declared by the extractor wins over any
    conversion. Otherwise the unit's rule from ``UNIT_CONVERSIONS`` applies,
    with the item-specific density or piece weight replacing the rule's
    default when it is positive.
    """
    if _positive(model_declared_grams):
        return float(model_declared_grams)
    rule = UNIT_CONVERSIONS[Unit(unit)]
    if rule.kind is ConversionKind.MASS:
        return float(quantity)
    if rule.kind is ConversionKind.VOLUME:
        density = (
            density_g_per_ml if _positive(density_g_per_ml) else rule.grams_per_unit
        )
        return float(quantity) * density
    if rule.kind is ConversionKind.DISCRETE:
        weight = piece_grams if _positive(piece_grams) else rule.grams_per_unit
        return float(quantity) * weight
    return float(quantity) * rule.grams_per_unit


def _positive(value: float | None) -> bool:
    return value is not None and value > 0
