"""Unit normalisation and conversion for stock and usage quantities.

Each unit belongs to a group with a base unit; its factor is the size of one
unit expressed in that base:

    mass   (base g):  g = 1,  kg = 1_000,  t = 1_000_000
    volume (base ml): ml = 1, L = 1_000,   m3 = 1_000_000

Conversion inside a group multiplies by ``factor(from) / factor(to)``.
Conversion across groups (e.g. kg -> L) is rejected: no density is known.
"""

from __future__ import annotations

from enum import StrEnum

from agroledger.errors import UnitMismatchError
from agroledger.models.enums import AreaUnitEnum


class UnitGroup(StrEnum):
	mass = "mass"
	volume = "volume"


_UNIT_TABLE: dict[str, tuple[UnitGroup, float]] = {
	"g": (UnitGroup.mass, 1.0),
	"kg": (UnitGroup.mass, 1_000.0),
	"t": (UnitGroup.mass, 1_000_000.0),
	"ml": (UnitGroup.volume, 1.0),
	"L": (UnitGroup.volume, 1_000.0),
	"m3": (UnitGroup.volume, 1_000_000.0),
}

_ALIASES: dict[str, str] = {
	"g": "g",
	"gr": "g",
	"gramo": "g",
	"gramos": "g",
	"gram": "g",
	"grams": "g",
	"kg": "kg",
	"kilo": "kg",
	"kilos": "kg",
	"kilogramo": "kg",
	"kilogramos": "kg",
	"kilogram": "kg",
	"kilograms": "kg",
	"t": "t",
	"tn": "t",
	"tonelada": "t",
	"toneladas": "t",
	"tonne": "t",
	"tonnes": "t",
	"ml": "ml",
	"mililitro": "ml",
	"mililitros": "ml",
	"millilitre": "ml",
	"milliliter": "ml",
	"l": "L",
	"lt": "L",
	"litro": "L",
	"litros": "L",
	"litre": "L",
	"liter": "L",
	"liters": "L",
	"m3": "m3",
	"m^3": "m3",
	"m³": "m3",
	"metro cubico": "m3",
	"metros cubicos": "m3",
	"cubic meter": "m3",
}

SQUARE_METRES_PER_HECTARE = 10_000.0


def normalize_unit(unit: str) -> str:
	"""Return the canonical symbol for ``unit`` (``"Litros"`` -> ``"L"``)."""
	canonical = _ALIASES.get(unit.strip().lower())
	if canonical is None:
		raise UnitMismatchError(f"unsupported unit: {unit!r}")
	return canonical


def unit_group(unit: str) -> UnitGroup:
	return _UNIT_TABLE[normalize_unit(unit)][0]


def are_compatible(from_unit: str, to_unit: str) -> bool:
	try:
		return unit_group(from_unit) == unit_group(to_unit)
	except UnitMismatchError:
		return False


def convert_amount(amount: float, from_unit: str, to_unit: str) -> float:
	"""Convert ``amount`` expressed in ``from_unit`` into ``to_unit``."""
	source = normalize_unit(from_unit)
	target = normalize_unit(to_unit)
	if source == target:
		return float(amount)

	source_group, source_factor = _UNIT_TABLE[source]
	target_group, target_factor = _UNIT_TABLE[target]
	if source_group != target_group:
		raise UnitMismatchError(
			f"cannot convert {source} ({source_group}) to {target} ({target_group})"
		)
	return float(amount) * source_factor / target_factor


def to_hectares(surface_area: float, area_unit: AreaUnitEnum | str) -> float:
	if AreaUnitEnum(area_unit) == AreaUnitEnum.m2:
		return float(surface_area) / SQUARE_METRES_PER_HECTARE
	return float(surface_area)
