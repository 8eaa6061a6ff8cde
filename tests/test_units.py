from __future__ import annotations

import pytest

from agroledger.errors import UnitMismatchError
from agroledger.models.enums import AreaUnitEnum
from agroledger.services.units import (
    UnitGroup,
    are_compatible,
    convert_amount,
    normalize_unit,
    to_hectares,
    unit_group,
)


@pytest.mark.parametrize(
    ("raw", "canonical"),
    [
        ("kg", "kg"),
        (" Kilos ", "kg"),
        ("Litros", "L"),
        ("l", "L"),
        ("gr", "g"),
        ("m³", "m3"),
        ("Toneladas", "t"),
    ],
)
def test_normalize_unit_accepts_aliases(raw: str, canonical: str) -> None:
    assert normalize_unit(raw) == canonical


def test_normalize_unit_rejects_unknown_symbol() -> None:
    with pytest.raises(UnitMismatchError):
        normalize_unit("bushel")


def test_unit_groups() -> None:
    assert unit_group("kg") == UnitGroup.mass
    assert unit_group("ml") == UnitGroup.volume
    assert are_compatible("g", "t") is True
    assert are_compatible("kg", "L") is False
    assert are_compatible("kg", "bushel") is False


def test_convert_within_mass_group() -> None:
    assert convert_amount(2000, "g", "kg") == pytest.approx(2.0)
    assert convert_amount(1.5, "t", "kg") == pytest.approx(1500.0)
    assert convert_amount(250, "kg", "t") == pytest.approx(0.25)


def test_convert_within_volume_group() -> None:
    assert convert_amount(500, "ml", "L") == pytest.approx(0.5)
    assert convert_amount(2, "m3", "litros") == pytest.approx(2000.0)


def test_convert_same_unit_is_identity() -> None:
    assert convert_amount(7.25, "kg", "kilos") == 7.25


def test_convert_across_groups_is_rejected() -> None:
    with pytest.raises(UnitMismatchError, match="cannot convert kg"):
        convert_amount(1, "kg", "L")


def test_to_hectares() -> None:
    assert to_hectares(2.5, AreaUnitEnum.ha) == 2.5
    assert to_hectares(5000, "m2") == pytest.approx(0.5)
