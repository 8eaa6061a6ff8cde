"""Activity cost aggregation: pure functions over line items.

    total_cost       = sum(dose * price_per_unit for product usages)
                     + sum(cost of each fertigation sub-record)
    cost_per_hectare = total_cost / area_in_hectares   (0 when area is 0)

A fertigation sub-record contributes its supplied ``cost``; when the client
left it out, the cost is the sum of that day's own product usages.

The activity write path calls ``compute_activity_costs`` before every
persist, so the derived columns are always a function of the stored items.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from agroledger.models.enums import AreaUnitEnum
from agroledger.services.units import to_hectares


class PricedUsage(Protocol):
	dose: float
	price_per_unit: float


class CostedEntry(Protocol):
	cost: float | None

	@property
	def products(self) -> Iterable[PricedUsage]: ...


@dataclass(frozen=True, slots=True)
class CostBreakdown:
	products_cost: float
	fertigation_cost: float
	total_cost: float
	cost_per_hectare: float


def line_item_cost(usage: PricedUsage) -> float:
	return float(usage.dose) * float(usage.price_per_unit)


def products_cost(products: Iterable[PricedUsage]) -> float:
	return sum((line_item_cost(usage) for usage in products), 0.0)


def fertigation_entry_cost(entry: CostedEntry) -> float:
	if entry.cost is not None:
		return float(entry.cost)
	return products_cost(entry.products)


def compute_activity_costs(
	products: Iterable[PricedUsage],
	fertigation: Iterable[CostedEntry],
	surface_area: float,
	area_unit: AreaUnitEnum | str = AreaUnitEnum.ha,
) -> CostBreakdown:
	direct = products_cost(products)
	fertigation_total = sum((fertigation_entry_cost(entry) for entry in fertigation), 0.0)
	total = direct + fertigation_total

	hectares = to_hectares(surface_area, area_unit)
	per_hectare = total / hectares if hectares > 0 else 0.0
	return CostBreakdown(
		products_cost=direct,
		fertigation_cost=fertigation_total,
		total_cost=total,
		cost_per_hectare=per_hectare,
	)
