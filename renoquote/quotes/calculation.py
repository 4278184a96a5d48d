"""Quote amount calculation from line items."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

COST_TYPES = ("labor", "material", "composite")


@dataclass(slots=True)
class QuoteTotals:
    labor_cost: int
    material_cost: int
    other_cost: int
    discount_amount: int
    vat_amount: int
    total_amount: int
    final_amount: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _included(item: Mapping[str, Any]) -> bool:
    return item.get("is_included") is not False


def recalculate_totals(
    items: Iterable[Mapping[str, Any]],
    other_cost: int | None = 0,
    discount_amount: int | None = 0,
    vat_amount: int | None = 0,
    default_labor_ratio: float = 0.3,
) -> QuoteTotals:
    """Split included items into labor and material cost and derive the totals.

    Composite items contribute ``round(total * labor_ratio)`` to labor and the
    remainder to material; a missing ratio uses ``default_labor_ratio``.
    """
    labor = 0
    material = 0
    for item in items:
        if not _included(item):
            continue
        total = int(item.get("total_price") or 0)
        cost_type = item.get("cost_type") or "material"
        if cost_type == "labor":
            labor += total
        elif cost_type == "composite":
            ratio = item.get("labor_ratio") or default_labor_ratio
            composite_labor = _round(Decimal(total) * Decimal(str(ratio)))
            labor += composite_labor
            material += total - composite_labor
        else:
            material += total

    other = other_cost or 0
    discount = discount_amount or 0
    vat = vat_amount or 0
    total_amount = labor + material + other
    return QuoteTotals(
        labor_cost=labor,
        material_cost=material,
        other_cost=other,
        discount_amount=discount,
        vat_amount=vat,
        total_amount=total_amount,
        final_amount=total_amount - discount + vat,
    )
