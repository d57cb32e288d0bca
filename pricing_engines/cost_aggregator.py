"""
Cost Aggregator - Fold itemized budget costs into direct and total costs.

Pure functions with no I/O.  The aggregator is the first stage of the
pricing pipeline:

    CostInputs -> aggregate_costs -> PricingCalculator -> IncomeTaxEstimator

Usage:
    from decimal import Decimal
    from pricing_engines.cost_aggregator import CostInputs, aggregate_costs

    inputs = CostInputs(
        labor_cost=Decimal("600"),
        material_cost=Decimal("300"),
        indirect_costs_total=Decimal("100"),
        profit_margin_percent=Decimal("20"),
    )
    summary = aggregate_costs(inputs)
    print(summary.total_direct_costs)  # 900
    print(summary.total_costs)  # 1000

Itemized rows (the budget form's line-item editor) are folded with
``aggregate_line_items``; hourly labor is derived with
``labor_cost_from_rate``.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Sequence

from pricing_engines.tracer import traced_engine
from pricing_kernel.domain.tax_regime import non_negative_decimal
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.cost_aggregator")

ZERO = Decimal("0")

# Attribute name -> external (form/API) field name used in validation errors.
FIELD_NAMES: dict[str, str] = {
    "labor_cost": "laborCost",
    "labor_hours": "laborHours",
    "material_cost": "materialCost",
    "third_party_cost": "thirdPartyCost",
    "other_direct_costs": "otherDirectCosts",
    "indirect_costs_total": "indirectCostsTotal",
    "profit_margin_percent": "profitMarginPercent",
}

_EXTERNAL_TO_ATTR = {v: k for k, v in FIELD_NAMES.items()}


@dataclass(frozen=True)
class CostInputs:
    """
    Raw cost figures and target margin for one budget.

    All fields default to zero and must be non-negative.  ``labor_hours``
    is informational and does not enter any sum.
    """

    labor_cost: Decimal = ZERO
    labor_hours: Decimal = ZERO
    material_cost: Decimal = ZERO
    third_party_cost: Decimal = ZERO
    other_direct_costs: Decimal = ZERO
    indirect_costs_total: Decimal = ZERO
    profit_margin_percent: Decimal = ZERO

    def __post_init__(self) -> None:
        for attr, label in FIELD_NAMES.items():
            object.__setattr__(self, attr, non_negative_decimal(label, getattr(self, attr)))

    def replace(self, **changes: Any) -> CostInputs:
        """Copy with some fields changed; validation runs again."""
        return dataclasses.replace(self, **changes)

    def as_dict(self) -> dict[str, Decimal]:
        return {attr: getattr(self, attr) for attr in FIELD_NAMES}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CostInputs:
        """
        Build from a mapping keyed by attribute or external field names.

        Unknown keys raise KeyError so misspelt form fields are not
        silently priced as zero.
        """
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            attr = key if key in FIELD_NAMES else _EXTERNAL_TO_ATTR.get(key)
            if attr is None:
                raise KeyError(f"Unknown cost field: {key}")
            if value is not None:
                kwargs[attr] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class CostSummary:
    """Exact (unrounded) cost totals."""

    total_direct_costs: Decimal
    total_costs: Decimal

    @property
    def indirect_costs(self) -> Decimal:
        return self.total_costs - self.total_direct_costs


@traced_engine("cost_aggregator", "1.0", fingerprint_fields=("inputs",))
def aggregate_costs(inputs: CostInputs) -> CostSummary:
    """
    Sum direct costs, then add the indirect allocation.

    total_direct_costs = labor + material + third_party + other_direct
    total_costs = total_direct_costs + indirect_costs_total

    Negative fields never reach this point: CostInputs rejects them at
    construction with a ValidationError naming the field.
    """
    direct = (
        inputs.labor_cost
        + inputs.material_cost
        + inputs.third_party_cost
        + inputs.other_direct_costs
    )
    total = direct + inputs.indirect_costs_total

    logger.debug("costs_aggregated", extra={
        "total_direct_costs": str(direct),
        "total_costs": str(total),
    })

    return CostSummary(total_direct_costs=direct, total_costs=total)


# ---------------------------------------------------------------------------
# Itemized costs
# ---------------------------------------------------------------------------


class CostKind(str, Enum):
    """Category of an itemized cost row."""

    LABOR = "labor"
    MATERIAL = "material"
    THIRD_PARTY = "third_party"
    SERVICE = "service"  # outsourced service, billed as third party
    OTHER = "other"
    INDIRECT = "indirect"


_KIND_TO_FIELD: dict[CostKind, str] = {
    CostKind.LABOR: "labor_cost",
    CostKind.MATERIAL: "material_cost",
    CostKind.THIRD_PARTY: "third_party_cost",
    CostKind.SERVICE: "third_party_cost",
    CostKind.OTHER: "other_direct_costs",
    CostKind.INDIRECT: "indirect_costs_total",
}


@dataclass(frozen=True)
class CostLineItem:
    """One itemized cost row: quantity x unit price."""

    kind: CostKind
    description: str
    unit_price: Decimal
    quantity: Decimal = Decimal("1")

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", CostKind(self.kind))
        object.__setattr__(self, "quantity", non_negative_decimal("quantity", self.quantity))
        object.__setattr__(self, "unit_price", non_negative_decimal("unitPrice", self.unit_price))

    @property
    def total(self) -> Decimal:
        return self.quantity * self.unit_price

    def as_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "total": self.total,
        }


def labor_cost_from_rate(hours: Decimal, hourly_rate: Decimal) -> Decimal:
    """Labor cost from hours worked and an hourly rate (exact)."""
    hours = non_negative_decimal("laborHours", hours)
    return hours * non_negative_decimal("laborRate", hourly_rate)


@traced_engine(
    "cost_aggregator", "1.0",
    fingerprint_fields=("items", "profit_margin_percent", "labor_hours", "labor_rate"),
)
def aggregate_line_items(
    items: Sequence[CostLineItem],
    profit_margin_percent: Decimal = ZERO,
    labor_hours: Decimal = ZERO,
    labor_rate: Decimal | None = None,
) -> CostInputs:
    """
    Fold itemized rows into a CostInputs, one bucket per cost kind.

    With ``labor_rate``, ``labor_hours x labor_rate`` is added to the labor
    bucket on top of any labor rows.
    """
    buckets: dict[str, Decimal] = {field: ZERO for field in set(_KIND_TO_FIELD.values())}
    count = 0
    for item in items:
        buckets[_KIND_TO_FIELD[item.kind]] += item.total
        count += 1
    if labor_rate is not None:
        buckets["labor_cost"] += labor_cost_from_rate(labor_hours, labor_rate)

    logger.debug("line_items_aggregated", extra={"item_count": count})

    return CostInputs(
        labor_hours=labor_hours,
        profit_margin_percent=profit_margin_percent,
        **buckets,
    )
