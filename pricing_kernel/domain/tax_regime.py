"""
Tax regime -- the rate set every pricing calculation is run under.

Responsibility:
    Immutable description of the consumption taxes embedded in a price
    (CBS, IBS) and the income taxes estimated on the resulting profit
    (IRPJ, CSLL), together with how that profit base is declared.

Architecture position:
    Kernel > Domain -- pure value object.  Built by ``pricing_config`` from
    YAML and passed explicitly to every engine; calculators never hold
    rates of their own.

Invariants enforced:
    - Every rate is a non-negative Decimal percentage (``Decimal("0.9")``
      means 0.9%).
    - A presumed-profit regime declares its presumed profit percentage,
      within [0, 100].

Failure modes:
    - ValidationError naming the offending rate.

A combined consumption rate at or above 100% is a valid regime value but
cannot price anything; the gross-up engine raises DomainError for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping

from pricing_kernel.exceptions import ValidationError

HUNDRED = Decimal("100")


class ProfitBase(str, Enum):
    """How the income-tax profit base is derived."""

    ACTUAL = "actual"  # gross value minus total costs
    PRESUMED = "presumed"  # fixed share of gross value


def non_negative_decimal(field: str, value: Any) -> Decimal:
    """Coerce an amount or percentage to a finite, non-negative Decimal."""
    if isinstance(value, float):
        raise ValidationError(field, value, "must be Decimal, int or str, not float")
    if isinstance(value, bool):
        raise ValidationError(field, value, "must be numeric")
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(field, value, "must be numeric") from e
    if not dec.is_finite():
        raise ValidationError(field, value, "must be finite")
    if dec < 0:
        raise ValidationError(field, value, "must be non-negative")
    return dec


@dataclass(frozen=True)
class TaxRegime:
    """
    Named tax rate set.

    Rates are percentages.  ``profit_base`` selects how IRPJ/CSLL are
    levied; ``presumed_profit_percent`` is only meaningful for
    ``ProfitBase.PRESUMED``.
    """

    name: str
    cbs_rate: Decimal
    ibs_rate: Decimal
    irpj_rate: Decimal
    csll_rate: Decimal
    profit_base: ProfitBase = ProfitBase.ACTUAL
    presumed_profit_percent: Decimal | None = None
    description: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValidationError("name", self.name, "must not be empty")
        for attr, label in (
            ("cbs_rate", "cbsRate"),
            ("ibs_rate", "ibsRate"),
            ("irpj_rate", "irpjRate"),
            ("csll_rate", "csllRate"),
        ):
            object.__setattr__(self, attr, non_negative_decimal(label, getattr(self, attr)))

        object.__setattr__(self, "profit_base", ProfitBase(self.profit_base))
        if self.profit_base == ProfitBase.PRESUMED:
            if self.presumed_profit_percent is None:
                raise ValidationError(
                    "presumedProfitPercent", None,
                    "required for a presumed profit base",
                )
            presumed = non_negative_decimal("presumedProfitPercent", self.presumed_profit_percent)
            if presumed > HUNDRED:
                raise ValidationError(
                    "presumedProfitPercent", presumed, "must not exceed 100"
                )
            object.__setattr__(self, "presumed_profit_percent", presumed)
        elif self.presumed_profit_percent is not None:
            object.__setattr__(
                self,
                "presumed_profit_percent",
                non_negative_decimal("presumedProfitPercent", self.presumed_profit_percent),
            )

    @property
    def combined_consumption_rate(self) -> Decimal:
        return self.cbs_rate + self.ibs_rate

    def as_dict(self) -> dict[str, Any]:
        """Snapshot form stored alongside a quote."""
        return {
            "name": self.name,
            "cbs_rate": self.cbs_rate,
            "ibs_rate": self.ibs_rate,
            "irpj_rate": self.irpj_rate,
            "csll_rate": self.csll_rate,
            "profit_base": self.profit_base.value,
            "presumed_profit_percent": self.presumed_profit_percent,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TaxRegime:
        return cls(
            name=data["name"],
            cbs_rate=data["cbs_rate"],
            ibs_rate=data["ibs_rate"],
            irpj_rate=data["irpj_rate"],
            csll_rate=data["csll_rate"],
            profit_base=ProfitBase(data.get("profit_base", ProfitBase.ACTUAL.value)),
            presumed_profit_percent=data.get("presumed_profit_percent"),
            description=data.get("description", ""),
        )
