"""
Pricing pipeline - CostInputs + TaxRegime -> PricedBudget.

Responsibility:
    Run the aggregator, the gross-up calculator and the income-tax
    estimator in order, then present the result: every currency figure
    rounded once to two places (ROUND_HALF_UP), rates and margin to at
    most two places.

Architecture position:
    Engines -- pure orchestration of sibling engines.  The budget module
    stores the PricedBudget figures; renderers read ``as_record()``.

Invariants enforced:
    - Presented figures reconcile exactly:
        cbs_amount + ibs_amount == total_consumption_taxes
        gross_value + total_consumption_taxes == final_price
        gross_value - total_costs - irpj_amount - csll_amount == net_profit
      Independent rounding of CBS and IBS can drift one cent from
      final - gross; the larger tax line absorbs it (IBS on a tie).
    - Rounding is monotone, so final_price >= gross_value >= total_costs
      holds on presented figures as well as exact ones.
    - No partial records: a PricedBudget is either fully computed or an
      exception is raised.

Failure modes:
    - ValidationError from CostInputs / TaxRegime construction.
    - DomainError when margin or combined consumption rate >= 100%.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pricing_engines.cost_aggregator import CostInputs, aggregate_costs
from pricing_engines.gross_up import GrossUpResult, PricingCalculator
from pricing_engines.income_tax import IncomeTaxEstimator, IncomeTaxResult
from pricing_engines.tracer import traced_engine
from pricing_kernel.db.types import round_money, round_percent
from pricing_kernel.domain.currency import CurrencyRegistry
from pricing_kernel.domain.tax_regime import TaxRegime
from pricing_kernel.domain.values import Money
from pricing_kernel.exceptions import ValidationError
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.pricing")

# Presented computed fields, in record order.
COMPUTED_FIELDS: tuple[str, ...] = (
    "total_direct_costs",
    "total_costs",
    "gross_value",
    "cbs_amount",
    "ibs_amount",
    "total_consumption_taxes",
    "final_price",
    "irpj_amount",
    "csll_amount",
    "net_profit",
    "effective_margin_percent",
)


def installment_value(final_price: Decimal, installments: int) -> Decimal:
    """One installment of a payment plan: final price / n, rounded half-up."""
    if isinstance(installments, bool) or not isinstance(installments, int) or installments < 1:
        raise ValidationError("installments", installments, "must be an integer >= 1")
    return round_money(final_price / Decimal(installments))


@dataclass(frozen=True)
class PricedBudget:
    """
    Presented pricing result.

    Currency fields are 2-place Decimals; ``effective_margin_percent`` is a
    percentage with two places.  ``inputs`` and ``regime`` are the exact
    snapshots the figures were computed from.
    """

    inputs: CostInputs
    regime: TaxRegime
    total_direct_costs: Decimal
    total_costs: Decimal
    gross_value: Decimal
    cbs_amount: Decimal
    ibs_amount: Decimal
    total_consumption_taxes: Decimal
    final_price: Decimal
    irpj_amount: Decimal
    csll_amount: Decimal
    net_profit: Decimal
    effective_margin_percent: Decimal

    def money(self, field: str, currency: str = CurrencyRegistry.DEFAULT) -> Money:
        """A presented currency figure as Money in the quote currency."""
        if field not in COMPUTED_FIELDS or field == "effective_margin_percent":
            raise KeyError(f"Not a currency field: {field}")
        return Money.of(getattr(self, field), currency)

    def installment_value(self, installments: int) -> Decimal:
        return installment_value(self.final_price, installments)

    def computed(self) -> dict[str, Decimal]:
        return {name: getattr(self, name) for name in COMPUTED_FIELDS}

    def as_record(self) -> dict[str, Any]:
        """
        Flat record for renderers: input snapshot, regime snapshot and
        computed figures.  Values are Decimals ready for display.
        """
        record: dict[str, Any] = dict(self.inputs.as_dict())
        record.update({
            "regime_name": self.regime.name,
            "cbs_rate": round_percent(self.regime.cbs_rate),
            "ibs_rate": round_percent(self.regime.ibs_rate),
            "irpj_rate": round_percent(self.regime.irpj_rate),
            "csll_rate": round_percent(self.regime.csll_rate),
            "profit_base": self.regime.profit_base.value,
        })
        record.update(self.computed())
        return record


def _present(
    inputs: CostInputs,
    regime: TaxRegime,
    total_direct_costs: Decimal,
    gross: GrossUpResult,
    income: IncomeTaxResult,
) -> PricedBudget:
    direct_r = round_money(total_direct_costs)
    costs_r = round_money(gross.total_costs)
    gross_r = round_money(gross.gross_value)
    final_r = round_money(gross.final_price)
    taxes_r = final_r - gross_r

    # Residual cent goes to the larger line so a zero-rated line stays zero.
    if gross.cbs_amount > gross.ibs_amount:
        ibs_r = round_money(gross.ibs_amount)
        cbs_r = taxes_r - ibs_r
    else:
        cbs_r = round_money(gross.cbs_amount)
        ibs_r = taxes_r - cbs_r

    irpj_r = round_money(income.irpj_amount)
    csll_r = round_money(income.csll_amount)
    net_r = gross_r - costs_r - irpj_r - csll_r

    return PricedBudget(
        inputs=inputs,
        regime=regime,
        total_direct_costs=direct_r,
        total_costs=costs_r,
        gross_value=gross_r,
        cbs_amount=cbs_r,
        ibs_amount=ibs_r,
        total_consumption_taxes=taxes_r,
        final_price=final_r,
        irpj_amount=irpj_r,
        csll_amount=csll_r,
        net_profit=net_r,
        effective_margin_percent=round_percent(income.effective_margin_percent),
    )


@traced_engine("pricing_pipeline", "1.0", fingerprint_fields=("inputs", "regime"))
def price_budget(inputs: CostInputs, regime: TaxRegime) -> PricedBudget:
    """
    Price one budget end to end.

    Deterministic: the same (inputs, regime) always yields an identical
    PricedBudget.

    Raises:
        DomainError: margin or combined consumption rate >= 100%.
    """
    summary = aggregate_costs(inputs)
    gross = PricingCalculator().price(
        total_costs=summary.total_costs,
        profit_margin_percent=inputs.profit_margin_percent,
        regime=regime,
    )
    income = IncomeTaxEstimator().estimate(
        gross_value=gross.gross_value,
        total_costs=summary.total_costs,
        final_price=gross.final_price,
        regime=regime,
    )
    priced = _present(inputs, regime, summary.total_direct_costs, gross, income)

    logger.info("budget_priced", extra={
        "regime": regime.name,
        "total_costs": priced.total_costs,
        "final_price": priced.final_price,
        "effective_margin_percent": priced.effective_margin_percent,
    })
    return priced
