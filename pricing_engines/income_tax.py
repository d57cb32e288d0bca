"""
Income Tax Engine - IRPJ/CSLL estimate and take-home margin for a priced budget.

Consumption taxes embedded in the final price are pass-through: they are
collected from the customer and remitted, so they never enter the profit
base.  The base is declared by the regime:

    ACTUAL   : gross_value - total_costs
    PRESUMED : gross_value * presumed_profit_percent / 100

A negative base (a loss) is floored at zero.  Then:

    irpj = base * irpj_rate / 100
    csll = base * csll_rate / 100
    net_profit = gross_value - total_costs - irpj - csll
    effective_margin_percent = net_profit / final_price * 100

Pure, exact Decimal; no rounding here.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal, localcontext

from pricing_engines.tracer import traced_engine
from pricing_kernel.db.types import CALCULATION_CONTEXT, HUNDRED, percent_of
from pricing_kernel.domain.tax_regime import ProfitBase, TaxRegime
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.income_tax")

ZERO = Decimal("0")


@dataclass(frozen=True)
class IncomeTaxResult:
    """Exact income-tax estimate."""

    profit_base: ProfitBase
    taxable_profit: Decimal
    irpj_amount: Decimal
    csll_amount: Decimal
    net_profit: Decimal
    effective_margin_percent: Decimal

    @property
    def total_income_taxes(self) -> Decimal:
        return self.irpj_amount + self.csll_amount


class IncomeTaxEstimator:
    """Estimates IRPJ and CSLL on a priced budget's profit."""

    def taxable_profit(
        self,
        gross_value: Decimal,
        total_costs: Decimal,
        regime: TaxRegime,
    ) -> Decimal:
        with localcontext(CALCULATION_CONTEXT):
            if regime.profit_base == ProfitBase.PRESUMED:
                base = percent_of(gross_value, regime.presumed_profit_percent)
            else:
                base = gross_value - total_costs
        return max(base, ZERO)

    @traced_engine(
        "income_tax", "1.0",
        fingerprint_fields=("gross_value", "total_costs", "final_price", "regime"),
    )
    def estimate(
        self,
        gross_value: Decimal,
        total_costs: Decimal,
        final_price: Decimal,
        regime: TaxRegime,
    ) -> IncomeTaxResult:
        t0 = time.monotonic()
        logger.info("income_tax_estimation_started", extra={
            "regime": regime.name,
            "profit_base": regime.profit_base.value,
            "gross_value": str(gross_value),
        })

        base = self.taxable_profit(gross_value, total_costs, regime)

        with localcontext(CALCULATION_CONTEXT):
            irpj = percent_of(base, regime.irpj_rate)
            csll = percent_of(base, regime.csll_rate)
            net = gross_value - total_costs - irpj - csll
            if final_price == ZERO:
                margin = ZERO
            else:
                margin = net / final_price * HUNDRED

        if base == ZERO and gross_value < total_costs:
            logger.warning("income_tax_base_floored", extra={
                "regime": regime.name,
                "loss": str(total_costs - gross_value),
            })

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("income_tax_estimation_completed", extra={
            "regime": regime.name,
            "taxable_profit": str(base),
            "irpj_amount": str(irpj),
            "csll_amount": str(csll),
            "duration_ms": duration_ms,
        })

        return IncomeTaxResult(
            profit_base=regime.profit_base,
            taxable_profit=base,
            irpj_amount=irpj,
            csll_amount=csll,
            net_profit=net,
            effective_margin_percent=margin,
        )
