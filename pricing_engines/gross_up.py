"""
Gross-Up Engine - Tax-inclusive pricing from costs and a target margin.

Two divisions, both on the price basis:

    gross_value = total_costs / (1 - margin / 100)          margin-on-price
    final_price = gross_value / (1 - (cbs + ibs) / 100)     "por dentro"

CBS and IBS are quoted against the final price the customer pays, so the
consumption taxes are embedded in that price rather than added on top:

    cbs_amount = final_price * cbs / 100
    ibs_amount = final_price * ibs / 100
    cbs_amount + ibs_amount + gross_value == final_price

All arithmetic is exact Decimal under a fixed context; this module never
rounds.  Presentation rounding belongs to ``pricing_engines.pricing``.

Usage:
    from decimal import Decimal
    from pricing_engines.gross_up import PricingCalculator

    calculator = PricingCalculator()
    result = calculator.price(
        total_costs=Decimal("1000"),
        profit_margin_percent=Decimal("20"),
        regime=regime,  # cbs 0.9, ibs 17.7
    )
    print(result.gross_value)  # 1250
    print(result.final_price)  # 1535.626535626535...
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext

from pricing_engines.tracer import traced_engine
from pricing_kernel.db.types import CALCULATION_CONTEXT, HUNDRED, percent_of
from pricing_kernel.domain.tax_regime import TaxRegime
from pricing_kernel.exceptions import DomainError
from pricing_kernel.logging_config import get_logger

logger = get_logger("engines.gross_up")

ONE = Decimal("1")


@dataclass(frozen=True)
class GrossUpResult:
    """
    Exact result of pricing one cost total under one regime.

    Figures are unrounded; ``cbs_amount + ibs_amount`` is the embedded
    consumption tax.
    """

    total_costs: Decimal
    profit_margin_percent: Decimal
    gross_value: Decimal
    final_price: Decimal
    cbs_amount: Decimal
    ibs_amount: Decimal

    @property
    def total_consumption_taxes(self) -> Decimal:
        return self.cbs_amount + self.ibs_amount

    @property
    def margin_amount(self) -> Decimal:
        return self.gross_value - self.total_costs


class PricingCalculator:
    """
    Converts a cost total into a tax-inclusive final price.

    Stateless; every rate comes from the TaxRegime passed in.
    """

    def gross_value(self, total_costs: Decimal, profit_margin_percent: Decimal) -> Decimal:
        """
        Apply the margin on price: margin is the share of gross value kept.

        Raises:
            DomainError: margin >= 100% (no finite price keeps the whole price).
        """
        if profit_margin_percent >= HUNDRED:
            raise DomainError(
                "profit margin must be below 100% of price",
                field="profitMarginPercent",
                value=profit_margin_percent,
            )
        with localcontext(CALCULATION_CONTEXT):
            return total_costs / (ONE - profit_margin_percent / HUNDRED)

    def gross_up(self, gross_value: Decimal, regime: TaxRegime) -> Decimal:
        """
        Embed CBS + IBS in the price.

        Raises:
            DomainError: combined consumption rate >= 100%.
        """
        combined = regime.combined_consumption_rate
        if combined >= HUNDRED:
            logger.error("gross_up_rate_exceeds_basis", extra={
                "regime": regime.name,
                "combined_rate": str(combined),
            })
            raise DomainError(
                "tax rate exceeds price basis",
                field="combinedConsumptionRate",
                value=combined,
            )
        with localcontext(CALCULATION_CONTEXT):
            return gross_value / (ONE - combined / HUNDRED)

    @traced_engine(
        "gross_up", "1.0",
        fingerprint_fields=("total_costs", "profit_margin_percent", "regime"),
    )
    def price(
        self,
        total_costs: Decimal,
        profit_margin_percent: Decimal,
        regime: TaxRegime,
    ) -> GrossUpResult:
        """
        Price a cost total: margin first, then the consumption gross-up.

        Preconditions:
            total_costs and profit_margin_percent are non-negative Decimals
            (CostInputs guarantees this).

        Postconditions:
            final_price >= gross_value >= total_costs.
            margin == 0 implies gross_value == total_costs.
            combined rate == 0 implies final_price == gross_value.

        Raises:
            DomainError: margin or combined consumption rate >= 100%.
        """
        gross = self.gross_value(total_costs, profit_margin_percent)
        final = self.gross_up(gross, regime)

        with localcontext(CALCULATION_CONTEXT):
            cbs = percent_of(final, regime.cbs_rate)
            ibs = percent_of(final, regime.ibs_rate)

        logger.debug("gross_up_computed", extra={
            "regime": regime.name,
            "total_costs": str(total_costs),
            "gross_value": str(gross),
            "final_price": str(final),
        })

        return GrossUpResult(
            total_costs=total_costs,
            profit_margin_percent=profit_margin_percent,
            gross_value=gross,
            final_price=final,
            cbs_amount=cbs,
            ibs_amount=ibs,
        )
