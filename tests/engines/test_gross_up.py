"""
Tests for the Gross-Up Engine.

Covers:
- Margin on price
- Consumption taxes embedded in the final price
- Zero margin and zero rates
- Rates and margins that leave no price basis
"""

from decimal import Decimal

import pytest

from pricing_engines.gross_up import GrossUpResult, PricingCalculator
from pricing_kernel.domain.tax_regime import TaxRegime
from pricing_kernel.exceptions import DomainError


def _regime(cbs: str, ibs: str) -> TaxRegime:
    return TaxRegime(
        name="test",
        cbs_rate=Decimal(cbs),
        ibs_rate=Decimal(ibs),
        irpj_rate=Decimal("15"),
        csll_rate=Decimal("9"),
    )


class TestGrossValue:

    def setup_method(self):
        self.calculator = PricingCalculator()

    def test_margin_is_share_of_price(self):
        assert self.calculator.gross_value(Decimal("1000"), Decimal("20")) == Decimal("1250")

    def test_zero_margin(self):
        assert self.calculator.gross_value(Decimal("1000"), Decimal("0")) == Decimal("1000")

    @pytest.mark.parametrize("margin", ["100", "150"])
    def test_margin_at_or_above_100_raises(self, margin):
        with pytest.raises(DomainError) as exc_info:
            self.calculator.gross_value(Decimal("1000"), Decimal(margin))
        assert exc_info.value.field == "profitMarginPercent"
        assert exc_info.value.code == "DOMAIN_ERROR"


class TestPrice:

    def setup_method(self):
        self.calculator = PricingCalculator()

    def test_reference_figures(self, reference_regime):
        """1000 at 20% under CBS 0.9% / IBS 17.7%."""
        result = self.calculator.price(
            total_costs=Decimal("1000"),
            profit_margin_percent=Decimal("20"),
            regime=reference_regime,
        )

        assert isinstance(result, GrossUpResult)
        assert result.gross_value == Decimal("1250")
        assert result.final_price.quantize(Decimal("0.000001")) == Decimal("1535.626536")
        assert result.cbs_amount.quantize(Decimal("0.0001")) == Decimal("13.8206")
        assert result.ibs_amount.quantize(Decimal("0.0001")) == Decimal("271.8059")
        assert result.margin_amount == Decimal("250")

    def test_taxes_embedded_exactly(self, new_regime):
        result = self.calculator.price(Decimal("1000"), Decimal("20"), new_regime)

        # cbs + ibs + gross reconstructs the final price to calculation precision
        residual = result.final_price - result.gross_value - result.total_consumption_taxes
        assert abs(residual) < Decimal("1e-25")

    def test_tax_is_share_of_final_price(self, new_regime):
        result = self.calculator.price(Decimal("1000"), Decimal("20"), new_regime)
        share = result.total_consumption_taxes / result.final_price * 100
        assert share.quantize(Decimal("0.000001")) == Decimal("17.000000")

    def test_zero_rates_final_equals_gross(self):
        result = self.calculator.price(Decimal("800"), Decimal("20"), _regime("0", "0"))
        assert result.final_price == result.gross_value == Decimal("1000")
        assert result.total_consumption_taxes == 0

    def test_zero_margin_gross_equals_costs(self, new_regime):
        result = self.calculator.price(Decimal("1000"), Decimal("0"), new_regime)
        assert result.gross_value == Decimal("1000")
        assert result.margin_amount == 0

    def test_zero_costs(self, new_regime):
        result = self.calculator.price(Decimal("0"), Decimal("20"), new_regime)
        assert result.final_price == 0
        assert result.total_consumption_taxes == 0

    @pytest.mark.parametrize("cbs,ibs", [("60", "40"), ("50", "60"), ("100", "0")])
    def test_combined_rate_at_or_above_100_raises(self, cbs, ibs):
        with pytest.raises(DomainError, match="tax rate exceeds price basis") as exc_info:
            self.calculator.price(Decimal("1000"), Decimal("20"), _regime(cbs, ibs))
        assert exc_info.value.field == "combinedConsumptionRate"

    def test_rate_error_logged(self, captured_logs):
        with pytest.raises(DomainError):
            self.calculator.price(Decimal("1000"), Decimal("20"), _regime("60", "40"))

        errors = [r for r in captured_logs() if r["message"] == "gross_up_rate_exceeds_basis"]
        assert len(errors) == 1
        assert errors[0]["level"] == "ERROR"
        assert errors[0]["combined_rate"] == "100"

    def test_final_never_below_gross(self, new_regime):
        result = self.calculator.price(Decimal("123.45"), Decimal("37.5"), new_regime)
        assert result.final_price >= result.gross_value >= result.total_costs
