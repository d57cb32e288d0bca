"""Tests for TaxRegime validation and snapshot round-trips."""

from decimal import Decimal

import pytest

from pricing_kernel.domain.tax_regime import ProfitBase, TaxRegime, non_negative_decimal
from pricing_kernel.exceptions import ValidationError


def _regime(**overrides) -> TaxRegime:
    values = dict(
        name="test",
        cbs_rate=Decimal("12"),
        ibs_rate=Decimal("5"),
        irpj_rate=Decimal("15"),
        csll_rate=Decimal("9"),
    )
    values.update(overrides)
    return TaxRegime(**values)


class TestNonNegativeDecimal:

    @pytest.mark.parametrize("value,expected", [
        (Decimal("1.5"), Decimal("1.5")),
        ("2.25", Decimal("2.25")),
        (3, Decimal("3")),
        (0, Decimal("0")),
    ])
    def test_accepts(self, value, expected):
        assert non_negative_decimal("laborCost", value) == expected

    @pytest.mark.parametrize("value,reason", [
        (Decimal("-0.01"), "non-negative"),
        (1.5, "float"),
        (True, "numeric"),
        ("abc", "numeric"),
        (Decimal("NaN"), "finite"),
        (Decimal("Infinity"), "finite"),
        (None, "numeric"),
    ])
    def test_rejects(self, value, reason):
        with pytest.raises(ValidationError, match=reason) as exc_info:
            non_negative_decimal("laborCost", value)
        assert exc_info.value.field == "laborCost"


class TestTaxRegime:

    def test_rates_coerced_to_decimal(self):
        regime = _regime(cbs_rate="0.9", ibs_rate=17)
        assert regime.cbs_rate == Decimal("0.9")
        assert regime.ibs_rate == Decimal("17")
        assert regime.combined_consumption_rate == Decimal("17.9")

    @pytest.mark.parametrize("attr,label", [
        ("cbs_rate", "cbsRate"),
        ("ibs_rate", "ibsRate"),
        ("irpj_rate", "irpjRate"),
        ("csll_rate", "csllRate"),
    ])
    def test_negative_rate_names_field(self, attr, label):
        with pytest.raises(ValidationError) as exc_info:
            _regime(**{attr: Decimal("-1")})
        assert exc_info.value.field == label

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            _regime(name="")

    def test_combined_rate_of_100_is_a_valid_value(self):
        """Only pricing under it fails; the regime itself is well-formed."""
        regime = _regime(cbs_rate=Decimal("60"), ibs_rate=Decimal("40"))
        assert regime.combined_consumption_rate == Decimal("100")

    def test_presumed_requires_percent(self):
        with pytest.raises(ValidationError) as exc_info:
            _regime(profit_base=ProfitBase.PRESUMED)
        assert exc_info.value.field == "presumedProfitPercent"

    def test_presumed_percent_bounded(self):
        with pytest.raises(ValidationError, match="exceed 100"):
            _regime(profit_base=ProfitBase.PRESUMED, presumed_profit_percent=Decimal("101"))

    def test_profit_base_from_string(self):
        regime = _regime(profit_base="presumed", presumed_profit_percent="32")
        assert regime.profit_base is ProfitBase.PRESUMED
        assert regime.presumed_profit_percent == Decimal("32")

    def test_snapshot_round_trip(self):
        regime = _regime(
            profit_base=ProfitBase.PRESUMED,
            presumed_profit_percent=Decimal("32"),
            description="services",
        )
        assert TaxRegime.from_dict(regime.as_dict()) == regime

    def test_description_not_part_of_identity(self):
        assert _regime(description="a") == _regime(description="b")

    def test_frozen(self):
        regime = _regime()
        with pytest.raises(AttributeError):
            regime.cbs_rate = Decimal("1")
