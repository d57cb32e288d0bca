"""
Tests for the Cost Aggregator.

Covers:
- Direct and total cost sums
- Input validation naming the offending field
- Mapping construction from form field names
- Itemized cost rows and hourly labor
"""

from decimal import Decimal

import pytest

from pricing_engines.cost_aggregator import (
    CostInputs,
    CostKind,
    CostLineItem,
    CostSummary,
    aggregate_costs,
    aggregate_line_items,
    labor_cost_from_rate,
)
from pricing_kernel.exceptions import ValidationError


class TestAggregateCosts:

    def test_sums(self, standard_inputs):
        summary = aggregate_costs(standard_inputs)

        assert isinstance(summary, CostSummary)
        assert summary.total_direct_costs == Decimal("900.00")
        assert summary.total_costs == Decimal("1000.00")
        assert summary.indirect_costs == Decimal("100.00")

    def test_labor_hours_not_summed(self):
        summary = aggregate_costs(CostInputs(labor_hours=Decimal("40")))
        assert summary.total_costs == 0

    def test_all_zero(self):
        summary = aggregate_costs(CostInputs())
        assert summary.total_direct_costs == 0
        assert summary.total_costs == 0

    def test_total_never_below_direct(self, standard_inputs):
        summary = aggregate_costs(standard_inputs.replace(indirect_costs_total=Decimal("0")))
        assert summary.total_costs == summary.total_direct_costs


class TestCostInputsValidation:

    def test_negative_material_cost_names_field(self):
        with pytest.raises(ValidationError) as exc_info:
            CostInputs(material_cost=Decimal("-50"))

        assert exc_info.value.field == "materialCost"
        assert exc_info.value.value == Decimal("-50")
        assert exc_info.value.code == "VALIDATION_ERROR"

    @pytest.mark.parametrize("attr,label", [
        ("labor_cost", "laborCost"),
        ("labor_hours", "laborHours"),
        ("third_party_cost", "thirdPartyCost"),
        ("other_direct_costs", "otherDirectCosts"),
        ("indirect_costs_total", "indirectCostsTotal"),
        ("profit_margin_percent", "profitMarginPercent"),
    ])
    def test_every_field_validated(self, attr, label):
        with pytest.raises(ValidationError) as exc_info:
            CostInputs(**{attr: Decimal("-0.01")})
        assert exc_info.value.field == label

    def test_float_rejected(self):
        with pytest.raises(ValidationError, match="float"):
            CostInputs(labor_cost=10.5)

    def test_strings_coerced(self):
        inputs = CostInputs(labor_cost="10.50")
        assert inputs.labor_cost == Decimal("10.50")

    def test_replace_revalidates(self, standard_inputs):
        with pytest.raises(ValidationError):
            standard_inputs.replace(labor_cost=Decimal("-1"))


class TestFromMapping:

    def test_external_names(self):
        inputs = CostInputs.from_mapping({
            "laborCost": "500",
            "materialCost": "250",
            "profitMarginPercent": "20",
        })
        assert inputs.labor_cost == Decimal("500")
        assert inputs.material_cost == Decimal("250")
        assert inputs.profit_margin_percent == Decimal("20")
        assert inputs.third_party_cost == 0

    def test_attribute_names_and_none(self):
        inputs = CostInputs.from_mapping({"labor_cost": "1", "material_cost": None})
        assert inputs.labor_cost == Decimal("1")
        assert inputs.material_cost == 0

    def test_negative_via_mapping(self):
        with pytest.raises(ValidationError) as exc_info:
            CostInputs.from_mapping({"materialCost": "-50"})
        assert exc_info.value.field == "materialCost"

    def test_unknown_key_rejected(self):
        with pytest.raises(KeyError, match="materialCosts"):
            CostInputs.from_mapping({"materialCosts": "1"})

    def test_as_dict_round_trip(self, standard_inputs):
        assert CostInputs.from_mapping(standard_inputs.as_dict()) == standard_inputs


class TestLineItems:

    def test_fold_by_kind(self):
        items = [
            CostLineItem(CostKind.LABOR, "Installer", Decimal("50"), Decimal("8")),
            CostLineItem(CostKind.MATERIAL, "Cable", Decimal("2.50"), Decimal("100")),
            CostLineItem(CostKind.SERVICE, "Crane rental", Decimal("300")),
            CostLineItem(CostKind.THIRD_PARTY, "Permit", Decimal("20")),
            CostLineItem("other", "Travel", Decimal("40")),
            CostLineItem(CostKind.INDIRECT, "Overhead", Decimal("90")),
        ]
        inputs = aggregate_line_items(
            items, profit_margin_percent=Decimal("25"), labor_hours=Decimal("8"),
        )

        assert inputs.labor_cost == Decimal("400")
        assert inputs.material_cost == Decimal("250.00")
        assert inputs.third_party_cost == Decimal("320")
        assert inputs.other_direct_costs == Decimal("40")
        assert inputs.indirect_costs_total == Decimal("90")
        assert inputs.labor_hours == Decimal("8")
        assert inputs.profit_margin_percent == Decimal("25")

    def test_empty(self):
        assert aggregate_line_items([]) == CostInputs()

    def test_negative_unit_price(self):
        with pytest.raises(ValidationError) as exc_info:
            CostLineItem(CostKind.MATERIAL, "Refund", Decimal("-1"))
        assert exc_info.value.field == "unitPrice"

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            CostLineItem("equipment", "Drill", Decimal("1"))

    def test_labor_from_rate(self):
        assert labor_cost_from_rate(Decimal("12.5"), Decimal("80")) == Decimal("1000.0")

    def test_labor_rate_validated(self):
        with pytest.raises(ValidationError) as exc_info:
            labor_cost_from_rate(Decimal("1"), Decimal("-80"))
        assert exc_info.value.field == "laborRate"

    def test_labor_rate_adds_hours_to_labor_rows(self):
        items = [
            CostLineItem(CostKind.LABOR, "Site visit", Decimal("150")),
            CostLineItem(CostKind.MATERIAL, "Cable", Decimal("3"), Decimal("10")),
        ]
        inputs = aggregate_line_items(
            items, labor_hours=Decimal("10"), labor_rate=Decimal("80"),
        )

        assert inputs.labor_cost == Decimal("950")
        assert inputs.material_cost == Decimal("30")
        assert inputs.labor_hours == Decimal("10")

    def test_hours_without_rate_are_informational(self):
        inputs = aggregate_line_items([], labor_hours=Decimal("10"))
        assert inputs.labor_cost == 0

    def test_negative_labor_rate_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            aggregate_line_items([], labor_hours=Decimal("1"), labor_rate=Decimal("-1"))
        assert exc_info.value.field == "laborRate"

    def test_item_as_dict(self):
        item = CostLineItem(CostKind.SERVICE, "Crane", Decimal("300"), Decimal("2"))
        assert item.as_dict() == {
            "kind": "service",
            "description": "Crane",
            "quantity": Decimal("2"),
            "unit_price": Decimal("300"),
            "total": Decimal("600"),
        }
