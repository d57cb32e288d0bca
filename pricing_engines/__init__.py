"""
Module: pricing_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    pricing engines.  Canonical import surface for pricing_modules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import pricing_kernel (domain, exceptions, logging, Decimal
    helpers) and sibling engine modules.  MUST NOT import pricing_modules
    or pricing_config.

Invariants enforced:
    - Purity: engines never read the clock, the database or configuration;
      rates arrive as an explicit TaxRegime.
    - Decimal-only arithmetic under a fixed context; floats are rejected.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``pricing_engines.tracer``), emitting PRICING_ENGINE_TRACE records with
    engine name, version, input fingerprint and duration.

Usage:
    from pricing_engines import CostInputs, price_budget
    from pricing_config import get_tax_regime

    priced = price_budget(CostInputs(labor_cost=Decimal("1000"),
                                     profit_margin_percent=Decimal("20")),
                          get_tax_regime("new"))
"""

from pricing_engines.cost_aggregator import (
    CostInputs,
    CostKind,
    CostLineItem,
    CostSummary,
    aggregate_costs,
    aggregate_line_items,
    labor_cost_from_rate,
)
from pricing_engines.gross_up import GrossUpResult, PricingCalculator
from pricing_engines.income_tax import IncomeTaxEstimator, IncomeTaxResult
from pricing_engines.pricing import (
    COMPUTED_FIELDS,
    PricedBudget,
    installment_value,
    price_budget,
)
from pricing_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "COMPUTED_FIELDS",
    "CostInputs",
    "CostKind",
    "CostLineItem",
    "CostSummary",
    "GrossUpResult",
    "IncomeTaxEstimator",
    "IncomeTaxResult",
    "PricedBudget",
    "PricingCalculator",
    "aggregate_costs",
    "aggregate_line_items",
    "compute_input_fingerprint",
    "installment_value",
    "labor_cost_from_rate",
    "price_budget",
    "traced_engine",
]
