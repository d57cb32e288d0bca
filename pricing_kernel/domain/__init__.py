"""Pure domain types for the pricing kernel."""

from pricing_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from pricing_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from pricing_kernel.domain.tax_regime import ProfitBase, TaxRegime
from pricing_kernel.domain.values import Currency, Money
from pricing_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DeterministicClock",
    "Guard",
    "Money",
    "ProfitBase",
    "SystemClock",
    "TaxRegime",
    "Transition",
    "Workflow",
]
