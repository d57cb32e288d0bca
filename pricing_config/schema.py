"""
Configuration schema (``pricing_config.schema``).

Frozen dataclasses describing one pricing configuration set: the named tax
regimes and the budget module settings.  Built only by
``pricing_config.loader``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pricing_kernel.domain.tax_regime import TaxRegime


@dataclass(frozen=True)
class BudgetSettings:
    """Budget module settings carried by a configuration set."""

    number_prefix: str = "ORC"
    validity_days: int = 30
    minimum_margin_percent: Decimal = Decimal("20")
    default_regime: str = "new"
    currency: str = "BRL"


@dataclass(frozen=True)
class PricingConfigurationSet:
    """
    One loaded configuration set.

    ``checksum`` is the SHA-256 of the canonical source document; two sets
    with the same checksum price identically.
    """

    config_id: str
    version: int
    regimes: tuple[TaxRegime, ...]
    settings: BudgetSettings
    checksum: str
    description: str = ""

    def regime_names(self) -> tuple[str, ...]:
        return tuple(r.name for r in self.regimes)

    def get_regime(self, name: str | None = None) -> TaxRegime:
        """Regime by name; ``None`` selects the configured default."""
        wanted = name or self.settings.default_regime
        for regime in self.regimes:
            if regime.name == wanted:
                return regime
        raise KeyError(
            f"Unknown tax regime {wanted!r} in config {self.config_id}; "
            f"available: {', '.join(self.regime_names())}"
        )

    @property
    def default_regime(self) -> TaxRegime:
        return self.get_regime(None)
