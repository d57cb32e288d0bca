"""
Budget Quote Configuration Schema.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from pricing_config.schema import BudgetSettings
from pricing_kernel.domain.currency import CurrencyRegistry
from pricing_kernel.logging_config import get_logger

logger = get_logger("modules.budget.config")


@dataclass
class BudgetConfig:
    """Configuration schema for the budget quote module."""

    number_prefix: str = "ORC"
    validity_days: int = 30
    minimum_margin_percent: Decimal = Decimal("20")
    default_regime: str = "new"
    currency: str = CurrencyRegistry.DEFAULT

    def __post_init__(self):
        if not self.number_prefix:
            raise ValueError("number_prefix cannot be empty")
        if self.validity_days < 1:
            raise ValueError("validity_days must be at least 1")
        if self.minimum_margin_percent < 0:
            raise ValueError("minimum_margin_percent cannot be negative")
        if not CurrencyRegistry.is_valid(self.currency):
            raise ValueError(f"Unknown currency code: {self.currency}")
        self.currency = self.currency.upper()
        logger.info("budget_config_initialized", extra={
            "number_prefix": self.number_prefix,
            "validity_days": self.validity_days,
            "minimum_margin_percent": str(self.minimum_margin_percent),
            "currency": self.currency,
        })

    @classmethod
    def from_settings(cls, settings: BudgetSettings) -> Self:
        return cls(
            number_prefix=settings.number_prefix,
            validity_days=settings.validity_days,
            minimum_margin_percent=settings.minimum_margin_percent,
            default_regime=settings.default_regime,
            currency=settings.currency,
        )
