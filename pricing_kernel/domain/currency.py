"""
Currency -- Currency precision metadata for quote amounts.

Responsibility:
    Single source of truth for how many minor units a quote currency has
    and how presented amounts are quantized.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Consumed by ``pricing_kernel.domain.values`` (Currency, Money).

Invariants enforced:
    - Rounding precision is derived from the currency's decimal places,
      never hardcoded at the call site.

Failure modes:
    - ``get_info`` returns None for unknown codes; ``get_decimal_places``
      raises ValueError so callers cannot silently price in an unknown unit.

Quotes are priced in a single jurisdiction.  The registry only carries
the currencies the pricing engine is willing to present.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal


@dataclass(frozen=True, slots=True)
class CurrencyInfo:
    """Information about a currency."""

    code: str
    decimal_places: int
    name: str

    @property
    def minor_unit(self) -> Decimal:
        """Smallest presentable amount (0.01 for two decimal places)."""
        return Decimal(10) ** -self.decimal_places

    @property
    def rounding_tolerance(self) -> Decimal:
        """Tolerance for reconciling presented totals: one minor unit."""
        return self.minor_unit

    def quantize(self, amount: Decimal) -> Decimal:
        return amount.quantize(self.minor_unit, rounding=ROUND_HALF_UP)


class CurrencyRegistry:
    """Registry of presentable currencies."""

    _CURRENCIES: dict[str, CurrencyInfo] = {
        "BRL": CurrencyInfo("BRL", 2, "Brazilian Real"),
    }

    DEFAULT = "BRL"

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return code.upper() in cls._CURRENCIES if code else False

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(code.upper()) if code else None

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        if info is None:
            raise ValueError(f"Unknown currency code: {code}")
        return info.decimal_places

    @classmethod
    def get_rounding_tolerance(cls, code: str) -> Decimal:
        info = cls.get_info(code)
        if info is None:
            raise ValueError(f"Unknown currency code: {code}")
        return info.rounding_tolerance

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        return frozenset(cls._CURRENCIES.keys())
