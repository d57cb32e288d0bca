"""
Values -- Immutable, self-validating money value objects.

Responsibility:
    Provides Currency and Money.  Money is the presented form of every
    quote figure: an exact Decimal amount paired with its currency, with
    an integer minor-unit view for storage and renderers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except pricing_kernel.domain.currency.

Invariants enforced:
    - Amounts are Decimal, never float.
    - Arithmetic never mixes currencies.
    - Rounding precision comes from the currency's decimal places.

Failure modes:
    - ValueError on construction with an invalid amount or currency code.
    - TypeError when a float is supplied as an amount or factor.
    - CurrencyMismatchError when arithmetic mixes currencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from pricing_kernel.domain.currency import CurrencyRegistry
from pricing_kernel.exceptions import CurrencyMismatchError


@dataclass(frozen=True, slots=True)
class Currency:
    """
    Currency code value object.

    Contract:
        Wraps a code known to CurrencyRegistry, normalized to uppercase.
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Unsupported currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def rounding_tolerance(self) -> Decimal:
        return CurrencyRegistry.get_rounding_tolerance(self.code)

    @property
    def name(self) -> str:
        info = CurrencyRegistry.get_info(self.code)
        return info.name if info else self.code

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


def _to_decimal(value: Decimal | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        raise TypeError("float amounts are not accepted; pass Decimal or str")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with its Currency.  Does NOT auto-round;
        callers present values via ``round()``.

    Guarantees:
        - Immutable and hashable
        - amount is always a Decimal (never float)
        - Arithmetic enforces the same-currency constraint
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _to_decimal(self.amount))
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(
                f"currency must be Currency or str, got {type(self.currency)}"
            )

    @classmethod
    def of(
        cls,
        amount: Decimal | str | int,
        currency: str | Currency = CurrencyRegistry.DEFAULT,
    ) -> Money:
        """Factory method; currency defaults to the quote currency."""
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=_to_decimal(amount), currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency = CurrencyRegistry.DEFAULT) -> Money:
        return cls.of(Decimal("0"), currency)

    @classmethod
    def from_minor_units(
        cls, units: int, currency: str | Currency = CurrencyRegistry.DEFAULT
    ) -> Money:
        """Build Money from an integer count of minor units (centavos)."""
        if not isinstance(units, int) or isinstance(units, bool):
            raise TypeError(f"minor units must be int, got {type(units)}")
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(
            amount=Decimal(units).scaleb(-currency.decimal_places),
            currency=currency,
        )

    @property
    def minor_units(self) -> int:
        """Amount in integer minor units, rounded half-up."""
        rounded = self.round().amount
        return int(rounded.scaleb(self.currency.decimal_places))

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Return a new Money rounded to the currency's decimal places."""
        places = self.currency.decimal_places
        quantum = Decimal(10) ** -places
        return Money(
            amount=self.amount.quantize(quantum, rounding=rounding),
            currency=self.currency,
        )

    def _check_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __mul__(self, factor: Decimal | int | str) -> Money:
        if isinstance(factor, Money):
            return NotImplemented
        return Money(amount=self.amount * _to_decimal(factor), currency=self.currency)

    __rmul__ = __mul__

    def __truediv__(self, divisor: Decimal | int | str) -> Money:
        if isinstance(divisor, Money):
            return NotImplemented
        d = _to_decimal(divisor)
        if d == 0:
            raise ZeroDivisionError("Cannot divide Money by zero")
        return Money(amount=self.amount / d, currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return self.amount >= other.amount

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency.code!r})"
