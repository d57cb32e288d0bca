"""
Budget Quote Domain Models (``pricing_modules.budget.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of quoting: budget quotes and
budget templates.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned by
``BudgetService`` and ``TemplateRepository``; built from ORM rows via
``to_dto``.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* A quote carries its own CostInputs and TaxRegime snapshots; a template
  carries seed inputs only, never computed figures.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pricing_engines.cost_aggregator import CostInputs, CostLineItem
from pricing_engines.pricing import PricedBudget, installment_value
from pricing_kernel.db.types import round_money, round_percent
from pricing_kernel.domain.currency import CurrencyRegistry
from pricing_kernel.domain.tax_regime import TaxRegime
from pricing_kernel.domain.values import Money
from pricing_kernel.exceptions import ValidationError


class QuoteStatus(Enum):
    """Budget quote lifecycle states."""
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    CONVERTED = "converted"
    EXPIRED = "expired"


@dataclass(frozen=True)
class BudgetTemplate:
    """Reusable seed for new quotes: a name plus CostInputs."""
    id: UUID
    name: str
    inputs: CostInputs
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def instantiate(self) -> CostInputs:
        """Value copy of the seed; later template edits never reach it."""
        return self.inputs.replace()


@dataclass(frozen=True)
class BudgetQuote:
    """
    A priced commercial quote.

    ``priced`` holds the presented figures exactly as stored; the quote
    never recomputes on read.  ``items`` and ``labor_rate`` are set only
    for quotes built from itemized rows; their cost buckets are derived
    from the items.
    """
    id: UUID
    budget_number: str
    title: str
    priced: PricedBudget
    status: QuoteStatus = QuoteStatus.DRAFT
    items: tuple[CostLineItem, ...] = ()
    labor_rate: Decimal | None = None
    currency: str = CurrencyRegistry.DEFAULT
    customer_id: UUID | None = None
    customer_name: str | None = None
    description: str | None = None
    source_template_id: UUID | None = None
    minimum_margin_percent: Decimal = Decimal("0")
    valid_until: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def inputs(self) -> CostInputs:
        return self.priced.inputs

    @property
    def regime(self) -> TaxRegime:
        return self.priced.regime

    @property
    def final_price(self) -> Decimal:
        return self.priced.final_price

    @property
    def effective_margin_percent(self) -> Decimal:
        return self.priced.effective_margin_percent

    @property
    def is_editable(self) -> bool:
        return self.status == QuoteStatus.DRAFT

    @property
    def is_itemized(self) -> bool:
        return bool(self.items) or self.labor_rate is not None

    def money(self, field: str) -> Money:
        return self.priced.money(field, self.currency)

    @property
    def is_below_minimum_margin(self) -> bool:
        """Target margin under the configured minimum (advisory only)."""
        return self.inputs.profit_margin_percent < self.minimum_margin_percent

    def is_overdue(self, now: datetime) -> bool:
        return self.valid_until is not None and now > self.valid_until

    def installment_value(self, installments: int) -> Decimal:
        return installment_value(self.final_price, installments)

    def installment_plan(self, installments: int) -> tuple[Decimal, ...]:
        """
        Installment amounts that sum exactly to the final price.

        Every installment is final / n rounded half-up; the last one takes
        the remainder.
        """
        each = installment_value(self.final_price, installments)
        last = self.final_price - each * (installments - 1)
        if last < 0:
            raise ValidationError("installments", installments, "too many for this price")
        return (each,) * (installments - 1) + (round_money(last),)

    def as_record(self) -> dict[str, Any]:
        """Renderer record: pricing record plus identity, status and customer."""
        record = self.priced.as_record()
        record.update({
            "id": str(self.id),
            "budget_number": self.budget_number,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "currency": self.currency,
            "labor_rate": self.labor_rate,
            "items": [item.as_dict() for item in self.items],
            "customer_id": str(self.customer_id) if self.customer_id else None,
            "customer_name": self.customer_name,
            "minimum_margin_percent": round_percent(self.minimum_margin_percent),
            "is_below_minimum_margin": self.is_below_minimum_margin,
            "valid_until": self.valid_until,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        })
        return record

