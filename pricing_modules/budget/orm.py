"""
SQLAlchemy ORM persistence models for the Budget Quote module.

Responsibility
--------------
Provide database-backed persistence for budget quotes and budget
templates.  ``PricedBudget`` is stored flat on the quote row: the input
snapshot, the regime snapshot and every presented figure.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``BudgetService`` and
``TemplateRepository``.  Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* All monetary and rate fields are ``Decimal`` stored exactly
  (``DecimalString``) -- NEVER float.  A reloaded quote is identical to
  the one that was written.
* Enum fields stored as String(50) for readability and portability.
* ``budget_number`` is unique.
* Quote rows are never recomputed on load; ``to_dto`` rebuilds the
  PricedBudget from stored figures.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pricing_kernel.db.base import DecimalString, TrackedBase

_ZERO = Decimal("0")


# ---------------------------------------------------------------------------
# BudgetTemplateModel
# ---------------------------------------------------------------------------


class BudgetTemplateModel(TrackedBase):
    """
    A reusable quote seed.

    Maps to the ``BudgetTemplate`` DTO in ``pricing_modules.budget.models``.
    Only seed inputs are stored; no computed figures.
    """

    __tablename__ = "pricing_budget_templates"

    __table_args__ = (
        Index("idx_budget_template_name", "name"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    labor_cost: Mapped[Decimal] = mapped_column(DecimalString(), default=_ZERO)
    labor_hours: Mapped[Decimal] = mapped_column(DecimalString(), default=_ZERO)
    material_cost: Mapped[Decimal] = mapped_column(DecimalString(), default=_ZERO)
    third_party_cost: Mapped[Decimal] = mapped_column(DecimalString(), default=_ZERO)
    other_direct_costs: Mapped[Decimal] = mapped_column(DecimalString(), default=_ZERO)
    indirect_costs_total: Mapped[Decimal] = mapped_column(DecimalString(), default=_ZERO)
    profit_margin_percent: Mapped[Decimal] = mapped_column(DecimalString(), default=_ZERO)

    def inputs_dto(self):
        from pricing_engines.cost_aggregator import CostInputs

        return CostInputs(
            labor_cost=self.labor_cost,
            labor_hours=self.labor_hours,
            material_cost=self.material_cost,
            third_party_cost=self.third_party_cost,
            other_direct_costs=self.other_direct_costs,
            indirect_costs_total=self.indirect_costs_total,
            profit_margin_percent=self.profit_margin_percent,
        )

    def apply_inputs(self, inputs) -> None:
        for name, value in inputs.as_dict().items():
            setattr(self, name, value)

    def to_dto(self):
        from pricing_modules.budget.models import BudgetTemplate

        return BudgetTemplate(
            id=self.id,
            name=self.name,
            inputs=self.inputs_dto(),
            description=self.description,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID, payload_hash: str) -> "BudgetTemplateModel":
        model = cls(
            id=dto.id,
            name=dto.name,
            description=dto.description,
            payload_hash=payload_hash,
            created_at=dto.created_at,
            updated_at=dto.updated_at,
            created_by_id=created_by_id,
        )
        model.apply_inputs(dto.inputs)
        return model

    def __repr__(self) -> str:
        return f"<BudgetTemplateModel {self.name}>"


# ---------------------------------------------------------------------------
# BudgetQuoteModel
# ---------------------------------------------------------------------------


class BudgetQuoteModel(TrackedBase):
    """
    A priced quote with its input and regime snapshots.

    Maps to the ``BudgetQuote`` DTO in ``pricing_modules.budget.models``.

    Guarantees:
        - ``budget_number`` is unique (``ORC-YYYY-NNN``).
        - ``status`` follows QUOTE_WORKFLOW.
    """

    __tablename__ = "pricing_budget_quotes"

    __table_args__ = (
        UniqueConstraint("budget_number", name="uq_budget_quote_number"),
        Index("idx_budget_quote_status", "status"),
        Index("idx_budget_quote_customer", "customer_id"),
    )

    budget_number: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    customer_id: Mapped[UUID | None] = mapped_column(nullable=True)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source_template_id: Mapped[UUID | None] = mapped_column(nullable=True)
    minimum_margin_percent: Mapped[Decimal] = mapped_column(DecimalString(), default=_ZERO)
    valid_until: Mapped[datetime | None] = mapped_column(nullable=True)
    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="BRL")
    labor_rate: Mapped[Decimal | None] = mapped_column(DecimalString(), nullable=True)

    # Input snapshot
    labor_cost: Mapped[Decimal] = mapped_column(DecimalString())
    labor_hours: Mapped[Decimal] = mapped_column(DecimalString())
    material_cost: Mapped[Decimal] = mapped_column(DecimalString())
    third_party_cost: Mapped[Decimal] = mapped_column(DecimalString())
    other_direct_costs: Mapped[Decimal] = mapped_column(DecimalString())
    indirect_costs_total: Mapped[Decimal] = mapped_column(DecimalString())
    profit_margin_percent: Mapped[Decimal] = mapped_column(DecimalString())

    # Regime snapshot
    regime_name: Mapped[str] = mapped_column(String(100), nullable=False)
    cbs_rate: Mapped[Decimal] = mapped_column(DecimalString())
    ibs_rate: Mapped[Decimal] = mapped_column(DecimalString())
    irpj_rate: Mapped[Decimal] = mapped_column(DecimalString())
    csll_rate: Mapped[Decimal] = mapped_column(DecimalString())
    profit_base: Mapped[str] = mapped_column(String(20), nullable=False)
    presumed_profit_percent: Mapped[Decimal | None] = mapped_column(
        DecimalString(), nullable=True,
    )

    # Presented figures
    total_direct_costs: Mapped[Decimal] = mapped_column(DecimalString())
    total_costs: Mapped[Decimal] = mapped_column(DecimalString())
    gross_value: Mapped[Decimal] = mapped_column(DecimalString())
    cbs_amount: Mapped[Decimal] = mapped_column(DecimalString())
    ibs_amount: Mapped[Decimal] = mapped_column(DecimalString())
    total_consumption_taxes: Mapped[Decimal] = mapped_column(DecimalString())
    final_price: Mapped[Decimal] = mapped_column(DecimalString())
    irpj_amount: Mapped[Decimal] = mapped_column(DecimalString())
    csll_amount: Mapped[Decimal] = mapped_column(DecimalString())
    net_profit: Mapped[Decimal] = mapped_column(DecimalString())
    effective_margin_percent: Mapped[Decimal] = mapped_column(DecimalString())

    # Itemized cost rows, in entry order
    items: Mapped[list["BudgetQuoteItemModel"]] = relationship(
        back_populates="quote",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BudgetQuoteItemModel.position",
    )

    def replace_items(self, items, created_by_id: UUID, now: datetime) -> None:
        """Swap the stored rows for ``items``; orphans are deleted on flush."""
        self.items = [
            BudgetQuoteItemModel.from_item(position, item, created_by_id, now)
            for position, item in enumerate(items, start=1)
        ]

    def apply_priced(self, priced) -> None:
        """Copy a PricedBudget's snapshots and figures onto this row."""
        from pricing_engines.pricing import COMPUTED_FIELDS

        for name, value in priced.inputs.as_dict().items():
            setattr(self, name, value)
        regime = priced.regime
        self.regime_name = regime.name
        self.cbs_rate = regime.cbs_rate
        self.ibs_rate = regime.ibs_rate
        self.irpj_rate = regime.irpj_rate
        self.csll_rate = regime.csll_rate
        self.profit_base = regime.profit_base.value
        self.presumed_profit_percent = regime.presumed_profit_percent
        for name in COMPUTED_FIELDS:
            setattr(self, name, getattr(priced, name))

    def priced_dto(self):
        from pricing_engines.cost_aggregator import CostInputs
        from pricing_engines.pricing import COMPUTED_FIELDS, PricedBudget
        from pricing_kernel.domain.tax_regime import ProfitBase, TaxRegime

        inputs = CostInputs(
            labor_cost=self.labor_cost,
            labor_hours=self.labor_hours,
            material_cost=self.material_cost,
            third_party_cost=self.third_party_cost,
            other_direct_costs=self.other_direct_costs,
            indirect_costs_total=self.indirect_costs_total,
            profit_margin_percent=self.profit_margin_percent,
        )
        regime = TaxRegime(
            name=self.regime_name,
            cbs_rate=self.cbs_rate,
            ibs_rate=self.ibs_rate,
            irpj_rate=self.irpj_rate,
            csll_rate=self.csll_rate,
            profit_base=ProfitBase(self.profit_base),
            presumed_profit_percent=self.presumed_profit_percent,
        )
        return PricedBudget(
            inputs=inputs,
            regime=regime,
            **{name: getattr(self, name) for name in COMPUTED_FIELDS},
        )

    def to_dto(self):
        from pricing_modules.budget.models import BudgetQuote, QuoteStatus

        return BudgetQuote(
            id=self.id,
            budget_number=self.budget_number,
            title=self.title,
            priced=self.priced_dto(),
            status=QuoteStatus(self.status),
            items=tuple(row.to_dto() for row in self.items),
            labor_rate=self.labor_rate,
            currency=self.currency,
            customer_id=self.customer_id,
            customer_name=self.customer_name,
            description=self.description,
            source_template_id=self.source_template_id,
            minimum_margin_percent=self.minimum_margin_percent,
            valid_until=self.valid_until,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_dto(cls, dto, created_by_id: UUID, payload_hash: str) -> "BudgetQuoteModel":
        from pricing_modules.budget.models import QuoteStatus

        model = cls(
            id=dto.id,
            budget_number=dto.budget_number,
            title=dto.title,
            description=dto.description,
            status=dto.status.value if isinstance(dto.status, QuoteStatus) else dto.status,
            customer_id=dto.customer_id,
            customer_name=dto.customer_name,
            source_template_id=dto.source_template_id,
            minimum_margin_percent=dto.minimum_margin_percent,
            valid_until=dto.valid_until,
            payload_hash=payload_hash,
            currency=dto.currency,
            labor_rate=dto.labor_rate,
            created_at=dto.created_at,
            updated_at=dto.updated_at,
            created_by_id=created_by_id,
        )
        model.apply_priced(dto.priced)
        model.replace_items(dto.items, created_by_id, dto.created_at)
        return model

    def __repr__(self) -> str:
        return f"<BudgetQuoteModel {self.budget_number} [{self.status}]>"


# ---------------------------------------------------------------------------
# BudgetQuoteItemModel
# ---------------------------------------------------------------------------


class BudgetQuoteItemModel(TrackedBase):
    """
    One itemized cost row of a quote.

    Maps to ``CostLineItem``.  ``total`` is stored as computed when the
    row was written (quantity x unit price, exact).
    """

    __tablename__ = "pricing_budget_quote_items"

    __table_args__ = (
        Index("idx_budget_quote_item_quote", "quote_id"),
    )

    quote_id: Mapped[UUID] = mapped_column(
        ForeignKey("pricing_budget_quotes.id", ondelete="CASCADE"), nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)
    total: Mapped[Decimal] = mapped_column(DecimalString(), nullable=False)

    quote: Mapped["BudgetQuoteModel"] = relationship(back_populates="items")

    def to_dto(self):
        from pricing_engines.cost_aggregator import CostKind, CostLineItem

        return CostLineItem(
            kind=CostKind(self.kind),
            description=self.description,
            unit_price=self.unit_price,
            quantity=self.quantity,
        )

    @classmethod
    def from_item(
        cls, position: int, item, created_by_id: UUID, now: datetime | None,
    ) -> "BudgetQuoteItemModel":
        row = cls(
            position=position,
            kind=item.kind.value,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            total=item.total,
            created_by_id=created_by_id,
        )
        if now is not None:
            row.created_at = now
            row.updated_at = now
        return row

    def __repr__(self) -> str:
        return f"<BudgetQuoteItemModel {self.position} {self.kind} total={self.total}>"
