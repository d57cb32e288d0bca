"""
Budget Quote Service (``pricing_modules.budget.service``).

Responsibility
--------------
Orchestrates quoting: pricing new quotes through ``pricing_engines``,
numbering them, enforcing the quote lifecycle, repricing drafts, sweeping
expired quotes and verifying stored figures against a fresh engine run.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``BudgetService`` is the sole public
entry point for quote operations.  Pricing itself is pure and lives in
``pricing_engines``; this service only snapshots inputs and regime,
persists the presented figures and drives ``QUOTE_WORKFLOW``.

Invariants enforced
-------------------
* Each public write method owns the transaction boundary (``commit`` on
  success, ``rollback`` and re-raise on any exception).
* A quote is priced before anything is written: a ValidationError or
  DomainError leaves no row behind.
* Cost, margin, regime and item edits are accepted only in ``draft``.
* Itemized quotes derive their cost buckets from their stored rows.
* Status changes go through ``QUOTE_WORKFLOW``; no other code sets status.
* Quotes snapshot their regime; configuration changes never alter stored
  figures.

Failure modes
-------------
* Unknown id  -> ``QuoteNotFoundError`` / ``TemplateNotFoundError``.
* Unknown regime or rate override key  -> ``KeyError``.
* Action not allowed from current state  -> ``InvalidTransitionError``.
* Approval after validity  -> ``GuardRejectedError``.
* Edit outside draft  -> ``QuoteNotEditableError``.
* Same id, different create payload  -> ``PayloadMismatchError``.

Audit relevance
---------------
Structured log events at every write carry the quote id (via LogContext),
budget number, status and final price.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Mapping, Sequence
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from pricing_config import load_pricing_config
from pricing_config.schema import PricingConfigurationSet
from pricing_engines.cost_aggregator import (
    FIELD_NAMES,
    CostInputs,
    CostLineItem,
    aggregate_line_items,
)
from pricing_engines.pricing import COMPUTED_FIELDS, PricedBudget, price_budget
from pricing_kernel.db.base import SYSTEM_ACTOR_ID
from pricing_kernel.domain.clock import Clock, SystemClock
from pricing_kernel.domain.tax_regime import TaxRegime, non_negative_decimal
from pricing_kernel.exceptions import (
    GuardRejectedError,
    PayloadMismatchError,
    QuoteNotEditableError,
    QuoteNotFoundError,
    ValidationError,
)
from pricing_kernel.logging_config import LogContext, get_logger
from pricing_kernel.utils.hashing import hash_payload
from pricing_modules.budget.config import BudgetConfig
from pricing_modules.budget.models import BudgetQuote, QuoteStatus
from pricing_modules.budget.orm import BudgetQuoteModel
from pricing_modules.budget.templates import TemplateRepository
from pricing_modules.budget.workflows import QUOTE_WORKFLOW, WITHIN_VALIDITY

logger = get_logger("modules.budget.service")

_QUOTE_META_FIELDS = ("title", "description", "customer_id", "customer_name")

# Rate override key (attribute or external name) -> TaxRegime attribute.
_RATE_FIELDS: dict[str, str] = {
    "cbs_rate": "cbs_rate",
    "ibs_rate": "ibs_rate",
    "irpj_rate": "irpj_rate",
    "csll_rate": "csll_rate",
    "cbsRate": "cbs_rate",
    "ibsRate": "ibs_rate",
    "irpjRate": "irpj_rate",
    "csllRate": "csll_rate",
}

# Cost buckets fed by itemized rows; not editable field-by-field.
_ITEMIZED_FIELDS = tuple(
    name for name in FIELD_NAMES if name not in ("labor_hours", "profit_margin_percent")
)


def _labor_rate(value: Any) -> Decimal | None:
    return None if value is None else non_negative_decimal("laborRate", value)


@dataclass(frozen=True)
class RecomputeResult:
    """Stored figures of a quote next to a fresh engine run on its snapshots."""
    quote_id: UUID
    stored: PricedBudget
    fresh: PricedBudget

    @property
    def matches(self) -> bool:
        return self.stored == self.fresh

    def differences(self) -> dict[str, tuple[Decimal, Decimal]]:
        return {
            name: (getattr(self.stored, name), getattr(self.fresh, name))
            for name in COMPUTED_FIELDS
            if getattr(self.stored, name) != getattr(self.fresh, name)
        }


class BudgetService:
    """
    Creates, reprices and moves budget quotes through their lifecycle.

    Contract
    --------
    * Every write method returns the resulting ``BudgetQuote`` DTO.
    * Tax regimes come from the injected configuration set; a quote keeps
      the regime snapshot it was priced under.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing.
    * Session is committed only after the whole operation succeeds.

    Non-goals
    ---------
    * Does NOT render documents (renderers consume ``as_record()``).
    * Does NOT create orders or customers on conversion.
    """

    def __init__(
        self,
        session: Session,
        pricing_config: PricingConfigurationSet | None = None,
        clock: Clock | None = None,
        actor_id: UUID = SYSTEM_ACTOR_ID,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._actor_id = actor_id
        self._pricing_config = pricing_config or load_pricing_config()
        self._config = BudgetConfig.from_settings(self._pricing_config.settings)

    @property
    def config(self) -> BudgetConfig:
        return self._config

    def regime(self, name: str | None = None) -> TaxRegime:
        return self._pricing_config.get_regime(name)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _load(self, quote_id: UUID) -> BudgetQuoteModel:
        model = self._session.get(BudgetQuoteModel, quote_id)
        if model is None:
            raise QuoteNotFoundError(str(quote_id))
        return model

    def _next_budget_number(self, year: int) -> str:
        """``PREFIX-YYYY-NNN``: highest existing sequence for the year plus one."""
        prefix = f"{self._config.number_prefix}-{year}-"
        numbers = self._session.scalars(
            select(BudgetQuoteModel.budget_number).where(
                BudgetQuoteModel.budget_number.like(f"{prefix}%")
            )
        ).all()
        pattern = re.compile(rf"^{re.escape(prefix)}(\d+)$")
        highest = 0
        for number in numbers:
            match = pattern.match(number)
            if match:
                highest = max(highest, int(match.group(1)))
        return f"{prefix}{highest + 1:03d}"

    def _resolve_regime(
        self,
        regime_name: str | None,
        rate_overrides: Mapping[str, Any] | None,
        base: TaxRegime | None = None,
    ) -> TaxRegime:
        """
        Regime snapshot for one quote.

        A named regime wins over ``base``; with neither, the configured
        default is used.  Overrides go through TaxRegime validation.
        """
        regime = base if base is not None and not regime_name else self.regime(regime_name)
        if not rate_overrides:
            return regime

        changes: dict[str, Any] = {}
        for key, value in rate_overrides.items():
            attr = _RATE_FIELDS.get(key)
            if attr is None:
                raise KeyError(f"Unknown rate override: {key}")
            changes[attr] = value
        overridden = TaxRegime.from_dict({
            **regime.as_dict(), **changes, "description": regime.description,
        })
        logger.info("quote_rates_overridden", extra={
            "regime": regime.name,
            "overrides": {k: str(v) for k, v in changes.items()},
        })
        return overridden

    def _warn_if_below_minimum(self, quote: BudgetQuote) -> None:
        if quote.is_below_minimum_margin:
            logger.warning("quote_below_minimum_margin", extra={
                "budget_number": quote.budget_number,
                "profit_margin_percent": str(quote.inputs.profit_margin_percent),
                "minimum_margin_percent": str(quote.minimum_margin_percent),
            })

    # =========================================================================
    # Creation
    # =========================================================================

    def create_quote(
        self,
        title: str,
        inputs: CostInputs,
        regime_name: str | None = None,
        customer_id: UUID | None = None,
        customer_name: str | None = None,
        description: str | None = None,
        quote_id: UUID | None = None,
        source_template_id: UUID | None = None,
        rate_overrides: Mapping[str, Any] | None = None,
    ) -> BudgetQuote:
        """
        Price and store a new draft quote.

        ``rate_overrides`` replaces some of the regime's rates for this quote
        only, e.g. ``{"cbs_rate": Decimal("0.9")}`` (``cbsRate`` also works).
        """
        return self._create_quote(
            title=title,
            inputs=inputs,
            regime=self._resolve_regime(regime_name, rate_overrides),
            customer_id=customer_id,
            customer_name=customer_name,
            description=description,
            quote_id=quote_id,
            source_template_id=source_template_id,
        )

    def create_quote_from_items(
        self,
        title: str,
        items: Sequence[CostLineItem],
        profit_margin_percent: Decimal = Decimal("0"),
        labor_hours: Decimal = Decimal("0"),
        labor_rate: Decimal | None = None,
        regime_name: str | None = None,
        rate_overrides: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> BudgetQuote:
        """
        New draft quote priced from itemized cost rows.

        The rows and the hourly ``labor_rate`` are stored with the quote;
        cost buckets are ``aggregate_line_items`` of them.
        """
        items = tuple(items)
        labor_rate = _labor_rate(labor_rate)
        inputs = aggregate_line_items(items, profit_margin_percent, labor_hours, labor_rate)
        return self._create_quote(
            title=title,
            inputs=inputs,
            regime=self._resolve_regime(regime_name, rate_overrides),
            items=items,
            labor_rate=labor_rate,
            **kwargs,
        )

    def _create_quote(
        self,
        title: str,
        inputs: CostInputs,
        regime: TaxRegime,
        items: tuple[CostLineItem, ...] = (),
        labor_rate: Decimal | None = None,
        customer_id: UUID | None = None,
        customer_name: str | None = None,
        description: str | None = None,
        quote_id: UUID | None = None,
        source_template_id: UUID | None = None,
    ) -> BudgetQuote:
        quote_id = quote_id or uuid4()
        payload_hash = hash_payload({
            "title": title,
            "description": description,
            "customer_id": customer_id,
            "customer_name": customer_name,
            "source_template_id": source_template_id,
            "inputs": inputs.as_dict(),
            "regime": regime.as_dict(),
            "items": [item.as_dict() for item in items],
            "labor_rate": labor_rate,
        })

        with LogContext.bind(quote_id=str(quote_id)):
            try:
                existing = self._session.get(BudgetQuoteModel, quote_id)
                if existing is not None:
                    if existing.payload_hash != payload_hash:
                        raise PayloadMismatchError(
                            str(quote_id), existing.payload_hash, payload_hash,
                        )
                    logger.info("quote_create_replayed", extra={
                        "budget_number": existing.budget_number,
                    })
                    return existing.to_dto()

                priced = price_budget(inputs, regime)

                now = self._clock.now()
                quote = BudgetQuote(
                    id=quote_id,
                    budget_number=self._next_budget_number(now.year),
                    title=title,
                    priced=priced,
                    status=QuoteStatus(QUOTE_WORKFLOW.initial_state),
                    items=items,
                    labor_rate=labor_rate,
                    currency=self._config.currency,
                    customer_id=customer_id,
                    customer_name=customer_name,
                    description=description,
                    source_template_id=source_template_id,
                    minimum_margin_percent=self._config.minimum_margin_percent,
                    valid_until=now + timedelta(days=self._config.validity_days),
                    created_at=now,
                    updated_at=now,
                )
                self._session.add(BudgetQuoteModel.from_dto(
                    quote, created_by_id=self._actor_id, payload_hash=payload_hash,
                ))
                self._session.commit()

                logger.info("quote_created", extra={
                    "budget_number": quote.budget_number,
                    "regime": regime.name,
                    "item_count": len(items),
                    "final_price": str(priced.final_price),
                })
                self._warn_if_below_minimum(quote)
                return quote
            except Exception:
                self._session.rollback()
                raise

    def create_quote_from_template(
        self,
        template_id: UUID,
        title: str | None = None,
        **kwargs: Any,
    ) -> BudgetQuote:
        """New draft quote seeded by value from a template."""
        repository = TemplateRepository(self._session, self._clock, self._actor_id)
        template = repository.get(template_id)
        with LogContext.bind(template_id=str(template_id)):
            return self.create_quote(
                title=title or template.name,
                inputs=template.instantiate(),
                source_template_id=template.id,
                **kwargs,
            )

    # =========================================================================
    # Editing
    # =========================================================================

    def update_quote(
        self,
        quote_id: UUID,
        regime_name: str | None = None,
        rate_overrides: Mapping[str, Any] | None = None,
        **changes: Any,
    ) -> BudgetQuote:
        """
        Merge ``changes`` into a draft quote and reprice it in full.

        ``changes`` may hold ``title``, ``description``, ``customer_id``,
        ``customer_name`` and any cost field (attribute or external name).
        ``regime_name`` reprices under another configured regime; otherwise
        the quote's own regime snapshot is kept.  ``rate_overrides`` is
        applied on top of whichever regime results.

        Itemized quotes accept only margin and labor hours among the cost
        fields; their buckets change through ``replace_items``.
        """
        with LogContext.bind(quote_id=str(quote_id)):
            try:
                model = self._load(quote_id)
                if model.status != QuoteStatus.DRAFT.value:
                    raise QuoteNotEditableError(str(quote_id), model.status)

                meta = {k: changes.pop(k) for k in _QUOTE_META_FIELDS if k in changes}
                current = model.priced_dto()
                inputs = CostInputs.from_mapping({**current.inputs.as_dict(), **changes})
                if model.items or model.labor_rate is not None:
                    inputs = self._reaggregate(model, current.inputs, inputs)
                regime = self._resolve_regime(regime_name, rate_overrides, base=current.regime)

                priced = price_budget(inputs, regime)

                for key, value in meta.items():
                    setattr(model, key, value)
                model.apply_priced(priced)
                model.updated_at = self._clock.now()
                model.updated_by_id = self._actor_id
                self._session.commit()

                quote = model.to_dto()
                logger.info("quote_updated", extra={
                    "budget_number": quote.budget_number,
                    "final_price": str(priced.final_price),
                    "repriced": bool(changes) or regime_name is not None or bool(rate_overrides),
                })
                self._warn_if_below_minimum(quote)
                return quote
            except Exception:
                self._session.rollback()
                raise

    def _reaggregate(
        self,
        model: BudgetQuoteModel,
        current: CostInputs,
        merged: CostInputs,
    ) -> CostInputs:
        for name in _ITEMIZED_FIELDS:
            if getattr(merged, name) != getattr(current, name):
                raise ValidationError(
                    FIELD_NAMES[name], getattr(merged, name),
                    "itemized quote; replace its items instead",
                )
        return aggregate_line_items(
            [row.to_dto() for row in model.items],
            merged.profit_margin_percent,
            merged.labor_hours,
            model.labor_rate,
        )

    def replace_items(
        self,
        quote_id: UUID,
        items: Sequence[CostLineItem],
        labor_rate: Decimal | None = None,
    ) -> BudgetQuote:
        """
        Replace a draft quote's itemized rows and reprice it.

        Margin, labor hours and the regime snapshot are kept.  ``labor_rate``
        of None keeps the stored hourly rate.
        """
        with LogContext.bind(quote_id=str(quote_id)):
            try:
                model = self._load(quote_id)
                if model.status != QuoteStatus.DRAFT.value:
                    raise QuoteNotEditableError(str(quote_id), model.status)

                items = tuple(items)
                rate = model.labor_rate if labor_rate is None else _labor_rate(labor_rate)
                current = model.priced_dto()
                inputs = aggregate_line_items(
                    items,
                    current.inputs.profit_margin_percent,
                    current.inputs.labor_hours,
                    rate,
                )
                priced = price_budget(inputs, current.regime)

                now = self._clock.now()
                model.replace_items(items, self._actor_id, now)
                model.labor_rate = rate
                model.apply_priced(priced)
                model.updated_at = now
                model.updated_by_id = self._actor_id
                self._session.commit()

                quote = model.to_dto()
                logger.info("quote_items_replaced", extra={
                    "budget_number": quote.budget_number,
                    "item_count": len(items),
                    "final_price": str(priced.final_price),
                })
                self._warn_if_below_minimum(quote)
                return quote
            except Exception:
                self._session.rollback()
                raise

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def transition(self, quote_id: UUID, action: str) -> BudgetQuote:
        """
        Apply a lifecycle action: send, approve, reject, revise, convert,
        expire.
        """
        with LogContext.bind(quote_id=str(quote_id)):
            try:
                model = self._load(quote_id)
                transition = QUOTE_WORKFLOW.apply(model.status, action)
                now = self._clock.now()

                if transition.guard == WITHIN_VALIDITY and (
                    model.valid_until is not None and now > model.valid_until
                ):
                    raise GuardRejectedError(
                        QUOTE_WORKFLOW.name, action, WITHIN_VALIDITY.name,
                        f"valid until {model.valid_until.isoformat()}",
                    )

                from_state = model.status
                model.status = transition.to_state
                model.updated_at = now
                model.updated_by_id = self._actor_id
                self._session.commit()

                logger.info("quote_transitioned", extra={
                    "budget_number": model.budget_number,
                    "action": action,
                    "from_state": from_state,
                    "to_state": transition.to_state,
                })
                return model.to_dto()
            except Exception:
                self._session.rollback()
                raise

    def expire_overdue(self, now: datetime | None = None) -> list[BudgetQuote]:
        """Expire every sent or approved quote past its valid-until date."""
        now = now or self._clock.now()
        try:
            rows = self._session.scalars(
                select(BudgetQuoteModel)
                .where(BudgetQuoteModel.status.in_([
                    QuoteStatus.SENT.value, QuoteStatus.APPROVED.value,
                ]))
                .where(BudgetQuoteModel.valid_until.is_not(None))
                .order_by(BudgetQuoteModel.created_at, BudgetQuoteModel.budget_number)
            ).all()

            expired: list[BudgetQuoteModel] = []
            for model in rows:
                if now <= model.valid_until:
                    continue
                transition = QUOTE_WORKFLOW.apply(model.status, "expire")
                model.status = transition.to_state
                model.updated_at = now
                model.updated_by_id = self._actor_id
                expired.append(model)
            self._session.commit()

            logger.info("quotes_expired", extra={
                "count": len(expired),
                "budget_numbers": [m.budget_number for m in expired],
            })
            return [m.to_dto() for m in expired]
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Queries
    # =========================================================================

    def get_quote(self, quote_id: UUID) -> BudgetQuote:
        return self._load(quote_id).to_dto()

    def list_quotes(
        self,
        status: QuoteStatus | None = None,
        customer_id: UUID | None = None,
    ) -> list[BudgetQuote]:
        stmt = select(BudgetQuoteModel).order_by(
            BudgetQuoteModel.created_at, BudgetQuoteModel.budget_number,
        )
        if status is not None:
            stmt = stmt.where(BudgetQuoteModel.status == QuoteStatus(status).value)
        if customer_id is not None:
            stmt = stmt.where(BudgetQuoteModel.customer_id == customer_id)
        return [row.to_dto() for row in self._session.scalars(stmt).all()]

    def delete_quote(self, quote_id: UUID) -> None:
        with LogContext.bind(quote_id=str(quote_id)):
            try:
                model = self._load(quote_id)
                number = model.budget_number
                self._session.delete(model)
                self._session.commit()
                logger.info("quote_deleted", extra={"budget_number": number})
            except Exception:
                self._session.rollback()
                raise

    def recompute(self, quote_id: UUID) -> RecomputeResult:
        """Re-run the engines on a quote's stored snapshots; nothing is written."""
        with LogContext.bind(quote_id=str(quote_id)):
            stored = self._load(quote_id).priced_dto()
            fresh = price_budget(stored.inputs, stored.regime)
            result = RecomputeResult(quote_id=quote_id, stored=stored, fresh=fresh)
            if not result.matches:
                logger.warning("quote_recompute_mismatch", extra={
                    "differences": {
                        k: [str(a), str(b)] for k, (a, b) in result.differences().items()
                    },
                })
            return result

    def installments(self, quote_id: UUID, count: int) -> tuple[Decimal, ...]:
        """Payment plan for a quote: ``count`` installments summing to the final price."""
        return self.get_quote(quote_id).installment_plan(count)
