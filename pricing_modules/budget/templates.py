"""
Budget Template Repository (``pricing_modules.budget.templates``).

Responsibility
--------------
CRUD over reusable quote seeds.  A template stores CostInputs (including
the target margin) and nothing computed; ``instantiate`` hands out a value
copy so a quote built from it never changes when the template does.

Invariants enforced
-------------------
* Each public write method owns the transaction boundary (``commit`` on
  success, ``rollback`` and re-raise on any exception).
* ``create`` is idempotent for an identical (id, payload); reusing an id
  for a different payload raises ``PayloadMismatchError``.

Failure modes
-------------
* Unknown template id  -> ``TemplateNotFoundError``.
* Negative or malformed seed values  -> ``ValidationError``.
* Unknown field in ``update``  -> ``KeyError``.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from pricing_engines.cost_aggregator import FIELD_NAMES, CostInputs
from pricing_kernel.db.base import SYSTEM_ACTOR_ID
from pricing_kernel.domain.clock import Clock, SystemClock
from pricing_kernel.exceptions import PayloadMismatchError, TemplateNotFoundError
from pricing_kernel.logging_config import LogContext, get_logger
from pricing_kernel.utils.hashing import hash_payload
from pricing_modules.budget.models import BudgetTemplate
from pricing_modules.budget.orm import BudgetTemplateModel

logger = get_logger("modules.budget.templates")

_META_FIELDS = ("name", "description")


def _template_payload(name: str, description: str | None, inputs: CostInputs) -> dict:
    return {"name": name, "description": description, "inputs": inputs.as_dict()}


class TemplateRepository:
    """
    Stores and retrieves budget templates.

    Clock and actor are injectable; every row records who wrote it.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        actor_id: UUID = SYSTEM_ACTOR_ID,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._actor_id = actor_id

    def _load(self, template_id: UUID) -> BudgetTemplateModel:
        model = self._session.get(BudgetTemplateModel, template_id)
        if model is None:
            raise TemplateNotFoundError(str(template_id))
        return model

    def create(
        self,
        name: str,
        inputs: CostInputs,
        description: str | None = None,
        template_id: UUID | None = None,
    ) -> BudgetTemplate:
        """Create a template; idempotent for the same id and payload."""
        payload_hash = hash_payload(_template_payload(name, description, inputs))
        template_id = template_id or uuid4()

        with LogContext.bind(template_id=str(template_id)):
            try:
                existing = self._session.get(BudgetTemplateModel, template_id)
                if existing is not None:
                    if existing.payload_hash != payload_hash:
                        raise PayloadMismatchError(
                            str(template_id), existing.payload_hash, payload_hash,
                        )
                    logger.info("budget_template_create_replayed", extra={"template_name": name})
                    return existing.to_dto()

                now = self._clock.now()
                template = BudgetTemplate(
                    id=template_id,
                    name=name,
                    inputs=inputs,
                    description=description,
                    created_at=now,
                    updated_at=now,
                )
                self._session.add(BudgetTemplateModel.from_dto(
                    template, created_by_id=self._actor_id, payload_hash=payload_hash,
                ))
                self._session.commit()
                logger.info("budget_template_created", extra={"template_name": name})
                return template
            except Exception:
                self._session.rollback()
                raise

    def get(self, template_id: UUID) -> BudgetTemplate:
        return self._load(template_id).to_dto()

    def list(self) -> list[BudgetTemplate]:
        rows = self._session.scalars(
            select(BudgetTemplateModel).order_by(
                BudgetTemplateModel.name, BudgetTemplateModel.id,
            )
        ).all()
        return [row.to_dto() for row in rows]

    def update(self, template_id: UUID, **partial: Any) -> BudgetTemplate:
        """
        Merge ``partial`` into the template.

        Accepts ``name``, ``description`` and any cost field by attribute
        or external name (``materialCost``).  Existing quotes built from
        this template are unaffected.
        """
        with LogContext.bind(template_id=str(template_id)):
            try:
                model = self._load(template_id)
                meta = {k: partial.pop(k) for k in _META_FIELDS if k in partial}

                current = model.inputs_dto().as_dict()
                inputs = CostInputs.from_mapping({**current, **partial})

                if "name" in meta:
                    model.name = meta["name"]
                if "description" in meta:
                    model.description = meta["description"]
                model.apply_inputs(inputs)
                model.payload_hash = hash_payload(
                    _template_payload(model.name, model.description, inputs)
                )
                model.updated_at = self._clock.now()
                model.updated_by_id = self._actor_id
                self._session.commit()

                logger.info("budget_template_updated", extra={
                    "fields": sorted(set(meta) | {FIELD_NAMES.get(k, k) for k in partial}),
                })
                return model.to_dto()
            except Exception:
                self._session.rollback()
                raise

    def delete(self, template_id: UUID) -> None:
        with LogContext.bind(template_id=str(template_id)):
            try:
                model = self._load(template_id)
                self._session.delete(model)
                self._session.commit()
                logger.info("budget_template_deleted", extra={})
            except Exception:
                self._session.rollback()
                raise

    def instantiate(self, template_id: UUID) -> CostInputs:
        """Value copy of the template's seed inputs."""
        template = self.get(template_id)
        logger.debug("budget_template_instantiated", extra={"template_id": str(template_id)})
        return template.instantiate()
