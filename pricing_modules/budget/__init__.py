"""
Budget Quote Module (``pricing_modules.budget``).

Responsibility
--------------
Thin glue for commercial quoting: priced budget quotes with sequential
numbers, reusable templates, the quote lifecycle (draft, sent, approved,
rejected, converted, expired), validity expiry and installment plans.

Architecture position
---------------------
**Modules layer** -- DTOs, a workflow definition, a config schema, ORM
models and a service facade.  All figures come from
``pricing_engines.price_budget``.

Invariants enforced
-------------------
* Transaction boundary owned by ``BudgetService`` and ``TemplateRepository``.
* Quotes snapshot their inputs and tax regime; stored figures never drift.
* Only draft quotes accept edits.

Failure modes
-------------
* ``ValidationError`` / ``DomainError`` from the engines on bad input.
* ``InvalidTransitionError`` / ``GuardRejectedError`` on lifecycle misuse.
"""

from pricing_modules.budget.config import BudgetConfig
from pricing_modules.budget.models import BudgetQuote, BudgetTemplate, QuoteStatus
from pricing_modules.budget.service import BudgetService, RecomputeResult
from pricing_modules.budget.templates import TemplateRepository
from pricing_modules.budget.workflows import QUOTE_WORKFLOW, WITHIN_VALIDITY

__all__ = [
    "BudgetConfig",
    "BudgetQuote",
    "BudgetService",
    "BudgetTemplate",
    "QUOTE_WORKFLOW",
    "QuoteStatus",
    "RecomputeResult",
    "TemplateRepository",
    "WITHIN_VALIDITY",
]
