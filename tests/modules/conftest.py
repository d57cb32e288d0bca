"""Fixtures for budget module tests."""

from uuid import UUID

import pytest

from pricing_modules.budget.service import BudgetService
from pricing_modules.budget.templates import TemplateRepository

# Actor recorded on every row written by module tests
MODULE_ACTOR_ID = UUID("7d3c1a52-0b6e-4f1e-9a44-2f1d5c9e8b10")


@pytest.fixture
def actor_id() -> UUID:
    return MODULE_ACTOR_ID


@pytest.fixture
def budget_service(session, pricing_config, deterministic_clock, actor_id):
    return BudgetService(
        session=session,
        pricing_config=pricing_config,
        clock=deterministic_clock,
        actor_id=actor_id,
    )


@pytest.fixture
def template_repository(session, deterministic_clock, actor_id):
    return TemplateRepository(session, clock=deterministic_clock, actor_id=actor_id)
