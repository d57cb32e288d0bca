"""
Pytest fixtures for the pricing test suite.

Provides:
- Structured log capture
- In-memory SQLite database sessions
- Deterministic clock
- Tax regimes and cost inputs used across engine and module tests
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from pricing_config import load_pricing_config
from pricing_engines.cost_aggregator import CostInputs
from pricing_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from pricing_kernel.domain.clock import DeterministicClock
from pricing_kernel.domain.tax_regime import ProfitBase, TaxRegime
from pricing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture pricing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, budget_service):
            budget_service.create_quote(...)
            logs = captured_logs()
            assert any(r["message"] == "quote_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("pricing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with every table created."""
    db_engine = init_engine_from_url("sqlite://")
    create_tables()
    yield db_engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    db_session = get_session()
    yield db_session
    db_session.rollback()
    db_session.close()


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2026, 3, 10, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def pricing_config():
    return load_pricing_config()


@pytest.fixture
def new_regime() -> TaxRegime:
    """Full CBS/IBS rates with income taxes on actual profit."""
    return TaxRegime(
        name="new",
        cbs_rate=Decimal("12"),
        ibs_rate=Decimal("5"),
        irpj_rate=Decimal("15"),
        csll_rate=Decimal("9"),
    )


@pytest.fixture
def reference_regime() -> TaxRegime:
    """CBS 0.9% / IBS 17.7% (combined 18.6%)."""
    return TaxRegime(
        name="reference",
        cbs_rate=Decimal("0.9"),
        ibs_rate=Decimal("17.7"),
        irpj_rate=Decimal("15"),
        csll_rate=Decimal("9"),
    )


@pytest.fixture
def presumed_regime() -> TaxRegime:
    return TaxRegime(
        name="new_presumed",
        cbs_rate=Decimal("12"),
        ibs_rate=Decimal("5"),
        irpj_rate=Decimal("15"),
        csll_rate=Decimal("9"),
        profit_base=ProfitBase.PRESUMED,
        presumed_profit_percent=Decimal("32"),
    )


@pytest.fixture
def standard_inputs() -> CostInputs:
    """1000.00 of total costs at a 20% margin."""
    return CostInputs(
        labor_cost=Decimal("500.00"),
        labor_hours=Decimal("10"),
        material_cost=Decimal("250.00"),
        third_party_cost=Decimal("100.00"),
        other_direct_costs=Decimal("50.00"),
        indirect_costs_total=Decimal("100.00"),
        profit_margin_percent=Decimal("20"),
    )
