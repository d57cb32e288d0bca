"""
Pricing Modules.

Thin orchestration layers over the Pricing Kernel and Engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas (policy and settings)
- ORM persistence and a service facade

Modules:
- Budget: Budget quotes, templates, quote lifecycle, installments

Actual pricing logic lives in ``pricing_engines``.
"""

from pricing_modules import budget

__all__ = [
    "budget",
]
