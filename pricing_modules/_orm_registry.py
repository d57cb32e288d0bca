"""
Module ORM Registry (``pricing_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before
``create_tables()`` runs.

Architecture position
---------------------
**Modules layer** -- utility.  Called lazily by
``pricing_kernel.db.engine.create_tables``.
"""


def import_all_orm_models() -> None:
    """Import every ``pricing_modules.*.orm`` module to register ORM models.

    Idempotent -- repeated calls are harmless.
    """
    import pricing_modules.budget.orm  # noqa: F401
