"""
Pricing Kernel - Budget pricing foundations

Value types, typed errors, structured logging, and persistence glue for the
budget pricing engine:
- Decimal-only currency arithmetic with explicit minor units
- Configurable tax regimes threaded through every calculation
- Explicit quote lifecycle state machine
- Deterministic, side-effect-free calculations
"""

__version__ = "0.1.0"
