"""
pricing_config -- single public entrypoint for pricing configuration.

Responsibility:
    Provides the ONLY way to obtain tax regimes and budget settings at
    runtime: ``load_pricing_config()`` and ``get_tax_regime()``.  Engines
    never read configuration; services receive the loaded set (or one of
    its regimes) explicitly.

Architecture position:
    Configuration -- YAML-driven, above ``pricing_kernel`` and below
    ``pricing_modules``.  The kernel and engines MUST NEVER import from
    ``pricing_config``.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``ValueError`` -- malformed rates or settings.
    - ``KeyError`` -- unknown regime name.

Audit relevance:
    Every load emits a ``PRICING_CONFIG_TRACE`` log entry with the config
    id, version, checksum and regime names.  Quotes snapshot the regime
    they were priced under, so later configuration changes never alter
    stored figures.
"""

from __future__ import annotations

from pathlib import Path

from pricing_config.loader import load_configuration_set
from pricing_config.schema import BudgetSettings, PricingConfigurationSet
from pricing_kernel.domain.tax_regime import TaxRegime
from pricing_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "BudgetSettings",
    "PricingConfigurationSet",
    "get_tax_regime",
    "load_pricing_config",
]


def load_pricing_config(path: Path | str | None = None) -> PricingConfigurationSet:
    """
    Load and validate a configuration set.

    Args:
        path: YAML file; defaults to ``pricing_config/sets/default.yaml``.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = load_configuration_set(config_path)

    _logger.info(
        "PRICING_CONFIG_TRACE",
        extra={
            "trace_type": "PRICING_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "regimes": list(config.regime_names()),
            "default_regime": config.settings.default_regime,
        },
    )
    return config


def get_tax_regime(
    name: str | None = None,
    config: PricingConfigurationSet | None = None,
) -> TaxRegime:
    """Named regime from ``config`` (default set when omitted); ``None`` -> default regime."""
    config = config or load_pricing_config()
    return config.get_regime(name)
