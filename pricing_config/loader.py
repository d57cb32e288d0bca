"""
Configuration Loader (``pricing_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the typed
``pricing_config.schema`` dataclasses.  Runtime callers go through
``pricing_config.load_pricing_config()`` / ``get_tax_regime()``.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; no silent defaults for required fields.
* Rates are parsed from their YAML text, never through float, so
  ``0.9`` in the file is ``Decimal("0.9")`` in the regime.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid rates or settings  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from pricing_config.schema import BudgetSettings, PricingConfigurationSet
from pricing_kernel.domain.currency import CurrencyRegistry
from pricing_kernel.domain.tax_regime import ProfitBase, TaxRegime
from pricing_kernel.exceptions import ValidationError


class _DecimalSafeLoader(yaml.SafeLoader):
    """SafeLoader that reads YAML floats as Decimal instead of float."""


def _construct_decimal(loader: yaml.SafeLoader, node: yaml.Node) -> Decimal:
    return Decimal(loader.construct_scalar(node))


_DecimalSafeLoader.add_constructor("tag:yaml.org,2002:float", _construct_decimal)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.load(f, Loader=_DecimalSafeLoader) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: configuration must be a mapping, got {type(data).__name__}")
    return data


def parse_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"{field}: expected a decimal number, got {value!r}")
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"{field}: expected a decimal number, got {value!r}") from e


def parse_regime(name: str, data: dict[str, Any]) -> TaxRegime:
    """Parse one named regime.  Rates are percentages."""
    presumed = data.get("presumed_profit_percent")
    try:
        return TaxRegime(
            name=name,
            cbs_rate=parse_decimal(data["cbs_rate"], f"{name}.cbs_rate"),
            ibs_rate=parse_decimal(data["ibs_rate"], f"{name}.ibs_rate"),
            irpj_rate=parse_decimal(data["irpj_rate"], f"{name}.irpj_rate"),
            csll_rate=parse_decimal(data["csll_rate"], f"{name}.csll_rate"),
            profit_base=ProfitBase(data.get("profit_base", ProfitBase.ACTUAL.value)),
            presumed_profit_percent=(
                parse_decimal(presumed, f"{name}.presumed_profit_percent")
                if presumed is not None else None
            ),
            description=data.get("description", ""),
        )
    except ValidationError as e:
        raise ValueError(f"Tax regime {name!r}: {e}") from e


def parse_settings(data: dict[str, Any]) -> BudgetSettings:
    defaults = BudgetSettings()
    validity_days = data.get("validity_days", defaults.validity_days)
    if isinstance(validity_days, bool) or not isinstance(validity_days, int) or validity_days < 1:
        raise ValueError(f"budget.validity_days must be a positive integer, got {validity_days!r}")
    minimum_margin = parse_decimal(
        data.get("minimum_margin_percent", defaults.minimum_margin_percent),
        "budget.minimum_margin_percent",
    )
    if not Decimal("0") <= minimum_margin < Decimal("100"):
        raise ValueError(
            f"budget.minimum_margin_percent must be in [0, 100), got {minimum_margin}"
        )
    prefix = str(data.get("number_prefix", defaults.number_prefix)).strip()
    if not prefix:
        raise ValueError("budget.number_prefix must not be empty")
    currency = str(data.get("currency", defaults.currency)).upper()
    if not CurrencyRegistry.is_valid(currency):
        raise ValueError(
            f"budget.currency {currency!r} is not a registered currency; "
            f"available: {', '.join(sorted(CurrencyRegistry.all_codes()))}"
        )
    return BudgetSettings(
        number_prefix=prefix,
        validity_days=validity_days,
        minimum_margin_percent=minimum_margin,
        default_regime=str(data.get("default_regime", defaults.default_regime)),
        currency=currency,
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_configuration_set(data: dict[str, Any]) -> PricingConfigurationSet:
    """Parse a whole configuration document."""
    regimes_data = data["regimes"]
    if not isinstance(regimes_data, dict) or not regimes_data:
        raise ValueError("regimes must be a non-empty mapping of name -> rates")

    regimes = tuple(
        parse_regime(name, regime_data)
        for name, regime_data in sorted(regimes_data.items())
    )
    settings = parse_settings(data.get("budget") or {})

    config = PricingConfigurationSet(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        regimes=regimes,
        settings=settings,
        checksum=compute_checksum(data),
        description=data.get("description", ""),
    )
    if settings.default_regime not in config.regime_names():
        raise ValueError(
            f"budget.default_regime {settings.default_regime!r} is not a declared regime"
        )
    return config


def load_configuration_set(path: Path) -> PricingConfigurationSet:
    return parse_configuration_set(load_yaml_file(path))
