"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from .defaults import (
    BacktestParams,
    DefaultConfig,
    RecalculationParams,
    RiskParams,
    StudyParams,
    ValidationParams,
    get_default_config,
)

_SECTIONS = {
    "risk": RiskParams,
    "validation": ValidationParams,
    "studies": StudyParams,
    "backtest": BacktestParams,
    "recalculation": RecalculationParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_instrument_config(self, ticker: str) -> dict[str, Any]:
        """Load ticker-specific configuration overrides."""
        instruments_file = self.config_dir / "instruments.yaml"

        if not instruments_file.exists():
            return {}

        with open(instruments_file) as f:
            instruments_config = yaml.safe_load(f) or {}

        return instruments_config.get("instruments", {}).get(ticker.upper(), {})  # type: ignore[no-any-return]

    def merge_config(
        self,
        ticker: Optional[str] = None,
        request_overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-request overrides (highest priority)
        2. Ticker-specific overrides
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        if ticker:
            config = self._deep_merge(config, self.load_instrument_config(ticker))

        if request_overrides:
            config = self._deep_merge(config, request_overrides)

        return config

    def load(
        self,
        ticker: Optional[str] = None,
        request_overrides: Optional[dict[str, Any]] = None
    ) -> DefaultConfig:
        """Merge all tiers and build a typed configuration."""
        return build_config(self.merge_config(ticker, request_overrides))

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                elif isinstance(value, dict):
                    result[field_name] = dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def build_config(merged: dict[str, Any]) -> DefaultConfig:
    """
    Build a typed DefaultConfig from a merged configuration dict.

    Unknown keys are ignored; missing keys fall back to dataclass defaults.
    """
    sections = {}
    for name, section_cls in _SECTIONS.items():
        values = merged.get(name) or {}
        known = {f.name for f in fields(section_cls)}
        kwargs = {k: v for k, v in values.items() if k in known}
        for key, value in kwargs.items():
            if isinstance(value, list):
                kwargs[key] = tuple(value)
        if "metric_ranges" in kwargs:
            kwargs["metric_ranges"] = {
                metric: tuple(bounds) for metric, bounds in kwargs["metric_ranges"].items()
            }
        sections[name] = section_cls(**kwargs)
    return DefaultConfig(**sections)
