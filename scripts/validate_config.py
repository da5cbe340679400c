#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path
from typing import Optional

import yaml

from quantlab.config.loader import ConfigLoader
from quantlab.config.validation import ConfigValidator, ValidationError


def configured_instruments(loader: ConfigLoader) -> list[str]:
    """Tickers with overrides in instruments.yaml."""
    instruments_file = loader.config_dir / "instruments.yaml"
    if not instruments_file.exists():
        return []
    with open(instruments_file) as f:
        data = yaml.safe_load(f) or {}
    return sorted(data.get("instruments", {}))


def validate_instrument_config(loader: ConfigLoader, ticker: Optional[str]) -> list[ValidationError]:
    """Validate the merged configuration for one ticker (None for global defaults)."""
    return ConfigValidator.validate_config(loader.merge_config(ticker))


def main(config_dir: Optional[Path] = None) -> int:
    """Validate defaults and every instrument override; returns the exit code."""
    loader = ConfigLoader.create(config_dir)
    print(f"Validating configuration in {loader.config_dir}")

    all_valid = True
    for ticker in [None, *configured_instruments(loader)]:
        label = ticker or "defaults"
        errors = validate_instrument_config(loader, ticker)
        if errors:
            print(f"  {label}: {len(errors)} validation errors")
            for error in errors:
                print(f"    - {error.field}: {error.message} (value: {error.value})")
            all_valid = False
        else:
            print(f"  {label}: ok")

    print("Configuration valid" if all_valid else "Configuration validation failed")
    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main(Path(sys.argv[1]) if len(sys.argv) > 1 else None))
