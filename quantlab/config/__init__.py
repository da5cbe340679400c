"""Configuration defaults, loading and validation."""

from .defaults import DefaultConfig, get_default_config
from .loader import ConfigLoader, build_config
from .validation import ConfigValidator

__all__ = [
    "DefaultConfig",
    "get_default_config",
    "ConfigLoader",
    "build_config",
    "ConfigValidator",
]
