"""Utility modules for podlens."""

from .config_validator import ConfigValidator, get_configuration_summary, validate_configuration
from .logging import setup_logging

__all__ = [
    "setup_logging",
    "ConfigValidator",
    "validate_configuration",
    "get_configuration_summary",
]
