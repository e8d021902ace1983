"""
Configuration package.

Exports all configuration classes and the global settings instance.
"""

from config.logging_config import (
    get_logger,
    setup_debug,
    setup_logging,
    setup_quiet,
    setup_verbose,
)
from config.settings import (
    ClusteringSettings,
    EnrichmentSettings,
    LinalgSettings,
    Settings,
    settings,
)

__all__ = [
    "Settings",
    "LinalgSettings",
    "ClusteringSettings",
    "EnrichmentSettings",
    "settings",
    "setup_logging",
    "get_logger",
    "setup_verbose",
    "setup_debug",
    "setup_quiet",
]
