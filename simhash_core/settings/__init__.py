"""Settings package providing configuration models for the SimHash core."""

from .core import (
    HashingConfig,
    IndexConfig,
    MonitoringConfig,
    SimHashSettings,
    configure_logging,
    get_settings,
)

__all__ = [
    "HashingConfig",
    "IndexConfig",
    "MonitoringConfig",
    "SimHashSettings",
    "configure_logging",
    "get_settings",
]
