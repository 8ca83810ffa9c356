"""Configuration management for deoverlap.

This module provides configuration management using Pydantic models.
Tolerances are passed explicitly to the pipeline entry point rather than
living in module-level constants, so callers and tests can inspect them.

Key classes:
- GeometryConfig: Numeric tolerances and iteration caps
- OverlapConfig: Fill rule, mode and output orientation
- ProcessingConfig: Batch processing settings
- LoggingConfig: Logging settings
- DeoverlapSettings: Main application settings
"""

from deoverlap.config.settings import (
    DeoverlapSettings,
    FillRule,
    GeometryConfig,
    LoggingConfig,
    OverlapConfig,
    OverlapMode,
    OverlapScope,
    ProcessingConfig,
    SweepAxis,
    get_default_settings,
)

__all__ = [
    "DeoverlapSettings",
    "FillRule",
    "GeometryConfig",
    "LoggingConfig",
    "OverlapConfig",
    "OverlapMode",
    "OverlapScope",
    "ProcessingConfig",
    "SweepAxis",
    "get_default_settings",
]
