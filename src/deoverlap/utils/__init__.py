"""Utility functions for deoverlap.

This module provides utility functions including:

- Logging setup and configuration
- Batch processing statistics
"""

from deoverlap.utils.logging import (
    ProcessingLogger,
    ProcessingStats,
    configure_logging,
)

__all__ = [
    "ProcessingLogger",
    "ProcessingStats",
    "configure_logging",
]
