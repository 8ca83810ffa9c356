"""Logging utilities for Deoverlap.

Pipeline modules log through ``structlog.get_logger(__name__)`` and never
configure anything themselves. Applications (and BatchProcessor) call
configure_logging once to route those events through the standard logging
module as JSON lines.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

# Marks handlers installed by configure_logging so a second call replaces them
_HANDLER_FLAG = "_deoverlap_handler"


@dataclass
class ProcessingStats:
    """Statistics from a batch run."""

    processed_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    intersections_found: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    warnings_by_kind: Counter[str] = field(default_factory=Counter)
    glyph_timings_ms: list[float] = field(default_factory=list)
    was_cancelled: bool = False
    cancelled_count: int = 0
    start_time: float | None = None
    end_time: float | None = None

    @property
    def warning_count(self) -> int:
        """Total number of warnings over all glyphs."""
        return sum(self.warnings_by_kind.values())

    @property
    def duration_seconds(self) -> float:
        """Calculate processing duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    @property
    def slowest_glyph_ms(self) -> float:
        return max(self.glyph_timings_ms, default=0.0)

    def summary(self) -> dict[str, Any]:
        """Counters as keyword arguments for a log event."""
        return {
            "processed": self.processed_count,
            "skipped": self.skipped_count,
            "errors": self.error_count,
            "warnings": self.warning_count,
            "intersections": self.intersections_found,
            "cancelled": self.cancelled_count,
            "slowest_glyph_ms": round(self.slowest_glyph_ms, 2),
            "duration_seconds": round(self.duration_seconds, 2),
        }


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "WARNING",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure structured logging to the console and optionally a file.

    Args:
        log_file: Path to log file (no file is written if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output except errors

    Returns:
        Configured structlog logger

    Raises:
        ValueError: If a level name is not a logging level
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            root_logger.removeHandler(handler)
            handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.ERROR if quiet else _level(console_level))
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    handlers: list[logging.Handler] = [console_handler]

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(_level(file_level))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        handlers.append(file_handler)

    for handler in handlers:
        setattr(handler, _HANDLER_FLAG, True)
        root_logger.addHandler(handler)
    root_logger.setLevel(min(handler.level for handler in handlers))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("deoverlap")
    logger.debug(
        "Logging configured",
        log_file=str(log_file) if log_file is not None else None,
        console_level="ERROR" if quiet else console_level.upper(),
    )
    return logger


class ProcessingLogger:
    """Tracks a batch run: one event per glyph plus running totals."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = ProcessingStats()

    def log_batch_start(self, glyph_count: int, max_workers: int | None) -> None:
        self._logger.info(
            "Starting batch",
            glyphs=glyph_count,
            skipped=self._stats.skipped_count,
            max_workers=max_workers,
        )

    def log_batch_complete(self) -> None:
        self._logger.info("Batch complete", **self._stats.summary())

    def log_glyph_start(self, glyph_name: str) -> None:
        self._logger.debug("Submitting glyph", glyph=glyph_name)

    def log_glyph_complete(
        self,
        glyph_name: str,
        contours_in: int,
        contours_out: int,
        intersections: int,
        duration_ms: float,
    ) -> None:
        """Record a glyph that went through the pipeline."""
        self._logger.info(
            "Glyph processed",
            glyph=glyph_name,
            contours_in=contours_in,
            contours_out=contours_out,
            intersections=intersections,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.processed_count += 1
        self._stats.intersections_found += intersections
        self._stats.glyph_timings_ms.append(duration_ms)

    def log_glyph_skipped(self, glyph_name: str, reason: str) -> None:
        self._logger.debug("Glyph skipped", glyph=glyph_name, reason=reason)
        self._stats.skipped_count += 1

    def log_glyph_warnings(self, glyph_name: str, warnings: list[dict[str, Any]]) -> None:
        """Record the non-fatal conditions absorbed while processing a glyph."""
        for warning in warnings:
            self._logger.warning(
                "Glyph processed with warning",
                glyph=glyph_name,
                kind=warning.get("kind"),
                contour=warning.get("contour_index"),
                detail=warning.get("message"),
            )
            self._stats.warnings_by_kind[warning.get("kind")] += 1

    def log_glyph_error(
        self,
        glyph_name: str,
        error: str,
        error_type: str | None = None,
        traceback: str | None = None,
    ) -> None:
        """Record a glyph whose processing failed."""
        self._logger.error(
            "Glyph processing failed",
            glyph=glyph_name,
            error=error,
            error_type=error_type,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((glyph_name, error))

    def log_cancelled(self, pending: int) -> None:
        self._logger.warning("Batch cancelled", pending=pending)
        self._stats.was_cancelled = True
        self._stats.cancelled_count = pending

    @property
    def stats(self) -> ProcessingStats:
        """Get current processing statistics."""
        return self._stats
