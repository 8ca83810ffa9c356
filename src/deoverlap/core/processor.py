"""Parallel batch processing of glyph outlines.

Glyphs are independent, so a batch is spread over worker processes with
ProcessPoolExecutor. Contour sets and settings cross the process boundary
as plain dictionaries.

Key components:
- process_contour_set: Top-level picklable function for parallel execution
- BatchProcessor: Orchestrates a batch and collects statistics
"""

import time
import traceback
from collections.abc import Callable
from concurrent.futures import Future, ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from deoverlap.config import DeoverlapSettings
from deoverlap.core.remover import OverlapRemover
from deoverlap.domain import ContourSet
from deoverlap.utils import ProcessingLogger, ProcessingStats, configure_logging

ProgressCallback = Callable[[int, int, str, bool], None]


def process_contour_set(
    contour_set_dict: dict[str, Any],
    config_dict: dict[str, Any],
) -> dict[str, Any]:
    """Remove overlaps from a single glyph.

    Top-level function designed to be picklable for use with ProcessPoolExecutor.
    Deserializes the contour set, runs the pipeline, and returns the result.

    Args:
        contour_set_dict: Serialized contour set (from ContourSet.to_dict())
        config_dict: Serialized settings (from DeoverlapSettings.model_dump())

    Returns:
        Dictionary containing either:
        - Success: {"result": result_dict, "contours_in": int, "duration_ms": float}
        - Error: {"error": str, "glyph_name": str, "traceback": str, "duration_ms": float}
    """
    start_time = time.time()

    try:
        contour_set = ContourSet.from_dict(contour_set_dict)
        settings = DeoverlapSettings(**config_dict)

        result = OverlapRemover(settings).remove(contour_set)

        duration_ms = (time.time() - start_time) * 1000
        return {
            "result": result.to_dict(),
            "contours_in": len(contour_set),
            "duration_ms": duration_ms,
        }

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        tb = traceback.format_exc()
        return {
            "error": str(e),
            "error_type": type(e).__name__,
            "glyph_name": contour_set_dict.get("name") or "unknown",
            "traceback": tb,
            "duration_ms": duration_ms,
        }


@dataclass
class BatchResult:
    """Outcome of a batch run.

    Attributes:
        contour_sets: Processed outlines by glyph name; failed glyphs are absent
        warnings: Serialized warnings by glyph name (glyphs without warnings omitted)
        dropped_contours: Indices of degenerate input contours by glyph name
        stats: Counts, timings and error details
    """

    contour_sets: dict[str, ContourSet] = field(default_factory=dict)
    warnings: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    dropped_contours: dict[str, list[int]] = field(default_factory=dict)
    stats: ProcessingStats = field(default_factory=ProcessingStats)


class BatchProcessor:
    """Runs overlap removal over many glyphs in parallel.

    Example:
        settings = DeoverlapSettings()
        processor = BatchProcessor(settings)
        batch = processor.process([outline_a, outline_b], max_workers=4)
        merged = batch.contour_sets["a"]
    """

    def __init__(self, config: DeoverlapSettings, quiet: bool = False) -> None:
        """Initialize batch processor with configuration.

        Args:
            config: Settings applied to every glyph
            quiet: Suppress console output except errors
        """
        self.config = config
        self.logger = configure_logging(
            log_file=config.logging.log_file,
            console_level=config.logging.log_level,
            file_level=config.logging.file_log_level,
            quiet=quiet,
        )

    def process(
        self,
        contour_sets: list[ContourSet],
        max_workers: int | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> BatchResult:
        """Process a batch of glyphs with parallel workers.

        Args:
            contour_sets: Outlines to process; each needs a unique name
            max_workers: Maximum worker processes (None = config default)
            progress_callback: Optional callback(completed, total, glyph_name, success)
                for progress updates

        Returns:
            BatchResult with the processed outlines and statistics

        Raises:
            ValueError: If glyph names are missing or repeated
            KeyboardInterrupt: If processing is cancelled by user
        """
        names = [cs.name for cs in contour_sets]
        if any(name is None for name in names) or len(set(names)) != len(names):
            raise ValueError("Every contour set in a batch needs a unique name")
        if max_workers is None:
            max_workers = self.config.processing.max_workers

        tracker = ProcessingLogger(self.logger)
        batch = BatchResult(stats=tracker.stats)
        batch.stats.start_time = time.time()

        tasks: dict[str, dict[str, Any]] = {}
        for contour_set in contour_sets:
            if contour_set.is_empty():
                tracker.log_glyph_skipped(contour_set.name, "no contours")
                batch.contour_sets[contour_set.name] = contour_set
            else:
                tasks[contour_set.name] = contour_set.to_dict()

        tracker.log_batch_start(len(tasks), max_workers)
        try:
            if tasks:
                self._run_workers(tasks, max_workers, batch, tracker, progress_callback)
        finally:
            batch.stats.end_time = time.time()
            tracker.log_batch_complete()
        return batch

    def _run_workers(
        self,
        tasks: dict[str, dict[str, Any]],
        max_workers: int | None,
        batch: BatchResult,
        tracker: ProcessingLogger,
        progress_callback: ProgressCallback | None,
    ) -> None:
        """Submit every glyph to a process pool and collect results as they finish."""
        config_dict = self.config.model_dump()
        total = len(tasks)

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            pending: dict[Future, str] = {}
            for name, contour_set_dict in tasks.items():
                tracker.log_glyph_start(name)
                pending[executor.submit(process_contour_set, contour_set_dict, config_dict)] = name

            completed = 0
            try:
                for future in as_completed(pending):
                    glyph_name = pending.pop(future)
                    try:
                        result = future.result()
                    except Exception as e:
                        # The worker itself died; process_contour_set never raises
                        result = {
                            "error": str(e),
                            "error_type": type(e).__name__,
                            "glyph_name": glyph_name,
                            "traceback": traceback.format_exc(),
                        }
                    success = self._record(glyph_name, result, batch, tracker)

                    completed += 1
                    if progress_callback is not None:
                        progress_callback(completed, total, glyph_name, success)

            except KeyboardInterrupt:
                tracker.log_cancelled(len(pending))
                executor.shutdown(wait=True, cancel_futures=True)
                raise

    @staticmethod
    def _record(
        glyph_name: str,
        result: dict[str, Any],
        batch: BatchResult,
        tracker: ProcessingLogger,
    ) -> bool:
        """Store one worker result in the batch. Returns False for failures."""
        if "error" in result:
            tracker.log_glyph_error(
                glyph_name=glyph_name,
                error=result["error"],
                error_type=result.get("error_type"),
                traceback=result.get("traceback"),
            )
            return False

        payload = result["result"]
        contour_set = ContourSet.from_dict(payload["contours"])
        batch.contour_sets[glyph_name] = contour_set
        if payload["warnings"]:
            batch.warnings[glyph_name] = payload["warnings"]
            tracker.log_glyph_warnings(glyph_name, payload["warnings"])
        if payload["dropped_contours"]:
            batch.dropped_contours[glyph_name] = payload["dropped_contours"]

        tracker.log_glyph_complete(
            glyph_name=glyph_name,
            contours_in=result["contours_in"],
            contours_out=len(contour_set),
            intersections=payload["intersection_count"],
            duration_ms=result.get("duration_ms", 0.0),
        )
        return True
