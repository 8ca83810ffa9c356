"""Core processing algorithms for deoverlap.

This module contains the overlap removal pipeline:

- Geometry operations (evaluation, extrema, splitting, chord intersection)
- Monotonic decomposition along the sweep axis
- Intersection finding (plane sweep plus exact pairwise intersection)
- Splitting and winding assignment (ray casting per edge bundle)
- Reconstruction (fill predicate, stitching, backtrack removal)

All stages are designed to be:
- Stateless (safe for use in worker processes)
- Pure (each stage returns new structures and mutates nothing it is given)

Key functions:
- decompose: Cut contours into linked monotonic pieces
- find_intersections: Locate crossings and touches between pieces
- split_and_wind: Build the wound edge graph
- reconstruct: Rebuild closed contours from retained edges
- remove_overlap: Run the whole pipeline on one glyph
- remove_backtracks: Strip zero-area retraces only

Key classes:
- OverlapRemover: Pipeline entry point holding the settings
- BatchProcessor: Runs many glyphs in worker processes
"""

from deoverlap.core.intersections import candidate_pairs, find_intersections
from deoverlap.core.monotonic import decompose
from deoverlap.core.processor import BatchProcessor, BatchResult, process_contour_set
from deoverlap.core.reconstruct import (
    ReconstructionResult,
    clean_backtracks,
    fill_predicate,
    reconstruct,
    remove_backtracks,
)
from deoverlap.core.remover import OverlapRemover, OverlapResult, remove_overlap
from deoverlap.core.winding import split_and_wind

__all__ = [
    # Processor classes
    "BatchProcessor",
    "BatchResult",
    # Pipeline classes
    "OverlapRemover",
    "OverlapResult",
    "ReconstructionResult",
    # Pipeline stages
    "candidate_pairs",
    "clean_backtracks",
    "decompose",
    "fill_predicate",
    "find_intersections",
    "process_contour_set",
    "reconstruct",
    "remove_backtracks",
    "remove_overlap",
    "split_and_wind",
]
