"""Deoverlap - Remove overlaps from glyph outlines.

Deoverlap takes the contours of a glyph, built from line and cubic Bezier
segments that may self-intersect or overlap each other, and rebuilds them as
a set of closed contours covering the same filled area without any overlap.

Example:
    >>> from deoverlap import remove_overlap
    >>> result = remove_overlap(contour_set)
    >>> result.contours

The result is a new ContourSet with outer contours and holes oriented
consistently.
"""

from deoverlap.core.reconstruct import remove_backtracks
from deoverlap.core.remover import OverlapRemover, OverlapResult, remove_overlap

__version__ = "0.1.0"

__all__ = [
    "OverlapRemover",
    "OverlapResult",
    "__version__",
    "remove_backtracks",
    "remove_overlap",
]
