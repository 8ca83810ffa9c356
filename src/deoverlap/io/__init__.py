"""Outline I/O layer for deoverlap.

This module connects the domain models to fontTools' pen protocol, the
common currency for glyph outlines across font formats. Any glyph that can
draw itself into a pen can be turned into a ContourSet, and any ContourSet
can be replayed into a pen (for example TTGlyphPen or T2CharStringPen).

Key classes:
- ContourSetPen: Pen recording drawing commands into a ContourSet

Key functions:
- draw_contour_set: Replay a ContourSet into any pen
"""

from deoverlap.io.pens import ContourSetPen, draw_contour_set

__all__ = [
    "ContourSetPen",
    "draw_contour_set",
]
