"""Glyph outline representation.

This module defines ContourSet, the collection of contours making up one
glyph's outline. It is the unit of work for the overlap pipeline.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from deoverlap.domain.contour import Contour, WindingDirection


@dataclass
class ContourSet:
    """The contours of one glyph.

    Designed for efficient serialization for parallel processing.

    Attributes:
        contours: Contours forming the outline
        name: Optional glyph name, used for logging
    """

    contours: list[Contour] = field(default_factory=list)
    name: str | None = None

    def __len__(self) -> int:
        return len(self.contours)

    def __iter__(self) -> Iterator[Contour]:
        return iter(self.contours)

    def is_empty(self) -> bool:
        """Check if the outline has no contours."""
        return len(self.contours) == 0

    def orientations(self) -> list[WindingDirection | None]:
        """Winding direction of each contour, derived from its signed area."""
        return [contour.direction for contour in self.contours]

    def signed_area(self) -> float:
        """Sum of the contours' signed areas."""
        return sum(contour.signed_area() for contour in self.contours)

    def area(self) -> float:
        """Filled area, assuming the contours do not overlap.

        Outer contours and holes wind in opposite directions, so the
        magnitude of the summed signed area is the filled area.
        """
        return abs(self.signed_area())

    def selected(self) -> list[Contour]:
        """Contours flagged as selected."""
        return [contour for contour in self.contours if contour.selected]

    def segment_count(self) -> int:
        """Total number of segments across all contours."""
        return sum(len(contour) for contour in self.contours)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "name": self.name,
            "contours": [c.to_dict() for c in self.contours],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContourSet":
        """Deserialize from dictionary."""
        return cls(
            contours=[Contour.from_dict(c) for c in data["contours"]],
            name=data.get("name"),
        )
