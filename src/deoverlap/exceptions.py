"""Exception hierarchy for Deoverlap."""


class DeoverlapError(Exception):
    """Base exception for all Deoverlap errors."""

    pass


class MalformedInputError(DeoverlapError):
    """Input outline cannot be processed at all."""

    pass


class OpenContourError(MalformedInputError):
    """A contour does not close on itself."""

    def __init__(self, contour_index: int | None, gap: float) -> None:
        self.contour_index = contour_index
        self.gap = gap
        where = "contour" if contour_index is None else f"contour {contour_index}"
        super().__init__(f"Open {where}: end point is {gap:.6g} units from start")


class EmptyPathError(MalformedInputError):
    """A path was started but never given a start point."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Malformed path: {reason}")
