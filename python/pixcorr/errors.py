"""Exceptions raised by pixcorr."""


class MatchError(Exception):
    """Base class for template matching errors."""


class InvalidDimensions(MatchError, ValueError):
    """The pattern is larger than the source in width or height."""

    def __init__(self, source_size, pattern_size):
        self.source_size = tuple(source_size)
        self.pattern_size = tuple(pattern_size)
        super().__init__(
            f"pattern {self.pattern_size[0]}x{self.pattern_size[1]} does not fit "
            f"in source {self.source_size[0]}x{self.source_size[1]}"
        )


class EmptyRaster(MatchError, ValueError):
    """A source or pattern raster has zero width or height."""

    def __init__(self, role: str, size):
        self.role = role
        self.size = tuple(size)
        super().__init__(f"{role} raster is empty ({self.size[0]}x{self.size[1]})")
