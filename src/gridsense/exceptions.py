class GridSenseError(Exception):
    """Base exception for the gridsense project."""


class InvalidInputError(GridSenseError, ValueError):
    """Raised when a caller passes an argument the engine refuses to work with."""


class InvalidRangeError(InvalidInputError):
    """Raised when a field of view is requested with a negative range."""


class ConfigError(GridSenseError):
    """Raised when engine settings cannot be parsed or validated."""
