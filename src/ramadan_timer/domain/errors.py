"""Error taxonomy."""


class RamadanTimerError(Exception):
    """Base class for application errors."""


class NetworkError(RamadanTimerError):
    """Upstream unreachable or answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ParseError(RamadanTimerError, ValueError):
    """Upstream response could not be mapped to the expected shape."""


class PermissionDenied(RamadanTimerError):
    """Location or notification permission refused."""


class InvalidInput(RamadanTimerError, ValueError):
    """User supplied value could not be used (e.g. manual coordinates)."""


class LocationTimeout(RamadanTimerError):
    """Position could not be obtained in time."""


class LocationUnavailable(RamadanTimerError):
    """Position information is unavailable."""
