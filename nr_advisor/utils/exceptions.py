"""
Custom exception hierarchy for the NR settings advisor.

All custom exceptions inherit from AdvisorError for easy catching.
"""


class AdvisorError(Exception):
    """Base exception for all NR advisor errors."""
    pass


class ConfigurationError(AdvisorError):
    """Configuration-related errors.

    Raised when configuration loading or validation fails.

    Example:
        >>> raise ConfigurationError("Invalid advisor config: read_timeout_s must be > 0")
    """
    pass


class FetchError(AdvisorError):
    """Remote service errors.

    Raised when a request to Overpass, Nominatim or the population density
    service fails at the network, HTTP or JSON level. The underlying
    exception is chained as ``__cause__``.

    Attributes:
        service: Short name of the remote service (e.g. 'overpass')
        url: Endpoint that was called
    """

    def __init__(self, message: str, service: str = None, url: str = None):
        super().__init__(message)
        self.service = service
        self.url = url

    def __str__(self):
        base = super().__str__()
        if self.service:
            return f"{base} (service={self.service})"
        return base


class DataValidationError(AdvisorError):
    """Data validation errors.

    Raised when a response payload does not have the expected shape.

    Attributes:
        invalid_rows: Number of records that failed validation
        details: Dictionary with validation error details
    """

    def __init__(self, message: str, invalid_rows: int = 0, details: dict = None):
        super().__init__(message)
        self.invalid_rows = invalid_rows
        self.details = details or {}

    def __str__(self):
        base = super().__str__()
        if self.invalid_rows > 0:
            return f"{base} (invalid_rows={self.invalid_rows})"
        return base


class GeometryError(AdvisorError):
    """Geometric calculation errors.

    Raised when geometry operations fail (e.g., invalid coordinates).

    Example:
        >>> raise GeometryError("Invalid coordinates: latitude out of range")
    """
    pass
