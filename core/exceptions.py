"""Custom exception hierarchy for the HTTPS relay."""


class RelayError(Exception):
    """Base exception for all relay errors."""

    kind = "internal"


class ConfigurationError(RelayError):
    """Raised when configuration is missing or invalid."""

    kind = "config"


class InvalidJSON(RelayError):
    """Request body declared as JSON is not valid JSON."""

    kind = "invalid_json"


class UpstreamError(RelayError):
    """Raised when the upstream API cannot be reached.

    Attributes:
        message: Error message
        provider: Upstream host the request was sent to (optional)
    """

    kind = "upstream"

    def __init__(
        self,
        message: str,
        provider: str | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider


class UpstreamTimeoutError(UpstreamError):
    """Raised when the upstream request times out."""

    kind = "upstream_timeout"


class UpstreamConnectionError(UpstreamError):
    """Raised when unable to connect to the upstream or the exchange fails."""

    kind = "upstream_connection"


class InternalRelayError(RelayError):
    """Unexpected failure while building or relaying a request."""
