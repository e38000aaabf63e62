"""Store error hierarchy for infrastructure backends.

These wrap failures of the connection layer (pool setup, Redis transport).
Statement-level failures during an audit write are not wrapped: they reach
the caller as the driver raised them.
"""


class StoreError(Exception):
    """Base exception for store infrastructure errors."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConnectionError(StoreError):
    """Raised when a backend connection cannot be established or used.

    Examples:
        - PostgreSQL pool creation fails
        - Redis server unavailable
    """


class NotConnectedError(StoreError):
    """Raised when a pool is used after it has been closed."""
