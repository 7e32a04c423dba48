"""
Custom exceptions for quick tunnel operations.
"""

from typing import Optional


class TunnelError(Exception):
    """Base exception for all quick tunnel errors."""
    pass


class ProvisioningError(TunnelError):
    """Raised when requesting new quick tunnel credentials fails."""

    # network, timeout, decode, validation, rejected
    def __init__(self, message: str, kind: str = 'network'):
        super().__init__(message)
        self.kind = kind


class PersistenceError(TunnelError):
    """Raised when the session config file cannot be read, written or deleted."""
    pass


class ConfigDecodeError(PersistenceError):
    """Raised when the session config file holds a malformed document."""
    pass


class SessionLockedError(PersistenceError):
    """Raised when another process holds the session config lock."""
    pass


class NotificationError(TunnelError):
    """Raised when the local callback could not be notified of the tunnel URL."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class ConnectorError(TunnelError):
    """Raised when the tunnel connector fails to start or exits with an error."""

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class ConnectorSetupError(ConnectorError):
    """Raised when the connector cannot be prepared locally; no tunnel was attempted."""
    pass


class RestartRequiredError(TunnelError):
    """Raised after a stale session config was removed; a new run will re-provision."""
    pass
