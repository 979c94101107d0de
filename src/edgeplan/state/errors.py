"""Deployment state errors."""


class StateError(Exception):
    """Base exception for state repository operations."""


class MissingStateError(StateError):
    """Raised when no deployment has been recorded for a site."""
