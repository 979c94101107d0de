"""Custom exceptions for configuration management."""


class ConfigurationError(Exception):
    """Raised when configuration data or planning inputs are unusable."""
