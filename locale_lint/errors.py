"""Custom exceptions used by locale-lint."""


class LocaleLintError(Exception):
    """Base class for errors raised by locale-lint."""


class ConfigurationError(LocaleLintError):
    """Raised when a configuration value cannot be used."""
