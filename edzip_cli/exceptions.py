"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class EdzipCliError(Exception):
    """Base exception for all application-specific errors."""


class DataLoadError(EdzipCliError):
    """Raised when the source CSV or the generated data file cannot be read or parsed."""


class RecordNotFoundError(EdzipCliError):
    """Raised when no record in the catalog has the requested key."""


class ConfigurationError(EdzipCliError):
    """Raised for issues related to configuration loading or validation."""
