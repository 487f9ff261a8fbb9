"""Domain-specific exceptions for ABC Core.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from AbcAPIError for easy catching.
"""


class AbcAPIError(Exception):
    """Base exception for all ABC Core errors.

    This is the base class for all domain-specific exceptions in the package.
    Users can catch this exception to handle any ABC Core error.
    """

    pass


class ConfigError(AbcAPIError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - Invalid configuration values are provided (e.g. top_n < 1)
    - Required configuration is missing
    """

    pass


class DataQualityError(AbcAPIError):
    """Raised when data quality checks fail.

    This exception is raised when:
    - Grouped month totals do not reconcile with the dashboard totals
    - Top-N-plus-Others output loses or duplicates value
    """

    pass


class ETLError(AbcAPIError):
    """Raised when an ingestion pipeline stage fails.

    This exception is raised when:
    - A workbook cannot be decoded
    - Normalized rows cannot be persisted
    """

    pass


class DecodeError(ETLError):
    """Raised when an uploaded workbook cannot be read at all."""

    pass


class StorageError(AbcAPIError):
    """Raised when the storage gateway fails."""

    pass


class TransientReadError(StorageError):
    """Raised when a storage read is rejected.

    Callers catch this per view: one failing table read degrades that view
    only and never its siblings.
    """

    pass


class DataUnavailableError(AbcAPIError):
    """Raised when a requested (period, table) combination has no rows."""

    pass
