"""
Custom exceptions for the ART report pipeline.

This module defines a hierarchy of exceptions to provide more
precise error handling and debugging across the pipeline.
"""


class ReportBaseError(Exception):
    """
    Base exception for all report-related errors.

    All custom exceptions in the pipeline should inherit from this class.
    Provides a common base for catching and handling pipeline-specific errors.
    """

    pass


class ConfigurationError(ReportBaseError):
    """
    Raised when there are configuration-related issues.

    This exception is used when:
    - Required configuration parameters are missing
    - Configuration values are invalid
    - The output directory cannot be created
    """

    pass


class LoadError(ReportBaseError):
    """
    Raised when a source table cannot be loaded.

    Covers errors such as:
    - Source file missing or unreadable
    - A required column absent from the header
    - Duplicate metadata keys when strict key checking is enabled
    """

    pass


class RenderError(ReportBaseError):
    """
    Raised when a chart cannot be drawn or written to disk.
    """

    pass


class ExportError(ReportBaseError):
    """
    Raised when a derived dataset cannot be written to disk.
    """

    pass


class ReportError(ReportBaseError):
    """
    Raised when a report run fails for any reason other than
    loading or configuration.
    """

    pass
