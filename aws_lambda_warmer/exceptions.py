"""
Custom exceptions for the AWS Lambda Warmer package.
"""


class WarmerException(Exception):
    """Base exception for all warmer-related errors."""
    pass


class ConfigurationError(WarmerException):
    """Raised when there's an error in the configuration."""
    pass


class ValidationError(WarmerException):
    """Raised when validation fails."""
    pass


class LambdaExecutionError(WarmerException):
    """Raised when Lambda execution fails."""
    pass


class AWSPermissionError(WarmerException):
    """Raised when AWS permissions are insufficient."""
    pass


class ConcurrencyLimitError(WarmerException):
    """Raised when concurrency limits are exceeded."""
    pass


class StatusReportError(WarmerException):
    """Raised when a status report returned by a warmed function cannot be parsed."""
    pass


class UnknownStrategyError(WarmerException):
    """Raised when a warmup strategy is not registered."""
    pass


class WarmupFailedError(WarmerException):
    """Raised when one or more warmup invocations of a pass have failed."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])
