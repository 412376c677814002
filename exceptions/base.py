"""
Base Exception Classes for Trickle Monitor

Provides the foundation exception hierarchy from which all
other exceptions inherit.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class TrickleMonitorException(Exception):
    """
    Base Exception Class

    All custom exceptions in the application inherit from this class.
    Provides common functionality for error handling, logging, and
    serialization.

    Attributes:
        message: Human-readable error message
        error_code: Numeric error code for categorization
        details: Additional error details as dictionary
        cause: The underlying exception, if any
        timestamp: When the exception occurred
        recoverable: Whether the process can carry on after it
    """

    default_error_code: int = 1000
    default_recoverable: bool = True

    def __init__(
        self,
        message: str = "An error occurred",
        error_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)

        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable if recoverable is not None else self.default_recoverable
        self.timestamp = datetime.now(timezone.utc)

    @property
    def full_message(self) -> str:
        """Get full error message with code."""
        return f"[{self.error_code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": repr(self.cause) if self.cause else None,
        }

    def with_details(self, **kwargs: Any) -> "TrickleMonitorException":
        """
        Add additional details to the exception.

        Args:
            **kwargs: Key-value pairs to add to details

        Returns:
            Self for chaining
        """
        self.details.update(kwargs)
        return self

    @classmethod
    def from_exception(
        cls,
        exception: BaseException,
        message: Optional[str] = None,
        **kwargs: Any
    ) -> "TrickleMonitorException":
        """
        Create from another exception.

        Args:
            exception: The original exception
            message: Override message (uses original if not provided)
            **kwargs: Additional arguments for the exception

        Returns:
            New exception instance
        """
        return cls(
            message=message or str(exception) or type(exception).__name__,
            cause=exception,
            **kwargs
        )

    def log_format(self) -> str:
        """
        Format exception for logging.

        Returns:
            Formatted string for logging
        """
        parts = [
            f"Exception: {self.__class__.__name__}",
            f"Code: {self.error_code}",
            f"Message: {self.message}"
        ]

        if self.details:
            parts.append(f"Details: {self.details}")

        if self.cause:
            parts.append(f"Cause: {self.cause!r}")

        return " | ".join(parts)

    def __str__(self) -> str:
        return self.full_message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code}, "
            f"details={self.details})"
        )


class ConfigurationError(TrickleMonitorException):
    """
    Configuration Error

    Raised when settings fail validation. Always fatal at startup.
    """

    default_error_code = 1100
    default_recoverable = False


class StartupError(TrickleMonitorException):
    """
    Startup Error

    Base class of failures that keep the process from serving.
    The application logs these and exits.
    """

    default_error_code = 1200
    default_recoverable = False


class AddressDiscoveryError(StartupError):
    """The public address of this host could not be discovered."""

    default_error_code = 1201


class TargetNameError(StartupError):
    """The probe target name could not be built from the given address."""

    default_error_code = 1202


class ListenerBindError(StartupError):
    """The service port could not be bound."""

    default_error_code = 1203
