"""
Exception hierarchy for the testing harness.

Every error raised by the harness itself derives from ``TestbenchError``, which
carries a machine-readable ``error_code`` and a ``details`` mapping in the same
shape as the application error classes it sits next to. Errors raised by the
host application (factory failures, migration errors, listener exceptions)
are never wrapped: they propagate to the test runner untouched.

Assertion-flavoured errors also subclass ``AssertionError`` so that unittest
and pytest report them as test failures rather than errors.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional


class TestbenchError(Exception):
    """
    Base exception for harness errors.

    Args:
        message: Human-readable error description
        error_code: Optional code for programmatic handling, defaults to the
            class name
        details: Optional mapping with extra context for logging
    """

    __test__ = False

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format for structured logging."""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'details': self.details,
            'timestamp': self.timestamp.isoformat(),
            'type': self.__class__.__name__,
        }


class ApplicationCreationError(TestbenchError):
    """Raised when the application factory does not produce a Flask app."""

    def __init__(self, message: str, factory: Any = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        if factory is not None:
            self.details['factory'] = getattr(factory, '__qualname__', repr(factory))


class CapabilityError(TestbenchError):
    """Raised when a test class declares something that is not a capability."""


class DatabaseSetupError(TestbenchError):
    """Raised when a database helper runs against an app without Flask-SQLAlchemy."""


class ResponseError(TestbenchError, AssertionError):
    """Raised when a response assertion runs before any request was made."""


class ExpectationNotMetError(TestbenchError, AssertionError):
    """
    Raised when a declared expectation was not satisfied by the end of a test.

    Args:
        message: Summary of the failed expectation
        missing: Names of the expectations that were not met
    """

    def __init__(self, message: str, missing: Optional[Iterable[str]] = None, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.missing = list(missing or [])
        self.details['missing'] = self.missing
