"""
Custom exceptions for weibopy operations.

This module defines the domain-level exception classes. Errors that describe
a response or a connection live in ``weibopy.core.api.errors``.
"""
from typing import Optional, Union


class WeiboError(Exception):
    """Base exception for all weibopy errors."""
    pass


class ValidationError(WeiboError, ValueError):
    """Raised when an argument or a configuration value has the wrong shape."""
    pass


class StorageIOError(WeiboError, OSError):
    """Raised when a local disk read or write fails."""
    pass


class AuthenticationError(WeiboError):
    """Raised when the login sequence is rejected or expires."""
    pass


class UserNotFoundError(WeiboError):
    """Raised when a uid does not match an existing user."""

    def __init__(self, uid: Union[int, str]) -> None:
        """
        Initialize the exception.

        Args:
            uid: The uid that was requested
        """
        self.uid = uid
        super().__init__(f"User with uid '{uid}' does not exist")


class UnexpectedError(WeiboError):
    """
    Raised when the remote side changed in a way that breaks the client.

    The code is stable across releases so that a report can be traced
    back to the check that failed.
    """

    def __init__(self, code: str, info: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            code: Stable diagnostic code (e.g. ``UNEXP00032``)
            info: Optional extra context
        """
        self.code = code
        self.info = info if info is not None else "none"
        super().__init__(
            f"unexpected error: {code}; info: {self.info} "
            f"(please report this code to the developer)"
        )
