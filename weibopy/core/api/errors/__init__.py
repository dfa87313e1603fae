"""Response and connection errors."""
from .api_errors import (
    UnknownResponseError,
    UnknownResponseStatusError,
    UnknownResponseBodyError,
    ConnectionFailedError,
    ConnectionSocketError,
    ConnectionTimeoutError,
    ConnectionUnknownError,
)

__all__ = [
    'UnknownResponseError',
    'UnknownResponseStatusError',
    'UnknownResponseBodyError',
    'ConnectionFailedError',
    'ConnectionSocketError',
    'ConnectionTimeoutError',
    'ConnectionUnknownError',
]
