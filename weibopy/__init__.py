"""
weibopy - Async Python client for the weibo.com ajax endpoints.

Usage:
    >>> from weibopy import WeiboClient
    >>>
    >>> async with WeiboClient(account_name="main") as weibo:
    ...     profile = await weibo.profile("2125613987")
    ...     print(profile["info"]["user"]["screen_name"])
"""
import logging
from .client import WeiboClient, STALE_SESSION_ATTEMPTS, private_account_result

# Configuration
from .core.api import (
    WeiboConfig,
    TimeoutConfig,
    RetryConfig,
    AsyncHttpClient,
    ClassifiedResponse,
    ResponseKind,
    classify,
)

# Session management
from .core.session import (
    VersionedStore,
    CredentialSession,
    SessionCache,
    SessionState,
)
from .core.storage import DataDirectory

# Errors
from .core.exceptions import (
    WeiboError,
    ValidationError,
    StorageIOError,
    AuthenticationError,
    UserNotFoundError,
    UnexpectedError,
)
from .core.api.errors import (
    UnknownResponseError,
    UnknownResponseStatusError,
    UnknownResponseBodyError,
    ConnectionFailedError,
    ConnectionSocketError,
    ConnectionTimeoutError,
    ConnectionUnknownError,
)

__version__ = '0.1.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for weibopy modules.

    This ensures that all weibopy loggers are properly configured
    to show log messages at the specified level.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'weibopy',
        'weibopy.client',
        'weibopy.http',
        'weibopy.session',
        'weibopy.session.cache',
        'weibopy.session.store',
        'weibopy.storage',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'WeiboClient',
    'STALE_SESSION_ATTEMPTS',
    'private_account_result',
    'WeiboConfig',
    'TimeoutConfig',
    'RetryConfig',
    'AsyncHttpClient',
    'ClassifiedResponse',
    'ResponseKind',
    'classify',
    'VersionedStore',
    'CredentialSession',
    'SessionCache',
    'SessionState',
    'DataDirectory',
    'WeiboError',
    'ValidationError',
    'StorageIOError',
    'AuthenticationError',
    'UserNotFoundError',
    'UnexpectedError',
    'UnknownResponseError',
    'UnknownResponseStatusError',
    'UnknownResponseBodyError',
    'ConnectionFailedError',
    'ConnectionSocketError',
    'ConnectionTimeoutError',
    'ConnectionUnknownError',
    'setup_logging',
]
