"""weibo.com API module: configuration, transport, requests and classification."""
from .config import WeiboConfig, TimeoutConfig, RetryConfig
from .async_client import AsyncHttpClient, HttpResponse, BASE_HEADERS
from .async_auth import QRLoginService, AuthResult
from .classifier import ClassifiedResponse, ResponseKind, classify
from .request import RequestBuilder, EndpointRequest, parse_since_id
from .retry import RetryStrategy, ExponentialBackoffStrategy
from .errors import (
    UnknownResponseError,
    UnknownResponseStatusError,
    UnknownResponseBodyError,
    ConnectionFailedError,
    ConnectionSocketError,
    ConnectionTimeoutError,
    ConnectionUnknownError,
)

__all__ = [
    # Configuration
    'WeiboConfig',
    'TimeoutConfig',
    'RetryConfig',

    # Transport
    'AsyncHttpClient',
    'HttpResponse',
    'BASE_HEADERS',
    'RetryStrategy',
    'ExponentialBackoffStrategy',

    # Authentication
    'QRLoginService',
    'AuthResult',

    # Requests and responses
    'RequestBuilder',
    'EndpointRequest',
    'parse_since_id',
    'ClassifiedResponse',
    'ResponseKind',
    'classify',

    # Errors
    'UnknownResponseError',
    'UnknownResponseStatusError',
    'UnknownResponseBodyError',
    'ConnectionFailedError',
    'ConnectionSocketError',
    'ConnectionTimeoutError',
    'ConnectionUnknownError',
]
