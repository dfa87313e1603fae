"""Response and connection errors raised by the API layer."""
from typing import Dict, Any, Optional

from ...exceptions import WeiboError


class UnknownResponseError(WeiboError):
    """
    Raised when weibo.com returns a response the client does not recognize.

    Attributes:
        response: ``{'status': ..., 'body': '...'}`` with the raw response
    """

    def __init__(self, message: str, response: Dict[str, Any]):
        self.response = response
        super().__init__(message)


class UnknownResponseStatusError(UnknownResponseError):
    """The response status is neither 200 nor 400."""

    def __init__(self, response: Dict[str, Any]):
        super().__init__(f"Unknown response status: {response.get('status')}", response)


class UnknownResponseBodyError(UnknownResponseError):
    """The status is known but the body matches no known shape."""

    def __init__(self, response: Dict[str, Any]):
        super().__init__("Unknown response body", response)


class ConnectionFailedError(WeiboError):
    """
    Raised when a request could not complete after all transport retries.

    Attributes:
        request: ``{'method': '...', 'url': '...'}``
        wrapped_exception: The underlying exception
    """

    def __init__(
        self,
        message: str,
        request: Dict[str, str],
        wrapped_exception: Optional[BaseException] = None
    ):
        self.request = request
        self.wrapped_exception = wrapped_exception
        super().__init__(
            f"{message} (method: {request.get('method')}, url: {request.get('url')})"
        )


class ConnectionSocketError(ConnectionFailedError):
    """The connection could not be established."""

    def __init__(self, request: Dict[str, str], wrapped_exception: Optional[BaseException] = None):
        super().__init__("Connection socket error", request, wrapped_exception)


class ConnectionTimeoutError(ConnectionFailedError):
    """The request took longer than the configured timeout."""

    def __init__(self, request: Dict[str, str], wrapped_exception: Optional[BaseException] = None):
        super().__init__("Connection timeout error", request, wrapped_exception)


class ConnectionUnknownError(ConnectionFailedError):
    """Any other connection failure."""

    def __init__(self, request: Dict[str, str], wrapped_exception: Optional[BaseException] = None):
        super().__init__("Unknown connection error", request, wrapped_exception)
