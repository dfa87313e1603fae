"""
Session protocols.

Defines the interfaces a credential session depends on.
"""
from typing import Protocol, Optional, Dict, Union, Awaitable, Callable, runtime_checkable
import logging

from ..api.async_client import HttpResponse
from ..logging import OperationTrace


@runtime_checkable
class HttpTransport(Protocol):
    """
    GET-only transport bound to a session's cookie jar.

    ``AsyncHttpClient`` is the production implementation; tests pass
    scripted fakes.
    """

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        log: Optional[Union[logging.Logger, OperationTrace]] = None
    ) -> HttpResponse:
        """
        Issue a GET and return the final response.

        Raises:
            ConnectionFailedError: When all transport retries are exhausted
        """
        ...


# Receives the QR code image URL the account holder has to scan
QRCodeCallback = Callable[[str], Union[None, Awaitable[None]]]
