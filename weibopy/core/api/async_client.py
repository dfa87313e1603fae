"""
Async HTTP client.

Thin GET-only transport used by credential sessions: browser-like headers,
a shared cookie jar, a per-request timeout and transport-level retries.
"""
import asyncio
from dataclasses import dataclass
from typing import Dict, Optional, Union
import logging

import aiohttp

from .config import WeiboConfig, RetryConfig, TimeoutConfig, DEFAULT_USER_AGENT
from .errors import (
    ConnectionFailedError,
    ConnectionSocketError,
    ConnectionTimeoutError,
    ConnectionUnknownError,
)
from .retry import RetryStrategy, ExponentialBackoffStrategy
from ..logging import get_logger, OperationTrace

BASE_HEADERS: Dict[str, str] = {
    'pragma': 'no-cache',
    'cache-control': 'no-cache',
    'sec-ch-ua': '"Chromium";v="94", "Google Chrome";v="94", ";Not A Brand";v="99"',
    'sec-ch-ua-mobile': '?0',
    'sec-ch-ua-platform': '"Linux"',
    'upgrade-insecure-requests': '1',
    'accept': (
        'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,'
        'image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.9'
    ),
    'sec-fetch-site': 'none',
    'sec-fetch-mode': 'navigate',
    'sec-fetch-user': '?1',
    'sec-fetch-dest': 'document',
    'accept-language': 'en-US,en;q=0.9,fr-FR;q=0.8,fr;q=0.7,es;q=0.6',
}

Log = Union[logging.Logger, OperationTrace]


@dataclass(frozen=True)
class HttpResponse:
    """Status and decoded body of a finished request."""
    status: int
    body: str
    url: str = ''


class AsyncHttpClient:
    """
    Asynchronous GET client bound to one cookie jar.

    A new ``aiohttp.ClientSession`` is opened per request around the shared
    jar, so the client itself holds no connection and needs no closing.

    Example:
        >>> client = AsyncHttpClient(aiohttp.CookieJar(), WeiboConfig.load())
        >>> response = await client.get("https://weibo.com")
    """

    def __init__(
        self,
        jar: aiohttp.CookieJar,
        config: Optional[WeiboConfig] = None,
        follow_redirects: bool = True,
        retry_strategy: Optional[RetryStrategy] = None
    ):
        self._jar = jar
        self._follow_redirects = follow_redirects
        if config is not None:
            user_agent = config.user_agent
            self._timeout = config.timeout
            self._retry = config.retry
        else:
            user_agent = DEFAULT_USER_AGENT
            self._timeout = TimeoutConfig()
            self._retry = RetryConfig()
        self._strategy = retry_strategy or ExponentialBackoffStrategy(self._retry)
        self._base_headers = {**BASE_HEADERS, 'user-agent': user_agent}
        self._logger = get_logger('weibopy.http')

    @property
    def jar(self) -> aiohttp.CookieJar:
        return self._jar

    def build_headers(self, headers: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Baseline headers overridden by the per-call ones."""
        return {**self._base_headers, **(headers or {})}

    async def get(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        log: Optional[Log] = None
    ) -> HttpResponse:
        """
        Make a GET request.

        Statuses 200-499 are returned at once; 5xx and connection errors are
        retried up to ``request_retries`` times. The last attempt returns
        whatever status it received.

        Raises:
            ConnectionSocketError: The host could not be reached
            ConnectionTimeoutError: The request exceeded the timeout
            ConnectionUnknownError: Any other client error
        """
        log = log or self._logger
        merged = self.build_headers(headers)
        attempts = self._retry.max_retries + 1

        log.info(
            f"HTTP_CLIENT: METHOD(GET) URL({url}) HEADERS({headers or {}}) "
            f"TIMEOUT({self._timeout.total}) RETRIES({self._retry.max_retries})"
        )

        for attempt in range(1, attempts + 1):
            try:
                response = await self._get_once(url, merged)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt == attempts:
                    raise self.categorize(url, e) from e
                log.warning(f"HTTP_CLIENT: cause for retrial: {e!r}")
            else:
                if attempt == attempts or not self._strategy.should_retry_status(response.status):
                    log.debug(f"HTTP_CLIENT: STATUS({response.status}) BODY({response.body[:1000]})")
                    return response
                log.warning(f"HTTP_CLIENT: cause for retrial: status: {response.status}")

            log.info(f"HTTP_CLIENT: retrial {attempt} of {self._retry.max_retries}")
            await self._strategy.wait_async(attempt - 1)

        # range() above always returns or raises on the last attempt
        raise ConnectionUnknownError({'method': 'get', 'url': url})

    async def _get_once(self, url: str, headers: Dict[str, str]) -> HttpResponse:
        async with aiohttp.ClientSession(
            cookie_jar=self._jar,
            timeout=self._timeout.to_aiohttp_timeout()
        ) as session:
            async with session.get(
                url,
                headers=headers,
                allow_redirects=self._follow_redirects
            ) as response:
                body = await response.text(errors='replace')
                return HttpResponse(status=response.status, body=body, url=str(response.url))

    @staticmethod
    def categorize(url: str, error: BaseException) -> ConnectionFailedError:
        """Map an aiohttp failure onto the connection error hierarchy."""
        request = {'method': 'get', 'url': url}
        # ServerTimeoutError is also a ClientError, check timeouts first
        if isinstance(error, asyncio.TimeoutError):
            return ConnectionTimeoutError(request, error)
        if isinstance(error, (aiohttp.ClientConnectorError, aiohttp.ClientOSError)):
            return ConnectionSocketError(request, error)
        return ConnectionUnknownError(request, error)
