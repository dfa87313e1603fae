"""Tests for the async HTTP client."""
import asyncio
from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest

from weibopy.core.api.async_client import AsyncHttpClient, HttpResponse
from weibopy.core.api.config import WeiboConfig
from weibopy.core.api.errors import (
    ConnectionSocketError,
    ConnectionTimeoutError,
    ConnectionUnknownError,
)
from weibopy.core.api.retry import ExponentialBackoffStrategy


@pytest.fixture
def strategy():
    """Backoff strategy that does not sleep."""
    strategy = ExponentialBackoffStrategy()
    strategy.wait_async = AsyncMock()
    return strategy


@pytest.fixture
def http(tmp_path, strategy):
    config = WeiboConfig(request_retries=2, config_path=tmp_path / 'config.yaml')
    client = AsyncHttpClient(Mock(), config, retry_strategy=strategy)
    client._get_once = AsyncMock()
    return client


class TestAsyncHttpClient:
    """Test suite for AsyncHttpClient."""

    def test_build_headers(self, http):
        """Test per-call headers override the browser defaults."""
        headers = http.build_headers({'accept': 'application/json'})

        assert headers['accept'] == 'application/json'
        assert headers['user-agent'].startswith('Mozilla/5.0')
        assert headers['sec-fetch-mode'] == 'navigate'

    @pytest.mark.asyncio
    async def test_returns_client_errors_at_once(self, http):
        """Test 4xx statuses are answers, not failures."""
        http._get_once.return_value = HttpResponse(404, 'missing')

        response = await http.get('https://weibo.com/x')

        assert response.status == 404
        assert http._get_once.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, http, strategy):
        """Test a 5xx is retried until it succeeds."""
        http._get_once.side_effect = [HttpResponse(503, ''), HttpResponse(200, 'ok')]

        response = await http.get('https://weibo.com/x')

        assert response.body == 'ok'
        assert http._get_once.await_count == 2
        strategy.wait_async.assert_awaited_once_with(0)

    @pytest.mark.asyncio
    async def test_last_attempt_returns_status(self, http):
        """Test the final 5xx is returned rather than raised."""
        http._get_once.return_value = HttpResponse(500, 'down')

        response = await http.get('https://weibo.com/x')

        assert response.status == 500
        assert http._get_once.await_count == 3

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self, http):
        """Test a connection error is retried."""
        http._get_once.side_effect = [aiohttp.ClientOSError(), HttpResponse(200, 'ok')]

        assert (await http.get('https://weibo.com/x')).status == 200

    @pytest.mark.asyncio
    async def test_raises_after_last_attempt(self, http):
        """Test exhausted retries raise a categorized error."""
        error = asyncio.TimeoutError()
        http._get_once.side_effect = error

        with pytest.raises(ConnectionTimeoutError) as exc_info:
            await http.get('https://weibo.com/x')

        assert exc_info.value.request == {'method': 'get', 'url': 'https://weibo.com/x'}
        assert exc_info.value.wrapped_exception is error
        assert http._get_once.await_count == 3

    def test_categorize(self):
        """Test failures map onto the connection error types."""
        url = 'https://weibo.com'

        assert isinstance(AsyncHttpClient.categorize(url, asyncio.TimeoutError()), ConnectionTimeoutError)
        assert isinstance(AsyncHttpClient.categorize(url, aiohttp.ClientOSError()), ConnectionSocketError)
        assert isinstance(AsyncHttpClient.categorize(url, aiohttp.ClientPayloadError()), ConnectionUnknownError)

    def test_error_message(self):
        """Test the request is named in the message."""
        error = AsyncHttpClient.categorize('https://weibo.com', aiohttp.ClientOSError())

        assert str(error) == 'Connection socket error (method: get, url: https://weibo.com)'
