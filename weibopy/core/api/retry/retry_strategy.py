"""Retry strategies using Strategy Pattern."""
import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from ..config import RetryConfig


class RetryStrategy(ABC):
    """Abstract transport retry strategy."""

    @abstractmethod
    def should_retry_status(self, status: int) -> bool:
        """Determines if a response with this status should be retried."""
        pass

    @abstractmethod
    async def wait_async(self, retry_count: int):
        """Waits before retry (async)."""
        pass


class ExponentialBackoffStrategy(RetryStrategy):
    """Exponential backoff retry strategy."""

    def __init__(self, config: Optional[RetryConfig] = None):
        self._config = config or RetryConfig()

    def should_retry_status(self, status: int) -> bool:
        """Retries server errors, everything below 500 is an answer."""
        return not 200 <= status < 500

    async def wait_async(self, retry_count: int):
        """Waits with exponential backoff (async)."""
        await asyncio.sleep(self._config.calculate_delay(retry_count))
