"""Resilient outbound HTTP requests with retry and backoff.

Every model call (routing, tagging, embedding) goes through ResilientClient.

Failure handling:
- 5xx and 429 responses are retried
- other 4xx responses are returned as-is for the caller to interpret
- transport failures (connection errors, timeouts) are retried
- response deserialization errors are re-raised immediately

Backoff is base_delay_ms * 2**attempt (attempt counted from 0) when
exponential, otherwise a constant base_delay_ms. No wait follows the last
attempt.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from artaka.config.schema import RetryConfig
from artaka.observability.logging import get_logger
from artaka.providers.base import (
    NetworkError,
    RateLimitedError,
    RequestError,
    RetryExhaustedError,
    ServerError,
    UndecodableResponseError,
)

logger = get_logger(__name__)

T = TypeVar("T")

RequestFactory = Callable[[], Awaitable[httpx.Response]]
RetryCallback = Callable[[int, Exception, int], None]
Sleeper = Callable[[float], Awaitable[Any]]


def compute_delay(attempt: int, base_delay_ms: int, exponential_backoff: bool) -> int:
    """Delay in milliseconds before retrying after the given 0-based attempt."""
    if exponential_backoff:
        return base_delay_ms * 2 ** attempt
    return base_delay_ms


def _check_status(response: httpx.Response) -> httpx.Response:
    if response.status_code >= 500:
        raise ServerError(
            f"Server error: {response.status_code} {response.reason_phrase}",
            status_code=response.status_code,
        )
    if response.status_code == 429:
        raise RateLimitedError("Rate limit exceeded (429)", status_code=429)
    if response.status_code >= 400:
        logger.error("client_error_not_retrying", status_code=response.status_code)
    return response


class ResilientClient:
    """Retrying wrapper around a shared httpx.AsyncClient.

    Example:
        async with ResilientClient(RetryConfig(max_retries=3)) as client:
            response = await client.post_json(url, {"model": "m", "input": "hi"})
    """

    def __init__(
        self,
        retry: Optional[RetryConfig] = None,
        timeout: float = 600.0,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            retry: Default retry policy for every call
            timeout: Per-request timeout in seconds (ignored when http_client is given)
            http_client: Pre-built client, mainly for tests with httpx.MockTransport
            sleep: Coroutine used to wait between attempts
        """
        self.retry = retry or RetryConfig()
        self._owns_client = http_client is None
        self.http = http_client or httpx.AsyncClient(timeout=timeout)
        self._sleep = sleep

    async def execute(
        self,
        request_factory: RequestFactory,
        *,
        max_retries: Optional[int] = None,
        base_delay_ms: Optional[int] = None,
        exponential_backoff: Optional[bool] = None,
        on_retry: Optional[RetryCallback] = None,
    ) -> httpx.Response:
        """Run request_factory until it succeeds or attempts run out.

        Args:
            request_factory: Zero-argument coroutine function issuing one request
            max_retries: Attempt ceiling (defaults to the client's policy)
            base_delay_ms: Base delay between attempts in milliseconds
            exponential_backoff: Double the delay after each attempt
            on_retry: Called as on_retry(attempt_number, error, delay_ms) before each wait

        Returns:
            The first non-retryable response (2xx, 3xx or non-429 4xx)

        Raises:
            RetryExhaustedError: After max_retries failed attempts
            UndecodableResponseError: If the body could not be decoded (not retried)
            ValueError: If the response could not be deserialized (not retried)
        """
        max_retries = self.retry.max_retries if max_retries is None else max_retries
        base_delay_ms = self.retry.base_delay_ms if base_delay_ms is None else base_delay_ms
        if exponential_backoff is None:
            exponential_backoff = self.retry.exponential_backoff
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        last_error: Optional[Exception] = None

        for attempt in range(max_retries):
            try:
                response = await request_factory()
                return _check_status(response)
            except RequestError as e:
                if not e.retryable:
                    raise
                last_error = e
            except httpx.TransportError as e:
                last_error = NetworkError(f"{type(e).__name__}: {e}", original_error=e)
            except httpx.DecodingError as e:
                raise UndecodableResponseError(f"{type(e).__name__}: {e}", original_error=e)
            # ValueError (including json.JSONDecodeError) propagates untouched

            if attempt >= max_retries - 1:
                break

            delay = compute_delay(attempt, base_delay_ms, exponential_backoff)
            logger.warning(
                "request_attempt_failed",
                attempt=attempt + 1,
                max_retries=max_retries,
                error=str(last_error),
                retry_in_ms=delay,
            )
            if on_retry:
                on_retry(attempt + 1, last_error, delay)
            await self._sleep(delay / 1000)

        raise RetryExhaustedError(
            f"Failed after {max_retries} attempts: {last_error}",
            attempts=max_retries,
            last_error=last_error,
        )

    async def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
        **retry_options: Any,
    ) -> httpx.Response:
        """POST a JSON payload through execute().

        timeout overrides the client-wide timeout for this call only.
        """
        request_timeout = httpx.USE_CLIENT_DEFAULT if timeout is None else timeout

        async def send() -> httpx.Response:
            return await self.http.post(url, json=payload, headers=headers, timeout=request_timeout)

        return await self.execute(send, **retry_options)

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self.http.aclose()

    async def __aenter__(self) -> "ResilientClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    base_delay_ms: int = 1000,
    exponential_backoff: bool = True,
    on_retry: Optional[RetryCallback] = None,
    sleep: Sleeper = asyncio.sleep,
) -> T:
    """Retry any coroutine on any exception with the same backoff rules.

    Raises:
        RetryExhaustedError: After max_retries failed attempts
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    last_error: Optional[Exception] = None
    for attempt in range(max_retries):
        try:
            return await operation()
        except Exception as e:
            last_error = e

        if attempt >= max_retries - 1:
            break

        delay = compute_delay(attempt, base_delay_ms, exponential_backoff)
        logger.warning(
            "operation_attempt_failed",
            attempt=attempt + 1,
            max_retries=max_retries,
            error=str(last_error),
            retry_in_ms=delay,
        )
        if on_retry:
            on_retry(attempt + 1, last_error, delay)
        await sleep(delay / 1000)

    raise RetryExhaustedError(
        f"Operation failed after {max_retries} attempts: {last_error}",
        attempts=max_retries,
        last_error=last_error,
    )
