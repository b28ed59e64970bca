"""callApi action and the default HTTP client.

The executor talks to the network only through the ``ApiClient`` protocol so
hosts can swap in their own transport (authenticated sessions, test fakes).
The default ``AiohttpApiClient`` retries transient failures (connection
errors, timeouts, HTTP 429 and 5xx) with exponential backoff.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pagewright.config import ApiConfig
from pagewright.exceptions import NetworkError
from pagewright.logging import get_logger
from pagewright.runtime.actions.base import ActionInvocation

__all__ = ["ApiClient", "AiohttpApiClient", "execute_call_api"]

logger = get_logger(__name__)

_RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})


@runtime_checkable
class ApiClient(Protocol):
    async def request(
        self,
        *,
        url: str,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Send a request and return the parsed response body.

        Raises:
            NetworkError: If the request fails.
        """
        ...


class _RetryableRequestError(Exception):
    def __init__(self, message: str, status: int | None = None) -> None:
        self.status = status
        super().__init__(message)


def _parse_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class AiohttpApiClient:
    """ApiClient backed by aiohttp with tenacity retries.

    Args:
        config: Timeout and retry settings.
        session: Optional shared session. When omitted a short-lived session
            is opened per request.

    Example:
        ```python
        client = AiohttpApiClient(ApiConfig(timeout=10, max_retries=3))
        users = await client.request(url="https://api.example.com/users")
        ```
    """

    def __init__(
        self,
        config: ApiConfig | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or ApiConfig()
        self._session = session

    async def request(
        self,
        *,
        url: str,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        method = method.upper()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._config.max_retries + 1),
                wait=wait_exponential(
                    multiplier=self._config.retry_delay,
                    min=self._config.retry_delay,
                    max=8,
                ),
                retry=retry_if_exception_type(_RetryableRequestError),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.debug(
                            "api_request_retry",
                            url=url,
                            attempt=attempt.retry_state.attempt_number,
                        )
                    return await self._send(url, method, headers, body)
        except _RetryableRequestError as e:
            raise NetworkError(
                f"{method} {url} failed after {self._config.max_retries + 1} "
                f"attempt(s): {e}",
                url=url,
                status=e.status,
            ) from e
        raise AssertionError("unreachable: AsyncRetrying always returns or raises")

    async def _send(
        self,
        url: str,
        method: str,
        headers: Mapping[str, str] | None,
        body: Any,
    ) -> Any:
        kwargs: dict[str, Any] = {"headers": dict(headers or {})}
        if body is not None and method != "GET":
            if isinstance(body, (str, bytes)):
                kwargs["data"] = body
            else:
                kwargs["json"] = body

        try:
            if self._session is not None:
                return await self._perform(self._session, url, method, kwargs)
            timeout = aiohttp.ClientTimeout(total=self._config.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                return await self._perform(session, url, method, kwargs)
        except TimeoutError:
            raise _RetryableRequestError("request timed out") from None
        except aiohttp.ClientError as e:
            raise _RetryableRequestError(f"client error: {e}") from e

    async def _perform(
        self,
        session: aiohttp.ClientSession,
        url: str,
        method: str,
        kwargs: dict[str, Any],
    ) -> Any:
        async with session.request(method, url, **kwargs) as resp:
            text = await resp.text()
            if resp.status in _RETRYABLE_STATUS:
                raise _RetryableRequestError(f"HTTP {resp.status}", status=resp.status)
            if resp.status >= 400:
                raise NetworkError(
                    f"{method} {url} returned HTTP {resp.status}: {text[:200]}",
                    url=url,
                    status=resp.status,
                )
            return _parse_body(text)


async def execute_call_api(invocation: ActionInvocation) -> Any:
    """Send an HTTP request through the injected ApiClient.

    Config:
        url (required), method (default GET), headers, body, resultKey.
    """
    url = str(invocation.require("url"))
    method = str(invocation.config.get("method") or "GET")
    result = await invocation.services.api_client.request(
        url=url,
        method=method,
        headers=invocation.config.get("headers"),
        body=invocation.config.get("body"),
    )
    invocation.store_result(result)
    logger.debug("api_call_completed", url=url, method=method)
    return result
