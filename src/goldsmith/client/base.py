# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Generic httpx-based API client with retry and error normalization."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import httpx
import structlog

from goldsmith.client.errors import (
    ApiError,
    ApiTimeoutError,
    HttpStatusError,
    NetworkError,
)
from goldsmith.client.retry import RetryCondition, RetryPolicy

logger = structlog.get_logger("goldsmith.client")


@dataclass(frozen=True)
class ApiResponse:
    """Transport-independent view of a successful response."""

    data: Any
    status: int
    status_text: str
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> ApiResponse:
        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text
        return cls(
            data=data,
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
        )


class BaseApiClient:
    """Resilient HTTP client shared by the price API clients.

    Every verb method runs a single request inside the retry policy and
    returns an :class:`ApiResponse`, or raises an :class:`ApiError` variant
    regardless of whether the failure was a timeout, a dropped connection
    or a non-2xx answer.

    Header, auth and base-URL setters change client-wide defaults and
    affect every subsequent request.

        client = BaseApiClient("https://api.example.com", retries=2)
        response = await client.get("/gold")
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: timedelta = timedelta(seconds=30),
        retries: int = 3,
        retry_delay: timedelta = timedelta(seconds=1),
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout.total_seconds(),
            headers={"Content-Type": "application/json", **(headers or {})},
            transport=transport,
        )
        self._retry = RetryPolicy(retries=retries, retry_delay=retry_delay)

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    @property
    def headers(self) -> httpx.Headers:
        return self._client.headers

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    async def get(self, url: str, **kwargs: Any) -> ApiResponse:
        """Send a GET request."""
        return await self._request("GET", url, **kwargs)

    async def post(self, url: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        """Send a POST request with a JSON body."""
        return await self._request("POST", url, json=data, **kwargs)

    async def put(self, url: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        """Send a PUT request with a JSON body."""
        return await self._request("PUT", url, json=data, **kwargs)

    async def patch(self, url: str, data: Any = None, **kwargs: Any) -> ApiResponse:
        """Send a PATCH request with a JSON body."""
        return await self._request("PATCH", url, json=data, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> ApiResponse:
        """Send a DELETE request."""
        return await self._request("DELETE", url, **kwargs)

    def set_retry_policy(
        self,
        *,
        retries: int | None = None,
        retry_delay: timedelta | None = None,
        retry_condition: RetryCondition | None = None,
    ) -> None:
        """Update the retry policy; omitted fields keep their current value."""
        self._retry = RetryPolicy(
            retries=self._retry.retries if retries is None else retries,
            retry_delay=self._retry.retry_delay if retry_delay is None else retry_delay,
            retry_condition=retry_condition or self._retry.retry_condition,
        )

    def set_auth_token(self, token: str) -> None:
        self._client.headers["Authorization"] = f"Bearer {token}"

    def clear_auth_token(self) -> None:
        self._client.headers.pop("Authorization", None)

    def set_base_url(self, base_url: str) -> None:
        self._client.base_url = base_url

    def set_headers(self, headers: dict[str, str]) -> None:
        """Merge *headers* into the client-wide default headers."""
        self._client.headers.update(headers)

    async def dispose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> ApiResponse:
        async def send() -> ApiResponse:
            return await self._send(method, url, **kwargs)

        return await self._retry.execute(send)

    async def _send(self, method: str, url: str, **kwargs: Any) -> ApiResponse:
        logger.debug("api_request", method=method, url=url, params=kwargs.get("params"))
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise ApiTimeoutError(f"Request timed out: {method} {url}", details=str(exc)) from exc
        except httpx.TransportError as exc:
            raise NetworkError(details=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise ApiError(str(exc) or "Unknown error occurred", code="UNKNOWN_ERROR", details=exc) from exc

        logger.debug("api_response", method=method, url=url, status=response.status_code)
        if response.is_error:
            raise HttpStatusError.from_response(response)
        return ApiResponse.from_httpx(response)
