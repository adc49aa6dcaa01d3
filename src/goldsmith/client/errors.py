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
"""Normalized HTTP errors.

Transport failures are classified once, at the HTTP boundary, into one of
these variants. Every layer above (retry, circuit breaker, price clients)
branches on the type instead of inspecting the underlying httpx exception.
"""

from __future__ import annotations

from typing import Any

import httpx

from goldsmith.kernel.exceptions import ExternalServiceException


class ApiError(ExternalServiceException):
    """Base for all normalized HTTP client errors.

    Attributes:
        status: HTTP status code, when a response was received.
        details: Upstream response body or transport detail, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, code=code, context={"status": status})
        self.status = status
        self.details = details

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, status={self.status!r}, code={self.code!r})"


class NetworkError(ApiError):
    """The request was sent but no response was received."""

    def __init__(self, message: str = "Network error - no response received", details: Any = None) -> None:
        super().__init__(message, code="NETWORK_ERROR", details=details)


class ApiTimeoutError(ApiError):
    """The request exceeded the client timeout."""

    def __init__(self, message: str = "Request timed out", details: Any = None) -> None:
        super().__init__(message, code="TIMEOUT", details=details)


class HttpStatusError(ApiError):
    """The server answered with a non-2xx status."""

    @classmethod
    def from_response(cls, response: httpx.Response) -> HttpStatusError:
        body = _read_body(response)
        message = None
        code = None
        if isinstance(body, dict):
            message = body.get("message")
            code = body.get("code")
        return cls(
            str(message or response.reason_phrase or "Request failed"),
            status=response.status_code,
            code=str(code) if code else f"HTTP_{response.status_code}",
            details=body,
        )

    @property
    def is_client_error(self) -> bool:
        return self.status is not None and 400 <= self.status < 500

    @property
    def is_server_error(self) -> bool:
        return self.status is not None and 500 <= self.status < 600


class InvalidResponseError(ApiError):
    """The upstream payload could not be interpreted."""

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, code="INVALID_RESPONSE", details=details)


def _read_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
