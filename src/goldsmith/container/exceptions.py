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
"""Container exceptions: fatal errors for a single resolution.

The container stays usable for unrelated tokens after any of these.
"""

from __future__ import annotations

from typing import Any

from goldsmith.container.types import token_name
from goldsmith.kernel.exceptions import InfrastructureException


class ServiceResolutionError(InfrastructureException):
    """A service could not be produced."""


class ServiceNotRegisteredError(ServiceResolutionError):
    """No descriptor (and no injectable metadata) exists for the token."""

    def __init__(
        self,
        token: Any,
        *,
        required_by: str | None = None,
        parameter: str | None = None,
        suggestions: list[str] | None = None,
    ) -> None:
        self.token = token
        self.required_by = required_by
        self.parameter = parameter
        self.suggestions = suggestions or []

        headline = f"Service not registered: {token_name(token)}"
        lines = [headline]

        if required_by or parameter:
            lines.append("")
            if required_by:
                lines.append(f"  Required by: {required_by}")
            if parameter:
                lines.append(f"    Parameter: {parameter}")

        lines.append("")
        lines.append("  Suggestions:")
        lines.append("    - Register the token with register_singleton/register_transient/register_scoped")
        lines.append("    - Or decorate the class with @injectable so it registers on first resolve")

        if self.suggestions:
            lines.append("")
            lines.append(f"  Similar registered tokens: {', '.join(self.suggestions)}")

        super().__init__("\n".join(lines), code="SERVICE_NOT_REGISTERED", context={"token": token_name(token)})


class CircularDependencyError(ServiceResolutionError):
    """A token transitively depends on itself.

    ``chain`` holds the tokens under construction, in resolution order.
    """

    def __init__(self, *, chain: list[Any], current: Any) -> None:
        self.chain = chain
        self.current = current

        names = [token_name(t) for t in chain]
        names.append(token_name(current))
        headline = f"Circular dependency: {' -> '.join(names)}"

        super().__init__(
            f"{headline}\n\n  Suggestion: Break the cycle with a factory that resolves lazily",
            code="CIRCULAR_DEPENDENCY",
            context={"chain": names},
        )


class InvalidDescriptorError(ServiceResolutionError):
    """A descriptor provides neither an instance, a factory nor a constructor."""

    def __init__(self, token: Any, reason: str = "") -> None:
        self.token = token
        detail = reason or "No factory, constructor, or instance provided"
        super().__init__(f"{detail} for {token_name(token)}", code="INVALID_DESCRIPTOR")


class ScopeError(ServiceResolutionError):
    """A scope was used after it had been disposed."""
