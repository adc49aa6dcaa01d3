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
"""Goldsmith Kernel: foundation layer with zero external dependencies."""

from goldsmith.kernel.exceptions import (
    BusinessException,
    CircuitOpenError,
    ExternalServiceException,
    GoldsmithException,
    InfrastructureException,
    PriceUnavailableException,
)
from goldsmith.kernel.lifecycle import Disposable
from goldsmith.kernel.types import Clock, utc_now

__all__ = [
    # Lifecycle
    "Disposable",
    # Time
    "Clock",
    "utc_now",
    # Base
    "GoldsmithException",
    # Business
    "BusinessException",
    "PriceUnavailableException",
    # Infrastructure
    "InfrastructureException",
    "CircuitOpenError",
    # External Service
    "ExternalServiceException",
]
