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
"""Time-based price cache that keeps expired entries for fallback."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from goldsmith.kernel.types import Clock, utc_now

V = TypeVar("V")


@dataclass(frozen=True)
class CacheStats:
    size: int
    ages: dict[str, timedelta] = field(default_factory=dict)


class PriceCache(Generic[V]):
    """In-memory cache with a freshness window.

    Unlike a TTL cache, entries are never evicted on expiry: an expired
    entry is only returned when the caller explicitly asks for it with
    ``include_expired=True``.
    """

    def __init__(self, ttl: timedelta, clock: Clock = utc_now) -> None:
        self._ttl = ttl
        self._clock = clock
        self._store: dict[str, tuple[V, datetime]] = {}

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def get(self, key: str, *, include_expired: bool = False) -> V | None:
        """Return the cached value, or None if missing (or expired, by default)."""
        entry = self._store.get(key)
        if entry is None:
            return None

        value, stored_at = entry
        if not include_expired and self._clock() - stored_at >= self._ttl:
            return None
        return value

    def put(self, key: str, value: V) -> None:
        self._store[key] = (value, self._clock())

    def clear(self) -> None:
        self._store.clear()

    def stats(self) -> CacheStats:
        now = self._clock()
        return CacheStats(
            size=len(self._store),
            ages={key: now - stored_at for key, (_, stored_at) in self._store.items()},
        )

    def __len__(self) -> int:
        return len(self._store)
