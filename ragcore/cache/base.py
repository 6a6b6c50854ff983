from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Cache interface and shared bookkeeping types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from ragcore.time_utils import now_ms


@dataclass
class CacheEntry:
    key: str
    value: Any
    timestamp: int  # insertion, epoch ms
    ttl: int  # ms
    access_count: int = 1
    last_accessed: int = 0
    metadata: dict[str, Any] | None = None  # tokens / cost / model / provider / embedding

    def is_expired(self, now: int | None = None) -> bool:
        if now is None:
            now = now_ms()
        return now - self.timestamp > self.ttl


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    size: int = 0
    hit_rate: float = 0.0
    memory_usage: int = 0  # approximate bytes

    def record_hit(self) -> None:
        self.hits += 1
        self._update_hit_rate()

    def record_miss(self) -> None:
        self.misses += 1
        self._update_hit_rate()

    def _update_hit_rate(self) -> None:
        total = self.hits + self.misses
        self.hit_rate = self.hits / total if total else 0.0


class Cache(ABC):
    """Async key/value cache.  ``get`` returns None for absent keys."""

    @abstractmethod
    async def get(self, key: str) -> Any | None: ...

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None: ...

    @abstractmethod
    async def has(self, key: str) -> bool: ...

    @abstractmethod
    async def delete(self, key: str) -> bool: ...

    @abstractmethod
    async def clear(self) -> None: ...

    @abstractmethod
    async def size(self) -> int: ...

    @abstractmethod
    async def stats(self) -> CacheStats: ...

    @abstractmethod
    async def close(self) -> None:
        """Stop background work and release entries."""
