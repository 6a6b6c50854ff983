from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""LRU + TTL eviction cache.

Entries live in one ``OrderedDict`` whose order *is* the recency order:
the first item is the least recently used.  Expired entries are logically
absent immediately and physically removed on access, before eviction, or
by the periodic cleanup task.
"""

import asyncio
import dataclasses
import json
import logging
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from ragcore.cache.base import Cache, CacheEntry, CacheStats
from ragcore.config.models import CacheOptions
from ragcore.time_utils import now_ms

logger = logging.getLogger("ragcore.cache.lru")

EvictionListener = Callable[[str], None]


class LRUCache(Cache):
    def __init__(self, options: CacheOptions | None = None) -> None:
        self.options = options or CacheOptions()
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._stats = CacheStats()
        self._lock = asyncio.Lock()
        self._listeners: list[EvictionListener] = []
        self._cleanup_task: asyncio.Task | None = None
        self._closed = False

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    def add_eviction_listener(self, listener: EvictionListener) -> None:
        """Register *listener* to be called with each key that leaves the cache.

        Fires on delete, LRU eviction, expiry and clear; not when a key is
        overwritten by ``set``.  Listeners run synchronously under the cache
        lock and must not call back into the cache.
        """
        self._listeners.append(listener)

    # ── Cache API ───────────────────────────────────────────

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            return self.get_locked(key)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        async with self._lock:
            self.set_locked(key, value, ttl, metadata)

    async def has(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(now_ms())

    async def delete(self, key: str) -> bool:
        async with self._lock:
            if self._entries.pop(key, None) is None:
                return False
            self._notify(key)
        return True

    async def clear(self) -> None:
        async with self._lock:
            keys = list(self._entries)
            self._entries.clear()
            self._stats.size = 0
            self._stats.evictions = 0
            for key in keys:
                self._notify(key)

    async def size(self) -> int:
        now = now_ms()
        return sum(1 for entry in self._entries.values() if not entry.is_expired(now))

    async def stats(self) -> CacheStats:
        self._stats.size = await self.size()
        self._stats.memory_usage = self._estimate_memory()
        return dataclasses.replace(self._stats)

    async def purge_expired(self) -> int:
        """Physically remove expired entries; return how many were removed."""
        async with self._lock:
            return self._purge_expired_locked()

    async def close(self) -> None:
        self._closed = True
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        await self.clear()

    # ── Locked primitives (caller holds ``self.lock``) ───────

    def get_locked(self, key: str) -> Any | None:
        self._ensure_cleanup_task()
        entry = self._entries.get(key)
        if entry is None:
            self._stats.record_miss()
            return None

        now = now_ms()
        if entry.is_expired(now):
            del self._entries[key]
            self._notify(key)
            self._stats.record_miss()
            return None

        entry.access_count += 1
        entry.last_accessed = now
        self._entries.move_to_end(key)
        self._stats.record_hit()
        return entry.value

    def set_locked(
        self,
        key: str,
        value: Any,
        ttl: int | None,
        metadata: dict[str, Any] | None,
    ) -> None:
        self._ensure_cleanup_task()
        now = now_ms()
        entry = CacheEntry(
            key=key,
            value=value,
            timestamp=now,
            ttl=ttl if ttl and ttl > 0 else self.options.default_ttl,
            last_accessed=now,
            metadata=metadata,
        )

        if key in self._entries:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            return

        if len(self._entries) >= self.options.max_size:
            self._purge_expired_locked()
            if len(self._entries) >= self.options.max_size:
                lru_key, _ = self._entries.popitem(last=False)
                self._stats.evictions += 1
                self._notify(lru_key)
                logger.debug("Evicted LRU cache entry '%s'", lru_key)

        self._entries[key] = entry
        self._stats.size = len(self._entries)

    def _purge_expired_locked(self) -> int:
        now = now_ms()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
            self._notify(key)
        self._stats.size = len(self._entries)
        return len(expired)

    def _notify(self, key: str) -> None:
        for listener in self._listeners:
            listener(key)

    def _estimate_memory(self) -> int:
        # Serialized entry size as UTF-16
        return sum(
            len(json.dumps(dataclasses.asdict(entry), default=str)) * 2
            for entry in self._entries.values()
        )

    # ── Background cleanup ──────────────────────────────────

    def _ensure_cleanup_task(self) -> None:
        if self._closed or self._cleanup_task is not None:
            return
        if self.options.cleanup_interval <= 0:
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def _cleanup_loop(self) -> None:
        interval = self.options.cleanup_interval / 1000
        while not self._closed:
            try:
                await asyncio.sleep(interval)
                removed = await self.purge_expired()
                if removed:
                    logger.debug("Cache cleanup removed %d expired entries", removed)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error in cache cleanup loop: %s", e)
