from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Ordered cache layers with promotion on hit."""

import asyncio
import dataclasses
import logging
from typing import Any

from ragcore.cache.base import Cache, CacheStats

logger = logging.getLogger("ragcore.cache.multilayer")


class MultiLayerCache(Cache):
    """Probe layers in order; a hit in layer *i* is copied into layers 0..i-1.

    Hit/miss counters are this cache's own; size comes from the primary
    (first) layer, while evictions and memory are summed over all layers.
    """

    def __init__(self, layers: list[Cache]) -> None:
        self.layers = list(layers)
        self._stats = CacheStats()

    async def get(self, key: str) -> Any | None:
        for index, layer in enumerate(self.layers):
            value = await layer.get(key)
            if value is None:
                continue
            for upper in self.layers[:index]:
                await upper.set(key, value)
            if index:
                logger.debug("Promoted '%s' from cache layer %d", key, index)
            self._stats.record_hit()
            return value

        self._stats.record_miss()
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        await asyncio.gather(*(layer.set(key, value, ttl, metadata) for layer in self.layers))

    async def has(self, key: str) -> bool:
        for layer in self.layers:
            if await layer.has(key):
                return True
        return False

    async def delete(self, key: str) -> bool:
        results = await asyncio.gather(*(layer.delete(key) for layer in self.layers))
        return any(results)

    async def clear(self) -> None:
        await asyncio.gather(*(layer.clear() for layer in self.layers))
        self._stats = CacheStats()

    async def size(self) -> int:
        return await self.layers[0].size() if self.layers else 0

    async def stats(self) -> CacheStats:
        if self.layers:
            layer_stats = await asyncio.gather(*(layer.stats() for layer in self.layers))
            self._stats.size = layer_stats[0].size
            self._stats.evictions = sum(s.evictions for s in layer_stats)
            self._stats.memory_usage = sum(s.memory_usage for s in layer_stats)
        return dataclasses.replace(self._stats)

    async def close(self) -> None:
        await asyncio.gather(*(layer.close() for layer in self.layers))
