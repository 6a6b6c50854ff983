from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Semantic cache: exact-key lookup with an embedding-similarity fallback.

Values live in an :class:`LRUCache`; a side table maps each key to the
embedding of the key text.  The side table is kept in step with the LRU
through an eviction listener and is additionally pruned while scanning.
Key embeddings go through a :class:`SemanticSimilarity` memo, so a
repeated lookup of the same text embeds once.
"""

import logging
from typing import Any

from ragcore.cache.base import Cache, CacheStats
from ragcore.cache.lru import LRUCache
from ragcore.cache.similarity import SemanticSimilarity
from ragcore.config.models import CacheOptions
from ragcore.exceptions import EmbeddingError
from ragcore.rag.embeddings import EmbeddingGenerator
from ragcore.rag.vectors import cosine_similarity

logger = logging.getLogger("ragcore.cache.semantic")


class SemanticCache(Cache):
    def __init__(
        self,
        generate_embedding: EmbeddingGenerator,
        options: CacheOptions | None = None,
    ) -> None:
        self.options = options or CacheOptions(enable_semantic_cache=True)
        self._similarity = SemanticSimilarity(generate_embedding, self.options, normalize=False)
        self._lru = LRUCache(self.options)
        self._embeddings: dict[str, list[float]] = {}
        self._lru.add_eviction_listener(self._forget)

    def _forget(self, key: str) -> None:
        self._embeddings.pop(key, None)

    async def _embed(self, text: str) -> list[float]:
        return await self._similarity.get_embedding(text)

    async def _find_similar_key(self, query_embedding: list[float]) -> str | None:
        """Return the key most similar to *query_embedding*, strictly above threshold.

        Among equal best similarities the first one seen wins.
        """
        best_key: str | None = None
        best_similarity = self.options.semantic_threshold

        for key, embedding in list(self._embeddings.items()):
            if not await self._lru.has(key):
                self._embeddings.pop(key, None)
                continue
            if len(embedding) != len(query_embedding):
                continue
            similarity = cosine_similarity(query_embedding, embedding)
            if similarity > best_similarity:
                best_similarity = similarity
                best_key = key

        if best_key is not None:
            logger.debug("Semantic cache match '%s' (similarity=%.4f)", best_key, best_similarity)
        return best_key

    # ── Cache API ───────────────────────────────────────────

    async def get(self, key: str) -> Any | None:
        value = await self._lru.get(key)
        if value is not None:
            return value

        if not self.options.enable_semantic_cache:
            return None

        similar_key = await self._find_similar_key(await self._embed(key))
        if similar_key is None:
            return None
        return await self._lru.get(similar_key)

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        embedding: list[float] | None = None
        if self.options.enable_semantic_cache:
            try:
                embedding = await self._embed(key)
            except EmbeddingError as e:
                logger.warning("Failed to generate embedding for cache key: %s", e)

        async with self._lru.lock:
            self._lru.set_locked(key, value, ttl, metadata)
            if embedding:
                self._embeddings[key] = embedding

    async def has(self, key: str) -> bool:
        if await self._lru.has(key):
            return True
        if not self.options.enable_semantic_cache:
            return False
        return await self._find_similar_key(await self._embed(key)) is not None

    async def delete(self, key: str) -> bool:
        self._embeddings.pop(key, None)
        return await self._lru.delete(key)

    async def clear(self) -> None:
        await self._lru.clear()
        await self._similarity.clear_cache()
        self._embeddings.clear()

    async def size(self) -> int:
        return await self._lru.size()

    async def stats(self) -> CacheStats:
        return await self._lru.stats()

    def embedding_count(self) -> int:
        return len(self._embeddings)

    async def close(self) -> None:
        await self._lru.close()
        await self._similarity.close()
        self._embeddings.clear()
