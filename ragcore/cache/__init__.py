from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Response caching subsystem.

- LRUCache: LRU + TTL eviction cache
- SemanticCache: exact key lookup with embedding-similarity fallback
- MultiLayerCache: ordered layers with promotion on hit
- SemanticSimilarity: memoised embeddings and text similarity queries
- ResponseCacheManager: request-keyed cache for generation results
"""

from ragcore.cache.base import Cache, CacheEntry, CacheStats
from ragcore.cache.factory import (
    DEFAULT_CACHE_OPTIONS,
    create_lru_cache,
    create_multi_layer_cache,
    create_semantic_cache,
)
from ragcore.cache.lru import LRUCache
from ragcore.cache.manager import ResponseCacheManager
from ragcore.cache.multilayer import MultiLayerCache
from ragcore.cache.semantic import SemanticCache
from ragcore.cache.similarity import SemanticSimilarity, SimilarityResult, normalize_text

__all__ = [
    "Cache",
    "CacheEntry",
    "CacheStats",
    "LRUCache",
    "SemanticCache",
    "MultiLayerCache",
    "SemanticSimilarity",
    "SimilarityResult",
    "normalize_text",
    "ResponseCacheManager",
    "DEFAULT_CACHE_OPTIONS",
    "create_lru_cache",
    "create_semantic_cache",
    "create_multi_layer_cache",
]
