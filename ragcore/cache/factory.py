from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Construction helpers for configured cache instances.

Options are :class:`CacheOptions` field names; unspecified fields take
the defaults in ``DEFAULT_CACHE_OPTIONS``.
"""

from typing import Any

from ragcore.cache.base import Cache
from ragcore.cache.lru import LRUCache
from ragcore.cache.multilayer import MultiLayerCache
from ragcore.cache.semantic import SemanticCache
from ragcore.config.models import CacheOptions
from ragcore.rag.embeddings import EmbeddingGenerator

DEFAULT_CACHE_OPTIONS = CacheOptions()


def _options(overrides: dict[str, Any], **defaults: Any) -> CacheOptions:
    return CacheOptions.model_validate(
        {**DEFAULT_CACHE_OPTIONS.model_dump(), **defaults, **overrides}
    )


def create_lru_cache(**options: Any) -> LRUCache:
    return LRUCache(_options(options))


def create_semantic_cache(generate_embedding: EmbeddingGenerator, **options: Any) -> SemanticCache:
    """Semantic caches default to ``enable_semantic_cache=True``."""
    return SemanticCache(generate_embedding, _options(options, enable_semantic_cache=True))


def create_multi_layer_cache(layers: list[Cache]) -> MultiLayerCache:
    return MultiLayerCache(layers)
