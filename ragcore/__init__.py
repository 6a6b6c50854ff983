# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""RagCore: retrieval-augmented prompt enhancement and semantic response caching."""

from __future__ import annotations

__version__ = "0.1.0"

from ragcore.cache import (
    LRUCache,
    MultiLayerCache,
    ResponseCacheManager,
    SemanticCache,
)
from ragcore.config import CacheOptions, RAGConfig, RagCoreConfig, load_config
from ragcore.exceptions import (
    DocumentNotFoundError,
    EmbeddingError,
    RagCoreError,
    VectorValidationError,
)
from ragcore.rag import (
    MemoryVectorStore,
    RAGSystem,
    VectorDocument,
    VectorSearchResult,
)

__all__ = [
    "__version__",
    "RAGSystem",
    "MemoryVectorStore",
    "VectorDocument",
    "VectorSearchResult",
    "LRUCache",
    "SemanticCache",
    "MultiLayerCache",
    "ResponseCacheManager",
    "RAGConfig",
    "CacheOptions",
    "RagCoreConfig",
    "load_config",
    "RagCoreError",
    "VectorValidationError",
    "DocumentNotFoundError",
    "EmbeddingError",
]
