# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from ragcore.config.models import (
    CacheLayersConfig,
    CacheOptions,
    KeyGenerationConfig,
    MemoryLayerConfig,
    RAGConfig,
    RagCoreConfig,
    RelevanceScoringConfig,
    RelevanceWeights,
    ResponseCacheConfig,
    SemanticLayerConfig,
    SystemConfig,
    get_config_path,
    invalidate_cache,
    load_config,
    save_config,
)
