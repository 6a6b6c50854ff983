# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of RagCore, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Central configuration module for RagCore.

Defines Pydantic models for the unified config.json and provides
load / save helpers with a module-level cache keyed on file mtime.
Components never read this cache implicitly: callers load a config and
pass the relevant section to the constructor.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError, model_validator

from ragcore.exceptions import ConfigValidationError

logger = logging.getLogger("ragcore.config")

# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SystemConfig(BaseModel):
    log_level: str = "INFO"
    log_json: bool = True


class RelevanceWeights(BaseModel):
    """Weights for the re-ranking components (conventionally summing to 1)."""

    similarity: float = 0.7
    recency: float = 0.2
    metadata: float = 0.1


class RelevanceScoringConfig(BaseModel):
    enabled: bool = True
    weights: RelevanceWeights = RelevanceWeights()


class RAGConfig(BaseModel):
    """Configuration for retrieval, re-ranking and context assembly."""

    enabled: bool = True
    max_context_length: int = 4000  # token budget for the context block
    max_documents: int = 5
    similarity_threshold: float = 0.7
    context_template: str = "Document: {content}"
    include_metadata: bool = False
    chunk_size: int = 1000  # characters
    chunk_overlap: int = 200  # characters
    relevance_scoring: RelevanceScoringConfig = RelevanceScoringConfig()

    @model_validator(mode="after")
    def _validate_ranges(self) -> RAGConfig:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive (got {self.chunk_size})")
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be in "
                f"[0, chunk_size ({self.chunk_size}))"
            )
        if not -1.0 <= self.similarity_threshold <= 1.0:
            raise ValueError(
                f"similarity_threshold must be within [-1, 1] "
                f"(got {self.similarity_threshold})"
            )
        if self.max_documents <= 0 or self.max_context_length <= 0:
            raise ValueError("max_documents and max_context_length must be positive")
        return self


class CacheOptions(BaseModel):
    """Options for a single eviction / semantic cache.  Times are in ms."""

    max_size: int = 100
    default_ttl: int = 3_600_000  # 1 hour
    enable_semantic_cache: bool = False
    semantic_threshold: float = 0.95
    cleanup_interval: int = 300_000  # 5 minutes; <= 0 disables the background task

    @model_validator(mode="after")
    def _validate_ranges(self) -> CacheOptions:
        if self.max_size <= 0:
            raise ValueError(f"max_size must be positive (got {self.max_size})")
        if self.default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive (got {self.default_ttl})")
        if not -1.0 <= self.semantic_threshold <= 1.0:
            raise ValueError(
                f"semantic_threshold must be within [-1, 1] (got {self.semantic_threshold})"
            )
        return self


class MemoryLayerConfig(BaseModel):
    enabled: bool = True
    max_size: int = 100
    ttl: int = 3_600_000


class SemanticLayerConfig(BaseModel):
    enabled: bool = False
    threshold: float = 0.95
    max_size: int = 50
    ttl: int = 7_200_000


class CacheLayersConfig(BaseModel):
    memory: MemoryLayerConfig = MemoryLayerConfig()
    semantic: SemanticLayerConfig = SemanticLayerConfig()


class KeyGenerationConfig(BaseModel):
    """Which request fields participate in response cache keys."""

    include_model: bool = True
    include_provider: bool = True
    include_temperature: bool = True
    include_max_tokens: bool = False
    normalize_whitespace: bool = True


class ResponseCacheConfig(BaseModel):
    """Configuration for caching generation responses."""

    enabled: bool = True
    layers: CacheLayersConfig = CacheLayersConfig()
    key_generation: KeyGenerationConfig = KeyGenerationConfig()


class RagCoreConfig(BaseModel):
    version: int = 1
    system: SystemConfig = SystemConfig()
    rag: RAGConfig = RAGConfig()
    cache: CacheOptions = CacheOptions()
    response_cache: ResponseCacheConfig = ResponseCacheConfig()


# ---------------------------------------------------------------------------
# Singleton cache
# ---------------------------------------------------------------------------

_config: RagCoreConfig | None = None
_config_path: Path | None = None
_config_mtime: float = 0.0


def invalidate_cache() -> None:
    """Reset the module-level config cache."""
    global _config, _config_path, _config_mtime
    _config = None
    _config_path = None
    _config_mtime = 0.0


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def get_config_path(data_dir: Path | None = None) -> Path:
    """Return the path to config.json inside *data_dir*."""
    if data_dir is None:
        from ragcore.paths import get_data_dir

        data_dir = get_data_dir()
    return data_dir / "config.json"


# ---------------------------------------------------------------------------
# Load / Save
# ---------------------------------------------------------------------------


def load_config(path: Path | None = None) -> RagCoreConfig:
    """Load configuration from disk, returning the cached instance when possible.

    When the file does not exist the default configuration is returned.
    The cache is invalidated automatically when the file's mtime changes.

    Raises:
        json.JSONDecodeError: The file is not valid JSON.
        ConfigValidationError: The JSON does not match the schema.
    """
    global _config, _config_path, _config_mtime

    if path is None:
        path = get_config_path()

    if _config is not None and _config_path == path:
        try:
            disk_mtime = path.stat().st_mtime
        except OSError:
            disk_mtime = 0.0
        if disk_mtime == _config_mtime:
            return _config
        logger.debug("Config file changed on disk (mtime %.3f → %.3f); reloading", _config_mtime, disk_mtime)

    if path.is_file():
        logger.debug("Loading config from %s", path)
        try:
            data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
            config = RagCoreConfig.model_validate(data)
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse %s: %s", path, exc)
            raise
        except ValidationError as exc:
            logger.error("Invalid config in %s: %s", path, exc)
            raise ConfigValidationError(str(exc)) from exc
    else:
        logger.info("Config file not found at %s; using defaults", path)
        config = RagCoreConfig()

    _config = config
    _config_path = path
    try:
        _config_mtime = path.stat().st_mtime
    except OSError:
        _config_mtime = 0.0
    return config


def save_config(config: RagCoreConfig, path: Path | None = None) -> None:
    """Persist *config* to disk as pretty-printed JSON and refresh the cache."""
    global _config, _config_path, _config_mtime

    if path is None:
        path = get_config_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    payload = config.model_dump(mode="json")
    text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
    path.write_text(text, encoding="utf-8")

    logger.debug("Config saved to %s", path)

    _config = config
    _config_path = path
    try:
        _config_mtime = path.stat().st_mtime
    except OSError:
        _config_mtime = 0.0
