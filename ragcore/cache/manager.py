from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of RagCore, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Response cache for generation results.

Requests are reduced to a normalised string key::

    <prompt>|provider:<p>|model:<m>|temp:<t>|tokens:<n>|system:<s>|opts:<k:v,...>

Chat prompts serialise each message as ``role:content`` joined by ``|``.
Which optional parts participate is controlled by
:class:`KeyGenerationConfig`.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ragcore.cache.base import Cache, CacheStats
from ragcore.cache.factory import (
    create_lru_cache,
    create_multi_layer_cache,
    create_semantic_cache,
)
from ragcore.config.models import ResponseCacheConfig
from ragcore.exceptions import ConfigValidationError
from ragcore.rag.embeddings import EmbeddingGenerator
from ragcore.schemas import (
    CachedResponse,
    CachedResponseMetadata,
    ChatMessage,
    ChatRequest,
    CompletionRequest,
    EmbeddingRequest,
)
from ragcore.time_utils import now_ms

logger = logging.getLogger("ragcore.cache.manager")

MEMORY_CLEANUP_INTERVAL_MS = 300_000
SEMANTIC_CLEANUP_INTERVAL_MS = 600_000
EMBEDDING_TTL_MULTIPLIER = 2

_WHITESPACE = re.compile(r"\s+")


class ResponseCacheManager:
    """Caches chat, completion and embedding responses by request content."""

    def __init__(
        self,
        config: ResponseCacheConfig | None = None,
        generate_embedding: EmbeddingGenerator | None = None,
    ) -> None:
        self.config = config or ResponseCacheConfig()
        self._generate_embedding = generate_embedding
        self._cache = self._create_cache()

    # ── Cache construction ──────────────────────────────────

    def _create_cache(self) -> Cache:
        layers_config = self.config.layers
        layers: list[Cache] = []

        if layers_config.memory.enabled:
            layers.append(create_lru_cache(
                max_size=layers_config.memory.max_size,
                default_ttl=layers_config.memory.ttl,
                enable_semantic_cache=False,
                cleanup_interval=MEMORY_CLEANUP_INTERVAL_MS,
            ))

        if layers_config.semantic.enabled:
            if self._generate_embedding is None:
                logger.warning("Semantic cache layer enabled without an embedding generator; skipping")
            else:
                layers.append(create_semantic_cache(
                    self._generate_embedding,
                    max_size=layers_config.semantic.max_size,
                    default_ttl=layers_config.semantic.ttl,
                    semantic_threshold=layers_config.semantic.threshold,
                    cleanup_interval=SEMANTIC_CLEANUP_INTERVAL_MS,
                ))

        if not layers:
            return create_lru_cache()
        if len(layers) == 1:
            return layers[0]
        return create_multi_layer_cache(layers)

    @property
    def cache(self) -> Cache:
        return self._cache

    # ── Key generation ──────────────────────────────────────

    def normalize_text(self, text: str) -> str:
        if not self.config.key_generation.normalize_whitespace:
            return text
        return _WHITESPACE.sub(" ", text.strip()).lower()

    def _serialize_messages(self, messages: list[ChatMessage]) -> str:
        return "|".join(f"{m.role}:{self.normalize_text(m.content)}" for m in messages)

    def _build_key(
        self,
        prompt: str,
        request: ChatRequest | CompletionRequest | EmbeddingRequest,
        *,
        system_prompt: str | None = None,
        sampling: bool = True,
    ) -> str:
        keygen = self.config.key_generation
        parts = [prompt]

        if keygen.include_provider and request.provider:
            parts.append(f"provider:{request.provider}")
        if keygen.include_model and request.model:
            parts.append(f"model:{request.model}")

        if sampling:
            if keygen.include_temperature and request.temperature is not None:
                parts.append(f"temp:{request.temperature}")
            if keygen.include_max_tokens and request.max_tokens is not None:
                parts.append(f"tokens:{request.max_tokens}")
            if system_prompt:
                parts.append(f"system:{self.normalize_text(system_prompt)}")

            options = {
                "top_p": request.top_p,
                "frequency_penalty": request.frequency_penalty,
                "presence_penalty": request.presence_penalty,
                "stop": ",".join(request.stop) if request.stop is not None else None,
            }
            rendered = sorted(f"{k}:{v}" for k, v in options.items() if v is not None)
            if rendered:
                parts.append(f"opts:{','.join(rendered)}")

        return "|".join(parts)

    def chat_key(self, request: ChatRequest) -> str:
        return self._build_key(
            self._serialize_messages(request.messages),
            request,
            system_prompt=request.system_prompt,
        )

    def completion_key(self, request: CompletionRequest) -> str:
        return self._build_key(self.normalize_text(request.prompt), request)

    def embedding_key(self, request: EmbeddingRequest) -> str:
        if isinstance(request.input, list):
            prompt = "|".join(self.normalize_text(text) for text in request.input)
        else:
            prompt = self.normalize_text(request.input)
        return self._build_key(prompt, request, sampling=False)

    # ── Get / set ───────────────────────────────────────────

    def _ttl(self) -> int:
        layers = self.config.layers
        return layers.memory.ttl if layers.memory.enabled else layers.semantic.ttl

    async def _lookup(self, key: str) -> CachedResponse | None:
        if not self.config.enabled:
            return None
        cached: CachedResponse | None = await self._cache.get(key)
        if cached is None:
            logger.debug("Response cache miss")
            return None
        logger.debug("Response cache hit (%s/%s)", cached.metadata.provider, cached.metadata.model)
        return cached.model_copy(update={
            "metadata": cached.metadata.model_copy(
                update={"cache_hit": True, "timestamp": now_ms()},
            ),
        })

    async def _store(
        self,
        key: str,
        response: Any,
        metadata: Mapping[str, Any],
        ttl: int,
    ) -> None:
        if not self.config.enabled:
            return
        entry_metadata = CachedResponseMetadata(**{**metadata, "cache_hit": False, "timestamp": now_ms()})
        await self._cache.set(
            key,
            CachedResponse(response=response, metadata=entry_metadata),
            ttl,
            {
                "tokens": entry_metadata.tokens,
                "cost": entry_metadata.cost,
                "model": entry_metadata.model,
                "provider": entry_metadata.provider,
            },
        )

    async def get_chat_response(self, request: ChatRequest) -> CachedResponse | None:
        return await self._lookup(self.chat_key(request))

    async def set_chat_response(
        self,
        request: ChatRequest,
        response: Any,
        metadata: Mapping[str, Any],
    ) -> None:
        """Cache *response*; *metadata* needs ``provider`` and ``model``."""
        await self._store(self.chat_key(request), response, metadata, self._ttl())

    async def get_completion_response(self, request: CompletionRequest) -> CachedResponse | None:
        return await self._lookup(self.completion_key(request))

    async def set_completion_response(
        self,
        request: CompletionRequest,
        response: Any,
        metadata: Mapping[str, Any],
    ) -> None:
        await self._store(self.completion_key(request), response, metadata, self._ttl())

    async def get_embedding_response(self, request: EmbeddingRequest) -> CachedResponse | None:
        return await self._lookup(self.embedding_key(request))

    async def set_embedding_response(
        self,
        request: EmbeddingRequest,
        response: Any,
        metadata: Mapping[str, Any],
    ) -> None:
        await self._store(
            self.embedding_key(request),
            response,
            metadata,
            self._ttl() * EMBEDDING_TTL_MULTIPLIER,
        )

    # ── Passthrough ─────────────────────────────────────────

    async def has(self, key: str) -> bool:
        return await self._cache.has(key)

    async def delete(self, key: str) -> bool:
        return await self._cache.delete(key)

    async def clear(self) -> None:
        await self._cache.clear()

    async def size(self) -> int:
        return await self._cache.size()

    async def get_stats(self) -> CacheStats:
        return await self._cache.stats()

    async def update_config(self, changes: ResponseCacheConfig | Mapping[str, Any]) -> None:
        """Merge *changes* over the current config and rebuild the cache.

        Cached entries are dropped.
        """
        if isinstance(changes, ResponseCacheConfig):
            merged = changes.model_dump()
        else:
            merged = {**self.config.model_dump(), **changes}
        try:
            config = ResponseCacheConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid response cache configuration: {e}") from e

        await self._cache.close()
        self.config = config
        self._cache = self._create_cache()
        logger.info("Response cache rebuilt (enabled=%s)", config.enabled)

    async def close(self) -> None:
        await self._cache.close()
