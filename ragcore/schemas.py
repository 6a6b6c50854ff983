from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of RagCore, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Request carriers shared by the RAG orchestrator and the response cache.

The orchestrator reads the last chat turn (or the completion prompt) as
the query and overwrites it in place with the enhanced text, so these
models are deliberately mutable.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from ragcore.time_utils import now_ms


# ── Generation requests ───────────────────────────────────


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant", "tool"] = "user"
    content: str = ""


class _SamplingOptions(BaseModel):
    provider: str | None = None
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    frequency_penalty: float | None = None
    presence_penalty: float | None = None
    stop: list[str] | None = None


class ChatRequest(_SamplingOptions):
    messages: list[ChatMessage] = Field(default_factory=list)
    system_prompt: str | None = None


class CompletionRequest(_SamplingOptions):
    prompt: str = ""


class EmbeddingRequest(BaseModel):
    input: str | list[str] = ""
    provider: str | None = None
    model: str | None = None


# ── Cached responses ──────────────────────────────────────


class CachedResponseMetadata(BaseModel):
    provider: str
    model: str
    timestamp: int = Field(default_factory=now_ms)
    tokens: int | None = None
    cost: float | None = None
    cache_hit: bool = False


class CachedResponse(BaseModel):
    """A generation result stored by :class:`ResponseCacheManager`."""

    response: Any
    metadata: CachedResponseMetadata
