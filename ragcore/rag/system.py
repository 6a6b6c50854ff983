from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of RagCore, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""RAG orchestrator.

Ties together chunking, retrieval, re-ranking and context injection:

    query → search_by_text → score_results → build_context → inject_context

The enhanced prompt is written back into the request (last user message
or completion prompt) so callers can pass the same request object on to
generation.
"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from ragcore.config.models import RAGConfig
from ragcore.exceptions import ConfigValidationError
from ragcore.rag.chunker import DocumentChunker
from ragcore.rag.context import ContextWindowManager, RAGContext
from ragcore.rag.scorer import RelevanceScorer
from ragcore.rag.store import VectorDocument, VectorStore
from ragcore.schemas import ChatRequest, CompletionRequest

logger = logging.getLogger("ragcore.rag.system")


@dataclass
class RAGResultMetadata:
    documents_retrieved: int = 0
    context_length: int = 0  # tokens
    processing_time: float = 0.0  # ms


@dataclass
class RAGResult:
    original_prompt: str
    enhanced_prompt: str
    context: RAGContext = field(default_factory=RAGContext)
    metadata: RAGResultMetadata = field(default_factory=RAGResultMetadata)


def _passthrough(prompt: str) -> RAGResult:
    return RAGResult(original_prompt=prompt, enhanced_prompt=prompt)


class RAGSystem:
    """Retrieval-augmented prompt enhancement over a :class:`VectorStore`."""

    def __init__(self, vector_store: VectorStore, config: RAGConfig | None = None) -> None:
        self.vector_store = vector_store
        self._apply_config(config or RAGConfig())

    def _apply_config(self, config: RAGConfig) -> None:
        self._config = config
        self.chunker = DocumentChunker(config.chunk_size, config.chunk_overlap)
        self.scorer = RelevanceScorer(config.relevance_scoring)
        self.context_manager = ContextWindowManager(
            config.max_context_length, config.context_template,
        )

    # ── Ingestion ───────────────────────────────────────────

    async def add_documents(self, documents: list[VectorDocument]) -> None:
        chunks = self.chunker.chunk_documents(documents)
        await self.vector_store.add_batch([chunk.to_document() for chunk in chunks])
        logger.info("Ingested %d documents as %d chunks", len(documents), len(chunks))

    # ── Enhancement ─────────────────────────────────────────

    async def _retrieve(self, query: str) -> tuple[str, RAGContext, float]:
        start = time.monotonic()
        results = await self.vector_store.search_by_text(
            query,
            limit=self._config.max_documents,
            threshold=self._config.similarity_threshold,
            include_metadata=self._config.include_metadata,
        )
        ranked = self.scorer.score_results(results, query)
        context = self.context_manager.build_context(ranked, query)
        enhanced = self.context_manager.inject_context(query, context)
        elapsed_ms = (time.monotonic() - start) * 1000
        logger.debug(
            "RAG retrieval: %d hits, %d in context, %d tokens, %.1fms",
            len(results), len(context.retrieved_documents), context.total_tokens, elapsed_ms,
        )
        return enhanced, context, elapsed_ms

    @staticmethod
    def _result(query: str, enhanced: str, context: RAGContext, elapsed_ms: float) -> RAGResult:
        return RAGResult(
            original_prompt=query,
            enhanced_prompt=enhanced,
            context=context,
            metadata=RAGResultMetadata(
                documents_retrieved=len(context.retrieved_documents),
                context_length=context.total_tokens,
                processing_time=elapsed_ms,
            ),
        )

    async def enhance_chat(self, request: ChatRequest) -> RAGResult:
        """Enhance the last message of *request* with retrieved context.

        The message is only rewritten when it is a user turn; the result
        is returned either way.
        """
        query = request.messages[-1].content if request.messages else ""
        if not self._config.enabled or not query:
            return _passthrough(query)

        enhanced, context, elapsed_ms = await self._retrieve(query)

        last = request.messages[-1]
        if last.role == "user":
            last.content = enhanced

        return self._result(query, enhanced, context, elapsed_ms)

    async def enhance_completion(self, request: CompletionRequest) -> RAGResult:
        query = request.prompt
        if not self._config.enabled or not query:
            return _passthrough(query)

        enhanced, context, elapsed_ms = await self._retrieve(query)
        request.prompt = enhanced
        return self._result(query, enhanced, context, elapsed_ms)

    # ── Configuration & stats ───────────────────────────────

    def update_config(self, changes: RAGConfig | Mapping[str, Any]) -> None:
        """Merge *changes* over the current config and rebuild components."""
        if isinstance(changes, RAGConfig):
            merged = changes.model_dump()
        else:
            merged = {**self._config.model_dump(), **changes}
        try:
            config = RAGConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid RAG configuration: {e}") from e
        self._apply_config(config)
        logger.info("RAG configuration updated (enabled=%s)", config.enabled)

    def get_config(self) -> RAGConfig:
        return self._config.model_copy(deep=True)

    async def get_stats(self) -> dict[str, Any]:
        store_stats = await self.vector_store.stats()
        return {
            "total_documents": store_stats.total_documents,
            "average_chunk_size": self._config.chunk_size,
            "configured_max_context": self._config.max_context_length,
            "configured_threshold": self._config.similarity_threshold,
        }
