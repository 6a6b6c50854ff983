"""Unit tests for ragcore/rag/system.py: RAG orchestrator."""
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock

import pytest

from ragcore.config.models import RAGConfig
from ragcore.exceptions import ConfigValidationError
from ragcore.rag.context import CONTEXT_PREAMBLE
from ragcore.rag.store import MemoryVectorStore, VectorDocument
from ragcore.rag.system import RAGSystem
from ragcore.schemas import ChatMessage, ChatRequest, CompletionRequest


def _system(keyword_embedding, **config) -> tuple[RAGSystem, MemoryVectorStore]:
    store = MemoryVectorStore(keyword_embedding)
    return RAGSystem(store, RAGConfig(**config)), store


# ── Ingestion ─────────────────────────────────────────────


class TestAddDocuments:
    @pytest.mark.asyncio
    async def test_small_documents_stored_as_single_chunks(self, keyword_embedding, sample_documents):
        rag, store = _system(keyword_embedding)
        await rag.add_documents(sample_documents)
        assert await store.size() == 3
        chunk = await store.get("doc1_chunk_0")
        assert chunk is not None
        assert chunk.embedding

    @pytest.mark.asyncio
    async def test_long_documents_chunked(self, keyword_embedding):
        rag, store = _system(keyword_embedding, chunk_size=100, chunk_overlap=20)
        await rag.add_documents([
            VectorDocument(id="long", content="This is a very long document. " * 50),
        ])
        assert await store.size() > 1
        docs = await store.get_all_documents()
        assert all(d.metadata["parent_document"] == "long" for d in docs)


# ── Enhancement ───────────────────────────────────────────


class TestEnhanceChat:
    @pytest.mark.asyncio
    async def test_machine_learning_scenario(self, keyword_embedding, sample_documents):
        rag, _ = _system(keyword_embedding, max_documents=3, similarity_threshold=0.5)
        await rag.add_documents(sample_documents)

        request = ChatRequest(messages=[ChatMessage(role="user", content="machine learning algorithms")])
        result = await rag.enhance_chat(request)

        assert result.original_prompt == "machine learning algorithms"
        assert result.metadata.documents_retrieved > 0
        scores = [r.similarity for r in result.context.retrieved_documents]
        assert scores == sorted(scores, reverse=True)
        assert result.context.retrieved_documents[0].document.id == "doc1_chunk_0"
        assert result.enhanced_prompt.startswith(CONTEXT_PREAMBLE)
        assert result.enhanced_prompt.endswith("machine learning algorithms")
        assert result.context.relevance_scores == scores
        assert request.messages[-1].content == result.enhanced_prompt
        assert result.metadata.context_length == result.context.total_tokens
        assert result.metadata.processing_time >= 0

    @pytest.mark.asyncio
    async def test_no_matches_leaves_prompt(self, keyword_embedding, sample_documents):
        rag, _ = _system(keyword_embedding)
        await rag.add_documents(sample_documents)
        request = ChatRequest(messages=[ChatMessage(content="best recipe for chocolate cake")])
        result = await rag.enhance_chat(request)
        assert result.metadata.documents_retrieved == 0
        assert result.enhanced_prompt == result.original_prompt
        assert request.messages[-1].content == "best recipe for chocolate cake"

    @pytest.mark.asyncio
    async def test_non_user_last_message_not_rewritten(self, keyword_embedding, sample_documents):
        rag, _ = _system(keyword_embedding, similarity_threshold=0.5)
        await rag.add_documents(sample_documents)
        request = ChatRequest(messages=[
            ChatMessage(role="assistant", content="machine learning algorithms"),
        ])
        result = await rag.enhance_chat(request)
        assert result.enhanced_prompt != result.original_prompt
        assert request.messages[-1].content == "machine learning algorithms"

    @pytest.mark.asyncio
    async def test_disabled_echoes(self, keyword_embedding, sample_documents):
        rag, store = _system(keyword_embedding, enabled=False)
        store.search_by_text = AsyncMock()
        request = ChatRequest(messages=[ChatMessage(content="What is machine learning?")])
        result = await rag.enhance_chat(request)
        assert result.original_prompt == result.enhanced_prompt == "What is machine learning?"
        assert result.context.retrieved_documents == []
        assert result.metadata.documents_retrieved == 0
        store.search_by_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_messages_short_circuit(self, keyword_embedding):
        rag, store = _system(keyword_embedding)
        store.search_by_text = AsyncMock()
        result = await rag.enhance_chat(ChatRequest(messages=[]))
        assert result.original_prompt == result.enhanced_prompt == ""
        store.search_by_text.assert_not_called()


class TestEnhanceCompletion:
    @pytest.mark.asyncio
    async def test_prompt_overwritten(self, keyword_embedding, sample_documents):
        rag, _ = _system(keyword_embedding, similarity_threshold=0.5)
        await rag.add_documents(sample_documents)
        request = CompletionRequest(prompt="machine learning algorithms")
        result = await rag.enhance_completion(request)
        assert request.prompt == result.enhanced_prompt
        assert CONTEXT_PREAMBLE in request.prompt
        assert result.original_prompt == "machine learning algorithms"

    @pytest.mark.asyncio
    async def test_date_metadata_in_context(self, keyword_embedding):
        rag, _ = _system(
            keyword_embedding,
            similarity_threshold=0.5,
            include_metadata=True,
            context_template="{metadata} {content}",
        )
        await rag.add_documents([
            VectorDocument(
                id="ml", content="Machine learning basics.", metadata={"published": date(2024, 5, 1)},
            ),
        ])
        result = await rag.enhance_completion(CompletionRequest(prompt="machine learning"))
        assert '{"published": "2024-05-01"} Machine learning basics.' in result.enhanced_prompt

    @pytest.mark.asyncio
    async def test_disabled_echoes(self, keyword_embedding):
        rag, _ = _system(keyword_embedding, enabled=False)
        request = CompletionRequest(prompt="anything")
        result = await rag.enhance_completion(request)
        assert result.enhanced_prompt == result.original_prompt == "anything"
        assert request.prompt == "anything"
        assert result.metadata.documents_retrieved == 0

    @pytest.mark.asyncio
    async def test_empty_prompt(self, keyword_embedding):
        rag, store = _system(keyword_embedding)
        store.search_by_text = AsyncMock()
        result = await rag.enhance_completion(CompletionRequest(prompt=""))
        assert result.enhanced_prompt == ""
        store.search_by_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_parameters_from_config(self, keyword_embedding):
        rag, store = _system(
            keyword_embedding, max_documents=2, similarity_threshold=0.3, include_metadata=True,
        )
        store.search_by_text = AsyncMock(return_value=[])
        await rag.enhance_completion(CompletionRequest(prompt="query"))
        store.search_by_text.assert_awaited_once_with(
            "query", limit=2, threshold=0.3, include_metadata=True,
        )


# ── Configuration & stats ─────────────────────────────────


class TestConfig:
    def test_defaults(self, keyword_embedding):
        rag, _ = _system(keyword_embedding)
        config = rag.get_config()
        assert config.max_context_length == 4000
        assert config.max_documents == 5
        assert config.similarity_threshold == 0.7
        assert config.context_template == "Document: {content}"
        assert config.relevance_scoring.weights.similarity == 0.7

    def test_get_config_is_a_copy(self, keyword_embedding):
        rag, _ = _system(keyword_embedding)
        config = rag.get_config()
        config.max_documents = 99
        config.relevance_scoring.weights.recency = 0.9
        assert rag.get_config().max_documents == 5
        assert rag.get_config().relevance_scoring.weights.recency == 0.2

    def test_update_config_partial(self, keyword_embedding):
        rag, _ = _system(keyword_embedding)
        rag.update_config({"chunk_size": 200, "chunk_overlap": 10, "max_context_length": 50})
        config = rag.get_config()
        assert config.chunk_size == 200
        assert config.max_documents == 5
        assert rag.chunker.chunk_size == 200
        assert rag.chunker.chunk_overlap == 10
        assert rag.context_manager.max_context_length == 50

    def test_update_config_rejects_invalid(self, keyword_embedding):
        rag, _ = _system(keyword_embedding)
        with pytest.raises(ConfigValidationError):
            rag.update_config({"chunk_overlap": 5000})
        assert rag.get_config().chunk_overlap == 200

    def test_update_config_with_model(self, keyword_embedding):
        rag, _ = _system(keyword_embedding)
        rag.update_config(RAGConfig(enabled=False))
        assert rag.get_config().enabled is False

    @pytest.mark.asyncio
    async def test_get_stats(self, keyword_embedding, sample_documents):
        rag, _ = _system(keyword_embedding)
        await rag.add_documents(sample_documents)
        stats = await rag.get_stats()
        assert stats == {
            "total_documents": 3,
            "average_chunk_size": 1000,
            "configured_max_context": 4000,
            "configured_threshold": 0.7,
        }
