"""Unit tests for ragcore/cache/similarity.py: memoised embeddings."""
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import pytest

from ragcore.cache.similarity import SemanticSimilarity, normalize_text
from ragcore.config.models import CacheOptions
from ragcore.exceptions import EmbeddingError
from tests.helpers.embeddings import FailingEmbedding, KeywordEmbedding, TableEmbedding

TEXTS = [
    "machine learning algorithms",
    "deep neural networks",
    "Machine learning, algorithms!",
    "natural language processing",
]


# ── Normalisation ─────────────────────────────────────────


class TestNormalizeText:
    def test_trim_lower_collapse_strip_punctuation(self):
        assert normalize_text("  What's   Python?\n") == "whats python"

    def test_word_characters_kept(self):
        assert normalize_text("gpt_4 v2") == "gpt_4 v2"


# ── Embedding memo ────────────────────────────────────────


class TestGetEmbedding:
    @pytest.mark.asyncio
    async def test_memoised_on_normalised_text(self):
        embedder = KeywordEmbedding()
        similarity = SemanticSimilarity(embedder)
        first = await similarity.get_embedding("Machine  Learning!")
        second = await similarity.get_embedding("machine learning")
        assert first == second
        assert embedder.calls == ["machine learning"]

    @pytest.mark.asyncio
    async def test_use_cache_false_bypasses_memo(self):
        embedder = KeywordEmbedding()
        similarity = SemanticSimilarity(embedder)
        await similarity.get_embedding("data", use_cache=False)
        await similarity.get_embedding("data", use_cache=False)
        assert embedder.calls == ["data", "data"]
        assert (await similarity.get_cache_stats()).size == 0

    @pytest.mark.asyncio
    async def test_raw_text_when_not_normalising(self):
        embedder = TableEmbedding({"What?": [1.0, 0.0, 0.0]})
        similarity = SemanticSimilarity(embedder, normalize=False)
        assert await similarity.get_embedding("What?") == [1.0, 0.0, 0.0]
        assert embedder.calls == ["What?"]

    @pytest.mark.asyncio
    async def test_memo_is_bounded(self):
        embedder = KeywordEmbedding()
        similarity = SemanticSimilarity(embedder, CacheOptions(max_size=2))
        for text in ("data", "deep", "neural"):
            await similarity.get_embedding(text)
        await similarity.get_embedding("data")
        assert embedder.calls == ["data", "deep", "neural", "data"]
        stats = await similarity.get_cache_stats()
        assert stats.size == 2
        assert stats.evictions == 2

    @pytest.mark.asyncio
    async def test_failure_wrapped_and_not_memoised(self):
        embedder = FailingEmbedding("offline")
        similarity = SemanticSimilarity(embedder)
        for _ in range(2):
            with pytest.raises(EmbeddingError, match="offline"):
                await similarity.get_embedding("text")
        assert embedder.calls == 2

    @pytest.mark.asyncio
    async def test_clear_cache(self):
        embedder = KeywordEmbedding()
        similarity = SemanticSimilarity(embedder)
        await similarity.get_embedding("data")
        await similarity.clear_cache()
        await similarity.get_embedding("data")
        assert embedder.calls == ["data", "data"]

    @pytest.mark.asyncio
    async def test_hit_rate_tracked(self):
        similarity = SemanticSimilarity(KeywordEmbedding())
        await similarity.get_embedding("data")
        await similarity.get_embedding("data")
        stats = await similarity.get_cache_stats()
        assert stats.hits == 1
        assert stats.misses == 1
        assert stats.hit_rate == 0.5
        await similarity.close()


# ── Similarity queries ────────────────────────────────────


class TestFindSimilar:
    @pytest.mark.asyncio
    async def test_ranked_and_thresholded(self):
        similarity = SemanticSimilarity(KeywordEmbedding())
        results = await similarity.find_similar("machine learning", TEXTS, threshold=0.5)
        assert [r.index for r in results] == [0, 2]
        assert results[0].text == TEXTS[0]
        assert results[0].similarity == pytest.approx(results[1].similarity)
        assert results[0].similarity == pytest.approx(2 / (2 ** 0.5 * 3 ** 0.5))

    @pytest.mark.asyncio
    async def test_max_results(self):
        similarity = SemanticSimilarity(KeywordEmbedding())
        results = await similarity.find_similar(
            "machine learning", TEXTS, threshold=0.0, max_results=1,
        )
        assert len(results) == 1

    @pytest.mark.asyncio
    async def test_duplicate_texts_embedded_once(self):
        embedder = KeywordEmbedding()
        similarity = SemanticSimilarity(embedder)
        await similarity.find_similar("data", ["data", "deep"])
        await similarity.find_similar("data", ["data", "deep"])
        assert sorted(embedder.calls) == ["data", "deep"]


class TestAreSimilar:
    @pytest.mark.asyncio
    async def test_similar_and_dissimilar(self):
        similarity = SemanticSimilarity(KeywordEmbedding())
        similar, score = await similarity.are_similar(TEXTS[0], TEXTS[2])
        assert similar is True
        assert score == pytest.approx(1.0)
        similar, score = await similarity.are_similar(TEXTS[0], TEXTS[1])
        assert similar is False
        assert score == 0.0


class TestClusterTexts:
    @pytest.mark.asyncio
    async def test_greedy_clusters(self):
        similarity = SemanticSimilarity(KeywordEmbedding())
        clusters = await similarity.cluster_texts(TEXTS, threshold=0.9)
        assert clusters == [[TEXTS[0], TEXTS[2]], [TEXTS[1]], [TEXTS[3]]]

    @pytest.mark.asyncio
    async def test_empty(self):
        assert await SemanticSimilarity(KeywordEmbedding()).cluster_texts([]) == []


class TestBatchSimilarity:
    @pytest.mark.asyncio
    async def test_matrix_shape(self):
        similarity = SemanticSimilarity(KeywordEmbedding())
        matrix = await similarity.batch_similarity(TEXTS[:2], TEXTS)
        assert len(matrix) == 2
        assert all(len(row) == 4 for row in matrix)
        assert matrix[0][2] == pytest.approx(1.0)
