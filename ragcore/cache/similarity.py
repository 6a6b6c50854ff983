from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Memoised embeddings and text-level similarity helpers.

:class:`SemanticSimilarity` wraps an embedding generator with a bounded
LRU memo keyed on (optionally normalised) text, so repeated lookups of
the same text embed once.  The semantic cache routes all of its
embedding calls through one.
"""

import asyncio
import logging
import re
from dataclasses import dataclass

from ragcore.cache.base import CacheStats
from ragcore.cache.lru import LRUCache
from ragcore.config.models import CacheOptions
from ragcore.exceptions import EmbeddingError
from ragcore.rag.embeddings import EmbeddingGenerator
from ragcore.rag.vectors import cosine_similarity

logger = logging.getLogger("ragcore.cache.similarity")

DEFAULT_MEMO_SIZE = 1000

_WHITESPACE = re.compile(r"\s+")
_PUNCTUATION = re.compile(r"[^\w\s]")


@dataclass
class SimilarityResult:
    similarity: float
    index: int  # position in the candidate list
    text: str
    embedding: list[float]


def normalize_text(text: str) -> str:
    """Trim, lowercase, collapse whitespace and drop punctuation."""
    return _PUNCTUATION.sub("", _WHITESPACE.sub(" ", text.strip().lower()))


class SemanticSimilarity:
    """Embedding generator with a bounded memo plus similarity queries.

    Args:
        generate_embedding: Underlying ``async (text) -> list[float]``.
        memo_options: Size / TTL of the memo; no background cleanup is run.
        normalize: Embed :func:`normalize_text` of the input instead of the
            raw text (the memo is keyed the same way).
    """

    def __init__(
        self,
        generate_embedding: EmbeddingGenerator,
        memo_options: CacheOptions | None = None,
        *,
        normalize: bool = True,
    ) -> None:
        self._generate_embedding = generate_embedding
        self.normalize = normalize
        options = memo_options or CacheOptions(max_size=DEFAULT_MEMO_SIZE)
        self._memo = LRUCache(options.model_copy(update={"cleanup_interval": 0}))

    async def get_embedding(self, text: str, use_cache: bool = True) -> list[float]:
        key = normalize_text(text) if self.normalize else text

        if use_cache:
            cached = await self._memo.get(key)
            if cached is not None:
                return cached

        try:
            embedding = list(await self._generate_embedding(key))
        except Exception as e:
            raise EmbeddingError(f"Failed to embed text: {e}") from e

        if use_cache:
            await self._memo.set(key, embedding)
        return embedding

    async def _embed_all(self, texts: list[str], use_cache: bool) -> list[list[float]]:
        return list(await asyncio.gather(*(self.get_embedding(t, use_cache) for t in texts)))

    async def find_similar(
        self,
        query: str,
        candidates: list[str],
        *,
        threshold: float = 0.7,
        max_results: int = 10,
        use_cache: bool = True,
    ) -> list[SimilarityResult]:
        """Candidates with similarity >= *threshold*, best first."""
        query_embedding = await self.get_embedding(query, use_cache)
        embeddings = await self._embed_all(candidates, use_cache)

        results = []
        for index, (text, embedding) in enumerate(zip(candidates, embeddings)):
            similarity = cosine_similarity(query_embedding, embedding)
            if similarity >= threshold:
                results.append(SimilarityResult(similarity, index, text, embedding))

        results.sort(key=lambda r: r.similarity, reverse=True)
        return results[:max_results]

    async def are_similar(
        self,
        a: str,
        b: str,
        threshold: float = 0.8,
        use_cache: bool = True,
    ) -> tuple[bool, float]:
        first, second = await self._embed_all([a, b], use_cache)
        similarity = cosine_similarity(first, second)
        return similarity >= threshold, similarity

    async def cluster_texts(
        self,
        texts: list[str],
        threshold: float = 0.8,
        use_cache: bool = True,
    ) -> list[list[str]]:
        """Greedy clustering: each unassigned text seeds a cluster and
        absorbs every later unassigned text within *threshold* of it."""
        embeddings = await self._embed_all(texts, use_cache)
        assigned: set[int] = set()
        clusters: list[list[str]] = []

        for i, seed in enumerate(embeddings):
            if i in assigned:
                continue
            assigned.add(i)
            cluster = [texts[i]]
            for j in range(i + 1, len(texts)):
                if j not in assigned and cosine_similarity(seed, embeddings[j]) >= threshold:
                    assigned.add(j)
                    cluster.append(texts[j])
            clusters.append(cluster)

        return clusters

    async def batch_similarity(self, left: list[str], right: list[str]) -> list[list[float]]:
        """Pairwise similarity matrix, ``rows = left``."""
        left_embeddings = await self._embed_all(left, True)
        right_embeddings = await self._embed_all(right, True)
        return [
            [cosine_similarity(a, b) for b in right_embeddings]
            for a in left_embeddings
        ]

    # ── Memo management ─────────────────────────────────────

    async def clear_cache(self) -> None:
        await self._memo.clear()

    async def get_cache_stats(self) -> CacheStats:
        return await self._memo.stats()

    async def close(self) -> None:
        await self._memo.close()
