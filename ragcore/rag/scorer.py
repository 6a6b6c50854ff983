from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Re-ranking of vector search results.

Final score = similarity * w_sim + recency * w_rec + metadata * w_meta
"""

import logging
import math

from ragcore.config.models import RelevanceScoringConfig
from ragcore.rag.store import VectorDocument, VectorSearchResult
from ragcore.time_utils import now_ms

logger = logging.getLogger("ragcore.rag.scorer")

# ── Constants ────────────────────────────────────────────────────

MAX_AGE_MS = 365 * 24 * 60 * 60 * 1000  # 1 year
NEUTRAL_SCORE = 0.5
METADATA_MATCH_BONUS = 0.2
METADATA_TYPE_BONUS = 0.1
_BONUS_TYPES = frozenset({"definition", "reference"})


class RelevanceScorer:
    """Combine similarity, recency and metadata match into one score."""

    def __init__(self, config: RelevanceScoringConfig | None = None) -> None:
        self.config = config or RelevanceScoringConfig()

    def score_results(
        self,
        results: list[VectorSearchResult],
        query: str,
    ) -> list[VectorSearchResult]:
        if not self.config.enabled:
            return results

        weights = self.config.weights
        scored: list[VectorSearchResult] = []
        for result in results:
            scores = {
                "similarity": result.similarity,
                "recency": self.recency_score(result.document),
                "metadata": self.metadata_score(result.document, query),
            }
            weighted = (
                scores["similarity"] * weights.similarity
                + scores["recency"] * weights.recency
                + scores["metadata"] * weights.metadata
            )
            scored.append(
                VectorSearchResult(
                    document=result.document,
                    similarity=weighted,
                    distance=result.distance,
                    metadata={
                        **(result.document.metadata or {}),
                        "relevance_scores": scores,
                        "weighted_score": weighted,
                    },
                )
            )

        scored.sort(key=lambda r: r.similarity, reverse=True)
        logger.debug("Re-ranked %d results for query (%d chars)", len(scored), len(query))
        return scored

    @staticmethod
    def recency_score(document: VectorDocument) -> float:
        """Exponential decay over document age; 0.5 without a timestamp."""
        if not document.timestamp:
            return NEUTRAL_SCORE
        age = now_ms() - document.timestamp
        return math.exp(-age / (MAX_AGE_MS / 3))

    @staticmethod
    def metadata_score(document: VectorDocument, query: str) -> float:
        if not document.metadata:
            return NEUTRAL_SCORE

        score = NEUTRAL_SCORE
        query_lower = query.lower()
        for value in document.metadata.values():
            if isinstance(value, str) and query_lower in value.lower():
                score += METADATA_MATCH_BONUS

        if document.metadata.get("type") in _BONUS_TYPES:
            score += METADATA_TYPE_BONUS

        return min(score, 1.0)
