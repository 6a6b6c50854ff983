from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Embedding generators.

Every consumer (vector store, semantic cache, response cache manager)
accepts any ``async (text) -> list[float]`` callable.  Two providers are
shipped:

- :class:`HashEmbedding`: deterministic and dependency-free, for tests
  and offline use.  Similar strings do *not* get similar vectors.
- :class:`SentenceTransformerEmbedding`: a local sentence-transformers
  model, loaded on first use.
"""

import asyncio
import hashlib
import logging
from collections.abc import Awaitable, Callable

import numpy as np

logger = logging.getLogger("ragcore.rag.embeddings")

EmbeddingGenerator = Callable[[str], Awaitable[list[float]]]

DEFAULT_EMBEDDING_MODEL = "intfloat/multilingual-e5-small"


class HashEmbedding:
    """Deterministic pseudo-embedding seeded from an MD5 hash of the text."""

    def __init__(self, dimension: int = 384, model: str = "hash-embedding") -> None:
        self.dimension = dimension
        self.model = model

    def embed_sync(self, text: str) -> list[float]:
        seed = int.from_bytes(hashlib.md5(text.encode("utf-8")).digest()[:4], "big")
        positions = seed + np.arange(self.dimension, dtype=np.float64)
        vector = np.sin(positions * 0.1) * np.cos(positions * 0.05)
        norm = np.linalg.norm(vector)
        if norm > 0:
            vector = vector / norm
        return vector.tolist()

    async def __call__(self, text: str) -> list[float]:
        return self.embed_sync(text)

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_sync(text) for text in texts]


class SentenceTransformerEmbedding:
    """sentence-transformers backed generator.

    The model is loaded lazily on first use; encoding runs in a worker
    thread so the event loop is not blocked.
    """

    def __init__(
        self,
        model_name: str = DEFAULT_EMBEDDING_MODEL,
        *,
        cache_folder: str | None = None,
        device: str | None = None,
    ) -> None:
        self.model_name = model_name
        self.cache_folder = cache_folder
        self.device = device
        self._model = None

    @property
    def model(self):
        if self._model is None:
            from sentence_transformers import SentenceTransformer

            logger.info("Loading embedding model: %s", self.model_name)
            self._model = SentenceTransformer(
                self.model_name, cache_folder=self.cache_folder, device=self.device,
            )
            logger.info("Embedding model loaded")
        return self._model

    @property
    def dimension(self) -> int:
        return self.model.get_sentence_embedding_dimension()

    def _encode(self, texts: list[str]) -> list[list[float]]:
        embeddings = self.model.encode(texts, convert_to_numpy=True, show_progress_bar=False)
        return [row.tolist() for row in embeddings]

    async def __call__(self, text: str) -> list[float]:
        return (await asyncio.to_thread(self._encode, [text]))[0]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return await asyncio.to_thread(self._encode, texts)
