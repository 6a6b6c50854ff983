from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Vector store abstraction and in-memory implementation.

Provides document storage for retrieval with:
- Lazy embedding generation through an injected generator
- Linear-scan cosine similarity search with threshold / filter / limit
- Greedy similarity clustering and store statistics
"""

import asyncio
import dataclasses
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from ragcore.exceptions import DocumentNotFoundError, EmbeddingError, VectorValidationError
from ragcore.rag.embeddings import EmbeddingGenerator
from ragcore.rag.vectors import cosine_similarity
from ragcore.time_utils import now_ms

logger = logging.getLogger("ragcore.rag.store")

# ── Data structures ────────────────────────────────────────────────


@dataclass
class VectorDocument:
    """A stored text fragment with its embedding and metadata."""

    id: str
    content: str
    embedding: list[float] = dataclasses.field(default_factory=list)
    metadata: dict[str, Any] | None = None
    timestamp: int | None = None  # epoch ms


@dataclass
class VectorSearchResult:
    """A search hit.  ``metadata`` carries re-ranking details when scored."""

    document: VectorDocument
    similarity: float
    distance: float
    metadata: dict[str, Any] | None = None


@dataclass
class VectorStoreStats:
    total_documents: int = 0
    total_embeddings: int = 0
    average_embedding_dimension: float = 0.0
    memory_usage: int = 0  # approximate bytes
    last_updated: int = 0  # epoch ms


DocumentFilter = Callable[[VectorDocument], bool]


# ── VectorStore abstract base class ────────────────────────────────


class VectorStore(ABC):
    """Abstract base class for vector storage backends."""

    @abstractmethod
    async def add(self, document: VectorDocument) -> None:
        """Insert a document, or overwrite the one with the same id."""

    @abstractmethod
    async def add_batch(self, documents: list[VectorDocument]) -> None:
        """Insert several documents."""

    @abstractmethod
    async def search(
        self,
        query_embedding: list[float],
        *,
        limit: int = 10,
        threshold: float = 0.0,
        include_metadata: bool = True,
        filter: DocumentFilter | None = None,
    ) -> list[VectorSearchResult]:
        """Rank stored documents by cosine similarity to *query_embedding*.

        Args:
            query_embedding: Query vector (same dimensionality as the store)
            limit: Maximum number of results
            threshold: Minimum similarity to keep a result
            include_metadata: When False, results carry ``metadata=None``
            filter: Predicate over the stored document

        Returns:
            Results sorted by similarity (descending)
        """

    @abstractmethod
    async def search_by_text(self, text: str, **options: Any) -> list[VectorSearchResult]:
        """Embed *text* with the store's generator, then :meth:`search`."""

    @abstractmethod
    async def get(self, document_id: str) -> VectorDocument | None:
        """Return the document or None."""

    @abstractmethod
    async def delete(self, document_id: str) -> bool:
        """Delete a document; True if it existed."""

    @abstractmethod
    async def delete_batch(self, document_ids: Iterable[str]) -> int:
        """Delete several documents; return how many existed."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every document."""

    @abstractmethod
    async def size(self) -> int:
        """Number of stored documents."""

    @abstractmethod
    async def stats(self) -> VectorStoreStats:
        """Counts and size estimates."""

    @abstractmethod
    async def close(self) -> None:
        """Release resources held by the store."""


# ── In-memory implementation ───────────────────────────────────────


class MemoryVectorStore(VectorStore):
    """Linear-scan vector store held in a single insertion-ordered dict.

    Overwriting an id keeps the document's original position, so store
    order (used by clustering and tie-breaking) is stable across updates.
    """

    def __init__(self, generate_embedding: EmbeddingGenerator | None = None) -> None:
        self._documents: dict[str, VectorDocument] = {}
        self._generate_embedding = generate_embedding
        self._lock = asyncio.Lock()
        self._last_modified = 0

    # ── Embedding helpers ───────────────────────────────────────────

    async def _embed(self, text: str) -> list[float]:
        if self._generate_embedding is None:
            raise EmbeddingError("No embedding provided and no embedding generator available")
        try:
            embedding = await self._generate_embedding(text)
        except Exception as e:
            raise EmbeddingError(f"Embedding generation failed: {e}") from e
        if not embedding:
            raise EmbeddingError("Embedding generator returned an empty embedding")
        return list(embedding)

    def _store_dimension(self, exclude_id: str) -> int | None:
        for doc_id, doc in self._documents.items():
            if doc_id != exclude_id and doc.embedding:
                return len(doc.embedding)
        return None

    @staticmethod
    def _validate(document: VectorDocument) -> None:
        if not document.id or not document.content:
            raise VectorValidationError("Document must have id and content")

    # ── CRUD ────────────────────────────────────────────────────────

    async def _insert(self, document: VectorDocument, embedding: list[float]) -> None:
        """Store *document* with *embedding*.

        The document is only filled in (embedding, missing timestamp) once
        the dimension check has passed, so a rejected document is returned
        to the caller untouched.
        """
        async with self._lock:
            dimension = self._store_dimension(document.id)
            if dimension is not None and dimension != len(embedding):
                raise VectorValidationError(
                    f"Embedding dimension {len(embedding)} does not match "
                    f"store dimension {dimension}"
                )
            document.embedding = embedding
            if not document.timestamp:
                document.timestamp = now_ms()
            self._documents[document.id] = document
            self._last_modified = now_ms()

        logger.debug("Stored document '%s' (dim=%d)", document.id, len(embedding))

    async def add(self, document: VectorDocument) -> None:
        self._validate(document)
        embedding = document.embedding or await self._embed(document.content)
        await self._insert(document, embedding)

    async def add_batch(self, documents: list[VectorDocument]) -> None:
        for document in documents:
            self._validate(document)

        missing = [i for i, doc in enumerate(documents) if not doc.embedding]
        generated: dict[int, list[float]] = {}
        if missing and self._generate_embedding is not None:
            embeddings = await asyncio.gather(*(self._embed(documents[i].content) for i in missing))
            generated = dict(zip(missing, embeddings))

        for i, document in enumerate(documents):
            embedding = document.embedding or generated.get(i) or await self._embed(document.content)
            await self._insert(document, embedding)

        logger.debug("Added batch of %d documents (%d embedded)", len(documents), len(missing))

    async def get(self, document_id: str) -> VectorDocument | None:
        return self._documents.get(document_id)

    async def get_all_documents(self) -> list[VectorDocument]:
        return list(self._documents.values())

    async def delete(self, document_id: str) -> bool:
        async with self._lock:
            if self._documents.pop(document_id, None) is None:
                return False
            self._last_modified = now_ms()
        return True

    async def delete_batch(self, document_ids: Iterable[str]) -> int:
        deleted = 0
        for document_id in document_ids:
            if await self.delete(document_id):
                deleted += 1
        return deleted

    async def clear(self) -> None:
        async with self._lock:
            self._documents.clear()
            self._last_modified = now_ms()

    async def size(self) -> int:
        return len(self._documents)

    async def close(self) -> None:
        await self.clear()

    # ── Search ──────────────────────────────────────────────────────

    async def search(
        self,
        query_embedding: list[float],
        *,
        limit: int = 10,
        threshold: float = 0.0,
        include_metadata: bool = True,
        filter: DocumentFilter | None = None,
    ) -> list[VectorSearchResult]:
        results: list[VectorSearchResult] = []

        for document in list(self._documents.values()):
            if filter is not None and not filter(document):
                continue

            similarity = cosine_similarity(query_embedding, document.embedding)
            if similarity < threshold:
                continue

            if not include_metadata:
                document = dataclasses.replace(document, metadata=None)
            results.append(
                VectorSearchResult(
                    document=document,
                    similarity=similarity,
                    distance=1.0 - similarity,
                )
            )

        results.sort(key=lambda r: r.similarity, reverse=True)
        logger.debug(
            "Vector search: %d/%d documents matched (threshold=%.3f, limit=%d)",
            len(results), len(self._documents), threshold, limit,
        )
        return results[:limit]

    async def search_by_text(self, text: str, **options: Any) -> list[VectorSearchResult]:
        if self._generate_embedding is None:
            raise EmbeddingError("No embedding generator available for text search")
        query_embedding = await self._embed(text)
        return await self.search(query_embedding, **options)

    async def find_similar_documents(
        self,
        document_id: str,
        **options: Any,
    ) -> list[VectorSearchResult]:
        """Search with a stored document's own embedding, excluding that document."""
        document = await self.get(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)

        caller_filter: DocumentFilter | None = options.pop("filter", None)

        def _exclude_self(doc: VectorDocument) -> bool:
            if doc.id == document_id:
                return False
            return caller_filter is None or caller_filter(doc)

        return await self.search(document.embedding, filter=_exclude_self, **options)

    # ── Updates & queries ───────────────────────────────────────────

    async def update_document(
        self,
        document_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Replace content (and optionally metadata); the embedding is regenerated."""
        existing = await self.get(document_id)
        if existing is None:
            raise DocumentNotFoundError(document_id)

        updated = dataclasses.replace(
            existing,
            content=content,
            metadata=metadata if metadata is not None else existing.metadata,
            timestamp=now_ms(),
            embedding=[],
        )
        await self.add(updated)

    async def get_documents_by_metadata(
        self,
        predicate: Callable[[dict[str, Any]], bool],
    ) -> list[VectorDocument]:
        return [
            doc for doc in self._documents.values()
            if doc.metadata and predicate(doc.metadata)
        ]

    async def cluster_documents(self, threshold: float = 0.8) -> list[list[VectorDocument]]:
        """Single-pass greedy clustering in store order.

        A document joins the first cluster whose representative (its first
        member) has similarity >= *threshold*; otherwise it starts a new
        cluster.
        """
        clusters: list[list[VectorDocument]] = []
        for document in list(self._documents.values()):
            for cluster in clusters:
                if cosine_similarity(cluster[0].embedding, document.embedding) >= threshold:
                    cluster.append(document)
                    break
            else:
                clusters.append([document])

        logger.debug(
            "Clustered %d documents into %d clusters (threshold=%.2f)",
            len(self._documents), len(clusters), threshold,
        )
        return clusters

    async def stats(self) -> VectorStoreStats:
        if not self._documents:
            return VectorStoreStats()

        embeddings = [doc.embedding for doc in self._documents.values() if doc.embedding]
        average_dimension = (
            sum(len(e) for e in embeddings) / len(embeddings) if embeddings else 0.0
        )

        # Rough estimate: serialized document as UTF-16 plus 8 bytes per float
        memory_usage = 0
        for doc in self._documents.values():
            memory_usage += len(json.dumps(dataclasses.asdict(doc), default=str)) * 2
        memory_usage += sum(len(e) * 8 for e in embeddings)

        return VectorStoreStats(
            total_documents=len(self._documents),
            total_embeddings=len(embeddings),
            average_embedding_dimension=average_dimension,
            memory_usage=memory_usage,
            last_updated=self._last_modified,
        )


# ── Factory helpers ────────────────────────────────────────────────


def create_memory_store(generate_embedding: EmbeddingGenerator | None = None) -> MemoryVectorStore:
    return MemoryVectorStore(generate_embedding)


async def create_store_from_documents(
    documents: list[VectorDocument],
    generate_embedding: EmbeddingGenerator,
) -> MemoryVectorStore:
    """Build a store and ingest *documents*, embedding those without vectors."""
    store = MemoryVectorStore(generate_embedding)
    await store.add_batch(documents)
    logger.info("Created vector store from %d documents", len(documents))
    return store
