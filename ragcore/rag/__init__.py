from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""RAG (Retrieval-Augmented Generation) subsystem.

Provides prompt enhancement over an in-memory vector store with:
- Cosine similarity search (linear scan)
- Sentence-aware chunking with overlap
- Similarity / recency / metadata re-ranking
- Token-budgeted context assembly
"""

from ragcore.rag.chunker import DocumentChunk, DocumentChunker
from ragcore.rag.context import ContextWindowManager, RAGContext
from ragcore.rag.embeddings import (
    EmbeddingGenerator,
    HashEmbedding,
    SentenceTransformerEmbedding,
)
from ragcore.rag.scorer import RelevanceScorer
from ragcore.rag.store import (
    MemoryVectorStore,
    VectorDocument,
    VectorSearchResult,
    VectorStore,
    VectorStoreStats,
    create_memory_store,
    create_store_from_documents,
)
from ragcore.rag.system import RAGResult, RAGResultMetadata, RAGSystem

__all__ = [
    "VectorStore",
    "MemoryVectorStore",
    "VectorDocument",
    "VectorSearchResult",
    "VectorStoreStats",
    "create_memory_store",
    "create_store_from_documents",
    "DocumentChunk",
    "DocumentChunker",
    "RelevanceScorer",
    "ContextWindowManager",
    "RAGContext",
    "RAGSystem",
    "RAGResult",
    "RAGResultMetadata",
    "EmbeddingGenerator",
    "HashEmbedding",
    "SentenceTransformerEmbedding",
]
