from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Sentence-aware document chunking with word-boundary overlap."""

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from ragcore.rag.store import VectorDocument
from ragcore.time_utils import now_ms

logger = logging.getLogger("ragcore.rag.chunker")

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+")


@dataclass
class DocumentChunk:
    """A bounded-length fragment of a parent document."""

    id: str
    parent_document_id: str
    content: str
    chunk_index: int
    total_chunks: int
    timestamp: int
    embedding: list[float] = field(default_factory=list)
    metadata: dict[str, Any] | None = None

    def to_document(self) -> VectorDocument:
        return VectorDocument(
            id=self.id,
            content=self.content,
            embedding=list(self.embedding),
            metadata=self.metadata,
            timestamp=self.timestamp,
        )


class DocumentChunker:
    """Split documents into chunks of at most ``chunk_size`` characters.

    Sentences are packed greedily; a single sentence longer than
    ``chunk_size`` still becomes its own (oversized) chunk.
    """

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive (got {chunk_size})")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError(
                f"chunk_overlap must be in [0, chunk_size) (got {chunk_overlap})"
            )
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def chunk_document(self, document: VectorDocument) -> list[DocumentChunk]:
        content = document.content
        timestamp = document.timestamp or now_ms()

        if len(content) <= self.chunk_size:
            return [
                DocumentChunk(
                    id=f"{document.id}_chunk_0",
                    parent_document_id=document.id,
                    content=content,
                    chunk_index=0,
                    total_chunks=1,
                    timestamp=timestamp,
                    embedding=list(document.embedding),
                    metadata=document.metadata,
                )
            ]

        texts: list[str] = []
        buffer = ""
        for sentence in self._split_sentences(content):
            if buffer and len(buffer) + len(sentence) > self.chunk_size:
                texts.append(buffer.strip())
                overlap = self._overlap_suffix(buffer)
                buffer = f"{overlap} {sentence}" if overlap else sentence
            else:
                buffer = f"{buffer} {sentence}" if buffer else sentence

        if buffer.strip():
            texts.append(buffer.strip())

        chunks = [
            DocumentChunk(
                id=f"{document.id}_chunk_{index}",
                parent_document_id=document.id,
                content=text,
                chunk_index=index,
                total_chunks=len(texts),
                timestamp=timestamp,
                metadata={
                    **(document.metadata or {}),
                    "chunk_index": index,
                    "parent_document": document.id,
                },
            )
            for index, text in enumerate(texts)
        ]

        logger.debug(
            "Chunked document '%s' (%d chars) into %d chunks",
            document.id, len(content), len(chunks),
        )
        return chunks

    def chunk_documents(self, documents: list[VectorDocument]) -> list[DocumentChunk]:
        chunks: list[DocumentChunk] = []
        for document in documents:
            chunks.extend(self.chunk_document(document))
        return chunks

    # ── Helpers ─────────────────────────────────────────────

    @staticmethod
    def _split_sentences(text: str) -> list[str]:
        return [
            f"{part.strip()}."
            for part in _SENTENCE_BOUNDARY.split(text)
            if part.strip()
        ]

    def _overlap_suffix(self, text: str) -> str:
        """Last word of *text* when it fits in ``chunk_overlap`` chars.

        Otherwise the last ``chunk_overlap`` characters (hard cut).
        """
        if self.chunk_overlap <= 0:
            return ""
        text = text.strip()
        if len(text) <= self.chunk_overlap:
            return text

        last_word = text.rsplit(" ", 1)[-1]
        if len(last_word) <= self.chunk_overlap:
            return last_word
        return text[-self.chunk_overlap:]
