"""Unit tests for ragcore/rag/context.py: context window assembly."""
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import json
from datetime import date

from ragcore.rag.context import (
    ContextWindowManager,
    RAGContext,
    estimate_tokens,
    format_document,
)
from ragcore.rag.store import VectorDocument, VectorSearchResult


def _results(documents: list[VectorDocument], similarity: float = 0.8) -> list[VectorSearchResult]:
    return [
        VectorSearchResult(document=doc, similarity=similarity, distance=1.0 - similarity)
        for doc in documents
    ]


class TestEstimateTokens:
    def test_ceil_quarter_length(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2


class TestFormatDocument:
    def test_all_placeholders(self):
        doc = VectorDocument(
            id="doc1", content="body", metadata={"k": "v"}, timestamp=1_700_000_000_000,
        )
        text = format_document(doc, "{id}|{content}|{metadata}|{timestamp}")
        assert text == f'doc1|body|{json.dumps({"k": "v"})}|2023-11-14T22:13:20.000Z'

    def test_missing_metadata_and_timestamp(self):
        doc = VectorDocument(id="d", content="body")
        assert format_document(doc, "[{metadata}][{timestamp}]") == "[][]"

    def test_single_pass_substitution(self):
        doc = VectorDocument(id="real-id", content="literal {id} in content")
        assert format_document(doc, "{content} / {id}") == "literal {id} in content / real-id"

    def test_repeated_placeholder(self):
        doc = VectorDocument(id="x", content="c")
        assert format_document(doc, "{id}-{id}") == "x-x"

    def test_non_json_metadata_only_rendered_on_demand(self):
        doc = VectorDocument(id="d", content="hello", metadata={"created": date(2024, 1, 1)})
        assert format_document(doc, "Document: {content}") == "Document: hello"
        assert format_document(doc, "{metadata}") == '{"created": "2024-01-01"}'


class TestBuildContext:
    def test_date_metadata_with_default_template(self):
        doc = VectorDocument(
            id="d", content="hello", metadata={"created": date(2024, 1, 1)}, timestamp=1,
        )
        context = ContextWindowManager().build_context(
            [VectorSearchResult(document=doc, similarity=0.9, distance=0.1)], "q",
        )
        assert context.context_text == "Document: hello"
        assert context.truncated is False

    def test_builds_context(self, sample_documents):
        manager = ContextWindowManager(500, "Doc: {content}")
        context = manager.build_context(_results(sample_documents[:2]), "test query")
        assert context.query == "test query"
        assert len(context.retrieved_documents) > 0
        assert "Doc:" in context.context_text
        assert len(context.relevance_scores) == len(context.retrieved_documents)
        assert context.total_tokens > 0

    def test_fragments_joined_by_blank_line(self):
        docs = [VectorDocument(id="a", content="one"), VectorDocument(id="b", content="two")]
        context = ContextWindowManager(100, "{content}").build_context(_results(docs), "q")
        assert context.context_text == "one\n\ntwo"
        assert context.truncated is False

    def test_truncation_at_small_budget(self, sample_documents):
        manager = ContextWindowManager(50, "{content}")
        context = manager.build_context(_results(sample_documents), "test")
        assert context.truncated is True
        assert context.total_tokens <= 50

    def test_first_overflow_stops_assembly(self):
        docs = [
            VectorDocument(id="a", content="a" * 40),   # 10 tokens
            VectorDocument(id="b", content="b" * 400),  # 100 tokens
            VectorDocument(id="c", content="c" * 4),    # 1 token, would fit
        ]
        context = ContextWindowManager(20, "{content}").build_context(_results(docs), "q")
        assert [r.document.id for r in context.retrieved_documents] == ["a"]
        assert context.total_tokens == 10
        assert context.truncated is True


class TestInjectContext:
    def test_prefixes_framing(self):
        context = RAGContext(query="q", context_text="ctx")
        enhanced = ContextWindowManager.inject_context("What?", context)
        assert enhanced == "Based on the following context information:\n\nctx\n\nWhat?"

    def test_empty_context_returns_prompt(self):
        assert ContextWindowManager.inject_context("What?", RAGContext()) == "What?"
