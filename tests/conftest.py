# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0
"""Global test fixtures for RagCore.

Provides data-dir isolation, config cache management, and shared
embedding generators / sample documents.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from ragcore.rag.store import VectorDocument
from tests.helpers.embeddings import KeywordEmbedding, SAMPLE_DOCUMENTS


# ── Fixtures ──────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_config_cache():
    """Keep the module-level config cache from leaking between tests."""
    from ragcore.config import invalidate_cache

    invalidate_cache()
    yield
    invalidate_cache()


@pytest.fixture
def data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect ``RAGCORE_DATA_DIR`` to an isolated temp directory."""
    d = tmp_path / ".ragcore"
    d.mkdir()
    monkeypatch.setenv("RAGCORE_DATA_DIR", str(d))
    return d


@pytest.fixture
def keyword_embedding() -> KeywordEmbedding:
    return KeywordEmbedding()


@pytest.fixture
def sample_documents() -> list[VectorDocument]:
    """Fresh copies of the three AI documents (stores mutate embeddings)."""
    return [
        VectorDocument(id=doc_id, content=content, metadata=dict(metadata))
        for doc_id, content, metadata in SAMPLE_DOCUMENTS
    ]
