from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of RagCore, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Unified exception hierarchy for RagCore.

All domain-specific exceptions derive from :class:`RagCoreError`,
enabling callers to catch the entire family with a single clause::

    try:
        ...
    except RagCoreError as e:
        logger.error("Domain error: %s", e)
"""


class RagCoreError(Exception):
    """Base exception for all RagCore errors."""


# ── Validation ───────────────────────────────────────────────


class VectorValidationError(RagCoreError, ValueError):
    """Invalid input: missing id/content, mismatched vector lengths."""


# ── Lookup ───────────────────────────────────────────────────


class NotFoundError(RagCoreError, LookupError):
    """Referenced entity does not exist."""


class DocumentNotFoundError(NotFoundError):
    """Referenced document id is not in the vector store."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document with id {document_id} not found")
        self.document_id = document_id


# ── Embedding collaborator ───────────────────────────────────


class EmbeddingError(RagCoreError):
    """Embedding generation failed or no generator is available."""


# ── Configuration ────────────────────────────────────────────


class ConfigError(RagCoreError):
    """Configuration errors."""


class ConfigValidationError(ConfigError):
    """Configuration validation failure."""
