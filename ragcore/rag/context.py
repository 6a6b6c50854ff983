from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Context window assembly under a token budget."""

import json
import logging
import math
import re
from dataclasses import dataclass, field

from ragcore.rag.store import VectorDocument, VectorSearchResult
from ragcore.time_utils import ms_to_iso

logger = logging.getLogger("ragcore.rag.context")

CONTEXT_PREAMBLE = "Based on the following context information:"
CHARS_PER_TOKEN = 4

_PLACEHOLDER = re.compile(r"\{(content|id|metadata|timestamp)\}")


@dataclass
class RAGContext:
    query: str = ""
    retrieved_documents: list[VectorSearchResult] = field(default_factory=list)
    context_text: str = ""
    relevance_scores: list[float] = field(default_factory=list)
    total_tokens: int = 0
    truncated: bool = False


def estimate_tokens(text: str) -> int:
    """Rough token estimate: ~4 characters per token."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def format_document(document: VectorDocument, template: str) -> str:
    """Substitute ``{content}``, ``{id}``, ``{metadata}`` and ``{timestamp}``.

    Substitution is a single pass, so placeholder-like text inside the
    document content is left untouched.  Each value is rendered only when
    its placeholder occurs; non-JSON metadata values are stringified.
    """

    def _render(match: re.Match[str]) -> str:
        name = match.group(1)
        if name == "content":
            return document.content
        if name == "id":
            return document.id
        if name == "metadata":
            return json.dumps(document.metadata, default=str) if document.metadata else ""
        return ms_to_iso(document.timestamp) if document.timestamp else ""

    return _PLACEHOLDER.sub(_render, template)


class ContextWindowManager:
    def __init__(
        self,
        max_context_length: int = 4000,
        context_template: str = "Document: {content}",
    ) -> None:
        self.max_context_length = max_context_length
        self.context_template = context_template

    def build_context(self, results: list[VectorSearchResult], query: str) -> RAGContext:
        """Greedily pack formatted results until the token budget is hit.

        The first result that does not fit ends assembly and marks the
        context as truncated; later, smaller results are not tried.
        """
        context = RAGContext(query=query)
        fragments: list[str] = []

        for result in results:
            text = format_document(result.document, self.context_template)
            tokens = estimate_tokens(text)
            if context.total_tokens + tokens > self.max_context_length:
                context.truncated = True
                break
            fragments.append(text)
            context.total_tokens += tokens
            context.relevance_scores.append(result.similarity)
            context.retrieved_documents.append(result)

        context.context_text = "\n\n".join(fragments)

        if context.truncated:
            logger.debug(
                "Context truncated at %d/%d results (%d tokens, budget %d)",
                len(context.retrieved_documents), len(results),
                context.total_tokens, self.max_context_length,
            )
        return context

    @staticmethod
    def inject_context(prompt: str, context: RAGContext) -> str:
        if not context.context_text:
            return prompt
        return f"{CONTEXT_PREAMBLE}\n\n{context.context_text}\n\n{prompt}"
