from __future__ import annotations
# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Epoch-millisecond clock helpers.

Documents, chunks and cache entries carry integer epoch-ms timestamps.
``now_ms()`` is the single clock source so tests can patch it per module.
"""

import time
from datetime import datetime, timezone


def now_ms() -> int:
    """Return the current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_iso(timestamp_ms: int) -> str:
    """Render epoch milliseconds as ISO-8601 UTC with a ``Z`` suffix.

    Millisecond precision, e.g. ``2026-02-14T09:30:00.000Z``.
    """
    dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
