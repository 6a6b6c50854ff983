# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0

"""Centralized path resolution for RagCore.

Runtime data directory can be overridden via RAGCORE_DATA_DIR environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path

# Default runtime data directory
_DEFAULT_DATA_DIR = Path.home() / ".ragcore"


def get_data_dir() -> Path:
    """Return the runtime data directory, respecting RAGCORE_DATA_DIR env var."""
    env_val = os.environ.get("RAGCORE_DATA_DIR")
    if env_val:
        return Path(env_val).expanduser().resolve()
    return _DEFAULT_DATA_DIR


def get_log_dir() -> Path:
    return get_data_dir() / "logs"
