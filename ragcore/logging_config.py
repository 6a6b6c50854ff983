# RagCore - Retrieval & Semantic Cache Engine
# Copyright (C) 2026 RagCore Authors
# SPDX-License-Identifier: Apache-2.0
#
# This file is part of RagCore, licensed under Apache-2.0.
# See LICENSE for the full license text.

"""Centralized logging configuration for RagCore.

Uses structlog in stdlib-compatible mode so that module-level
``logging.getLogger("ragcore.xxx")`` calls gain structured output
(context binding, JSON files) without changing call sites.

Provides:
- setup_logging(): structlog + stdlib unified setup (console + file)
- configure_from_config(): setup_logging() driven by config.json
- set_request_id() / get_request_id(): request correlation helpers
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

import orjson
import structlog

if TYPE_CHECKING:
    from ragcore.config.models import RagCoreConfig


def set_request_id(request_id: str) -> None:
    """Set the current request ID via structlog contextvars."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def get_request_id() -> str:
    """Get the current request ID from structlog contextvars."""
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("request_id", "-")


def clear_request_id() -> None:
    structlog.contextvars.unbind_contextvars("request_id")


# ── Shared Processors ──────────────────────────────────────────


def _build_shared_processors() -> list:
    """Build the shared processor chain used by both structlog and stdlib."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _orjson_serializer(obj: object, **_kw) -> str:  # noqa: ANN001
    return orjson.dumps(obj, default=str).decode("utf-8")


# ── Main Setup ─────────────────────────────────────────────────


def setup_logging(
    level: str = "INFO",
    log_dir: Path | None = None,
    json_file: bool = True,
) -> None:
    """Configure logging for the whole process.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, etc.).
        log_dir: Directory for log files. If None, file logging is disabled.
        json_file: Whether to use JSON format for the file handler.
    """
    shared_processors = _build_shared_processors()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    # foreign_pre_chain: stdlib LogRecords pass through the structlog pipeline
    # so that contextvars (request_id) and timestamps are merged in.
    foreign_pre_chain = list(shared_processors)

    console_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(),
        ],
        foreign_pre_chain=foreign_pre_chain,
    )
    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG)
    console.setFormatter(console_formatter)
    root.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / "ragcore.log"

        if json_file:
            renderer = structlog.processors.JSONRenderer(serializer=_orjson_serializer)
        else:
            renderer = structlog.dev.ConsoleRenderer(colors=False)

        file_formatter = structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=foreign_pre_chain,
        )

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        root.addHandler(file_handler)

    # Embedding backends are chatty at INFO
    logging.getLogger("sentence_transformers").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def configure_from_config(config: RagCoreConfig | None = None) -> None:
    """Apply the ``system`` section of *config* (loaded from disk when None).

    File logs go to ``<data dir>/logs/ragcore.log``.
    """
    from ragcore.config.models import load_config
    from ragcore.paths import get_log_dir

    if config is None:
        config = load_config()
    setup_logging(
        level=config.system.log_level,
        log_dir=get_log_dir(),
        json_file=config.system.log_json,
    )
