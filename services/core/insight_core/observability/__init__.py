"""Observability package for structured logging."""

from insight_core.observability.logging import (
    JsonFormatter,
    RequestContext,
    StructuredLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "JsonFormatter",
    "RequestContext",
    "StructuredLogger",
    "configure_logging",
    "get_logger",
]
