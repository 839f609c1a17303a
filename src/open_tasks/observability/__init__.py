"""Observability surface: structured logging and correlation context."""

from open_tasks.observability.logging import (
    LoggingConfig,
    StructuredLoggingHandle,
    correlation_scope,
    new_run_id,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)

__all__ = [
    "LoggingConfig",
    "StructuredLoggingHandle",
    "correlation_scope",
    "new_run_id",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
