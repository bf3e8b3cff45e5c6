"""Error handling utilities: structured logging and error responses."""
from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def log_error_with_context(
    error: Exception,
    node_name: str,
    stage: str | None = None,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """
    Log an error with full context: stage, request extras, and stack trace.

    Args:
        error: The exception that occurred
        node_name: Component that failed (e.g., 'generation_guard', 'model_adapter', 'api')
        stage: Pipeline stage ('context', 'outline', 'draft', 'metadata')
        extra_context: Additional context dict to include in log
    """
    context_str = f"stage={stage}" if stage else "no context"

    extra = {}
    if extra_context:
        extra.update(extra_context)
    if stage:
        extra["stage"] = stage
    extra["node_name"] = node_name

    logger.error(
        f"[{node_name}] Error: {type(error).__name__}: {str(error)} ({context_str})",
        exc_info=True,
        extra=extra,
    )


def create_error_response(
    error_code: str,
    message: str,
    node: str | None = None,
    notice: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Create a structured error response for API endpoints.

    Args:
        error_code: Error code (e.g., 'FORBIDDEN_TERM_LEAK', 'BINDING_UNAVAILABLE')
        message: Human-readable error message
        node: Component where the error occurred
        notice: User-facing notice id (see errors.classify_failure)
        details: Additional error details

    Returns:
        Structured error dict
    """
    response: dict[str, Any] = {
        "error_code": error_code,
        "message": message,
    }
    if notice:
        response["notice"] = notice
    if node:
        response["node"] = node
    if details:
        response["details"] = details
    return response
