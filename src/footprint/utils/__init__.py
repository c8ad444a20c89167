"""Shared utilities for Cultural Footprint."""

from footprint.utils.logging import (
    LogContext,
    RedactingFilter,
    configure_logging,
    get_logger,
    setup_logging,
)

__all__ = ["LogContext", "RedactingFilter", "configure_logging", "get_logger", "setup_logging"]
