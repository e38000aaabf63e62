"""Logging and metrics for Chronicle."""

from chronicle.observability.logging import (
    PIIRedactor,
    configure_from_settings,
    get_logger,
    setup_logging,
)
from chronicle.observability.metrics import setup_metrics

__all__ = [
    "PIIRedactor",
    "configure_from_settings",
    "get_logger",
    "setup_logging",
    "setup_metrics",
]
