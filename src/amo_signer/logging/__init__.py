"""
Structured logging module.

Provides console/JSON logging with add-on context propagation.
"""

from amo_signer.logging.context import (
    clear_log_context,
    get_log_context,
    set_log_context,
)
from amo_signer.logging.formatters import ConsoleFormatter, JSONFormatter
from amo_signer.logging.setup import generate_request_id, get_logger, setup_logging
from amo_signer.logging.utilities import (
    LoggedClass,
    log_exception,
    log_with_context,
    logged_operation,
)

__all__ = [
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    "JSONFormatter",
    "ConsoleFormatter",
    "setup_logging",
    "get_logger",
    "generate_request_id",
    "LoggedClass",
    "log_with_context",
    "log_exception",
    "logged_operation",
]
