"""Utils module for AI Tool Intelligence."""

from tool_intel.utils.logger import get_logger, setup_logging, LogContext
from tool_intel.utils.errors import (
    ErrorHandler,
    AppError,
    NetworkError,
    AppTimeoutError,
    CredentialsError,
    ProviderError,
    PaymentRequiredError,
    MalformedResponseError,
)
from tool_intel.utils.formatters import (
    format_number,
    format_pricing_table,
    format_score_table,
    format_enrichment_report,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "LogContext",
    "ErrorHandler",
    "AppError",
    "NetworkError",
    "AppTimeoutError",
    "CredentialsError",
    "ProviderError",
    "PaymentRequiredError",
    "MalformedResponseError",
    "format_number",
    "format_pricing_table",
    "format_score_table",
    "format_enrichment_report",
]
