"""
Error taxonomy for provider calls.

The gateway raises these internally and converts them to absent results at
each call boundary, so none of them reach request-serving code.
"""

import asyncio
from typing import Optional

import httpx

# Provider status codes (DataForSEO)
STATUS_OK = 20000
STATUS_PAYMENT_REQUIRED = 40200


# =============================================================================
# Custom Exceptions
# =============================================================================

class AppError(Exception):
    """Base application exception."""
    pass


class NetworkError(AppError):
    pass


class AppTimeoutError(AppError):
    pass


class CredentialsError(AppError):
    pass


class ProviderError(AppError):
    """Provider returned a non-success HTTP status or status code."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        http_status: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.http_status = http_status


class PaymentRequiredError(ProviderError):
    """Endpoint needs a subscription the account does not have."""
    pass


class MalformedResponseError(ProviderError):
    """Response envelope carried no usable result."""
    pass


def provider_error_for(
    status_code: Optional[int],
    message: Optional[str],
    http_status: Optional[int] = None,
) -> ProviderError:
    """Build the matching ProviderError subclass for a provider status."""
    text = message or "unknown provider error"
    if status_code == STATUS_PAYMENT_REQUIRED or http_status == 402:
        return PaymentRequiredError(text, status_code=status_code, http_status=http_status)
    return ProviderError(text, status_code=status_code, http_status=http_status)


# =============================================================================
# Error Handler
# =============================================================================

class ErrorHandler:
    """Centralized error categorization."""

    @staticmethod
    def categorize_error(error: Exception) -> str:
        """Categorize errors for logging."""
        if isinstance(error, PaymentRequiredError):
            return "PAYMENT_REQUIRED"
        if isinstance(error, MalformedResponseError):
            return "MALFORMED_RESPONSE"
        if isinstance(error, ProviderError):
            return "PROVIDER_ERROR"
        if isinstance(error, CredentialsError):
            return "CREDENTIALS_ERROR"
        if isinstance(error, (AppTimeoutError, asyncio.TimeoutError, httpx.TimeoutException)):
            return "TIMEOUT_ERROR"
        if isinstance(error, (NetworkError, httpx.TransportError, ConnectionError)):
            return "NETWORK_ERROR"
        if isinstance(error, ValueError):
            return "MALFORMED_RESPONSE"

        err_str = str(error).lower()
        if "timeout" in err_str: return "TIMEOUT_ERROR"
        if "connection" in err_str: return "NETWORK_ERROR"

        return "UNKNOWN_ERROR"
