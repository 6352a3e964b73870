from .client import get_http_client, aclose_http_client, request_with_retry, RETRYABLE_STATUS
from .errors import attach_standard_error_handlers, error_envelope

__all__ = [
    "get_http_client",
    "aclose_http_client",
    "request_with_retry",
    "RETRYABLE_STATUS",
    "attach_standard_error_handlers",
    "error_envelope",
]
