from enum import Enum

class ErrorCode(str, Enum):
    """
    Canonical error codes for the public error envelope and error log lines.
    """
    invalid_domain            = "invalid_domain"
    invalid_request           = "invalid_request"
    not_found                 = "not_found"
    internal                  = "internal"
    upstream_no_credential    = "upstream_no_credential"
    upstream_transport_error  = "upstream_transport_error"
    upstream_http_error       = "upstream_http_error"
    upstream_empty_output     = "upstream_empty_output"
    upstream_malformed_json   = "upstream_malformed_json"
    normalization_rejected    = "normalization_rejected"

__all__ = ["ErrorCode"]
