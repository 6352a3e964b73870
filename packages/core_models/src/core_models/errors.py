from core_logging.error_codes import ErrorCode


class InputError(ValueError):
    """Caller supplied an unusable request. Fatal, never cached, never retried."""

    code: ErrorCode = ErrorCode.invalid_request

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidDomain(InputError):
    code = ErrorCode.invalid_domain


class InvalidRequest(InputError):
    code = ErrorCode.invalid_request
