class LMSException(Exception):
    """Base class for errors the engine surfaces to its callers."""

    status_code = 400
    code = "lms_error"

    def __init__(self, message: str, status_code: int = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(LMSException):
    status_code = 404
    code = "not_found"


class ConflictError(LMSException):
    status_code = 409
    code = "conflict"


class InsufficientFundsError(LMSException):
    status_code = 400
    code = "insufficient_funds"


class ForbiddenError(LMSException):
    status_code = 403
    code = "forbidden"


class ValidationError(LMSException):
    status_code = 400
    code = "validation_error"


class AuthenticationError(LMSException):
    status_code = 401
    code = "unauthorized"
