from enum import Enum


class ErrorCode(str, Enum):
    INVALID_TABLE = "INVALID_TABLE"
    CAPACITY = "CAPACITY"
    PARTY_SIZE = "PARTY_SIZE"
    DATE = "DATE"
    TIME = "TIME"
    SPECIAL_REQUESTS = "SPECIAL_REQUESTS"
    SLOT_UNAVAILABLE = "SLOT_UNAVAILABLE"
    USER_LIMIT = "USER_LIMIT"
    DAY_LIMIT = "DAY_LIMIT"
    TABLE_NUMBER_TAKEN = "TABLE_NUMBER_TAKEN"
    TABLE_IN_USE = "TABLE_IN_USE"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CONTENTION = "CONTENTION"
    CONFIGURATION = "CONFIGURATION"


class ReservationError(Exception):
    """Base class for every business outcome the scheduler reports.

    Each subclass fixes the HTTP status the API answers with; ``code`` tells
    callers which rule rejected the request.
    """

    status_code = 400
    retryable = False

    def __init__(self, message: str, code: ErrorCode) -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(ReservationError):
    status_code = 400


class NotFoundError(ReservationError):
    status_code = 404

    def __init__(self, message: str, code: ErrorCode = ErrorCode.NOT_FOUND) -> None:
        super().__init__(message, code)


class AuthorizationError(ReservationError):
    status_code = 403

    def __init__(self, message: str, code: ErrorCode = ErrorCode.FORBIDDEN) -> None:
        super().__init__(message, code)


class ConflictError(ReservationError):
    status_code = 409


class InvalidTransitionError(ReservationError):
    status_code = 409

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_TRANSITION) -> None:
        super().__init__(message, code)


class RetryableConflictError(ReservationError):
    status_code = 503
    retryable = True

    def __init__(self, message: str, code: ErrorCode = ErrorCode.CONTENTION) -> None:
        super().__init__(message, code)


class ConfigurationError(ReservationError):
    """Malformed restaurant settings. Not a business outcome."""

    status_code = 500

    def __init__(self, message: str, code: ErrorCode = ErrorCode.CONFIGURATION) -> None:
        super().__init__(message, code)
