"""
Domain Errors

Every failure the booking and payment core can report. Each error
carries a machine-readable ``code`` that the API layer passes through
to the caller unchanged.
"""


class DomainError(Exception):
    """Base class for all expected, reportable failures."""

    default_code = 'DOMAIN_ERROR'

    def __init__(self, code: str | None = None, message: str = ''):
        self.code = code or self.default_code
        self.message = message or self.code
        super().__init__(self.message)


class BookingValidationError(DomainError):
    """Request is malformed or violates a business rule. Nothing was written."""

    default_code = 'VALIDATION_ERROR'


class NotFoundError(DomainError):
    """A referenced room, service or invoice does not exist."""

    default_code = 'NOT_FOUND'


class ConflictError(DomainError):
    """A requested room is already held for an overlapping interval."""

    default_code = 'ROOM_NOT_AVAILABLE'

    def __init__(self, code: str | None = None, message: str = '', *, room_id=None):
        self.room_id = room_id
        super().__init__(code, message)


class TransactionError(DomainError):
    """
    Storage failed mid-commit

    The whole transaction was rolled back; callers retry the complete
    operation rather than resuming it.
    """

    default_code = 'TRANSACTION_FAILED'
