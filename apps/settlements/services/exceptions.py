"""
Domain exceptions for the settlements services.

Every exception carries the HTTP status the API boundary answers with,
so views and the exception handler never need a lookup table:

    SettlementServiceError (base)
    ├── AuthenticationError   401
    ├── AuthorizationError    403
    ├── NotFoundError         404
    ├── ValidationError       400
    └── ClosedLedgerError     400
"""


class SettlementServiceError(Exception):
    """Base exception for all settlement service errors."""

    status_code = 400
    default_message = 'Settlement operation failed.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)


class AuthenticationError(SettlementServiceError):
    """Raised when no authenticated caller is supplied."""

    status_code = 401
    default_message = 'Authentication required.'


class AuthorizationError(SettlementServiceError):
    """Raised when the caller is not the organizer or the linked participant."""

    status_code = 403
    default_message = 'You do not have permission to perform this action.'


class NotFoundError(SettlementServiceError):
    """Raised when an event, participant, expense or payment does not resolve within the event."""

    status_code = 404
    default_message = 'Not found.'


class ValidationError(SettlementServiceError):
    """Raised on malformed input or an operation invalid for the event's state."""

    status_code = 400
    default_message = 'Invalid input.'


class ClosedLedgerError(SettlementServiceError):
    """Raised when a mutation is attempted after the event was closed."""

    status_code = 400
    default_message = 'This event is closed; the ledger can no longer be changed.'
