"""Domain errors raised by the gateway and service layers.

Routes translate these into HTTP responses; nothing below the API layer
knows about status codes.
"""


class LoanLinkError(Exception):
    """Base class for every expected failure in the service."""

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)


class ValidationError(LoanLinkError):
    """A required field is missing or invalid, or an id is malformed."""


class NotFoundError(LoanLinkError):
    """No record matches the lookup, update or delete target."""


class StoreUnavailable(LoanLinkError):
    """The document store has no live connection."""

    def __init__(self, message: str = "Database service unavailable."):
        super().__init__(message)


class StoreOperationFailed(LoanLinkError):
    """The driver rejected or failed an operation."""


class PaymentProviderError(LoanLinkError):
    """The payment provider refused the request or could not be reached."""


class DuplicateKey(StoreOperationFailed):
    """A write collided with a unique index."""
