"""Domain exceptions for the ledger and commission workflow.

Services raise these; admin procedures and HTTP handlers translate them into
user-facing results at the outermost layer.
"""


class LedgerError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


class UnauthorizedError(LedgerError):
    """Missing session or insufficient role."""

    status_code = 401


class ValidationError(LedgerError):
    """Invalid input."""

    status_code = 400


class NotFoundError(LedgerError):
    """Referenced record does not exist."""

    status_code = 404


class InvalidStateError(LedgerError):
    """Record is not in a state that allows the requested transition."""

    status_code = 409


class InsufficientBalanceError(LedgerError):
    """Wallet balance is lower than the requested debit."""

    status_code = 422

    def __init__(self, message: str = "Insufficient wallet balance", balance=None, requested=None):
        super().__init__(message)
        self.balance = balance
        self.requested = requested


class DeliveryError(LedgerError):
    """Outbound email or push delivery failed."""
