"""Business-rule failures raised by the ledger services.

Every error carries a ``kind`` (the name callers switch on) and the HTTP
status the API layer answers with. Extra keyword details are passed through
to the response body.
"""
from decimal import Decimal
from typing import Any, Dict


class LedgerError(Exception):
    kind = "LedgerError"
    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body = {"detail": self.message, "error": self.kind}
        for key, value in self.details.items():
            body[key] = str(value) if isinstance(value, Decimal) else value
        return body


class ValidationError(LedgerError):
    kind = "ValidationError"


class InvalidAmount(ValidationError):
    pass


class EmptyParticipants(ValidationError):
    pass


class DuplicateParticipant(ValidationError):
    pass


class SplitMismatch(LedgerError):
    kind = "SplitMismatch"

    def __init__(self, expected: Decimal, actual: Decimal):
        super().__init__(
            f"Total split amount {actual} must equal expense amount {expected}",
            expected=expected, actual=actual,
        )
        self.expected = expected
        self.actual = actual


class NotFound(LedgerError):
    kind = "NotFound"
    status_code = 404


class Forbidden(LedgerError):
    kind = "Forbidden"
    status_code = 403


class SettlementExceedsDebt(LedgerError):
    kind = "SettlementExceedsDebt"

    def __init__(self, requested: Decimal, outstanding: Decimal):
        super().__init__(
            f"Settlement amount {requested} exceeds outstanding balance {outstanding}",
            requested=requested, outstanding=outstanding,
        )
        self.requested = requested
        self.outstanding = outstanding


class InvalidStateTransition(LedgerError):
    kind = "InvalidStateTransition"
    status_code = 409
