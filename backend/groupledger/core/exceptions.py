"""
Ledger error taxonomy.

Services raise these instead of HTTPException; the API layer maps each class
to its status code through a single exception handler.
"""
from decimal import Decimal
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for all errors raised by the ledger engine."""
    status_code = 400
    code = "ledger_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        data = {"code": self.code}
        for key, value in self.details.items():
            data[key] = str(value) if isinstance(value, Decimal) else value
        return data


class ValidationError(LedgerError):
    """Malformed input: bad amount, splits not summing, member not in group."""
    status_code = 422
    code = "validation_error"


class NotFoundError(LedgerError):
    """Referenced group, expense, split or member does not exist."""
    status_code = 404
    code = "not_found"


class SettlementError(LedgerError):
    """Settlement precondition violated. Carries the computed total owed."""

    def __init__(self, message: str, total_owed: Optional[Decimal] = None, **details: Any):
        super().__init__(message, total_owed=total_owed, **details)
        self.total_owed = total_owed


class NoDebtError(SettlementError):
    status_code = 409
    code = "no_debt"


class OverpaymentError(SettlementError):
    status_code = 422
    code = "overpayment"


class InvalidAmountError(SettlementError):
    status_code = 422
    code = "invalid_amount"


class ConcurrencyConflictError(LedgerError):
    """Another write changed the ledger between read and commit; recompute and resubmit."""
    status_code = 409
    code = "concurrency_conflict"


class NotificationDeliveryError(LedgerError):
    """Raised by notifiers only. Never rolls back a committed settlement."""
    status_code = 502
    code = "notification_delivery"
