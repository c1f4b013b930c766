"""Error taxonomy for ledger operations.

Every error carries a short machine-readable ``code`` and a readable message
that is safe to show to staff. The API layer maps each class to an HTTP status.
"""

from __future__ import annotations

from typing import Optional


class LedgerError(Exception):
    code = "ledger_error"
    default_message = "ledger operation failed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# Validation: raised before any store call.
class LedgerValidationError(LedgerError):
    code = "validation_error"
    default_message = "invalid request"


class LocationRequired(LedgerValidationError):
    code = "location_required"
    default_message = "location required"


class UnknownCategory(LedgerValidationError):
    code = "unknown_category"
    default_message = "unknown location category"


class InvalidAmount(LedgerValidationError):
    code = "invalid_amount"
    default_message = "invalid amount"


class RoomRequired(LedgerValidationError):
    code = "room_required"
    default_message = "room required"


class InvalidStatus(LedgerValidationError):
    code = "invalid_status"
    default_message = "invalid target status"


class EmptySelection(LedgerValidationError):
    code = "empty_selection"
    default_message = "no transactions selected"


class ActorRequired(LedgerValidationError):
    code = "actor_required"
    default_message = "actor name required"


class ActionDenied(LedgerError):
    code = "admin_status_closed"
    default_message = "action denied: transaction is closed"


class TransactionNotFound(LedgerError):
    code = "not_found"
    default_message = "transaction not found"


class NothingToClear(LedgerError):
    code = "nothing_to_clear"
    default_message = "no open transactions for room"


class StoreError(LedgerError):
    code = "store_error"
    default_message = "failed to save changes"


class BulkUpdateAborted(StoreError):
    """A store failure stopped a bulk update; ``result`` holds the progress made."""

    code = "bulk_aborted"
    default_message = "failed to update transaction status"

    def __init__(self, result, message: Optional[str] = None):
        super().__init__(message)
        self.result = result
