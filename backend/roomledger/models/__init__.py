"""SQLAlchemy models for the room ledger."""

from roomledger.models.category import TransactionCategory
from roomledger.models.clearing import TransactionClearing
from roomledger.models.staff import StaffMember
from roomledger.models.transaction import Transaction, TransactionLog

__all__ = [
    "Transaction",
    "TransactionLog",
    "TransactionCategory",
    "TransactionClearing",
    "StaffMember",
]
