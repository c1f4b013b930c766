from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from roomledger.db.session import Base

STATUS_PENDING = "pending"
STATUS_PAID = "paid"
STATUS_CANCELLED = "cancelled"
STATUS_APPROVED = "approved"
STATUSES = (STATUS_PENDING, STATUS_PAID, STATUS_CANCELLED, STATUS_APPROVED)

ADMIN_OPEN = "open"
ADMIN_CLOSED = "closed"
ADMIN_STATUSES = (ADMIN_OPEN, ADMIN_CLOSED)

# previous_status recorded on the first log row of every transaction.
CREATED_MARKER = "created"


class Transaction(Base):
    """A single charge attributed to a room."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    room_id = Column(String(32), nullable=False, index=True)
    guest_name = Column(String(128), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(64), nullable=False)
    category_id = Column(
        Integer, ForeignKey("transaction_categories.id", ondelete="SET NULL"), nullable=True
    )
    type = Column(String(32), default="charge", nullable=False)
    date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    waiter_name = Column(String(128), nullable=True)
    status = Column(String(32), default=STATUS_PENDING, nullable=False)
    admin_status = Column(String(16), default=ADMIN_OPEN, nullable=False)
    clearing_id = Column(
        Integer, ForeignKey("transaction_clearing.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    category = relationship("TransactionCategory", back_populates="transactions")
    clearing = relationship("TransactionClearing", back_populates="transactions")
    logs = relationship(
        "TransactionLog",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionLog.id",
    )

    @property
    def is_locked(self) -> bool:
        return self.admin_status == ADMIN_CLOSED


class TransactionLog(Base):
    """Append-only audit row for one status transition."""

    __tablename__ = "transaction_logs"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(
        Integer, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    changed_by_name = Column(String(128), nullable=False)
    previous_status = Column(String(32), nullable=False)
    new_status = Column(String(32), nullable=False)
    changed_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    transaction = relationship("Transaction", back_populates="logs")
