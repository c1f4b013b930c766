from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from roomledger.db.session import Base


class TransactionClearing(Base):
    """Checkout event settling every open transaction of a room."""

    __tablename__ = "transaction_clearing"

    id = Column(Integer, primary_key=True)
    room_id = Column(String(32), nullable=False, index=True)
    cleared_by = Column(String(128), nullable=False)
    cleared_amount = Column(Numeric(12, 2), default=0, nullable=False)
    cleared_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    notes = Column(Text, nullable=True)

    transactions = relationship("Transaction", back_populates="clearing")
