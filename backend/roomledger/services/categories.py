"""Fixed vocabulary of charge locations."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from roomledger.core.config import settings
from roomledger.models import TransactionCategory
from roomledger.services.errors import LocationRequired, UnknownCategory

logger = logging.getLogger(__name__)


def seed_default_categories(session: Session, names: Optional[Iterable[str]] = None) -> int:
    """Insert any missing categories and return how many were added."""
    wanted = [name.strip() for name in (names or settings.default_categories) if name.strip()]
    existing = {
        name.lower() for name in session.scalars(select(TransactionCategory.name)).all()
    }
    added = 0
    for name in wanted:
        if name.lower() in existing:
            continue
        session.add(TransactionCategory(name=name))
        existing.add(name.lower())
        added += 1
    if added:
        session.commit()
        logger.info("Seeded %d transaction categories", added)
    return added


def list_categories(session: Session) -> List[TransactionCategory]:
    return session.scalars(select(TransactionCategory).order_by(TransactionCategory.name)).all()


def resolve_category(session: Session, category: Union[int, str, None]) -> TransactionCategory:
    """Find a category by id or case-insensitive name."""
    if category is None or (isinstance(category, str) and not category.strip()):
        raise LocationRequired()

    record = None
    if isinstance(category, int) or (isinstance(category, str) and category.strip().isdigit()):
        record = session.get(TransactionCategory, int(category))
    if record is None and isinstance(category, str):
        record = session.scalar(
            select(TransactionCategory).where(
                func.lower(TransactionCategory.name) == category.strip().lower()
            )
        )
    if record is None:
        raise UnknownCategory(f"Unknown location category '{category}'")
    return record
