"""
Unit-of-work helper for SQLAlchemy sessions.

Services group the writes of one operation (account creation and its first
refresh token, the seller update and the first listing...) under a single
``transaction_scope`` so they land together or not at all.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def transaction_scope(db: Session, label: str = "transaction") -> Iterator[Session]:
    """
    Commit the writes made inside the block, or roll all of them back.

    Usage:
        with transaction_scope(db, "seller onboarding"):
            account.is_seller = True
            db.add(product)

    Args:
        db: SQLAlchemy session; it is left open for the request to close
        label: What the transaction does, used in log lines

    Raises:
        Whatever the block raised, after the rollback
    """
    try:
        yield db
    except Exception as e:
        db.rollback()
        logger.warning(f"{label.capitalize()} rolled back: {e}")
        raise

    try:
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error(f"{label.capitalize()} failed to commit: {e}")
        raise

    logger.debug(f"{label.capitalize()} committed")
