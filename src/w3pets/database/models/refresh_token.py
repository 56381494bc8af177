"""
RefreshToken model - the single active refresh token of an account.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from .base import Base


class RefreshToken(Base):
    """
    Refresh token for JWT authentication.

    One row per account (unique ``account_id``); issuing a new token
    overwrites the row, which invalidates the previous token. Only a SHA-256
    hash of the token is stored.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)

    account_id = Column(
        Integer,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    token_hash = Column(String(64), nullable=False)

    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    account = relationship("Account", back_populates="refresh_token")

    def __repr__(self):
        return f"<RefreshToken(id={self.id}, account_id={self.account_id}, expires_at={self.expires_at})>"

    def is_expired(self) -> bool:
        """Check if token is expired."""
        return datetime.utcnow() > self.expires_at
