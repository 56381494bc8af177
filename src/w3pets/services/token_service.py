"""
Session token issuance, refresh-token rotation and revocation.
"""

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from w3pets.auth.jwt_manager import JWTManager, TokenKind, TOKEN_LIFETIMES, get_jwt_manager
from w3pets.database.models import Account, RefreshToken
from w3pets.utils.exceptions import AuthenticationError, InvalidTokenError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


def hash_refresh_token(token: str) -> str:
    """SHA256 digest stored instead of the raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass
class SessionTokens:
    """Access and refresh token pair handed to a client."""
    access_token: str
    refresh_token: str


class TokenService:
    """
    Issues session tokens and keeps exactly one stored refresh token per account.

    Methods only stage changes on the session; callers own the transaction.
    """

    def __init__(self, db: Session, jwt_manager: Optional[JWTManager] = None):
        self.db = db
        self.jwt = jwt_manager or get_jwt_manager()

    def issue(self, account: Account, kind: TokenKind) -> str:
        """Sign a token of ``kind`` for ``account``."""
        return self.jwt.issue(account, kind)

    def verify(self, token: str, kind: TokenKind) -> dict:
        """Verify a token of ``kind``; raises InvalidTokenError."""
        return self.jwt.verify_token(token, kind)

    def rotate(self, account: Account) -> str:
        """
        Issue a new refresh token and overwrite the stored one.

        The previous refresh token of the account stops validating as soon as
        the session is committed.

        Returns:
            The new refresh token
        """
        token = self.jwt.issue(account, TokenKind.REFRESH)
        token_hash = hash_refresh_token(token)
        expires_at = datetime.utcnow() + TOKEN_LIFETIMES[TokenKind.REFRESH]

        stored = self.db.query(RefreshToken).filter(RefreshToken.account_id == account.id).first()
        if stored:
            stored.token_hash = token_hash
            stored.expires_at = expires_at
        else:
            self.db.add(RefreshToken(account_id=account.id, token_hash=token_hash, expires_at=expires_at))

        self.db.flush()
        logger.debug(f"Rotated refresh token for account {account.id}")
        return token

    def issue_session(self, account: Account) -> SessionTokens:
        """Rotate the refresh token and sign a fresh access token."""
        refresh_token = self.rotate(account)
        access_token = self.jwt.issue(account, TokenKind.ACCESS)
        return SessionTokens(access_token=access_token, refresh_token=refresh_token)

    def validate_refresh(self, token: str) -> Account:
        """
        Check a refresh token against the stored one.

        Raises:
            AuthenticationError: If the token is invalid, expired, or is not
                the account's current refresh token
        """
        try:
            payload = self.jwt.verify_token(token, TokenKind.REFRESH)
        except InvalidTokenError:
            raise AuthenticationError("Invalid or expired refresh token")

        account_id = payload.get("id")
        stored = self.db.query(RefreshToken).filter(RefreshToken.account_id == account_id).first()

        if not stored or not hmac.compare_digest(stored.token_hash, hash_refresh_token(token)):
            logger.warning(f"Refresh token mismatch for account {account_id}")
            raise AuthenticationError("Refresh token not found or does not match")

        if stored.is_expired():
            raise AuthenticationError("Invalid or expired refresh token")

        account = self.db.query(Account).filter(Account.id == account_id).first()
        if not account:
            raise AuthenticationError("User not found")

        return account

    def revoke(self, account: Account) -> bool:
        """
        Delete the stored refresh token of an account.

        Returns:
            True if a token was deleted
        """
        deleted = self.db.query(RefreshToken).filter(RefreshToken.account_id == account.id).delete()
        self.db.flush()
        return deleted > 0
