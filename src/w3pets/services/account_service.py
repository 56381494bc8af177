"""
Account lifecycle: signup with email verification, login, session refresh,
logout, password reset and account deletion.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from w3pets.auth.jwt_manager import TokenKind
from w3pets.auth.password import hash_password, verify_password, validate_password_strength
from w3pets.cache.redis_cache import RedisCache
from w3pets.database.models import Account, AccountRole
from w3pets.services.email_service import EmailSender, send_verification_email, send_password_reset_email
from w3pets.services.pending_store import verification_store, reset_store
from w3pets.services.token_service import TokenService, SessionTokens
from w3pets.utils.config import Settings, get_settings
from w3pets.utils.exceptions import (
    AuthenticationError,
    ConflictError,
    ExpiredOrInvalidTokenError,
    InvalidTokenError,
    NotFoundError,
    ValidationError,
)
from w3pets.utils.logger import get_logger
from w3pets.utils.transaction import transaction_scope

logger = get_logger(__name__)


@dataclass
class AuthResult:
    """Outcome of an operation that starts a session."""
    account: Account
    tokens: SessionTokens
    redirect_url: Optional[str] = None


class AccountService:
    """Signup, verification, login and password flows."""

    def __init__(
        self,
        db: Session,
        cache: RedisCache,
        email_sender: EmailSender,
        settings: Optional[Settings] = None,
        token_service: Optional[TokenService] = None,
    ):
        self.db = db
        self.email_sender = email_sender
        self.settings = settings or get_settings()
        self.tokens = token_service or TokenService(db)
        self.pending_signups = verification_store(cache)
        self.pending_resets = reset_store(cache)

    def get_account(self, account_id: int) -> Account:
        account = self.db.query(Account).filter(Account.id == account_id).first()
        if not account:
            raise NotFoundError("User not found")
        return account

    def _find_by_email(self, email: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.email == email).first()

    def _identity_taken(self, email: str, username: str) -> bool:
        return self.db.query(Account.id).filter(
            or_(Account.email == email, Account.username == username)
        ).first() is not None

    def signup(
        self,
        email: str,
        username: str,
        password: str,
        full_name: Optional[str] = None,
        redirect_url: Optional[str] = None,
    ) -> str:
        """
        Park a signup until its email address is confirmed.

        No account row is written; the hashed password and profile wait in
        the pending store under a freshly minted verification token that is
        emailed to the user.

        Returns:
            The verification token

        Raises:
            ConflictError: If the email or username is already registered
            EmailDeliveryError: If the verification email cannot be sent
        """
        email = email.lower()
        if self._identity_taken(email, username):
            raise ConflictError("User already exists")

        token = self.tokens.jwt.create_token(TokenKind.VERIFICATION, email=email)
        self.pending_signups.put(token, {
            "email": email,
            "username": username,
            "full_name": full_name,
            "password_hash": hash_password(password),
            "redirect_url": redirect_url,
        })

        link = f"{self.settings.frontend_url.rstrip('/')}/verify-email/{token}"
        send_verification_email(self.email_sender, email, link)

        logger.info(f"Verification link sent to {email}")
        return token

    def verify_email(self, token: str) -> AuthResult:
        """
        Create the account for a pending signup and start its session.

        Raises:
            ExpiredOrInvalidTokenError: If the token is unknown, tampered or expired
            ConflictError: If the email or username was registered in the meantime
        """
        try:
            self.tokens.verify(token, TokenKind.VERIFICATION)
        except InvalidTokenError:
            raise ExpiredOrInvalidTokenError("Invalid or expired verification link")

        record = self.pending_signups.consume(token)

        if self._identity_taken(record["email"], record["username"]):
            raise ConflictError("User already exists")

        try:
            with transaction_scope(self.db, "account creation"):
                account = Account(
                    email=record["email"],
                    username=record["username"],
                    full_name=record.get("full_name"),
                    password_hash=record["password_hash"],
                    password_changed_at=datetime.utcnow(),
                    role=AccountRole.CUSTOMER,
                    is_seller=False,
                    is_verified=True,
                )
                self.db.add(account)
                self.db.flush()
                session_tokens = self.tokens.issue_session(account)
        except IntegrityError:
            raise ConflictError("User already exists")

        logger.info(f"Email verified, account created: {account.email} ({account.id})")
        return AuthResult(account=account, tokens=session_tokens, redirect_url=record.get("redirect_url"))

    def login(self, email: Optional[str], password: Optional[str]) -> AuthResult:
        """
        Authenticate with email and password.

        Any previously issued refresh token of the account stops working.
        """
        if not email or not password:
            raise ValidationError("Email and password are required", field="email" if not email else "password")

        account = self._find_by_email(email.lower())
        if not account or not verify_password(password, account.password_hash):
            raise AuthenticationError("Invalid email or password")

        with transaction_scope(self.db, "login"):
            account.last_login_at = datetime.utcnow()
            session_tokens = self.tokens.issue_session(account)

        logger.info(f"User logged in: {account.email}")
        return AuthResult(account=account, tokens=session_tokens)

    def refresh(self, refresh_token: Optional[str]) -> AuthResult:
        """
        Exchange the current refresh token for a new token pair.

        Raises:
            AuthenticationError: If the token is missing, invalid, or not the
                account's current refresh token
        """
        if not refresh_token:
            raise AuthenticationError("No refresh token provided")

        account = self.tokens.validate_refresh(refresh_token)

        with transaction_scope(self.db, "token refresh"):
            session_tokens = self.tokens.issue_session(account)

        logger.info(f"Token refreshed for user: {account.email}")
        return AuthResult(account=account, tokens=session_tokens)

    def logout(self, account: Account) -> None:
        with transaction_scope(self.db, "logout"):
            self.tokens.revoke(account)
        logger.info(f"User logged out: {account.email}")

    def forgot_password(self, email: str) -> None:
        """
        Email a password reset link if the address belongs to an account.

        Unknown addresses are ignored silently so that callers cannot discover
        which emails are registered.
        """
        account = self._find_by_email(email.lower())
        if not account:
            logger.info("Password reset requested for unknown email")
            return

        token = self.tokens.issue(account, TokenKind.RESET)
        self.pending_resets.put(token, {"account_id": account.id})

        link = f"{self.settings.frontend_url.rstrip('/')}/forgot_reset/{token}"
        send_password_reset_email(self.email_sender, account.email, link)

        logger.info(f"Password reset link sent to {account.email}")

    def reset_password(self, token: str, new_password: str) -> AuthResult:
        """
        Set a new password using a reset token. Each token works once.

        Raises:
            ExpiredOrInvalidTokenError: If the token is unknown, already used or expired
        """
        try:
            payload = self.tokens.verify(token, TokenKind.RESET)
        except InvalidTokenError:
            raise ExpiredOrInvalidTokenError("Invalid or expired reset link")

        record = self.pending_resets.consume(token)
        if record["account_id"] != payload.get("id"):
            raise ExpiredOrInvalidTokenError("Invalid or expired reset link")

        account = self.get_account(record["account_id"])

        with transaction_scope(self.db, "password reset"):
            account.password_hash = hash_password(new_password)
            account.password_changed_at = datetime.utcnow()
            session_tokens = self.tokens.issue_session(account)

        logger.info(f"Password reset for user: {account.email}")
        return AuthResult(account=account, tokens=session_tokens)

    def change_password(self, account: Account, current_password: Optional[str], new_password: str) -> None:
        """
        Change the password of a signed-in account.

        Raises:
            ValidationError: If the new password is too weak or the current one is wrong
        """
        validate_password_strength(new_password)

        if not verify_password(current_password or "", account.password_hash):
            raise ValidationError("Current password is incorrect", field="currentPassword")

        with transaction_scope(self.db, "password change"):
            account.password_hash = hash_password(new_password)
            account.password_changed_at = datetime.utcnow()

        logger.info(f"Password changed for user: {account.email}")

    def delete_account(self, account: Account) -> None:
        """Delete an account together with its refresh token and listings."""
        email = account.email
        with transaction_scope(self.db, "account deletion"):
            self.db.delete(account)
        logger.info(f"Account deleted: {email}")
