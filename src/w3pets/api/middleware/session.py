"""
Session gates for route handlers.

The access token is read from the ``Authorization`` header, either bare or
with a ``Bearer`` prefix. Gates are plain FastAPI dependencies:

    @router.get("/me")
    def me(claims: dict = Depends(require_authenticated)):
        ...
"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from w3pets.auth import verify_token
from w3pets.auth.jwt_manager import TokenKind
from w3pets.database.connection import get_db
from w3pets.database.models import Account
from w3pets.monitoring.sentry_config import set_user_context
from w3pets.utils.exceptions import (
    AuthenticationError,
    ForbiddenError,
    InternalError,
    InvalidTokenError,
    NotFoundError,
)
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token or None


def require_authenticated(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> dict:
    """
    Require a valid access token.

    The decoded claims are returned and also attached to ``request.state.claims``.

    Raises:
        AuthenticationError: If the token is missing, invalid or expired
    """
    token = _extract_token(authorization)
    if not token:
        raise AuthenticationError("No token provided")

    try:
        claims = verify_token(token, TokenKind.ACCESS)
    except InvalidTokenError:
        logger.warning(f"Rejected access token for {request.url.path}")
        raise AuthenticationError("Invalid or expired token")

    request.state.claims = claims
    set_user_context(claims.get("id"), claims.get("email"), claims.get("role"))
    return claims


def reject_if_authenticated(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> None:
    """
    Only let anonymous callers through, for login and signup style routes.

    A missing or invalid token counts as anonymous.

    Raises:
        AuthenticationError: If a valid access token is presented
    """
    token = _extract_token(authorization)
    if not token:
        return

    try:
        verify_token(token, TokenKind.ACCESS)
    except InvalidTokenError:
        return

    raise AuthenticationError("You are already logged in")


def get_current_account(
    claims: dict = Depends(require_authenticated),
    db: Session = Depends(get_db),
) -> Account:
    """
    Load the account behind the access token.

    Raises:
        NotFoundError: If the account no longer exists
    """
    try:
        account = db.query(Account).filter(Account.id == claims.get("id")).first()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load account {claims.get('id')}: {e}")
        raise InternalError("Server error", details={"error": str(e)}) from e

    if not account:
        raise NotFoundError("User not found")

    return account


def require_seller_role(account: Account = Depends(get_current_account)) -> Account:
    """
    Require a seller account.

    Raises:
        ForbiddenError: If the account is not a seller
    """
    if not account.is_seller:
        logger.warning(f"Non-seller account {account.id} attempted seller access")
        raise ForbiddenError("Access denied. Seller role required")
    return account
