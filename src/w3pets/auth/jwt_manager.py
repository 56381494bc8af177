"""
JWT token management for authentication.

Four token kinds are issued, each signed with its own secret and with its own
lifetime:

- access: 15 minutes, sent as a bearer token
- refresh: 7 days, kept in an httpOnly cookie and stored server-side
- verification: 24 hours, emailed on signup
- reset: 1 hour, emailed on password reset
"""

import enum
import uuid
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from jose import JWTError, jwt

from w3pets.utils.config import Settings, get_settings
from w3pets.utils.exceptions import ConfigurationError, InvalidTokenError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


class TokenKind(str, enum.Enum):
    """Kinds of signed tokens."""
    ACCESS = "access"
    REFRESH = "refresh"
    VERIFICATION = "verification"
    RESET = "reset"


TOKEN_LIFETIMES = {
    TokenKind.ACCESS: timedelta(minutes=15),
    TokenKind.REFRESH: timedelta(days=7),
    TokenKind.VERIFICATION: timedelta(hours=24),
    TokenKind.RESET: timedelta(hours=1),
}


class JWTManager:
    """
    Manages JWT token creation and verification.

    Every token carries ``{id, email, role}`` plus a ``type`` claim naming its
    kind and a random ``jti`` so that two tokens issued in the same second
    never collide.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize JWT manager.

        Args:
            settings: Application settings (default: cached global settings)

        Raises:
            ConfigurationError: If a signing secret is not configured
        """
        settings = settings or get_settings()

        self.algorithm = settings.jwt_algorithm
        self.secrets = {
            TokenKind.ACCESS: settings.jwt_access_secret,
            TokenKind.REFRESH: settings.jwt_refresh_secret,
            TokenKind.VERIFICATION: settings.jwt_verification_secret,
            TokenKind.RESET: settings.jwt_reset_secret,
        }

        missing = [kind.value for kind, secret in self.secrets.items() if not secret]
        if missing:
            raise ConfigurationError(
                "JWT signing secrets are required",
                details={"missing": missing}
            )

        logger.info(f"Initialized JWT manager (algorithm={self.algorithm})")

    def create_token(
        self,
        kind: TokenKind,
        account_id: Optional[int] = None,
        email: Optional[str] = None,
        role: Optional[str] = None,
    ) -> str:
        """
        Sign a token of the given kind.

        Args:
            kind: Token kind, selects the secret and the lifetime
            account_id: Account id (absent for signup verification tokens)
            email: Account email
            role: Account role

        Returns:
            JWT string
        """
        now = datetime.utcnow()
        lifetime = TOKEN_LIFETIMES[kind]

        payload = {
            "id": account_id,
            "email": email,
            "role": role,
            "type": kind.value,
            "iat": now,
            "exp": now + lifetime,
            "jti": uuid.uuid4().hex,
        }

        token = jwt.encode(payload, self.secrets[kind], algorithm=self.algorithm)
        logger.debug(f"Created {kind.value} token for {email} (expires in {lifetime})")

        return token

    def issue(self, account, kind: TokenKind) -> str:
        """Sign a token of the given kind for an account."""
        role = account.role.value if hasattr(account.role, "value") else account.role
        return self.create_token(kind, account_id=account.id, email=account.email, role=role)

    def verify_token(self, token: str, kind: TokenKind) -> Dict[str, Any]:
        """
        Verify and decode a token.

        Args:
            token: JWT string
            kind: Expected token kind

        Returns:
            Decoded token payload

        Raises:
            InvalidTokenError: If the signature, expiry or kind does not match
        """
        try:
            payload = jwt.decode(token, self.secrets[kind], algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"{kind.value} token verification failed: {e}")
            raise InvalidTokenError(f"Invalid or expired {kind.value} token")

        if payload.get("type") != kind.value:
            logger.warning(f"Token type mismatch: expected {kind.value}, got {payload.get('type')}")
            raise InvalidTokenError(f"Invalid or expired {kind.value} token")

        return payload


# Global JWT manager instance
_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get or create global JWT manager instance."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


def create_access_token(account) -> str:
    """Convenience function to create an access token."""
    return get_jwt_manager().issue(account, TokenKind.ACCESS)


def verify_token(token: str, kind: TokenKind = TokenKind.ACCESS) -> Dict[str, Any]:
    """Convenience function to verify a token."""
    return get_jwt_manager().verify_token(token, kind)
