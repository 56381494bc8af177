"""
Password hashing, verification and strength policy.
"""

import re

import bcrypt

from w3pets.utils.exceptions import ValidationError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


MIN_PASSWORD_LENGTH = 8
SPECIAL_CHARACTERS = "!@#$%^&*"


class PasswordManager:
    """
    Manages password hashing and verification using bcrypt.
    """

    def __init__(self, rounds: int = 10):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """
        Hash a plaintext password.

        Args:
            password: Plaintext password

        Returns:
            Hashed password string
        """
        if not password:
            raise ValidationError("Password is required", field="password")

        # Bcrypt only accepts up to 72 bytes
        password_bytes = password.encode('utf-8')[:72]
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password_bytes, salt)
        return hashed.decode('utf-8')

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            plain_password: Plaintext password to verify
            hashed_password: Hashed password to compare against

        Returns:
            True if password matches, False otherwise
        """
        if not plain_password or not hashed_password:
            return False

        try:
            password_bytes = plain_password.encode('utf-8')[:72]
            hashed_bytes = hashed_password.encode('utf-8')
            return bcrypt.checkpw(password_bytes, hashed_bytes)
        except ValueError as e:
            logger.error(f"Password verification failed: {e}")
            return False


def validate_password_strength(password: str, field: str = "newPassword") -> None:
    """
    Enforce the password policy.

    Raises:
        ValidationError: If the password is shorter than 8 characters or lacks
            a lowercase letter, an uppercase letter, a digit or a special character
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field=field
        )

    checks = (
        re.search(r"[a-z]", password),
        re.search(r"[A-Z]", password),
        re.search(r"\d", password),
        re.search(f"[{re.escape(SPECIAL_CHARACTERS)}]", password),
    )
    if not all(checks):
        raise ValidationError(
            "Password must contain uppercase, lowercase, numbers, and special characters",
            field=field
        )


# Global password manager instance
_password_manager = PasswordManager()


def hash_password(password: str) -> str:
    """Convenience function to hash password."""
    return _password_manager.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Convenience function to verify password."""
    return _password_manager.verify(plain_password, hashed_password)
