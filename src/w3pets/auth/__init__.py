"""
Authentication utilities for W3Pets.
"""

from .jwt_manager import (
    JWTManager,
    TokenKind,
    get_jwt_manager,
    create_access_token,
    verify_token,
)
from .password import PasswordManager, hash_password, verify_password, validate_password_strength

__all__ = [
    "JWTManager",
    "TokenKind",
    "get_jwt_manager",
    "create_access_token",
    "verify_token",
    "PasswordManager",
    "hash_password",
    "verify_password",
    "validate_password_strength",
]
