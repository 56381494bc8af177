"""
SQLAlchemy database models for the W3Pets marketplace.

Models:
- Account: customers and sellers, with embedded seller profile fields
- RefreshToken: the single active refresh token of an account
- Product: listings owned by a seller account
"""

from .base import Base
from .account import Account, AccountRole, VerificationStatus
from .refresh_token import RefreshToken
from .product import Product, ProductStatus

__all__ = [
    "Base",
    "Account",
    "AccountRole",
    "VerificationStatus",
    "RefreshToken",
    "Product",
    "ProductStatus",
]
