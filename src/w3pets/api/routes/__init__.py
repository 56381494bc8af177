"""
API route modules.
"""

from . import auth, users, seller, health

__all__ = ["auth", "users", "seller", "health"]
