"""
FastAPI middleware components.
"""

from .session import require_authenticated, reject_if_authenticated, get_current_account, require_seller_role
from .error_handler import RequestLoggingMiddleware, register_error_handlers

__all__ = [
    "require_authenticated",
    "reject_if_authenticated",
    "get_current_account",
    "require_seller_role",
    "RequestLoggingMiddleware",
    "register_error_handlers",
]
