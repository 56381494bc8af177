"""
Sentry integration for error tracking.

Initialised only when ``SENTRY_DSN`` is configured.
"""

import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from w3pets.utils.logger import get_logger

logger = get_logger(__name__)


def setup_sentry(
    dsn: Optional[str] = None,
    environment: Optional[str] = None,
    release: Optional[str] = None,
    traces_sample_rate: float = 0.1,
) -> bool:
    """
    Initialize the Sentry SDK.

    Args:
        dsn: Sentry DSN; Sentry stays disabled when empty
        environment: Deployment environment
        release: Release version (e.g. "w3pets-api@1.0.0")
        traces_sample_rate: Share of transactions to trace (0.0-1.0)

    Returns:
        True if Sentry was initialised
    """
    if not dsn:
        logger.warning("Sentry DSN not configured, skipping Sentry initialization")
        return False

    sentry_sdk.init(
        dsn=dsn,
        environment=environment or "development",
        release=release,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
            RedisIntegration(),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR,
            ),
        ],
        traces_sample_rate=traces_sample_rate,
        before_send=before_send_filter,
        attach_stacktrace=True,
        send_default_pii=False,  # passwords and tokens travel in request bodies
        max_breadcrumbs=50,
    )

    logger.info(f"Sentry initialized: environment={environment}, release={release}")
    return True


def before_send_filter(event, hint):
    """
    Drop client errors before they reach Sentry.

    Exceptions carrying a 4xx ``status_code`` are expected outcomes
    (bad input, expired links, wrong password).
    """
    if "exc_info" in hint:
        _, exc_value, _ = hint["exc_info"]
        status_code = getattr(exc_value, "status_code", 500)
        if 400 <= status_code < 500:
            return None

    return event


def set_user_context(account_id: int, email: Optional[str] = None, role: Optional[str] = None):
    """Attach the signed-in account to subsequent Sentry events."""
    sentry_sdk.set_user({"id": str(account_id), "email": email})
    if role:
        sentry_sdk.set_tag("role", role)
