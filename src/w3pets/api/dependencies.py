"""
Service factories used as FastAPI dependencies.

Tests swap the collaborators through ``app.dependency_overrides`` on
``get_cache``, ``get_email_sender`` and ``get_file_storage``.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from w3pets.cache.redis_cache import RedisCache, get_cache
from w3pets.database.connection import get_db
from w3pets.services.account_service import AccountService
from w3pets.services.email_service import EmailSender, get_email_sender
from w3pets.services.file_storage import FileStorage, get_file_storage
from w3pets.services.onboarding_service import OnboardingService


def get_account_service(
    db: Session = Depends(get_db),
    cache: RedisCache = Depends(get_cache),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AccountService:
    return AccountService(db, cache, email_sender)


def get_onboarding_service(
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
) -> OnboardingService:
    return OnboardingService(db, storage)
