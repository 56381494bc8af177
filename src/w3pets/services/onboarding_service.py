"""
Seller onboarding and seller settings.

Onboarding turns a customer into a seller and creates their first listing.
Everything the request carries is validated before anything is written, and
the account update and the product insert share one transaction: either the
account becomes a seller with a listing, or nothing changes.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from w3pets.database.models import Account, AccountRole, Product, ProductStatus, VerificationStatus
from w3pets.services.file_storage import FileStorage, UploadedFile, validate_upload
from w3pets.services.payloads import (
    BecomeSellerRequest,
    NotificationSettingsUpdate,
    OnboardingListing,
    OnboardingProfile,
    ProfileSettingsUpdate,
    parse_payload,
)
from w3pets.utils.exceptions import InternalError, StorageError, ValidationError
from w3pets.utils.logger import get_logger
from w3pets.utils.transaction import transaction_scope

logger = get_logger(__name__)


MAX_PRODUCT_PHOTOS = 5

RawPayload = Union[str, bytes, Dict[str, Any], None]


@dataclass
class OnboardingFiles:
    """Files of the onboarding form, grouped by field."""
    brand_image: Optional[UploadedFile] = None
    product_photos: Optional[List[UploadedFile]] = None
    product_video: Optional[UploadedFile] = None
    verification_id: Optional[UploadedFile] = None


@dataclass
class MediaUrls:
    """Public URLs of the stored onboarding files."""
    brand_image: str
    product_photos: List[str]
    product_video: Optional[str] = None
    verification_id: Optional[str] = None

    @property
    def all_urls(self) -> List[str]:
        urls = [self.brand_image] + list(self.product_photos)
        return urls + [url for url in (self.product_video, self.verification_id) if url]


def _present(upload: Optional[UploadedFile]) -> Optional[UploadedFile]:
    if upload is None or upload.is_empty:
        return None
    return upload


class OnboardingService:
    """Seller onboarding workflow and seller profile settings."""

    def __init__(self, db: Session, storage: FileStorage):
        self.db = db
        self.storage = storage

    def become_seller(self, account: Account, data: BecomeSellerRequest) -> Account:
        """
        Upgrade an account to seller with business details only.

        Kept for older clients; ``onboard`` is the full flow.
        """
        try:
            with transaction_scope(self.db, "seller upgrade"):
                for column, value in data.to_account_fields().items():
                    setattr(account, column, value)
                account.role = AccountRole.SELLER
                account.is_seller = True
        except SQLAlchemyError as e:
            raise InternalError("Error upgrading to seller", details={"error": str(e)}) from e

        logger.info(f"Account {account.id} upgraded to seller")
        return account

    def _validate_files(self, files: OnboardingFiles) -> OnboardingFiles:
        brand_image = _present(files.brand_image)
        if brand_image is None:
            raise ValidationError("Brand image is required", field="brand_image")

        photos = [photo for photo in (files.product_photos or []) if not photo.is_empty]
        if not photos:
            raise ValidationError("At least one product photo is required", field="product_photos")
        if len(photos) > MAX_PRODUCT_PHOTOS:
            raise ValidationError(
                f"At most {MAX_PRODUCT_PHOTOS} product photos are allowed",
                field="product_photos",
                value=len(photos)
            )

        checked = OnboardingFiles(
            brand_image=brand_image,
            product_photos=photos,
            product_video=_present(files.product_video),
            verification_id=_present(files.verification_id),
        )

        for upload in [checked.brand_image, checked.product_video, checked.verification_id] + photos:
            if upload is not None:
                validate_upload(upload)

        return checked

    def _store_files(self, files: OnboardingFiles) -> MediaUrls:
        """Store every upload; if one fails, the ones already written are removed."""
        stored: List[str] = []

        def put(upload: Optional[UploadedFile]) -> Optional[str]:
            if upload is None:
                return None
            url = self.storage.put_file(upload)
            stored.append(url)
            return url

        try:
            return MediaUrls(
                brand_image=put(files.brand_image),
                product_photos=[put(photo) for photo in files.product_photos],
                product_video=put(files.product_video),
                verification_id=put(files.verification_id),
            )
        except StorageError:
            self._discard_files(stored)
            raise

    def _discard_files(self, urls: List[str]) -> None:
        for url in urls:
            self.storage.delete_file(url)

    def _create_product(
        self,
        account: Account,
        profile: OnboardingProfile,
        listing: OnboardingListing,
        media: MediaUrls,
    ) -> Product:
        product = Product(
            seller_id=account.id,
            location=f"{profile.city}, {profile.state}",
            image_url=media.product_photos[0],
            photo_urls=media.product_photos,
            video_url=media.product_video,
            status=ProductStatus.ACTIVE,
            **listing.to_product_fields(),
        )
        self.db.add(product)
        self.db.flush()
        return product

    def onboard(
        self,
        account: Account,
        raw_profile: RawPayload,
        raw_listing: RawPayload,
        files: OnboardingFiles,
    ) -> Product:
        """
        Make an account a seller and publish its first listing.

        Args:
            account: Signed-in account
            raw_profile: Profile payload, JSON text or mapping
            raw_listing: Listing payload, JSON text or mapping
            files: Uploaded files

        Returns:
            The created product

        Raises:
            ValidationError: If a payload field or file is missing or invalid
            StorageError: If a file cannot be stored
            InternalError: If the database write fails; nothing is persisted
                and the stored files are removed again
        """
        account_id = account.id
        profile = parse_payload(OnboardingProfile, raw_profile, "profile")
        listing = parse_payload(OnboardingListing, raw_listing, "listing")
        checked_files = self._validate_files(files)

        media = self._store_files(checked_files)

        try:
            with transaction_scope(self.db, "seller onboarding"):
                for column, value in profile.to_account_fields().items():
                    setattr(account, column, value)
                account.role = AccountRole.SELLER
                account.is_seller = True
                account.profile_image = media.brand_image
                if media.verification_id:
                    account.identity_document = media.verification_id
                    account.verification_status = VerificationStatus.PENDING
                self.db.flush()

                product = self._create_product(account, profile, listing, media)
        except SQLAlchemyError as e:
            logger.error(f"Seller onboarding failed for account {account_id}: {e}")
            self._discard_files(media.all_urls)
            raise InternalError("Error during seller onboarding", details={"error": str(e)}) from e

        logger.info(f"Account {account.id} onboarded as seller with product {product.id}")
        return product

    def update_profile(self, account: Account, data: ProfileSettingsUpdate) -> Account:
        """Apply a partial seller profile update."""
        data.validate_fields()

        with transaction_scope(self.db, "profile settings update"):
            for column, value in data.to_account_fields().items():
                setattr(account, column, value)

        logger.info(f"Seller profile updated for account {account.id}")
        return account

    def update_notification_settings(self, account: Account, data: NotificationSettingsUpdate) -> Account:
        """Merge the sent preferences into the stored ones."""
        preferences = {**account.notification_settings, **data.to_preferences()}

        with transaction_scope(self.db, "notification settings update"):
            # Assign a new dict so the JSON column is flagged dirty
            account.notification_preferences = preferences

        logger.info(f"Notification settings updated for account {account.id}")
        return account
