"""
Seller routes: onboarding, dashboard, profile, notification and security
settings, listings.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from w3pets.api.dependencies import get_account_service, get_onboarding_service
from w3pets.api.middleware.session import get_current_account, require_seller_role
from w3pets.api.schemas import (
    NotificationSettingsUpdate,
    ProductCreate,
    ProductUpdate,
    ProfileSettingsUpdate,
    SecuritySettingsUpdate,
)
from w3pets.database.connection import get_db
from w3pets.database.models import Account, Product, ProductStatus
from w3pets.monitoring import get_metrics
from w3pets.services.account_service import AccountService
from w3pets.services.file_storage import UploadedFile
from w3pets.services.onboarding_service import OnboardingFiles, OnboardingService
from w3pets.utils.exceptions import NotFoundError, ValidationError, W3PetsError
from w3pets.utils.logger import get_logger
from w3pets.utils.transaction import transaction_scope

logger = get_logger(__name__)

router = APIRouter()

REQUIRED_PRODUCT_COLUMNS = {"title", "price", "category", "quantity", "status"}


async def _read_upload(field: str, upload: Optional[UploadFile]) -> Optional[UploadedFile]:
    if upload is None:
        return None
    return UploadedFile(
        field=field,
        filename=upload.filename or "",
        content_type=upload.content_type or "application/octet-stream",
        data=await upload.read(),
    )


# Onboarding
@router.post("/onboard", status_code=status.HTTP_201_CREATED)
async def onboard(
    profile: Optional[str] = Form(None),
    listing: Optional[str] = Form(None),
    brand_image: Optional[UploadFile] = File(None),
    product_photos: Optional[List[UploadFile]] = File(None),
    product_video: Optional[UploadFile] = File(None),
    verification_id: Optional[UploadFile] = File(None),
    account: Account = Depends(get_current_account),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """
    Become a seller and publish the first listing.

    Multipart form with two JSON fields (``profile``, ``listing``) and the
    ``brand_image``, ``product_photos`` (1 to 5), ``product_video`` and
    ``verification_id`` files.
    """
    files = OnboardingFiles(
        brand_image=await _read_upload("brand_image", brand_image),
        product_photos=[await _read_upload("product_photos", photo) for photo in (product_photos or [])],
        product_video=await _read_upload("product_video", product_video),
        verification_id=await _read_upload("verification_id", verification_id),
    )

    try:
        product = service.onboard(account, profile, listing, files)
    except W3PetsError:
        get_metrics().track_onboarding("failed")
        raise

    get_metrics().track_onboarding("success")

    return {
        "message": "Seller onboarding completed successfully",
        "user": account.to_public_dict(),
        "seller": account.to_seller_profile_dict(),
        "product": product.to_dict(),
    }


# Dashboard
@router.get("/dashboard/stats")
async def dashboard_stats(
    account: Account = Depends(require_seller_role),
    db: Session = Depends(get_db),
):
    """Listing counts for the seller dashboard."""
    counts = dict(
        db.query(Product.status, func.count(Product.id))
        .filter(Product.seller_id == account.id)
        .group_by(Product.status)
        .all()
    )

    return {
        "activeProducts": counts.get(ProductStatus.ACTIVE, 0),
        "inactiveProducts": counts.get(ProductStatus.INACTIVE, 0),
        "soldProducts": counts.get(ProductStatus.SOLD, 0),
        "totalListings": sum(counts.values()),
    }


# Settings
@router.get("/settings/profile")
async def get_profile_settings(account: Account = Depends(require_seller_role)):
    """Seller profile settings."""
    return {"profile": account.to_seller_profile_dict()}


@router.put("/settings/profile")
async def update_profile_settings(
    data: ProfileSettingsUpdate,
    account: Account = Depends(require_seller_role),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Update seller profile settings. Omitted fields are left unchanged."""
    account = service.update_profile(account, data)

    return {
        "message": "Profile updated successfully",
        "profile": account.to_seller_profile_dict(),
    }


@router.get("/settings/notifications")
async def get_notification_settings(account: Account = Depends(require_seller_role)):
    """Notification preferences, defaults filled in."""
    return account.to_notification_settings_dict()


@router.put("/settings/notifications")
async def update_notification_settings(
    data: NotificationSettingsUpdate,
    account: Account = Depends(require_seller_role),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Update notification preferences. Omitted preferences are left unchanged."""
    account = service.update_notification_settings(account, data)

    return {
        "message": "Notification settings updated successfully",
        "settings": account.to_notification_settings_dict(),
    }


@router.get("/settings/security")
async def get_security_settings(account: Account = Depends(require_seller_role)):
    """Password and session overview."""
    return account.to_security_settings_dict()


@router.put("/settings/security")
async def update_security_settings(
    data: SecuritySettingsUpdate,
    account: Account = Depends(require_seller_role),
    service: AccountService = Depends(get_account_service),
):
    """Change the password after checking the current one."""
    if not data.current_password or not data.new_password:
        raise ValidationError("Current password and new password are required", field="newPassword")

    service.change_password(account, data.current_password, data.new_password)

    return {"message": "Password updated successfully"}


# Listings
def _get_owned_product(db: Session, account: Account, product_id: int) -> Product:
    product = db.query(Product).filter(
        Product.id == product_id,
        Product.seller_id == account.id,
    ).first()

    if not product:
        raise NotFoundError("Product not found", details={"product_id": product_id})

    return product


@router.get("/listings")
async def list_listings(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(active|inactive|sold)$"),
    account: Account = Depends(require_seller_role),
    db: Session = Depends(get_db),
):
    """List the seller's products, newest first."""
    query = db.query(Product).filter(Product.seller_id == account.id)

    if status_filter:
        query = query.filter(Product.status == ProductStatus(status_filter))

    products = query.order_by(desc(Product.created_at), desc(Product.id)).all()

    return {
        "products": [product.to_dict() for product in products],
        "total": len(products),
    }


@router.post("/listings", status_code=status.HTTP_201_CREATED)
async def create_listing(
    data: ProductCreate,
    account: Account = Depends(require_seller_role),
    db: Session = Depends(get_db),
):
    """Create a listing."""
    fields = data.model_dump()
    if fields.get("location") is None and account.city:
        fields["location"] = f"{account.city}, {account.state}" if account.state else account.city

    with transaction_scope(db, "listing creation"):
        product = Product(
            seller_id=account.id,
            photo_urls=[data.image_url] if data.image_url else [],
            status=ProductStatus.ACTIVE,
            **fields,
        )
        db.add(product)
        db.flush()

    logger.info(f"Product {product.id} created by seller {account.id}")

    return {"message": "Product created successfully", "product": product.to_dict()}


@router.get("/listings/{product_id}")
async def get_listing(
    product_id: int,
    account: Account = Depends(require_seller_role),
    db: Session = Depends(get_db),
):
    """Get one of the seller's listings."""
    product = _get_owned_product(db, account, product_id)
    return {"product": product.to_dict()}


@router.get("/listings/{product_id}/preview")
async def preview_listing(
    product_id: int,
    account: Account = Depends(require_seller_role),
    db: Session = Depends(get_db),
):
    """Buyer-facing card of one of the seller's listings."""
    product = _get_owned_product(db, account, product_id)
    return {"product": product.to_preview_dict()}


@router.put("/listings/{product_id}")
async def update_listing(
    product_id: int,
    data: ProductUpdate,
    account: Account = Depends(require_seller_role),
    db: Session = Depends(get_db),
):
    """Update one of the seller's listings. Omitted fields are left unchanged."""
    product = _get_owned_product(db, account, product_id)

    with transaction_scope(db, "listing update"):
        for column, value in data.model_dump(exclude_unset=True).items():
            if value is None and column in REQUIRED_PRODUCT_COLUMNS:
                continue
            if column == "status":
                value = ProductStatus(value)
            setattr(product, column, value)

        if "image_url" in data.model_fields_set and data.image_url:
            photos = list(product.photo_urls or [])
            if data.image_url not in photos:
                product.photo_urls = [data.image_url] + photos

    logger.info(f"Product {product.id} updated by seller {account.id}")

    return {"message": "Product updated successfully", "product": product.to_dict()}


@router.delete("/listings/{product_id}")
async def delete_listing(
    product_id: int,
    account: Account = Depends(require_seller_role),
    db: Session = Depends(get_db),
):
    """Delete one of the seller's listings."""
    product = _get_owned_product(db, account, product_id)

    with transaction_scope(db, "listing deletion"):
        db.delete(product)

    logger.info(f"Product {product_id} deleted by seller {account.id}")

    return {"message": "Product deleted successfully"}
