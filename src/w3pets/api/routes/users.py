"""
Account routes.
"""

from fastapi import APIRouter, Depends, Response

from w3pets.api.dependencies import get_account_service, get_onboarding_service
from w3pets.api.middleware.session import get_current_account
from w3pets.api.routes.auth import clear_refresh_cookie
from w3pets.api.schemas import BecomeSellerRequest
from w3pets.database.models import Account
from w3pets.services.account_service import AccountService
from w3pets.services.onboarding_service import OnboardingService
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/me")
async def get_me(account: Account = Depends(get_current_account)):
    """Current account summary, with the seller profile for sellers."""
    body = {"user": account.to_public_dict()}
    if account.is_seller:
        body["seller"] = account.to_seller_profile_dict()
    return body


@router.delete("/me")
async def delete_me(
    response: Response,
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    """Delete the account with its listings and sign it out."""
    service.delete_account(account)
    clear_refresh_cookie(response)

    return {"message": "Account deleted successfully"}


@router.post("/become-seller")
async def become_seller(
    data: BecomeSellerRequest,
    response: Response,
    account: Account = Depends(get_current_account),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """
    Upgrade to seller with business details only.

    Deprecated: use ``POST /api/seller/onboard``, which also publishes the
    first listing.
    """
    logger.warning(f"Deprecated become-seller endpoint used by account {account.id}")
    account = service.become_seller(account, data)

    response.headers["Deprecation"] = "true"
    response.headers["Link"] = '</api/seller/onboard>; rel="successor-version"'

    return {
        "message": "Successfully upgraded to seller",
        "user": account.to_public_dict(),
        "seller": account.to_seller_profile_dict(),
    }
