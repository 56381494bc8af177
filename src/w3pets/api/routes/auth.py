"""
Authentication routes: signup, email verification, login, token refresh,
logout and password reset.
"""

from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Response, status

from w3pets.api.dependencies import get_account_service
from w3pets.api.middleware.session import get_current_account, reject_if_authenticated
from w3pets.api.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from w3pets.auth.jwt_manager import TOKEN_LIFETIMES, TokenKind
from w3pets.database.models import Account
from w3pets.monitoring import get_metrics
from w3pets.services.account_service import AccountService
from w3pets.utils.config import get_settings
from w3pets.utils.exceptions import AuthenticationError
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

REFRESH_COOKIE_NAME = "refreshToken"


def set_refresh_cookie(response: Response, token: str) -> None:
    """Hand the refresh token to the browser as an httpOnly cookie."""
    settings = get_settings()
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        max_age=int(TOKEN_LIFETIMES[TokenKind.REFRESH].total_seconds()),
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        domain=settings.cookie_domain,
    )


def clear_refresh_cookie(response: Response) -> None:
    settings = get_settings()
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
        domain=settings.cookie_domain,
    )


@router.post("/signup", status_code=status.HTTP_201_CREATED, dependencies=[Depends(reject_if_authenticated)])
def signup(
    data: SignupRequest,
    service: AccountService = Depends(get_account_service),
):
    """
    Start a signup.

    Nothing is stored in the database until the emailed link is opened.
    Runs in the threadpool since sending the email blocks on SMTP.
    """
    service.signup(
        email=data.email,
        username=data.username,
        password=data.password,
        full_name=data.full_name,
        redirect_url=data.redirect_url,
    )
    get_metrics().track_auth_event("signup")

    return {"message": "Verification email sent. Please check your inbox."}


@router.get("/verify-email/{token}")
async def verify_email(
    token: str,
    response: Response,
    service: AccountService = Depends(get_account_service),
):
    """Create the account for a confirmed email and sign it in."""
    result = service.verify_email(token)
    set_refresh_cookie(response, result.tokens.refresh_token)
    get_metrics().track_auth_event("verify_email")

    body = {
        "message": "Email verified successfully",
        "accessToken": result.tokens.access_token,
        "user": result.account.to_public_dict(),
    }
    if result.redirect_url:
        body["redirectUrl"] = result.redirect_url
    return body


@router.post("/login", dependencies=[Depends(reject_if_authenticated)])
async def login(
    data: LoginRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
):
    """
    Authenticate with email and password.
    """
    try:
        result = service.login(data.email, data.password)
    except AuthenticationError:
        get_metrics().track_auth_event("login", "failed")
        raise

    set_refresh_cookie(response, result.tokens.refresh_token)
    get_metrics().track_auth_event("login")

    return {
        "message": "Login successful",
        "accessToken": result.tokens.access_token,
        "user": result.account.to_public_dict(),
    }


@router.post("/refresh-token")
async def refresh_token(
    response: Response,
    token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE_NAME),
    service: AccountService = Depends(get_account_service),
):
    """
    Exchange the refresh cookie for a new access token.

    The refresh token is rotated on every call.
    """
    try:
        result = service.refresh(token)
    except AuthenticationError:
        get_metrics().track_auth_event("refresh", "failed")
        raise

    set_refresh_cookie(response, result.tokens.refresh_token)
    get_metrics().track_auth_event("refresh")

    return {
        "accessToken": result.tokens.access_token,
        "user": result.account.to_public_dict(),
    }


@router.post("/logout")
async def logout(
    response: Response,
    account: Account = Depends(get_current_account),
    service: AccountService = Depends(get_account_service),
):
    """Revoke the stored refresh token and clear the cookie."""
    service.logout(account)
    clear_refresh_cookie(response)
    get_metrics().track_auth_event("logout")

    return {"message": "Logged out successfully"}


@router.post("/forgot-password")
def forgot_password(
    data: ForgotPasswordRequest,
    service: AccountService = Depends(get_account_service),
):
    """
    Email a reset link.

    The answer is the same whether or not the email is registered. Runs in
    the threadpool since sending the email blocks on SMTP.
    """
    service.forgot_password(data.email)

    return {"message": "If an account with that email exists, a password reset link has been sent"}


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
):
    """Set a new password with a single-use reset token and sign in."""
    result = service.reset_password(data.token, data.new_password)
    set_refresh_cookie(response, result.tokens.refresh_token)
    get_metrics().track_auth_event("password_reset")

    return {
        "message": "Password has been reset successfully",
        "accessToken": result.tokens.access_token,
        "user": result.account.to_public_dict(),
    }
