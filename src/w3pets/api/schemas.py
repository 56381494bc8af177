"""
Pydantic schemas for API request validation.

Payloads the seller services consume (onboarding profile and listing,
profile and notification settings) live in ``w3pets.services.payloads`` and
are re-exported here for the routes.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, field_validator

from w3pets.services.payloads import (  # noqa: F401
    BecomeSellerRequest,
    NonEmptyStr,
    NotificationSettingsUpdate,
    OnboardingListing,
    OnboardingProfile,
    ProfileSettingsUpdate,
    parse_payload,
)


Username = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]


# Auth schemas
class SignupRequest(BaseModel):
    """Signup request."""
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    username: Username
    password: NonEmptyStr
    full_name: Optional[str] = Field(default=None, alias="fullName")
    redirect_url: Optional[str] = Field(default=None, alias="redirectUrl")


class LoginRequest(BaseModel):
    """Login request. Emptiness is checked by the handler to return a single message."""
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    """Password reset request."""
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Password reset confirmation."""
    model_config = ConfigDict(populate_by_name=True)

    token: NonEmptyStr
    new_password: NonEmptyStr = Field(alias="newPassword")


# Seller settings schemas
class SecuritySettingsUpdate(BaseModel):
    """Password change request."""
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


# Product schemas
class ProductCreate(BaseModel):
    """New listing created by a seller."""
    model_config = ConfigDict(populate_by_name=True)

    title: NonEmptyStr
    price: float = Field(gt=0)
    category: NonEmptyStr
    description: Optional[str] = None
    breed: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None
    weight: Optional[float] = Field(default=None, gt=0)
    quantity: int = Field(default=1, gt=0)
    location: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    video_url: Optional[str] = Field(default=None, alias="videoUrl")

    @field_validator("age", mode="before")
    @classmethod
    def coerce_age(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ProductUpdate(BaseModel):
    """Partial listing update."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[NonEmptyStr] = None
    price: Optional[float] = Field(default=None, gt=0)
    category: Optional[NonEmptyStr] = None
    description: Optional[str] = None
    breed: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None
    weight: Optional[float] = Field(default=None, gt=0)
    quantity: Optional[int] = Field(default=None, gt=0)
    location: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    video_url: Optional[str] = Field(default=None, alias="videoUrl")
    status: Optional[str] = Field(default=None, pattern="^(active|inactive|sold)$")

    @field_validator("age", mode="before")
    @classmethod
    def coerce_age(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v
