"""
Typed payloads consumed by the seller services.

Onboarding payloads arrive with front-end field names (``product_brand``,
``contact_phone``...). The models below declare the mapping from those names
to account and product columns through ``validation_alias`` so that the
renaming lives in one place and can be tested without HTTP. The same models
validate a multipart JSON field and a plain JSON body.
"""

import json
import re
from typing import Annotated, Any, Dict, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator
from pydantic import ValidationError as PydanticValidationError

from w3pets.utils.exceptions import ValidationError


NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

PHONE_PATTERN = re.compile(r"^[+]?[\d\s\-()]+$")

MISSING_ERROR_TYPES = {"missing", "string_too_short", "string_type", "int_type", "float_type"}

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], raw: Union[str, bytes, Dict[str, Any], None], label: str) -> ModelT:
    """
    Validate a payload against ``model``.

    Args:
        model: Schema class
        raw: JSON text (multipart form field) or an already decoded mapping
        label: Payload name used in error messages ("profile", "listing")

    Raises:
        ValidationError: Naming the first offending field
    """
    if raw is None:
        raise ValidationError(f"Missing {label} data", field=label)

    try:
        if isinstance(raw, (str, bytes)):
            return model.model_validate_json(raw)
        return model.model_validate(raw)
    except PydanticValidationError as e:
        error = e.errors()[0]
        if error["type"] == "json_invalid":
            raise ValidationError(f"Invalid JSON data in {label} field", field=label)

        field = ".".join(str(part) for part in error["loc"]) or label
        if error["type"] in MISSING_ERROR_TYPES:
            raise ValidationError(f"Missing required {label} field: {field}", field=field)
        raise ValidationError(f"Invalid {label} field: {field} ({error['msg']})", field=field)


class BecomeSellerRequest(BaseModel):
    """One-step seller upgrade."""
    model_config = ConfigDict(populate_by_name=True)

    business_name: NonEmptyStr = Field(alias="businessName")
    phone_number: NonEmptyStr = Field(alias="phoneNumber")
    address: NonEmptyStr
    city: NonEmptyStr
    state: NonEmptyStr
    description: Optional[str] = None

    def to_account_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class OnboardingProfile(BaseModel):
    """Seller profile part of the onboarding form."""

    business_name: NonEmptyStr = Field(validation_alias="business_name")
    phone_number: NonEmptyStr = Field(validation_alias="contact_phone")
    address: NonEmptyStr = Field(validation_alias="business_address")
    city: NonEmptyStr = Field(validation_alias="city")
    state: NonEmptyStr = Field(validation_alias="state")
    description: Optional[str] = Field(default=None, validation_alias="seller_uniqueness")
    location: Optional[Any] = Field(default=None, validation_alias="location_coords")

    def to_account_fields(self) -> Dict[str, Any]:
        """Column values for the seller's account row."""
        return {
            "business_name": self.business_name,
            "phone_number": self.phone_number,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "description": self.description,
            "location": json.dumps(self.location) if self.location is not None else None,
        }


class OnboardingListing(BaseModel):
    """First product listing part of the onboarding form."""

    title: NonEmptyStr = Field(validation_alias="product_title")
    category: NonEmptyStr = Field(validation_alias="product_category")
    breed: NonEmptyStr = Field(validation_alias="product_brand")
    age: NonEmptyStr = Field(validation_alias="age")
    quantity: int = Field(gt=0, validation_alias="quantity")
    weight: float = Field(gt=0, validation_alias="weight")
    price: float = Field(gt=0, validation_alias="price")
    gender: NonEmptyStr = Field(validation_alias="gender")

    @field_validator("age", mode="before")
    @classmethod
    def coerce_age(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def to_product_fields(self) -> Dict[str, Any]:
        """Column values for the product row."""
        return {
            "title": self.title,
            "category": self.category,
            "breed": self.breed,
            "age": self.age,
            "quantity": self.quantity,
            "weight": self.weight,
            "price": self.price,
            "gender": self.gender,
            # The form has no description field yet
            "description": self.title,
        }


class ProfileSettingsUpdate(BaseModel):
    """Seller profile settings update; omitted fields are left unchanged."""
    model_config = ConfigDict(populate_by_name=True)

    business_name: Optional[str] = Field(default=None, alias="businessName")
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    description: Optional[str] = None
    location: Optional[Any] = None

    def validate_fields(self) -> None:
        """Raise ValidationError for a malformed phone number or a blank or null required field."""
        if self.phone_number and not PHONE_PATTERN.match(self.phone_number):
            raise ValidationError("Invalid phone number format", field="phoneNumber")

        for column, alias in (("business_name", "businessName"), ("city", "city"), ("state", "state")):
            if column not in self.model_fields_set:
                continue
            value = getattr(self, column)
            if value is None or value.strip() == "":
                raise ValidationError(f"{alias} cannot be empty", field=alias)

    def to_account_fields(self) -> Dict[str, Any]:
        fields = self.model_dump(exclude_unset=True)
        if "location" in fields:
            fields["location"] = json.dumps(fields["location"]) if fields["location"] is not None else None
        return fields


class NotificationSettingsUpdate(BaseModel):
    """
    Notification preferences in the names the settings page uses.

    Stored on the account as ``{"email": ..., "push": ..., ...}``.
    """
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[bool] = Field(default=None, alias="emailNotifications")
    push: Optional[bool] = Field(default=None, alias="pushNotifications")
    order: Optional[bool] = Field(default=None, alias="orderNotifications")
    message: Optional[bool] = Field(default=None, alias="messageNotifications")
    product: Optional[bool] = Field(default=None, alias="productNotifications")
    marketing: Optional[bool] = Field(default=None, alias="marketingNotifications")

    def to_preferences(self) -> Dict[str, bool]:
        """Preference keys that were sent with a value."""
        return self.model_dump(exclude_none=True)
