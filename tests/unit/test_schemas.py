"""
Unit tests for request schemas and onboarding field mapping
"""
import json

import pytest
from pydantic import ValidationError as PydanticValidationError

from w3pets.services.payloads import (
    BecomeSellerRequest,
    NotificationSettingsUpdate,
    OnboardingListing,
    OnboardingProfile,
    ProfileSettingsUpdate,
    parse_payload,
)
from w3pets.utils.exceptions import ValidationError


PROFILE = {
    "business_name": "Happy Paws",
    "contact_phone": "+1 555-0100",
    "business_address": "1 Main St",
    "city": "Austin",
    "state": "TX",
    "seller_uniqueness": "Family-run breeder",
    "location_coords": {"lat": 30.27, "lng": -97.74},
}

LISTING = {
    "product_title": "Golden Retriever Puppy",
    "product_category": "dogs",
    "product_brand": "Golden Retriever",
    "age": 3,
    "quantity": 2,
    "weight": 4.5,
    "price": 1200,
    "gender": "female",
}


class TestOnboardingProfile:
    """Front-end profile names map onto account columns"""

    def test_field_mapping(self):
        profile = parse_payload(OnboardingProfile, json.dumps(PROFILE), "profile")
        fields = profile.to_account_fields()

        assert fields["business_name"] == "Happy Paws"
        assert fields["phone_number"] == "+1 555-0100"
        assert fields["address"] == "1 Main St"
        assert fields["description"] == "Family-run breeder"
        assert json.loads(fields["location"]) == {"lat": 30.27, "lng": -97.74}

    def test_same_schema_for_json_body(self):
        from_text = parse_payload(OnboardingProfile, json.dumps(PROFILE), "profile")
        from_mapping = parse_payload(OnboardingProfile, PROFILE, "profile")

        assert from_text.to_account_fields() == from_mapping.to_account_fields()

    @pytest.mark.parametrize("field", ["business_name", "contact_phone", "business_address", "city", "state"])
    def test_missing_required_field(self, field):
        payload = {k: v for k, v in PROFILE.items() if k != field}

        with pytest.raises(ValidationError) as exc_info:
            parse_payload(OnboardingProfile, payload, "profile")

        assert exc_info.value.message == f"Missing required profile field: {field}"
        assert exc_info.value.field == field

    def test_blank_field_counts_as_missing(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_payload(OnboardingProfile, dict(PROFILE, city="   "), "profile")
        assert exc_info.value.field == "city"

    def test_invalid_json(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_payload(OnboardingProfile, "{not json", "profile")
        assert exc_info.value.message == "Invalid JSON data in profile field"

    def test_missing_payload(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_payload(OnboardingProfile, None, "profile")
        assert exc_info.value.message == "Missing profile data"


class TestOnboardingListing:
    """Front-end listing names map onto product columns"""

    def test_field_mapping(self):
        listing = parse_payload(OnboardingListing, LISTING, "listing")
        fields = listing.to_product_fields()

        assert fields["title"] == "Golden Retriever Puppy"
        assert fields["category"] == "dogs"
        assert fields["breed"] == "Golden Retriever"
        assert fields["age"] == "3"
        assert fields["quantity"] == 2
        assert fields["price"] == 1200.0

    @pytest.mark.parametrize("field", sorted(LISTING))
    def test_missing_required_field(self, field):
        payload = {k: v for k, v in LISTING.items() if k != field}

        with pytest.raises(ValidationError) as exc_info:
            parse_payload(OnboardingListing, payload, "listing")

        assert exc_info.value.field == field

    def test_non_positive_price_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_payload(OnboardingListing, dict(LISTING, price=0), "listing")
        assert exc_info.value.message.startswith("Invalid listing field: price")


class TestSellerSchemas:
    """Become-seller and profile settings schemas"""

    def test_become_seller_requires_business_fields(self):
        with pytest.raises(PydanticValidationError):
            BecomeSellerRequest.model_validate({"businessName": "Happy Paws", "phoneNumber": "555"})

    def test_become_seller_account_fields(self):
        data = BecomeSellerRequest.model_validate({
            "businessName": "Happy Paws",
            "phoneNumber": "555-0100",
            "address": "1 Main St",
            "city": "Austin",
            "state": "TX",
        })
        assert data.to_account_fields() == {
            "business_name": "Happy Paws",
            "phone_number": "555-0100",
            "address": "1 Main St",
            "city": "Austin",
            "state": "TX",
        }

    def test_profile_update_only_sets_given_fields(self):
        update = ProfileSettingsUpdate.model_validate({"city": "Dallas"})
        assert update.to_account_fields() == {"city": "Dallas"}

    def test_profile_update_rejects_bad_phone(self):
        update = ProfileSettingsUpdate.model_validate({"phoneNumber": "call me"})
        with pytest.raises(ValidationError) as exc_info:
            update.validate_fields()
        assert exc_info.value.field == "phoneNumber"

    def test_profile_update_rejects_blank_business_name(self):
        update = ProfileSettingsUpdate.model_validate({"businessName": "  "})
        with pytest.raises(ValidationError):
            update.validate_fields()

    @pytest.mark.parametrize("alias", ["businessName", "city", "state"])
    def test_profile_update_rejects_explicit_null(self, alias):
        update = ProfileSettingsUpdate.model_validate({alias: None})
        with pytest.raises(ValidationError) as exc_info:
            update.validate_fields()
        assert exc_info.value.message == f"{alias} cannot be empty"

    def test_profile_update_allows_null_optional_field(self):
        update = ProfileSettingsUpdate.model_validate({"description": None})
        update.validate_fields()
        assert update.to_account_fields() == {"description": None}

    def test_notification_settings_keep_only_sent_keys(self):
        update = NotificationSettingsUpdate.model_validate({"marketingNotifications": True, "pushNotifications": False})
        assert update.to_preferences() == {"marketing": True, "push": False}
