"""
Account model - customers and sellers share one table.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, JSON, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship

from .base import Base


class AccountRole(str, enum.Enum):
    """Account roles."""
    CUSTOMER = "customer"
    SELLER = "seller"


class VerificationStatus(str, enum.Enum):
    """Review state of a seller's identity document."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


DEFAULT_NOTIFICATION_PREFERENCES = {
    "email": True,
    "push": True,
    "order": True,
    "message": True,
    "product": True,
    "marketing": False,
}


class Account(Base):
    """
    Marketplace account.

    Rows are only created once the owner has confirmed their email address,
    so ``is_verified`` is True for every account created through signup.
    Seller profile fields stay NULL until the account is onboarded as a seller.
    """

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Authentication
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    password_changed_at = Column(DateTime, nullable=True)

    # Profile
    username = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)

    # Role
    role = Column(
        SQLEnum(AccountRole, name="account_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AccountRole.CUSTOMER,
    )
    is_seller = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    # Seller profile
    business_name = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    location = Column(Text, nullable=True)  # JSON encoded coordinates
    description = Column(Text, nullable=True)
    profile_image = Column(String(1024), nullable=True)  # brand image URL
    identity_document = Column(String(1024), nullable=True)
    verification_status = Column(
        SQLEnum(VerificationStatus, name="verification_status", values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )

    # Settings
    notification_preferences = Column(JSON, nullable=True)  # overrides of DEFAULT_NOTIFICATION_PREFERENCES

    # Activity Tracking
    last_login_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    refresh_token = relationship(
        "RefreshToken", back_populates="account", uselist=False, cascade="all, delete-orphan"
    )
    products = relationship(
        "Product", back_populates="seller", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_accounts_role_seller", "role", "is_seller"),
    )

    def __repr__(self):
        return f"<Account(id={self.id}, email='{self.email}', role={self.role.value if self.role else None})>"

    def to_public_dict(self) -> dict:
        """Account summary returned alongside tokens."""
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "fullName": self.full_name,
            "role": self.role.value if self.role else None,
            "isSeller": self.is_seller,
            "isVerified": self.is_verified,
        }

    def to_seller_profile_dict(self) -> dict:
        """Seller profile settings view."""
        return {
            "id": self.id,
            "email": self.email,
            "businessName": self.business_name,
            "phoneNumber": self.phone_number,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "description": self.description,
            "profileImage": self.profile_image,
            "location": self.location,
            "verificationStatus": self.verification_status.value if self.verification_status else None,
        }

    @property
    def notification_settings(self) -> dict:
        """Stored preferences over the defaults."""
        return {**DEFAULT_NOTIFICATION_PREFERENCES, **(self.notification_preferences or {})}

    def to_notification_settings_dict(self) -> dict:
        preferences = self.notification_settings
        return {
            "emailNotifications": preferences["email"],
            "pushNotifications": preferences["push"],
            "orderNotifications": preferences["order"],
            "messageNotifications": preferences["message"],
            "productNotifications": preferences["product"],
            "marketingNotifications": preferences["marketing"],
        }

    def to_security_settings_dict(self) -> dict:
        """Security overview; two-factor authentication is not offered."""
        return {
            "twoFactorEnabled": False,
            "lastPasswordChange": self.password_changed_at.isoformat() if self.password_changed_at else None,
            "lastLoginAt": self.last_login_at.isoformat() if self.last_login_at else None,
            "activeSessions": 1 if self.refresh_token is not None else 0,
        }
