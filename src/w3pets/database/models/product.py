"""
Product model - a pet listing owned by a seller account.
"""

import enum
from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Index, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship

from .base import Base


class ProductStatus(str, enum.Enum):
    """Listing visibility."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SOLD = "sold"


class Product(Base):
    """Marketplace listing."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)

    seller_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    # Listing details
    title = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    breed = Column(String(100), nullable=True)
    age = Column(String(50), nullable=True)
    gender = Column(String(20), nullable=True)
    weight = Column(Float, nullable=True)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    location = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    # Media
    image_url = Column(String(1024), nullable=True)  # main photo
    photo_urls = Column(JSON, default=list)
    video_url = Column(String(1024), nullable=True)

    status = Column(
        SQLEnum(ProductStatus, name="product_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProductStatus.ACTIVE,
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    seller = relationship("Account", back_populates="products")

    __table_args__ = (
        Index("ix_products_seller_status", "seller_id", "status"),
        Index("ix_products_seller_created", "seller_id", "created_at"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, seller={self.seller_id}, title='{self.title}')>"

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "sellerId": self.seller_id,
            "title": self.title,
            "category": self.category,
            "breed": self.breed,
            "age": self.age,
            "gender": self.gender,
            "weight": self.weight,
            "price": self.price,
            "quantity": self.quantity,
            "location": self.location,
            "description": self.description,
            "imageUrl": self.image_url,
            "photoUrls": self.photo_urls or [],
            "videoUrl": self.video_url,
            "status": self.status.value if self.status else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def to_preview_dict(self) -> dict:
        """Card view of the listing as buyers see it."""
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "category": self.category,
            "breed": self.breed,
            "age": self.age,
            "gender": self.gender,
            "imageUrl": self.image_url,
            "status": self.status.value if self.status else None,
        }
