# whalemall/models.py
"""SQLAlchemy ORM models for persisted entities.

``Listing`` owns its ``ListingImage`` rows. ``ContactRecord`` is the
append-only disclosure log; its ``listing_id`` is deliberately not a foreign
key so records outlive a deleted listing.
"""
import enum

from sqlalchemy import (
    Column, ForeignKey, Index, Integer, Numeric, String, Text, TIMESTAMP, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base
from .utils import utcnow


class ListingStatus(str, enum.Enum):
    pending = "pending"
    available = "available"
    sold = "sold"
    removed = "removed"


class Category(str, enum.Enum):
    electronics = "electronics"
    clothing = "clothing"
    books = "books"
    other = "other"


class Listing(Base):
    __tablename__ = "listings"
    id = Column(String(64), primary_key=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(12, 2), nullable=False)
    category = Column(String(32), nullable=False, index=True)
    contact_info = Column(Text, nullable=False)
    seller_id = Column(String(64), nullable=False, index=True)
    status = Column(String(16), nullable=False, default=ListingStatus.pending.value, index=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    images = relationship(
        "ListingImage",
        back_populates="listing",
        order_by="ListingImage.display_order",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ListingImage(Base):
    __tablename__ = "listing_images"
    __table_args__ = (UniqueConstraint("listing_id", "display_order", name="uq_listing_image_order"),)
    id = Column(String(64), primary_key=True)
    listing_id = Column(String(64), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(Text, nullable=False)
    display_order = Column(Integer, nullable=False)

    listing = relationship("Listing", back_populates="images")


class ContactRecord(Base):
    __tablename__ = "contact_records"
    id = Column(String(64), primary_key=True)
    buyer_id = Column(String(64), nullable=False, index=True)
    seller_id = Column(String(64), nullable=False, index=True)
    listing_id = Column(String(64), nullable=False, index=True)
    contact_time = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

Index("idx_listings_created_at", Listing.created_at)
Index("idx_contact_records_time", ContactRecord.contact_time)
