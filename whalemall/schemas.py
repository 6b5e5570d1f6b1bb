# whalemall/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from .models import Category, ListingStatus

MAX_IMAGES = 9
MAX_PAGE_SIZE = 100


class ListingCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=1000)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    category: Category
    contact_info: str = Field(..., min_length=1)
    image_urls: List[str] = Field(..., min_length=1, max_length=MAX_IMAGES)

    @field_validator("image_urls")
    @classmethod
    def _no_blank_images(cls, value: List[str]) -> List[str]:
        if any(not url for url in value):
            raise ValueError("image references must not be empty")
        return value


class ListingUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    contact_info: Optional[str] = Field(None, min_length=1)


class StatusUpdate(BaseModel):
    status: ListingStatus


class ListingFilter(BaseModel):
    category: Optional[Category] = None
    status: Optional[str] = None
    search: Optional[str] = None
    seller_id: Optional[str] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: Optional[str]) -> Optional[str]:
        if not value or value == "all":
            return None
        if value not in {s.value for s in ListingStatus}:
            raise ValueError("status must be one of pending, available, sold, removed or all")
        return value


class ListingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str
    price: Decimal
    category: str
    seller_id: str
    status: str
    main_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ListingDetail(ListingOut):
    images: List[str] = Field(default_factory=list)


class ListingPage(BaseModel):
    items: List[ListingOut]
    page: int
    page_size: int
    total: int
    total_pages: int


class ListingCreated(BaseModel):
    listing_id: str


class ContactOut(BaseModel):
    contact_info: str


class Ack(BaseModel):
    success: bool = True
    message: str


class RecordOut(BaseModel):
    id: str
    buyer_id: str
    seller_id: str
    listing_id: str
    contact_time: datetime
    listing_title: Optional[str] = None
    listing_price: Optional[Decimal] = None
    listing_image: Optional[str] = None


class RecordPage(BaseModel):
    items: List[RecordOut]
    page: int
    page_size: int
    total: int
    total_pages: int


class CategoryCount(BaseModel):
    category: str
    count: int


class DailyActivity(BaseModel):
    date: str
    contacts: int


class PopularProduct(BaseModel):
    listing_id: str
    title: str
    price: Decimal
    category: str
    contact_count: int
    image: Optional[str] = None


class Statistics(BaseModel):
    total_listings: int
    listings_by_status: dict[str, int]
    categories: List[CategoryCount]
    total_contacts: int
    recent_activity: List[DailyActivity]
    popular_products: List[PopularProduct]
