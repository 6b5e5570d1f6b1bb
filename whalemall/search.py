# whalemall/search.py
"""Read path: filtered listing pages, contact history and admin statistics."""
import math
from datetime import timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from .errors import NotFoundError
from .models import ContactRecord, Listing, ListingImage, ListingStatus
from .schemas import (
    CategoryCount, DailyActivity, ListingDetail, ListingFilter, ListingOut, ListingPage,
    PopularProduct, RecordOut, RecordPage, Statistics,
)
from .utils import utcnow

POPULAR_LIMIT = 10


def _main_image():
    return (
        select(ListingImage.image_url)
        .where(ListingImage.listing_id == Listing.id)
        .order_by(ListingImage.display_order)
        .limit(1)
        .correlate(Listing)
        .scalar_subquery()
        .label("main_image")
    )


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _total_pages(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0


def _to_out(listing: Listing, main_image) -> ListingOut:
    return ListingOut(
        id=listing.id,
        title=listing.title,
        description=listing.description,
        price=listing.price,
        category=listing.category,
        seller_id=listing.seller_id,
        status=listing.status,
        main_image=main_image,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
    )


class ListingQuery:
    def __init__(self, db: Session):
        self.db = db

    def list(self, filters: ListingFilter) -> ListingPage:
        """Newest-first page of listings matching ``filters``.

        No status restriction is applied unless ``filters.status`` names one;
        callers that want the public browse view must ask for ``available``.
        """
        conds = []
        if filters.status and filters.status != "all":
            conds.append(Listing.status == filters.status)
        if filters.category:
            conds.append(Listing.category == filters.category.value)
        if filters.seller_id:
            conds.append(Listing.seller_id == filters.seller_id)
        if filters.search:
            pattern = f"%{_escape_like(filters.search)}%"
            conds.append(or_(
                Listing.title.ilike(pattern, escape="\\"),
                Listing.description.ilike(pattern, escape="\\"),
            ))

        total = self.db.scalar(select(func.count()).select_from(Listing).where(*conds)) or 0
        offset = (filters.page - 1) * filters.page_size
        rows = self.db.execute(
            select(Listing, _main_image())
            .where(*conds)
            .order_by(Listing.created_at.desc(), Listing.id.desc())
            .offset(offset)
            .limit(filters.page_size)
        ).all()
        return ListingPage(
            items=[_to_out(listing, image) for listing, image in rows],
            page=filters.page,
            page_size=filters.page_size,
            total=total,
            total_pages=_total_pages(total, filters.page_size),
        )

    def get(self, listing_id: str) -> ListingDetail:
        listing = self.db.get(Listing, listing_id)
        if listing is None:
            raise NotFoundError(listing_id)
        images = [img.image_url for img in listing.images]
        out = _to_out(listing, images[0] if images else None)
        return ListingDetail(**out.model_dump(), images=images)

    def _records(self, cond, page: int, page_size: int) -> RecordPage:
        total = self.db.scalar(select(func.count()).select_from(ContactRecord).where(cond)) or 0
        rows = self.db.execute(
            select(ContactRecord, Listing.title, Listing.price, _main_image())
            .outerjoin(Listing, Listing.id == ContactRecord.listing_id)
            .where(cond)
            .order_by(ContactRecord.contact_time.desc(), ContactRecord.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        ).all()
        items = [
            RecordOut(
                id=rec.id,
                buyer_id=rec.buyer_id,
                seller_id=rec.seller_id,
                listing_id=rec.listing_id,
                contact_time=rec.contact_time,
                listing_title=title,
                listing_price=price,
                listing_image=image,
            )
            for rec, title, price, image in rows
        ]
        return RecordPage(
            items=items, page=page, page_size=page_size,
            total=total, total_pages=_total_pages(total, page_size),
        )

    def records_for_buyer(self, buyer_id: str, page: int = 1, page_size: int = 20) -> RecordPage:
        return self._records(ContactRecord.buyer_id == buyer_id, page, page_size)

    def records_for_seller(self, seller_id: str, page: int = 1, page_size: int = 20) -> RecordPage:
        return self._records(ContactRecord.seller_id == seller_id, page, page_size)

    def aggregate_statistics(self, days: int = 7) -> Statistics:
        by_status = {s.value: 0 for s in ListingStatus}
        for status, count in self.db.execute(
            select(Listing.status, func.count()).group_by(Listing.status)
        ):
            by_status[status] = count

        categories = [
            CategoryCount(category=category, count=count)
            for category, count in self.db.execute(
                select(Listing.category, func.count()).group_by(Listing.category).order_by(Listing.category)
            )
        ]

        total_contacts = self.db.scalar(select(func.count()).select_from(ContactRecord)) or 0

        day = func.date(ContactRecord.contact_time)
        since = utcnow() - timedelta(days=days)
        recent = [
            DailyActivity(date=str(d), contacts=n)
            for d, n in self.db.execute(
                select(day, func.count())
                .where(ContactRecord.contact_time >= since)
                .group_by(day)
                .order_by(day.desc())
            )
        ]

        counts = (
            select(ContactRecord.listing_id, func.count(ContactRecord.id).label("n"))
            .group_by(ContactRecord.listing_id)
            .subquery()
        )
        contact_count = func.coalesce(counts.c.n, 0).label("contact_count")
        popular = [
            PopularProduct(
                listing_id=listing.id,
                title=listing.title,
                price=listing.price,
                category=listing.category,
                contact_count=n,
                image=image,
            )
            for listing, n, image in self.db.execute(
                select(Listing, contact_count, _main_image())
                .outerjoin(counts, counts.c.listing_id == Listing.id)
                .order_by(contact_count.desc(), Listing.id.asc())
                .limit(POPULAR_LIMIT)
            )
        ]

        return Statistics(
            total_listings=sum(by_status.values()),
            listings_by_status=by_status,
            categories=categories,
            total_contacts=total_contacts,
            recent_activity=recent,
            popular_products=popular,
        )
