# whalemall/crud.py
"""Listing store: persistence and the listing state machine.

All status changes go through ``transition``, a single conditional UPDATE,
so two concurrent writers cannot both succeed from the same source status.
"""
from typing import Iterable

from sqlalchemy import update
from sqlalchemy.orm import Session

from .errors import ForbiddenError, InvalidStateError, NotFoundError, ValidationError
from .models import Listing, ListingImage, ListingStatus
from .schemas import MAX_IMAGES, ListingCreate, ListingUpdate
from .security import ContactCipher
from .utils import generate_id, logger, utcnow

PENDING = ListingStatus.pending.value
AVAILABLE = ListingStatus.available.value
SOLD = ListingStatus.sold.value
REMOVED = ListingStatus.removed.value

# source statuses each seller-requested status may be reached from
SELLER_TRANSITIONS = {
    SOLD: (AVAILABLE,),
    REMOVED: (PENDING, AVAILABLE),
}

STATE_MESSAGES = {
    PENDING: "This listing is still awaiting review",
    AVAILABLE: "This listing is already published",
    SOLD: "This listing has already been sold",
    REMOVED: "This listing has been removed",
}


def state_error(current: str) -> InvalidStateError:
    return InvalidStateError(STATE_MESSAGES.get(current, "Listing is not in a valid state"), current)


class ListingStore:
    """CRUD over listings and their images."""

    def __init__(self, db: Session, cipher: ContactCipher):
        self.db = db
        self.cipher = cipher

    def get(self, listing_id: str) -> Listing:
        obj = self.db.get(Listing, listing_id)
        if obj is None:
            raise NotFoundError(listing_id)
        return obj

    def create(self, seller_id: str, payload: ListingCreate) -> str:
        if not 1 <= len(payload.image_urls) <= MAX_IMAGES:
            raise ValidationError(f"A listing needs between 1 and {MAX_IMAGES} images")

        listing_id = generate_id("prod")
        listing = Listing(
            id=listing_id,
            title=payload.title,
            description=payload.description,
            price=payload.price,
            category=payload.category.value,
            contact_info=self.cipher.encrypt(payload.contact_info),
            seller_id=seller_id,
            status=PENDING,
        )
        listing.images = [
            ListingImage(id=generate_id("img"), image_url=url, display_order=i)
            for i, url in enumerate(payload.image_urls)
        ]
        self.db.add(listing)
        self.db.commit()
        logger.info("Listing %s created by seller %s", listing_id, seller_id)
        return listing_id

    def update(self, listing_id: str, requester_id: str, payload: ListingUpdate) -> None:
        updates = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "contact_info" in updates:
            updates["contact_info"] = self.cipher.encrypt(updates["contact_info"])

        listing = self.get(listing_id)
        if listing.seller_id != requester_id:
            raise ForbiddenError("You may only edit your own listings")
        if not updates:
            return

        updates["updated_at"] = utcnow()
        stmt = (
            update(Listing)
            .where(Listing.id == listing_id, Listing.seller_id == requester_id, Listing.status != SOLD)
            .values(**updates)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            self.db.rollback()
            current = self.get(listing_id)
            raise state_error(current.status)
        self.db.commit()

    def transition(self, listing_id: str, from_statuses: Iterable[str], to_status: str) -> None:
        """Atomically move a listing from one of ``from_statuses`` to ``to_status``.

        Raises:
            NotFoundError: the listing does not exist.
            InvalidStateError: the listing is not in any of ``from_statuses``.
        """
        stmt = (
            update(Listing)
            .where(Listing.id == listing_id, Listing.status.in_(tuple(from_statuses)))
            .values(status=to_status, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount == 0:
            self.db.rollback()
            current = self.db.get(Listing, listing_id)
            if current is None:
                raise NotFoundError(listing_id)
            raise state_error(current.status)
        self.db.commit()

    def set_seller_status(self, listing_id: str, requester_id: str, new_status: str) -> None:
        new_status = getattr(new_status, "value", new_status)
        if new_status not in SELLER_TRANSITIONS:
            raise ValidationError("Sellers may only mark a listing as sold or removed")

        listing = self.get(listing_id)
        if listing.seller_id != requester_id:
            raise ForbiddenError("You may only change the status of your own listings")
        if listing.status == new_status:
            return
        self.transition(listing_id, SELLER_TRANSITIONS[new_status], new_status)
        logger.info("Listing %s marked %s by seller", listing_id, new_status)

    def delete(self, listing_id: str) -> None:
        listing = self.get(listing_id)
        self.db.delete(listing)
        self.db.commit()
        logger.info("Listing %s deleted", listing_id)
