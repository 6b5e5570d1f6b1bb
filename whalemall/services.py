# whalemall/services.py
"""Contact disclosure and moderation.

``ContactMediator.disclose`` is the only path through which a listing's
plaintext contact reaches anyone but the seller; each successful call
appends a ``ContactRecord``. ``ModerationGate`` holds the admin-only
transitions of the review pipeline.
"""
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .crud import AVAILABLE, PENDING, REMOVED, SOLD, ListingStore
from .errors import CorruptDataError, ForbiddenError, InvalidStateError, NotFoundError, SelfContactError
from .models import Listing, ContactRecord
from .schemas import ListingFilter, ListingPage
from .search import ListingQuery
from .security import ContactCipher, Identity
from .utils import generate_id, logger, utcnow

DISCLOSE_MESSAGES = {
    PENDING: "This listing is awaiting review and cannot be contacted yet",
    SOLD: "This listing has already been sold",
    REMOVED: "This listing has been removed",
}


def ensure_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise ForbiddenError("Administrator privileges are required")


class ContactMediator:
    def __init__(self, db: Session, cipher: ContactCipher):
        self.db = db
        self.cipher = cipher

    def disclose(self, listing_id: str, buyer_id: str) -> str:
        """Reveal the seller's contact info to ``buyer_id`` and record it.

        Raises:
            NotFoundError: no such listing.
            InvalidStateError: the listing is not ``available``.
            SelfContactError: the buyer is the seller.
            CorruptDataError: the stored contact cannot be decrypted.
        """
        listing = self.db.get(Listing, listing_id)
        if listing is None:
            raise NotFoundError(listing_id)
        if listing.status != AVAILABLE:
            raise InvalidStateError(DISCLOSE_MESSAGES[listing.status], listing.status)
        if listing.seller_id == buyer_id:
            raise SelfContactError()

        try:
            contact_info = self.cipher.decrypt(listing.contact_info)
        except CorruptDataError:
            logger.error("Stored contact info for listing %s is unreadable; listing cannot be disclosed until repaired", listing_id)
            raise

        record = ContactRecord(
            id=generate_id("contact"),
            buyer_id=buyer_id,
            seller_id=listing.seller_id,
            listing_id=listing_id,
            contact_time=utcnow(),
        )
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError:
            # buyer still gets the contact; the audit log is missing one entry
            self.db.rollback()
            logger.exception("Failed to record contact by buyer %s for listing %s", buyer_id, listing_id)
        return contact_info


class ModerationGate:
    """Admin-only review pipeline over a ``ListingStore``."""

    def __init__(self, store: ListingStore):
        self.store = store

    def approve(self, identity: Identity, listing_id: str) -> None:
        ensure_admin(identity)
        self.store.transition(listing_id, (PENDING,), AVAILABLE)
        logger.info("Listing %s approved by %s", listing_id, identity.user_id)

    def reject(self, identity: Identity, listing_id: str) -> None:
        ensure_admin(identity)
        self.store.transition(listing_id, (PENDING,), REMOVED)
        logger.info("Listing %s rejected by %s", listing_id, identity.user_id)

    def takedown(self, identity: Identity, listing_id: str) -> None:
        ensure_admin(identity)
        self.store.transition(listing_id, (AVAILABLE,), REMOVED)
        logger.info("Listing %s taken down by %s", listing_id, identity.user_id)

    def delete(self, identity: Identity, listing_id: str) -> None:
        ensure_admin(identity)
        self.store.delete(listing_id)

    def pending_queue(self, identity: Identity, page: int = 1, page_size: int = 20) -> ListingPage:
        ensure_admin(identity)
        query = ListingQuery(self.store.db)
        return query.list(ListingFilter(status=PENDING, page=page, page_size=page_size))
