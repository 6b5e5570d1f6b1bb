# whalemall/seed.py
"""Idempotent sample-data seeding, run once at startup or by hand.

Only inserts when the listings table is empty. Admin accounts belong to the
identity provider; the seeded listings simply reference ``admin_id``.
"""
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Category, Listing, ListingImage, ListingStatus
from .security import ContactCipher
from .utils import generate_id, logger

SAMPLE_LISTINGS = [
    {
        "title": "MacBook Pro 16-inch M3",
        "description": "Sealed in box, genuine. 16GB memory and 512GB SSD, great for development and design work.",
        "price": Decimal("18999"),
        "category": Category.electronics,
        "contact": "WeChat: tech_seller",
        "image": "https://images.unsplash.com/photo-1517336714731-489689fd1ca8?w=500",
    },
    {
        "title": "iPhone 15 Pro 256GB",
        "description": "Titanium finish, A17 Pro, all original accessories. Used for two months.",
        "price": Decimal("7999"),
        "category": Category.electronics,
        "contact": "Phone: 13812345678",
        "image": "https://images.unsplash.com/photo-1510557880182-3d4d3cba35a5?w=500",
    },
    {
        "title": "Sony WH-1000XM5 noise cancelling headphones",
        "description": "Flagship noise cancelling, excellent sound. Comes with case and charging cable.",
        "price": Decimal("2299"),
        "category": Category.electronics,
        "contact": "WeChat: audio_lover",
        "image": "https://images.unsplash.com/photo-1618366712010-f4ae9c647dcb?w=500",
    },
    {
        "title": "Cashmere autumn coat",
        "description": "100% cashmere, warm and comfortable, classic cut. All sizes.",
        "price": Decimal("899"),
        "category": Category.clothing,
        "contact": "WeChat: fashion_store",
        "image": "https://images.unsplash.com/photo-1539533113208-f6df8cc8b543?w=500",
    },
    {
        "title": "Computer Systems: A Programmer's Perspective, 3rd ed.",
        "description": "Classic textbook, like new, no scratches or notes.",
        "price": Decimal("89"),
        "category": Category.books,
        "contact": "WeChat: book_seller",
        "image": "https://images.unsplash.com/photo-1544947950-fa07a98d237f?w=500",
    },
]


def seed_sample_listings(db: Session, cipher: ContactCipher, admin_id: str) -> int:
    """Insert the sample catalogue if no listings exist. Returns rows added."""
    existing = db.scalar(select(func.count()).select_from(Listing)) or 0
    if existing:
        return 0

    for sample in SAMPLE_LISTINGS:
        listing = Listing(
            id=generate_id("prod"),
            title=sample["title"],
            description=sample["description"],
            price=sample["price"],
            category=sample["category"].value,
            contact_info=cipher.encrypt(sample["contact"]),
            seller_id=admin_id,
            status=ListingStatus.available.value,
        )
        listing.images = [ListingImage(id=generate_id("img"), image_url=sample["image"], display_order=0)]
        db.add(listing)
    db.commit()
    logger.info("Seeded %d sample listings", len(SAMPLE_LISTINGS))
    return len(SAMPLE_LISTINGS)


if __name__ == "__main__":
    from .config import Settings
    from .db import init_db, make_engine, make_session_factory

    settings = Settings.from_env()
    engine = make_engine(settings)
    init_db(engine)
    session = make_session_factory(engine)()
    try:
        added = seed_sample_listings(session, ContactCipher(settings.encryption_key), settings.seed_admin_id)
        print(f"Seeded {added} listing(s)")
    finally:
        session.close()
