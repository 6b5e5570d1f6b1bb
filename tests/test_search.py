# tests/test_search.py
from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError as SchemaValidationError

from whalemall import errors
from whalemall.models import ContactRecord, Listing
from whalemall.schemas import ListingFilter
from whalemall.search import ListingQuery
from whalemall.utils import utcnow


@pytest.fixture
def query(db):
    return ListingQuery(db)


def _age(db, listing_id, minutes):
    # pin created_at so ordering does not depend on clock resolution
    db.get(Listing, listing_id).created_at = datetime(2026, 1, 1) + timedelta(minutes=minutes)
    db.commit()


def test_list_orders_newest_first(db, query, make_listing):
    ids = [make_listing(title=f"Item {i}") for i in range(3)]
    for minutes, listing_id in enumerate(ids):
        _age(db, listing_id, minutes)
    page = query.list(ListingFilter())
    assert [item.id for item in page.items] == list(reversed(ids))


def test_pagination_is_disjoint_and_bounded(query, make_listing):
    for i in range(5):
        make_listing(title=f"Item {i}")
    everything = [item.id for item in query.list(ListingFilter(page_size=100)).items]

    first = query.list(ListingFilter(page=1, page_size=2))
    second = query.list(ListingFilter(page=2, page_size=2))
    first_ids = [item.id for item in first.items]
    second_ids = [item.id for item in second.items]
    assert set(first_ids).isdisjoint(second_ids)
    assert first_ids + second_ids == everything[:4]
    assert (first.total, first.total_pages) == (5, 3)

    beyond = query.list(ListingFilter(page=100, page_size=2))
    assert beyond.items == []
    assert beyond.total_pages == 3
    assert beyond.page == 100


def test_status_filter_all_means_unrestricted(db, query, make_listing):
    pending = make_listing()
    sold = make_listing()
    db.get(Listing, sold).status = "sold"
    db.commit()

    assert query.list(ListingFilter()).total == 2
    assert query.list(ListingFilter(status="all")).total == 2
    assert [i.id for i in query.list(ListingFilter(status="pending")).items] == [pending]
    assert [i.id for i in query.list(ListingFilter(status="sold")).items] == [sold]

    with pytest.raises(SchemaValidationError):
        ListingFilter(status="archived")


def test_empty_status_means_unrestricted(db, query, make_listing):
    make_listing()
    sold = make_listing()
    db.get(Listing, sold).status = "sold"
    db.commit()

    assert ListingFilter(status="").status is None
    assert query.list(ListingFilter(status="")).total == 2


def test_category_and_seller_filters(query, make_listing):
    book = make_listing(seller_id="alice", category="books")
    make_listing(seller_id="bob", category="electronics")
    assert [i.id for i in query.list(ListingFilter(category="books")).items] == [book]
    assert [i.id for i in query.list(ListingFilter(seller_id="alice")).items] == [book]
    assert query.list(ListingFilter(seller_id="carol")).total == 0


def test_search_matches_title_or_description_case_insensitively(query, make_listing):
    by_desc = make_listing(title="Desk lamp", description="Warm LED, barely used")
    by_title = make_listing(title="LED strip", description="Five metres")

    found = {i.id for i in query.list(ListingFilter(search="led")).items}
    assert found == {by_desc, by_title}
    assert [i.id for i in query.list(ListingFilter(search="barely")).items] == [by_desc]
    assert query.list(ListingFilter(search="submarine")).items == []


def test_search_treats_wildcards_literally(query, make_listing):
    make_listing(title="Plain listing")
    discounted = make_listing(title="Now 50% off")
    assert [i.id for i in query.list(ListingFilter(search="50%")).items] == [discounted]
    assert query.list(ListingFilter(search="_")).items == []


def test_items_expose_main_image_but_not_contact(query, make_listing):
    make_listing(image_urls=["first.jpg", "second.jpg"])
    item = query.list(ListingFilter()).items[0]
    assert item.main_image == "first.jpg"
    assert "contact_info" not in item.model_dump()


def test_get_detail(query, make_listing):
    listing_id = make_listing(image_urls=["a.jpg", "b.jpg"])
    detail = query.get(listing_id)
    assert detail.images == ["a.jpg", "b.jpg"]
    assert detail.main_image == "a.jpg"
    assert "contact_info" not in detail.model_dump()
    with pytest.raises(errors.NotFoundError):
        query.get("prod-missing")


def _contact(db, n, buyer, listing_id, seller="seller-1", when=None):
    for i in range(n):
        db.add(ContactRecord(
            id=f"contact-{listing_id}-{buyer}-{i}", buyer_id=buyer, seller_id=seller,
            listing_id=listing_id, contact_time=when or utcnow(),
        ))
    db.commit()


def test_statistics(db, query, make_listing):
    ids = [make_listing(title=f"Item {i}", category="books" if i < 2 else "other") for i in range(12)]
    db.get(Listing, ids[0]).status = "available"
    db.get(Listing, ids[1]).status = "sold"
    db.commit()
    _contact(db, 3, "b1", ids[5])
    _contact(db, 1, "b1", ids[2])
    _contact(db, 1, "b2", ids[7])
    _contact(db, 2, "b3", "prod-deleted-long-ago", when=utcnow() - timedelta(days=30))

    stats = query.aggregate_statistics()

    assert stats.total_listings == 12
    assert stats.listings_by_status == {"pending": 10, "available": 1, "sold": 1, "removed": 0}
    assert {c.category: c.count for c in stats.categories} == {"books": 2, "other": 10}
    assert stats.total_contacts == 7
    assert sum(day.contacts for day in stats.recent_activity) == 5

    popular = stats.popular_products
    assert len(popular) == 10
    assert popular[0].listing_id == ids[5] and popular[0].contact_count == 3
    tied = sorted([ids[2], ids[7]])
    assert [p.listing_id for p in popular[1:3]] == tied
    zero = [p.listing_id for p in popular[3:]]
    assert zero == sorted(zero)
    assert all(p.contact_count == 0 for p in popular[3:])


def test_contact_history_for_buyer_and_seller(db, query, make_listing):
    listing_id = make_listing(seller_id="S", title="Guitar", image_urls=["guitar.jpg"])
    _contact(db, 2, "B", listing_id, seller="S")
    _contact(db, 1, "B", "prod-gone", seller="T")

    buyer_page = query.records_for_buyer("B")
    assert buyer_page.total == 3
    titled = [r for r in buyer_page.items if r.listing_id == listing_id]
    assert all(r.listing_title == "Guitar" and r.listing_image == "guitar.jpg" for r in titled)
    orphan = [r for r in buyer_page.items if r.listing_id == "prod-gone"][0]
    assert orphan.listing_title is None

    seller_page = query.records_for_seller("S", page=1, page_size=1)
    assert (seller_page.total, seller_page.total_pages, len(seller_page.items)) == (2, 2, 1)
