# whalemall/api/routes.py
from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import Optional

from .. import schemas
from ..crud import ListingStore
from ..db import get_db
from ..errors import UnauthorizedError
from ..models import Category
from ..search import ListingQuery
from ..security import ContactCipher, Identity, decode_identity
from ..services import ContactMediator, ModerationGate, ensure_admin

router = APIRouter()
_bearer = HTTPBearer(auto_error=False)


def get_cipher(request: Request) -> ContactCipher:
    return request.app.state.cipher


def get_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Identity:
    if credentials is None:
        raise UnauthorizedError()
    settings = request.app.state.settings
    return decode_identity(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)


def get_store(db: Session = Depends(get_db), cipher: ContactCipher = Depends(get_cipher)) -> ListingStore:
    return ListingStore(db, cipher)


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/api/listings", response_model=schemas.ListingCreated, status_code=201)
def create_listing(
    payload: schemas.ListingCreate,
    store: ListingStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
):
    listing_id = store.create(identity.user_id, payload)
    return schemas.ListingCreated(listing_id=listing_id)


@router.get("/api/listings", response_model=schemas.ListingPage)
def list_listings(
    category: Optional[Category] = Query(None),
    status: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    seller_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=schemas.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
):
    try:
        filters = schemas.ListingFilter(
            category=category, status=status, search=search,
            seller_id=seller_id, page=page, page_size=page_size,
        )
    except ValidationError as e:
        raise RequestValidationError(e.errors())
    return ListingQuery(db).list(filters)


@router.get("/api/listings/{listing_id}", response_model=schemas.ListingDetail)
def get_listing(listing_id: str, db: Session = Depends(get_db)):
    return ListingQuery(db).get(listing_id)


@router.put("/api/listings/{listing_id}", response_model=schemas.Ack)
def update_listing(
    listing_id: str,
    payload: schemas.ListingUpdate,
    store: ListingStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
):
    store.update(listing_id, identity.user_id, payload)
    return schemas.Ack(message="Listing updated")


@router.put("/api/listings/{listing_id}/status", response_model=schemas.Ack)
def set_listing_status(
    listing_id: str,
    payload: schemas.StatusUpdate,
    store: ListingStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
):
    store.set_seller_status(listing_id, identity.user_id, payload.status.value)
    return schemas.Ack(message=f"Listing marked {payload.status.value}")


@router.post("/api/listings/{listing_id}/contact", response_model=schemas.ContactOut)
def contact_seller(
    listing_id: str,
    db: Session = Depends(get_db),
    cipher: ContactCipher = Depends(get_cipher),
    identity: Identity = Depends(get_identity),
):
    contact_info = ContactMediator(db, cipher).disclose(listing_id, identity.user_id)
    return schemas.ContactOut(contact_info=contact_info)


@router.get("/api/admin/listings/pending", response_model=schemas.ListingPage)
def pending_listings(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=schemas.MAX_PAGE_SIZE),
    store: ListingStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
):
    return ModerationGate(store).pending_queue(identity, page, page_size)


@router.post("/api/admin/listings/{listing_id}/approve", response_model=schemas.Ack)
def approve_listing(
    listing_id: str,
    store: ListingStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
):
    ModerationGate(store).approve(identity, listing_id)
    return schemas.Ack(message="Listing approved")


@router.post("/api/admin/listings/{listing_id}/reject", response_model=schemas.Ack)
def reject_listing(
    listing_id: str,
    store: ListingStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
):
    ModerationGate(store).reject(identity, listing_id)
    return schemas.Ack(message="Listing rejected")


@router.post("/api/admin/listings/{listing_id}/takedown", response_model=schemas.Ack)
def takedown_listing(
    listing_id: str,
    store: ListingStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
):
    ModerationGate(store).takedown(identity, listing_id)
    return schemas.Ack(message="Listing taken down")


@router.delete("/api/admin/listings/{listing_id}", response_model=schemas.Ack)
def delete_listing(
    listing_id: str,
    store: ListingStore = Depends(get_store),
    identity: Identity = Depends(get_identity),
):
    ModerationGate(store).delete(identity, listing_id)
    return schemas.Ack(message="Listing deleted")


@router.get("/api/admin/statistics", response_model=schemas.Statistics)
def statistics(
    days: int = Query(7, ge=1, le=365),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    ensure_admin(identity)
    return ListingQuery(db).aggregate_statistics(days)


@router.get("/api/records/buyer", response_model=schemas.RecordPage)
def buyer_records(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=schemas.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return ListingQuery(db).records_for_buyer(identity.user_id, page, page_size)


@router.get("/api/records/seller", response_model=schemas.RecordPage)
def seller_records(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=schemas.MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_identity),
):
    return ListingQuery(db).records_for_seller(identity.user_id, page, page_size)
