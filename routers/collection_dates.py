"""
Collection dates: the days on which customers of a location collect their photographs
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from core.auth import AuthUser, get_current_user
from core.config import logger
from core.database import get_db
from core.errors import ValidationFailed, NotFound
from core.permissions import require, COLLECTION_DATES_VIEW, COLLECTION_DATES_MANAGE
from models.catalog import CollectionDate
from models.location import Location
from utils.response import success_response
from utils.validation import invalid_dates

router = APIRouter(prefix="/api/collection-dates", tags=["collection-dates"])


class CollectionDatesCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    location_id: str
    dates: List[str] = []

    @field_validator("location_id")
    @classmethod
    def check_location_id(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("Location ID is required")
        return value


class CollectionDatesReplace(BaseModel):
    dates: Optional[List[str]] = None


def _check_dates(dates: List[str]) -> List[str]:
    if invalid_dates(dates):
        raise ValidationFailed("Invalid date format. Dates must be in YYYY-MM-DD format")
    # Drop repeats within the request, keep order
    return list(dict.fromkeys(dates))


def _ensure_location(db: Session, location_id: str) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise NotFound("Location not found")
    return location


def _dates_for(db: Session, location_id: str) -> List[CollectionDate]:
    return (
        db.query(CollectionDate)
        .filter(CollectionDate.location_id == location_id)
        .order_by(CollectionDate.date.asc())
        .all()
    )


@router.post("")
def create_collection_dates(
    data: CollectionDatesCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add dates to a location; dates it already has are skipped"""
    require(user, COLLECTION_DATES_MANAGE, "Only admin can create collection dates")
    if not data.dates:
        raise ValidationFailed("At least one date must be provided")
    dates = _check_dates(data.dates)
    _ensure_location(db, data.location_id)

    existing = {row.date for row in _dates_for(db, data.location_id)}
    new_dates = [d for d in dates if d not in existing]
    for d in new_dates:
        db.add(CollectionDate(location_id=data.location_id, date=d))
    db.commit()

    created = len(new_dates)
    logger.info(f"{created} collection date(s) added to location {data.location_id} by {user.id}")
    return success_response(
        {
            "collectionDates": [row.to_dict() for row in _dates_for(db, data.location_id)],
            "created": created,
        },
        f"Successfully created {created} collection date(s)",
        201,
    )


@router.get("")
def get_collection_dates(
    location_id: Optional[str] = Query(None, alias="locationId"),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Dates grouped per location: [{locationId, locationName, dates}]"""
    require(user, COLLECTION_DATES_VIEW, "You do not have permission to view collection dates")

    query = db.query(CollectionDate)
    if location_id:
        query = query.filter(CollectionDate.location_id == location_id)
    rows = query.order_by(CollectionDate.location_id.asc(), CollectionDate.date.asc()).all()

    grouped = {}
    for row in rows:
        grouped.setdefault(row.location_id, []).append(row.date)

    names = {}
    if grouped:
        names = dict(db.query(Location.id, Location.name).filter(Location.id.in_(list(grouped.keys()))).all())

    result = [
        {"locationId": loc_id, "locationName": names[loc_id], "dates": dates}
        for loc_id, dates in grouped.items()
        if loc_id in names
    ]
    return success_response({"collectionDates": result}, "Collection dates retrieved successfully")


@router.put("/{location_id}")
def replace_collection_dates(
    location_id: str,
    data: CollectionDatesReplace,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Replace the whole set of dates for a location; an empty list clears it"""
    require(user, COLLECTION_DATES_MANAGE, "Only admin can update collection dates")
    _ensure_location(db, location_id)
    dates = _check_dates(data.dates or [])

    db.query(CollectionDate).filter(CollectionDate.location_id == location_id).delete(synchronize_session=False)
    for d in dates:
        db.add(CollectionDate(location_id=location_id, date=d))
    db.commit()

    logger.info(f"Collection dates for location {location_id} replaced by {user.id}")
    return success_response(
        {"collectionDates": [row.date for row in _dates_for(db, location_id)]},
        "Collection dates updated successfully",
    )


@router.delete("/{location_id}")
def delete_collection_dates(
    location_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require(user, COLLECTION_DATES_MANAGE, "Only admin can delete collection dates")
    _ensure_location(db, location_id)
    db.query(CollectionDate).filter(CollectionDate.location_id == location_id).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Collection dates for location {location_id} deleted by {user.id}")
    return success_response(None, "Collection dates deleted successfully")
