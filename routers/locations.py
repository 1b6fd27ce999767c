"""
Locations Router
Studio locations with their shoot dates and assigned sales persons
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from core.auth import AuthUser, get_current_user
from core.config import logger
from core.database import get_db
from core.errors import ValidationFailed, NotFound
from core.permissions import require, is_allowed, LOCATIONS_VIEW, LOCATIONS_VIEW_ALL, LOCATIONS_MANAGE
from models.booking import Booking
from models.catalog import CollectionDate
from models.location import Location
from models.user import User, Role
from utils.location_code import generate_location_code
from utils.response import success_response
from utils.validation import invalid_dates

router = APIRouter(prefix="/api/locations", tags=["locations"])


class _LocationFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("name", check_fields=False)
    @classmethod
    def check_name(cls, value):
        if value is None:
            return None
        value = value.strip()
        if len(value) < 2:
            raise ValueError("Location name must be at least 2 characters")
        return value


class LocationCreate(_LocationFields):
    name: str
    sales_person_ids: List[str] = []
    dates: List[str] = []


class LocationUpdate(_LocationFields):
    name: Optional[str] = None
    sales_person_ids: Optional[List[str]] = None
    dates: Optional[List[str]] = None


def _check_sales_persons(db: Session, ids: List[str]) -> List[str]:
    if not ids:
        raise ValidationFailed("At least one sales person must be assigned")
    # Keep first occurrence order
    unique_ids = list(dict.fromkeys(ids))
    found = (
        db.query(User.id)
        .filter(User.id.in_(unique_ids), User.role == Role.SALES_PERSON.value)
        .count()
    )
    if found != len(unique_ids):
        raise ValidationFailed("One or more sales person IDs are invalid")
    return unique_ids


def _check_dates(dates: List[str]) -> List[str]:
    if not dates:
        raise ValidationFailed("At least one date must be selected")
    if invalid_dates(dates):
        raise ValidationFailed("Invalid date format. Dates must be in YYYY-MM-DD format")
    return dates


def _with_sales_persons(db: Session, locations: List[Location]) -> List[dict]:
    """Attach salesPersons in salesPersonIds order, resolving every location's ids in one query"""
    all_ids = {sid for loc in locations for sid in (loc.sales_person_ids or [])}
    users = {}
    if all_ids:
        users = {u.id: u for u in db.query(User).filter(User.id.in_(all_ids)).all()}

    result = []
    for loc in locations:
        item = loc.to_dict()
        item["salesPersons"] = [
            {"id": users[sid].id, "name": users[sid].name or users[sid].email, "email": users[sid].email}
            for sid in (loc.sales_person_ids or [])
            if sid in users
        ]
        result.append(item)
    return result


def _get_location_or_404(db: Session, location_id: str) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise NotFound("Location not found")
    return location


@router.post("")
def create_location(
    data: LocationCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require(user, LOCATIONS_MANAGE, "Only admin can create locations")
    sales_person_ids = _check_sales_persons(db, data.sales_person_ids)
    dates = _check_dates(data.dates)

    location = Location(
        name=data.name,
        code=generate_location_code(data.name),
        sales_person_ids=sales_person_ids,
        dates=dates,
    )
    db.add(location)
    db.commit()
    db.refresh(location)
    logger.info(f"Location {location.id} ({location.code}) created by {user.id}")
    return success_response(
        {"location": _with_sales_persons(db, [location])[0]}, "Location created successfully", 201
    )


@router.get("")
def get_locations(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Sales persons see only the locations they are assigned to"""
    require(user, LOCATIONS_VIEW)
    locations = db.query(Location).order_by(Location.created_at.desc()).all()
    if not is_allowed(user.role, LOCATIONS_VIEW_ALL):
        # JSON list membership is filtered here to stay portable across backends
        locations = [loc for loc in locations if user.id in (loc.sales_person_ids or [])]
    return success_response({"locations": _with_sales_persons(db, locations)}, "Locations retrieved successfully")


@router.get("/{location_id}")
def get_location(
    location_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require(user, LOCATIONS_VIEW)
    location = _get_location_or_404(db, location_id)
    return success_response({"location": _with_sales_persons(db, [location])[0]}, "Location retrieved successfully")


@router.put("/{location_id}")
def update_location(
    location_id: str,
    data: LocationUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require(user, LOCATIONS_MANAGE, "Only admin can update locations")
    location = _get_location_or_404(db, location_id)

    if data.name is not None:
        location.name = data.name
        location.code = generate_location_code(data.name)
    if data.sales_person_ids is not None:
        location.sales_person_ids = _check_sales_persons(db, data.sales_person_ids)
    if data.dates is not None:
        location.dates = _check_dates(data.dates)

    db.commit()
    db.refresh(location)
    logger.info(f"Location {location.id} updated by {user.id}")
    return success_response({"location": _with_sales_persons(db, [location])[0]}, "Location updated successfully")


@router.delete("/{location_id}")
def delete_location(
    location_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require(user, LOCATIONS_MANAGE, "Only admin can delete locations")
    location = _get_location_or_404(db, location_id)

    # Mirror the foreign key actions explicitly so SQLite behaves like PostgreSQL
    db.query(CollectionDate).filter(CollectionDate.location_id == location_id).delete(synchronize_session=False)
    db.query(Booking).filter(Booking.location_id == location_id).update(
        {Booking.location_id: None}, synchronize_session=False
    )
    db.delete(location)
    db.commit()
    logger.info(f"Location {location_id} deleted by {user.id}")
    return success_response(None, "Location deleted successfully")
