"""
Bookings Router
Customer bookings: CRUD, paginated listing, studio number allocation and consent signatures
"""
import base64
import binascii
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.auth import AuthUser, get_current_user
from core.config import logger, DEFAULT_BOOKINGS_PAGE_SIZE, MAX_BOOKINGS_PAGE_SIZE, MAX_SIGNATURE_BYTES
from core.database import get_db
from core.errors import ValidationFailed, NotFound, Forbidden, InvalidState, InternalFailure
from core.permissions import (
    require, is_allowed, can_access_booking,
    BOOKINGS_CREATE, BOOKINGS_LIST, BOOKINGS_LIST_ALL, BOOKINGS_VIEW_ANY, BOOKINGS_MANAGE_ANY,
    BOOKINGS_ALLOCATE, BOOKINGS_SIGN_CONSENT, BOOKINGS_STATS,
)
from models.booking import Booking, BookingStatus, PaymentMethod, PhotoshootType
from models.location import Location
from models.user import User, Role
from utils.booking_list import BookingFilters, list_bookings, enrich_bookings
from utils.response import success_response
from utils.storage import save_signature_image, delete_key
from utils.studio_numbers import allocate_studio_number
from utils.validation import normalize_phone, is_valid_date, is_valid_time, has_complete_slot

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


# ============ Pydantic Models ============

def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _parse_payment_method(value: str) -> PaymentMethod:
    # The front-end sends "cash" / "card" / "not-paid"
    normalized = str(value or "").strip().upper().replace("-", "_")
    try:
        return PaymentMethod(normalized)
    except ValueError:
        raise ValueError("Invalid payment method")


def _parse_photoshoot_type(value: str) -> PhotoshootType:
    try:
        return PhotoshootType(str(value or "").strip().lower())
    except ValueError:
        raise ValueError("Invalid photoshoot type")


def _parse_status(value: str) -> BookingStatus:
    try:
        return BookingStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValueError("Invalid status")


class _BookingFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("session_date", "special_request_date", "collection_date", mode="before", check_fields=False)
    @classmethod
    def check_date(cls, value, info):
        value = _blank_to_none(value)
        if value is not None and not is_valid_date(value):
            label = info.field_name.replace("_", " ").capitalize()
            raise ValueError(f"{label} must be in YYYY-MM-DD format")
        return value

    @field_validator("session_time", "special_request_time", "collection_time", mode="before", check_fields=False)
    @classmethod
    def check_time(cls, value, info):
        value = _blank_to_none(value)
        if value is not None and not is_valid_time(value):
            label = info.field_name.replace("_", " ").capitalize()
            raise ValueError(f"{label} must be in HH:MM format")
        return value

    @field_validator("emergency_phone_number", mode="before", check_fields=False)
    @classmethod
    def check_emergency_phone(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return None
        digits, err = normalize_phone(value, "Emergency phone number")
        if err:
            raise ValueError(err)
        return digits

    @field_validator("photoshoot_type", mode="before", check_fields=False)
    @classmethod
    def check_photoshoot_type(cls, value):
        return None if value is None else _parse_photoshoot_type(value)

    @field_validator("payment_method", mode="before", check_fields=False)
    @classmethod
    def check_payment_method(cls, value):
        return None if value is None else _parse_payment_method(value)

    @field_validator("status", mode="before", check_fields=False)
    @classmethod
    def check_status(cls, value):
        value = _blank_to_none(value)
        return None if value is None else _parse_status(value)

    @field_validator("location_id", "notes", "studio_notes", "cancellation_reason", mode="before", check_fields=False)
    @classmethod
    def blank_optional(cls, value):
        return _blank_to_none(value)


class BookingCreate(_BookingFields):
    customer_name: str
    phone_number: str
    emergency_phone_number: Optional[str] = None
    photoshoot_type: PhotoshootType
    session_date: Optional[str] = None
    session_time: Optional[str] = None
    special_request_date: Optional[str] = None
    special_request_time: Optional[str] = None
    payment_method: PaymentMethod
    location_id: Optional[str] = None
    status: Optional[BookingStatus] = None
    notes: Optional[str] = None

    @field_validator("customer_name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("Customer name is required")
        return value

    @field_validator("phone_number", mode="before")
    @classmethod
    def check_phone(cls, value):
        digits, err = normalize_phone(value if isinstance(value, str) else None)
        if err:
            raise ValueError(err)
        return digits

    @model_validator(mode="after")
    def check_slot(self):
        status = self.status or BookingStatus.BOOKED
        if status != BookingStatus.TBC and not has_complete_slot(
            self.session_date, self.session_time, self.special_request_date, self.special_request_time
        ):
            raise ValueError("Session date and time are required for booked status")
        return self


class BookingUpdate(_BookingFields):
    customer_name: Optional[str] = None
    phone_number: Optional[str] = None
    emergency_phone_number: Optional[str] = None
    photoshoot_type: Optional[PhotoshootType] = None
    session_date: Optional[str] = None
    session_time: Optional[str] = None
    special_request_date: Optional[str] = None
    special_request_time: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    status: Optional[BookingStatus] = None
    location_id: Optional[str] = None
    notes: Optional[str] = None
    studio_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    collection_date: Optional[str] = None
    collection_time: Optional[str] = None

    @field_validator("customer_name")
    @classmethod
    def check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("Customer name cannot be empty")
        return value

    @field_validator("phone_number", mode="before")
    @classmethod
    def check_phone(cls, value):
        value = _blank_to_none(value)
        if value is None:
            return None
        digits, err = normalize_phone(value)
        if err:
            raise ValueError(err)
        return digits


# Fields that an explicit null clears; the rest are only written when a value is sent
_CLEARABLE_FIELDS = {
    "emergency_phone_number", "session_date", "session_time",
    "special_request_date", "special_request_time", "location_id",
    "notes", "studio_notes", "cancellation_reason", "collection_date", "collection_time",
}


# ============ Helpers ============

def _get_booking_or_404(db: Session, booking_id: str) -> Booking:
    booking = db.query(Booking).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFound("Booking not found")
    return booking


def _ensure_location_exists(db: Session, location_id: Optional[str]) -> None:
    if location_id and not db.query(Location.id).filter(Location.id == location_id).first():
        raise NotFound("Location not found")


def _decode_signature(signature) -> bytes:
    if not signature or not isinstance(signature, str):
        raise ValidationFailed("Signature data is required")
    # Accept a data URL ("data:image/png;base64,....") or bare base64
    payload = signature.split(",", 1)[1] if "," in signature else signature
    try:
        data = base64.b64decode(payload.strip(), validate=True)
    except (binascii.Error, ValueError):
        raise ValidationFailed("Invalid signature image data")
    if not data:
        raise ValidationFailed("Invalid signature image data")
    if len(data) > MAX_SIGNATURE_BYTES:
        raise ValidationFailed("Signature image is too large")
    return data


def _local_day_window(now: Optional[datetime] = None):
    """Server-local midnight to the next midnight, expressed in UTC"""
    now = (now or datetime.now(timezone.utc)).astimezone()
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start.astimezone(timezone.utc), (start + timedelta(days=1)).astimezone(timezone.utc)


# ============ Bookings ============

@router.post("")
def create_booking(
    data: BookingCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a booking owned by the calling sales person"""
    require(user, BOOKINGS_CREATE, "You do not have permission to create bookings")
    _ensure_location_exists(db, data.location_id)

    booking = Booking(
        customer_name=data.customer_name,
        phone_number=data.phone_number,
        emergency_phone_number=data.emergency_phone_number,
        photoshoot_type=data.photoshoot_type,
        session_date=data.session_date,
        session_time=data.session_time,
        special_request_date=data.special_request_date,
        special_request_time=data.special_request_time,
        payment_method=data.payment_method,
        status=(data.status or BookingStatus.BOOKED).value,
        notes=data.notes,
        location_id=data.location_id,
        sales_person_id=user.id,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.id} created by {user.id}")
    return success_response({"booking": booking.to_dict()}, "Booking created successfully", 201)


@router.get("")
def get_bookings(
    location_id: Optional[str] = Query(None, alias="locationId"),
    status: Optional[str] = Query(None),
    sales_person_id: Optional[str] = Query(None, alias="salesPersonId"),
    include_all_sales_persons: bool = Query(False, alias="includeAllSalesPersons"),
    has_collection_date: bool = Query(False, alias="hasCollectionDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_BOOKINGS_PAGE_SIZE, ge=1, le=MAX_BOOKINGS_PAGE_SIZE),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List bookings in slot order with pagination and a status summary"""
    require(user, BOOKINGS_LIST)
    filters = BookingFilters(
        location_id=location_id or None,
        status=status or None,
        sales_person_id=sales_person_id or None,
        include_all_sales_persons=include_all_sales_persons,
        has_collection_date=has_collection_date,
    )
    result = list_bookings(db, user, filters, page=page, limit=limit)
    return success_response(result, "Bookings retrieved successfully")


@router.get("/stats/sales-persons")
def get_bookings_by_sales_person(
    stat_type: str = Query("total", alias="type", pattern="^(total|today)$"),
    location_id: Optional[str] = Query(None, alias="locationId"),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Paid booking counts per sales person, highest first"""
    require(user, BOOKINGS_STATS)

    clauses = [
        Booking.payment_method != PaymentMethod.NOT_PAID,
        Booking.sales_person_id.isnot(None),
    ]
    if location_id:
        clauses.append(Booking.location_id == location_id)
    if stat_type == "today":
        start, end = _local_day_window()
        clauses.append(Booking.created_at >= start)
        clauses.append(Booking.created_at < end)
    if not is_allowed(user.role, BOOKINGS_LIST_ALL):
        clauses.append(Booking.sales_person_id == user.id)

    counts = dict(
        db.query(Booking.sales_person_id, func.count(Booking.id))
        .filter(*clauses)
        .group_by(Booking.sales_person_id)
        .all()
    )

    people = []
    if counts:
        people = (
            db.query(User)
            .filter(User.id.in_(list(counts.keys())), User.role == Role.SALES_PERSON.value)
            .all()
        )

    result = [
        {
            "id": sp.id,
            "salesPersonName": sp.name or sp.email or "Unknown",
            "salesPersonEmail": sp.email,
            "bookingCount": int(counts[sp.id]),
        }
        for sp in people
    ]
    result.sort(key=lambda item: item["bookingCount"], reverse=True)

    label = "Today" if stat_type == "today" else "Total"
    return success_response({"salesPersons": result}, f"{label} bookings retrieved successfully")


@router.get("/{booking_id}")
def get_booking(
    booking_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking = _get_booking_or_404(db, booking_id)
    if not can_access_booking(user, booking, BOOKINGS_VIEW_ANY):
        raise Forbidden("You do not have permission to view this booking")
    return success_response({"booking": enrich_bookings(db, [booking])[0]}, "Booking retrieved successfully")


@router.put("/{booking_id}")
def update_booking(
    booking_id: str,
    data: BookingUpdate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Partial update; studio numbers are never written here"""
    booking = _get_booking_or_404(db, booking_id)
    if not can_access_booking(user, booking, BOOKINGS_MANAGE_ANY):
        raise Forbidden("You do not have permission to update this booking")

    changes = data.model_dump(exclude_unset=True)

    if "location_id" in changes and changes["location_id"] != booking.location_id:
        if booking.studio_number is not None:
            raise InvalidState("Studio number already allocated; the booking cannot move to another location")
        _ensure_location_exists(db, changes["location_id"])

    for key, value in changes.items():
        if value is None and key not in _CLEARABLE_FIELDS:
            continue
        if key == "status":
            value = value.value
        setattr(booking, key, value)

    if booking.status != BookingStatus.TBC.value and not has_complete_slot(
        booking.session_date, booking.session_time,
        booking.special_request_date, booking.special_request_time,
    ):
        db.rollback()
        raise ValidationFailed("Session date and time are required for booked status")

    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.id} updated by {user.id}")
    return success_response({"booking": enrich_bookings(db, [booking])[0]}, "Booking updated successfully")


@router.delete("/{booking_id}")
def delete_booking(
    booking_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    booking = _get_booking_or_404(db, booking_id)
    if not can_access_booking(user, booking, BOOKINGS_MANAGE_ANY):
        raise Forbidden("You do not have permission to delete this booking")

    signature_path = booking.signature_path
    db.delete(booking)
    db.commit()
    if signature_path:
        delete_key(signature_path)
    logger.info(f"Booking {booking_id} deleted by {user.id}")
    return success_response(None, "Booking deleted successfully")


# ============ Studio numbers ============

@router.post("/{booking_id}/allocate-studio-number")
def allocate_booking_studio_number(
    booking_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require(user, BOOKINGS_ALLOCATE)
    booking, _location, display = allocate_studio_number(db, booking_id)
    payload = enrich_bookings(db, [booking])[0]
    return success_response({"booking": payload}, f"Studio number {display} allocated successfully")


# ============ Consent form ============

@router.post("/{booking_id}/consent-form-signature")
def save_consent_form_signature(
    booking_id: str,
    signature: Optional[str] = Body(None, embed=True),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Store the customer's signature image and mark the consent form signed"""
    require(user, BOOKINGS_SIGN_CONSENT)
    image = _decode_signature(signature)
    booking = _get_booking_or_404(db, booking_id)

    try:
        new_path = save_signature_image(image, booking.id)
    except Exception as ex:
        logger.exception(f"Saving signature for booking {booking.id} failed: {ex}")
        raise InternalFailure("Failed to save signature image")

    old_path = booking.signature_path
    booking.signature_path = new_path
    booking.consent_form_signed = True
    try:
        db.commit()
    except SQLAlchemyError as ex:
        db.rollback()
        # The row still points at the old file; drop the one nobody references
        delete_key(new_path)
        logger.exception(f"Recording signature for booking {booking_id} failed: {ex}")
        raise InternalFailure("Failed to save signature")

    if old_path and old_path != new_path:
        # Stale file cleanup must not block re-signing
        if not delete_key(old_path):
            logger.warning(f"Old signature {old_path} for booking {booking_id} was not removed")

    db.refresh(booking)
    logger.info(f"Consent form signed for booking {booking.id}")
    return success_response({"booking": booking.to_dict()}, "Consent form signature saved successfully")
