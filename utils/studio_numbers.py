"""
Studio number allocation
Each booking at a location gets the smallest positive number not already used there
"""
from typing import Iterable, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import logger
from core.errors import NotFound, InvalidState, ConflictViolation
from models.booking import Booking, BookingStatus
from models.location import Location
from utils.location_code import format_studio_number


def next_studio_number(numbers: Iterable[int]) -> int:
    """
    First-fit gap over an ascending sequence: the first 1-indexed position whose
    value differs from the position, else len + 1.

    [1, 2, 4] -> 3, [1, 2, 3] -> 4, [] -> 1, [2, 3] -> 1
    """
    ordered = list(numbers)
    for position, value in enumerate(ordered, start=1):
        if value != position:
            return position
    return len(ordered) + 1


def _allocated_numbers(db: Session, location_id: str) -> list:
    rows = (
        db.query(Booking.studio_number)
        .filter(Booking.location_id == location_id, Booking.studio_number.isnot(None))
        .order_by(Booking.studio_number.asc())
        .all()
    )
    return [r[0] for r in rows]


def _studio_number_taken(db: Session, location_id: str, number: int, exclude_booking_id: str) -> bool:
    hit = (
        db.query(Booking.id)
        .filter(
            Booking.location_id == location_id,
            Booking.studio_number == number,
            Booking.id != exclude_booking_id,
        )
        .first()
    )
    return hit is not None


def allocate_studio_number(db: Session, booking_id: str) -> Tuple[Booking, Location, str]:
    """
    Assign the next free studio number at the booking's location and confirm the booking.

    The booking and location rows are read FOR UPDATE so concurrent allocations at
    one location run one after another on PostgreSQL; the (location_id, studio_number)
    unique constraint rejects anything that still slips through.
    """
    booking: Optional[Booking] = (
        db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()
    )
    if not booking:
        raise NotFound("Booking not found")

    if not booking.location_id:
        raise InvalidState("Booking must have a location assigned before allocating studio number")

    if booking.studio_number is not None:
        raise InvalidState("Studio number already allocated to this booking")

    location: Optional[Location] = (
        db.query(Location).filter(Location.id == booking.location_id).with_for_update().first()
    )
    if not location:
        raise NotFound("Location not found for this booking")

    location_id = location.id
    existing = _allocated_numbers(db, location_id)
    candidate = next_studio_number(existing)

    if _studio_number_taken(db, location_id, candidate, booking.id):
        fallback = max(existing, default=0) + 1
        logger.warning(
            f"Studio number {candidate} already taken at location {location_id}, falling back to {fallback}"
        )
        candidate = fallback

    booking.studio_number = candidate
    booking.status = BookingStatus.CONFIRMED.value
    try:
        db.commit()
    except IntegrityError as ex:
        db.rollback()
        logger.warning(f"Studio number conflict for booking {booking_id} at location {location_id}: {ex}")
        raise ConflictViolation("Studio number conflict occurred. Please try again.")

    db.refresh(booking)
    display = format_studio_number(candidate, location.code)
    logger.info(f"Allocated studio number {display} to booking {booking_id}")
    return booking, location, display
