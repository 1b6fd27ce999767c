"""
Booking list assembly: visibility, filtering, status summary, slot ordering, paging and enrichment

Ordering is computed over the whole filtered set before the page is cut, because
the displayed slot (special request first, then the session slot) is derived and
cannot be pushed down to a single ORDER BY column.
"""
import math
from dataclasses import dataclass
from typing import Optional, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.auth import AuthUser
from core.permissions import is_allowed, BOOKINGS_LIST_ALL
from models.booking import Booking
from models.location import Location
from models.user import User
from utils.location_code import format_studio_number


# Status value -> summary key, in the order the dashboard renders them
SUMMARY_KEYS = {
    "CONFIRMED": "confirmed",
    "BOOKED": "booked",
    "TBC": "tbc",
    "CANCELLED": "cancelled",
    "NO_ANSWER": "noAnswer",
    "WLMK": "wlmk",
    "VIDEO_CALL": "videoCall",
}


@dataclass
class BookingFilters:
    location_id: Optional[str] = None
    status: Optional[str] = None
    sales_person_id: Optional[str] = None
    include_all_sales_persons: bool = False
    has_collection_date: bool = False


def filter_clauses(user: AuthUser, filters: BookingFilters) -> list:
    clauses = []

    # Sales persons only see their own rows, except for the cross sales-person
    # view of a single location
    own_only = not is_allowed(user.role, BOOKINGS_LIST_ALL) and not (
        filters.include_all_sales_persons and filters.location_id
    )
    if own_only:
        clauses.append(Booking.sales_person_id == user.id)
    elif filters.sales_person_id:
        clauses.append(Booking.sales_person_id == filters.sales_person_id)

    if filters.location_id:
        clauses.append(Booking.location_id == filters.location_id)

    if filters.status:
        clauses.append(Booking.status == filters.status.strip().upper())

    if filters.has_collection_date:
        clauses.append(Booking.collection_date.isnot(None))
        clauses.append(Booking.collection_time.isnot(None))

    return clauses


def slot_sort_key(date: Optional[str], time: Optional[str]) -> tuple:
    """
    Ascending by date then time. Zero-padded ISO strings compare correctly as text.
    Missing dates sort after every dated row; with equal dates a missing time sorts last.
    """
    return (not date, date or "", not time, time or "")


def effective_slot(row, by_collection: bool) -> tuple:
    if by_collection:
        return row.collection_date, row.collection_time
    return (
        row.special_request_date or row.session_date,
        row.special_request_time or row.session_time,
    )


def sorted_booking_ids(rows, by_collection: bool) -> List[str]:
    # sorted() is stable, so ties keep the store order
    ordered = sorted(rows, key=lambda r: slot_sort_key(*effective_slot(r, by_collection)))
    return [r.id for r in ordered]


def status_summary(db: Session, clauses: list, total: int) -> dict:
    summary = {key: 0 for key in SUMMARY_KEYS.values()}
    rows = db.query(Booking.status, func.count(Booking.id)).filter(*clauses).group_by(Booking.status).all()
    for status, count in rows:
        key = SUMMARY_KEYS.get((status or "").upper())
        if key:
            summary[key] += int(count)
    summary["total"] = total
    return summary


def enrich_bookings(db: Session, bookings: List[Booking]) -> List[dict]:
    """Attach location {id, name, code} and salesPerson {id, name, email} with one lookup per table"""
    location_ids = {b.location_id for b in bookings if b.location_id}
    user_ids = {b.sales_person_id for b in bookings if b.sales_person_id}

    locations = {}
    if location_ids:
        locations = {loc.id: loc for loc in db.query(Location).filter(Location.id.in_(location_ids)).all()}
    users = {}
    if user_ids:
        users = {u.id: u for u in db.query(User).filter(User.id.in_(user_ids)).all()}

    result = []
    for b in bookings:
        loc = locations.get(b.location_id) if b.location_id else None
        sp = users.get(b.sales_person_id) if b.sales_person_id else None
        item = b.to_dict()
        item["location"] = loc.to_summary() if loc else None
        item["salesPerson"] = sp.to_summary() if sp else None
        item["studioNumberDisplay"] = format_studio_number(b.studio_number, loc.code if loc else None)
        result.append(item)
    return result


def list_bookings(db: Session, user: AuthUser, filters: BookingFilters, page: int = 1, limit: int = 20) -> dict:
    page = max(1, int(page or 1))
    limit = max(1, int(limit or 20))
    clauses = filter_clauses(user, filters)

    total = db.query(func.count(Booking.id)).filter(*clauses).scalar() or 0
    summary = status_summary(db, clauses, total)

    key_rows = (
        db.query(
            Booking.id,
            Booking.session_date,
            Booking.session_time,
            Booking.special_request_date,
            Booking.special_request_time,
            Booking.collection_date,
            Booking.collection_time,
        )
        .filter(*clauses)
        .order_by(Booking.created_at.desc(), Booking.id.asc())
        .all()
    )
    ordered_ids = sorted_booking_ids(key_rows, filters.has_collection_date)

    start = (page - 1) * limit
    page_ids = ordered_ids[start:start + limit]

    bookings: List[Booking] = []
    if page_ids:
        fetched = {b.id: b for b in db.query(Booking).filter(Booking.id.in_(page_ids)).all()}
        # IN (...) does not preserve order; re-impose the sorted sequence
        bookings = [fetched[i] for i in page_ids if i in fetched]

    return {
        "bookings": enrich_bookings(db, bookings),
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": math.ceil(total / limit) if total else 0,
        },
        "summary": summary,
    }
