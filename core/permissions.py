"""
Role capabilities
Every endpoint checks one action against this table before touching the store
"""
from core.auth import AuthUser
from core.errors import Forbidden
from models.user import Role


BOOKINGS_CREATE = "bookings.create"
BOOKINGS_LIST = "bookings.list"
BOOKINGS_LIST_ALL = "bookings.list_all"  # see rows created by other sales persons
BOOKINGS_VIEW_ANY = "bookings.view_any"
BOOKINGS_MANAGE_ANY = "bookings.manage_any"  # update/delete rows created by others
BOOKINGS_ALLOCATE = "bookings.allocate"
BOOKINGS_SIGN_CONSENT = "bookings.sign_consent"
BOOKINGS_STATS = "bookings.stats"
LOCATIONS_VIEW = "locations.view"
LOCATIONS_VIEW_ALL = "locations.view_all"
LOCATIONS_MANAGE = "locations.manage"
SLOTS_VIEW = "slots.view"
SLOTS_MANAGE = "slots.manage"
COLLECTION_DATES_VIEW = "collection_dates.view"
COLLECTION_DATES_MANAGE = "collection_dates.manage"
SETTINGS_VIEW = "settings.view"
SETTINGS_MANAGE = "settings.manage"
USERS_MANAGE = "users.manage"

_COMMON = {
    BOOKINGS_LIST,
    BOOKINGS_ALLOCATE,
    BOOKINGS_SIGN_CONSENT,
    BOOKINGS_STATS,
    LOCATIONS_VIEW,
    SLOTS_VIEW,
    SETTINGS_VIEW,
}

_STAFF_WIDE = _COMMON | {BOOKINGS_LIST_ALL, BOOKINGS_VIEW_ANY, BOOKINGS_MANAGE_ANY, LOCATIONS_VIEW_ALL}

ROLE_PERMISSIONS = {
    Role.ADMIN: _STAFF_WIDE | {
        BOOKINGS_CREATE,
        LOCATIONS_MANAGE,
        SLOTS_MANAGE,
        COLLECTION_DATES_VIEW,
        COLLECTION_DATES_MANAGE,
        SETTINGS_MANAGE,
        USERS_MANAGE,
    },
    Role.SALES_PERSON: _COMMON | {BOOKINGS_CREATE},
    Role.CUSTOMER_SERVICE: _STAFF_WIDE | {BOOKINGS_CREATE},
    Role.STUDIO: _STAFF_WIDE | {COLLECTION_DATES_VIEW},
    Role.SALES: _STAFF_WIDE | {BOOKINGS_CREATE},
}


def is_allowed(role, action: str) -> bool:
    try:
        role = Role(role)
    except ValueError:
        return False
    return action in ROLE_PERMISSIONS.get(role, set())


def require(user: AuthUser, action: str, message: str = "You do not have permission to perform this action") -> None:
    if not is_allowed(user.role, action):
        raise Forbidden(message)


def can_access_booking(user: AuthUser, booking, action: str) -> bool:
    """Role-wide capability, or ownership of the booking"""
    if is_allowed(user.role, action):
        return True
    return bool(booking.sales_person_id) and booking.sales_person_id == user.id
