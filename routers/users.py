"""
Staff accounts managed by the admin
One set of endpoints per staff kind: /api/users/{kind}
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.auth import AuthUser, get_current_user, hash_password
from core.config import logger
from core.database import get_db
from core.errors import NotFound, ConflictViolation
from core.permissions import require, USERS_MANAGE
from models.user import User, Role
from utils.response import success_response

router = APIRouter(prefix="/api/users", tags=["users"])


# kind -> (role, singular label, plural label)
STAFF_KINDS = {
    "sales-person": (Role.SALES_PERSON, "Sales person", "sales persons"),
    "customer-care": (Role.CUSTOMER_SERVICE, "Customer care user", "customer care users"),
    "studio-assistant": (Role.STUDIO, "Studio assistant", "studio assistants"),
    "sales": (Role.SALES, "Sales user", "sales users"),
}


class StaffCreate(BaseModel):
    name: str
    password: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("Name is required")
        if len(value) < 2:
            raise ValueError("Name must be at least 2 characters")
        return value

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value


def _staff_kind(kind: str):
    if kind not in STAFF_KINDS:
        raise NotFound("Unknown user type")
    return STAFF_KINDS[kind]


@router.post("/{kind}")
def create_staff_user(
    kind: str,
    data: StaffCreate,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    role, label, plural = _staff_kind(kind)
    require(user, USERS_MANAGE, f"Only admin can create {plural}")

    if db.query(User.id).filter(User.name == data.name).first():
        raise ConflictViolation("User with this name already exists")

    record = User(name=data.name, email=None, password_hash=hash_password(data.password), role=role.value)
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent create of the same name
        db.rollback()
        raise ConflictViolation("User with this name already exists")
    db.refresh(record)
    logger.info(f"{label} {record.id} created by {user.id}")
    return success_response({"user": record.to_dict()}, f"{label} created successfully", 201)


@router.get("/{kind}")
def list_staff_users(
    kind: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    role, label, plural = _staff_kind(kind)
    require(user, USERS_MANAGE, f"Only admin can view {plural}")

    rows = db.query(User).filter(User.role == role.value).order_by(User.created_at.desc()).all()
    return success_response({"users": [u.to_dict() for u in rows]}, f"{label}s retrieved successfully")


@router.delete("/{kind}/{user_id}")
def delete_staff_user(
    kind: str,
    user_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    role, label, plural = _staff_kind(kind)
    require(user, USERS_MANAGE, f"Only admin can delete {plural}")

    record = db.query(User).filter(User.id == user_id, User.role == role.value).first()
    if not record:
        raise NotFound(f"{label} not found")

    db.delete(record)
    db.commit()
    logger.info(f"{label} {user_id} deleted by {user.id}")
    return success_response(None, f"{label} deleted successfully")
