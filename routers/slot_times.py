"""
Bookable time catalogs
/api/session-times and /api/special-request-times share one implementation
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.auth import AuthUser, get_current_user
from core.config import logger
from core.database import get_db
from core.errors import ValidationFailed, NotFound
from core.permissions import require, SLOTS_VIEW, SLOTS_MANAGE
from models.catalog import SessionTime, SpecialRequestTime
from utils.response import success_response
from utils.validation import is_valid_clock_time


class SlotTimeBody(BaseModel):
    time: Optional[str] = Field(None, validate_default=True)

    @field_validator("time", mode="before")
    @classmethod
    def check_time(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("Time is required")
        value = value.strip() if isinstance(value, str) else value
        if not is_valid_clock_time(value):
            raise ValueError("Time must be in HH:MM format (24-hour)")
        return value


def build_slot_time_router(prefix: str, model, label: str, plural: str, result_key: str) -> APIRouter:
    """
    label: "Session time", plural: "session times", result_key: "sessionTimes"
    """
    router = APIRouter(prefix=prefix, tags=[plural])
    singular_key = result_key[:-1]

    def _get_or_404(db: Session, slot_id: str):
        row = db.query(model).filter(model.id == slot_id).first()
        if not row:
            raise NotFound(f"{label} not found")
        return row

    def _ensure_unique(db: Session, value: str, exclude_id: Optional[str] = None) -> None:
        query = db.query(model.id).filter(model.time == value)
        if exclude_id:
            query = query.filter(model.id != exclude_id)
        if query.first():
            raise ValidationFailed(f"{label} already exists")

    def _commit(db: Session) -> None:
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ValidationFailed(f"{label} already exists")

    @router.post("")
    def create_slot_time(
        data: SlotTimeBody,
        user: AuthUser = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        require(user, SLOTS_MANAGE, f"Only admin can create {plural}")
        _ensure_unique(db, data.time)
        row = model(time=data.time)
        db.add(row)
        _commit(db)
        db.refresh(row)
        logger.info(f"{label} {row.time} created by {user.id}")
        return success_response({singular_key: row.to_dict()}, f"{label} created successfully", 201)

    @router.get("")
    def list_slot_times(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
        require(user, SLOTS_VIEW)
        rows = db.query(model).order_by(model.time.asc()).all()
        return success_response({result_key: [r.to_dict() for r in rows]}, f"{label}s retrieved successfully")

    @router.put("/{slot_id}")
    def update_slot_time(
        slot_id: str,
        data: SlotTimeBody,
        user: AuthUser = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        require(user, SLOTS_MANAGE, f"Only admin can update {plural}")
        row = _get_or_404(db, slot_id)
        _ensure_unique(db, data.time, exclude_id=row.id)
        row.time = data.time
        _commit(db)
        db.refresh(row)
        logger.info(f"{label} {row.id} updated to {row.time} by {user.id}")
        return success_response({singular_key: row.to_dict()}, f"{label} updated successfully")

    @router.delete("/{slot_id}")
    def delete_slot_time(
        slot_id: str,
        user: AuthUser = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        require(user, SLOTS_MANAGE, f"Only admin can delete {plural}")
        row = _get_or_404(db, slot_id)
        db.delete(row)
        db.commit()
        logger.info(f"{label} {slot_id} deleted by {user.id}")
        return success_response(None, f"{label} deleted successfully")

    return router


session_times_router = build_slot_time_router(
    "/api/session-times", SessionTime, "Session time", "session times", "sessionTimes"
)
special_request_times_router = build_slot_time_router(
    "/api/special-request-times", SpecialRequestTime, "Special request time", "special request times",
    "specialRequestTimes",
)
