"""
Slot catalogs: bookable session times, special request times and per-location collection dates
"""
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from core.database import Base


class SessionTime(Base):
    __tablename__ = "session_times"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    time = Column(String(5), unique=True, nullable=False)  # "HH:MM", 24-hour
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "time": self.time,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class SpecialRequestTime(Base):
    __tablename__ = "special_request_times"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    time = Column(String(5), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "time": self.time,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class CollectionDate(Base):
    """A date on which customers of a location can collect their photographs"""
    __tablename__ = "collection_dates"
    __table_args__ = (
        UniqueConstraint("location_id", "date", name="uq_collection_dates_location_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    location_id = Column(String(36), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "locationId": self.location_id,
            "date": self.date,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
