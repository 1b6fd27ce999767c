"""
Studio locations
A location runs on a set of shoot dates and is staffed by an ordered list of sales persons
"""
import uuid

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from core.database import Base


class Location(Base):
    __tablename__ = "locations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    code = Column(String(8), nullable=True)  # Derived from name, see utils.location_code

    sales_person_ids = Column(JSON, default=list)  # Ordered user ids
    dates = Column(JSON, default=list)  # ["2024-01-02", ...]

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "salesPersonIds": list(self.sales_person_ids or []),
            "dates": list(self.dates or []),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_summary(self):
        return {"id": self.id, "name": self.name, "code": self.code}
