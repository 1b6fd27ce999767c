"""
Staff user accounts
Every user signs in with name + password and carries exactly one role
"""
import enum
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from core.database import Base


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    SALES_PERSON = "SALES_PERSON"
    CUSTOMER_SERVICE = "CUSTOMER_SERVICE"
    STUDIO = "STUDIO"
    SALES = "SALES"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Login name, also shown on bookings
    name = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    password_hash = Column(String(255), nullable=False)  # bcrypt hash
    role = Column(String(32), nullable=False, default=Role.SALES_PERSON.value, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        """Convert to dict for API responses (never includes the password hash)"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_summary(self):
        return {"id": self.id, "name": self.name, "email": self.email}
