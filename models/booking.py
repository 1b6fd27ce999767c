"""
Booking Models
Customer bookings for portrait sessions, with per-location studio numbers and consent capture
"""
import enum
import uuid

from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey, Enum as SQLEnum, UniqueConstraint, Index
from sqlalchemy.sql import func

from core.database import Base


class BookingStatus(str, enum.Enum):
    BOOKED = "BOOKED"
    CONFIRMED = "CONFIRMED"
    TBC = "TBC"
    CANCELLED = "CANCELLED"
    NO_ANSWER = "NO_ANSWER"
    WLMK = "WLMK"


class PhotoshootType(str, enum.Enum):
    CHILDREN = "children"
    FAMILY = "family"
    COUPLE = "couple"
    MATERNITY = "maternity"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CARD = "CARD"
    NOT_PAID = "NOT_PAID"


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class Booking(Base):
    """Main booking record"""
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("location_id", "studio_number", name="uq_bookings_location_studio_number"),
        Index("ix_bookings_location_status", "location_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Customer
    customer_name = Column(String(255), nullable=False)
    phone_number = Column(String(11), nullable=False)  # Digits only
    emergency_phone_number = Column(String(11), nullable=True)
    photoshoot_type = Column(SQLEnum(PhotoshootType, values_callable=_enum_values, native_enum=False, length=20), nullable=False)

    # Regular session slot, "YYYY-MM-DD" / "HH:MM"
    session_date = Column(String(10), nullable=True, index=True)
    session_time = Column(String(5), nullable=True)

    # Special request slot overrides the session slot for scheduling
    special_request_date = Column(String(10), nullable=True)
    special_request_time = Column(String(5), nullable=True)

    payment_method = Column(SQLEnum(PaymentMethod, values_callable=_enum_values, native_enum=False, length=20), nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.BOOKED.value, index=True)

    location_id = Column(String(36), ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True)
    sales_person_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Assigned once by the allocator, unique within location_id
    studio_number = Column(Integer, nullable=True)

    collection_date = Column(String(10), nullable=True)
    collection_time = Column(String(5), nullable=True)

    # Consent form
    signature_path = Column(Text, nullable=True)
    consent_form_signed = Column(Boolean, default=False, nullable=False)

    notes = Column(Text, nullable=True)
    studio_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "phoneNumber": self.phone_number,
            "emergencyPhoneNumber": self.emergency_phone_number,
            "photoshootType": self.photoshoot_type.value if self.photoshoot_type else None,
            "sessionDate": self.session_date,
            "sessionTime": self.session_time,
            "specialRequestDate": self.special_request_date,
            "specialRequestTime": self.special_request_time,
            "paymentMethod": self.payment_method.value if self.payment_method else None,
            "status": self.status,
            "locationId": self.location_id,
            "salesPersonId": self.sales_person_id,
            "studioNumber": self.studio_number,
            "collectionDate": self.collection_date,
            "collectionTime": self.collection_time,
            "signaturePath": self.signature_path,
            "consentFormSigned": bool(self.consent_form_signed),
            "notes": self.notes,
            "studioNotes": self.studio_notes,
            "cancellationReason": self.cancellation_reason,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
