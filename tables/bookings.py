# tables/bookings.py - Booking aggregate, its address/contact snapshot and assignment audit rows
from sqlalchemy import Column, Integer, Date, DateTime, String, ForeignKey, Text, Boolean, Enum
from sqlalchemy.orm import relationship
from config import Base
from tables.enums import BookingStatus, AddressType
import datetime

class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(AddressType, native_enum=False, length=20), nullable=False)
    area = Column(String(100), nullable=False)
    block = Column(String(50), nullable=False)
    road = Column(String(100), nullable=False)
    building = Column(String(100), nullable=False)
    flat = Column(String(50), nullable=True)
    additional_info = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    client = relationship("Users", back_populates="addresses")


class Contact(Base):
    """Name/phone/email as given at booking time, independent of the live profile."""
    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_number = Column(String(32), unique=True, nullable=True, index=True)
    status = Column(
        Enum(BookingStatus, native_enum=False, length=20),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )

    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String(64), ForeignKey("services.id"), nullable=False)
    pricing_option_id = Column(String(64), ForeignKey("pricing_options.id"), nullable=True)
    address_id = Column(Integer, ForeignKey("addresses.id"), nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)
    technician_id = Column(Integer, ForeignKey("technician_profiles.id"), nullable=True, index=True)

    scheduled_date = Column(Date, nullable=False)
    time_slot = Column(String(32), nullable=False)

    # Money in fils
    estimated_price = Column(Integer, nullable=False, default=0)
    final_price = Column(Integer, nullable=True)

    emergency = Column(Boolean, default=False)
    notes = Column(Text, nullable=True)           # customer-supplied
    internal_notes = Column(Text, nullable=True)  # technician/admin only
    cancellation_reason = Column(String(200), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    # Relationships
    client = relationship("Users", foreign_keys=[client_id])
    service = relationship("Service")
    pricing_option = relationship("PricingOption")
    address = relationship("Address")
    contact = relationship("Contact")
    technician = relationship("TechnicianProfile", back_populates="bookings")
    payment = relationship("Payment", back_populates="booking", uselist=False)
    review = relationship("Review", back_populates="booking", uselist=False)
    assignments = relationship("JobAssignment", back_populates="booking", order_by="JobAssignment.id")


class JobAssignment(Base):
    """Append-only record of who assigned which technician to which booking."""
    __tablename__ = "job_assignments"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    technician_id = Column(Integer, ForeignKey("technician_profiles.id"), nullable=False, index=True)
    assigned_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    assigned_at = Column(DateTime, default=datetime.datetime.utcnow)
    notes = Column(Text, nullable=True)

    booking = relationship("Booking", back_populates="assignments")
    technician = relationship("TechnicianProfile")
    assigned_by = relationship("Users")
