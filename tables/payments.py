# tables/payments.py - Payment record attached to a booking (no gateway logic)
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from config import Base
from tables.enums import PaymentMethod, PaymentStatus
import datetime

class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    amount = Column(Integer, nullable=False)  # fils
    method = Column(Enum(PaymentMethod, native_enum=False, length=10), nullable=False)
    status = Column(Enum(PaymentStatus, native_enum=False, length=10), nullable=False)
    paid_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    booking = relationship("Booking", back_populates="payment")
