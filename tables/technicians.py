# tables/technicians.py - Technician profiles with workload counters
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Float, JSON, Text, Enum
from sqlalchemy.orm import relationship
from config import Base
from tables.enums import TechnicianStatus
import datetime

class TechnicianProfile(Base):
    __tablename__ = 'technician_profiles'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    status = Column(
        Enum(TechnicianStatus, native_enum=False, length=20),
        nullable=False,
        default=TechnicianStatus.UNDER_REVIEW
    )
    specialties = Column(JSON, nullable=False, default=list)  # e.g. ["plumbing", "AC"]
    service_areas = Column(JSON, nullable=False, default=list)
    experience_years = Column(Integer, default=0)
    verified = Column(Boolean, default=False)

    # Workload counters, written only by lifecycle.workload
    assigned_jobs = Column(Integer, nullable=False, default=0)
    completed_jobs = Column(Integer, nullable=False, default=0)

    # Derived from published reviews
    rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)
    admin_rating = Column(Integer, nullable=True)  # 1-5, set by admins

    internal_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

    user = relationship("Users", back_populates="technician_profile")
    bookings = relationship("Booking", back_populates="technician")
