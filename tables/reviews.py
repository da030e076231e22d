# tables/reviews.py - Post-completion reviews, hidden until an admin approves them
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Text, Boolean
from sqlalchemy.orm import relationship
from config import Base
import datetime

class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), unique=True, nullable=False)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # 1-5 star ratings; only overall is required
    overall_rating = Column(Integer, nullable=False)
    quality_rating = Column(Integer, nullable=True)
    timeliness_rating = Column(Integer, nullable=True)
    communication_rating = Column(Integer, nullable=True)
    value_rating = Column(Integer, nullable=True)

    comment = Column(Text, nullable=True)
    positives = Column(Text, nullable=True)
    improvements = Column(Text, nullable=True)

    published = Column(Boolean, nullable=False, default=False)
    verified_job = Column(Boolean, nullable=False, default=True)
    helpful = Column(Integer, nullable=False, default=0)

    moderation_notes = Column(Text, nullable=True)
    moderated_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    moderated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.datetime.utcnow)

    booking = relationship("Booking", back_populates="review")
    client = relationship("Users", foreign_keys=[client_id])
