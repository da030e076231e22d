# repository/technicians.py - Technician profile lookups, admin actions and job stats
import logging
from datetime import datetime, date
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from config import atomic
from tables.technicians import TechnicianProfile
from tables.bookings import Booking
from tables.reviews import Review
from tables.enums import TechnicianStatus, BookingStatus
from lifecycle.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

TECHNICIAN_ACTIONS = ("approve", "suspend", "activate", "deactivate", "rate")


class TechnicianRepo:
    @staticmethod
    def get(db: Session, technician_id: int):
        return db.query(TechnicianProfile).options(
            joinedload(TechnicianProfile.user)
        ).filter(TechnicianProfile.id == technician_id).first()

    @staticmethod
    def get_by_user(db: Session, user_id: int):
        return db.query(TechnicianProfile).filter(TechnicianProfile.user_id == user_id).first()

    @staticmethod
    def list(db: Session, status: TechnicianStatus = None, specialty: str = None, service_area: str = None):
        query = db.query(TechnicianProfile).options(joinedload(TechnicianProfile.user))
        if status:
            query = query.filter(TechnicianProfile.status == status)
        technicians = query.order_by(TechnicianProfile.created_at.desc(), TechnicianProfile.id.desc()).all()

        # JSON list columns, filtered in Python to stay portable across databases
        if specialty:
            needle = specialty.lower()
            technicians = [t for t in technicians if any(needle in s.lower() for s in (t.specialties or []))]
        if service_area:
            technicians = [t for t in technicians if service_area in (t.service_areas or [])]
        return technicians

    @staticmethod
    def apply_action(db: Session, technician_id: int, action: str, reason: str = None, rating: int = None):
        technician = TechnicianRepo.get(db, technician_id)
        if not technician:
            raise NotFound(f"Technician {technician_id} not found")

        if action not in TECHNICIAN_ACTIONS:
            raise ValidationError("Invalid action")

        with atomic(db):
            if action == "approve":
                technician.status = TechnicianStatus.ACTIVE
                technician.verified = True
            elif action == "suspend":
                technician.status = TechnicianStatus.SUSPENDED
                technician.internal_notes = reason or "Suspended by admin"
            elif action == "activate":
                technician.status = TechnicianStatus.ACTIVE
            elif action == "deactivate":
                technician.status = TechnicianStatus.INACTIVE
            elif action == "rate":
                if rating is None or not 1 <= rating <= 5:
                    raise ValidationError("Admin rating must be between 1 and 5")
                technician.admin_rating = rating
            technician.updated_at = datetime.utcnow()

        logger.info(f"🛠️ Technician {technician_id}: {action}")
        return technician

    @staticmethod
    def stats(db: Session, technician_id: int, year: int, month: int) -> dict:
        """Jobs, completion rate, earnings and published rating for jobs scheduled in one month"""
        start = date(year, month, 1)
        end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        in_month = (
            Booking.technician_id == technician_id,
            Booking.scheduled_date >= start,
            Booking.scheduled_date < end,
        )

        total_jobs = db.query(func.count(Booking.id)).filter(*in_month).scalar()

        completed = db.query(Booking).filter(*in_month, Booking.status == BookingStatus.COMPLETED)
        completed_jobs = completed.count()
        earnings = completed.with_entities(func.sum(Booking.final_price)).scalar() or 0

        average_rating = db.query(func.avg(Review.overall_rating)).join(
            Booking, Review.booking_id == Booking.id
        ).filter(*in_month, Review.published.is_(True)).scalar()

        completion_rate = (completed_jobs / total_jobs) * 100 if total_jobs else 0
        return {
            "total_jobs": total_jobs,
            "completed_jobs": completed_jobs,
            "completion_rate": round(completion_rate),
            "earnings": earnings,
            "average_rating": round(float(average_rating), 1) if average_rating is not None else 0,
        }
