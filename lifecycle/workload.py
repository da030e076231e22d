# lifecycle/workload.py - Per-technician assigned/completed job counters
import logging
from datetime import datetime
from sqlalchemy import update, case, func
from sqlalchemy.orm import Session
from tables.technicians import TechnicianProfile
from tables.bookings import Booking
from tables.enums import BookingStatus

logger = logging.getLogger(__name__)


class WorkloadTracker:
    """Counter updates run as SQL expressions inside the caller's transaction.

    Only the transition engine and the assignment coordinator call these;
    ``recount`` is also reachable from the admin reconciliation endpoint.
    """

    @staticmethod
    def _apply(db: Session, technician_id: int, **values):
        values["updated_at"] = datetime.utcnow()
        db.execute(
            update(TechnicianProfile)
            .where(TechnicianProfile.id == technician_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def on_assigned(db: Session, technician_id: int):
        WorkloadTracker._apply(
            db, technician_id,
            assigned_jobs=TechnicianProfile.assigned_jobs + 1
        )

    @staticmethod
    def on_completed(db: Session, technician_id: int):
        WorkloadTracker._apply(
            db, technician_id,
            assigned_jobs=_decrement(TechnicianProfile.assigned_jobs),
            completed_jobs=TechnicianProfile.completed_jobs + 1
        )

    @staticmethod
    def on_released(db: Session, technician_id: int):
        """A booking holding this technician was cancelled before completion."""
        WorkloadTracker._apply(
            db, technician_id,
            assigned_jobs=_decrement(TechnicianProfile.assigned_jobs)
        )

    @staticmethod
    def recount(db: Session, technician_id: int) -> dict:
        """Recompute both counters from the bookings that reference the technician."""
        active = db.query(func.count(Booking.id)).filter(
            Booking.technician_id == technician_id,
            Booking.status.in_([BookingStatus.ASSIGNED, BookingStatus.IN_PROGRESS])
        ).scalar()
        completed = db.query(func.count(Booking.id)).filter(
            Booking.technician_id == technician_id,
            Booking.status == BookingStatus.COMPLETED
        ).scalar()
        WorkloadTracker._apply(db, technician_id, assigned_jobs=active, completed_jobs=completed)
        logger.info(f"🔁 Technician {technician_id} recounted: assigned={active}, completed={completed}")
        return {"assigned_jobs": active, "completed_jobs": completed}


def _decrement(column):
    # never below zero, even if the counter drifted
    return case((column > 0, column - 1), else_=0)
