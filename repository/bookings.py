# repository/bookings.py - Booking queries and the conditional status write
from datetime import datetime
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import update, func
from tables.bookings import Booking, JobAssignment
from tables.technicians import TechnicianProfile
from tables.enums import BookingStatus

ENRICHED = (
    joinedload(Booking.service),
    joinedload(Booking.pricing_option),
    joinedload(Booking.address),
    joinedload(Booking.contact),
    joinedload(Booking.client),
    joinedload(Booking.technician).joinedload(TechnicianProfile.user),
    joinedload(Booking.payment),
    joinedload(Booking.review),
)


class BookingRepo:
    @staticmethod
    def get(db: Session, booking_id: int):
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def get_enriched(db: Session, booking_id: int):
        """Booking with service, technician, address, client and contact loaded"""
        return db.query(Booking).options(*ENRICHED).filter(Booking.id == booking_id).first()

    @staticmethod
    def compare_and_set(db: Session, booking_id: int, expected: BookingStatus, values: dict) -> bool:
        """Write ``values`` only if the booking is still in ``expected``.

        Runs inside the caller's transaction. Returns False when another
        writer moved the booking first.
        """
        values = dict(values)
        values.setdefault("updated_at", datetime.utcnow())
        result = db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def current_status(db: Session, booking_id: int):
        return db.query(Booking.status).filter(Booking.id == booking_id).scalar()

    @staticmethod
    def add_assignment(db: Session, booking_id: int, technician_id: int, admin_id: int, notes: str):
        assignment = JobAssignment(
            booking_id=booking_id,
            technician_id=technician_id,
            assigned_by_id=admin_id,
            notes=notes
        )
        db.add(assignment)
        db.flush()
        return assignment

    @staticmethod
    def assignments_for(db: Session, booking_id: int):
        return db.query(JobAssignment).filter(
            JobAssignment.booking_id == booking_id
        ).order_by(JobAssignment.id).all()

    @staticmethod
    def list_for_client(db: Session, client_id: int, status: BookingStatus = None):
        query = db.query(Booking).options(*ENRICHED).filter(Booking.client_id == client_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.scheduled_date.desc(), Booking.id.desc()).all()

    @staticmethod
    def list_for_technician(db: Session, technician_id: int, statuses=None):
        query = db.query(Booking).options(*ENRICHED).filter(Booking.technician_id == technician_id)
        if statuses:
            query = query.filter(Booking.status.in_(list(statuses)))
        return query.order_by(Booking.scheduled_date.asc(), Booking.id.asc()).all()

    @staticmethod
    def list_all(db: Session, status: BookingStatus = None, limit: int = 50):
        query = db.query(Booking).options(*ENRICHED)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).all()

    @staticmethod
    def count_by_status(db: Session, technician_id: int = None) -> dict:
        query = db.query(Booking.status, func.count(Booking.id))
        if technician_id is not None:
            query = query.filter(Booking.technician_id == technician_id)
        counts = {status: 0 for status in BookingStatus}
        for status, count in query.group_by(Booking.status).all():
            counts[BookingStatus(status)] = count
        return counts

    @staticmethod
    def completed_revenue(db: Session) -> int:
        total = db.query(func.sum(Booking.final_price)).filter(
            Booking.status == BookingStatus.COMPLETED
        ).scalar()
        return total or 0
