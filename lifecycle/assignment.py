# lifecycle/assignment.py - Binds one ACTIVE technician to one PENDING/CONFIRMED booking
import logging
from sqlalchemy.orm import Session, joinedload
from config import atomic
from repository.bookings import BookingRepo
from tables.technicians import TechnicianProfile
from tables.enums import BookingStatus, TechnicianStatus
from lifecycle.errors import NotFound, InvalidState, TechnicianUnavailable
from lifecycle.workload import WorkloadTracker

logger = logging.getLogger(__name__)

ASSIGNABLE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)
DEFAULT_ASSIGNMENT_NOTE = "Assigned by admin"


def specialty_matches(service, specialties) -> bool:
    """Loose match of a service's name/category against declared specialties.

    A technician with no declared specialties matches everything.
    """
    if not specialties:
        return True
    haystacks = [service.name.lower(), service.category.lower().replace("_", " ")]
    for specialty in specialties:
        needle = str(specialty).strip().lower()
        if not needle:
            continue
        for hay in haystacks:
            if needle in hay or hay in needle:
                return True
    return False


class AssignmentCoordinator:
    @staticmethod
    def assign(db: Session, booking_id: int, technician_id: int, admin_id: int, note: str = None,
               internal_notes: str = None):
        """Assign ``technician_id`` to the booking and record the audit row.

        ``internal_notes``, when given, replaces the booking's internal notes in
        the same conditional write.

        Returns ``(booking, job_assignment)`` with the booking's service,
        technician, address, client and contact loaded.
        """
        booking = BookingRepo.get_enriched(db, booking_id)
        if not booking:
            raise NotFound(f"Booking {booking_id} not found")

        expected = booking.status
        if expected not in ASSIGNABLE_STATUSES:
            raise InvalidState(f"Cannot assign technician to booking with status: {expected.value}")

        technician = db.query(TechnicianProfile).options(
            joinedload(TechnicianProfile.user)
        ).filter(TechnicianProfile.id == technician_id).first()
        if not technician:
            raise NotFound(f"Technician {technician_id} not found")

        if technician.status != TechnicianStatus.ACTIVE:
            raise TechnicianUnavailable(f"Technician is not active (status: {technician.status.value})")

        if not specialty_matches(booking.service, technician.specialties):
            logger.warning(
                f"⚠️ Assigning technician {technician.id} to service {booking.service.name} - "
                f"service may not be in their specialties {technician.specialties}"
            )

        values = {
            "technician_id": technician_id,
            "status": BookingStatus.ASSIGNED,
        }
        if internal_notes is not None:
            values["internal_notes"] = internal_notes

        with atomic(db):
            if not BookingRepo.compare_and_set(db, booking_id, expected, values):
                observed = BookingRepo.current_status(db, booking_id)
                logger.warning(f"Assignment race lost on booking {booking_id}: now {observed.value}")
                raise InvalidState(f"Cannot assign technician to booking with status: {observed.value}")

            assignment = BookingRepo.add_assignment(
                db, booking_id, technician_id, admin_id, note or DEFAULT_ASSIGNMENT_NOTE
            )
            WorkloadTracker.on_assigned(db, technician_id)

        logger.info(f"✅ Booking {booking_id} assigned to technician {technician_id} by admin {admin_id}")

        return BookingRepo.get_enriched(db, booking_id), assignment
