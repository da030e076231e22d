# lifecycle/transitions.py - The only code path that changes a booking's status
import logging
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from config import atomic, CANCELLATION_WINDOW_HOURS
from repository.bookings import BookingRepo
from tables.technicians import TechnicianProfile
from tables.payments import Payment
from tables.enums import Role, BookingStatus, PaymentMethod, PaymentStatus, TERMINAL_STATUSES
from lifecycle.errors import NotFound, Forbidden, InvalidState, InvalidTransition, ValidationError
from lifecycle.policy import Operation, is_allowed, requires_ownership
from lifecycle.assignment import AssignmentCoordinator
from lifecycle.workload import WorkloadTracker

logger = logging.getLogger(__name__)

# (from, to) -> operation; roles per operation live in lifecycle.policy
TRANSITIONS = {
    (BookingStatus.PENDING, BookingStatus.CONFIRMED): Operation.CONFIRM,
    (BookingStatus.PENDING, BookingStatus.ASSIGNED): Operation.ASSIGN,
    (BookingStatus.CONFIRMED, BookingStatus.ASSIGNED): Operation.ASSIGN,
    (BookingStatus.ASSIGNED, BookingStatus.IN_PROGRESS): Operation.START,
    (BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS): Operation.START,
    (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED): Operation.COMPLETE,
}
TRANSITIONS.update({
    (status, BookingStatus.CANCELLED): Operation.CANCEL
    for status in BookingStatus
    if status not in TERMINAL_STATUSES
})

# Cancelling from these releases the technician's active load
HOLDS_TECHNICIAN = (BookingStatus.ASSIGNED, BookingStatus.IN_PROGRESS)


def operation_for(current: BookingStatus, requested: BookingStatus) -> Operation:
    try:
        return TRANSITIONS[(current, requested)]
    except KeyError:
        raise InvalidTransition(current, requested) from None


def append_note(existing, role: Role, notes):
    if not notes:
        return existing
    line = f"[{role.value}] {notes.strip()}"
    return f"{existing}\n{line}" if existing else line


def _check_ownership(db: Session, booking, role: Role, actor_id: int):
    if role == Role.CLIENT:
        if booking.client_id != actor_id:
            raise Forbidden("You do not have permission to change this booking")
    elif role == Role.TECHNICIAN:
        profile_id = db.query(TechnicianProfile.id).filter(
            TechnicianProfile.user_id == actor_id
        ).scalar()
        if profile_id is None or booking.technician_id != profile_id:
            raise Forbidden("Job not assigned to you")


def _check_cancellation_window(booking, role: Role):
    if role == Role.ADMIN:
        return
    appointment = datetime.combine(booking.scheduled_date, datetime.min.time())
    if appointment - datetime.utcnow() < timedelta(hours=CANCELLATION_WINDOW_HOURS):
        raise Forbidden(
            f"Bookings cannot be cancelled less than {CANCELLATION_WINDOW_HOURS} hours "
            "before the appointment time. Please contact us directly."
        )


class TransitionEngine:
    @staticmethod
    def transition(
        db: Session,
        booking_id: int,
        requested_status,
        actor_role,
        actor_id: int,
        notes: str = None,
        final_price: int = None,
        technician_id: int = None,
        payment_received: bool = False,
        reason: str = None,
    ):
        """Move a booking to ``requested_status`` on behalf of an actor.

        Checks the (from, to) edge, the actor's role and ownership, then
        writes the status and its side effects in one transaction. The status
        write only succeeds if the booking is still in the status read here.
        Returns the booking with its related rows loaded.
        """
        try:
            requested = BookingStatus(requested_status)
            role = Role(actor_role)
        except ValueError as e:
            raise ValidationError(str(e)) from None

        booking = BookingRepo.get(db, booking_id)
        if not booking:
            raise NotFound(f"Booking {booking_id} not found")

        current = booking.status
        operation = operation_for(current, requested)
        if not is_allowed(role, operation):
            raise Forbidden(
                f"Role {role.value} may not move booking from {current.value} to {requested.value}"
            )

        if operation == Operation.ASSIGN:
            if technician_id is None:
                raise ValidationError("Technician ID is required")
            booking, _ = AssignmentCoordinator.assign(
                db, booking_id, technician_id, actor_id, notes,
                internal_notes=append_note(booking.internal_notes, role, notes)
            )
            return booking

        if requires_ownership(role, operation):
            _check_ownership(db, booking, role, actor_id)

        now = datetime.utcnow()
        values = {
            "status": requested,
            "internal_notes": append_note(booking.internal_notes, role, notes),
        }

        if requested == BookingStatus.COMPLETED:
            if final_price is not None and final_price < 0:
                raise ValidationError("Final price cannot be negative")
            values["completed_at"] = now
            values["final_price"] = final_price if final_price is not None else booking.estimated_price
        elif requested == BookingStatus.CANCELLED:
            _check_cancellation_window(booking, role)
            values["cancelled_at"] = now
            values["cancellation_reason"] = reason

        assigned_technician = booking.technician_id

        with atomic(db):
            if not BookingRepo.compare_and_set(db, booking_id, current, values):
                observed = BookingRepo.current_status(db, booking_id)
                raise InvalidState(
                    f"Booking {booking_id} changed to {observed.value} before it could move "
                    f"from {current.value} to {requested.value}"
                )

            if requested == BookingStatus.COMPLETED:
                WorkloadTracker.on_completed(db, assigned_technician)
                if payment_received:
                    db.add(Payment(
                        booking_id=booking_id,
                        amount=values["final_price"],
                        method=PaymentMethod.CASH,
                        status=PaymentStatus.PAID,
                        paid_at=now
                    ))
            elif requested == BookingStatus.CANCELLED and current in HOLDS_TECHNICIAN and assigned_technician:
                WorkloadTracker.on_released(db, assigned_technician)

        logger.info(f"✅ Booking {booking_id}: {current.value} → {requested.value} by {role.value} {actor_id}")
        return BookingRepo.get_enriched(db, booking_id)
