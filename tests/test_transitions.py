import pytest

from config import SessionLocal
from repository.bookings import BookingRepo
from tables.bookings import Booking
from tables.payments import Payment
from tables.technicians import TechnicianProfile
from tables.enums import Role, BookingStatus, PaymentStatus, TECHNICIAN_STATUSES
from lifecycle.errors import (
    NotFound, Forbidden, InvalidState, InvalidTransition, ValidationError
)
from lifecycle.assignment import AssignmentCoordinator
from lifecycle.transitions import TransitionEngine


@pytest.fixture
def setup(make_user, make_technician, make_booking):
    customer = make_user(Role.CLIENT)
    admin = make_user(Role.ADMIN)
    tech_user, tech = make_technician()
    booking = make_booking(customer)
    return customer, admin, tech_user, tech, booking


def _assign(db, booking, tech, admin):
    booking, _ = AssignmentCoordinator.assign(db, booking.id, tech.id, admin.id)
    return booking


def _profile(db, technician_id):
    return db.query(TechnicianProfile).filter(TechnicianProfile.id == technician_id).one()


def test_new_booking_is_pending(setup):
    customer, _, _, _, booking = setup
    assert booking.status == BookingStatus.PENDING
    assert booking.technician_id is None
    assert booking.completed_at is None
    assert booking.booking_number == f"BH-{booking.created_at.year}-{booking.id:05d}"
    assert booking.estimated_price == 10000


def test_admin_confirms_pending_booking(db, setup):
    _, admin, _, _, booking = setup
    booking = TransitionEngine.transition(db, booking.id, BookingStatus.CONFIRMED, Role.ADMIN, admin.id)
    assert booking.status == BookingStatus.CONFIRMED


def test_customer_cannot_confirm(db, setup):
    customer, _, _, _, booking = setup
    with pytest.raises(Forbidden):
        TransitionEngine.transition(db, booking.id, BookingStatus.CONFIRMED, Role.CLIENT, customer.id)


def test_edge_not_in_table_is_invalid_transition(db, setup):
    _, admin, _, _, booking = setup
    with pytest.raises(InvalidTransition) as exc_info:
        TransitionEngine.transition(db, booking.id, BookingStatus.COMPLETED, Role.ADMIN, admin.id)
    assert exc_info.value.current == "PENDING"
    assert exc_info.value.attempted == "COMPLETED"


def test_unknown_status_is_validation_error(db, setup):
    _, admin, _, _, booking = setup
    with pytest.raises(ValidationError):
        TransitionEngine.transition(db, booking.id, "ON_HOLD", Role.ADMIN, admin.id)


def test_missing_booking(db, setup):
    _, admin, _, _, _ = setup
    with pytest.raises(NotFound):
        TransitionEngine.transition(db, 9999, BookingStatus.CANCELLED, Role.ADMIN, admin.id)


def test_assign_through_engine_requires_technician(db, setup):
    _, admin, _, tech, booking = setup
    with pytest.raises(ValidationError):
        TransitionEngine.transition(db, booking.id, BookingStatus.ASSIGNED, Role.ADMIN, admin.id)

    booking = TransitionEngine.transition(
        db, booking.id, BookingStatus.ASSIGNED, Role.ADMIN, admin.id, technician_id=tech.id
    )
    assert booking.status == BookingStatus.ASSIGNED
    assert booking.technician.id == tech.id


def test_full_job_lifecycle(db, setup):
    _, admin, tech_user, tech, booking = setup
    _assign(db, booking, tech, admin)

    booking = TransitionEngine.transition(
        db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id, notes="On site"
    )
    assert booking.status == BookingStatus.IN_PROGRESS
    assert booking.completed_at is None

    booking = TransitionEngine.transition(
        db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id,
        notes="Replaced cartridge", final_price=1500
    )
    assert booking.status == BookingStatus.COMPLETED
    assert booking.completed_at is not None
    assert booking.final_price == 1500
    assert booking.estimated_price == 10000
    assert booking.internal_notes == "[TECHNICIAN] On site\n[TECHNICIAN] Replaced cartridge"

    profile = _profile(db, tech.id)
    assert profile.assigned_jobs == 0
    assert profile.completed_jobs == 1


def test_final_price_defaults_to_estimate(db, setup):
    _, admin, tech_user, tech, booking = setup
    _assign(db, booking, tech, admin)
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)
    booking = TransitionEngine.transition(db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id)
    assert booking.final_price == booking.estimated_price


def test_negative_final_price_rejected(db, setup):
    _, admin, tech_user, tech, booking = setup
    _assign(db, booking, tech, admin)
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)
    with pytest.raises(ValidationError):
        TransitionEngine.transition(
            db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id, final_price=-1
        )
    assert db.query(Booking.status).filter(Booking.id == booking.id).scalar() == BookingStatus.IN_PROGRESS


def test_completion_can_record_cash_payment(db, setup):
    _, admin, tech_user, tech, booking = setup
    _assign(db, booking, tech, admin)
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)
    booking = TransitionEngine.transition(
        db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id,
        final_price=8000, payment_received=True
    )
    payment = db.query(Payment).filter(Payment.booking_id == booking.id).one()
    assert payment.amount == 8000
    assert payment.status == PaymentStatus.PAID


def test_other_technician_cannot_complete(db, setup, make_technician):
    _, admin, tech_user, tech, booking = setup
    other_user, _ = make_technician()
    _assign(db, booking, tech, admin)
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)

    with pytest.raises(Forbidden):
        TransitionEngine.transition(db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, other_user.id)


def test_technician_cannot_start_unassigned_confirmed_job(db, setup):
    _, admin, tech_user, _, booking = setup
    TransitionEngine.transition(db, booking.id, BookingStatus.CONFIRMED, Role.ADMIN, admin.id)
    with pytest.raises(Forbidden):
        TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)


def test_owner_cancels_with_reason(db, setup):
    customer, _, _, _, booking = setup
    booking = TransitionEngine.transition(
        db, booking.id, BookingStatus.CANCELLED, Role.CLIENT, customer.id, reason="Fixed it myself"
    )
    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancelled_at is not None
    assert booking.cancellation_reason == "Fixed it myself"


def test_other_customer_cannot_cancel(db, setup, make_user):
    _, _, _, _, booking = setup
    stranger = make_user(Role.CLIENT)
    with pytest.raises(Forbidden):
        TransitionEngine.transition(db, booking.id, BookingStatus.CANCELLED, Role.CLIENT, stranger.id)


def test_technician_cannot_cancel(db, setup):
    _, admin, tech_user, tech, booking = setup
    _assign(db, booking, tech, admin)
    with pytest.raises(Forbidden):
        TransitionEngine.transition(db, booking.id, BookingStatus.CANCELLED, Role.TECHNICIAN, tech_user.id)


def test_customer_cannot_cancel_inside_window(db, make_user, make_booking):
    customer = make_user(Role.CLIENT)
    admin = make_user(Role.ADMIN)
    booking = make_booking(customer, days_ahead=0)

    with pytest.raises(Forbidden):
        TransitionEngine.transition(db, booking.id, BookingStatus.CANCELLED, Role.CLIENT, customer.id)

    booking = TransitionEngine.transition(db, booking.id, BookingStatus.CANCELLED, Role.ADMIN, admin.id)
    assert booking.status == BookingStatus.CANCELLED


def test_cancelled_booking_is_terminal(db, setup):
    _, admin, _, tech, booking = setup
    TransitionEngine.transition(db, booking.id, BookingStatus.CANCELLED, Role.ADMIN, admin.id)
    for target in (BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingStatus.IN_PROGRESS):
        with pytest.raises(InvalidTransition):
            TransitionEngine.transition(db, booking.id, target, Role.ADMIN, admin.id)


def test_cancelling_assigned_job_releases_technician(db, setup):
    _, admin, _, tech, booking = setup
    _assign(db, booking, tech, admin)
    assert _profile(db, tech.id).assigned_jobs == 1

    booking = TransitionEngine.transition(db, booking.id, BookingStatus.CANCELLED, Role.ADMIN, admin.id)
    assert booking.technician_id == tech.id
    profile = _profile(db, tech.id)
    assert profile.assigned_jobs == 0
    assert profile.completed_jobs == 0


def test_technician_and_completion_invariants(db, setup, make_booking):
    customer, admin, tech_user, tech, booking = setup
    second = make_booking(customer)
    _assign(db, booking, tech, admin)
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)
    TransitionEngine.transition(db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id)
    TransitionEngine.transition(db, second.id, BookingStatus.CONFIRMED, Role.ADMIN, admin.id)

    for b in db.query(Booking).all():
        if b.status in TECHNICIAN_STATUSES:
            assert b.technician_id is not None
        elif b.status != BookingStatus.CANCELLED:
            assert b.technician_id is None
        assert (b.completed_at is not None) == (b.status == BookingStatus.COMPLETED)


def test_assign_transition_appends_notes(db, setup):
    _, admin, _, tech, booking = setup
    booking = TransitionEngine.transition(
        db, booking.id, BookingStatus.ASSIGNED, Role.ADMIN, admin.id,
        technician_id=tech.id, notes="Bring ladder"
    )
    assert booking.status == BookingStatus.ASSIGNED
    assert booking.internal_notes == "[ADMIN] Bring ladder"
    assert [a.notes for a in BookingRepo.assignments_for(db, booking.id)] == ["Bring ladder"]


def test_forbidden_role_names_both_statuses(db, setup):
    customer, _, _, _, booking = setup
    with pytest.raises(Forbidden) as exc_info:
        TransitionEngine.transition(db, booking.id, BookingStatus.CONFIRMED, Role.CLIENT, customer.id)
    assert "PENDING" in exc_info.value.message
    assert "CONFIRMED" in exc_info.value.message


def test_stale_status_at_write_time_fails(db, setup, monkeypatch):
    """An admin cancels between this completion's read and its write."""
    _, admin, tech_user, tech, booking = setup
    _assign(db, booking, tech, admin)
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)

    original = BookingRepo.get
    raced = []

    def racing_get(session, booking_id):
        found = original(session, booking_id)
        if not raced:
            raced.append(True)
            other = SessionLocal()
            try:
                TransitionEngine.transition(other, booking_id, BookingStatus.CANCELLED, Role.ADMIN, admin.id)
            finally:
                other.close()
        return found

    monkeypatch.setattr(BookingRepo, "get", staticmethod(racing_get))

    with pytest.raises(InvalidState) as exc_info:
        TransitionEngine.transition(
            db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id,
            final_price=2000, payment_received=True
        )
    assert "CANCELLED" in exc_info.value.message

    stored = db.query(Booking).filter(Booking.id == booking.id).one()
    db.refresh(stored)
    assert stored.status == BookingStatus.CANCELLED
    assert stored.completed_at is None
    assert stored.final_price is None
    assert db.query(Payment).filter(Payment.booking_id == booking.id).count() == 0
    profile = _profile(db, tech.id)
    assert profile.completed_jobs == 0
    assert profile.assigned_jobs == 0
