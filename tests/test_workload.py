from datetime import date, datetime

from sqlalchemy import update

from config import atomic
from repository.technicians import TechnicianRepo
from tables.bookings import Booking
from tables.technicians import TechnicianProfile
from tables.enums import Role, BookingStatus
from lifecycle.assignment import AssignmentCoordinator
from lifecycle.transitions import TransitionEngine
from lifecycle.workload import WorkloadTracker


def _counters(db, technician_id):
    return db.query(
        TechnicianProfile.assigned_jobs, TechnicianProfile.completed_jobs
    ).filter(TechnicianProfile.id == technician_id).one()


def test_counters_follow_assign_and_complete(db, make_technician):
    _, tech = make_technician()
    with atomic(db):
        WorkloadTracker.on_assigned(db, tech.id)
        WorkloadTracker.on_assigned(db, tech.id)
    assert tuple(_counters(db, tech.id)) == (2, 0)

    with atomic(db):
        WorkloadTracker.on_completed(db, tech.id)
    assert tuple(_counters(db, tech.id)) == (1, 1)


def test_assigned_jobs_never_negative(db, make_technician):
    _, tech = make_technician()
    with atomic(db):
        WorkloadTracker.on_released(db, tech.id)
        WorkloadTracker.on_completed(db, tech.id)
    assert tuple(_counters(db, tech.id)) == (0, 1)


def test_counter_writes_roll_back_with_transaction(db, make_technician):
    _, tech = make_technician()
    try:
        with atomic(db):
            WorkloadTracker.on_assigned(db, tech.id)
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert tuple(_counters(db, tech.id)) == (0, 0)


def test_recount_rebuilds_from_bookings(db, make_user, make_technician, make_booking):
    customer = make_user(Role.CLIENT)
    admin = make_user(Role.ADMIN)
    tech_user, tech = make_technician()

    active = make_booking(customer)
    done = make_booking(customer)
    for booking in (active, done):
        AssignmentCoordinator.assign(db, booking.id, tech.id, admin.id)
    TransitionEngine.transition(db, done.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)
    TransitionEngine.transition(db, done.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id)

    # simulate drift
    with atomic(db):
        WorkloadTracker._apply(db, tech.id, assigned_jobs=7, completed_jobs=0)

    with atomic(db):
        result = WorkloadTracker.recount(db, tech.id)

    assert result == {"assigned_jobs": 1, "completed_jobs": 1}
    assert tuple(_counters(db, tech.id)) == (1, 1)


def test_monthly_stats_use_scheduled_month(db, make_user, make_technician, make_booking):
    customer = make_user(Role.CLIENT)
    admin = make_user(Role.ADMIN)
    tech_user, tech = make_technician()
    booking = make_booking(customer)
    AssignmentCoordinator.assign(db, booking.id, tech.id, admin.id)
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)
    TransitionEngine.transition(
        db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id, final_price=3000
    )

    # scheduled on the last day of January, signed off in February
    with atomic(db):
        db.execute(update(Booking).where(Booking.id == booking.id).values(
            scheduled_date=date(2030, 1, 31),
            completed_at=datetime(2030, 2, 1, 9, 30),
        ))

    january = TechnicianRepo.stats(db, tech.id, 2030, 1)
    assert january["total_jobs"] == 1
    assert january["completed_jobs"] == 1
    assert january["completion_rate"] == 100
    assert january["earnings"] == 3000

    february = TechnicianRepo.stats(db, tech.id, 2030, 2)
    assert february["total_jobs"] == 0
    assert february["completed_jobs"] == 0
    assert february["completion_rate"] == 0
    assert february["earnings"] == 0
