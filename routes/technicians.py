# routes/technicians.py - Technician job list, job status updates and monthly stats
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import datetime
from config import get_db
from models.bookings import BookingResponse, JobStatusUpdate, to_booking_response
from models.technicians import TechnicianStats
from repository.bookings import BookingRepo
from repository.technicians import TechnicianRepo
from repository.users import require_operation
from tables.users import Users
from tables.enums import BookingStatus, TECHNICIAN_STATUSES
from lifecycle.errors import NotFound
from lifecycle.policy import Operation
from lifecycle.transitions import TransitionEngine
from typing import List, Optional

router = APIRouter(prefix="/technician", tags=["Technician"])

def get_profile(db: Session, user: Users):
    profile = TechnicianRepo.get_by_user(db, user.id)
    if not profile:
        raise NotFound("Technician profile not found")
    return profile

@router.get("/jobs", response_model=List[BookingResponse])
def get_my_jobs(
    status: Optional[BookingStatus] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.VIEW_JOBS))
):
    """Jobs assigned to the current technician"""
    profile = get_profile(db, current_user)
    statuses = [status] if status in TECHNICIAN_STATUSES else TECHNICIAN_STATUSES
    jobs = BookingRepo.list_for_technician(db, profile.id, statuses)
    return [to_booking_response(job, show_internal=True) for job in jobs]

@router.patch("/jobs", response_model=BookingResponse)
def update_job_status(
    req: JobStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.VIEW_JOBS))
):
    """Start or complete one of the technician's own jobs"""
    booking = TransitionEngine.transition(
        db, req.job_id, req.status, current_user.role, current_user.id,
        notes=req.notes,
        final_price=req.final_price,
        payment_received=req.payment_received
    )
    return to_booking_response(booking, show_internal=True)

@router.get("/stats", response_model=TechnicianStats)
def get_my_stats(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.VIEW_JOBS))
):
    profile = get_profile(db, current_user)
    now = datetime.utcnow()
    return TechnicianStats(**TechnicianRepo.stats(db, profile.id, year or now.year, month or now.month))
