# routes/admin.py - Admin dispatch, status overrides, review moderation and technician management
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from config import get_db, atomic
from models.bookings import (
    AssignRequest, AssignResponse, AdminStatusUpdate, AdminBookingList, BookingStats,
    BookingResponse, to_booking_response, to_assignment_response
)
from models.reviews import ModerationRequest, ReviewList, ReviewResponse, to_review_response
from models.technicians import TechnicianAction, TechnicianResponse, to_technician_response
from repository.bookings import BookingRepo
from repository.technicians import TechnicianRepo
from repository.users import require_operation
from tables.users import Users
from tables.enums import BookingStatus, TechnicianStatus
from lifecycle.errors import NotFound
from lifecycle.policy import Operation
from lifecycle.assignment import AssignmentCoordinator
from lifecycle.transitions import TransitionEngine
from lifecycle.reviews import ReviewService
from lifecycle.workload import WorkloadTracker
from typing import List, Optional

router = APIRouter(prefix="/admin", tags=["Admin"])

@router.get("/bookings", response_model=AdminBookingList)
def list_bookings(
    status: Optional[BookingStatus] = Query(None, description="Filter by status"),
    limit: int = Query(50, description="Maximum number of bookings to return", le=100),
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.VIEW_ALL_BOOKINGS))
):
    """All bookings with the dashboard counters"""
    bookings = BookingRepo.list_all(db, status, limit)
    counts = BookingRepo.count_by_status(db)

    return AdminBookingList(
        bookings=[to_booking_response(b, show_internal=True) for b in bookings],
        stats=BookingStats(
            pending=counts[BookingStatus.PENDING],
            assigned=counts[BookingStatus.ASSIGNED],
            completed=counts[BookingStatus.COMPLETED],
            total_revenue=BookingRepo.completed_revenue(db),
            total_bookings=sum(counts.values())
        )
    )

@router.post("/bookings/{booking_id}/assign", response_model=AssignResponse)
def assign_technician(
    booking_id: int,
    req: AssignRequest,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.ASSIGN))
):
    booking, assignment = AssignmentCoordinator.assign(
        db, booking_id, req.technician_id, current_user.id, req.notes
    )
    technician_name = booking.technician.user.name if booking.technician.user else f"#{booking.technician.id}"

    return AssignResponse(
        message=f"Technician {technician_name} successfully assigned to booking {booking.booking_number}",
        booking=to_booking_response(booking, show_internal=True),
        job_assignment=to_assignment_response(assignment)
    )

@router.patch("/bookings/{booking_id}/status", response_model=BookingResponse)
def update_booking_status(
    booking_id: int,
    req: AdminStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.VIEW_ALL_BOOKINGS))
):
    """Admin status change; the transition table still decides what is legal"""
    booking = TransitionEngine.transition(
        db, booking_id, req.status, current_user.role, current_user.id,
        notes=req.notes,
        technician_id=req.technician_id,
        reason=req.reason
    )
    return to_booking_response(booking, show_internal=True)

@router.get("/reviews", response_model=ReviewList)
def list_reviews(
    published: Optional[bool] = Query(None, description="Filter by publication state"),
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.MODERATE_REVIEW))
):
    reviews = ReviewService.list_all(db, published)
    return ReviewList(reviews=[to_review_response(r, show_moderation=True) for r in reviews])

@router.patch("/reviews/{review_id}", response_model=ReviewResponse)
def moderate_review(
    review_id: int,
    req: ModerationRequest,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.MODERATE_REVIEW))
):
    """Approve (publish) or deny a review"""
    review = ReviewService.moderate(db, review_id, current_user.id, req.action, req.notes)
    return to_review_response(review, show_moderation=True)

@router.get("/technicians", response_model=List[TechnicianResponse])
def list_technicians(
    status: Optional[TechnicianStatus] = Query(None, description="Filter by status"),
    specialty: Optional[str] = Query(None, description="Filter by specialty"),
    service_area: Optional[str] = Query(None, description="Filter by service area"),
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.MANAGE_TECHNICIANS))
):
    technicians = TechnicianRepo.list(db, status, specialty, service_area)
    return [to_technician_response(t) for t in technicians]

@router.post("/technicians/{technician_id}/action", response_model=TechnicianResponse)
def technician_action(
    technician_id: int,
    req: TechnicianAction,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.MANAGE_TECHNICIANS))
):
    """approve, suspend, activate, deactivate or rate a technician"""
    TechnicianRepo.apply_action(db, technician_id, req.action, req.reason, req.rating)
    return to_technician_response(TechnicianRepo.get(db, technician_id))

@router.post("/technicians/{technician_id}/recount", response_model=TechnicianResponse)
def recount_technician(
    technician_id: int,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.MANAGE_TECHNICIANS))
):
    """Rebuild the workload counters from the technician's bookings"""
    if not TechnicianRepo.get(db, technician_id):
        raise NotFound(f"Technician {technician_id} not found")

    with atomic(db):
        WorkloadTracker.recount(db, technician_id)

    return to_technician_response(TechnicianRepo.get(db, technician_id))
