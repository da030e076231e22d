# routes/bookings.py - Customer-facing booking endpoints
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from config import get_db
from models.bookings import (
    BookingCreate, BookingResponse, CancelBookingRequest, to_booking_response
)
from models.reviews import ReviewRequest, ReviewResponse, to_review_response
from repository.bookings import BookingRepo
from repository.users import get_current_user, require_operation
from repository.technicians import TechnicianRepo
from tables.users import Users
from tables.enums import Role, BookingStatus
from lifecycle.errors import NotFound, Forbidden
from lifecycle.intake import create_booking
from lifecycle.policy import Operation
from lifecycle.transitions import TransitionEngine
from lifecycle.reviews import ReviewService
from typing import List, Optional


router = APIRouter(prefix="/bookings", tags=["Bookings"])

def can_view(db: Session, booking, user: Users) -> bool:
    if user.role == Role.ADMIN:
        return True
    if user.role == Role.CLIENT:
        return booking.client_id == user.id
    profile = TechnicianRepo.get_by_user(db, user.id)
    return profile is not None and booking.technician_id == profile.id

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def book_service(
    req: BookingCreate,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.CREATE_BOOKING))
):
    """Create a booking for the current customer; it starts PENDING"""
    booking = create_booking(db, current_user.id, req)
    return to_booking_response(booking)

@router.get("/my", response_model=List[BookingResponse])
def get_my_bookings(
    status: Optional[BookingStatus] = Query(None, description="Filter by status"),
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.VIEW_OWN_BOOKINGS))
):
    bookings = BookingRepo.list_for_client(db, current_user.id, status)
    return [to_booking_response(b) for b in bookings]

@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Users = Depends(get_current_user)
):
    booking = BookingRepo.get_enriched(db, booking_id)
    if not booking:
        raise NotFound("Booking not found")
    if not can_view(db, booking, current_user):
        raise Forbidden("You do not have access to this booking")
    return to_booking_response(booking, show_internal=current_user.role != Role.CLIENT)

@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    req: CancelBookingRequest = CancelBookingRequest(),
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.CANCEL))
):
    """Cancel a booking (owner more than the cancellation window ahead, or admin)"""
    booking = TransitionEngine.transition(
        db, booking_id, BookingStatus.CANCELLED, current_user.role, current_user.id,
        reason=req.reason
    )
    return to_booking_response(booking, show_internal=current_user.role == Role.ADMIN)

@router.post("/{booking_id}/review", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def review_booking(
    booking_id: int,
    req: ReviewRequest,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_operation(Operation.SUBMIT_REVIEW))
):
    """Review a completed booking; hidden until an admin approves it"""
    review = ReviewService.submit_review(db, booking_id, current_user.id, req.ratings(), req.text())
    return to_review_response(review)
