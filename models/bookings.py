# models/bookings.py - Booking request/response schemas
from pydantic import BaseModel, EmailStr, validator
from datetime import datetime, date
from typing import Optional, List
from tables.enums import AddressType, BookingStatus
from lifecycle.pricing import SERVICE_AREAS
import re

PHONE_PATTERN = re.compile(r"^(\+973)?[0-9]{8}$")

def check_email_domain(email: str) -> str:
    """Reject one-letter top-level domains, which EmailStr lets through"""
    if len(email.rsplit(".", 1)[-1]) < 2:
        raise ValueError("Please enter a valid email address")
    return email

class AddressInput(BaseModel):
    type: Optional[AddressType] = None
    area: Optional[str] = None
    block: Optional[str] = None
    road: Optional[str] = None
    building: Optional[str] = None
    flat: Optional[str] = None
    additional_info: Optional[str] = None
    existing_address_id: Optional[int] = None

    @validator('area')
    def validate_area(cls, v):
        if v is not None and v not in SERVICE_AREAS:
            raise ValueError('Please select a service area')
        return v

    @validator('existing_address_id', always=True)
    def require_fields_for_new_address(cls, v, values):
        if v is None:
            missing = [f for f in ('type', 'area', 'block', 'road', 'building') if not values.get(f)]
            if missing:
                raise ValueError(f'Address fields required: {", ".join(missing)}')
        return v

class ContactInput(BaseModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone: str

    @validator('email')
    def validate_email(cls, v):
        return check_email_domain(v)

    @validator('first_name', 'last_name')
    def validate_name(cls, v):
        if len(v.strip()) < 2:
            raise ValueError('Name must be at least 2 characters')
        return v.strip()

    @validator('phone')
    def validate_phone(cls, v):
        v = v.replace(" ", "")
        if not PHONE_PATTERN.match(v):
            raise ValueError('Please enter a valid Bahrain phone number (+973 XXXX XXXX)')
        return v

class BookingDetailsInput(BaseModel):
    notes: Optional[str] = None
    emergency: bool = False

    @validator('notes')
    def validate_notes(cls, v):
        if v and len(v) > 500:
            raise ValueError('Notes cannot exceed 500 characters')
        return v

class BookingCreate(BaseModel):
    service_id: str
    pricing_option_id: str
    scheduled_date: date
    time_slot: str
    address: AddressInput
    contact: ContactInput
    details: Optional[BookingDetailsInput] = None

class CancelBookingRequest(BaseModel):
    reason: Optional[str] = None

    @validator('reason')
    def validate_reason(cls, v):
        if v and len(v) > 200:
            raise ValueError('Cancellation reason cannot exceed 200 characters')
        return v

class AssignRequest(BaseModel):
    technician_id: int
    notes: Optional[str] = None

class AdminStatusUpdate(BaseModel):
    status: BookingStatus
    notes: Optional[str] = None
    technician_id: Optional[int] = None
    reason: Optional[str] = None

class JobStatusUpdate(BaseModel):
    job_id: int
    status: BookingStatus
    notes: Optional[str] = None
    final_price: Optional[int] = None  # fils
    payment_received: bool = False

    @validator('status')
    def technician_statuses_only(cls, v):
        if v not in (BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED):
            raise ValueError('Technicians can only update status to In Progress or Completed')
        return v

    @validator('final_price')
    def validate_final_price(cls, v):
        if v is not None and v < 0:
            raise ValueError('Final price cannot be negative')
        return v

# Responses

class ServiceSummary(BaseModel):
    id: str
    name: str
    category: str

class PricingSummary(BaseModel):
    id: str
    name: str
    price: int
    duration: int

class AddressSummary(BaseModel):
    id: int
    type: AddressType
    area: str
    block: str
    road: str
    building: str
    flat: Optional[str] = None
    additional_info: Optional[str] = None

class ContactSummary(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str

class TechnicianSummary(BaseModel):
    id: int
    name: Optional[str] = None
    phone: Optional[str] = None

class ClientSummary(BaseModel):
    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

class BookingResponse(BaseModel):
    id: int
    reference: str
    status: BookingStatus
    scheduled_date: date
    time_slot: str
    estimated_price: int
    final_price: Optional[int] = None
    emergency: bool = False
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    service: ServiceSummary
    pricing_option: Optional[PricingSummary] = None
    address: AddressSummary
    contact: ContactSummary
    client: ClientSummary
    technician: Optional[TechnicianSummary] = None
    has_review: bool = False
    payment_status: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

class JobAssignmentResponse(BaseModel):
    id: int
    booking_id: int
    technician_id: int
    assigned_by_id: int
    assigned_at: datetime
    notes: Optional[str] = None

class AssignResponse(BaseModel):
    success: bool = True
    message: str
    booking: BookingResponse
    job_assignment: JobAssignmentResponse

class BookingStats(BaseModel):
    pending: int
    assigned: int
    completed: int
    total_revenue: int
    total_bookings: int

class AdminBookingList(BaseModel):
    success: bool = True
    bookings: List[BookingResponse]
    stats: BookingStats


def to_booking_response(booking, show_internal: bool = False) -> BookingResponse:
    """Flatten a booking with loaded relations; internal notes only for staff"""
    technician = booking.technician
    option = booking.pricing_option
    return BookingResponse(
        id=booking.id,
        reference=booking.booking_number,
        status=booking.status,
        scheduled_date=booking.scheduled_date,
        time_slot=booking.time_slot,
        estimated_price=booking.estimated_price,
        final_price=booking.final_price,
        emergency=bool(booking.emergency),
        notes=booking.notes,
        internal_notes=booking.internal_notes if show_internal else None,
        cancellation_reason=booking.cancellation_reason,
        service=ServiceSummary(
            id=booking.service.id,
            name=booking.service.name,
            category=booking.service.category
        ),
        pricing_option=PricingSummary(
            id=option.id,
            name=option.name,
            price=option.price,
            duration=option.duration
        ) if option else None,
        address=AddressSummary(
            id=booking.address.id,
            type=booking.address.type,
            area=booking.address.area,
            block=booking.address.block,
            road=booking.address.road,
            building=booking.address.building,
            flat=booking.address.flat,
            additional_info=booking.address.additional_info
        ),
        contact=ContactSummary(
            first_name=booking.contact.first_name,
            last_name=booking.contact.last_name,
            email=booking.contact.email,
            phone=booking.contact.phone
        ),
        client=ClientSummary(
            id=booking.client.id,
            name=booking.client.name,
            email=booking.client.email,
            phone=booking.client.phone_number
        ),
        technician=TechnicianSummary(
            id=technician.id,
            name=technician.user.name if technician.user else None,
            phone=technician.user.phone_number if technician.user else None
        ) if technician else None,
        has_review=booking.review is not None,
        payment_status=booking.payment.status.value if booking.payment else None,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
        completed_at=booking.completed_at,
        cancelled_at=booking.cancelled_at
    )


def to_assignment_response(assignment) -> JobAssignmentResponse:
    return JobAssignmentResponse(
        id=assignment.id,
        booking_id=assignment.booking_id,
        technician_id=assignment.technician_id,
        assigned_by_id=assignment.assigned_by_id,
        assigned_at=assignment.assigned_at,
        notes=assignment.notes
    )
