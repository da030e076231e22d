# models/technicians.py - Technician admin and stats schemas
from pydantic import BaseModel
from typing import Optional, List
from tables.enums import TechnicianStatus

class TechnicianAction(BaseModel):
    action: str  # approve, suspend, activate, deactivate, rate
    reason: Optional[str] = None
    rating: Optional[int] = None

class TechnicianResponse(BaseModel):
    id: int
    user_id: int
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: TechnicianStatus
    specialties: List[str] = []
    service_areas: List[str] = []
    verified: bool
    assigned_jobs: int
    completed_jobs: int
    rating: float
    review_count: int
    admin_rating: Optional[int] = None

class TechnicianStats(BaseModel):
    total_jobs: int
    completed_jobs: int
    completion_rate: int
    earnings: int
    average_rating: float


def to_technician_response(technician) -> TechnicianResponse:
    user = technician.user
    return TechnicianResponse(
        id=technician.id,
        user_id=technician.user_id,
        name=user.name if user else None,
        email=user.email if user else None,
        phone=user.phone_number if user else None,
        status=technician.status,
        specialties=technician.specialties or [],
        service_areas=technician.service_areas or [],
        verified=bool(technician.verified),
        assigned_jobs=technician.assigned_jobs,
        completed_jobs=technician.completed_jobs,
        rating=technician.rating or 0.0,
        review_count=technician.review_count or 0,
        admin_rating=technician.admin_rating
    )
