# models/reviews.py - Review submission, moderation and listing schemas
from pydantic import BaseModel, validator
from datetime import datetime
from typing import Optional, List, Dict
from tables.enums import ModerationAction

class ReviewRequest(BaseModel):
    overall_rating: int
    quality_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    communication_rating: Optional[int] = None
    value_rating: Optional[int] = None
    comment: Optional[str] = None
    positives: Optional[str] = None
    improvements: Optional[str] = None

    @validator('overall_rating', 'quality_rating', 'timeliness_rating', 'communication_rating', 'value_rating')
    def validate_rating(cls, v):
        if v is not None and not 1 <= v <= 5:
            raise ValueError('Rating must be between 1 and 5')
        return v

    @validator('comment', 'positives', 'improvements')
    def validate_text(cls, v):
        if v and len(v) > 1000:
            raise ValueError('Review text cannot exceed 1000 characters')
        return v

    def ratings(self) -> dict:
        return {
            "overall_rating": self.overall_rating,
            "quality_rating": self.quality_rating,
            "timeliness_rating": self.timeliness_rating,
            "communication_rating": self.communication_rating,
            "value_rating": self.value_rating,
        }

    def text(self) -> dict:
        return {
            "comment": self.comment,
            "positives": self.positives,
            "improvements": self.improvements,
        }

class ModerationRequest(BaseModel):
    action: ModerationAction
    notes: Optional[str] = None

class ReviewResponse(BaseModel):
    id: int
    booking_id: int
    overall_rating: int
    quality_rating: Optional[int] = None
    timeliness_rating: Optional[int] = None
    communication_rating: Optional[int] = None
    value_rating: Optional[int] = None
    comment: Optional[str] = None
    positives: Optional[str] = None
    improvements: Optional[str] = None
    published: bool
    verified_job: bool
    helpful: int
    moderation_notes: Optional[str] = None
    service_name: Optional[str] = None
    technician_name: Optional[str] = None
    created_at: datetime

class RatingStats(BaseModel):
    count: int
    averages: Dict[str, Optional[float]]

class ReviewList(BaseModel):
    success: bool = True
    reviews: List[ReviewResponse]
    stats: Optional[RatingStats] = None


def to_review_response(review, show_moderation: bool = False) -> ReviewResponse:
    booking = review.booking
    technician = booking.technician if booking else None
    return ReviewResponse(
        id=review.id,
        booking_id=review.booking_id,
        overall_rating=review.overall_rating,
        quality_rating=review.quality_rating,
        timeliness_rating=review.timeliness_rating,
        communication_rating=review.communication_rating,
        value_rating=review.value_rating,
        comment=review.comment,
        positives=review.positives,
        improvements=review.improvements,
        published=review.published,
        verified_job=review.verified_job,
        helpful=review.helpful,
        moderation_notes=review.moderation_notes if show_moderation else None,
        service_name=booking.service.name if booking and booking.service else None,
        technician_name=technician.user.name if technician and technician.user else None,
        created_at=review.created_at
    )
