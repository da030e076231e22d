# routes/reviews.py - Public published reviews
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from config import get_db
from models.reviews import ReviewList, RatingStats, to_review_response
from lifecycle.reviews import ReviewService
from typing import Optional

router = APIRouter(prefix="/reviews", tags=["Reviews"])

@router.get("", response_model=ReviewList)
def list_reviews(
    service_id: Optional[str] = Query(None, description="Filter by service"),
    technician_id: Optional[int] = Query(None, description="Filter by technician"),
    limit: int = Query(10, description="Maximum number of reviews to return", le=50),
    db: Session = Depends(get_db)
):
    """Published reviews with their rating averages"""
    reviews = ReviewService.list_published(db, service_id, technician_id, limit)
    stats = ReviewService.rating_stats(db, service_id, technician_id)
    return ReviewList(
        reviews=[to_review_response(r) for r in reviews],
        stats=RatingStats(**stats)
    )

@router.post("/{review_id}/helpful")
def mark_helpful(review_id: int, db: Session = Depends(get_db)):
    helpful = ReviewService.mark_helpful(db, review_id)
    return {"success": True, "review_id": review_id, "helpful": helpful}
