# lifecycle/reviews.py - Review capture, moderation and published-only statistics
import logging
from datetime import datetime
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from config import atomic
from tables.bookings import Booking
from tables.reviews import Review
from tables.technicians import TechnicianProfile
from tables.enums import BookingStatus, ModerationAction
from lifecycle.errors import NotFound, Forbidden, Conflict, ValidationError

logger = logging.getLogger(__name__)

RATING_FIELDS = (
    "overall_rating",
    "quality_rating",
    "timeliness_rating",
    "communication_rating",
    "value_rating",
)
TEXT_FIELDS = ("comment", "positives", "improvements")

DEFAULT_MODERATION_NOTES = {
    ModerationAction.APPROVE: "Approved for publication",
    ModerationAction.DENY: "Rejected by admin",
}


def _validate_ratings(ratings: dict):
    if ratings.get("overall_rating") is None:
        raise ValidationError("Valid overall rating (1-5) is required")
    for field in RATING_FIELDS:
        value = ratings.get(field)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
            raise ValidationError(f"{field} must be an integer between 1 and 5")


class ReviewService:
    @staticmethod
    def submit_review(db: Session, booking_id: int, client_id: int, ratings: dict, text: dict = None):
        """Create the booking's single review, unpublished until moderated."""
        _validate_ratings(ratings)
        text = text or {}

        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            raise NotFound(f"Booking {booking_id} not found")
        if booking.client_id != client_id:
            raise Forbidden("You can only review your own bookings")
        if booking.status != BookingStatus.COMPLETED:
            raise Forbidden("Only completed bookings can be reviewed")

        existing = db.query(Review.id).filter(Review.booking_id == booking_id).first()
        if existing:
            raise Conflict("Review already exists for this booking")

        review = Review(
            booking_id=booking_id,
            client_id=client_id,
            published=False,
            verified_job=True,
            helpful=0,
            **{field: ratings.get(field) for field in RATING_FIELDS},
            **{field: text.get(field) for field in TEXT_FIELDS}
        )
        try:
            with atomic(db):
                db.add(review)
        except IntegrityError:
            # a concurrent submission won the unique booking_id
            raise Conflict("Review already exists for this booking") from None

        logger.info(f"📝 Review {review.id} submitted for booking {booking_id}, awaiting moderation")
        return review

    @staticmethod
    def moderate(db: Session, review_id: int, admin_id: int, action, notes: str = None):
        try:
            action = ModerationAction(action)
        except ValueError:
            raise ValidationError("Invalid action") from None

        review = db.query(Review).options(
            joinedload(Review.booking)
        ).filter(Review.id == review_id).first()
        if not review:
            raise NotFound(f"Review {review_id} not found")

        technician_id = review.booking.technician_id

        with atomic(db):
            review.published = action == ModerationAction.APPROVE
            review.moderation_notes = notes or DEFAULT_MODERATION_NOTES[action]
            review.moderated_by_id = admin_id
            review.moderated_at = datetime.utcnow()
            db.flush()
            if technician_id:
                ReviewService.refresh_technician_rating(db, technician_id)

        logger.info(f"🛡️ Review {review_id} moderated ({action.value}) by admin {admin_id}")
        return review

    @staticmethod
    def mark_helpful(db: Session, review_id: int) -> int:
        with atomic(db):
            result = db.execute(
                update(Review)
                .where(Review.id == review_id, Review.published.is_(True))
                .values(helpful=Review.helpful + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise NotFound(f"Review {review_id} not found")
        return db.query(Review.helpful).filter(Review.id == review_id).scalar()

    @staticmethod
    def refresh_technician_rating(db: Session, technician_id: int):
        """Store the technician's published average (1 decimal) and count."""
        stats = ReviewService.rating_stats(db, technician_id=technician_id)
        average = stats["averages"]["overall_rating"] or 0.0
        db.execute(
            update(TechnicianProfile)
            .where(TechnicianProfile.id == technician_id)
            .values(rating=round(average, 1), review_count=stats["count"])
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def _published(db: Session, service_id: str = None, technician_id: int = None):
        query = db.query(Review).join(Booking, Review.booking_id == Booking.id).filter(
            Review.published.is_(True)
        )
        if service_id:
            query = query.filter(Booking.service_id == service_id)
        if technician_id:
            query = query.filter(Booking.technician_id == technician_id)
        return query

    @staticmethod
    def rating_stats(db: Session, service_id: str = None, technician_id: int = None) -> dict:
        """Averages over published reviews only; unpublished reviews never count."""
        columns = [func.avg(getattr(Review, field)) for field in RATING_FIELDS]
        row = ReviewService._published(db, service_id, technician_id).with_entities(
            func.count(Review.id), *columns
        ).one()
        count, averages = row[0], row[1:]
        return {
            "count": count,
            "averages": {
                field: (round(float(value), 2) if value is not None else None)
                for field, value in zip(RATING_FIELDS, averages)
            },
        }

    @staticmethod
    def list_published(db: Session, service_id: str = None, technician_id: int = None, limit: int = 10):
        return ReviewService._published(db, service_id, technician_id).options(
            joinedload(Review.booking).joinedload(Booking.service),
            joinedload(Review.booking).joinedload(Booking.technician).joinedload(TechnicianProfile.user)
        ).order_by(Review.created_at.desc(), Review.id.desc()).limit(limit).all()

    @staticmethod
    def list_all(db: Session, published: bool = None):
        query = db.query(Review).options(
            joinedload(Review.booking).joinedload(Booking.service),
            joinedload(Review.booking).joinedload(Booking.technician).joinedload(TechnicianProfile.user)
        )
        if published is not None:
            query = query.filter(Review.published.is_(published))
        return query.order_by(Review.created_at.desc(), Review.id.desc()).all()
