import pytest

from tables.reviews import Review
from tables.technicians import TechnicianProfile
from tables.enums import Role, BookingStatus, ModerationAction
from lifecycle.errors import NotFound, Forbidden, Conflict, ValidationError
from lifecycle.assignment import AssignmentCoordinator
from lifecycle.transitions import TransitionEngine
from lifecycle.reviews import ReviewService


@pytest.fixture
def completed(db, make_user, make_technician, make_booking):
    """A customer, an admin, a technician and one completed booking between them."""
    customer = make_user(Role.CLIENT)
    admin = make_user(Role.ADMIN)
    tech_user, tech = make_technician()
    booking = make_booking(customer)
    AssignmentCoordinator.assign(db, booking.id, tech.id, admin.id)
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user.id)
    TransitionEngine.transition(db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user.id)
    return customer, admin, tech, booking


def _complete_another(db, customer, admin, tech, make_booking):
    booking = make_booking(customer)
    AssignmentCoordinator.assign(db, booking.id, tech.id, admin.id)
    tech_user_id = tech.user_id
    TransitionEngine.transition(db, booking.id, BookingStatus.IN_PROGRESS, Role.TECHNICIAN, tech_user_id)
    TransitionEngine.transition(db, booking.id, BookingStatus.COMPLETED, Role.TECHNICIAN, tech_user_id)
    return booking


def test_submitted_review_is_unpublished(db, completed):
    customer, _, _, booking = completed
    review = ReviewService.submit_review(
        db, booking.id, customer.id, {"overall_rating": 5, "quality_rating": 4}, {"comment": "Quick and tidy"}
    )
    assert review.published is False
    assert review.verified_job is True
    assert review.helpful == 0
    assert review.comment == "Quick and tidy"


def test_second_review_conflicts(db, completed):
    customer, _, _, booking = completed
    ReviewService.submit_review(db, booking.id, customer.id, {"overall_rating": 5})
    with pytest.raises(Conflict):
        ReviewService.submit_review(db, booking.id, customer.id, {"overall_rating": 1})
    assert db.query(Review).count() == 1


def test_review_requires_completed_booking(db, make_user, make_booking):
    customer = make_user(Role.CLIENT)
    booking = make_booking(customer)
    with pytest.raises(Forbidden):
        ReviewService.submit_review(db, booking.id, customer.id, {"overall_rating": 4})


def test_review_requires_ownership(db, completed, make_user):
    _, _, _, booking = completed
    stranger = make_user(Role.CLIENT)
    with pytest.raises(Forbidden):
        ReviewService.submit_review(db, booking.id, stranger.id, {"overall_rating": 4})


def test_review_for_missing_booking(db, make_user):
    customer = make_user(Role.CLIENT)
    with pytest.raises(NotFound):
        ReviewService.submit_review(db, 31337, customer.id, {"overall_rating": 4})


@pytest.mark.parametrize("ratings", [
    {},
    {"overall_rating": 0},
    {"overall_rating": 6},
    {"overall_rating": 5, "value_rating": 9},
    {"overall_rating": True},
])
def test_rating_bounds(db, completed, ratings):
    customer, _, _, booking = completed
    with pytest.raises(ValidationError):
        ReviewService.submit_review(db, booking.id, customer.id, ratings)


def test_unpublished_reviews_never_count(db, completed, make_booking):
    customer, admin, tech, booking = completed
    second = _complete_another(db, customer, admin, tech, make_booking)

    first = ReviewService.submit_review(db, booking.id, customer.id, {"overall_rating": 5})
    ReviewService.submit_review(db, second.id, customer.id, {"overall_rating": 1})

    stats = ReviewService.rating_stats(db, technician_id=tech.id)
    assert stats["count"] == 0
    assert stats["averages"]["overall_rating"] is None
    assert ReviewService.list_published(db) == []

    ReviewService.moderate(db, first.id, admin.id, ModerationAction.APPROVE)

    stats = ReviewService.rating_stats(db, technician_id=tech.id)
    assert stats["count"] == 1
    assert stats["averages"]["overall_rating"] == 5.0
    assert ReviewService.rating_stats(db, service_id="plumbing")["count"] == 1
    assert ReviewService.rating_stats(db, service_id="electrical")["count"] == 0

    profile = db.query(TechnicianProfile).filter(TechnicianProfile.id == tech.id).one()
    assert profile.rating == 5.0
    assert profile.review_count == 1


def test_deny_unpublishes_and_refreshes_rating(db, completed):
    customer, admin, tech, booking = completed
    review = ReviewService.submit_review(db, booking.id, customer.id, {"overall_rating": 4})
    ReviewService.moderate(db, review.id, admin.id, "approve")
    review = ReviewService.moderate(db, review.id, admin.id, "deny", "Contains a phone number")

    assert review.published is False
    assert review.moderation_notes == "Contains a phone number"
    assert review.moderated_by_id == admin.id
    assert review.moderated_at is not None
    profile = db.query(TechnicianProfile).filter(TechnicianProfile.id == tech.id).one()
    assert profile.rating == 0.0
    assert profile.review_count == 0


def test_moderation_default_notes_and_bad_action(db, completed):
    customer, admin, _, booking = completed
    review = ReviewService.submit_review(db, booking.id, customer.id, {"overall_rating": 4})
    review = ReviewService.moderate(db, review.id, admin.id, "approve")
    assert review.moderation_notes == "Approved for publication"

    with pytest.raises(ValidationError):
        ReviewService.moderate(db, review.id, admin.id, "shred")
    with pytest.raises(NotFound):
        ReviewService.moderate(db, 999, admin.id, "approve")


def test_helpful_only_on_published_reviews(db, completed):
    customer, admin, _, booking = completed
    review = ReviewService.submit_review(db, booking.id, customer.id, {"overall_rating": 4})

    with pytest.raises(NotFound):
        ReviewService.mark_helpful(db, review.id)

    ReviewService.moderate(db, review.id, admin.id, "approve")
    assert ReviewService.mark_helpful(db, review.id) == 1
    assert ReviewService.mark_helpful(db, review.id) == 2
