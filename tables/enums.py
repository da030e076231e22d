# tables/enums.py - Closed value sets shared by tables, schemas and the lifecycle core
import enum


class Role(str, enum.Enum):
    CLIENT = "CLIENT"
    TECHNICIAN = "TECHNICIAN"
    ADMIN = "ADMIN"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.REFUNDED,
})

# Statuses in which a booking holds a technician
TECHNICIAN_STATUSES = frozenset({
    BookingStatus.ASSIGNED,
    BookingStatus.IN_PROGRESS,
    BookingStatus.COMPLETED,
})


class TechnicianStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    UNDER_REVIEW = "UNDER_REVIEW"


class AddressType(str, enum.Enum):
    HOME = "HOME"
    VILLA = "VILLA"
    OFFICE = "OFFICE"
    APARTMENT = "APARTMENT"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CARD = "CARD"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class ModerationAction(str, enum.Enum):
    APPROVE = "approve"
    DENY = "deny"
