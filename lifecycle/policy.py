# lifecycle/policy.py - Single (role, operation) authorization table
import enum
from tables.enums import Role
from lifecycle.errors import Forbidden


class Operation(str, enum.Enum):
    CREATE_BOOKING = "create_booking"
    VIEW_OWN_BOOKINGS = "view_own_bookings"
    VIEW_ALL_BOOKINGS = "view_all_bookings"
    VIEW_JOBS = "view_jobs"
    CONFIRM = "confirm"
    ASSIGN = "assign"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    SUBMIT_REVIEW = "submit_review"
    MODERATE_REVIEW = "moderate_review"
    MANAGE_TECHNICIANS = "manage_technicians"


POLICY = {
    Role.CLIENT: frozenset({
        Operation.CREATE_BOOKING,
        Operation.VIEW_OWN_BOOKINGS,
        Operation.CANCEL,
        Operation.SUBMIT_REVIEW,
    }),
    Role.TECHNICIAN: frozenset({
        Operation.VIEW_JOBS,
        Operation.START,
        Operation.COMPLETE,
    }),
    Role.ADMIN: frozenset({
        Operation.CREATE_BOOKING,
        Operation.VIEW_ALL_BOOKINGS,
        Operation.CONFIRM,
        Operation.ASSIGN,
        Operation.CANCEL,
        Operation.MODERATE_REVIEW,
        Operation.MANAGE_TECHNICIANS,
    }),
}

# Operations where a CLIENT or TECHNICIAN must also own or be assigned to the booking
OWNERSHIP_REQUIRED = {
    Role.CLIENT: frozenset({Operation.CANCEL, Operation.SUBMIT_REVIEW}),
    Role.TECHNICIAN: frozenset({Operation.START, Operation.COMPLETE}),
    Role.ADMIN: frozenset(),
}


def is_allowed(role: Role, operation: Operation) -> bool:
    return operation in POLICY[Role(role)]


def requires_ownership(role: Role, operation: Operation) -> bool:
    return operation in OWNERSHIP_REQUIRED[Role(role)]


def require(role: Role, operation: Operation) -> None:
    if not is_allowed(role, operation):
        raise Forbidden(f"Role {Role(role).value} may not {operation.value.replace('_', ' ')}")
