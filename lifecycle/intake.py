# lifecycle/intake.py - Customer-facing booking creation (always starts PENDING)
import logging
from datetime import datetime
from sqlalchemy.orm import Session
from config import atomic
from repository.bookings import BookingRepo
from tables.bookings import Booking, Address, Contact
from tables.services import Service
from tables.enums import BookingStatus
from lifecycle.errors import NotFound, Forbidden, ValidationError
from lifecycle.pricing import price_for, TIME_SLOTS

logger = logging.getLogger(__name__)


def booking_number_for(booking_id: int, created_at: datetime) -> str:
    return f"BH-{created_at.year}-{booking_id:05d}"


def _resolve_address(db: Session, client_id: int, address):
    if address.existing_address_id is not None:
        existing = db.query(Address).filter(Address.id == address.existing_address_id).first()
        if not existing:
            raise NotFound(f"Address {address.existing_address_id} not found")
        if existing.client_id != client_id:
            raise Forbidden("Address belongs to another customer")
        return existing

    new_address = Address(
        client_id=client_id,
        type=address.type,
        area=address.area,
        block=address.block,
        road=address.road,
        building=address.building,
        flat=address.flat,
        additional_info=address.additional_info
    )
    db.add(new_address)
    return new_address


def create_booking(db: Session, client_id: int, data):
    """Create a PENDING booking priced from the catalog.

    ``data`` is a ``models.bookings.BookingCreate``.
    """
    service = db.query(Service).filter(Service.id == data.service_id).first()
    if not service or not service.active:
        raise ValidationError(f"Unknown service: {data.service_id}")

    estimated_price = price_for(data.pricing_option_id, service.id)

    if data.time_slot not in TIME_SLOTS:
        raise ValidationError(f"Unknown time slot: {data.time_slot}")

    if data.scheduled_date < datetime.utcnow().date():
        raise ValidationError("Cannot book a date in the past")

    details = data.details
    with atomic(db):
        address = _resolve_address(db, client_id, data.address)
        contact = Contact(
            first_name=data.contact.first_name,
            last_name=data.contact.last_name,
            email=data.contact.email,
            phone=data.contact.phone
        )
        db.add(contact)
        db.flush()

        booking = Booking(
            client_id=client_id,
            service_id=service.id,
            pricing_option_id=data.pricing_option_id,
            address_id=address.id,
            contact_id=contact.id,
            scheduled_date=data.scheduled_date,
            time_slot=data.time_slot,
            status=BookingStatus.PENDING,
            estimated_price=estimated_price,
            final_price=None,
            notes=details.notes if details else None,
            emergency=details.emergency if details else False,
            created_at=datetime.utcnow()
        )
        db.add(booking)
        db.flush()
        booking.booking_number = booking_number_for(booking.id, booking.created_at)

    logger.info(f"📅 Booking {booking.booking_number} created by client {client_id} for {service.name}")
    return BookingRepo.get_enriched(db, booking.id)
