# lifecycle/pricing.py - Fixed service catalog, price table and booking input catalogs
import logging
from sqlalchemy.orm import Session
from tables.services import Service, PricingOption
from lifecycle.errors import ValidationError

logger = logging.getLogger(__name__)

# Prices are in fils (1 BHD = 1000 fils)
SERVICE_CATALOG = [
    {
        "id": "ac-services",
        "name": "Air Conditioning Services",
        "category": "AC_SERVICES",
        "description": "AC repair, maintenance and installation for all major brands.",
        "priority": 100,
        "pricing_options": [
            {"id": "ac-maintenance-basic", "name": "Standard AC Cleaning", "price": 5000, "duration": 120, "popular": True},
            {"id": "ac-repair-diagnosis", "name": "AC Diagnosis & Repair", "price": 10000, "duration": 60},
            {"id": "ac-installation-1hp", "name": "AC Unit Installation (1HP)", "price": 15000, "duration": 180},
        ],
    },
    {
        "id": "plumbing",
        "name": "Plumbing Services",
        "category": "PLUMBING",
        "description": "Emergency plumbing repairs, installations and maintenance.",
        "priority": 95,
        "pricing_options": [
            {"id": "plumbing-emergency", "name": "Emergency Plumbing Call", "price": 10000, "duration": 60, "popular": True},
            {"id": "plumbing-tap-installation", "name": "Tap Installation/Repair", "price": 5000, "duration": 45},
        ],
    },
    {
        "id": "electrical",
        "name": "Electrical Services",
        "category": "ELECTRICAL",
        "description": "Licensed electricians for residential and commercial work.",
        "priority": 98,
        "pricing_options": [
            {"id": "electrical-outlet-installation", "name": "Outlet Installation", "price": 5000, "duration": 60},
            {"id": "electrical-wiring-inspection", "name": "Electrical Wiring Inspection", "price": 15000, "duration": 90, "popular": True},
        ],
    },
    {
        "id": "carpentry",
        "name": "Carpentry Services",
        "category": "CARPENTRY",
        "description": "Custom furniture, cabinetry, door repairs and general woodwork.",
        "priority": 85,
        "pricing_options": [
            {"id": "carpentry-door-installation", "name": "Door Installation/Repair", "price": 10000, "duration": 120},
            {"id": "carpentry-custom-work", "name": "Custom Carpentry Work", "price": 15000, "duration": 60},
        ],
    },
    {
        "id": "painting",
        "name": "Painting Services",
        "category": "PAINTING",
        "description": "Interior painting and touch-ups.",
        "priority": 80,
        "pricing_options": [
            # Priced on site after inspection
            {"id": "painting-room-interior", "name": "Interior Room Painting", "price": 0, "duration": 240},
            {"id": "painting-touch-up", "name": "Paint Touch-up", "price": 5000, "duration": 30},
        ],
    },
    {
        "id": "appliance-repair",
        "name": "Appliance Repair",
        "category": "APPLIANCE_REPAIR",
        "description": "Washing machine, refrigerator and household appliance repair.",
        "priority": 70,
        "pricing_options": [
            {"id": "appliance-washing-machine", "name": "Washing Machine Repair", "price": 10000, "duration": 90},
            {"id": "appliance-refrigerator", "name": "Refrigerator Repair", "price": 15000, "duration": 120},
        ],
    },
    {
        "id": "outdoor-maintenance",
        "name": "Outdoor Maintenance",
        "category": "OUTDOOR_MAINTENANCE",
        "description": "Garden care and outdoor upkeep.",
        "priority": 60,
        "pricing_options": [
            {"id": "outdoor-garden-care", "name": "Garden Maintenance Package", "price": 10000, "duration": 180},
        ],
    },
    {
        "id": "general-handyman",
        "name": "General Handyman",
        "category": "GENERAL_HANDYMAN",
        "description": "Small jobs around the house, billed per hour.",
        "priority": 50,
        "pricing_options": [
            {"id": "handyman-hourly", "name": "General Handyman Services", "price": 5000, "duration": 60},
        ],
    },
]

# pricing option id -> (service id, price in fils)
PRICE_TABLE = {
    option["id"]: (service["id"], option["price"])
    for service in SERVICE_CATALOG
    for option in service["pricing_options"]
}

TIME_SLOTS = (
    "08:00 - 09:00",
    "09:00 - 10:00",
    "10:00 - 11:00",
    "11:00 - 12:00",
    "12:00 - 13:00",
    "13:00 - 14:00",
    "14:00 - 15:00",
    "15:00 - 16:00",
    "16:00 - 17:00",
    "17:00 - 18:00",
    "18:00 - 19:00",
    "19:00 - 20:00",
)

SERVICE_AREAS = (
    "Manama",
    "Saar",
    "Hamala",
    "Mina Salman",
    "Budaiya",
    "Riffa",
    "Muharraq",
    "Juffair",
    "Seef",
    "Adliya",
)


def price_for(pricing_option_id: str, service_id: str = None) -> int:
    """Price in fils for a pricing option.

    Raises ValidationError for an id outside the catalog, or when the option
    does not belong to ``service_id``.
    """
    try:
        owner, price = PRICE_TABLE[pricing_option_id]
    except KeyError:
        raise ValidationError(f"Unknown pricing option: {pricing_option_id}") from None
    if service_id is not None and owner != service_id:
        raise ValidationError(f"Pricing option {pricing_option_id} does not belong to service {service_id}")
    return price


def seed_catalog(db: Session) -> int:
    """Upsert the catalog into the services and pricing_options tables."""
    count = 0
    for entry in SERVICE_CATALOG:
        db.merge(Service(
            id=entry["id"],
            name=entry["name"],
            category=entry["category"],
            description=entry["description"],
            priority=entry["priority"],
            active=True
        ))
        for option in entry["pricing_options"]:
            db.merge(PricingOption(
                id=option["id"],
                service_id=entry["id"],
                name=option["name"],
                price=option["price"],
                duration=option["duration"],
                popular=option.get("popular", False)
            ))
            count += 1
    db.commit()
    logger.info(f"📋 Service catalog seeded: {len(SERVICE_CATALOG)} services, {count} pricing options")
    return count
