# routes/services.py - Public service catalog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload
from config import get_db
from models.services import ServiceResponse, PricingOptionResponse
from tables.services import Service
from typing import List, Optional

router = APIRouter(prefix="/services", tags=["Services"])

@router.get("", response_model=List[ServiceResponse])
def list_services(
    category: Optional[str] = Query(None, description="Filter by category"),
    db: Session = Depends(get_db)
):
    query = db.query(Service).options(joinedload(Service.pricing_options)).filter(Service.active == True)
    if category:
        query = query.filter(Service.category == category.upper())

    return [
        ServiceResponse(
            id=service.id,
            name=service.name,
            category=service.category,
            description=service.description,
            pricing_options=[
                PricingOptionResponse(
                    id=option.id,
                    name=option.name,
                    price=option.price,
                    duration=option.duration,
                    description=option.description,
                    popular=bool(option.popular)
                )
                for option in service.pricing_options
            ]
        )
        for service in query.order_by(Service.priority.desc()).all()
    ]
