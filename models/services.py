# models/services.py - Public service catalog schemas
from pydantic import BaseModel
from typing import Optional, List

class PricingOptionResponse(BaseModel):
    id: str
    name: str
    price: int  # fils
    duration: int
    description: Optional[str] = None
    popular: bool = False

class ServiceResponse(BaseModel):
    id: str
    name: str
    category: str
    description: Optional[str] = None
    pricing_options: List[PricingOptionResponse]
