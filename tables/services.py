# tables/services.py - Service catalog rows, seeded from lifecycle.pricing
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship
from config import Base

class Service(Base):
    __tablename__ = 'services'

    id = Column(String(64), primary_key=True)  # slug, e.g. "plumbing"
    name = Column(String, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=True)
    priority = Column(Integer, default=0)
    active = Column(Boolean, default=True)

    pricing_options = relationship("PricingOption", back_populates="service", order_by="PricingOption.price")


class PricingOption(Base):
    __tablename__ = 'pricing_options'

    id = Column(String(64), primary_key=True)
    service_id = Column(String(64), ForeignKey("services.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    price = Column(Integer, nullable=False)  # fils
    duration = Column(Integer, nullable=False)  # minutes
    description = Column(Text, nullable=True)
    popular = Column(Boolean, default=False)

    service = relationship("Service", back_populates="pricing_options")
