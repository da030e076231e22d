# tables/users.py - Accounts for clients, technicians and admins
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from config import Base
from tables.enums import Role
import datetime

class Users(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    username = Column(String, unique=True, index=True)
    password = Column(String)
    email = Column(String)
    phone_number = Column(String, unique=True, index=True)
    name = Column(String)
    role = Column(Enum(Role, native_enum=False, length=20), nullable=False, default=Role.CLIENT)
    is_active = Column(Boolean, default=True)
    create_date = Column(DateTime, default=datetime.datetime.utcnow)
    update_date = Column(DateTime)

    # Relationships
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    technician_profile = relationship("TechnicianProfile", back_populates="user", uselist=False)
    addresses = relationship("Address", back_populates="client")
