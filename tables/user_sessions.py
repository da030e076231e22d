# tables/user_sessions.py - Server-side login sessions referenced by JWTs
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from config import Base
import datetime

class UserSession(Base):
    """One row per login; logout or eviction flips is_active, the JWT stays opaque."""
    __tablename__ = 'user_sessions'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    session_token = Column(String(255), unique=True, nullable=False, index=True)
    device_info = Column(String(500))  # user agent, truncated
    ip_address = Column(String(45))
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    last_accessed = Column(DateTime, default=datetime.datetime.utcnow, index=True)
    is_active = Column(Boolean, nullable=False, default=True)

    user = relationship("Users", back_populates="sessions")
