# models/users.py - Signup, login and profile schemas
from pydantic import BaseModel, EmailStr, validator
from typing import Optional, Any, List
from datetime import datetime
from tables.enums import Role
from models.bookings import check_email_domain
import re

PHONE_PATTERN = re.compile(r"^(\+973)?[0-9]{8}$")

class Register(BaseModel):
    username: str
    password: str
    email: EmailStr
    phone_number: str
    name: str
    role: Role = Role.CLIENT
    specialties: Optional[List[str]] = None  # technicians only

    @validator('password')
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError('Password must be at least 6 characters long')
        return v

    @validator('email')
    def validate_email(cls, v):
        return check_email_domain(v)

    @validator('phone_number')
    def validate_phone_number(cls, v):
        v = v.replace(" ", "")
        if not PHONE_PATTERN.match(v):
            raise ValueError('Please enter a valid Bahrain phone number (+973 XXXX XXXX)')
        return v

    @validator('role')
    def validate_role(cls, v):
        if v == Role.ADMIN:
            raise ValueError('Admins cannot self-register')
        return v

class Login(BaseModel):
    phone_number: str
    password: str

    @validator('phone_number')
    def strip_spaces(cls, v):
        return v.replace(" ", "")

class UserInfo(BaseModel):
    user_id: int
    username: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    role: Role
    technician_id: Optional[int] = None
    created_at: Optional[datetime] = None

class ResponseSchema(BaseModel):
    code: str
    status: str
    message: str
    result: Optional[Any] = None
