# routes/users.py - Signup, login, logout and current-user endpoints
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from config import get_db
from models.users import Register, Login, ResponseSchema, UserInfo
from repository.users import (
    UserRepo, JWTRepo, SessionRepo, get_current_user, get_current_session
)
from tables.users import Users
from tables.user_sessions import UserSession
from tables.enums import Role

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)

def get_client_info(request: Request):
    """Extract client information from request"""
    user_agent = request.headers.get('user-agent', 'Unknown')
    ip_address = request.client.host if request.client else 'Unknown'
    return user_agent[:500], ip_address

def issue_token(db: Session, user: Users, req: Request) -> dict:
    device_info, ip_address = get_client_info(req)
    session = SessionRepo.create_session(db, user.id, device_info, ip_address)
    return {
        "access_token": JWTRepo.generate_session_token(session.session_token),
        "token_type": "bearer",
        "role": user.role.value,
        "user_id": user.id,
        "username": user.username,
        "expires_on_logout": True
    }

@router.post('/signup', status_code=status.HTTP_201_CREATED)
def signup(request: Register, req: Request, db: Session = Depends(get_db)):
    if UserRepo.find_by_username(db, request.username):
        raise HTTPException(status_code=400, detail="Username already exists")

    if UserRepo.find_by_phone_number(db, request.phone_number):
        raise HTTPException(status_code=400, detail="Phone number already exists")

    user = UserRepo.create(
        db,
        username=request.username,
        password=request.password,
        role=request.role,
        email=request.email,
        phone_number=request.phone_number,
        name=request.name,
        specialties=request.specialties if request.role == Role.TECHNICIAN else None
    )
    logger.info(f"👤 New {user.role.value} registered: {user.username}")

    return ResponseSchema(
        code="201",
        status="OK",
        message="User registered and logged in successfully",
        result=issue_token(db, user, req)
    ).dict(exclude_none=True)

@router.post('/login')
def login(request: Login, req: Request, db: Session = Depends(get_db)):
    user = UserRepo.find_by_phone_number(db, request.phone_number)

    if not user or not UserRepo.verify_password(user, request.password):
        raise HTTPException(status_code=401, detail="Invalid phone number or password")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account is disabled")

    return ResponseSchema(
        code="200",
        status="OK",
        message="Login successful",
        result=issue_token(db, user, req)
    ).dict(exclude_none=True)

@router.post('/logout')
def logout(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    SessionRepo.invalidate_session(db, session.session_token)
    SessionRepo.cleanup_old_sessions(db)
    return ResponseSchema(code="200", status="OK", message="Logged out successfully").dict(exclude_none=True)

@router.get('/me', response_model=UserInfo)
def me(current_user: Users = Depends(get_current_user)):
    profile = current_user.technician_profile
    return UserInfo(
        user_id=current_user.id,
        username=current_user.username,
        name=current_user.name,
        email=current_user.email,
        phone_number=current_user.phone_number,
        role=current_user.role,
        technician_id=profile.id if profile else None,
        created_at=current_user.create_date
    )
