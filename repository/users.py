# repository/users.py - Accounts, session-based authentication and role dependencies
import secrets
import logging
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import and_
from tables.users import Users
from tables.user_sessions import UserSession
from tables.technicians import TechnicianProfile
from tables.enums import Role, TechnicianStatus
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from config import get_db, SECRET_KEY, ALGORITHM, SESSION_CLEANUP_HOURS, MAX_SESSIONS_PER_USER
from lifecycle.policy import Operation, is_allowed

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer()

class UserRepo:
    @staticmethod
    def find_by_username(db: Session, username: str):
        return db.query(Users).filter(Users.username == username).first()

    @staticmethod
    def find_by_phone_number(db: Session, phone_number: str):
        return db.query(Users).filter(Users.phone_number == phone_number).first()

    @staticmethod
    def create(db: Session, username: str, password: str, role: Role, **fields):
        """Create a user; technicians also get a profile awaiting review"""
        specialties = fields.pop("specialties", None) or []
        user = Users(
            username=username,
            password=pwd_context.hash(password),
            role=role,
            **fields
        )
        db.add(user)
        db.flush()
        if role == Role.TECHNICIAN:
            db.add(TechnicianProfile(
                user_id=user.id,
                status=TechnicianStatus.UNDER_REVIEW,
                specialties=specialties,
                service_areas=[]
            ))
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def verify_password(user: Users, password: str) -> bool:
        return pwd_context.verify(password, user.password)

class SessionRepo:
    @staticmethod
    def create_session(db: Session, user_id: int, device_info: str = None, ip_address: str = None):
        """Create a new session for user"""
        session_token = secrets.token_urlsafe(64)

        # Clean up old sessions if user has too many
        SessionRepo.cleanup_user_sessions(db, user_id)

        session = UserSession(
            user_id=user_id,
            session_token=session_token,
            device_info=device_info,
            ip_address=ip_address
        )

        db.add(session)
        db.commit()
        db.refresh(session)
        return session

    @staticmethod
    def get_session_by_token(db: Session, session_token: str):
        """Get active session by token"""
        return db.query(UserSession).filter(
            and_(
                UserSession.session_token == session_token,
                UserSession.is_active == True
            )
        ).first()

    @staticmethod
    def update_session_access(db: Session, session: UserSession):
        session.last_accessed = datetime.utcnow()
        db.commit()

    @staticmethod
    def invalidate_session(db: Session, session_token: str):
        """Invalidate a session (logout)"""
        session = db.query(UserSession).filter(
            UserSession.session_token == session_token
        ).first()

        if session:
            session.is_active = False
            db.commit()
            return True
        return False

    @staticmethod
    def cleanup_user_sessions(db: Session, user_id: int):
        """Keep only the most recent MAX_SESSIONS_PER_USER sessions"""
        active_sessions = db.query(UserSession).filter(
            and_(
                UserSession.user_id == user_id,
                UserSession.is_active == True
            )
        ).order_by(UserSession.last_accessed.desc()).all()

        if len(active_sessions) >= MAX_SESSIONS_PER_USER:
            for session in active_sessions[MAX_SESSIONS_PER_USER-1:]:
                session.is_active = False
            db.commit()

    @staticmethod
    def cleanup_old_sessions(db: Session):
        """Clean up very old inactive sessions"""
        cutoff_date = datetime.utcnow() - timedelta(hours=SESSION_CLEANUP_HOURS)
        db.query(UserSession).filter(
            and_(
                UserSession.last_accessed < cutoff_date,
                UserSession.is_active == False
            )
        ).delete()
        db.commit()

class JWTRepo:
    @staticmethod
    def generate_session_token(session_token: str):
        """Generate JWT token that references a server-side session"""
        payload = {
            "session": session_token,
            "type": "session"
        }
        return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def verify_session_token(token: str):
        """Verify JWT token and extract session token"""
        try:
            payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
            session_token = payload.get("session")
            token_type = payload.get("type")

            if session_token is None or token_type != "session":
                raise JWTError("Invalid token format")

            return session_token
        except JWTError:
            return None

def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
):
    """Get current session object"""
    session_token = JWTRepo.verify_session_token(credentials.credentials)

    if session_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = SessionRepo.get_session_by_token(db, session_token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired or invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return session

def get_current_user(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db)
):
    """Get current user from session token"""
    SessionRepo.update_session_access(db, session)

    user = db.query(Users).filter(Users.id == session.user_id).first()
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user

def require_operation(operation: Operation):
    """Dependency that admits only roles the policy allows for ``operation``"""
    def dependency(current_user: Users = Depends(get_current_user)):
        if not is_allowed(current_user.role, operation):
            logger.warning(f"🚫 {current_user.role.value} {current_user.id} denied {operation.value}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access forbidden for this role"
            )
        return current_user
    return dependency
