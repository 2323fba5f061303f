from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID, uuid4
import bcrypt
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from venue_api.core.database import get_db
from venue_api.core.config import settings
from venue_api.models.user import User, UserSession

# HTTP Bearer authentication
security = HTTPBearer()

# -------------------------
# PASSWORD UTILITIES
# -------------------------
def hash_password(password: str) -> str:
    """Hash a plain password using bcrypt"""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash"""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        return False


# -------------------------
# TOKEN CREATION
# -------------------------
def _stringify_claims(data: dict) -> dict:
    to_encode = data.copy()
    for key, value in to_encode.items():
        if isinstance(value, UUID):
            to_encode[key] = str(value)
    return to_encode


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    to_encode = _stringify_claims(data)

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    to_encode.update({"exp": expire, "iat": datetime.utcnow(), "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT refresh token"""
    to_encode = _stringify_claims(data)

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    # jti keeps two refresh tokens minted in the same second distinct
    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "type": "refresh",
        "jti": str(uuid4()),
    })
    return jwt.encode(to_encode, settings.refresh_secret, algorithm=settings.ALGORITHM)


# -------------------------
# TOKEN VERIFICATION
# -------------------------
def verify_token(token: str, token_type: str = "access") -> dict:
    """
    Verify and decode a JWT token

    Args:
        token: JWT token string
        token_type: Expected token type ('access' or 'refresh')

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    secret = settings.refresh_secret if token_type == "refresh" else settings.SECRET_KEY
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != token_type:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token type. Expected {token_type}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


# -------------------------
# DEPENDENCY FUNCTIONS
# -------------------------
def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """Decoded access token of the current request"""
    return verify_token(credentials.credentials, token_type="access")


def get_current_user(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> User:
    """
    Extract current user from JWT token

    Raises:
        HTTPException: If token is invalid or user not found
    """
    user_id_raw = payload.get("sub")
    if user_id_raw is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: user ID missing"
        )

    try:
        user_id = UUID(str(user_id_raw))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: malformed user ID"
        )

    # Fetch user from database
    user = db.query(User).filter(
        User.id == user_id,
        User.is_active == True
    ).first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    # Access tokens die with their session
    session_id = payload.get("sid")
    if session_id:
        try:
            session = db.query(UserSession).filter(
                UserSession.id == UUID(str(session_id))
            ).first()
        except ValueError:
            session = None
        if not session or session.is_revoked:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Session revoked or not found"
            )

    return user


# -------------------------
# ROLE-BASED ACCESS CONTROL
# -------------------------
def require_role(*allowed_roles: str):
    """
    Dependency factory for role-based access control

    Usage:
        @router.post("", dependencies=[Depends(require_role("admin", "manager"))])
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        user_role = getattr(current_user, "role", None)
        if user_role != "super_admin" and user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {', '.join(allowed_roles)}"
            )
        return current_user

    return role_checker
