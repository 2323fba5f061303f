"""
Authentication API endpoints
Handles registration, login, token refresh, logout and session management
"""
from typing import Any
from uuid import UUID
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from venue_api.core.database import get_db
from venue_api.core.security import get_current_user, get_token_payload
from venue_api.models.user import User
from venue_api.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenResponse,
    LogoutRequest,
    MessageResponse,
    SessionListResponse,
    RevokeAllRequest,
    RevokeAllResponse,
)
from venue_api.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["authentication"])


def _client_info(request: Request) -> tuple:
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterRequest,
    request: Request,
    db: Session = Depends(get_db)
) -> Any:
    """
    Register an owner and create their organization
    Default tax configurations are seeded for the organization type
    """
    ip_address, user_agent = _client_info(request)
    return AuthService(db).register(payload, ip_address, user_agent)


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db)
) -> Any:
    """Login with email and password; opens a new session"""
    ip_address, user_agent = _client_info(request)
    return AuthService(db).login(payload, ip_address, user_agent)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    payload: RefreshTokenRequest,
    request: Request,
    db: Session = Depends(get_db)
) -> Any:
    """
    Rotate access and refresh tokens
    Sessions close to expiry are extended
    """
    ip_address, user_agent = _client_info(request)
    return AuthService(db).refresh(payload, ip_address, user_agent)


@router.post("/logout", response_model=MessageResponse)
def logout(
    payload: LogoutRequest,
    db: Session = Depends(get_db)
) -> Any:
    AuthService(db).logout(payload.refreshToken)
    return MessageResponse(message="Logged out successfully")


@router.get("/sessions", response_model=SessionListResponse)
def list_sessions(
    current_user: User = Depends(get_current_user),
    token_payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> Any:
    """Active sessions of the current user"""
    sessions = AuthService(db).list_sessions(current_user, token_payload.get("sid"))
    return SessionListResponse(data=sessions)


@router.delete("/sessions/{sessionId}", response_model=MessageResponse)
def revoke_session(
    sessionId: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Any:
    AuthService(db).revoke_session(current_user, sessionId)
    return MessageResponse(message="Session revoked")


@router.post("/sessions/revoke-all", response_model=RevokeAllResponse)
def revoke_all_sessions(
    payload: RevokeAllRequest = RevokeAllRequest(),
    current_user: User = Depends(get_current_user),
    token_payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> Any:
    """Revoke every session, by default sparing the one making the request"""
    keep_session_id = token_payload.get("sid") if payload.keepCurrent else None
    revoked = AuthService(db).revoke_all_sessions(current_user, keep_session_id)
    return RevokeAllResponse(
        message=f"Revoked {revoked} session(s)",
        revokedCount=revoked
    )
