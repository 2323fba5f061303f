"""
Authentication service with business logic

Session lifecycle:
- login issues an access token and a refresh token bound to a new session
- refresh rotates both tokens; a session close to expiry slides forward
- sessions idle past the inactivity timeout are revoked on refresh
- logout / revoke mark sessions revoked; revoked sessions reject access tokens
"""
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional, Dict, List
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from user_agents import parse as parse_user_agent

from venue_api.core.config import settings
from venue_api.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from venue_api.crud.tax_configuration import TaxConfigurationCRUD
from venue_api.models.organization import Organization
from venue_api.models.user import User, UserSession
from venue_api.schemas.auth import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenResponse,
    UserResponse,
    OrganizationSummary,
    SessionResponse,
)
from venue_api.services.tax_configuration import TaxConfigurationService
from venue_api.utils.date import (
    calculate_session_expiry,
    is_expired,
    is_inactive,
    is_within_renewal_threshold,
)

logger = logging.getLogger(__name__)


def _unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": {"code": code, "message": message}},
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_device_info(user_agent: Optional[str]) -> Dict[str, str]:
    """Device type, browser and OS families parsed from a User-Agent string"""
    if not user_agent:
        return {"device_type": "unknown", "browser": "unknown", "os": "unknown"}

    parsed = parse_user_agent(user_agent)

    if parsed.is_bot:
        device_type = "bot"
    elif parsed.is_tablet:
        device_type = "tablet"
    elif parsed.is_mobile:
        device_type = "mobile"
    elif parsed.is_pc:
        device_type = "desktop"
    else:
        device_type = "unknown"

    # ua-parser reports unrecognised families as "Other"
    browser = parsed.browser.family if parsed.browser.family != "Other" else "unknown"
    os_name = parsed.os.family if parsed.os.family != "Other" else "unknown"

    return {"device_type": device_type, "browser": browser, "os": os_name}


class AuthService:
    """Service class for authentication and session operations"""

    def __init__(self, db: Session):
        self.db = db

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def _token_claims(self, user: User, session_id: uuid.UUID) -> dict:
        return {
            "sub": user.id,
            "organization_id": user.organization_id,
            "email": user.email,
            "role": user.role,
            "sid": session_id,
        }

    def _issue_tokens(self, user: User, session_id: uuid.UUID) -> tuple:
        claims = self._token_claims(user, session_id)
        access_token = create_access_token(claims)
        refresh_token = create_refresh_token(
            {"sub": claims["sub"], "sid": claims["sid"]}
        )
        return access_token, refresh_token

    def _token_response(self, session: UserSession) -> TokenResponse:
        return TokenResponse(
            accessToken=session.access_token,
            refreshToken=session.refresh_token,
            expiresIn=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            sessionId=str(session.id),
            sessionExpiresAt=session.expires_at.isoformat(),
        )

    def _user_response(self, user: User) -> UserResponse:
        return UserResponse(
            id=str(user.id),
            email=user.email,
            firstName=user.first_name,
            lastName=user.last_name,
            role=user.role,
            organizationId=str(user.organization_id),
        )

    def _organization_summary(self, organization: Organization) -> OrganizationSummary:
        return OrganizationSummary(
            id=str(organization.id),
            name=organization.name,
            slug=organization.slug,
            type=organization.type,
        )

    def _create_session(
        self,
        user: User,
        ip_address: Optional[str],
        user_agent: Optional[str],
        fingerprint: Optional[str],
    ) -> UserSession:
        now = datetime.utcnow()
        session_id = uuid.uuid4()
        access_token, refresh_token = self._issue_tokens(user, session_id)

        session = UserSession(
            id=session_id,
            user_id=user.id,
            refresh_token=refresh_token,
            access_token=access_token,
            expires_at=calculate_session_expiry(now, settings.SESSION_EXPIRE_DAYS),
            last_activity_at=now,
            ip_address=ip_address,
            user_agent=user_agent,
            fingerprint=fingerprint,
            is_revoked=False,
            **extract_device_info(user_agent),
        )
        self.db.add(session)
        return session

    def _revoke(self, session: UserSession) -> None:
        session.is_revoked = True
        session.revoked_at = datetime.utcnow()

    # ========================================================================
    # REGISTRATION
    # ========================================================================

    def register(
        self,
        data: RegisterRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> RegisterResponse:
        """
        Create an organization with its admin user, seed its default tax
        configurations and open a first session
        """
        if self.db.query(User).filter(User.email == data.email).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"error": {"code": "EMAIL_EXISTS", "message": "Email already registered"}}
            )

        if self.db.query(Organization).filter(Organization.slug == data.organizationSlug).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"error": {"code": "SLUG_EXISTS", "message": "Organization slug already taken"}}
            )

        organization = Organization(
            id=uuid.uuid4(),
            name=data.organizationName,
            slug=data.organizationSlug,
            type=data.organizationType,
            is_active=True,
        )
        user = User(
            id=uuid.uuid4(),
            organization_id=organization.id,
            email=data.email,
            password_hash=hash_password(data.password),
            first_name=data.firstName,
            last_name=data.lastName,
            role="admin",
            is_active=True,
            last_login_at=datetime.utcnow(),
        )
        organization.owner_id = user.id

        try:
            self.db.add(organization)
            self.db.add(user)
            session = self._create_session(user, ip_address, user_agent, None)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Registration failed for {data.email}: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"error": {"code": "DATABASE_ERROR", "message": "Failed to create account"}}
            )

        TaxConfigurationService(
            TaxConfigurationCRUD(self.db)
        ).create_default_tax_configurations(organization)

        self.db.refresh(user)
        self.db.refresh(session)
        logger.info(f"Registered organization {organization.slug} with admin {user.email}")

        return RegisterResponse(
            user=self._user_response(user),
            organization=self._organization_summary(organization),
            tokens=self._token_response(session),
            message="Registration successful.",
        )

    # ========================================================================
    # LOGIN
    # ========================================================================

    def login(
        self,
        data: LoginRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> LoginResponse:
        """Authenticate user and open a new session"""
        user = self.db.query(User).filter(User.email == data.email).first()

        if not user or not verify_password(data.password, user.password_hash):
            raise _unauthorized("INVALID_CREDENTIALS", "Invalid email or password")

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": {"code": "ACCOUNT_INACTIVE", "message": "Your account has been deactivated"}}
            )

        organization = user.organization
        if not organization or not organization.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"error": {"code": "ORGANIZATION_INACTIVE", "message": "Organization is inactive"}}
            )

        session = self._create_session(user, ip_address, user_agent, data.fingerprint)
        user.last_login_at = datetime.utcnow()

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create session for {user.email}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={"error": {"code": "DATABASE_ERROR", "message": "Failed to create session"}}
            )
        self.db.refresh(session)

        return LoginResponse(
            user=self._user_response(user),
            organization=self._organization_summary(organization),
            tokens=self._token_response(session),
        )

    # ========================================================================
    # REFRESH
    # ========================================================================

    def refresh(
        self,
        data: RefreshTokenRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ) -> TokenResponse:
        """
        Rotate the session's tokens
        Slides the session expiry when it is within the renewal threshold
        """
        try:
            payload = verify_token(data.refreshToken, token_type="refresh")
        except HTTPException:
            raise _unauthorized("INVALID_TOKEN", "Invalid or expired refresh token")

        session = self.db.query(UserSession).filter(
            UserSession.refresh_token == data.refreshToken
        ).first()

        if not session:
            # A valid signature without a matching row means the token was rotated away
            logger.warning(f"Refresh token reuse or unknown session: sid={payload.get('sid')}")
            raise _unauthorized("SESSION_NOT_FOUND", "Session not found")

        if session.is_revoked:
            logger.warning(f"Refresh attempt on revoked session {session.id}")
            raise _unauthorized("SESSION_REVOKED", "Session has been revoked")

        now = datetime.utcnow()
        if is_expired(session.expires_at, now):
            logger.warning(f"Refresh attempt on expired session {session.id}")
            raise _unauthorized("SESSION_EXPIRED", "Session has expired")

        if is_inactive(session.last_activity_at, settings.SESSION_INACTIVITY_TIMEOUT_DAYS, now):
            logger.warning(f"Session {session.id} revoked after inactivity")
            self._revoke(session)
            self.db.commit()
            raise _unauthorized("SESSION_INACTIVE", "Session expired due to inactivity")

        user = session.user
        if not user or not user.is_active:
            raise _unauthorized("USER_INACTIVE", "User account is not active")

        if data.fingerprint and session.fingerprint and data.fingerprint != session.fingerprint:
            logger.warning(f"Device fingerprint mismatch for session {session.id}")
            if settings.STRICT_FINGERPRINT_CHECK:
                raise _unauthorized("FINGERPRINT_MISMATCH", "Device fingerprint mismatch")

        if is_within_renewal_threshold(session.expires_at, settings.SESSION_RENEWAL_THRESHOLD_DAYS, now):
            session.expires_at = calculate_session_expiry(now, settings.SESSION_EXPIRE_DAYS)
            logger.debug(f"Renewed session {session.id} until {session.expires_at}")

        access_token, refresh_token = self._issue_tokens(user, session.id)
        session.access_token = access_token
        session.refresh_token = refresh_token
        session.last_activity_at = now
        if ip_address:
            session.ip_address = ip_address
        if user_agent and user_agent != session.user_agent:
            session.user_agent = user_agent
            for key, value in extract_device_info(user_agent).items():
                setattr(session, key, value)
        if data.fingerprint and not session.fingerprint:
            session.fingerprint = data.fingerprint

        self.db.commit()
        self.db.refresh(session)
        return self._token_response(session)

    # ========================================================================
    # LOGOUT / REVOCATION
    # ========================================================================

    def logout(self, refresh_token: str) -> bool:
        """Revoke the session holding this refresh token; unknown tokens are ignored"""
        session = self.db.query(UserSession).filter(
            UserSession.refresh_token == refresh_token
        ).first()

        if not session or session.is_revoked:
            return False

        self._revoke(session)
        self.db.commit()
        return True

    def list_sessions(self, user: User, current_session_id: Optional[str] = None) -> List[SessionResponse]:
        """Active (unrevoked, unexpired) sessions of a user, newest first"""
        sessions = self.db.query(UserSession).filter(
            UserSession.user_id == user.id,
            UserSession.is_revoked == False,
            UserSession.expires_at > datetime.utcnow()
        ).order_by(UserSession.created_at.desc()).all()

        return [
            SessionResponse(
                id=str(s.id),
                deviceType=s.device_type,
                browser=s.browser,
                os=s.os,
                ipAddress=s.ip_address,
                createdAt=s.created_at.isoformat(),
                lastActivityAt=s.last_activity_at.isoformat() if s.last_activity_at else None,
                expiresAt=s.expires_at.isoformat(),
                isCurrent=str(s.id) == str(current_session_id),
            )
            for s in sessions
        ]

    def revoke_session(self, user: User, session_id: uuid.UUID) -> None:
        session = self.db.query(UserSession).filter(
            UserSession.id == session_id,
            UserSession.user_id == user.id
        ).first()

        if not session:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": {"code": "SESSION_NOT_FOUND", "message": "Session not found"}}
            )

        if not session.is_revoked:
            self._revoke(session)
            self.db.commit()

    def revoke_all_sessions(self, user: User, keep_session_id: Optional[str] = None) -> int:
        """Revoke every open session of the user, optionally sparing one"""
        query = self.db.query(UserSession).filter(
            UserSession.user_id == user.id,
            UserSession.is_revoked == False
        )
        if keep_session_id:
            query = query.filter(UserSession.id != uuid.UUID(str(keep_session_id)))

        sessions = query.all()
        for session in sessions:
            self._revoke(session)
        self.db.commit()

        logger.info(f"Revoked {len(sessions)} session(s) for user {user.id}")
        return len(sessions)

    def cleanup_expired_sessions(self, now: Optional[datetime] = None) -> int:
        """
        Delete sessions that expired or were revoked more than
        SESSION_RETENTION_DAYS ago. Meant for a scheduled job.
        """
        now = now or datetime.utcnow()
        cutoff = now - timedelta(days=settings.SESSION_RETENTION_DAYS)

        expired = self.db.query(UserSession).filter(UserSession.expires_at < cutoff)
        revoked = self.db.query(UserSession).filter(
            UserSession.is_revoked == True,
            UserSession.revoked_at < cutoff
        )

        deleted = expired.delete(synchronize_session=False)
        deleted += revoked.delete(synchronize_session=False)
        self.db.commit()

        logger.info(f"Session cleanup removed {deleted} session(s)")
        return deleted
