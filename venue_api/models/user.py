"""
User and Session models
"""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from venue_api.core.database import Base
from venue_api.models.base import TimestampMixin, OrganizationMixin


class User(Base, TimestampMixin, OrganizationMixin):
    """
    User model for authentication and authorization
    Users belong to an organization and have a role within it
    """

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    # Role within organization (admin, manager, staff) or platform super_admin
    role = Column(String(50), nullable=False, default="staff")

    # Status
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    # Relationships
    organization = relationship("Organization", back_populates="users")
    sessions = relationship(
        "UserSession", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class UserSession(Base, TimestampMixin):
    """
    Session model for tracking user sessions and refresh tokens
    """

    __tablename__ = "sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Session details
    refresh_token = Column(String(1000), nullable=False, unique=True, index=True)
    access_token = Column(String(1000), nullable=True)
    expires_at = Column(DateTime, nullable=False)
    last_activity_at = Column(DateTime, nullable=True)

    # Device/client information
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    device_type = Column(String(50), nullable=True)
    browser = Column(String(100), nullable=True)
    os = Column(String(100), nullable=True)
    fingerprint = Column(String(255), nullable=True)

    # Status
    is_revoked = Column(Boolean, default=False, nullable=False)
    revoked_at = Column(DateTime, nullable=True)

    # Relationships
    user = relationship("User", back_populates="sessions")

    def __repr__(self):
        return f"<UserSession {self.user_id} - revoked:{self.is_revoked}>"
