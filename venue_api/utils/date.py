"""
Date utility functions for session lifetimes
"""
from datetime import datetime, timedelta
from typing import Optional


def calculate_session_expiry(start_date: datetime, days: int = 30) -> datetime:
    """
    Calculate session expiry from a start date

    Args:
        start_date: When the session (or its renewal) starts
        days: Session lifetime in days (default: 30)

    Returns:
        datetime: Session expiry
    """
    return start_date + timedelta(days=days)


def is_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    """
    Check if an expiry moment has passed

    Args:
        expires_at: The expiry to check
        now: Reference time, defaults to utcnow

    Returns:
        bool: True if expired, False otherwise
    """
    return (now or datetime.utcnow()) >= expires_at


def is_within_renewal_threshold(
    expires_at: datetime, threshold_days: int, now: Optional[datetime] = None
) -> bool:
    """True when fewer than threshold_days remain before expires_at"""
    now = now or datetime.utcnow()
    return expires_at - now < timedelta(days=threshold_days)


def is_inactive(
    last_activity_at: Optional[datetime], timeout_days: int, now: Optional[datetime] = None
) -> bool:
    """True when the last recorded activity is older than the timeout"""
    if last_activity_at is None:
        return False
    now = now or datetime.utcnow()
    return now - last_activity_at > timedelta(days=timeout_days)
