"""
Delete expired and revoked sessions past the retention window
Run from cron or any scheduler
"""
from dotenv import load_dotenv

load_dotenv()

from venue_api.core.config import settings  # noqa: E402
from venue_api.core.database import SessionLocal  # noqa: E402
from venue_api.services.auth_service import AuthService  # noqa: E402


if __name__ == "__main__":
    print("=" * 60)
    print("CLEANING UP SESSIONS")
    print("=" * 60)

    db = SessionLocal()
    try:
        deleted = AuthService(db).cleanup_expired_sessions()
        print(f"\nDeleted {deleted} session(s) older than {settings.SESSION_RETENTION_DAYS} days")
    except Exception as e:
        print(f"\nError: {e}")
    finally:
        db.close()

    print("=" * 60)
