"""
Authentication Tests
Registration, login and the session lifecycle behind token refresh
"""
from datetime import datetime, timedelta

import pytest

from conftest import TEST_PASSWORD
from venue_api.core.config import settings
from venue_api.models import Organization, TaxConfiguration, UserSession
from venue_api.services.auth_service import AuthService, extract_device_info

CHROME_ON_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_ON_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

REGISTRATION = {
    "email": "owner@grandrestaurant.example.com",
    "password": TEST_PASSWORD,
    "firstName": "Asha",
    "lastName": "Rao",
    "organizationName": "The Grand Restaurant",
    "organizationSlug": "grand-restaurant",
    "organizationType": "RESTAURANT",
}


def register(client, **overrides):
    payload = {**REGISTRATION, **overrides}
    return client.post("/api/v1/auth/register", json=payload)


def login(client, fingerprint=None, user_agent=CHROME_ON_WINDOWS):
    payload = {"email": REGISTRATION["email"], "password": TEST_PASSWORD}
    if fingerprint:
        payload["fingerprint"] = fingerprint
    return client.post("/api/v1/auth/login", json=payload, headers={"User-Agent": user_agent})


def refresh(client, refresh_token, fingerprint=None):
    payload = {"refreshToken": refresh_token}
    if fingerprint:
        payload["fingerprint"] = fingerprint
    return client.post("/api/v1/auth/refresh", json=payload)


def bearer(tokens):
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


def stored_session(db, tokens):
    db.expire_all()
    return db.query(UserSession).filter(UserSession.refresh_token == tokens["refreshToken"]).first()


@pytest.fixture
def registered(test_client):
    response = register(test_client)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def tokens(test_client, registered):
    response = login(test_client, fingerprint="device-a")
    assert response.status_code == 200
    return response.json()["tokens"]


class TestRegistration:
    def test_register_creates_organization_and_admin(self, test_client, db_session):
        response = register(test_client)

        assert response.status_code == 201
        data = response.json()
        assert data["user"]["role"] == "admin"
        assert data["organization"]["slug"] == "grand-restaurant"
        assert data["tokens"]["accessToken"]
        assert data["tokens"]["expiresIn"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

        organization = db_session.query(Organization).filter(Organization.slug == "grand-restaurant").one()
        assert str(organization.owner_id) == data["user"]["id"]

    def test_register_seeds_default_tax_configuration(self, test_client, db_session, registered):
        configurations = db_session.query(TaxConfiguration).all()

        assert [c.name for c in configurations] == ["Restaurant GST"]
        assert str(configurations[0].organization_id) == registered["organization"]["id"]

    def test_duplicate_email_is_409(self, test_client, registered):
        response = register(test_client, organizationSlug="another-slug")

        assert response.status_code == 409
        assert response.json()["detail"]["error"]["code"] == "EMAIL_EXISTS"

    def test_duplicate_slug_is_409(self, test_client, registered):
        response = register(test_client, email="second@grandrestaurant.example.com")

        assert response.status_code == 409
        assert response.json()["detail"]["error"]["code"] == "SLUG_EXISTS"

    def test_weak_password_is_422(self, test_client):
        response = register(test_client, password="alllowercase1")

        assert response.status_code == 422


class TestLogin:
    def test_login_records_device(self, test_client, db_session, registered):
        response = login(test_client, fingerprint="device-a", user_agent=SAFARI_ON_IPHONE)

        assert response.status_code == 200
        session = stored_session(db_session, response.json()["tokens"])
        assert session.device_type == "mobile"
        assert session.browser == "Mobile Safari"
        assert session.os == "iOS"
        assert session.fingerprint == "device-a"
        assert session.expires_at - session.created_at >= timedelta(days=settings.SESSION_EXPIRE_DAYS - 1)

    def test_wrong_password_is_401(self, test_client, registered):
        response = test_client.post(
            "/api/v1/auth/login",
            json={"email": REGISTRATION["email"], "password": "WrongPass999"},
        )

        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "INVALID_CREDENTIALS"

    def test_unknown_email_is_401(self, test_client):
        response = test_client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    def test_access_token_works(self, test_client, tokens, registered):
        organization_id = registered["organization"]["id"]

        response = test_client.get(f"/api/v1/organizations/{organization_id}", headers=bearer(tokens))

        assert response.status_code == 200


class TestRefresh:
    def test_refresh_rotates_tokens(self, test_client, tokens):
        response = refresh(test_client, tokens["refreshToken"], fingerprint="device-a")

        assert response.status_code == 200
        rotated = response.json()
        assert rotated["refreshToken"] != tokens["refreshToken"]
        assert rotated["sessionId"] == tokens["sessionId"]

        # The old refresh token is gone
        response = refresh(test_client, tokens["refreshToken"])
        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "SESSION_NOT_FOUND"

    def test_access_token_is_rejected_as_refresh_token(self, test_client, tokens):
        response = refresh(test_client, tokens["accessToken"])

        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "INVALID_TOKEN"

    def test_session_near_expiry_slides(self, test_client, db_session, tokens):
        session = stored_session(db_session, tokens)
        session.expires_at = datetime.utcnow() + timedelta(days=3)
        db_session.commit()

        response = refresh(test_client, tokens["refreshToken"])

        assert response.status_code == 200
        new_expiry = datetime.fromisoformat(response.json()["sessionExpiresAt"])
        assert new_expiry > datetime.utcnow() + timedelta(days=settings.SESSION_EXPIRE_DAYS - 1)

    def test_session_far_from_expiry_keeps_its_expiry(self, test_client, db_session, tokens):
        session = stored_session(db_session, tokens)
        expiry = datetime.utcnow() + timedelta(days=20)
        session.expires_at = expiry
        db_session.commit()

        response = refresh(test_client, tokens["refreshToken"])

        assert response.status_code == 200
        assert datetime.fromisoformat(response.json()["sessionExpiresAt"]) == expiry

    def test_expired_session_is_401(self, test_client, db_session, tokens):
        session = stored_session(db_session, tokens)
        session.expires_at = datetime.utcnow() - timedelta(minutes=1)
        db_session.commit()

        response = refresh(test_client, tokens["refreshToken"])

        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "SESSION_EXPIRED"

    def test_inactive_session_is_revoked(self, test_client, db_session, tokens):
        session = stored_session(db_session, tokens)
        session.last_activity_at = datetime.utcnow() - timedelta(days=settings.SESSION_INACTIVITY_TIMEOUT_DAYS + 1)
        db_session.commit()

        response = refresh(test_client, tokens["refreshToken"])

        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "SESSION_INACTIVE"
        assert stored_session(db_session, tokens).is_revoked is True

    def test_refresh_updates_last_activity(self, test_client, db_session, tokens):
        session = stored_session(db_session, tokens)
        session.last_activity_at = datetime.utcnow() - timedelta(days=2)
        db_session.commit()

        rotated = refresh(test_client, tokens["refreshToken"]).json()

        session = stored_session(db_session, rotated)
        assert datetime.utcnow() - session.last_activity_at < timedelta(minutes=1)

    def test_fingerprint_mismatch_is_logged(self, test_client, tokens, caplog):
        with caplog.at_level("WARNING", logger="venue_api.services.auth_service"):
            response = refresh(test_client, tokens["refreshToken"], fingerprint="device-b")

        assert response.status_code == 200
        assert "fingerprint mismatch" in caplog.text

    def test_fingerprint_mismatch_rejected_in_strict_mode(self, test_client, tokens, monkeypatch):
        monkeypatch.setattr(settings, "STRICT_FINGERPRINT_CHECK", True)

        response = refresh(test_client, tokens["refreshToken"], fingerprint="device-b")

        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "FINGERPRINT_MISMATCH"


class TestLogoutAndSessions:
    def test_logout_revokes_session(self, test_client, db_session, tokens):
        response = test_client.post("/api/v1/auth/logout", json={"refreshToken": tokens["refreshToken"]})

        assert response.status_code == 200
        assert stored_session(db_session, tokens).is_revoked is True

        response = refresh(test_client, tokens["refreshToken"])
        assert response.status_code == 401
        assert response.json()["detail"]["error"]["code"] == "SESSION_REVOKED"

    def test_access_token_dies_with_session(self, test_client, tokens):
        test_client.post("/api/v1/auth/logout", json={"refreshToken": tokens["refreshToken"]})

        response = test_client.get("/api/v1/auth/sessions", headers=bearer(tokens))

        assert response.status_code == 401

    def test_logout_unknown_token_is_quiet(self, test_client):
        response = test_client.post("/api/v1/auth/logout", json={"refreshToken": "not-a-token"})

        assert response.status_code == 200

    def test_list_sessions_marks_current(self, test_client, tokens):
        login(test_client, user_agent=SAFARI_ON_IPHONE)

        response = test_client.get("/api/v1/auth/sessions", headers=bearer(tokens))

        assert response.status_code == 200
        sessions = response.json()["data"]
        # registration, the fixture login and the Safari login
        assert len(sessions) == 3
        current = [s for s in sessions if s["isCurrent"]]
        assert [s["id"] for s in current] == [tokens["sessionId"]]

    def test_revoke_other_session(self, test_client, db_session, tokens):
        other = login(test_client).json()["tokens"]

        response = test_client.delete(f"/api/v1/auth/sessions/{other['sessionId']}", headers=bearer(tokens))

        assert response.status_code == 200
        assert stored_session(db_session, other).is_revoked is True
        assert stored_session(db_session, tokens).is_revoked is False

    def test_revoke_unknown_session_is_404(self, test_client, tokens):
        response = test_client.delete(
            "/api/v1/auth/sessions/00000000-0000-0000-0000-000000000000", headers=bearer(tokens)
        )

        assert response.status_code == 404

    def test_revoke_all_keeps_current(self, test_client, db_session, tokens):
        others = [login(test_client).json()["tokens"] for _ in range(2)]

        response = test_client.post(
            "/api/v1/auth/sessions/revoke-all", json={"keepCurrent": True}, headers=bearer(tokens)
        )

        assert response.status_code == 200
        assert response.json()["revokedCount"] == 3
        assert all(stored_session(db_session, t).is_revoked for t in others)
        assert stored_session(db_session, tokens).is_revoked is False

    def test_revoke_all_including_current(self, test_client, db_session, tokens):
        response = test_client.post(
            "/api/v1/auth/sessions/revoke-all", json={"keepCurrent": False}, headers=bearer(tokens)
        )

        assert response.json()["revokedCount"] == 2
        assert stored_session(db_session, tokens).is_revoked is True


class TestSessionCleanup:
    def test_removes_only_old_expired_and_revoked(self, test_client, db_session, registered):
        fresh, expired, revoked = [login(test_client).json()["tokens"] for _ in range(3)]
        long_ago = datetime.utcnow() - timedelta(days=settings.SESSION_RETENTION_DAYS + 1)

        stored_session(db_session, expired).expires_at = long_ago
        revoked_session = stored_session(db_session, revoked)
        revoked_session.is_revoked = True
        revoked_session.revoked_at = long_ago
        db_session.commit()

        deleted = AuthService(db_session).cleanup_expired_sessions()

        assert deleted == 2
        remaining = {str(s.id) for s in db_session.query(UserSession).all()}
        assert fresh["sessionId"] in remaining
        assert expired["sessionId"] not in remaining
        assert revoked["sessionId"] not in remaining


class TestDeviceInfo:
    @pytest.mark.parametrize("user_agent,expected", [
        (CHROME_ON_WINDOWS, {"device_type": "desktop", "browser": "Chrome", "os": "Windows"}),
        (SAFARI_ON_IPHONE, {"device_type": "mobile", "browser": "Mobile Safari", "os": "iOS"}),
        (None, {"device_type": "unknown", "browser": "unknown", "os": "unknown"}),
    ])
    def test_extract_device_info(self, user_agent, expected):
        assert extract_device_info(user_agent) == expected

    def test_edge_is_not_reported_as_chrome(self):
        user_agent = CHROME_ON_WINDOWS + " Edg/120.0.0.0"
        assert extract_device_info(user_agent)["browser"] == "Edge"

    def test_android_tablet_is_not_mobile(self):
        user_agent = (
            "Mozilla/5.0 (Linux; Android 13; SM-X700) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        )
        info = extract_device_info(user_agent)
        assert info["device_type"] == "tablet"
        assert info["os"] == "Android"

    def test_android_phone_is_mobile(self):
        user_agent = (
            "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
        )
        assert extract_device_info(user_agent)["device_type"] == "mobile"
