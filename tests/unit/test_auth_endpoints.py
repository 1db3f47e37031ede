"""Unit tests for auth API endpoints.

Tests /api/v1/auth/register, login, refresh-token, logout, profile and
update-password using FastAPI TestClient with mocked services.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from shram_setu.api.dependencies import get_current_account
from shram_setu.errors import (
    AccountMissingError,
    ConflictError,
    RefreshStaleError,
    TokenExpiredError,
    TokenMalformedError,
)
from shram_setu.models.auth import TokenPair
from shram_setu.services.refresh_store import InMemoryRefreshStore

AUTH = "/api/v1/auth"

REGISTER_BODY = {
    "first_name": "Asha",
    "last_name": "Patil",
    "email": "asha@example.com",
    "phone": "9876543210",
    "password": "secret123",
    "role": "worker",
    "address": "12 MG Road",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
    "dob": "1995-04-12",
    "skills": ["masonry"],
}


def _pair(suffix="1"):
    return TokenPair(
        access_token=f"access-{suffix}",
        refresh_token=f"refresh-{suffix}",
        expires_in=900,
    )


@pytest.fixture
def account(account_factory):
    return account_factory()


@pytest.fixture
def as_account(client, account):
    """Authenticate every request as ``account``."""
    client.app.dependency_overrides[get_current_account] = lambda: account
    return account


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------

class TestRegister:
    """Tests for POST /auth/register."""

    def test_creates_account_and_sets_cookie(self, client, account):
        with (
            patch("shram_setu.api.auth.AccountService") as MockAccountService,
            patch("shram_setu.api.auth.SessionService") as MockSessionService,
        ):
            MockAccountService.return_value.create_account = AsyncMock(return_value=account)
            MockSessionService.return_value.register = AsyncMock(return_value=_pair())

            response = client.post(f"{AUTH}/register", json=REGISTER_BODY)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Registration successful"
        assert body["data"]["access_token"] == "access-1"
        assert body["data"]["token_type"] == "bearer"
        assert body["data"]["user"]["email"] == "asha@example.com"
        assert "refresh_token" not in body["data"]
        assert response.cookies["refreshToken"] == "refresh-1"

    def test_duplicate_email(self, client):
        with (
            patch("shram_setu.api.auth.AccountService") as MockAccountService,
            patch("shram_setu.api.auth.SessionService"),
        ):
            MockAccountService.return_value.create_account = AsyncMock(
                side_effect=ConflictError("A user with this email already exists.")
            )

            response = client.post(f"{AUTH}/register", json=REGISTER_BODY)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "A user with this email already exists.",
        }

    def test_admin_role_rejected(self, client):
        response = client.post(f"{AUTH}/register", json={**REGISTER_BODY, "role": "admin"})

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert any(e.startswith("role:") for e in body["errors"])

    def test_invalid_phone(self, client):
        response = client.post(f"{AUTH}/register", json={**REGISTER_BODY, "phone": "12345"})

        assert response.status_code == 400
        assert "phone: Please provide a valid 10-digit Indian phone number" in response.json()["errors"]


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------

class TestLogin:
    """Tests for POST /auth/login."""

    def _login(self, client, account, password_ok=True, lookup=True):
        with (
            patch("shram_setu.api.auth.AccountService") as MockAccountService,
            patch("shram_setu.api.auth.AuthService") as MockAuthService,
            patch("shram_setu.api.auth.SessionService") as MockSessionService,
        ):
            MockAccountService.return_value.get_by_email = AsyncMock(
                return_value=(account, "$2b$12$hash") if lookup else None
            )
            MockAuthService.return_value.verify_password = MagicMock(return_value=password_ok)
            MockSessionService.return_value.login = AsyncMock(return_value=_pair())

            response = client.post(
                f"{AUTH}/login",
                json={"email": "asha@example.com", "password": "secret123"},
            )
        return response, MockSessionService.return_value.login

    def test_success(self, client, account):
        response, login = self._login(client, account)

        assert response.status_code == 200
        assert response.json()["data"]["user"]["id"] == str(account.id)
        assert response.cookies["refreshToken"] == "refresh-1"
        login.assert_awaited_once_with(account.id)

    def test_refresh_cookie_attributes(self, client, account):
        response, _ = self._login(client, account)

        cookie = response.headers["set-cookie"]
        assert "HttpOnly" in cookie
        assert "SameSite=strict" in cookie or "samesite=strict" in cookie.lower()
        assert "Path=/" in cookie
        assert "Max-Age=604800" in cookie

    def test_unknown_email(self, client, account):
        response, login = self._login(client, account, lookup=False)

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password."
        assert response.headers["www-authenticate"] == "Bearer"
        login.assert_not_awaited()

    def test_wrong_password(self, client, account):
        response, login = self._login(client, account, password_ok=False)

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or password."
        login.assert_not_awaited()

    def test_blocked_account(self, client, account_factory):
        response, login = self._login(client, account_factory(is_blocked=True))

        assert response.status_code == 403
        assert response.json()["message"] == "Your account has been blocked. Contact admin."
        login.assert_not_awaited()


# ---------------------------------------------------------------------------
# POST /auth/refresh-token
# ---------------------------------------------------------------------------

class TestRefreshToken:
    """Tests for POST /auth/refresh-token."""

    def test_rotates_cookie(self, client):
        client.cookies.set("refreshToken", "refresh-1")
        with patch("shram_setu.api.auth.SessionService") as MockSessionService:
            MockSessionService.return_value.refresh = AsyncMock(return_value=_pair("2"))

            response = client.post(f"{AUTH}/refresh-token")

        assert response.status_code == 200
        assert response.json()["data"]["access_token"] == "access-2"
        assert "user" not in response.json()["data"]
        assert response.cookies["refreshToken"] == "refresh-2"
        MockSessionService.return_value.refresh.assert_awaited_once_with("refresh-1")

    def test_missing_cookie(self, client):
        response = client.post(f"{AUTH}/refresh-token")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "No refresh token provided."}

    @pytest.mark.parametrize(
        "error",
        [RefreshStaleError(), TokenExpiredError(), TokenMalformedError(), AccountMissingError()],
    )
    def test_rejected_refresh_has_one_message(self, client, error):
        client.cookies.set("refreshToken", "refresh-1")
        with patch("shram_setu.api.auth.SessionService") as MockSessionService:
            MockSessionService.return_value.refresh = AsyncMock(side_effect=error)

            response = client.post(f"{AUTH}/refresh-token")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid refresh token. Please log in again."


# ---------------------------------------------------------------------------
# POST /auth/logout
# ---------------------------------------------------------------------------

class TestLogout:
    """Tests for POST /auth/logout."""

    def test_clears_slot_and_cookie(self, client, as_account):
        with patch("shram_setu.api.auth.SessionService") as MockSessionService:
            MockSessionService.return_value.logout = AsyncMock()

            response = client.post(f"{AUTH}/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logged out successfully"}
        assert "refreshToken=" in response.headers["set-cookie"]
        assert "Max-Age=0" in response.headers["set-cookie"]
        MockSessionService.return_value.logout.assert_awaited_once_with(as_account.id)

    def test_requires_authentication(self, client):
        response = client.post(f"{AUTH}/logout")

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized. Please log in."


# ---------------------------------------------------------------------------
# Access token handling
# ---------------------------------------------------------------------------

class TestBearerAuthentication:
    """Tests for the Bearer access token dependency."""

    def _profile_with(self, client, **authenticate):
        with patch("shram_setu.api.dependencies.SessionService") as MockSessionService:
            MockSessionService.return_value.authenticate = AsyncMock(**authenticate)
            return client.get(
                f"{AUTH}/profile",
                headers={"Authorization": "Bearer some-access-token"},
            )

    def test_valid_token(self, client, account):
        response = self._profile_with(client, return_value=account)

        assert response.status_code == 200
        assert response.json()["data"]["user"]["id"] == str(account.id)

    def test_expired_token_asks_for_refresh(self, client):
        response = self._profile_with(client, side_effect=TokenExpiredError())

        assert response.status_code == 401
        assert response.json()["message"] == "Token expired. Please refresh your token."

    def test_malformed_token(self, client):
        response = self._profile_with(client, side_effect=TokenMalformedError())

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized. Invalid token."

    def test_account_gone(self, client):
        response = self._profile_with(client, side_effect=AccountMissingError())

        assert response.status_code == 401
        assert response.json()["message"] == "User no longer exists."


# ---------------------------------------------------------------------------
# Profile and password
# ---------------------------------------------------------------------------

class TestProfile:
    """Tests for GET/PUT /auth/profile."""

    def test_get_profile(self, client, as_account):
        response = client.get(f"{AUTH}/profile")

        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["email"] == as_account.email
        assert user["worker_details"]["skills"] == ["masonry"]
        assert "password_hash" not in user
        assert "refresh_token" not in user

    def test_update_profile(self, client, as_account, account_factory):
        updated = account_factory(account_id=as_account.id)
        with patch("shram_setu.api.auth.AccountService") as MockAccountService:
            MockAccountService.return_value.update_profile = AsyncMock(return_value=updated)

            response = client.put(f"{AUTH}/profile", json={"city": "Mumbai"})

        assert response.status_code == 200
        assert response.json()["message"] == "Profile updated"
        _, request = MockAccountService.return_value.update_profile.call_args[0]
        assert request.city == "Mumbai"

    def test_update_profile_invalid_pincode(self, client, as_account):
        response = client.put(f"{AUTH}/profile", json={"pincode": "12"})

        assert response.status_code == 400
        assert "pincode: Please provide a valid 6-digit pincode" in response.json()["errors"]


class TestUpdatePassword:
    """Tests for PUT /auth/update-password."""

    def test_success_reissues_pair(self, client, as_account):
        with (
            patch("shram_setu.api.auth.AccountService") as MockAccountService,
            patch("shram_setu.api.auth.AuthService") as MockAuthService,
            patch("shram_setu.api.auth.SessionService") as MockSessionService,
        ):
            accounts = MockAccountService.return_value
            accounts.get_password_hash = AsyncMock(return_value="$2b$12$hash")
            accounts.update_password = AsyncMock()
            MockAuthService.return_value.verify_password = MagicMock(return_value=True)
            MockSessionService.return_value.login = AsyncMock(return_value=_pair("3"))

            response = client.put(
                f"{AUTH}/update-password",
                json={"current_password": "secret123", "new_password": "newsecret4"},
            )

        assert response.status_code == 200
        assert response.json()["data"]["access_token"] == "access-3"
        assert response.cookies["refreshToken"] == "refresh-3"
        accounts.update_password.assert_awaited_once_with(as_account.id, "newsecret4")

    def test_wrong_current_password(self, client, as_account):
        with (
            patch("shram_setu.api.auth.AccountService") as MockAccountService,
            patch("shram_setu.api.auth.AuthService") as MockAuthService,
            patch("shram_setu.api.auth.SessionService") as MockSessionService,
        ):
            MockAccountService.return_value.get_password_hash = AsyncMock(return_value="$2b$12$hash")
            MockAccountService.return_value.update_password = AsyncMock()
            MockAuthService.return_value.verify_password = MagicMock(return_value=False)

            response = client.put(
                f"{AUTH}/update-password",
                json={"current_password": "wrong1", "new_password": "newsecret4"},
            )

        assert response.status_code == 400
        assert response.json()["message"] == "Current password is incorrect."
        MockAccountService.return_value.update_password.assert_not_awaited()
        MockSessionService.return_value.login.assert_not_called()

    def test_new_password_needs_digit(self, client, as_account):
        response = client.put(
            f"{AUTH}/update-password",
            json={"current_password": "secret123", "new_password": "nodigits"},
        )

        assert response.status_code == 400
        assert "new_password: Password must contain at least one number" in response.json()["errors"]


# ---------------------------------------------------------------------------
# Full cookie flow against the in-memory store
# ---------------------------------------------------------------------------

class TestSessionFlow:
    """Login, refresh, replay and logout through the real session service."""

    def test_refresh_token_is_single_use(self, client, account):
        store = InMemoryRefreshStore()
        accounts = MagicMock()
        accounts.get_by_id = AsyncMock(return_value=account)
        accounts.get_by_email = AsyncMock(return_value=(account, "$2b$12$hash"))

        with (
            patch("shram_setu.services.session_service.get_refresh_store", return_value=store),
            patch("shram_setu.services.session_service.AccountService", return_value=accounts),
            patch("shram_setu.api.auth.AccountService", return_value=accounts),
            patch("shram_setu.api.auth.AuthService") as MockAuthService,
        ):
            MockAuthService.return_value.verify_password = MagicMock(return_value=True)

            login = client.post(
                f"{AUTH}/login",
                json={"email": account.email, "password": "secret123"},
            )
            first_refresh = login.cookies["refreshToken"]

            refreshed = client.post(f"{AUTH}/refresh-token")
            assert refreshed.status_code == 200
            assert refreshed.cookies["refreshToken"] != first_refresh

            client.cookies.clear()
            client.cookies.set("refreshToken", first_refresh)
            replay = client.post(f"{AUTH}/refresh-token")
            assert replay.status_code == 401

            access_token = login.json()["data"]["access_token"]
            headers = {"Authorization": f"Bearer {access_token}"}
            logout = client.post(f"{AUTH}/logout", headers=headers)
            assert logout.status_code == 200

            # access tokens survive logout until they expire
            profile = client.get(f"{AUTH}/profile", headers=headers)
            assert profile.status_code == 200
