"""
Integration tests for signup, verification, login, refresh, logout and
password reset
"""
import hashlib
import inspect
from datetime import datetime, timedelta

import pytest
from fastapi import status

from w3pets.api.routes import auth as auth_routes
from w3pets.auth.jwt_manager import TokenKind, verify_token
from w3pets.database.models import Account, RefreshToken


SIGNUP = {"email": "a@x.com", "username": "ada", "password": "Secret123!", "fullName": "Ada Lovelace"}


def _refresh(client, token):
    client.cookies.clear()
    client.cookies.set("refreshToken", token)
    return client.post("/api/auth/refresh-token")


class TestSignupAndVerification:
    """Accounts only exist once the emailed link is opened"""

    def test_signup_creates_pending_record_but_no_account(self, client, db_session, email_sender):
        response = client.post("/api/auth/signup", json=SIGNUP)

        assert response.status_code == status.HTTP_201_CREATED
        assert db_session.query(Account).count() == 0

        assert len(email_sender.messages) == 1
        message = email_sender.messages[0]
        assert message["to"] == "a@x.com"
        assert email_sender.last_link().startswith("http://frontend.test/verify-email/")

    def test_signup_duplicate_email(self, client, customer):
        response = client.post("/api/auth/signup", json=dict(SIGNUP, email=customer.email))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "User already exists"

    def test_signup_duplicate_username(self, client, db_session, customer, email_sender):
        response = client.post("/api/auth/signup", json=dict(SIGNUP, username=customer.username))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "User already exists"
        assert email_sender.messages == []

    def test_signup_requires_username(self, client, email_sender):
        body = {k: v for k, v in SIGNUP.items() if k != "username"}

        response = client.post("/api/auth/signup", json=body)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Missing required field: username"
        assert email_sender.messages == []

    def test_username_taken_before_verification(self, client, db_session, account_factory, email_sender):
        client.post("/api/auth/signup", json=SIGNUP)
        token = email_sender.last_token()
        account_factory("someone-else@example.com", username="ada")

        response = client.get(f"/api/auth/verify-email/{token}")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "User already exists"
        assert db_session.query(Account).filter_by(email="a@x.com").count() == 0

    def test_signup_invalid_email(self, client):
        response = client.post("/api/auth/signup", json=dict(SIGNUP, email="not-an-email"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "email" in response.json()["message"]

    def test_verify_creates_account_and_session(self, client, db_session, email_sender):
        client.post("/api/auth/signup", json=dict(SIGNUP, redirectUrl="/welcome"))
        token = email_sender.last_token()

        response = client.get(f"/api/auth/verify-email/{token}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["user"]["email"] == "a@x.com"
        assert data["user"]["username"] == "ada"
        assert data["user"]["role"] == "customer"
        assert data["user"]["isVerified"] is True
        assert data["redirectUrl"] == "/welcome"
        assert verify_token(data["accessToken"], TokenKind.ACCESS)["email"] == "a@x.com"
        assert "refreshToken" in response.cookies

        account = db_session.query(Account).filter_by(email="a@x.com").one()
        assert account.full_name == "Ada Lovelace"
        assert account.username == "ada"
        assert account.password_changed_at is not None
        assert db_session.query(RefreshToken).filter_by(account_id=account.id).count() == 1

    def test_verify_link_works_once(self, client, email_sender):
        client.post("/api/auth/signup", json=SIGNUP)
        token = email_sender.last_token()

        assert client.get(f"/api/auth/verify-email/{token}").status_code == status.HTTP_200_OK
        client.cookies.clear()
        response = client.get(f"/api/auth/verify-email/{token}")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_verify_unknown_token(self, client, db_session):
        response = client.get("/api/auth/verify-email/not-a-token")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Invalid or expired verification link"
        assert db_session.query(Account).count() == 0

    def test_verify_expired_record(self, client, db_session, cache, email_sender):
        client.post("/api/auth/signup", json=SIGNUP)
        token = email_sender.last_token()

        key = hashlib.sha256(token.encode()).hexdigest()
        record = cache.get("pending_signup", key)
        record["created_at"] = (datetime.utcnow() - timedelta(hours=25)).isoformat()
        cache.set("pending_signup", key, record, ttl=60)

        response = client.get(f"/api/auth/verify-email/{token}")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Verification link has expired"
        assert db_session.query(Account).count() == 0

    def test_email_failure_is_server_error(self, client, email_sender, monkeypatch):
        from w3pets.utils.exceptions import EmailDeliveryError

        def fail(*args, **kwargs):
            raise EmailDeliveryError("Failed to send email", recipient="a@x.com")

        monkeypatch.setattr(email_sender, "send", fail)

        response = client.post("/api/auth/signup", json=SIGNUP)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"message": "Failed to send email"}


class TestLogin:
    """Password login"""

    def test_login_success(self, client, customer):
        response = client.post("/api/auth/login", json={"email": customer.email, "password": "Secret123!"})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Login successful"
        assert verify_token(data["accessToken"], TokenKind.ACCESS)["id"] == customer.id
        assert data["user"]["id"] == customer.id
        assert "refreshToken" in response.cookies

        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=strict" in set_cookie
        assert "max-age=604800" in set_cookie

    def test_login_wrong_password(self, client, customer):
        response = client.post("/api/auth/login", json={"email": customer.email, "password": "Wrong123!"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Invalid email or password"

    def test_login_unknown_email(self, client):
        response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "Secret123!"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.parametrize("body", [{}, {"email": "a@x.com"}, {"password": "Secret123!"}, {"email": "", "password": ""}])
    def test_login_missing_fields(self, client, body):
        response = client.post("/api/auth/login", json=body)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Email and password are required"

    def test_error_detail_hidden_outside_development(self, client):
        response = client.post("/api/auth/login", json={})

        assert "error" not in response.json()


class TestRefreshAndLogout:
    """Cookie based session renewal"""

    def test_refresh_rotates_token(self, client, customer):
        login = client.post("/api/auth/login", json={"email": customer.email, "password": "Secret123!"})
        first = login.cookies["refreshToken"]

        response = _refresh(client, first)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert verify_token(data["accessToken"], TokenKind.ACCESS)["id"] == customer.id
        assert data["user"]["email"] == customer.email
        second = response.cookies["refreshToken"]
        assert second != first

        # The rotated-out token no longer works
        assert _refresh(client, first).status_code == status.HTTP_401_UNAUTHORIZED
        assert _refresh(client, second).status_code == status.HTTP_200_OK

    def test_second_login_invalidates_first_refresh_token(self, client, customer):
        credentials = {"email": customer.email, "password": "Secret123!"}
        first = client.post("/api/auth/login", json=credentials).cookies["refreshToken"]
        second = client.post("/api/auth/login", json=credentials).cookies["refreshToken"]

        response = _refresh(client, first)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Refresh token not found or does not match"
        assert _refresh(client, second).status_code == status.HTTP_200_OK

    def test_refresh_without_cookie(self, client):
        response = client.post("/api/auth/refresh-token")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "No refresh token provided"

    def test_refresh_with_garbage(self, client):
        assert _refresh(client, "garbage").status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_revokes_refresh_token(self, client, db_session, customer):
        login = client.post("/api/auth/login", json={"email": customer.email, "password": "Secret123!"})
        refresh_token = login.cookies["refreshToken"]
        headers = {"Authorization": f"Bearer {login.json()['accessToken']}"}

        response = client.post("/api/auth/logout", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert db_session.query(RefreshToken).count() == 0
        assert _refresh(client, refresh_token).status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_requires_authentication(self, client):
        assert client.post("/api/auth/logout").status_code == status.HTTP_401_UNAUTHORIZED


class TestPasswordReset:
    """Forgot / reset password"""

    def test_forgot_password_same_answer_for_unknown_email(self, client, customer, email_sender):
        known = client.post("/api/auth/forgot-password", json={"email": customer.email})
        unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

        assert known.status_code == unknown.status_code == status.HTTP_200_OK
        assert known.json() == unknown.json()
        assert len(email_sender.messages) == 1
        assert email_sender.last_link().startswith("http://frontend.test/forgot_reset/")

    def test_reset_token_works_once(self, client, customer, email_sender):
        client.post("/api/auth/forgot-password", json={"email": customer.email})
        token = email_sender.last_token()

        first = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "Changed456!"})
        second = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "Other789!"})

        assert first.status_code == status.HTTP_200_OK
        assert verify_token(first.json()["accessToken"], TokenKind.ACCESS)["id"] == customer.id
        assert "refreshToken" in first.cookies
        assert second.status_code == status.HTTP_400_BAD_REQUEST

        old = client.post("/api/auth/login", json={"email": customer.email, "password": "Secret123!"})
        new = client.post("/api/auth/login", json={"email": customer.email, "password": "Changed456!"})
        assert old.status_code == status.HTTP_401_UNAUTHORIZED
        assert new.status_code == status.HTTP_200_OK

    def test_reset_rejects_verification_token(self, client, email_sender):
        client.post("/api/auth/signup", json=SIGNUP)
        token = email_sender.last_token()

        response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "Changed456!"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Invalid or expired reset link"


class TestEndToEnd:
    """Full journey with a@x.com / Secret123!"""

    def test_signup_verify_login_refresh(self, client, db_session, email_sender):
        assert client.post("/api/auth/signup", json=SIGNUP).status_code == status.HTTP_201_CREATED
        assert db_session.query(Account).count() == 0

        verified = client.get(f"/api/auth/verify-email/{email_sender.last_token()}")
        assert verified.status_code == status.HTTP_200_OK
        client.cookies.clear()

        login = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Secret123!"})
        assert login.status_code == status.HTTP_200_OK
        access = login.json()["accessToken"]

        me = client.get("/api/users/me", headers={"Authorization": f"Bearer {access}"})
        assert me.status_code == status.HTTP_200_OK
        assert me.json()["user"]["email"] == "a@x.com"

        refreshed = _refresh(client, login.cookies["refreshToken"])
        assert refreshed.status_code == status.HTTP_200_OK
        assert refreshed.json()["user"]["email"] == "a@x.com"


class TestEmailSendingHandlers:
    """SMTP calls block, so these handlers must not run on the event loop"""

    @pytest.mark.parametrize("handler", [auth_routes.signup, auth_routes.forgot_password])
    def test_handler_is_synchronous(self, handler):
        assert not inspect.iscoroutinefunction(handler)
