"""
Authentication tests.

Verifies:
- Login issues a token that decodes to the user's identity and role
- Token lifetime is exactly the configured horizon
- Unknown email, wrong password and inactive accounts are indistinguishable
- Expired, tampered and foreign-signed tokens are rejected with 401
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from fieldvisit.extensions import db
from fieldvisit.models import User
from fieldvisit.services import token_service

from conftest import PASSWORD


def _login(client, email, password):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


class TestLogin:

    @pytest.mark.parametrize("role_fixture", ["admin", "manager", "employee"])
    def test_token_decodes_to_login_identity(self, app, client, request, role_fixture):
        user = request.getfixturevalue(role_fixture)

        resp = _login(client, user.email, PASSWORD)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"] == {
            "id": user.id,
            "name": user.full_name,
            "email": user.email,
            "phone": user.phone,
            "role": role_fixture,
        }

        claims = token_service.decode_token(body["token"])
        assert claims.user_id == user.id
        assert claims.role.value == role_fixture
        assert claims.name == user.full_name

    def test_token_expires_exactly_at_horizon(self, app, client, employee):
        resp = _login(client, employee.email, PASSWORD)
        token = resp.get_json()["token"]

        raw = jwt.decode(token, app.config["JWT_SECRET"], algorithms=["HS256"])
        assert raw["exp"] - raw["iat"] == 12 * 3600
        assert raw["sub"] == str(employee.id)

        claims = token_service.decode_token(token)
        assert claims.expires_at - claims.issued_at == timedelta(hours=12)

    def test_email_lookup_is_case_insensitive(self, client, employee):
        resp = _login(client, employee.email.upper(), PASSWORD)
        assert resp.status_code == 200

    def test_response_never_exposes_password_hash(self, client, employee):
        resp = _login(client, employee.email, PASSWORD)
        assert "password_hash" not in resp.get_data(as_text=True)

    def test_login_stamps_last_login(self, client, employee):
        assert employee.last_login_at is None
        _login(client, employee.email, PASSWORD)
        assert db.session.get(User, employee.id).last_login_at is not None


class TestLoginFailures:

    def test_wrong_password_and_unknown_email_are_indistinguishable(self, client, employee):
        wrong_password = _login(client, employee.email, "WrongPass999")
        unknown_email = _login(client, "nobody@fieldvisit.test", PASSWORD)

        assert wrong_password.status_code == 401
        assert unknown_email.status_code == 401
        assert wrong_password.get_json() == unknown_email.get_json()
        assert wrong_password.get_json()["error"] == "invalid_credentials"

    def test_inactive_user_cannot_login(self, client, user_factory):
        user = user_factory(full_name="Gone", email="gone@fieldvisit.test", role="employee", is_active=False)
        resp = _login(client, user.email, PASSWORD)
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "invalid_credentials"

    def test_no_fallback_password(self, client, employee):
        resp = _login(client, employee.email, "123456")
        assert resp.status_code == 401

    @pytest.mark.parametrize("payload", [{}, {"email": "employee@fieldvisit.test"}, {"password": PASSWORD}])
    def test_missing_fields(self, client, employee, payload):
        resp = client.post('/api/auth/login', json=payload)
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "invalid_credentials"


class TestBearerToken:

    def test_me_returns_identity(self, client, employee, employee_headers):
        resp = client.get('/api/auth/me', headers=employee_headers)
        assert resp.status_code == 200
        user = resp.get_json()["user"]
        assert user["id"] == employee.id
        assert user["role"] == "employee"

    def test_missing_header(self, client):
        resp = client.get('/api/auth/me')
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "unauthenticated"

    def test_non_bearer_scheme(self, client):
        resp = client.get('/api/auth/me', headers={'Authorization': 'Basic abc'})
        assert resp.status_code == 401

    def test_expired_token(self, client, employee):
        issued = datetime.now(timezone.utc) - timedelta(hours=13)
        token, expires_at = token_service.issue_token(employee, now=issued)
        assert expires_at < datetime.now(timezone.utc)

        resp = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
        assert resp.status_code == 401

    def test_token_signed_with_other_secret(self, client, employee):
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"sub": str(employee.id), "role": "admin", "name": "x", "iat": now, "exp": now + 3600},
            "not-the-secret",
            algorithm="HS256",
        )
        resp = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
        assert resp.status_code == 401

    def test_tampered_token(self, client, employee_headers):
        header = employee_headers['Authorization'] + "x"
        resp = client.get('/api/auth/me', headers={'Authorization': header})
        assert resp.status_code == 401

    def test_unknown_role_claim_rejected(self, app, client, employee):
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"sub": str(employee.id), "role": "superuser", "name": "x", "iat": now, "exp": now + 3600},
            app.config["JWT_SECRET"],
            algorithm="HS256",
        )
        resp = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
        assert resp.status_code == 401
