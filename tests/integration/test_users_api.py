"""
Integration tests for the user account endpoints.

Exercises signup, login, logout, profile read/update and account deletion
through the Flask test client.

Key SDET Concepts Demonstrated:
- Integration testing through the full HTTP request/response cycle
- Status-code assertions (200, 201, 400, 401)
- Parametrised tests for input validation
- Verifying side effects in the database and on the mocked email API
"""

from __future__ import annotations

import pytest
import requests
from sqlalchemy import select

from tests.helpers import DEFAULT_PASSWORD, auth_headers
from todo_app.models import Task, User, UserToken
from todo_app.notifications import CANCEL_SUBJECT, WELCOME_SUBJECT

pytestmark = pytest.mark.integration


def _signup_payload(**overrides) -> dict:
    """Build a valid signup body; tests override only what they exercise."""
    payload = {"name": "Regis", "email": "regis@example.com", "password": "MyPass777!"}
    payload.update(overrides)
    return payload


class TestSignup:
    """Tests for POST /users."""

    def test_signup_creates_user_and_returns_token(self, client, db_session):
        """Test that a valid signup persists the user and returns a usable token."""
        # Act
        response = client.post("/users", json=_signup_payload())

        # Assert
        assert response.status_code == 201
        body = response.get_json()
        assert body["user"]["name"] == "Regis"
        assert body["user"]["email"] == "regis@example.com"
        assert body["user"]["age"] == 0

        user = db_session.session.get(User, body["user"]["id"])
        assert user is not None
        assert user.password_hash != "MyPass777!"
        assert [entry.token for entry in user.tokens] == [body["token"]]

    def test_signup_sends_welcome_email(self, client, db_session, mail_api):
        client.post("/users", json=_signup_payload())

        mail_api.assert_called_once()
        assert mail_api.call_args.kwargs["json"]["subject"] == WELCOME_SUBJECT

    def test_signup_succeeds_when_email_provider_fails(self, client, db_session, mail_api):
        """Fire-and-forget: a provider outage must not fail the signup."""
        # Arrange
        mail_api.side_effect = requests.ConnectionError("provider down")

        # Act
        response = client.post("/users", json=_signup_payload())

        # Assert
        assert response.status_code == 201

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": {"foo": "bar"}},
            {"name": "   "},
            {"email": "invalid@"},
            {"password": "123"},
            {"password": "myInvalidPassword123"},
            {"age": -1},
            {"age": 10**30},
        ],
    )
    def test_signup_rejects_invalid_fields(self, client, db_session, overrides):
        # Act
        response = client.post("/users", json=_signup_payload(**overrides))

        # Assert
        assert response.status_code == 400
        assert "error" in response.get_json()
        assert db_session.session.scalars(select(User)).all() == []

    @pytest.mark.parametrize("missing", ["name", "email", "password"])
    def test_signup_requires_each_field(self, client, db_session, missing):
        payload = _signup_payload()
        del payload[missing]

        response = client.post("/users", json=payload)

        assert response.status_code == 400

    def test_signup_duplicate_email_returns_400(self, client, db_session, user_one):
        response = client.post("/users", json=_signup_payload(email="Mike@Example.com"))

        assert response.status_code == 400
        assert response.get_json() == {"error": "Email already exists"}

    def test_signup_rejects_non_json_body(self, client, db_session):
        response = client.post("/users", data="name=Regis")

        assert response.status_code == 400


class TestLogin:
    """Tests for POST /users/login."""

    def test_login_appends_new_token(self, client, db_session, user_one, user_one_token):
        """Test that login issues a second token and keeps the first one."""
        # Act
        response = client.post(
            "/users/login", json={"email": "mike@example.com", "password": DEFAULT_PASSWORD}
        )

        # Assert
        assert response.status_code == 200
        body = response.get_json()
        assert body["user"]["id"] == user_one.id
        db_session.session.expire_all()
        tokens = [entry.token for entry in db_session.session.get(User, user_one.id).tokens]
        assert tokens == [user_one_token, body["token"]]

    def test_login_is_case_insensitive_on_email(self, client, db_session, user_one):
        response = client.post(
            "/users/login", json={"email": "MIKE@example.com", "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200

    @pytest.mark.security
    def test_login_errors_are_identical_for_unknown_email_and_wrong_password(
        self, client, db_session, user_one
    ):
        """Test that login failures do not reveal which emails are registered."""
        # Act
        unknown = client.post(
            "/users/login", json={"email": "nobody@example.com", "password": DEFAULT_PASSWORD}
        )
        wrong = client.post(
            "/users/login", json={"email": "mike@example.com", "password": "wrongPass"}
        )

        # Assert
        assert unknown.status_code == wrong.status_code == 400
        assert unknown.get_json() == wrong.get_json() == {"error": "Unable to login"}

    def test_login_with_missing_fields_returns_generic_error(self, client, db_session):
        response = client.post("/users/login", json={})

        assert response.status_code == 400
        assert response.get_json() == {"error": "Unable to login"}


class TestLogout:
    """Tests for POST /users/logout and /users/logoutAll."""

    def test_logout_removes_only_current_token(
        self, client, db_session, auth_service, user_one, user_one_token
    ):
        # Arrange
        other_token = auth_service.issue_token(user_one)

        # Act
        response = client.post("/users/logout", headers=auth_headers(user_one_token))

        # Assert
        assert response.status_code == 200
        assert client.get("/users/me", headers=auth_headers(user_one_token)).status_code == 401
        assert client.get("/users/me", headers=auth_headers(other_token)).status_code == 200

    def test_logout_all_revokes_every_token(
        self, client, db_session, auth_service, user_one, user_one_token
    ):
        # Arrange
        other_token = auth_service.issue_token(user_one)

        # Act
        response = client.post("/users/logoutAll", headers=auth_headers(other_token))

        # Assert
        assert response.status_code == 200
        remaining = db_session.session.scalars(
            select(UserToken).where(UserToken.user_id == user_one.id)
        ).all()
        assert remaining == []
        assert client.get("/users/me", headers=auth_headers(user_one_token)).status_code == 401

    def test_logout_requires_authentication(self, client, db_session):
        assert client.post("/users/logout").status_code == 401
        assert client.post("/users/logoutAll").status_code == 401


class TestProfile:
    """Tests for GET/PATCH/DELETE /users/me."""

    def test_get_profile_returns_current_user(self, client, db_session, user_one, api_headers):
        response = client.get("/users/me", headers=api_headers)

        assert response.status_code == 200
        assert response.get_json()["email"] == "mike@example.com"

    def test_get_profile_requires_authentication(self, client, db_session):
        response = client.get("/users/me")

        assert response.status_code == 401
        assert response.get_json() == {"error": "Please authenticate."}

    def test_update_valid_fields(self, client, db_session, user_one, api_headers):
        # Act
        response = client.patch(
            "/users/me", json={"name": "Regis", "age": 33}, headers=api_headers
        )

        # Assert
        assert response.status_code == 200
        assert response.get_json()["name"] == "Regis"
        db_session.session.expire_all()
        user = db_session.session.get(User, user_one.id)
        assert user.name == "Regis"
        assert user.age == 33

    def test_update_password_allows_login_with_new_password(
        self, client, db_session, user_one, api_headers
    ):
        client.patch("/users/me", json={"password": "Brand-new-77"}, headers=api_headers)

        response = client.post(
            "/users/login", json={"email": "mike@example.com", "password": "Brand-new-77"}
        )

        assert response.status_code == 200

    @pytest.mark.parametrize(
        "payload",
        [
            {"location": "New York"},
            {"name": {"foo": "bar"}},
            {"email": "not-an-email"},
            {"password": "password123"},
            {"age": -3},
        ],
    )
    def test_update_rejects_invalid_fields(self, client, db_session, api_headers, payload):
        response = client.patch("/users/me", json=payload, headers=api_headers)

        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_update_to_taken_email_returns_400(
        self, client, db_session, user_two, api_headers
    ):
        response = client.patch(
            "/users/me", json={"email": "jess@example.com"}, headers=api_headers
        )

        assert response.status_code == 400
        assert response.get_json() == {"error": "Email already exists"}

    def test_update_requires_authentication(self, client, db_session):
        assert client.patch("/users/me", json={"name": "Joe Doe"}).status_code == 401

    def test_delete_account_removes_user_and_tasks(
        self, client, db_session, user_one, user_one_tasks, api_headers, mail_api
    ):
        """Test that deleting the account cascades to tasks and sends goodbye email."""
        # Arrange
        user_id = user_one.id

        # Act
        response = client.delete("/users/me", headers=api_headers)

        # Assert
        assert response.status_code == 200
        assert response.get_json()["id"] == user_id
        assert db_session.session.get(User, user_id) is None
        owned = db_session.session.scalars(select(Task).where(Task.owner == user_id)).all()
        assert owned == []
        assert mail_api.call_args.kwargs["json"]["subject"] == CANCEL_SUBJECT

    def test_delete_account_requires_authentication(self, client, db_session):
        assert client.delete("/users/me").status_code == 401
