"""HTTP tests for auth, users, tags, groups and the error envelope."""

import logging
from unittest.mock import patch

import pytest
from bson import ObjectId


class TestAuthRoutes:
    """/auth endpoints"""

    def test_login_and_profile(self, client, user):
        response = client.post("/auth/login", json={"email": "jane@example.com", "password": "password123"})
        tokens = response.get_json()

        assert response.status_code == 200
        profile = client.get("/auth/profile", headers={"Authorization": f"Bearer {tokens['access_token']}"})
        assert profile.get_json()["email"] == "jane@example.com"
        assert "passwordHash" not in profile.get_json()

    def test_bad_password_is_401(self, client, user):
        response = client.post("/auth/login", json={"email": "jane@example.com", "password": "nope"})

        assert response.status_code == 401
        assert response.get_json()["message"] == "Invalid email or password"

    def test_refresh(self, client, services, user):
        refresh_token = services.auth_service.login(user)["refresh_token"]

        response = client.post("/auth/refresh", json={"refresh_token": refresh_token})

        assert response.status_code == 200
        assert set(response.get_json()) == {"access_token", "refresh_token"}

    def test_refresh_rejects_access_token(self, client, services, user):
        access_token = services.auth_service.login(user)["access_token"]

        assert client.post("/auth/refresh", json={"refresh_token": access_token}).status_code == 401

    def test_refresh_token_cannot_call_api(self, client, services, user):
        refresh_token = services.auth_service.login(user)["refresh_token"]

        response = client.get("/auth/profile", headers={"Authorization": f"Bearer {refresh_token}"})

        assert response.status_code == 401


class TestErrorEnvelope:
    """Uniform error responses and correlation ids."""

    def test_missing_token(self, client):
        response = client.get("/contacts")
        body = response.get_json()

        assert response.status_code == 401
        assert body["statusCode"] == 401
        assert body["message"] == "Missing bearer token"
        assert body["correlationId"] == response.headers["X-Correlation-ID"]

    def test_invalid_token(self, client):
        response = client.get("/contacts", headers={"Authorization": "Bearer junk"})

        assert response.status_code == 401
        assert response.get_json()["message"] == "Invalid or expired token"

    def test_unknown_route(self, client):
        response = client.get("/nowhere")

        assert response.status_code == 404
        assert response.get_json()["statusCode"] == 404

    def test_unexpected_error_hides_details(self, app, client):
        def explode():
            raise RuntimeError("secret internals")

        app.add_url_rule("/explode", "explode", explode)

        response = client.get("/explode")
        body = response.get_json()

        assert response.status_code == 500
        assert body["message"] == "Internal server error"
        assert "secret" not in response.get_data(as_text=True)
        assert body["correlationId"]

    @pytest.mark.parametrize("method,path,status", [
        ("get", "/nowhere", 404),
        ("put", "/tags", 405),
    ])
    def test_routing_errors_are_logged(self, client, method, path, status):
        with patch("crm.errors.logger") as error_logger:
            response = getattr(client, method)(path)

        assert response.status_code == status
        level, message = error_logger.log.call_args.args[:2]
        assert level == logging.WARNING
        assert method.upper() in message
        assert path in message
        assert response.headers["X-Correlation-ID"] in message

    def test_api_errors_are_logged(self, client):
        with patch("crm.errors.logger") as error_logger:
            response = client.get("/contacts")

        level, message = error_logger.log.call_args.args[:2]
        assert level == logging.WARNING
        assert "GET" in message and "/contacts" in message
        assert response.headers["X-Correlation-ID"] in message

    def test_unexpected_errors_are_logged_with_stack(self, app, client):
        def explode():
            raise RuntimeError("secret internals")

        app.add_url_rule("/explode", "explode", explode)

        with patch("crm.errors.logger") as error_logger:
            response = client.get("/explode")

        level, message = error_logger.log.call_args.args[:2]
        assert level == logging.ERROR
        assert "/explode" in message
        assert response.headers["X-Correlation-ID"] in message
        assert error_logger.log.call_args.kwargs["exc_info"] is True

    def test_correlation_ids_differ_per_request(self, client):
        first = client.get("/nowhere").headers["X-Correlation-ID"]
        second = client.get("/nowhere").headers["X-Correlation-ID"]

        assert first != second


class TestUserRoutes:
    """/users endpoints are admin only."""

    def test_plain_user_is_403(self, client, auth_headers):
        assert client.get("/users", headers=auth_headers).status_code == 403

    def test_admin_creates_and_lists_users(self, client, admin_headers):
        response = client.post(
            "/users",
            json={"email": "new@example.com", "password": "pw", "firstName": "New"},
            headers=admin_headers,
        )
        created = response.get_json()

        assert response.status_code == 201
        assert created["role"] == "User"
        emails = [user["email"] for user in client.get("/users", headers=admin_headers).get_json()]
        assert "new@example.com" in emails
        assert client.get(f"/users/{created['id']}", headers=admin_headers).get_json()["firstName"] == "New"

    def test_admin_duplicate_email_is_400(self, client, admin_headers, user):
        response = client.post(
            "/users", json={"email": "jane@example.com", "password": "pw"}, headers=admin_headers
        )

        assert response.status_code == 400

    def test_unknown_user_is_404(self, client, admin_headers):
        assert client.get(f"/users/{ObjectId()}", headers=admin_headers).status_code == 404


class TestTagRoutes:
    """/tags endpoints"""

    def test_create_and_list(self, client, auth_headers, other_headers):
        response = client.post("/tags", json={"title": "VIP"}, headers=auth_headers)

        assert response.status_code == 201
        assert response.get_json()["lastApplied"] is None
        assert [tag["title"] for tag in client.get("/tags", headers=auth_headers).get_json()] == ["VIP"]
        assert client.get("/tags", headers=other_headers).get_json() == []

    def test_blank_title_is_400(self, client, auth_headers):
        assert client.post("/tags", json={"title": ""}, headers=auth_headers).status_code == 400

    def test_delete(self, client, auth_headers, other_headers):
        tag = client.post("/tags", json={"title": "VIP"}, headers=auth_headers).get_json()

        assert client.delete(f"/tags/{tag['id']}", headers=other_headers).status_code == 404
        assert client.delete(f"/tags/{tag['id']}", headers=auth_headers).status_code == 204
        assert client.get("/tags", headers=auth_headers).get_json() == []


class TestGroupRoutes:
    """/groups endpoints"""

    @pytest.fixture
    def tag_ids(self, services, user):
        return [tag.id for tag in services.tag_service.upsert_many(["A", "B"], user.id)]

    def test_create_and_fetch(self, client, auth_headers, tag_ids):
        response = client.post(
            "/groups", json={"title": "All", "isInclusive": False, "tags": tag_ids}, headers=auth_headers
        )
        group = response.get_json()

        assert response.status_code == 201
        assert group["isInclusive"] is False
        assert group["tags"] == tag_ids
        assert group["contactsCount"] == 0
        assert client.get(f"/groups/{group['id']}", headers=auth_headers).get_json()["title"] == "All"

    def test_groups_are_owner_scoped(self, client, auth_headers, other_headers, admin_headers):
        group = client.post("/groups", json={"title": "Mine"}, headers=auth_headers).get_json()

        assert client.get(f"/groups/{group['id']}", headers=other_headers).status_code == 404
        assert client.get("/groups", headers=other_headers).get_json() == []
        assert len(client.get("/groups", headers=admin_headers).get_json()) == 1

    def test_foreign_rule_tag_is_404(self, client, other_headers, tag_ids):
        response = client.post("/groups", json={"title": "Bad", "tags": tag_ids}, headers=other_headers)

        assert response.status_code == 404

    def test_delete(self, client, auth_headers):
        group = client.post("/groups", json={"title": "Gone"}, headers=auth_headers).get_json()

        assert client.delete(f"/groups/{group['id']}", headers=auth_headers).status_code == 204
        assert client.get(f"/groups/{group['id']}", headers=auth_headers).status_code == 404
