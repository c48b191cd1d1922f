"""Tests for the federation HTTP endpoints."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from federation import jwt_service
from federation.app import create_app
from federation.db import LocalUser
from federation.exchange import Principal


@pytest.fixture
def client(session_factory, http_client):
    app = create_app(session_factory=session_factory, http_client=http_client)
    return TestClient(app)


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["providers"] == ["github_auth"]


class TestCallback:
    def test_successful_login_returns_session_token(self, client):
        resp = client.get("/github_auth", params={"code": "abc"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["created"] is True
        assert data["user"]["identifier"] == "gh42"
        assert data["user"]["picture"] == "https://avatars.example.com/u/42"
        payload = jwt_service.decode(data["token"])
        assert payload["sub"] == data["user"]["id"]
        assert payload["appid"] == "root"

    def test_second_login_is_not_created(self, client):
        client.get("/github_auth", params={"code": "abc"})
        resp = client.get("/github_auth", params={"code": "def"})
        assert resp.json()["created"] is False

    def test_missing_code_is_unauthenticated(self, client):
        resp = client.get("/github_auth")
        assert resp.status_code == 401
        assert resp.json()["detail"]["kind"] == "no_attempt"

    def test_empty_profile_is_unauthenticated(self, client, fake_github):
        fake_github.profile_content_type = "text/plain"
        resp = client.get("/github_auth", params={"code": "abc"})
        assert resp.status_code == 401
        assert resp.json()["detail"]["kind"] == "empty_profile"

    def test_exchange_error_is_bad_gateway(self, client, fake_github):
        fake_github.token_body = {}
        resp = client.get("/github_auth", params={"code": "abc"})
        assert resp.status_code == 502
        assert resp.json()["detail"]["kind"] == "exchange_error"

    def test_inactive_account_is_forbidden(self, client, store):
        store.create(LocalUser(appid="root", identifier="gh42", name="Octo", password="x", active=False))
        resp = client.get("/github_auth", params={"code": "abc"})
        assert resp.status_code == 403
        assert resp.json()["detail"]["kind"] == "account_inactive"

    def test_store_failure_is_service_unavailable(self, client, fake_github):
        client.get("/github_auth", params={"code": "abc"})
        fake_github.profile_body["avatar_url"] = "https://avatars.example.com/u/42/new.png"

        db_down = OperationalError("UPDATE local_users", {}, Exception("disk I/O error"))
        with patch("sqlalchemy.orm.Session.commit", side_effect=db_down):
            resp = client.get("/github_auth", params={"code": "def"})

        assert resp.status_code == 503
        assert resp.json()["detail"]["kind"] == "store_error"

    def test_unknown_provider(self, client):
        resp = client.get("/myspace_auth", params={"code": "abc"})
        assert resp.status_code == 404


class TestUsersMe:
    def test_returns_current_user(self, client):
        token = client.get("/github_auth", params={"code": "abc"}).json()["token"]
        resp = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})

        assert resp.status_code == 200
        assert resp.json()["identifier"] == "gh42"
        assert resp.json()["email"] == "octo@example.com"

    def test_rejects_missing_token(self, client):
        assert client.get("/users/me").status_code == 401

    def test_rejects_invalid_token(self, client):
        resp = client.get("/users/me", headers={"Authorization": "Bearer garbage"})
        assert resp.status_code == 401

    def test_rejects_unknown_user(self, client):
        token = jwt_service.encode(Principal(user_id="ghost", appid="root", identifier="gh0", name="Ghost"))
        resp = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401
