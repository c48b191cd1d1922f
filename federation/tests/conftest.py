"""Shared fixtures: in-memory database and a fake GitHub REST surface."""

import json

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from federation.db import Base
from federation.providers.github import GitHubProvider
from federation.store import AppResolver, UserStore


class FakeGitHub:
    """Scriptable stand-in for github.com and api.github.com."""

    def __init__(self):
        self.token_body = {"access_token": "tok1", "token_type": "bearer"}
        self.profile_body = {
            "id": 42,
            "email": "octo@example.com",
            "name": "Octo Cat",
            "avatar_url": "https://avatars.example.com/u/42?v=4",
        }
        self.profile_content_type = "application/json; charset=utf-8"
        self.emails_body = []
        self.emails_status = 200
        self.requests: list[httpx.Request] = []
        self.fail_with: Exception | None = None

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def _json(self, body, status_code=200, content_type="application/json; charset=utf-8"):
        content = body if isinstance(body, bytes) else json.dumps(body).encode()
        return httpx.Response(status_code, content=content, headers={"Content-Type": content_type})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if request.url.path == "/login/oauth/access_token":
            return self._json(self.token_body)
        if request.url.path == "/user":
            if self.profile_body is None:
                return httpx.Response(200, content=b"", headers={"Content-Type": self.profile_content_type})
            return self._json(self.profile_body, content_type=self.profile_content_type)
        if request.url.path == "/user/emails":
            return self._json(self.emails_body, status_code=self.emails_status)
        return httpx.Response(404)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return UserStore(session_factory)


@pytest.fixture
def apps(session_factory):
    return AppResolver(session_factory)


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def http_client(fake_github):
    client = httpx.Client(transport=httpx.MockTransport(fake_github.handler))
    yield client
    client.close()


@pytest.fixture
def github(http_client):
    return GitHubProvider(http_client)
