"""GitHub OAuth apps."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from federation.errors import ExchangeError
from federation.providers.base import OAuthProvider, is_json_response

logger = logging.getLogger("github")

TOKEN_URL = "https://github.com/login/oauth/access_token"
PROFILE_URL = "https://api.github.com/user"
EMAILS_URL = PROFILE_URL + "/emails"


def iter_email_records(payload: Any) -> Iterator[dict[str, Any]]:
    if not isinstance(payload, list):
        return
    for record in payload:
        if isinstance(record, dict):
            yield record


class GitHubProvider(OAuthProvider):
    prefix = "gh"
    action = "github_auth"
    email_domain = "github.com"

    def exchange_token(self, code: str, redirect_uri: str, client_id: str, client_secret: str) -> str:
        resp = self._send(
            "POST",
            TOKEN_URL,
            data={
                "code": code,
                "redirect_uri": redirect_uri,
                "scope": "",
                "client_id": client_id,
                "client_secret": client_secret,
                "grant_type": "authorization_code",
            },
            headers={"Accept": "application/json"},
        )
        try:
            token = resp.json()
        except ValueError as e:
            logger.warning(f"Token endpoint returned non-JSON body (status {resp.status_code})")
            raise ExchangeError("github: unreadable token response") from e

        if not isinstance(token, dict) or not token.get("access_token"):
            error = token.get("error") if isinstance(token, dict) else None
            logger.warning(f"Token exchange failed: {error or 'no access_token'}")
            raise ExchangeError("github: token response has no access_token")
        return token["access_token"]

    def fetch_profile(self, access_token: str) -> dict[str, Any] | None:
        resp = self._send("GET", PROFILE_URL, headers=self._auth_headers(access_token))
        if not resp.content or not is_json_response(resp):
            logger.info(f"Profile response unusable (status {resp.status_code})")
            return None
        try:
            profile = resp.json()
        except ValueError as e:
            raise ExchangeError("github: unreadable profile response") from e
        return profile if isinstance(profile, dict) else None

    def fetch_verified_email(self, external_id: str, access_token: str) -> str:
        resp = self._send("GET", EMAILS_URL, headers=self._auth_headers(access_token))
        email = None
        if resp.content and is_json_response(resp):
            try:
                payload = resp.json()
            except ValueError:
                payload = None
            for record in iter_email_records(payload):
                if record.get("email"):
                    email = record["email"]
                if record.get("primary") is True:
                    break
        if not email:
            logger.info(f"No verified email for GitHub user {external_id}, synthesizing one")
            return self.synthesized_email(external_id)
        return email

    @staticmethod
    def _auth_headers(access_token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
