"""Interface every identity provider implements."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from federation.errors import ExchangeError
from federation.http_client import get_http_client
from federation.normalize import NormalizedIdentity, normalize_profile

logger = logging.getLogger("federation")


def is_json_response(response: httpx.Response) -> bool:
    ctype = response.headers.get("content-type", "")
    media_type = ctype.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class OAuthProvider(ABC):
    """One external identity provider's REST surface.

    ``prefix`` namespaces local identifiers, ``action`` is the callback
    route suffix and ``email_domain`` is used to synthesize an address
    when the provider exposes none.
    """

    prefix: str
    action: str
    email_domain: str

    def __init__(self, client: httpx.Client | None = None):
        self._client = client

    @property
    def client(self) -> httpx.Client:
        return self._client or get_http_client()

    @abstractmethod
    def exchange_token(self, code: str, redirect_uri: str, client_id: str, client_secret: str) -> str:
        """Trade an authorization code for an access token or raise ExchangeError."""

    @abstractmethod
    def fetch_profile(self, access_token: str) -> dict[str, Any] | None:
        """Return the raw profile, or None when the provider gave nothing usable."""

    @abstractmethod
    def fetch_verified_email(self, external_id: str, access_token: str) -> str:
        """Return the account's primary email, degrading to a synthesized one."""

    def normalize(self, raw: dict[str, Any] | None, access_token: str) -> NormalizedIdentity | None:
        return normalize_profile(
            raw,
            self.prefix,
            self.email_domain,
            lambda external_id: self.fetch_verified_email(external_id, access_token),
        )

    def synthesized_email(self, external_id: str) -> str:
        return f"{external_id}@{self.email_domain}"

    def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"[{self.action}] {method} {url} timed out")
            raise ExchangeError(f"{self.action}: request to {url} timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"[{self.action}] {method} {url} failed: {e}")
            raise ExchangeError(f"{self.action}: request to {url} failed") from e
