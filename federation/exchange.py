"""
Grant exchange: authorization code -> provider token -> profile -> local principal.

One ExchangeOrchestrator is shared by all requests; per-exchange state
lives on the Exchange record so concurrent requests never interfere.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel

from federation.config import APPID_PARAM, ROOT_APP_ID
from federation.db import LocalUser
from federation.errors import AccountInactive, AuthenticationFailure, ExchangeError
from federation.normalize import is_blank
from federation.providers.base import OAuthProvider
from federation.reconcile import resolve
from federation.store import AppResolver, UserStore

logger = logging.getLogger("federation")


class ExchangeState(str, Enum):
    IDLE = "idle"
    AWAITING_CODE = "awaiting_code"
    TOKEN_EXCHANGED = "token_exchanged"
    PROFILE_FETCHED = "profile_fetched"
    RECONCILED = "reconciled"
    GATED = "gated"
    DONE = "done"
    FAILED = "failed"


class Outcome(str, Enum):
    AUTHENTICATED = "authenticated"
    NO_ATTEMPT = "no_attempt"  # blank or missing code, or not our route
    EMPTY_PROFILE = "empty_profile"  # provider gave no usable identity


class Grant(BaseModel):
    code: str
    redirect_uri: str
    appid: Optional[str] = None


class Principal(BaseModel):
    """Authenticated-session view of an active local user."""

    user_id: str
    appid: str
    identifier: str
    name: str
    email: Optional[str] = None
    picture: Optional[str] = None

    @classmethod
    def from_user(cls, user: LocalUser) -> "Principal":
        return cls(
            user_id=user.id,
            appid=user.appid,
            identifier=user.identifier,
            name=user.name,
            email=user.email,
            picture=user.picture,
        )


class ExchangeResult(BaseModel):
    outcome: Outcome
    state: ExchangeState
    principal: Optional[Principal] = None
    created: bool = False

    @property
    def authenticated(self) -> bool:
        return self.outcome == Outcome.AUTHENTICATED


class Exchange:
    """State of a single exchange; every transition is logged."""

    def __init__(self, provider: str):
        self.provider = provider
        self.state = ExchangeState.IDLE
        self.identifier: str | None = None

    def advance(self, state: ExchangeState) -> None:
        logger.debug(f"[{self.provider}] {self.state.value} -> {state.value}")
        self.state = state

    def finish(self, outcome: Outcome, principal: Principal | None = None, created: bool = False) -> ExchangeResult:
        if outcome != Outcome.AUTHENTICATED:
            self.advance(ExchangeState.FAILED)
        return ExchangeResult(outcome=outcome, state=self.state, principal=principal, created=created)


class ExchangeOrchestrator:
    def __init__(self, provider: OAuthProvider, store: UserStore, apps: AppResolver):
        self.provider = provider
        self.store = store
        self.apps = apps

    def matches(self, request_url: str) -> bool:
        return urlsplit(request_url).path.endswith(self.provider.action)

    def attempt(self, request_url: str, params: Mapping[str, str]) -> ExchangeResult:
        """Attempt an exchange for an inbound callback request.

        ``request_url`` is the URL actually invoked (its query string is
        ignored) and ``params`` its query parameters. Returns a
        NO_ATTEMPT result for other routes or a blank code.
        """
        if not self.matches(request_url):
            return ExchangeResult(outcome=Outcome.NO_ATTEMPT, state=ExchangeState.IDLE)

        appid = params.get(APPID_PARAM) or None
        parts = urlsplit(request_url)
        redirect_uri = f"{parts.scheme}://{parts.netloc}{parts.path}"
        if appid is not None:
            redirect_uri += f"?{APPID_PARAM}={appid}"

        return self.exchange(Grant(code=params.get("code") or "", redirect_uri=redirect_uri, appid=appid))

    def exchange(self, grant: Grant) -> ExchangeResult:
        """Run the exchange state machine for one grant.

        Raises ExchangeError, ProvisioningError, StoreError or AccountInactive; blank
        codes and unusable profiles are returned as unauthenticated results.
        """
        ex = Exchange(self.provider.action)
        ex.advance(ExchangeState.AWAITING_CODE)
        if is_blank(grant.code):
            logger.info(f"[{self.provider.action}] No authorization code, skipping")
            return ex.finish(Outcome.NO_ATTEMPT)

        try:
            return self._run(ex, grant)
        except AuthenticationFailure as e:
            ex.advance(ExchangeState.FAILED)
            logger.warning(
                f"[{self.provider.action}] Exchange failed ({e.kind.value}): {e}",
                extra={"appid": grant.appid or ROOT_APP_ID, "identifier": ex.identifier},
            )
            raise

    def _run(self, ex: Exchange, grant: Grant) -> ExchangeResult:
        app = self.apps.lookup(grant.appid)
        if app is None:
            raise ExchangeError(f"Unknown app: {grant.appid}")
        client_id, client_secret = self.apps.oauth_credentials(app, self.provider.prefix)

        access_token = self.provider.exchange_token(grant.code, grant.redirect_uri, client_id, client_secret)
        ex.advance(ExchangeState.TOKEN_EXCHANGED)

        raw = self.provider.fetch_profile(access_token)
        identity = self.provider.normalize(raw, access_token)
        if identity is None:
            logger.info(f"[{self.provider.action}] Provider returned no usable identity", extra={"appid": app.id})
            return ex.finish(Outcome.EMPTY_PROFILE)
        ex.identifier = identity.identifier
        ex.advance(ExchangeState.PROFILE_FETCHED)

        user, created = resolve(self.store, app.id, identity)
        ex.advance(ExchangeState.RECONCILED)

        ex.advance(ExchangeState.GATED)
        if not user.active:
            raise AccountInactive("Account is disabled.")

        ex.advance(ExchangeState.DONE)
        logger.info(
            f"[{self.provider.action}] Authenticated ({'new' if created else 'existing'} user)",
            extra={"appid": app.id, "identifier": user.identifier},
        )
        return ex.finish(Outcome.AUTHENTICATED, principal=Principal.from_user(user), created=created)
