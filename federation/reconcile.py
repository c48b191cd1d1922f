"""Map a normalized identity onto exactly one local user per tenant."""

from __future__ import annotations

import logging
import secrets

from federation.db import LocalUser
from federation.errors import DuplicateIdentifierError, ProvisioningError
from federation.normalize import NormalizedIdentity, is_blank
from federation.store import UserStore

logger = logging.getLogger("federation")


def generate_security_token() -> str:
    return secrets.token_urlsafe(32)


def resolve(store: UserStore, appid: str, identity: NormalizedIdentity) -> tuple[LocalUser, bool]:
    """Find or create the local user for ``identity`` in tenant ``appid``.

    Returns ``(user, created)``. An existing user only ever has its
    picture and email refreshed, and only when they changed. Raises
    ProvisioningError when the store cannot create a new user.
    """
    identifier = identity.identifier
    log_extra = {"appid": appid, "identifier": identifier}

    user = store.find_by_identifier(appid, identifier)
    if user is None:
        user = LocalUser(
            appid=appid,
            identifier=identifier,
            active=True,
            email=identity.synthesized_email if is_blank(identity.email) else identity.email,
            name=identity.display_name,
            password=generate_security_token(),
            picture=identity.picture_url,
        )
        try:
            user_id = store.create(user)
        except DuplicateIdentifierError:
            # Lost a concurrent first-login race; the winner's row is authoritative
            logger.info("Concurrent create detected, re-reading user", extra=log_extra)
            user = store.find_by_identifier(appid, identifier)
            if user is None:
                raise ProvisioningError("Authentication failed: cannot create new user.")
            _refresh(store, user, identity)
            return user, False

        if user_id is None:
            logger.error("User store failed to create user", extra=log_extra)
            raise ProvisioningError("Authentication failed: cannot create new user.")
        logger.info("Created local user", extra=log_extra)
        return user, True

    _refresh(store, user, identity)
    return user, False


def _refresh(store: UserStore, user: LocalUser, identity: NormalizedIdentity) -> None:
    changed = False
    if user.picture != identity.picture_url:
        user.picture = identity.picture_url
        changed = True
    if not is_blank(identity.email) and user.email != identity.email:
        user.email = identity.email
        changed = True
    if changed:
        store.update(user)
        logger.debug("Updated local user profile", extra={"appid": user.appid, "identifier": user.identifier})
