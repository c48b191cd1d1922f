"""User store and tenant resolver backed by SQLAlchemy sessions.

Both objects are long-lived and shared across concurrent exchanges; every
call opens its own session from the (thread-safe) session factory.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from federation.config import ROOT_APP_ID, oauth_keys_for_app
from federation.db import App, LocalUser, utcnow
from federation.errors import DuplicateIdentifierError, StoreError

logger = logging.getLogger("store")


class UserStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get(self, user_id: str) -> LocalUser | None:
        with self._session_factory() as session:
            return session.get(LocalUser, user_id)

    def find_by_identifier(self, appid: str, identifier: str) -> LocalUser | None:
        try:
            with self._session_factory() as session:
                return (
                    session.query(LocalUser)
                    .filter(LocalUser.appid == appid, LocalUser.identifier == identifier)
                    .first()
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up user: {e}", extra={"appid": appid, "identifier": identifier})
            raise StoreError("Authentication failed: cannot read user.") from e

    def create(self, user: LocalUser) -> str | None:
        """Persist a new user and return its id.

        Returns None when the store fails. Raises DuplicateIdentifierError
        when another user already holds ``(appid, identifier)``.
        """
        with self._session_factory() as session:
            try:
                session.add(user)
                session.commit()
            except IntegrityError:
                session.rollback()
                raise DuplicateIdentifierError(user.appid, user.identifier)
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(
                    f"Failed to create user: {e}",
                    extra={"appid": user.appid, "identifier": user.identifier},
                )
                return None
            return user.id

    def update(self, user: LocalUser) -> None:
        with self._session_factory() as session:
            try:
                user.updated_at = utcnow()
                session.merge(user)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(
                    f"Failed to update user: {e}",
                    extra={"appid": user.appid, "identifier": user.identifier},
                )
                raise StoreError("Authentication failed: cannot update user.") from e


class AppResolver:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def lookup(self, appid: str | None) -> App | None:
        """Return the tenant, or None if unknown.

        The root tenant always resolves; without a row its OAuth keys come
        from the environment.
        """
        appid = appid or ROOT_APP_ID
        try:
            with self._session_factory() as session:
                app = session.get(App, appid)
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up app: {e}", extra={"appid": appid})
            raise StoreError(f"Authentication failed: cannot read app {appid}.") from e
        if app is None and appid == ROOT_APP_ID:
            app = App(id=ROOT_APP_ID, name=ROOT_APP_ID, active=True)
        return app

    def oauth_credentials(self, app: App, prefix: str) -> tuple[str, str]:
        return oauth_keys_for_app(app.get_settings(), prefix, app.is_root)
