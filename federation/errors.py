"""Authentication failures raised by a grant exchange."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Distinguishable failure kinds so callers can render a fitting response."""

    EXCHANGE_ERROR = "exchange_error"
    PROVISIONING_ERROR = "provisioning_error"
    ACCOUNT_INACTIVE = "account_inactive"
    STORE_ERROR = "store_error"


class AuthenticationFailure(Exception):
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExchangeError(AuthenticationFailure):
    """Token or profile call failed: transport error, timeout, bad JSON, no token."""

    kind = ErrorKind.EXCHANGE_ERROR


class ProvisioningError(AuthenticationFailure):
    """The user store could not create the local user."""

    kind = ErrorKind.PROVISIONING_ERROR


class AccountInactive(AuthenticationFailure):
    """The reconciled local user is disabled."""

    kind = ErrorKind.ACCOUNT_INACTIVE


class StoreError(AuthenticationFailure):
    """The user or tenant store failed on a read or update."""

    kind = ErrorKind.STORE_ERROR


class DuplicateIdentifierError(Exception):
    """Create hit the unique ``(appid, identifier)`` index."""

    def __init__(self, appid: str, identifier: str):
        super().__init__(f"user {identifier} already exists in app {appid}")
        self.appid = appid
        self.identifier = identifier
