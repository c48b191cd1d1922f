"""Configuration for the federation service."""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# JWT
JWT_SECRET = os.environ.get("FEDERATION_JWT_SECRET", "change-me-in-production")
JWT_EXPIRE_MINUTES = int(os.environ.get("FEDERATION_JWT_EXPIRE_MINUTES", "1440"))
JWT_ALGORITHM = "HS256"

# Database
DATABASE_URL = os.environ.get("DATABASE_URL", "")

# Server
HOST = os.environ.get("FEDERATION_HOST", "0.0.0.0")
PORT = int(os.environ.get("FEDERATION_PORT", "18792"))
LOG_LEVEL = os.environ.get("FEDERATION_LOG_LEVEL", "INFO")

# Tenants
ROOT_APP_ID = os.environ.get("FEDERATION_ROOT_APP_ID", "root")
APPID_PARAM = "appid"

# Outbound HTTP (seconds)
HTTP_CONNECT_TIMEOUT = float(os.environ.get("FEDERATION_HTTP_CONNECT_TIMEOUT", "5"))
HTTP_READ_TIMEOUT = float(os.environ.get("FEDERATION_HTTP_READ_TIMEOUT", "10"))


def oauth_keys_for_app(settings: dict | None, prefix: str, is_root: bool) -> tuple[str, str]:
    """Resolve (client_id, client_secret) for a provider prefix.

    A tenant's own ``<prefix>_app_id`` / ``<prefix>_secret`` settings win.
    The root tenant falls back to ``<PREFIX>_APP_ID`` / ``<PREFIX>_SECRET``
    from the environment; other tenants get blank keys.
    """
    app_id_key = f"{prefix}_app_id"
    secret_key = f"{prefix}_secret"
    settings = settings or {}
    if app_id_key in settings and secret_key in settings:
        return str(settings[app_id_key]), str(settings[secret_key])
    if is_root:
        return (
            os.environ.get(app_id_key.upper(), ""),
            os.environ.get(secret_key.upper(), ""),
        )
    return "", ""
