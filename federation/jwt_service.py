"""Session token signing and verification for authenticated principals."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from federation.config import JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET
from federation.exchange import Principal


def encode(principal: Principal) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": principal.user_id,
        "appid": principal.appid,
        "identifier": principal.identifier,
        "name": principal.name,
        "iat": now,
        "exp": now + timedelta(minutes=JWT_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode(token: str) -> dict | None:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError):
        return None
