"""Provider-neutral identity extracted from a raw provider profile."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from pydantic import BaseModel

logger = logging.getLogger("federation")

DEFAULT_DISPLAY_NAME = "No Name"


class NormalizedIdentity(BaseModel):
    external_id: str
    email: str
    display_name: str = DEFAULT_DISPLAY_NAME
    picture_url: Optional[str] = None
    provider_prefix: str
    email_domain: str

    @property
    def identifier(self) -> str:
        return f"{self.provider_prefix}{self.external_id}"

    @property
    def synthesized_email(self) -> str:
        return f"{self.external_id}@{self.email_domain}"


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def strip_picture_params(url: str | None) -> str | None:
    """Drop the query string; providers put resize parameters there."""
    if url is None:
        return None
    return url.split("?", 1)[0]


def normalize_profile(
    raw: dict[str, Any] | None,
    prefix: str,
    email_domain: str,
    email_fetcher: Callable[[str], str],
) -> NormalizedIdentity | None:
    """Build a NormalizedIdentity from a profile with ``id``, ``email``, ``name``, ``avatar_url``.

    Returns None when there is no ``id``. ``email_fetcher`` is only called
    when the public email is blank and receives the external id.
    """
    if not raw or raw.get("id") is None:
        logger.info("Provider profile has no id")
        return None

    external_id = str(raw["id"])
    email = raw.get("email")
    if is_blank(email):
        email = email_fetcher(external_id)

    name = raw.get("name")
    return NormalizedIdentity(
        external_id=external_id,
        email=email or "",
        display_name=DEFAULT_DISPLAY_NAME if is_blank(name) else name,
        picture_url=strip_picture_params(raw.get("avatar_url")),
        provider_prefix=prefix,
        email_domain=email_domain,
    )
