"""Identity providers, keyed by their callback action."""

from __future__ import annotations

from federation.providers.base import OAuthProvider
from federation.providers.github import GitHubProvider

PROVIDERS: dict[str, type[OAuthProvider]] = {
    cls.action: cls for cls in [GitHubProvider]
}


def get_provider(action: str, client=None) -> OAuthProvider | None:
    cls = PROVIDERS.get(action)
    return cls(client) if cls else None


__all__ = ["OAuthProvider", "GitHubProvider", "PROVIDERS", "get_provider"]
