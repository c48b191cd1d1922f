"""Process-wide outbound HTTP client shared by all provider calls."""

from __future__ import annotations

import threading

import httpx

from federation.config import HTTP_CONNECT_TIMEOUT, HTTP_READ_TIMEOUT

_client: httpx.Client | None = None
_lock = threading.Lock()


def default_timeout() -> httpx.Timeout:
    return httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT)


def get_http_client() -> httpx.Client:
    """Return the shared client, creating it on first use."""
    global _client
    if _client is None:
        with _lock:
            if _client is None:
                _client = httpx.Client(timeout=default_timeout(), follow_redirects=False)
    return _client


def close_http_client() -> None:
    global _client
    with _lock:
        if _client is not None:
            _client.close()
            _client = None
