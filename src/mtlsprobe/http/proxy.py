# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Proxy URL parsing."""

from __future__ import annotations

import httpx

from ..errors import ProxyParseError

PROXY_SCHEMES = frozenset({"http", "https", "socks5", "socks5h"})


def resolve_proxy(proxy_url: str | None) -> httpx.Proxy | None:
    """
    Turn an optional proxy URL into a directive applied to every protocol.

    ``None`` or the empty string means no proxy. A bare ``host:port`` is read as
    an HTTP proxy. Anything else that is present but unusable raises
    ProxyParseError rather than silently disabling the proxy.
    """
    if proxy_url is None or proxy_url == "":
        return None
    raw = proxy_url.strip()
    if not raw:
        raise ProxyParseError(f"invalid proxy URL {proxy_url!r}: no host")
    if "://" not in raw:
        raw = f"http://{raw}"

    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, ValueError, TypeError) as exc:
        raise ProxyParseError(f"invalid proxy URL {proxy_url!r}: {exc}") from exc

    if url.scheme not in PROXY_SCHEMES:
        raise ProxyParseError(f"unsupported proxy scheme {url.scheme!r} in {proxy_url!r}")
    if not url.host:
        raise ProxyParseError(f"proxy URL {proxy_url!r} has no host")

    try:
        return httpx.Proxy(url)
    except (ValueError, TypeError) as exc:
        raise ProxyParseError(f"invalid proxy URL {proxy_url!r}: {exc}") from exc


__all__ = ["PROXY_SCHEMES", "resolve_proxy"]
