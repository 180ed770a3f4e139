# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Single-request probe execution."""

from __future__ import annotations

import ssl
from dataclasses import dataclass

import httpx

from ..errors import RequestError, categorize_exception
from .client import TlsClient


@dataclass
class ProbeResponse:
    """What survives of a probe response; the body is never inspected."""

    status_code: int
    http_version: str


def execute(client: TlsClient, url: str) -> ProbeResponse:
    """Issue exactly one GET through ``client``; any failure is a RequestError."""
    try:
        response = client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL, ssl.SSLError, OSError) as exc:
        message = str(exc) or type(exc).__name__
        raise RequestError(message, categorize_exception(exc)) from exc

    return ProbeResponse(status_code=response.status_code, http_version=response.http_version)


__all__ = ["ProbeResponse", "execute"]
