# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

import socket
import ssl
from collections.abc import Iterator
from enum import Enum

import httpx


class ErrorCategory(str, Enum):
    TIMEOUT = "TIMEOUT"
    SSL_ERROR = "SSL_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    PROXY_ERROR = "PROXY_ERROR"
    DNS_ERROR = "DNS_ERROR"
    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    NONE = "NONE"


class ProbeError(Exception):
    """Base class for every failure a probe can report to the shell."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class MaterialIOError(ProbeError):
    """Trust or identity material could not be read from disk."""


class CertificateDecodeError(ProbeError):
    """Trust-anchor bytes are not a usable PEM certificate."""


class IdentityDecodeError(ProbeError):
    """Identity container could not be turned into a key and certificate."""


class ProxyParseError(ProbeError):
    """A proxy URL was supplied but is not usable."""


class ClientBuildError(ProbeError):
    """The transport refused the trust, identity, proxy and policy combination."""


class RequestError(ProbeError):
    """The probe request failed anywhere between DNS lookup and response."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN_ERROR):
        super().__init__(message)
        self.category = category


class LogAccessError(ProbeError):
    """The diagnostic log lock could not be acquired."""


class InvalidRequestError(ProbeError):
    """A boundary payload is missing fields or carries wrongly typed values."""


def _exception_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def categorize_exception(exc: BaseException) -> ErrorCategory:
    """
    Map Python/httpx exceptions to ErrorCategory.

    httpx wraps the socket and ssl errors raised by its transport, so the
    whole cause chain is inspected before falling back to the outer type.
    """
    chain = list(_exception_chain(exc))

    if any(isinstance(item, (httpx.TimeoutException, socket.timeout, TimeoutError)) for item in chain):
        return ErrorCategory.TIMEOUT

    if any(isinstance(item, httpx.ProxyError) for item in chain):
        return ErrorCategory.PROXY_ERROR

    if any(isinstance(item, (ssl.SSLError, ssl.CertificateError)) for item in chain):
        return ErrorCategory.SSL_ERROR

    if any(isinstance(item, (socket.gaierror, socket.herror)) for item in chain):
        return ErrorCategory.DNS_ERROR

    if any(isinstance(item, (httpx.UnsupportedProtocol, httpx.ProtocolError, httpx.InvalidURL)) for item in chain):
        return ErrorCategory.PROTOCOL_ERROR

    if any(isinstance(item, (httpx.NetworkError, ConnectionError, OSError)) for item in chain):
        return ErrorCategory.CONNECTION_ERROR

    return ErrorCategory.UNKNOWN_ERROR


def error_category_to_reason(category: ErrorCategory | None) -> str:
    """User-facing reason string."""
    mapping = {
        ErrorCategory.TIMEOUT: "Network timeout during probe",
        ErrorCategory.SSL_ERROR: "TLS handshake or certificate validation failed",
        ErrorCategory.CONNECTION_ERROR: "Network connectivity issue",
        ErrorCategory.PROXY_ERROR: "Proxy refused or failed the tunnel",
        ErrorCategory.DNS_ERROR: "DNS resolution failure",
        ErrorCategory.PROTOCOL_ERROR: "Request rejected by transport policy or protocol",
        ErrorCategory.UNKNOWN_ERROR: "Network error during probe",
        ErrorCategory.NONE: "",
        None: "",
    }
    return mapping.get(category, "Probe failed due to network error")


__all__ = [
    "CertificateDecodeError",
    "ClientBuildError",
    "ErrorCategory",
    "IdentityDecodeError",
    "InvalidRequestError",
    "LogAccessError",
    "MaterialIOError",
    "ProbeError",
    "ProxyParseError",
    "RequestError",
    "categorize_exception",
    "error_category_to_reason",
]
