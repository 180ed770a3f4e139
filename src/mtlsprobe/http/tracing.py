# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Verbose connection tracing routed into the DiagnosticLog."""

from __future__ import annotations

import ssl
from datetime import datetime, timezone
from typing import Any

import httpx
from cryptography import x509

from ..diagnostics import DiagnosticLog
from .tls import SniSuppressingContext


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]


def _describe_tls(stream: Any) -> str:
    get_extra_info = getattr(stream, "get_extra_info", None)
    if get_extra_info is None:
        return ""
    tls = get_extra_info("ssl_object")
    if tls is None:
        return ""
    parts = []
    try:
        parts.append(f"version={tls.version()}")
        cipher = tls.cipher()
        if cipher:
            parts.append(f"cipher={cipher[0]}")
        der = tls.getpeercert(True)
        if der:
            peer = x509.load_der_x509_certificate(der)
            parts.append(f"peer={peer.subject.rfc4514_string()}")
            parts.append(f"issuer={peer.issuer.rfc4514_string()}")
    except (ssl.SSLError, ValueError, AttributeError) as exc:
        parts.append(f"details unavailable ({exc})")
    return " ".join(parts)


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("ascii", "replace")
    return str(value)


def _describe_response_head(value: Any) -> str:
    if not isinstance(value, tuple) or len(value) < 3:
        return ""
    version, status, reason = value[0], value[1], value[2]
    return f"{_text(version)} {status} {_text(reason)}".strip()


class ConnectionTracer:
    """
    httpx ``trace`` extension callback.

    httpcore reports every connection step as ``<scope>.<step>.started``,
    ``.complete`` or ``.failed``; each one becomes a log line.
    """

    def __init__(self, log: DiagnosticLog):
        self.log = log

    def __call__(self, event_name: str, info: dict[str, Any]) -> None:
        detail = self._detail(event_name, info or {})
        line = f"{_timestamp()} {event_name}"
        self.log.append(f"{line} {detail}" if detail else line)

    def _detail(self, event_name: str, info: dict[str, Any]) -> str:
        if event_name.endswith(".failed"):
            exc = info.get("exception")
            return f"{type(exc).__name__}: {exc}" if exc is not None else ""

        if event_name.endswith("connect_tcp.started"):
            return f"host={info.get('host')} port={info.get('port')}"
        if event_name.endswith("start_tls.started"):
            context = info.get("ssl_context")
            hostname = info.get("server_hostname")
            sni_enabled = not isinstance(context, SniSuppressingContext)
            return f"server_hostname={hostname} sni={'on' if sni_enabled else 'off'}"
        if event_name.endswith("start_tls.complete"):
            return _describe_tls(info.get("return_value"))
        if event_name.endswith("send_request_headers.started"):
            request = info.get("request")
            if request is not None:
                return f"{_text(request.method)} {_text(getattr(request.url, 'target', b''))}"
        if event_name.endswith("receive_response_headers.complete"):
            return _describe_response_head(info.get("return_value"))
        return ""


def request_logger(log: DiagnosticLog):
    """Build an httpx request event hook recording the outgoing request line."""

    def _log_request(request: httpx.Request) -> None:
        log.append(f"{_timestamp()} > {request.method} {request.url}")

    return _log_request


def response_logger(log: DiagnosticLog):
    """Build an httpx response event hook recording the status line."""

    def _log_response(response: httpx.Response) -> None:
        log.append(
            f"{_timestamp()} < {response.http_version} {response.status_code} {response.reason_phrase}".rstrip()
        )

    return _log_response


__all__ = ["ConnectionTracer", "request_logger", "response_logger"]
