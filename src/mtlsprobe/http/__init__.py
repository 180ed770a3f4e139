# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP transport exports."""

from .client import TlsClient, TlsClientFactory
from .executor import ProbeResponse, execute
from .proxy import PROXY_SCHEMES, resolve_proxy
from .tls import SniSuppressingContext, TlsPolicy, build_ssl_context, certificate_matches_hostname
from .tracing import ConnectionTracer

__all__ = [
    "PROXY_SCHEMES",
    "ConnectionTracer",
    "ProbeResponse",
    "SniSuppressingContext",
    "TlsClient",
    "TlsClientFactory",
    "TlsPolicy",
    "build_ssl_context",
    "certificate_matches_hostname",
    "execute",
    "resolve_proxy",
]
