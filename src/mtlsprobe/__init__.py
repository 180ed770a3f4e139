# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
mtlsprobe package entrypoint.

Validates a mutual-TLS connection to a remote endpoint with operator-supplied
trust anchor, client identity, proxy and TLS policy, and reports the outcome
together with the captured connection diagnostics. Every probe builds its own
httpx client; the only state shared between probes is the DiagnosticLog.
"""

from .config import ProbeSettings, load_probe_settings
from .diagnostics import DiagnosticLog
from .errors import (
    CertificateDecodeError,
    ClientBuildError,
    ErrorCategory,
    IdentityDecodeError,
    InvalidRequestError,
    LogAccessError,
    MaterialIOError,
    ProbeError,
    ProxyParseError,
    RequestError,
)
from .http import TlsClient, TlsClientFactory, TlsPolicy, execute, resolve_proxy
from .log import setup_logging
from .material import (
    ClientIdentity,
    PemIdentityDecoder,
    Pkcs12IdentityDecoder,
    TrustAnchor,
    decode_certificate,
    get_identity_decoder,
    read_material,
)
from .models import ConnectionRequest, ProbeOutcome, ProbeStage
from .runner import ProbeRunner
from .runtime import MtlsProbe
from .version import __version__

__all__ = [
    "CertificateDecodeError",
    "ClientBuildError",
    "ClientIdentity",
    "ConnectionRequest",
    "DiagnosticLog",
    "ErrorCategory",
    "IdentityDecodeError",
    "InvalidRequestError",
    "LogAccessError",
    "MaterialIOError",
    "MtlsProbe",
    "PemIdentityDecoder",
    "Pkcs12IdentityDecoder",
    "ProbeError",
    "ProbeOutcome",
    "ProbeRunner",
    "ProbeSettings",
    "ProbeStage",
    "ProxyParseError",
    "RequestError",
    "TlsClient",
    "TlsClientFactory",
    "TlsPolicy",
    "TrustAnchor",
    "__version__",
    "decode_certificate",
    "execute",
    "get_identity_decoder",
    "load_probe_settings",
    "read_material",
    "resolve_proxy",
    "setup_logging",
]
