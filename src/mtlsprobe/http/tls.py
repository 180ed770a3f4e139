# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
SSLContext assembly for mutual-TLS probes.

The supplied trust anchor and client identity are always installed; the
policy only decides whether bundled roots are trusted as well, whether the
peer name is checked and whether SNI is sent.

Python ties SNI and hostname checking to the same ``server_hostname``
argument. SniSuppressingContext drops that argument and, when hostname
verification is still wanted, matches the peer certificate itself once the
handshake has completed.
"""

from __future__ import annotations

import ipaddress
import os
import secrets
import ssl
import tempfile
from dataclasses import dataclass

import certifi
from cryptography import x509

from ..errors import ClientBuildError
from ..material import ClientIdentity, TrustAnchor


@dataclass(frozen=True)
class TlsPolicy:
    """TLS toggles for one probe; every flag is explicit."""

    verify_hostname: bool
    use_builtin_root_trust: bool
    https_only: bool
    use_tls_sni: bool


def _dns_name_matches(pattern: str, hostname: str) -> bool:
    pattern = pattern.rstrip(".").lower()
    if pattern.startswith("*."):
        label, _, rest = hostname.partition(".")
        return bool(label) and bool(rest) and rest == pattern[2:]
    return pattern == hostname


def certificate_matches_hostname(certificate: x509.Certificate, hostname: str) -> bool:
    """Match ``hostname`` against the certificate's subjectAltName entries."""
    host = hostname.strip("[]").rstrip(".").lower()
    try:
        san = certificate.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return False
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        address = None
    if address is not None:
        return address in san.get_values_for_type(x509.IPAddress)
    return any(_dns_name_matches(name, host) for name in san.get_values_for_type(x509.DNSName))


def _verify_peer_hostname(tls_object, hostname: str | None) -> None:  # noqa: ANN001
    if not hostname:
        return
    der = tls_object.getpeercert(True)
    if not der:
        raise ssl.SSLCertVerificationError("peer did not present a certificate")
    certificate = x509.load_der_x509_certificate(der)
    if not certificate_matches_hostname(certificate, hostname):
        raise ssl.SSLCertVerificationError(f"Hostname mismatch, certificate is not valid for '{hostname}'.")


class _HostnameCheckingSSLSocket(ssl.SSLSocket):
    expected_hostname: str | None = None

    def do_handshake(self, block=False):  # noqa: ANN001
        super().do_handshake(block)
        _verify_peer_hostname(self, self.expected_hostname)


class _HostnameCheckingSSLObject(ssl.SSLObject):
    expected_hostname: str | None = None

    def do_handshake(self):
        super().do_handshake()
        _verify_peer_hostname(self, self.expected_hostname)


class SniSuppressingContext(ssl.SSLContext):
    """Client context that never sends Server Name Indication."""

    sslsocket_class = _HostnameCheckingSSLSocket
    sslobject_class = _HostnameCheckingSSLObject

    verify_peer_hostname = False

    def wrap_socket(
        self,
        sock,
        server_side=False,
        do_handshake_on_connect=True,
        suppress_ragged_eofs=True,
        server_hostname=None,
        session=None,
    ):  # noqa: ANN001
        tls_sock = super().wrap_socket(
            sock,
            server_side=server_side,
            do_handshake_on_connect=False,
            suppress_ragged_eofs=suppress_ragged_eofs,
            server_hostname=None,
            session=session,
        )
        tls_sock.expected_hostname = server_hostname if self.verify_peer_hostname else None
        if do_handshake_on_connect:
            tls_sock.do_handshake()
        return tls_sock

    def wrap_bio(self, incoming, outgoing, server_side=False, server_hostname=None, session=None):  # noqa: ANN001
        tls_object = super().wrap_bio(
            incoming,
            outgoing,
            server_side=server_side,
            server_hostname=None,
            session=session,
        )
        tls_object.expected_hostname = server_hostname if self.verify_peer_hostname else None
        return tls_object


def _load_identity(context: ssl.SSLContext, identity: ClientIdentity) -> None:
    # load_cert_chain only reads files; the key is encrypted with a one-time
    # password and the directory is removed before returning.
    password = secrets.token_urlsafe(32)
    with tempfile.TemporaryDirectory(prefix="mtlsprobe-") as workdir:
        path = os.path.join(workdir, "identity.pem")
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "wb") as handle:
            handle.write(identity.to_pem(password.encode("ascii")))
        context.load_cert_chain(certfile=path, password=password)


def build_ssl_context(anchor: TrustAnchor, identity: ClientIdentity, policy: TlsPolicy) -> ssl.SSLContext:
    """Create the client SSLContext for one probe."""
    try:
        if policy.use_tls_sni:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            context.check_hostname = policy.verify_hostname
        else:
            context = SniSuppressingContext(ssl.PROTOCOL_TLS_CLIENT)
            context.check_hostname = False
            context.verify_peer_hostname = policy.verify_hostname
        context.verify_mode = ssl.CERT_REQUIRED

        if policy.use_builtin_root_trust:
            context.load_verify_locations(cafile=certifi.where())
        context.load_verify_locations(cadata=anchor.pem)
        _load_identity(context, identity)
    except (ssl.SSLError, ValueError, OSError) as exc:
        raise ClientBuildError(f"failed to configure TLS: {exc}") from exc
    return context


__all__ = [
    "SniSuppressingContext",
    "TlsPolicy",
    "build_ssl_context",
    "certificate_matches_hostname",
]
