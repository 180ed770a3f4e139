# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Client identity decoding.

Two interchangeable strategies turn a container into a ClientIdentity: a
password-protected PKCS#12 bundle and a plain PEM key pair. The active
strategy is chosen by process configuration, never per request.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from cryptography.hazmat.primitives.serialization import pkcs12

from ..errors import IdentityDecodeError
from .loader import PathLike, read_material

SUPPORTED_KEY_TYPES = (
    rsa.RSAPrivateKey,
    ec.EllipticCurvePrivateKey,
    ed25519.Ed25519PrivateKey,
    ed448.Ed448PrivateKey,
)

_PEM_BLOCK = re.compile(
    rb"-----BEGIN (?P<label>[A-Z0-9 ]+)-----.*?-----END (?P=label)-----",
    re.DOTALL,
)
_DECODE_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


@dataclass(frozen=True)
class ClientIdentity:
    """Private key plus leaf certificate (and optional chain) for mTLS."""

    private_key: PrivateKeyTypes
    certificate: x509.Certificate
    chain: tuple[x509.Certificate, ...] = ()

    @property
    def subject(self) -> str:
        return self.certificate.subject.rfc4514_string()

    def to_pem(self, password: bytes) -> bytes:
        """Serialize as leaf-first certificate chain followed by the encrypted PKCS#8 key."""
        key_pem = self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.BestAvailableEncryption(password),
        )
        certs = [self.certificate, *self.chain]
        return b"".join(cert.public_bytes(serialization.Encoding.PEM) for cert in certs) + key_pem


class IdentityDecoder(Protocol):
    """Turns container bytes plus an optional passphrase into a ClientIdentity."""

    name: str

    def decode(self, data: bytes, passphrase: str | None) -> ClientIdentity: ...


def _public_key_der(key) -> bytes:  # noqa: ANN001
    return key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _matches(private_key, certificate: x509.Certificate) -> bool:  # noqa: ANN001
    try:
        return _public_key_der(private_key.public_key()) == _public_key_der(certificate.public_key())
    except _DECODE_ERRORS:
        return False


def _build_identity(private_key, certificate: x509.Certificate | None, chain) -> ClientIdentity:  # noqa: ANN001
    if private_key is None:
        raise IdentityDecodeError("identity contains no private key")
    if certificate is None:
        raise IdentityDecodeError("identity contains no certificate")
    if not isinstance(private_key, SUPPORTED_KEY_TYPES):
        raise IdentityDecodeError(f"unsupported key algorithm: {type(private_key).__name__}")
    if not _matches(private_key, certificate):
        raise IdentityDecodeError("private key does not match the identity certificate")
    return ClientIdentity(private_key=private_key, certificate=certificate, chain=tuple(chain or ()))


class Pkcs12IdentityDecoder:
    """Password-protected PKCS#12 (.p12 / .pfx) containers."""

    name = "pkcs12"

    def decode(self, data: bytes, passphrase: str | None) -> ClientIdentity:
        if not data:
            raise IdentityDecodeError("identity container is empty")
        try:
            password = passphrase.encode("utf-8") if passphrase else None
            private_key, certificate, additional = pkcs12.load_key_and_certificates(data, password)
        except _DECODE_ERRORS as exc:
            raise IdentityDecodeError(f"failed to decode PKCS#12 identity: {exc}") from exc
        return _build_identity(private_key, certificate, additional)


class PemIdentityDecoder:
    """
    Unencrypted PEM private key bundled with its certificate chain.

    The passphrase is accepted for interface parity but never applied.
    """

    name = "pem"

    def decode(self, data: bytes, passphrase: str | None) -> ClientIdentity:  # noqa: ARG002
        key_blocks: list[bytes] = []
        cert_blocks: list[bytes] = []
        for match in _PEM_BLOCK.finditer(data or b""):
            label = match.group("label")
            if label.endswith(b"PRIVATE KEY"):
                key_blocks.append(match.group(0))
            elif label in (b"CERTIFICATE", b"X509 CERTIFICATE"):
                cert_blocks.append(match.group(0))

        if not key_blocks:
            raise IdentityDecodeError("PEM identity contains no private key")
        if not cert_blocks:
            raise IdentityDecodeError("PEM identity contains no certificate")

        try:
            private_key = serialization.load_pem_private_key(key_blocks[0], password=None)
            certificates = [x509.load_pem_x509_certificate(block) for block in cert_blocks]
        except _DECODE_ERRORS as exc:
            raise IdentityDecodeError(f"failed to decode PEM identity: {exc}") from exc

        leaf = next((cert for cert in certificates if _matches(private_key, cert)), None)
        if leaf is None:
            raise IdentityDecodeError("private key does not match any certificate in the PEM identity")
        chain = [cert for cert in certificates if cert is not leaf]
        return _build_identity(private_key, leaf, chain)


IDENTITY_DECODERS: dict[str, type] = {
    Pkcs12IdentityDecoder.name: Pkcs12IdentityDecoder,
    PemIdentityDecoder.name: PemIdentityDecoder,
}


def get_identity_decoder(identity_format: str) -> IdentityDecoder:
    """Return the decoding strategy registered for ``identity_format``."""
    try:
        return IDENTITY_DECODERS[identity_format.strip().lower()]()
    except KeyError:
        known = ", ".join(sorted(IDENTITY_DECODERS))
        raise ValueError(f"unknown identity format {identity_format!r} (expected one of: {known})") from None


def load_identity(path: PathLike, passphrase: str | None, decoder: IdentityDecoder) -> ClientIdentity:
    return decoder.decode(read_material(path), passphrase)


__all__ = [
    "ClientIdentity",
    "IDENTITY_DECODERS",
    "IdentityDecoder",
    "PemIdentityDecoder",
    "Pkcs12IdentityDecoder",
    "SUPPORTED_KEY_TYPES",
    "get_identity_decoder",
    "load_identity",
]
