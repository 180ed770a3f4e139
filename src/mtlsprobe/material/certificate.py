# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""PEM trust-anchor decoding."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from ..errors import CertificateDecodeError
from .loader import PathLike, read_material

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrustAnchor:
    """A single certificate trusted as a validation root for one client build."""

    certificate: x509.Certificate

    @property
    def pem(self) -> str:
        return self.certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")

    @property
    def subject(self) -> str:
        return self.certificate.subject.rfc4514_string()


def decode_certificate(data: bytes) -> TrustAnchor:
    """
    Decode a PEM buffer into one trust anchor.

    When the buffer carries a chain only the first certificate is used; chain
    building beyond that anchor is left to the TLS stack.
    """
    if not data or not data.strip():
        raise CertificateDecodeError("certificate is empty")
    try:
        certificates = x509.load_pem_x509_certificates(data)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise CertificateDecodeError(f"invalid PEM certificate: {exc}") from exc
    if not certificates:
        raise CertificateDecodeError("no certificate found in PEM data")
    if len(certificates) > 1:
        logger.debug("ignoring %d additional certificate(s) after the trust anchor", len(certificates) - 1)
    return TrustAnchor(certificate=certificates[0])


def load_certificate(path: PathLike) -> TrustAnchor:
    return decode_certificate(read_material(path))


__all__ = ["TrustAnchor", "decode_certificate", "load_certificate"]
