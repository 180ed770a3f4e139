# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Trust and identity material exports."""

from .certificate import TrustAnchor, decode_certificate, load_certificate
from .identity import (
    IDENTITY_DECODERS,
    ClientIdentity,
    IdentityDecoder,
    PemIdentityDecoder,
    Pkcs12IdentityDecoder,
    get_identity_decoder,
    load_identity,
)
from .loader import read_material

__all__ = [
    "IDENTITY_DECODERS",
    "ClientIdentity",
    "IdentityDecoder",
    "PemIdentityDecoder",
    "Pkcs12IdentityDecoder",
    "TrustAnchor",
    "decode_certificate",
    "get_identity_decoder",
    "load_certificate",
    "load_identity",
    "read_material",
]
