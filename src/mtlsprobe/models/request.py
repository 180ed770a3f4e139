# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Boundary request model."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import InvalidRequestError
from ..http.tls import TlsPolicy

# (attribute, camelCase wire name, snake_case name sent by older shells)
_STRING_FIELDS = (
    ("url", "url", "url"),
    ("keystore_path", "keystorePath", "keystore_path"),
    ("keystore_password", "keystorePassword", "keystore_password"),
    ("public_certificate_path", "publicCertificatePath", "public_certificate_path"),
)
_FLAG_FIELDS = (
    ("check_hostname", "checkHostname", "check_hostname"),
    ("use_inbuilt_root_certs", "useInbuiltRootCerts", "use_inbuilt_root_certs"),
    ("use_https_only", "useHttpsOnly", "use_https_only"),
    ("use_tls_sni", "useTlsSni", "use_tls_sni"),
)


def _lookup(data: Mapping[str, Any], names: tuple[str, str]) -> tuple[bool, Any]:
    for name in names:
        if name in data:
            return True, data[name]
    return False, None


@dataclass(frozen=True)
class ConnectionRequest:
    """One probe invocation as submitted by the shell. No field is defaulted."""

    url: str
    proxy_url: str | None
    keystore_path: str
    keystore_password: str = field(repr=False)
    public_certificate_path: str
    check_hostname: bool
    use_inbuilt_root_certs: bool
    use_https_only: bool
    use_tls_sni: bool

    @property
    def policy(self) -> TlsPolicy:
        return TlsPolicy(
            verify_hostname=self.check_hostname,
            use_builtin_root_trust=self.use_inbuilt_root_certs,
            https_only=self.use_https_only,
            use_tls_sni=self.use_tls_sni,
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConnectionRequest":
        """Parse a wire payload (camelCase or snake_case keys)."""
        if not isinstance(data, Mapping):
            raise InvalidRequestError(f"request must be an object, got {type(data).__name__}")

        values: dict[str, Any] = {}
        missing: list[str] = []
        for attr, wire, legacy in _STRING_FIELDS:
            found, value = _lookup(data, (wire, legacy))
            if not found:
                missing.append(wire)
            elif not isinstance(value, str):
                raise InvalidRequestError(f"{wire} must be a string")
            values[attr] = value
        for attr, wire, legacy in _FLAG_FIELDS:
            found, value = _lookup(data, (wire, legacy))
            if not found:
                missing.append(wire)
            elif not isinstance(value, bool):
                raise InvalidRequestError(f"{wire} must be a boolean")
            values[attr] = value
        if missing:
            raise InvalidRequestError(f"missing required field(s): {', '.join(missing)}")

        _, proxy_url = _lookup(data, ("proxyUrl", "proxy_url"))
        if proxy_url is not None and not isinstance(proxy_url, str):
            raise InvalidRequestError("proxyUrl must be a string or null")
        # shells omit the proxy field or send "" when no proxy is configured
        values["proxy_url"] = proxy_url or None
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "proxyUrl": self.proxy_url,
            "keystorePath": self.keystore_path,
            "keystorePassword": self.keystore_password,
            "publicCertificatePath": self.public_certificate_path,
            "checkHostname": self.check_hostname,
            "useInbuiltRootCerts": self.use_inbuilt_root_certs,
            "useHttpsOnly": self.use_https_only,
            "useTlsSni": self.use_tls_sni,
        }
