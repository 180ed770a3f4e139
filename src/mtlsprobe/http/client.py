# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""One-shot mutual-TLS httpx client and its factory."""

from __future__ import annotations

import httpx

from ..config import ProbeSettings, load_probe_settings
from ..diagnostics import DiagnosticLog
from ..errors import ClientBuildError
from ..material import ClientIdentity, TrustAnchor
from .tls import TlsPolicy, build_ssl_context
from .tracing import ConnectionTracer, request_logger, response_logger


def _https_only_guard(request: httpx.Request) -> None:
    if request.url.scheme != "https":
        raise httpx.UnsupportedProtocol(f"URL scheme is not allowed: {request.url}", request=request)


class TlsClient:
    """
    httpx client bound to one trust anchor, one identity, one proxy decision
    and one policy. Built per probe and closed afterwards; never pooled.
    """

    def __init__(self, client: httpx.Client, policy: TlsPolicy, tracer: ConnectionTracer):
        self._client = client
        self.policy = policy
        self.tracer = tracer

    def get(self, url: str) -> httpx.Response:
        return self._client.get(url, extensions={"trace": self.tracer})

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "TlsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()


class TlsClientFactory:
    """Composes trust, identity, proxy and policy into a ready TlsClient."""

    def __init__(self, diagnostic_log: DiagnosticLog, settings: ProbeSettings | None = None):
        self.diagnostic_log = diagnostic_log
        self.settings = settings or load_probe_settings()

    def build(
        self,
        anchor: TrustAnchor,
        identity: ClientIdentity,
        proxy: httpx.Proxy | None,
        policy: TlsPolicy,
    ) -> TlsClient:
        ssl_context = build_ssl_context(anchor, identity, policy)

        request_hooks = [request_logger(self.diagnostic_log)]
        if policy.https_only:
            request_hooks.insert(0, _https_only_guard)

        try:
            client = httpx.Client(
                verify=ssl_context,
                proxy=proxy,
                timeout=self.settings.effective_timeout,
                follow_redirects=self.settings.allow_redirects,
                max_redirects=self.settings.max_redirects,
                headers={"User-Agent": self.settings.user_agent},
                event_hooks={
                    "request": request_hooks,
                    "response": [response_logger(self.diagnostic_log)],
                },
                trust_env=self.settings.trust_env,
            )
        except (ImportError, ValueError, TypeError, httpx.HTTPError) as exc:
            raise ClientBuildError(f"failed to build HTTP client: {exc}") from exc

        return TlsClient(client, policy, ConnectionTracer(self.diagnostic_log))


__all__ = ["TlsClient", "TlsClientFactory"]
