# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Run one connection probe: load, decode, build, request."""

from __future__ import annotations

import logging

from .config import ProbeSettings, load_probe_settings
from .diagnostics import DiagnosticLog
from .errors import ErrorCategory, LogAccessError, ProbeError, RequestError
from .http.client import TlsClientFactory
from .http.executor import execute
from .http.proxy import resolve_proxy
from .material import IdentityDecoder, decode_certificate, get_identity_decoder, read_material
from .models import ConnectionRequest, ProbeOutcome, ProbeStage

logger = logging.getLogger(__name__)


class ProbeRunner:
    """
    Drives a ConnectionRequest through the probe stages.

    Stages run strictly in order (material loading, decoding, client
    building, requesting) and the first ProbeError ends the run as a failed
    outcome carrying the current DiagnosticLog snapshot.
    """

    def __init__(
        self,
        diagnostic_log: DiagnosticLog,
        settings: ProbeSettings | None = None,
        identity_decoder: IdentityDecoder | None = None,
        client_factory: TlsClientFactory | None = None,
    ):
        self.diagnostic_log = diagnostic_log
        self.settings = settings or load_probe_settings()
        self.identity_decoder = identity_decoder or get_identity_decoder(self.settings.identity_format)
        self.client_factory = client_factory or TlsClientFactory(diagnostic_log, self.settings)

    def run(self, request: ConnectionRequest) -> ProbeOutcome:
        stage = ProbeStage.RECEIVED
        try:
            stage = ProbeStage.MATERIAL_LOADING
            certificate_bytes = read_material(request.public_certificate_path)
            identity_bytes = read_material(request.keystore_path)

            stage = ProbeStage.DECODING
            anchor = decode_certificate(certificate_bytes)
            identity = self.identity_decoder.decode(identity_bytes, request.keystore_password)
            proxy = resolve_proxy(request.proxy_url)

            stage = ProbeStage.CLIENT_BUILDING
            client = self.client_factory.build(anchor, identity, proxy, request.policy)

            stage = ProbeStage.REQUESTING
            with client:
                self.diagnostic_log.append(
                    f"[probe] GET {request.url} anchor={anchor.subject!r} identity={identity.subject!r} "
                    f"proxy={'yes' if proxy is not None else 'no'}"
                )
                response = execute(client, request.url)
        except ProbeError as exc:
            return self._failure(exc, stage)

        logger.debug("probe to %s completed with %s %s", request.url, response.http_version, response.status_code)
        try:
            logdata = self.diagnostic_log.snapshot()
        except LogAccessError as exc:
            return self._failure(exc, ProbeStage.REQUESTING)
        return ProbeOutcome.succeeded(logdata, status_code=response.status_code)

    def _failure(self, exc: ProbeError, stage: ProbeStage) -> ProbeOutcome:
        logger.debug("probe failed during %s: %s", stage.value, exc)
        category = exc.category if isinstance(exc, RequestError) else ErrorCategory.NONE
        try:
            logdata: str | None = self.diagnostic_log.snapshot()
        except LogAccessError:
            logdata = None
        return ProbeOutcome.failed(exc.message, logdata, failed_stage=stage, category=category)


__all__ = ["ProbeRunner"]
