# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level facade exposing the probe command to a shell."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from .config import ProbeSettings, load_probe_settings
from .diagnostics import DiagnosticLog
from .errors import InvalidRequestError
from .material import IdentityDecoder
from .models import ConnectionRequest, ProbeOutcome
from .runner import ProbeRunner


class MtlsProbe:
    """
    Command handler owned by the shell.

    Holds the DiagnosticLog shared by every invocation and a worker pool so
    that interactive callers can dispatch probes without blocking their own
    thread. Each invocation builds and discards its own client.
    """

    def __init__(
        self,
        settings: ProbeSettings | None = None,
        *,
        diagnostic_log: DiagnosticLog | None = None,
        identity_decoder: IdentityDecoder | None = None,
    ):
        self.settings = settings or load_probe_settings()
        self.diagnostic_log = diagnostic_log or DiagnosticLog(lock_timeout=self.settings.log_lock_timeout)
        self.runner = ProbeRunner(self.diagnostic_log, self.settings, identity_decoder=identity_decoder)
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    def run(self, request: ConnectionRequest) -> ProbeOutcome:
        return self.runner.run(request)

    def do_request(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Wire-level command: request mapping in, response mapping out."""
        try:
            request = ConnectionRequest.from_mapping(payload)
        except InvalidRequestError as exc:
            return {"error": exc.message, "logdata": None}
        return self.run(request).to_dict()

    def submit(self, request: ConnectionRequest) -> Future[ProbeOutcome]:
        """Dispatch a probe to the worker pool and return its future."""
        return self._get_executor().submit(self.runner.run, request)

    def submit_request(self, payload: Mapping[str, Any]) -> Future[dict[str, Any]]:
        return self._get_executor().submit(self.do_request, payload)

    def clear_log(self) -> None:
        self.diagnostic_log.clear()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.settings.max_workers,
                    thread_name_prefix="mtlsprobe",
                )
            return self._executor

    def close(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self) -> "MtlsProbe":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()


__all__ = ["MtlsProbe"]
