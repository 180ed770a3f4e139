# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for mtlsprobe."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"mtlsprobe/{__version__}"
IDENTITY_FORMATS = ("pkcs12", "pem")


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _choice_env(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = (os.getenv(name) or "").strip().lower()
    return value if value in choices else default


@dataclass
class ProbeSettings:
    """Process-wide probe defaults. Never part of a single request."""

    timeout: float = 30.0
    allow_redirects: bool = True
    max_redirects: int = 10
    user_agent: str = DEFAULT_USER_AGENT
    identity_format: str = "pkcs12"
    log_lock_timeout: float = 5.0
    max_workers: int = 4
    trust_env: bool = True

    @property
    def effective_timeout(self) -> float | None:
        """Timeout handed to httpx; non-positive values disable it."""
        return self.timeout if self.timeout > 0 else None

    @classmethod
    def from_env(cls) -> "ProbeSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_redirects = _int_env("MTLSPROBE_HTTP_MAX_REDIRECTS", cls.max_redirects)
        if max_redirects < 0:
            max_redirects = cls.max_redirects
        max_workers = _int_env("MTLSPROBE_MAX_WORKERS", cls.max_workers)
        if max_workers <= 0:
            max_workers = cls.max_workers
        log_lock_timeout = _float_env("MTLSPROBE_LOG_LOCK_TIMEOUT", cls.log_lock_timeout)
        if log_lock_timeout <= 0:
            log_lock_timeout = cls.log_lock_timeout
        return cls(
            timeout=_float_env("MTLSPROBE_HTTP_TIMEOUT", cls.timeout),
            allow_redirects=_bool_env("MTLSPROBE_HTTP_REDIRECTS", cls.allow_redirects),
            max_redirects=max_redirects,
            user_agent=os.getenv("MTLSPROBE_USER_AGENT", cls.user_agent),
            identity_format=_choice_env("MTLSPROBE_IDENTITY_FORMAT", cls.identity_format, IDENTITY_FORMATS),
            log_lock_timeout=log_lock_timeout,
            max_workers=max_workers,
            trust_env=_bool_env("MTLSPROBE_TRUST_ENV", cls.trust_env),
        )


def load_probe_settings() -> ProbeSettings:
    """Load probe settings from environment with sensible defaults."""
    return ProbeSettings.from_env()
