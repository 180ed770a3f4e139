# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Filesystem access for trust and identity material."""

from __future__ import annotations

import os

from ..errors import MaterialIOError

PathLike = str | os.PathLike[str]


def read_material(path: PathLike) -> bytes:
    """Return the full content of ``path``; no size limit is applied."""
    try:
        with open(path, "rb") as handle:
            return handle.read()
    except (OSError, ValueError) as exc:
        reason = getattr(exc, "strerror", None) or str(exc)
        raise MaterialIOError(f"failed to read {os.fspath(path)!r}: {reason}") from exc


__all__ = ["PathLike", "read_material"]
