# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Dataclass exports for mtlsprobe."""

from .outcome import ProbeOutcome, ProbeStage
from .request import ConnectionRequest

__all__ = [
    "ConnectionRequest",
    "ProbeOutcome",
    "ProbeStage",
]
