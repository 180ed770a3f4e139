# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Probe pipeline stages and outcome."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..errors import ErrorCategory


class ProbeStage(str, Enum):
    RECEIVED = "RECEIVED"
    MATERIAL_LOADING = "MATERIAL_LOADING"
    DECODING = "DECODING"
    CLIENT_BUILDING = "CLIENT_BUILDING"
    REQUESTING = "REQUESTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


@dataclass
class ProbeOutcome:
    """Terminal result of one probe; ``to_dict`` is the wire response."""

    success: bool
    logdata: str | None
    error: str | None = None
    stage: ProbeStage = ProbeStage.SUCCEEDED
    failed_stage: ProbeStage | None = None
    category: ErrorCategory = ErrorCategory.NONE
    status_code: int | None = None

    @classmethod
    def succeeded(cls, logdata: str, status_code: int | None = None) -> "ProbeOutcome":
        return cls(success=True, logdata=logdata, status_code=status_code)

    @classmethod
    def failed(
        cls,
        error: str,
        logdata: str | None,
        *,
        failed_stage: ProbeStage,
        category: ErrorCategory = ErrorCategory.NONE,
    ) -> "ProbeOutcome":
        return cls(
            success=False,
            logdata=logdata,
            error=error,
            stage=ProbeStage.FAILED,
            failed_stage=failed_stage,
            category=category,
        )

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "logdata": self.logdata or ""}
        return {"error": self.error or "", "logdata": self.logdata}
